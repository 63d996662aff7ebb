"""Byte payloads for crowdfunding contract actions.

Public actions are framed as ``0x09`` followed by the action shortname and
big-endian arguments. The token ``approve`` call is sent to the token
contract and carries no format byte. Secret inputs are serialized as a bit
stream, least significant bit first, so a 32-bit integer ends up in
little-endian byte order.
"""

from hexbytes import HexBytes

from .constants import ADDRESS_LENGTH, PUBLIC_ACTION_FORMAT, ActionShortname
from .exceptions import SerializationError

ADD_CONTRIBUTION_MARKER = bytes([ActionShortname.ADD_CONTRIBUTION])

U32_MAX = 2**32 - 1
I32_MIN = -(2**31)
I32_MAX = 2**31 - 1
U128_MAX = 2**128 - 1


def parse_address(address: str | bytes) -> bytes:
    """Return the 21 raw bytes of a blockchain address."""
    if isinstance(address, bytes | bytearray):
        raw = bytes(address)
    else:
        text = str(address).strip()
        try:
            raw = bytes(HexBytes(text))
        except ValueError as exc:
            raise SerializationError(
                "Address must be a hex string", field="address", value=address
            ) from exc

    if len(raw) != ADDRESS_LENGTH:
        raise SerializationError(
            f"Address must be {ADDRESS_LENGTH} bytes, got {len(raw)}",
            field="address",
            value=address,
        )
    return raw


def _public_action(shortname: ActionShortname, arguments: bytes = b"") -> bytes:
    return bytes([PUBLIC_ACTION_FORMAT, shortname]) + arguments


def _u32_be(value: int, field: str) -> bytes:
    if not 0 <= value <= U32_MAX:
        raise SerializationError("Value does not fit in u32", field=field, value=value)
    return int(value).to_bytes(4, "big")


def encode_approve(spender: str | bytes, amount: int) -> bytes:
    """``approve(spender, amount)`` on the token contract."""
    if not 0 <= amount <= U128_MAX:
        raise SerializationError(
            "Approval amount does not fit in u128", field="amount", value=amount
        )
    return (
        bytes([ActionShortname.APPROVE])
        + parse_address(spender)
        + int(amount).to_bytes(16, "little")
    )


def encode_end_campaign() -> bytes:
    return _public_action(ActionShortname.END_CAMPAIGN)


def encode_withdraw_funds() -> bytes:
    return _public_action(ActionShortname.WITHDRAW_FUNDS)


def encode_verify_contribution() -> bytes:
    return _public_action(ActionShortname.VERIFY_CONTRIBUTION)


def encode_contribute_tokens(token_units: int) -> bytes:
    return _public_action(
        ActionShortname.CONTRIBUTE_TOKENS, _u32_be(token_units, "token_units")
    )


def encode_secret_contribution(token_units: int, *, signed: bool = False) -> bytes:
    """Secret input carrying the contribution in token units."""
    if signed:
        if not I32_MIN <= token_units <= I32_MAX:
            raise SerializationError(
                "Value does not fit in i32", field="token_units", value=token_units
            )
        return int(token_units).to_bytes(4, "little", signed=True)

    if not 0 <= token_units <= U32_MAX:
        raise SerializationError(
            "Value does not fit in u32", field="token_units", value=token_units
        )
    return int(token_units).to_bytes(4, "little")
