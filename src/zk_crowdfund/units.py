"""Conversions between display amounts, token units and transfer amounts."""

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation

from .constants import (
    MAX_TOKEN_UNITS,
    MIN_TOKEN_UNITS,
    TOKEN_UNIT_SCALE,
    TRANSFER_DECIMALS,
    TRANSFER_SCALE,
)
from .exceptions import AmountTooLarge, AmountTooSmall, InvalidAmount
from .types import Amount

MIN_DISPLAY_AMOUNT = Decimal(MIN_TOKEN_UNITS) / TOKEN_UNIT_SCALE
MAX_DISPLAY_AMOUNT = Decimal(MAX_TOKEN_UNITS) / TOKEN_UNIT_SCALE


def _to_decimal(value: float | int | str | Decimal) -> Decimal:
    if isinstance(value, bool):
        raise InvalidAmount("Amount must be a number", field="amount", value=value)

    if isinstance(value, Decimal):
        quantity = value
    else:
        try:
            quantity = Decimal(str(value).strip())
        except (ValueError, InvalidOperation) as exc:
            raise InvalidAmount(
                "Amount must be a number", field="amount", value=value, details={"error": str(exc)}
            ) from exc

    if not quantity.is_finite():
        raise InvalidAmount("Amount must be a finite number", field="amount", value=value)
    if quantity <= 0:
        raise InvalidAmount("Amount must be a positive number", field="amount", value=value)

    return quantity


def to_token_units(display: float | int | str | Decimal) -> int:
    """Convert a display amount to on-chain token units.

    Rounds half away from zero at six decimals and enforces the u32 range
    accepted by the contract.

    Raises:
        InvalidAmount: NaN, infinite, zero or negative input
        AmountTooSmall: rounds to less than one token unit
        AmountTooLarge: exceeds 2,147,483,647 token units
    """
    quantity = _to_decimal(display)
    units = int((quantity * TOKEN_UNIT_SCALE).to_integral_value(rounding=ROUND_HALF_UP))

    if units < MIN_TOKEN_UNITS:
        raise AmountTooSmall(
            f"Amount too small. Minimum is {MIN_DISPLAY_AMOUNT}", field="amount", value=display
        )
    if units > MAX_TOKEN_UNITS:
        raise AmountTooLarge(
            f"Amount too large. Maximum is {MAX_DISPLAY_AMOUNT}", field="amount", value=display
        )

    return units


def to_display(token_units: int) -> Decimal:
    """Convert token units back to a display amount."""
    return Decimal(int(token_units)) / TOKEN_UNIT_SCALE


def to_transfer_amount(token_units: int) -> int:
    """Convert token units to the 18-decimal transfer amount."""
    return int(token_units) * TRANSFER_SCALE


def transfer_to_display(transfer_amount: int, decimals: int = 6) -> str:
    """Format a transfer-amount balance for display, truncated to ``decimals`` places."""
    value = Decimal(int(transfer_amount)).scaleb(-TRANSFER_DECIMALS)
    quantizer = Decimal(1).scaleb(-decimals)
    return str(value.quantize(quantizer, rounding=ROUND_DOWN))


def validate_amount(display: float | int | str | Decimal) -> Amount:
    """Validate a display amount and return all three projections of it."""
    token_units = to_token_units(display)
    return Amount(
        display_amount=to_display(token_units),
        token_units=token_units,
        transfer_amount=to_transfer_amount(token_units),
    )
