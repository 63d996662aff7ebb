"""Tests for contract action payloads."""

import pytest

from zk_crowdfund.encoding import (
    ADD_CONTRIBUTION_MARKER,
    encode_approve,
    encode_contribute_tokens,
    encode_end_campaign,
    encode_secret_contribution,
    encode_verify_contribution,
    encode_withdraw_funds,
    parse_address,
)
from zk_crowdfund.exceptions import SerializationError, ValidationError

SPENDER = "02" + "ab" * 20


def test_contribute_tokens_layout() -> None:
    assert encode_contribute_tokens(500) == bytes.fromhex("0907000001f4")


def test_single_byte_actions() -> None:
    assert encode_end_campaign() == b"\x09\x01"
    assert encode_withdraw_funds() == b"\x09\x04"
    assert encode_verify_contribution() == b"\x09\x06"


def test_approve_layout() -> None:
    payload = encode_approve(SPENDER, 10)

    assert len(payload) == 1 + 21 + 16
    assert payload[0] == 0x05
    assert payload[1:22] == bytes.fromhex(SPENDER)
    assert payload[22:] == (10).to_bytes(16, "little")
    assert payload[22] == 10 and payload[23:] == bytes(15)


def test_approve_accepts_prefixed_address() -> None:
    assert encode_approve("0x" + SPENDER, 1) == encode_approve(SPENDER, 1)


def test_approve_rejects_amount_outside_u128() -> None:
    with pytest.raises(SerializationError):
        encode_approve(SPENDER, 2**128)
    with pytest.raises(SerializationError):
        encode_approve(SPENDER, -1)


def test_secret_contribution_is_little_endian() -> None:
    assert encode_secret_contribution(500) == bytes([0xF4, 0x01, 0x00, 0x00])
    assert encode_secret_contribution(500, signed=True) == bytes([0xF4, 0x01, 0x00, 0x00])


def test_secret_contribution_range() -> None:
    assert encode_secret_contribution(2**32 - 1) == b"\xff\xff\xff\xff"
    with pytest.raises(SerializationError):
        encode_secret_contribution(2**31, signed=True)
    with pytest.raises(SerializationError):
        encode_secret_contribution(2**32)


def test_add_contribution_marker() -> None:
    assert ADD_CONTRIBUTION_MARKER == b"\x40"


def test_contribute_tokens_rejects_overflow() -> None:
    with pytest.raises(SerializationError):
        encode_contribute_tokens(2**32)


@pytest.mark.parametrize("address", ["", "02ab", "zz" * 21, "02" + "ab" * 21])
def test_parse_address_rejects_malformed(address: str) -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_address(address)

    assert excinfo.value.field == "address"


def test_parse_address_accepts_raw_bytes() -> None:
    raw = bytes.fromhex(SPENDER)
    assert parse_address(raw) == raw
