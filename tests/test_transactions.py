from __future__ import annotations

import pytest

from zk_crowdfund.chain.transactions import TransactionSubmitter
from zk_crowdfund.exceptions import NetworkError, SerializationError, WalletNotConnected
from zk_crowdfund.types import SentTransaction

CONTRACT = "02" + "12" * 20


class DummySender:
    address = "00" + "34" * 20

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[str, bytes, int]] = []

    def sign_and_send(self, address: str, rpc: bytes, gas_cost: int) -> SentTransaction:
        self.calls.append((address, rpc, gas_cost))
        if self.error is not None:
            raise self.error
        return SentTransaction(identifier="deadbeef", destination_shard="Shard2")


class DummyBuilder:
    def __init__(self) -> None:
        self.calls: list[tuple[str, bytes, bytes]] = []

    def build_on_chain_input(
        self, sender: str, secret_input: bytes, public_rpc: bytes
    ) -> tuple[str, bytes]:
        self.calls.append((sender, secret_input, public_rpc))
        return "03" + "56" * 20, b"\x05" + public_rpc


def test_submit_returns_pending_handle() -> None:
    sender = DummySender()

    pending = TransactionSubmitter(sender).submit(CONTRACT, b"\x09\x01", 150_000)

    assert pending.id == "deadbeef"
    assert pending.shard == "Shard2"
    assert sender.calls == [(CONTRACT, b"\x09\x01", 150_000)]


def test_submit_without_sender_raises() -> None:
    with pytest.raises(WalletNotConnected):
        TransactionSubmitter(None).submit(CONTRACT, b"\x09\x01", 1)


def test_signer_errors_become_network_errors() -> None:
    sender = DummySender(SerializationError("bad address"))

    with pytest.raises(NetworkError) as excinfo:
        TransactionSubmitter(sender).submit(CONTRACT, b"\x09\x04", 1, action="withdraw_funds")

    assert excinfo.value.details["action"] == "withdraw_funds"
    assert excinfo.value.details["payload"] == "0904"
    assert isinstance(excinfo.value.__cause__, SerializationError)


def test_network_errors_pass_through() -> None:
    error = NetworkError("Node rejected transaction", status_code=400)

    with pytest.raises(NetworkError) as excinfo:
        TransactionSubmitter(DummySender(error)).submit(CONTRACT, b"", 1)

    assert excinfo.value is error


def test_secret_input_goes_through_builder() -> None:
    sender = DummySender()
    builder = DummyBuilder()
    submitter = TransactionSubmitter(sender, zk_builder=builder)

    pending = submitter.submit_secret_input(CONTRACT, b"\x01\x00\x00\x00", b"\x40", 200_000)

    assert pending.id == "deadbeef"
    assert builder.calls == [(DummySender.address, b"\x01\x00\x00\x00", b"\x40")]
    assert sender.calls == [("03" + "56" * 20, b"\x05\x40", 200_000)]


def test_secret_input_requires_builder() -> None:
    with pytest.raises(WalletNotConnected):
        TransactionSubmitter(DummySender()).submit_secret_input(CONTRACT, b"", b"\x40", 1)
