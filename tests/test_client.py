from __future__ import annotations

import base64
import json
from collections.abc import Mapping
from typing import Any

import pytest
import requests
from requests import Session

from zk_crowdfund import CrowdfundingClient
from zk_crowdfund.chain.config import ConfirmationPolicy
from zk_crowdfund.exceptions import (
    ContractAssertionFailure,
    NetworkError,
    SerializationError,
    ValidationError,
    WalletNotConnected,
)
from zk_crowdfund.types import CampaignStatus, SentTransaction, TransactionStatus

BASE_URL = "https://node.test"
CAMPAIGN = "02" + "88" * 20
TOKEN = "01" + "99" * 20


class DummyResponse:
    def __init__(self, payload: Any, *, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if not (200 <= self.status_code < 300):
            raise requests.HTTPError(f"status={self.status_code}")

    def json(self) -> Any:
        return self._payload


class RoutingSession(Session):
    def __init__(self, routes: dict[str, Any] | None = None) -> None:
        super().__init__()
        self.routes: dict[str, Any] = {f"{BASE_URL}/chain": {"chainId": "Testnet"}}
        self.routes.update(routes or {})
        self.calls: list[str] = []

    def get(self, url: str, timeout: float) -> DummyResponse:  # type: ignore[override]
        self.calls.append(url)
        if url not in self.routes:
            return DummyResponse({}, status_code=404)
        return DummyResponse(self.routes[url])


class RecordingSender:
    address = "00" + "aa" * 20

    def __init__(self, *, error: Exception | None = None) -> None:
        self.calls: list[tuple[str, bytes, int]] = []
        self._error = error

    def sign_and_send(self, address: str, rpc: bytes, gas_cost: int) -> SentTransaction:
        self.calls.append((address, rpc, gas_cost))
        if self._error is not None:
            raise self._error
        return SentTransaction(identifier=f"tx{len(self.calls)}", destination_shard="Shard0")


def _tx_url(shard: str, tx_id: str) -> str:
    return f"{BASE_URL}/chain/shards/{shard}/transactions/{tx_id}"


def _finalized(tx_id: str, *, events: list[Any] | None = None) -> Mapping[str, Any]:
    return {
        "identifier": tx_id,
        "executionStatus": {
            "finalized": True,
            "success": True,
            "blockId": "blk",
            "events": events or [],
        },
    }


def _client(
    http: RoutingSession,
    sender: Any = None,
    **kwargs: Any,
) -> tuple[CrowdfundingClient, list[float]]:
    sleeps: list[float] = []
    client = CrowdfundingClient(
        node_url=BASE_URL,
        sender=sender,
        http=http,
        sleep=sleeps.append,
        confirmation=ConfirmationPolicy(end_campaign_timeout=12.0, verify_timeout=4.0),
        **kwargs,
    )
    client.connect()
    return client, sleeps


def test_end_campaign_submits_and_confirms() -> None:
    http = RoutingSession({_tx_url("Shard0", "tx1"): _finalized("tx1")})
    sender = RecordingSender()
    client, sleeps = _client(http, sender)

    outcome = client.end_campaign(CAMPAIGN)

    assert outcome.status is TransactionStatus.SUCCESS
    assert outcome.tx_id == "tx1"
    assert sender.calls == [(CAMPAIGN, b"\x09\x01", 150_000)]
    assert sleeps == []


def test_end_campaign_reports_contract_assertion() -> None:
    trap = "assertion left == right failed: Campaign can only be ended from Active state"
    http = RoutingSession(
        {
            _tx_url("Shard0", "tx1"): _finalized("tx1", events=[{"identifier": "ev1"}]),
            _tx_url("Shard2", "ev1"): {
                "identifier": "ev1",
                "executionStatus": {"finalized": True, "success": True},
                "content": base64.b64encode(trap.encode()).decode(),
            },
        }
    )
    client, _ = _client(http, RecordingSender())

    outcome = client.end_campaign(CAMPAIGN)

    assert outcome.status is TransactionStatus.FAILED
    assert outcome.contract_error == "Campaign can only be ended from Active state"
    with pytest.raises(ContractAssertionFailure):
        outcome.raise_for_status()


def test_withdraw_and_verify_payloads() -> None:
    http = RoutingSession(
        {
            _tx_url("Shard0", "tx1"): _finalized("tx1"),
            _tx_url("Shard0", "tx2"): _finalized("tx2"),
        }
    )
    sender = RecordingSender()
    client, _ = _client(http, sender)

    assert client.withdraw_funds(CAMPAIGN).success
    assert client.verify_contribution(CAMPAIGN).success
    assert sender.calls == [
        (CAMPAIGN, b"\x09\x04", 100_000),
        (CAMPAIGN, b"\x09\x06", 10_000),
    ]


def test_unconfirmed_transaction_times_out() -> None:
    http = RoutingSession()
    client, sleeps = _client(http, RecordingSender())

    outcome = client.verify_contribution(CAMPAIGN)

    assert outcome.timed_out
    assert outcome.blockchain_error == "Transaction timeout"
    assert outcome.attempts == 1
    assert sleeps == []


def test_approve_tokens_targets_token_contract() -> None:
    http = RoutingSession({_tx_url("Shard0", "tx1"): _finalized("tx1")})
    sender = RecordingSender()
    client, _ = _client(http, sender)

    outcome = client.approve_tokens(TOKEN, CAMPAIGN, 10)

    assert outcome.success
    address, rpc, gas = sender.calls[0]
    assert address == TOKEN
    assert gas == 15_000
    assert rpc == b"\x05" + bytes.fromhex(CAMPAIGN) + (10).to_bytes(16, "little")


def test_submission_failure_is_returned_as_failed_outcome() -> None:
    sender = RecordingSender(error=NetworkError("Node rejected transaction"))
    client, _ = _client(RoutingSession(), sender)

    outcome = client.end_campaign(CAMPAIGN)

    assert outcome.status is TransactionStatus.FAILED
    assert outcome.blockchain_error == "Node rejected transaction"
    assert outcome.tx_id is None


def test_actions_require_wallet() -> None:
    client, _ = _client(RoutingSession())

    with pytest.raises(WalletNotConnected):
        client.end_campaign(CAMPAIGN)


def test_actions_require_connection() -> None:
    client = CrowdfundingClient(node_url=BASE_URL, sender=RecordingSender())

    assert not client.is_connected()
    with pytest.raises(NetworkError):
        client.withdraw_funds(CAMPAIGN)


def test_malformed_address_is_rejected_before_sending() -> None:
    sender = RecordingSender()
    client, _ = _client(RoutingSession(), sender)

    with pytest.raises(SerializationError):
        client.end_campaign("not-an-address")

    assert sender.calls == []


def test_transaction_status_is_single_lookup() -> None:
    http = RoutingSession({_tx_url("Shard1", "abc"): _finalized("abc")})
    client, sleeps = _client(http)

    outcome = client.transaction_status("abc")

    assert outcome.success
    assert sleeps == []
    assert http.calls[-2:] == [_tx_url("Shard0", "abc"), _tx_url("Shard1", "abc")]


def test_contribute_runs_both_legs_through_client() -> None:
    class SecretBuilder:
        def build_on_chain_input(
            self, sender: str, secret_input: bytes, public_rpc: bytes
        ) -> tuple[str, bytes]:
            return CAMPAIGN, public_rpc + secret_input

    http = RoutingSession(
        {
            _tx_url("Shard0", "tx1"): _finalized("tx1"),
            _tx_url("Shard0", "tx2"): _finalized("tx2"),
        }
    )
    sender = RecordingSender()
    client, sleeps = _client(http, sender, zk_builder=SecretBuilder())

    result = client.contribute(CAMPAIGN, "0.0005")

    assert result.success
    assert sender.calls == [
        (CAMPAIGN, b"\x40" + bytes([0xF4, 0x01, 0, 0]), 200_000),
        (CAMPAIGN, bytes.fromhex("0907000001f4"), 200_000),
    ]
    assert sleeps == [30.0]


def test_get_campaign_decodes_state() -> None:
    state = {"status": 0, "title": "Library", "fundingTarget": 5}
    data = base64.b64encode(json.dumps(state).encode()).decode()
    http = RoutingSession(
        {
            f"{BASE_URL}/shards/Shard0/blockchain/contracts/{CAMPAIGN}": {
                "serializedContract": {"openState": {"openState": {"data": data}}}
            }
        }
    )
    client, _ = _client(http, decode_state=lambda raw: json.loads(raw))

    snapshot = client.get_campaign(CAMPAIGN)

    assert snapshot.status is CampaignStatus.ACTIVE
    assert snapshot.title == "Library"


def test_get_campaign_requires_decoder() -> None:
    client, _ = _client(RoutingSession())

    with pytest.raises(ValidationError):
        client.get_campaign(CAMPAIGN)


def test_disconnect_drops_session() -> None:
    client, _ = _client(RoutingSession(), RecordingSender())

    client.disconnect()

    assert not client.is_connected()
    assert client.wallet_address is None
