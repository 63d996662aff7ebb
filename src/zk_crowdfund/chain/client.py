"""Crowdfunding client that signs, submits and confirms campaign actions."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from decimal import Decimal

import requests

from ..base import CrowdfundingProtocolBase
from ..constants import DEFAULT_SHARDS
from ..encoding import (
    encode_approve,
    encode_end_campaign,
    encode_verify_contribution,
    encode_withdraw_funds,
    parse_address,
)
from ..exceptions import NetworkError, ValidationError
from ..types import CampaignSnapshot, ContributionResult, TransactionOutcome, TransactionStatus
from .config import (
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_TRANSACTION_VALIDITY,
    ChainClientConfig,
    ConfirmationPolicy,
    GasBudget,
)
from .connections import ChainSession
from .orchestrator import ContributionFlow, ContributionOrchestrator
from .state import CampaignStateReader, StateDecoder
from .transactions import TransactionSender, ZkInputBuilder

logger = logging.getLogger(__name__)


@dataclass
class TxRequest:
    """A single public action and how long to wait for it."""

    address: str
    payload: bytes
    gas_limit: int
    timeout: float
    action: str


class CrowdfundingClient(CrowdfundingProtocolBase):
    """Interact with ZK crowdfunding campaigns through a node's REST API."""

    def __init__(
        self,
        private_key: str | None = None,
        node_url: str | None = None,
        *,
        shards: Sequence[str] = DEFAULT_SHARDS,
        account_address: str | None = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        transaction_validity: float = DEFAULT_TRANSACTION_VALIDITY,
        testnet: bool = True,
        confirmation: ConfirmationPolicy | None = None,
        gas: GasBudget | None = None,
        sender: TransactionSender | None = None,
        zk_builder: ZkInputBuilder | None = None,
        decode_state: StateDecoder | None = None,
        http: requests.Session | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        config = ChainClientConfig(
            node_url=node_url,
            shards=tuple(shards),
            private_key=private_key,
            account_address=account_address,
            request_timeout=request_timeout,
            transaction_validity=transaction_validity,
            testnet=testnet,
            confirmation=confirmation or ConfirmationPolicy(),
            gas=gas or GasBudget(),
        )

        self._config = config.with_defaulted_urls()
        self._sender = sender
        self._zk_builder = zk_builder
        self._decode_state = decode_state
        self._http = http
        self._sleep = sleep
        self._orchestrator = ContributionOrchestrator(
            config.confirmation, config.gas, sleep=sleep or time.sleep
        )
        self._session: ChainSession | None = None
        self._state_reader: CampaignStateReader | None = None

    # ------------------------------------------------------------------
    # Connection management
    # ------------------------------------------------------------------
    def connect(self) -> None:
        session = ChainSession(
            self._config,
            sender=self._sender,
            zk_builder=self._zk_builder,
            http=self._http,
            sleep=self._sleep,
        )
        try:
            session.open()
        except (ValidationError, NetworkError):
            session.close()
            raise

        self._session = session
        if self._decode_state is not None:
            self._state_reader = CampaignStateReader(
                session.http,
                session.base_url,
                session.shards,
                self._decode_state,
                request_timeout=self._config.request_timeout,
            )

    def disconnect(self) -> None:
        if self._session is not None:
            self._session.close()
        self._session = None
        self._state_reader = None

    def is_connected(self) -> bool:
        return self._session is not None and self._session.is_connected()

    def _ensure_session(self) -> ChainSession:
        if self._session is None:
            raise NetworkError("Client is not connected", endpoint=self._config.node_url)
        return self._session

    # ------------------------------------------------------------------
    # Campaign actions
    # ------------------------------------------------------------------
    def contribute(
        self,
        contract: str,
        amount: float | int | str | Decimal,
        *,
        flow: ContributionFlow | None = None,
        cancel: threading.Event | None = None,
    ) -> ContributionResult:
        return self._orchestrator.contribute(
            self._ensure_session(), contract, amount, flow=flow, cancel=cancel
        )

    def end_campaign(
        self, contract: str, *, cancel: threading.Event | None = None
    ) -> TransactionOutcome:
        tx_request = TxRequest(
            address=contract,
            payload=encode_end_campaign(),
            gas_limit=self._config.gas.end_campaign,
            timeout=self._config.confirmation.end_campaign_timeout,
            action="end_campaign",
        )
        return self._execute_transaction(tx_request, cancel)

    def withdraw_funds(
        self, contract: str, *, cancel: threading.Event | None = None
    ) -> TransactionOutcome:
        tx_request = TxRequest(
            address=contract,
            payload=encode_withdraw_funds(),
            gas_limit=self._config.gas.withdraw_funds,
            timeout=self._config.confirmation.withdraw_timeout,
            action="withdraw_funds",
        )
        return self._execute_transaction(tx_request, cancel)

    def verify_contribution(
        self, contract: str, *, cancel: threading.Event | None = None
    ) -> TransactionOutcome:
        tx_request = TxRequest(
            address=contract,
            payload=encode_verify_contribution(),
            gas_limit=self._config.gas.verify_contribution,
            timeout=self._config.confirmation.verify_timeout,
            action="verify_contribution",
        )
        return self._execute_transaction(tx_request, cancel)

    def approve_tokens(
        self,
        token: str,
        spender: str,
        transfer_amount: int,
        *,
        cancel: threading.Event | None = None,
    ) -> TransactionOutcome:
        tx_request = TxRequest(
            address=token,
            payload=encode_approve(spender, transfer_amount),
            gas_limit=self._config.gas.approve,
            timeout=self._config.confirmation.approval_timeout,
            action="approve",
        )
        return self._execute_transaction(tx_request, cancel)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def transaction_status(self, tx_id: str, shard: str | None = None) -> TransactionOutcome:
        return self._ensure_session().confirmations.check_once(tx_id, shard)

    def get_campaign(self, contract: str) -> CampaignSnapshot:
        parse_address(contract)
        self._ensure_session()
        if self._state_reader is None:
            raise ValidationError(
                "No contract state decoder configured", field="decode_state", value=None
            )
        return self._state_reader.fetch(contract)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _execute_transaction(
        self, tx_request: TxRequest, cancel: threading.Event | None
    ) -> TransactionOutcome:
        """Submit one action and wait for its terminal outcome."""
        parse_address(tx_request.address)
        session = self._ensure_session()
        session.ensure_wallet()

        try:
            pending = session.submitter.submit(
                tx_request.address,
                tx_request.payload,
                tx_request.gas_limit,
                action=tx_request.action,
            )
        except NetworkError as exc:
            logger.error("Failed to submit %s: %s", tx_request.action, exc)
            return TransactionOutcome(status=TransactionStatus.FAILED, blockchain_error=str(exc))

        outcome = session.confirmations.await_terminal(
            pending.id,
            pending.shard,
            self._config.confirmation.user_poll_interval,
            tx_request.timeout,
            cancel=cancel,
        )
        if outcome.status is TransactionStatus.FAILED:
            logger.error("%s failed (tx=%s): %s", tx_request.action, pending.id, outcome.error)
        return outcome

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def config(self) -> ChainClientConfig:
        return self._config

    @property
    def session(self) -> ChainSession:
        return self._ensure_session()

    @property
    def wallet_address(self) -> str | None:
        return self._session.wallet_address if self._session is not None else None
