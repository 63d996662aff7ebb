"""Two-leg contribution workflow: confidential input, then token transfer."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Union

from ..constants import TOKEN_LEG_FAILED
from ..encoding import (
    ADD_CONTRIBUTION_MARKER,
    encode_approve,
    encode_contribute_tokens,
    encode_secret_contribution,
    parse_address,
)
from ..exceptions import NetworkError
from ..types import Amount, ContributionResult, LegResult, PendingTransaction, TransactionStatus
from ..units import validate_amount
from .config import ConfirmationPolicy, GasBudget
from .connections import ChainSession

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Contribution cancelled"


class ContributionState(str, Enum):
    START = "start"
    SUBMIT_APPROVAL = "submit_approval"
    AWAIT_APPROVAL = "await_approval"
    SUBMIT_ZK = "submit_zk"
    AWAIT_ZK = "await_zk"
    PROPAGATION_DELAY = "propagation_delay"
    SUBMIT_TOKEN = "submit_token"
    AWAIT_TOKEN = "await_token"
    RECONCILE = "reconcile"
    DONE = "done"


@dataclass
class ContributionAttempt:
    """Mutable record owned by a single ``contribute`` call."""

    contract: str
    amount: Amount
    state: ContributionState = ContributionState.START
    history: list[ContributionState] = field(default_factory=lambda: [ContributionState.START])
    approval: LegResult | None = None
    zk: LegResult = field(default_factory=lambda: LegResult(name="zk"))
    token: LegResult | None = None

    def advance(self, state: ContributionState) -> None:
        logger.debug(
            "Stage contribution [%s]: %s -> %s", self.contract, self.state.value, state.value
        )
        self.state = state
        self.history.append(state)


@dataclass(frozen=True)
class SecretContribution:
    """Confidential amount input followed by the public token transfer."""

    signed: bool = False

    def approval_request(self, contract: str, amount: Amount) -> tuple[str, bytes] | None:
        return None


@dataclass(frozen=True)
class ApprovalThenContribute:
    """Approve the campaign as spender on the token contract before contributing."""

    token_address: str
    signed: bool = False

    def approval_request(self, contract: str, amount: Amount) -> tuple[str, bytes] | None:
        parse_address(self.token_address)
        return self.token_address, encode_approve(contract, amount.transfer_amount)


ContributionFlow = Union[SecretContribution, ApprovalThenContribute]


class ContributionOrchestrator:
    """Drive one contribution through approval, ZK input and token transfer.

    The token transfer is only submitted once the ZK input has confirmed, and
    nothing is ever rolled back: a failed token leg after a confirmed ZK input
    is reported with both transaction ids for the caller to act on.
    """

    def __init__(
        self,
        policy: ConfirmationPolicy | None = None,
        gas: GasBudget | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._policy = policy or ConfirmationPolicy()
        self._gas = gas or GasBudget()
        self._sleep = sleep

    def contribute(
        self,
        session: ChainSession,
        contract: str,
        amount: float | int | str | Decimal,
        *,
        flow: ContributionFlow | None = None,
        cancel: threading.Event | None = None,
    ) -> ContributionResult:
        flow = flow or SecretContribution()

        validated = validate_amount(amount)
        parse_address(contract)
        approval_request = flow.approval_request(contract, validated)
        secret_input = encode_secret_contribution(validated.token_units, signed=flow.signed)
        token_payload = encode_contribute_tokens(validated.token_units)
        session.ensure_wallet()

        attempt = ContributionAttempt(contract=contract, amount=validated)
        logger.info(
            "Stage contribution [%s]: start (amount=%s, units=%s, flow=%s)",
            contract,
            validated.display_amount,
            validated.token_units,
            type(flow).__name__,
        )

        if approval_request is not None:
            token_address, approve_payload = approval_request
            attempt.approval = LegResult(name="approval")
            attempt.advance(ContributionState.SUBMIT_APPROVAL)
            self._run_leg(
                session,
                attempt,
                attempt.approval,
                lambda: session.submitter.submit(
                    token_address, approve_payload, self._gas.approve, action="approve"
                ),
                ContributionState.AWAIT_APPROVAL,
                self._policy.approval_timeout,
                cancel,
            )
            if not attempt.approval.confirmed:
                return self._reconcile(attempt)

        attempt.advance(ContributionState.SUBMIT_ZK)
        self._run_leg(
            session,
            attempt,
            attempt.zk,
            lambda: session.submitter.submit_secret_input(
                contract,
                secret_input,
                ADD_CONTRIBUTION_MARKER,
                self._gas.zk_input,
                action="add_contribution",
            ),
            ContributionState.AWAIT_ZK,
            self._policy.zk_timeout,
            cancel,
        )
        if not attempt.zk.confirmed:
            return self._reconcile(attempt)

        attempt.token = LegResult(name="token")
        attempt.advance(ContributionState.PROPAGATION_DELAY)
        logger.debug(
            "Stage contribution [%s]: wait %ss for ZK state to propagate",
            contract,
            self._policy.propagation_delay,
        )
        self._wait(self._policy.propagation_delay, cancel)

        attempt.advance(ContributionState.SUBMIT_TOKEN)
        self._run_leg(
            session,
            attempt,
            attempt.token,
            lambda: session.submitter.submit(
                contract, token_payload, self._gas.contribute_tokens, action="contribute_tokens"
            ),
            ContributionState.AWAIT_TOKEN,
            self._policy.token_timeout,
            cancel,
        )
        return self._reconcile(attempt)

    # ------------------------------------------------------------------
    # Internal workflow
    # ------------------------------------------------------------------
    def _run_leg(
        self,
        session: ChainSession,
        attempt: ContributionAttempt,
        leg: LegResult,
        submit: Callable[[], PendingTransaction],
        await_state: ContributionState,
        timeout: float,
        cancel: threading.Event | None,
    ) -> None:
        if cancel is not None and cancel.is_set():
            leg.submit_error = CANCELLED_MESSAGE
            logger.info(
                "Stage contribution [%s]: %s leg skipped (cancelled)", attempt.contract, leg.name
            )
            return

        try:
            leg.transaction = submit()
        except NetworkError as exc:
            leg.submit_error = str(exc)
            logger.error("Failed to submit %s leg for %s: %s", leg.name, attempt.contract, exc)
            return

        logger.debug(
            "Stage contribution [%s]: %s submitted (tx=%s)", attempt.contract, leg.name, leg.tx_id
        )
        attempt.advance(await_state)
        leg.outcome = session.confirmations.await_terminal(
            leg.transaction.id,
            leg.transaction.shard,
            self._policy.poll_interval,
            timeout,
            cancel=cancel,
        )

    def _wait(self, seconds: float, cancel: threading.Event | None) -> None:
        if seconds <= 0:
            return
        if cancel is None:
            self._sleep(seconds)
        else:
            cancel.wait(seconds)

    def _reconcile(self, attempt: ContributionAttempt) -> ContributionResult:
        attempt.advance(ContributionState.RECONCILE)

        status = TransactionStatus.FAILED
        failure_reason: str | None = None
        failed_leg: str | None = None

        if attempt.approval is not None and not attempt.approval.confirmed:
            failed_leg = "approval"
            failure_reason = attempt.approval.error or "Token approval failed"
        elif not attempt.zk.confirmed:
            failed_leg = "zk"
            failure_reason = attempt.zk.error or "ZK input failed"
        elif attempt.token is not None and attempt.token.confirmed:
            status = TransactionStatus.SUCCESS
        else:
            failed_leg = "token"
            failure_reason = TOKEN_LEG_FAILED

        result = ContributionResult(
            status=status,
            amount=attempt.amount,
            zk_transaction=attempt.zk,
            token_transaction=attempt.token,
            approval_transaction=attempt.approval,
            failure_reason=failure_reason,
            failed_leg=failed_leg,
        )

        if result.success:
            logger.info(
                "Stage contribution [%s]: complete (zk_tx=%s, token_tx=%s)",
                attempt.contract,
                attempt.zk.tx_id,
                attempt.token.tx_id if attempt.token else None,
            )
        elif failed_leg == "token":
            logger.warning(
                "Stage contribution [%s]: %s (zk_tx=%s, token_tx=%s, reason=%s)",
                attempt.contract,
                TOKEN_LEG_FAILED,
                attempt.zk.tx_id,
                attempt.token.tx_id if attempt.token else None,
                attempt.token.error if attempt.token else None,
            )
        else:
            logger.error(
                "Stage contribution [%s]: %s leg failed (reason=%s)",
                attempt.contract,
                failed_leg,
                failure_reason,
            )

        attempt.advance(ContributionState.DONE)
        return result
