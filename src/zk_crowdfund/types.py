"""Type definitions and data models for the ZK crowdfunding client."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Any

from .constants import TIMEOUT_MESSAGE
from .exceptions import (
    BlockchainExecutionFailure,
    ContractAssertionFailure,
    PartialFailure,
    TransactionFailure,
    TransactionTimeout,
)


class TransactionStatus(str, Enum):
    """Tri-state classification of a transaction."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


class CampaignStatus(IntEnum):
    """Campaign lifecycle as stored by the contract."""

    ACTIVE = 0
    COMPUTING = 1
    COMPLETED = 2

    @classmethod
    def parse(cls, value: Any) -> CampaignStatus:
        """Accept ``0``, ``"Active"`` or an enum-as-map such as ``{"Active": {}}``."""

        if isinstance(value, CampaignStatus):
            return value
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, Mapping) and value:
            value = next(iter(value.keys()))
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                pass
        raise ValueError(f"Unknown campaign status: {value!r}")


@dataclass(frozen=True)
class Amount:
    """One contribution value carried in all three representations."""

    display_amount: Decimal
    token_units: int
    transfer_amount: int


@dataclass(frozen=True)
class PendingTransaction:
    """Handle for a broadcast transaction awaiting a terminal state."""

    id: str
    shard: str | None = None


@dataclass(frozen=True)
class SentTransaction:
    """What a signer/broadcaster reports after sending a transaction."""

    identifier: str
    destination_shard: str | None = None


@dataclass(frozen=True)
class ContractEvent:
    """An event emitted by a transaction, with its fetched record if any."""

    identifier: str
    destination_shard: str | None = None
    record: Mapping[str, Any] | None = None


@dataclass
class TransactionOutcome:
    """Classified result of waiting on one transaction."""

    status: TransactionStatus
    tx_id: str | None = None
    finalized_block: str | None = None
    blockchain_error: str | None = None
    contract_error: str | None = None
    events: list[ContractEvent] = field(default_factory=list)
    attempts: int = 0
    cancelled: bool = False
    raw_response: Mapping[str, Any] | None = None

    @classmethod
    def pending(cls, tx_id: str | None = None, **kwargs: Any) -> TransactionOutcome:
        return cls(status=TransactionStatus.PENDING, tx_id=tx_id, **kwargs)

    @classmethod
    def timeout(cls, tx_id: str | None = None, *, attempts: int = 0) -> TransactionOutcome:
        return cls(
            status=TransactionStatus.FAILED,
            tx_id=tx_id,
            blockchain_error=TIMEOUT_MESSAGE,
            attempts=attempts,
        )

    @property
    def success(self) -> bool:
        return self.status is TransactionStatus.SUCCESS

    @property
    def is_terminal(self) -> bool:
        return self.status is not TransactionStatus.PENDING

    @property
    def timed_out(self) -> bool:
        return self.status is TransactionStatus.FAILED and self.blockchain_error == TIMEOUT_MESSAGE

    @property
    def error(self) -> str | None:
        """The most specific reason available, contract errors first."""

        return self.contract_error or self.blockchain_error

    def raise_for_status(self) -> None:
        """Raise the matching ``TransactionFailure`` if this outcome is not a success."""

        if self.status is TransactionStatus.SUCCESS:
            return
        if self.status is TransactionStatus.PENDING:
            raise TransactionFailure(
                "Transaction has not reached a terminal state", tx_id=self.tx_id, outcome=self
            )
        if self.timed_out:
            raise TransactionTimeout(TIMEOUT_MESSAGE, tx_id=self.tx_id, outcome=self)
        if self.contract_error:
            raise ContractAssertionFailure(self.contract_error, tx_id=self.tx_id, outcome=self)
        raise BlockchainExecutionFailure(
            self.blockchain_error or "Transaction failed", tx_id=self.tx_id, outcome=self
        )


@dataclass
class LegResult:
    """One leg of a multi-transaction flow."""

    name: str
    transaction: PendingTransaction | None = None
    outcome: TransactionOutcome | None = None
    submit_error: str | None = None

    @property
    def tx_id(self) -> str | None:
        return self.transaction.id if self.transaction else None

    @property
    def confirmed(self) -> bool:
        return self.outcome is not None and self.outcome.success

    @property
    def error(self) -> str | None:
        if self.submit_error:
            return self.submit_error
        if self.outcome is None:
            return None
        if self.outcome.status is TransactionStatus.PENDING:
            return "Confirmation cancelled" if self.outcome.cancelled else None
        return self.outcome.error


@dataclass
class ContributionResult:
    """Reconciled result of a contribution flow."""

    status: TransactionStatus
    amount: Amount
    zk_transaction: LegResult
    token_transaction: LegResult | None = None
    approval_transaction: LegResult | None = None
    failure_reason: str | None = None
    failed_leg: str | None = None

    @property
    def success(self) -> bool:
        return self.status is TransactionStatus.SUCCESS

    @property
    def transaction_ids(self) -> list[str]:
        legs = (self.approval_transaction, self.zk_transaction, self.token_transaction)
        return [leg.tx_id for leg in legs if leg is not None and leg.tx_id]

    def raise_for_status(self) -> None:
        if self.success:
            return

        if self.zk_transaction.confirmed and self.token_transaction is not None:
            raise PartialFailure(
                self.failure_reason or "Token transfer failed",
                zk_transaction=self.zk_transaction,
                token_transaction=self.token_transaction,
                details={"transaction_ids": self.transaction_ids},
            )

        for leg in (self.approval_transaction, self.zk_transaction):
            if leg is not None and leg.outcome is not None and not leg.confirmed:
                leg.outcome.raise_for_status()

        raise TransactionFailure(
            self.failure_reason or "Contribution failed",
            tx_id=self.zk_transaction.tx_id,
            details={"transaction_ids": self.transaction_ids},
        )


@dataclass(frozen=True)
class CampaignSnapshot:
    """Decoded public state of a campaign contract."""

    address: str
    status: CampaignStatus
    owner: str | None = None
    title: str | None = None
    description: str | None = None
    token_address: str | None = None
    funding_target: int | None = None
    total_raised: int | None = None
    num_contributors: int | None = None
    is_successful: bool = False
    funds_withdrawn: bool = False
    shard: str | None = None
    raw: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return self.status is CampaignStatus.ACTIVE
