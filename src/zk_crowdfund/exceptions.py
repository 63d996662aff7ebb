"""Exception hierarchy for the ZK crowdfunding client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .types import LegResult, TransactionOutcome


class CrowdfundError(Exception):
    """Base exception for all crowdfunding client errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(CrowdfundError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.field = field
        self.value = value


class InvalidAmount(ValidationError):
    """Raised for NaN, infinite, zero or negative amounts."""

    pass


class AmountTooSmall(ValidationError):
    """Raised when an amount rounds to less than one token unit."""

    pass


class AmountTooLarge(ValidationError):
    """Raised when an amount does not fit the on-chain u32 field."""

    pass


class SerializationError(ValidationError):
    """Raised when an address or integer cannot be encoded into a payload."""

    pass


class WalletNotConnected(CrowdfundError):
    """Raised when an action needs a signer and none is connected."""

    def __init__(self, message: str = "Wallet not connected", details: dict | None = None):
        super().__init__(message, details)


class NetworkError(CrowdfundError):
    """Raised when network/connection issues occur."""

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        status_code: int | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.endpoint = endpoint
        self.status_code = status_code


class TransactionFailure(CrowdfundError):
    """A transaction reached a terminal, unsuccessful outcome."""

    def __init__(
        self,
        message: str,
        tx_id: str | None = None,
        outcome: TransactionOutcome | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.tx_id = tx_id
        self.outcome = outcome


class BlockchainExecutionFailure(TransactionFailure):
    """The chain itself rejected or reverted the transaction."""

    pass


class ContractAssertionFailure(TransactionFailure):
    """The chain accepted the transaction but a contract assertion rejected it."""

    pass


class TransactionTimeout(TransactionFailure):
    """No terminal state was observed before the confirmation budget ran out."""

    pass


class PartialFailure(CrowdfundError):
    """The ZK input was confirmed but the token transfer failed."""

    def __init__(
        self,
        message: str,
        zk_transaction: LegResult | None = None,
        token_transaction: LegResult | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.zk_transaction = zk_transaction
        self.token_transaction = token_transaction
