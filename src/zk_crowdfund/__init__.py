"""ZK Crowdfund client - contribute to confidential crowdfunding campaigns.

This library submits contributions, campaign lifecycle actions and token
approvals to a ZK crowdfunding contract on a sharded ledger, and reports
classified outcomes for every transaction it sends.
"""

from .base import CrowdfundingProtocolBase
from .chain import (
    ApprovalThenContribute,
    ChainClientConfig,
    ChainSession,
    ConfirmationPolicy,
    ContributionOrchestrator,
    CrowdfundingClient,
    GasBudget,
    SecretContribution,
)
from .exceptions import (
    AmountTooLarge,
    AmountTooSmall,
    BlockchainExecutionFailure,
    ContractAssertionFailure,
    CrowdfundError,
    InvalidAmount,
    NetworkError,
    PartialFailure,
    SerializationError,
    TransactionFailure,
    TransactionTimeout,
    ValidationError,
    WalletNotConnected,
)
from .types import (
    Amount,
    CampaignSnapshot,
    CampaignStatus,
    ContributionResult,
    LegResult,
    PendingTransaction,
    TransactionOutcome,
    TransactionStatus,
)
from .units import to_display, to_token_units, to_transfer_amount, validate_amount

__version__ = "0.1.0"

__all__ = [
    # Clients and flows
    "CrowdfundingProtocolBase",
    "CrowdfundingClient",
    "ChainSession",
    "ContributionOrchestrator",
    "SecretContribution",
    "ApprovalThenContribute",
    # Configuration
    "ChainClientConfig",
    "ConfirmationPolicy",
    "GasBudget",
    # Types
    "Amount",
    "CampaignSnapshot",
    "CampaignStatus",
    "ContributionResult",
    "LegResult",
    "PendingTransaction",
    "TransactionOutcome",
    "TransactionStatus",
    # Exceptions
    "CrowdfundError",
    "ValidationError",
    "InvalidAmount",
    "AmountTooSmall",
    "AmountTooLarge",
    "SerializationError",
    "WalletNotConnected",
    "NetworkError",
    "TransactionFailure",
    "BlockchainExecutionFailure",
    "ContractAssertionFailure",
    "TransactionTimeout",
    "PartialFailure",
    # Amount helpers
    "to_token_units",
    "to_display",
    "to_transfer_amount",
    "validate_amount",
]
