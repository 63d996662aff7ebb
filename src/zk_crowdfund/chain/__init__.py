"""Ledger-facing components: sessions, submission, polling and flows."""

from .client import CrowdfundingClient, TxRequest
from .config import ChainClientConfig, ConfirmationPolicy, GasBudget
from .connections import ChainSession
from .orchestrator import (
    ApprovalThenContribute,
    ContributionAttempt,
    ContributionOrchestrator,
    ContributionState,
    SecretContribution,
)

__all__ = [
    "ApprovalThenContribute",
    "ChainClientConfig",
    "ChainSession",
    "ConfirmationPolicy",
    "ContributionAttempt",
    "ContributionOrchestrator",
    "ContributionState",
    "CrowdfundingClient",
    "GasBudget",
    "SecretContribution",
    "TxRequest",
]
