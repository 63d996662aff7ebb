"""Crowdfunding client base interface."""

from abc import ABC, abstractmethod
from decimal import Decimal

from .types import CampaignSnapshot, ContributionResult, TransactionOutcome


class CrowdfundingProtocolBase(ABC):
    """Crowdfunding campaign interface."""

    @abstractmethod
    def contribute(self, contract: str, amount: float | int | str | Decimal) -> ContributionResult:
        pass

    @abstractmethod
    def end_campaign(self, contract: str) -> TransactionOutcome:
        pass

    @abstractmethod
    def withdraw_funds(self, contract: str) -> TransactionOutcome:
        pass

    @abstractmethod
    def verify_contribution(self, contract: str) -> TransactionOutcome:
        pass

    @abstractmethod
    def approve_tokens(self, token: str, spender: str, transfer_amount: int) -> TransactionOutcome:
        pass

    @abstractmethod
    def transaction_status(self, tx_id: str, shard: str | None = None) -> TransactionOutcome:
        pass

    @abstractmethod
    def get_campaign(self, contract: str) -> CampaignSnapshot:
        pass

    @abstractmethod
    def connect(self) -> None:
        pass

    @abstractmethod
    def disconnect(self) -> None:
        pass

    @abstractmethod
    def is_connected(self) -> bool:
        pass
