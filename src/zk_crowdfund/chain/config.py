"""Configuration containers for the crowdfunding chain client."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from ..constants import DEFAULT_SHARDS, MAINNET_NODE_URL, TESTNET_NODE_URL

DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_TRANSACTION_VALIDITY = 180.0

DEFAULT_POLL_INTERVAL = 3.0
DEFAULT_USER_POLL_INTERVAL = 5.0
DEFAULT_ZK_TIMEOUT = 120.0
DEFAULT_TOKEN_TIMEOUT = 60.0
DEFAULT_APPROVAL_TIMEOUT = 60.0
DEFAULT_END_CAMPAIGN_TIMEOUT = 300.0
DEFAULT_WITHDRAW_TIMEOUT = 90.0
DEFAULT_VERIFY_TIMEOUT = 60.0
DEFAULT_PROPAGATION_DELAY = 30.0

APPROVE_GAS = 15_000
ZK_INPUT_GAS = 200_000
CONTRIBUTE_TOKENS_GAS = 200_000
END_CAMPAIGN_GAS = 150_000
WITHDRAW_FUNDS_GAS = 100_000
VERIFY_CONTRIBUTION_GAS = 10_000


@dataclass(frozen=True)
class ConfirmationPolicy:
    """Polling intervals, per-flow confirmation timeouts and the propagation delay."""

    poll_interval: float = DEFAULT_POLL_INTERVAL
    user_poll_interval: float = DEFAULT_USER_POLL_INTERVAL
    zk_timeout: float = DEFAULT_ZK_TIMEOUT
    token_timeout: float = DEFAULT_TOKEN_TIMEOUT
    approval_timeout: float = DEFAULT_APPROVAL_TIMEOUT
    end_campaign_timeout: float = DEFAULT_END_CAMPAIGN_TIMEOUT
    withdraw_timeout: float = DEFAULT_WITHDRAW_TIMEOUT
    verify_timeout: float = DEFAULT_VERIFY_TIMEOUT
    # Unconditional wait between a confirmed ZK input and the token transfer
    propagation_delay: float = DEFAULT_PROPAGATION_DELAY


@dataclass(frozen=True)
class GasBudget:
    """Gas limits per contract action."""

    approve: int = APPROVE_GAS
    zk_input: int = ZK_INPUT_GAS
    contribute_tokens: int = CONTRIBUTE_TOKENS_GAS
    end_campaign: int = END_CAMPAIGN_GAS
    withdraw_funds: int = WITHDRAW_FUNDS_GAS
    verify_contribution: int = VERIFY_CONTRIBUTION_GAS


@dataclass(frozen=True)
class ChainClientConfig:
    """Aggregated configuration used to construct the crowdfunding client."""

    node_url: str | None = None
    shards: tuple[str, ...] = DEFAULT_SHARDS
    private_key: str | None = None
    account_address: str | None = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    transaction_validity: float = DEFAULT_TRANSACTION_VALIDITY
    testnet: bool = True
    confirmation: ConfirmationPolicy = field(default_factory=ConfirmationPolicy)
    gas: GasBudget = field(default_factory=GasBudget)

    def with_defaulted_urls(self) -> ChainClientConfig:
        """Return a copy with the node URL resolved from the network selection."""

        if self.node_url is None:
            node_url = TESTNET_NODE_URL if self.testnet else MAINNET_NODE_URL
        else:
            node_url = self.node_url.rstrip("/")

        return replace(self, node_url=node_url, shards=tuple(self.shards))
