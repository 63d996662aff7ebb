"""Constants and mappings for the ZK crowdfunding client."""

from enum import IntEnum

TESTNET_NODE_URL = "https://node1.testnet.partisiablockchain.com"
MAINNET_NODE_URL = "https://reader.partisiablockchain.com"

# Shards are queried in this order when a transaction's shard is unknown
DEFAULT_SHARDS = ("Shard0", "Shard1", "Shard2")

TRANSACTION_PATH = "/chain/shards/{shard}/transactions/{identifier}"
CONTRACT_STATE_PATH = "/shards/{shard}/blockchain/contracts/{address}"
ACCOUNT_PATH = "/chain/accounts/{address}"
CHAIN_PATH = "/chain"
BROADCAST_PATH = "/chain/transactions"

# Amount scaling
TOKEN_UNIT_SCALE = 1_000_000
TRANSFER_SCALE = 1_000_000_000_000
TRANSFER_DECIMALS = 18
MIN_TOKEN_UNITS = 1
MAX_TOKEN_UNITS = 2_147_483_647

ADDRESS_LENGTH = 21
PUBLIC_ACTION_FORMAT = 0x09


class ActionShortname(IntEnum):
    """Contract action shortnames."""

    END_CAMPAIGN = 0x01
    WITHDRAW_FUNDS = 0x04
    APPROVE = 0x05
    VERIFY_CONTRIBUTION = 0x06
    CONTRIBUTE_TOKENS = 0x07
    ADD_CONTRIBUTION = 0x40


TIMEOUT_MESSAGE = "Transaction timeout"
CONTRACT_EXECUTION_FAILED = "Contract execution failed"
TOKEN_LEG_FAILED = "Token transfer failed after successful ZK input"

# Stack trace fragments mapped to readable chain errors, checked in order
STACK_TRACE_HINTS = (
    ("not allowed to transfer", "Insufficient token allowance for transfer"),
    ("insufficient", "Insufficient token balance for transfer"),
    ("out of gas", "Transaction ran out of gas"),
)

# Assertion messages emitted by the crowdfunding contract
KNOWN_CONTRACT_ERRORS = (
    # contribution
    "Contributions can only be made when campaign is active",
    "Contribution amount must be greater than 0",
    "Must create contribution commitment first",
    "Token transfer failed",
    # end campaign
    "Only owner can end the campaign",
    "Campaign can only be ended from Active state",
    "Computation must start from Waiting state",
    # withdraw
    "Only the owner can withdraw funds",
    "Campaign must be completed",
    "Funds have already been withdrawn",
)
