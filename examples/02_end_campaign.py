"""Example: end a campaign and withdraw the raised funds."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

from zk_crowdfund import CrowdfundingClient, TransactionOutcome

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOGLEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger("end_campaign")


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise ValueError(f"{name} not found in environment variables")
    return value


def _log_outcome(label: str, outcome: TransactionOutcome) -> None:
    if outcome.success:
        logger.info("%s confirmed (tx=%s, block=%s)", label, outcome.tx_id, outcome.finalized_block)
    else:
        logger.error("%s failed (tx=%s): %s", label, outcome.tx_id, outcome.error)


def main() -> None:
    private_key = _require_env("PRIVATE_KEY")
    campaign = _require_env("CAMPAIGN_ADDRESS")

    client = CrowdfundingClient(
        private_key=private_key,
        node_url=os.getenv("PARTISIA_NODE_URL"),
    )

    client.connect()
    try:
        logger.info("Ending campaign %s as %s", campaign, client.wallet_address)
        ended = client.end_campaign(campaign)
        _log_outcome("End campaign", ended)
        if not ended.success:
            return

        withdrawn = client.withdraw_funds(campaign)
        _log_outcome("Withdraw funds", withdrawn)
    finally:
        client.disconnect()
        logger.info("Disconnected")


if __name__ == "__main__":
    main()
