"""Example: look up the classified status of a transaction."""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv

from zk_crowdfund import CrowdfundingClient

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOGLEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger("transaction_status")


def main() -> None:
    if len(sys.argv) < 2:
        raise SystemExit("usage: 01_transaction_status.py <transaction-id> [shard]")

    tx_id = sys.argv[1]
    shard = sys.argv[2] if len(sys.argv) > 2 else None

    client = CrowdfundingClient(node_url=os.getenv("PARTISIA_NODE_URL"))
    client.connect()
    try:
        outcome = client.transaction_status(tx_id, shard)
        logger.info("Transaction %s: %s", tx_id, outcome.status.value)
        if outcome.error:
            logger.info("  reason: %s", outcome.error)
        for event in outcome.events:
            logger.debug("  event %s (shard=%s)", event.identifier, event.destination_shard)
    finally:
        client.disconnect()


if __name__ == "__main__":
    main()
