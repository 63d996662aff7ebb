"""Example: approve the campaign and contribute a confidential amount.

Secret inputs are shared with the computation nodes by a ``ZkInputBuilder``
supplied by the application. Point ``ZK_INPUT_BUILDER`` at a
``module:attribute`` that returns one.
"""

from __future__ import annotations

import importlib
import logging
import os

from dotenv import load_dotenv

from zk_crowdfund import ApprovalThenContribute, ContributionResult, CrowdfundingClient

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOGLEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger("contribute")


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise ValueError(f"{name} not found in environment variables")
    return value


def _load_builder(path: str):
    module_name, _, attribute = path.partition(":")
    factory = getattr(importlib.import_module(module_name), attribute)
    return factory()


def _log_result(result: ContributionResult) -> None:
    if result.success:
        logger.info("Contributed %s", result.amount.display_amount)
    else:
        logger.error("Contribution failed at %s leg: %s", result.failed_leg, result.failure_reason)

    for leg in (result.approval_transaction, result.zk_transaction, result.token_transaction):
        if leg is None:
            continue
        logger.info("  %s: tx=%s confirmed=%s", leg.name, leg.tx_id, leg.confirmed)
        if leg.error:
            logger.info("    reason: %s", leg.error)


def main() -> None:
    client = CrowdfundingClient(
        private_key=_require_env("PRIVATE_KEY"),
        node_url=os.getenv("PARTISIA_NODE_URL"),
        zk_builder=_load_builder(_require_env("ZK_INPUT_BUILDER")),
    )
    campaign = _require_env("CAMPAIGN_ADDRESS")
    flow = ApprovalThenContribute(_require_env("TOKEN_ADDRESS"))
    amount = os.getenv("CONTRIBUTION_AMOUNT", "1")

    client.connect()
    try:
        result = client.contribute(campaign, amount, flow=flow)
        _log_result(result)
    finally:
        client.disconnect()


if __name__ == "__main__":
    main()
