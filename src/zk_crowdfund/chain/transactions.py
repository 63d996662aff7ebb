"""Transaction submission helpers for the crowdfunding client."""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from ..exceptions import CrowdfundError, NetworkError, WalletNotConnected
from ..types import PendingTransaction, SentTransaction

logger = logging.getLogger(__name__)


@runtime_checkable
class TransactionSender(Protocol):
    """Signs and broadcasts one transaction; does not wait for inclusion."""

    @property
    def address(self) -> str: ...

    def sign_and_send(self, address: str, rpc: bytes, gas_cost: int) -> SentTransaction: ...


@runtime_checkable
class ZkInputBuilder(Protocol):
    """Builds the on-chain transaction carrying a confidential input.

    Returns the ``(address, rpc)`` pair to broadcast. How the secret is
    shared with the computation nodes is up to the implementation.
    """

    def build_on_chain_input(
        self, sender: str, secret_input: bytes, public_rpc: bytes
    ) -> tuple[str, bytes]: ...


class TransactionSubmitter:
    """Turn encoded payloads into pending transaction handles."""

    def __init__(
        self,
        sender: TransactionSender | None,
        *,
        zk_builder: ZkInputBuilder | None = None,
    ) -> None:
        self._sender = sender
        self._zk_builder = zk_builder

    def ensure_ready(self) -> TransactionSender:
        if self._sender is None:
            raise WalletNotConnected()
        return self._sender

    def submit(
        self, address: str, payload: bytes, gas_limit: int, *, action: str = "transaction"
    ) -> PendingTransaction:
        sender = self.ensure_ready()
        logger.info("Dispatching %s to %s (gas=%s)", action, address, gas_limit)

        try:
            sent = sender.sign_and_send(address, payload, gas_limit)
        except NetworkError:
            raise
        except (CrowdfundError, OSError, ValueError) as exc:
            raise NetworkError(
                f"Failed to submit transaction for {action}",
                endpoint=address,
                details={"action": action, "payload": payload.hex(), "error": str(exc)},
            ) from exc

        pending = PendingTransaction(id=sent.identifier, shard=sent.destination_shard)
        logger.info(
            "Transaction sent for action=%s id=%s shard=%s", action, pending.id, pending.shard
        )
        return pending

    def submit_secret_input(
        self,
        contract: str,
        secret_input: bytes,
        public_rpc: bytes,
        gas_limit: int,
        *,
        action: str = "secret_input",
    ) -> PendingTransaction:
        sender = self.ensure_ready()
        if self._zk_builder is None:
            raise WalletNotConnected("No ZK input builder configured for secret inputs")

        try:
            address, rpc = self._zk_builder.build_on_chain_input(
                sender.address, secret_input, public_rpc
            )
        except (CrowdfundError, OSError, ValueError) as exc:
            raise NetworkError(
                f"Failed to build secret input for {action}",
                endpoint=contract,
                details={"action": action, "error": str(exc)},
            ) from exc

        return self.submit(address, rpc, gas_limit, action=action)
