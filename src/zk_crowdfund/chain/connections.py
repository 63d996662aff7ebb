"""Session context for one connected wallet."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

import requests

from ..constants import CHAIN_PATH
from ..exceptions import NetworkError, WalletNotConnected
from .classifier import ContractErrorClassifier
from .config import ChainClientConfig
from .confirmation import ConfirmationLoop
from .shards import ShardStatusPoller
from .signer import PrivateKeySender
from .transactions import TransactionSender, TransactionSubmitter, ZkInputBuilder

logger = logging.getLogger(__name__)


class ChainSession:
    """Everything one connected wallet needs to submit and confirm transactions.

    A session is opened on connect and closed on disconnect, and is passed
    explicitly to whatever needs it. Nothing here is shared between sessions.
    """

    def __init__(
        self,
        config: ChainClientConfig,
        *,
        sender: TransactionSender | None = None,
        zk_builder: ZkInputBuilder | None = None,
        http: requests.Session | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self.config = config.with_defaulted_urls()
        self.http = http or requests.Session()
        self._sender = sender
        self._zk_builder = zk_builder
        self._sleep = sleep
        self._chain_id: str | None = None
        self._shards: tuple[str, ...] = tuple(self.config.shards)
        self._poller: ShardStatusPoller | None = None
        self._classifier: ContractErrorClassifier | None = None
        self._confirmations: ConfirmationLoop | None = None
        self._submitter: TransactionSubmitter | None = None
        self._connected = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def open(self) -> ChainSession:
        """Resolve chain metadata and hydrate the signer."""

        chain = self._fetch_chain_info()
        chain_id = chain.get("chainId")
        if chain_id:
            self._chain_id = str(chain_id)
        shards = chain.get("shards")
        if isinstance(shards, list) and shards:
            self._shards = tuple(str(shard) for shard in shards)

        if self._sender is None and self.config.private_key:
            if self._chain_id is None:
                raise NetworkError(
                    "Node did not report a chain id; cannot sign transactions",
                    endpoint=self.base_url + CHAIN_PATH,
                )
            self._sender = PrivateKeySender(
                self.config.private_key,
                self.http,
                self.base_url,
                self._chain_id,
                request_timeout=self.config.request_timeout,
                transaction_validity=self.config.transaction_validity,
                account_address=self.config.account_address,
            )

        self._build_components()
        self._connected = True
        logger.info(
            "Connected to %s (chain=%s, shards=%s, wallet=%s)",
            self.base_url,
            self._chain_id,
            ",".join(self._shards),
            self.wallet_address or "read-only",
        )
        return self

    def close(self) -> None:
        self._sender = None
        self._poller = None
        self._classifier = None
        self._confirmations = None
        self._submitter = None
        self._connected = False
        self.http.close()

    def is_connected(self) -> bool:
        return self._connected

    def ensure_connected(self) -> None:
        if not self._connected:
            raise NetworkError("Chain session is not connected", endpoint=self.base_url)

    def ensure_wallet(self) -> TransactionSender:
        self.ensure_connected()
        if self._sender is None:
            raise WalletNotConnected()
        return self._sender

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def base_url(self) -> str:
        return (self.config.node_url or "").rstrip("/")

    @property
    def chain_id(self) -> str | None:
        return self._chain_id

    @property
    def shards(self) -> tuple[str, ...]:
        return self._shards

    @property
    def wallet_address(self) -> str | None:
        return self._sender.address if self._sender is not None else None

    @property
    def poller(self) -> ShardStatusPoller:
        self.ensure_connected()
        assert self._poller is not None
        return self._poller

    @property
    def classifier(self) -> ContractErrorClassifier:
        self.ensure_connected()
        assert self._classifier is not None
        return self._classifier

    @property
    def confirmations(self) -> ConfirmationLoop:
        self.ensure_connected()
        assert self._confirmations is not None
        return self._confirmations

    @property
    def submitter(self) -> TransactionSubmitter:
        self.ensure_connected()
        assert self._submitter is not None
        return self._submitter

    # ------------------------------------------------------------------
    # Internal wiring
    # ------------------------------------------------------------------
    def _build_components(self) -> None:
        self._poller = ShardStatusPoller(
            self.http,
            self.base_url,
            self._shards,
            request_timeout=self.config.request_timeout,
        )
        self._classifier = ContractErrorClassifier(self._poller)
        self._confirmations = ConfirmationLoop(
            self._poller, self._classifier, sleep=self._sleep or time.sleep
        )
        self._submitter = TransactionSubmitter(self._sender, zk_builder=self._zk_builder)

    def _fetch_chain_info(self) -> Mapping[str, Any]:
        url = self.base_url + CHAIN_PATH
        try:
            response = self.http.get(url, timeout=self.config.request_timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            if self._sender is None and self.config.private_key:
                raise NetworkError(
                    "Unable to read chain metadata", endpoint=url, details={"error": str(exc)}
                ) from exc
            logger.warning("Chain metadata unavailable at %s; using configured shards", url)
            return {}

        return data if isinstance(data, Mapping) else {}
