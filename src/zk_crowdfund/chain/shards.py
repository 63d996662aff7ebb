"""Shard lookups for transaction execution records."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import requests

from ..constants import TRANSACTION_PATH

logger = logging.getLogger(__name__)


class ShardStatusPoller:
    """Find a transaction's execution record on one shard or across all of them.

    A transaction lands on exactly one shard and there is no global index,
    so an unknown shard means asking each one in turn. A miss on every shard
    only means the record is not visible yet.
    """

    def __init__(
        self,
        session: requests.Session,
        base_url: str,
        shards: Sequence[str],
        *,
        request_timeout: float,
    ) -> None:
        self._session = session
        self._base_url = base_url.rstrip("/")
        self._shards = tuple(shards)
        self._request_timeout = request_timeout

    @property
    def shards(self) -> tuple[str, ...]:
        return self._shards

    def fetch(self, tx_id: str, shard_hint: str | None = None) -> Mapping[str, Any] | None:
        """Return the raw execution record for ``tx_id`` or ``None`` if no shard has it."""

        shards = (shard_hint,) if shard_hint else self._shards
        for shard in shards:
            record = self._fetch_from_shard(tx_id, shard)
            if record is not None:
                logger.debug("Found transaction %s on %s", tx_id, shard)
                return record

        logger.debug("Transaction %s not visible on %s", tx_id, ", ".join(shards))
        return None

    def transaction_url(self, tx_id: str, shard: str) -> str:
        return self._base_url + TRANSACTION_PATH.format(shard=shard, identifier=tx_id)

    def _fetch_from_shard(self, tx_id: str, shard: str) -> Mapping[str, Any] | None:
        url = self.transaction_url(tx_id, shard)
        try:
            response = self._session.get(url, timeout=self._request_timeout)
        except requests.RequestException as exc:
            logger.debug("Shard %s lookup failed for %s: %s", shard, tx_id, exc)
            return None

        if not 200 <= response.status_code < 300:
            logger.debug("Shard %s returned %s for %s", shard, response.status_code, tx_id)
            return None

        try:
            data = response.json()
        except ValueError as exc:
            logger.debug("Shard %s returned undecodable body for %s: %s", shard, tx_id, exc)
            return None

        if not isinstance(data, Mapping):
            return None

        identifier = data.get("identifier")
        if identifier is not None and str(identifier).lower() != tx_id.lower():
            logger.debug(
                "Shard %s returned record %s while looking for %s", shard, identifier, tx_id
            )
            return None

        return data
