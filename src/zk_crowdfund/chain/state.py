"""Public campaign state lookups."""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

import requests

from ..constants import CONTRACT_STATE_PATH
from ..exceptions import NetworkError
from ..types import CampaignSnapshot, CampaignStatus

logger = logging.getLogger(__name__)

StateDecoder = Callable[[bytes], Mapping[str, Any]]


def _pick(state: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if name in state:
            return state[name]
    return None


def _optional_int(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, Mapping):
        # Option<T> rendered as {"value": x}
        return _optional_int(value.get("value"))
    return int(value)


def _text(value: Any) -> str | None:
    return None if value is None else str(value)


def snapshot_from_state(
    address: str, state: Mapping[str, Any], *, shard: str | None = None
) -> CampaignSnapshot:
    """Build a ``CampaignSnapshot`` from a decoded state mapping.

    Both camelCase and snake_case field names are accepted.
    """

    return CampaignSnapshot(
        address=address,
        status=CampaignStatus.parse(_pick(state, "status")),
        owner=_text(_pick(state, "owner")),
        title=_text(_pick(state, "title")),
        description=_text(_pick(state, "description")),
        token_address=_text(_pick(state, "tokenAddress", "token_address")),
        funding_target=_optional_int(_pick(state, "fundingTarget", "funding_target")),
        total_raised=_optional_int(_pick(state, "totalRaised", "total_raised")),
        num_contributors=_optional_int(_pick(state, "numContributors", "num_contributors")),
        is_successful=bool(_pick(state, "isSuccessful", "is_successful")),
        funds_withdrawn=bool(_pick(state, "fundsWithdrawn", "funds_withdrawn")),
        shard=shard,
        raw=dict(state),
    )


class CampaignStateReader:
    """Read a campaign contract's open state from whichever shard hosts it."""

    def __init__(
        self,
        session: requests.Session,
        base_url: str,
        shards: Sequence[str],
        decode_state: StateDecoder,
        *,
        request_timeout: float,
    ) -> None:
        self._session = session
        self._base_url = base_url.rstrip("/")
        self._shards = tuple(shards)
        self._decode_state = decode_state
        self._request_timeout = request_timeout

    def fetch(self, address: str) -> CampaignSnapshot:
        last_error: NetworkError | None = None

        for shard in self._shards:
            try:
                state = self._fetch_from_shard(address, shard)
            except NetworkError as exc:
                logger.debug("Campaign %s not readable on %s: %s", address, shard, exc)
                last_error = exc
                continue

            snapshot = snapshot_from_state(address, state, shard=shard)
            logger.debug(
                "Campaign %s read from %s (status=%s)", address, shard, snapshot.status.name
            )
            return snapshot

        if last_error is None:
            raise NetworkError("No shards configured", endpoint=self._base_url)
        raise last_error

    def _fetch_from_shard(self, address: str, shard: str) -> Mapping[str, Any]:
        url = self._base_url + CONTRACT_STATE_PATH.format(shard=shard, address=address)
        try:
            response = self._session.get(url, timeout=self._request_timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise NetworkError(
                f"Failed to read contract state from {shard}",
                endpoint=url,
                details={"error": str(exc)},
            ) from exc

        data = _open_state_data(payload)
        if data is None:
            raise NetworkError(f"No contract data from {shard}", endpoint=url)

        try:
            raw_state = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise NetworkError(
                f"Contract state from {shard} is not valid base64",
                endpoint=url,
                details={"error": str(exc)},
            ) from exc

        try:
            return self._decode_state(raw_state)
        except (ValueError, KeyError, IndexError) as exc:
            raise NetworkError(
                f"Unable to decode contract state from {shard}",
                endpoint=url,
                details={"error": str(exc)},
            ) from exc


def _open_state_data(payload: Any) -> str | None:
    node = payload
    for key in ("serializedContract", "openState", "openState", "data"):
        if not isinstance(node, Mapping):
            return None
        node = node.get(key)
    return node if isinstance(node, str) and node else None
