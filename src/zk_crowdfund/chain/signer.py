"""Private-key signer and broadcaster for ledger transactions."""

from __future__ import annotations

import base64
import hashlib
import logging
import struct
import time
from collections.abc import Callable, Mapping
from typing import Any, cast

import requests
from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_keys import keys

from ..constants import ACCOUNT_PATH, BROADCAST_PATH
from ..encoding import parse_address
from ..exceptions import NetworkError, ValidationError
from ..types import SentTransaction

logger = logging.getLogger(__name__)


def account_address_from_key(private_key: str) -> str:
    """Derive the account address: ``00`` followed by the last 20 bytes of sha256(pubkey)."""

    public_key = keys.PrivateKey(_key_bytes(private_key)).public_key
    digest = hashlib.sha256(b"\x04" + public_key.to_bytes()).digest()
    return "00" + digest[12:].hex()


def serialize_transaction(
    nonce: int, valid_to: int, gas_cost: int, address: str, rpc: bytes
) -> bytes:
    """Inner transaction bytes in big-endian field order."""

    return (
        struct.pack(">QQQ", nonce, valid_to, gas_cost)
        + parse_address(address)
        + struct.pack(">I", len(rpc))
        + rpc
    )


def _key_bytes(private_key: str) -> bytes:
    text = private_key[2:] if private_key.startswith("0x") else private_key
    try:
        raw = bytes.fromhex(text)
    except ValueError as exc:
        raise ValidationError("Private key must be hex", field="private_key") from exc
    if len(raw) != 32:
        raise ValidationError("Private key must be 32 bytes", field="private_key")
    return raw


class PrivateKeySender:
    """Sign with a raw secp256k1 key and broadcast through the node's REST API."""

    def __init__(
        self,
        private_key: str,
        session: requests.Session,
        base_url: str,
        chain_id: str,
        *,
        request_timeout: float,
        transaction_validity: float,
        account_address: str | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        try:
            self._account = cast(LocalAccount, Account.from_key(_key_bytes(private_key)))
        except ValidationError:
            raise
        except ValueError as exc:
            raise ValidationError(
                "Failed to derive signer account from provided private key",
                field="private_key",
                details={"error": str(exc)},
            ) from exc

        self._session = session
        self._base_url = base_url.rstrip("/")
        self._chain_id = chain_id
        self._request_timeout = request_timeout
        self._validity_ms = int(transaction_validity * 1000)
        self._clock = clock
        self._address = account_address or account_address_from_key(private_key)

    @property
    def address(self) -> str:
        return self._address

    def sign_and_send(self, address: str, rpc: bytes, gas_cost: int) -> SentTransaction:
        nonce = self._fetch_nonce()
        valid_to = int(self._clock() * 1000) + self._validity_ms
        inner = serialize_transaction(nonce, valid_to, gas_cost, address, rpc)
        signed = self._sign(inner) + inner

        url = self._base_url + BROADCAST_PATH
        body = {"payload": base64.b64encode(signed).decode("ascii")}
        try:
            response = self._session.put(url, json=body, timeout=self._request_timeout)
        except requests.RequestException as exc:
            raise NetworkError(
                "Failed to broadcast transaction", endpoint=url, details={"error": str(exc)}
            ) from exc

        if not 200 <= response.status_code < 300:
            raise NetworkError(
                "Node rejected transaction",
                endpoint=url,
                status_code=response.status_code,
                details={"body": getattr(response, "text", "")},
            )

        identifier, shard = self._parse_broadcast_response(response)
        if identifier is None:
            identifier = hashlib.sha256(signed + self._chain_id.encode("utf-8")).hexdigest()

        logger.debug("Broadcast %s to %s (nonce=%s)", identifier, address, nonce)
        return SentTransaction(identifier=identifier, destination_shard=shard)

    def _sign(self, inner: bytes) -> bytes:
        digest = hashlib.sha256(inner + self._chain_id.encode("utf-8")).digest()
        signature = self._account.unsafe_sign_hash(digest)
        recovery = signature.v - 27 if signature.v >= 27 else signature.v
        return bytes([recovery]) + signature.r.to_bytes(32, "big") + signature.s.to_bytes(32, "big")

    def _fetch_nonce(self) -> int:
        url = self._base_url + ACCOUNT_PATH.format(address=self._address)
        try:
            response = self._session.get(url, timeout=self._request_timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise NetworkError(
                "Failed to fetch account nonce", endpoint=url, details={"error": str(exc)}
            ) from exc

        try:
            return int(data["nonce"])
        except (KeyError, TypeError, ValueError) as exc:
            raise NetworkError(
                "Account response missing nonce", endpoint=url, details={"response": data}
            ) from exc

    @staticmethod
    def _parse_broadcast_response(response: Any) -> tuple[str | None, str | None]:
        try:
            data = response.json()
        except ValueError:
            return None, None

        if not isinstance(data, Mapping):
            return None, None

        pointer = data.get("transactionPointer")
        source = pointer if isinstance(pointer, Mapping) else data
        identifier = source.get("identifier")
        shard = source.get("destinationShardId")
        return (
            str(identifier) if identifier else None,
            str(shard) if shard is not None else None,
        )
