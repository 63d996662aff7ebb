"""Classification of execution records into transaction outcomes.

A transaction that the chain reports as successful can still have been
rejected by the contract: the rejection only shows up in the records of the
events it spawned. Those records are fetched one by one and their trap text
is searched for assertion messages.

The contract exposes no machine-readable error codes, so detection relies on
the wording of assertion and trap messages and silently stops matching if
that wording changes.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any

from ..constants import CONTRACT_EXECUTION_FAILED, KNOWN_CONTRACT_ERRORS, STACK_TRACE_HINTS
from ..types import ContractEvent, TransactionOutcome, TransactionStatus
from .shards import ShardStatusPoller

logger = logging.getLogger(__name__)

_ASSERTION_PATTERN = re.compile(r"assertion[^\n]*? failed: ([^\n]+)")
_EARLY_EXIT_PATTERN = re.compile(r"Trap: Early exit[^\n]*?: ([^\n]+)")
_PRINTABLE_TAIL = re.compile(r"[^\x20-\x7e]+.*$", re.DOTALL)


def _clean_message(message: str) -> str:
    return _PRINTABLE_TAIL.sub("", message).strip().strip("'\"`").strip()


def find_contract_error(text: str) -> str | None:
    """Search decoded event content for a contract assertion message."""

    for pattern in (_ASSERTION_PATTERN, _EARLY_EXIT_PATTERN):
        match = pattern.search(text)
        if match:
            message = _clean_message(match.group(1))
            if message:
                return message

    for known in KNOWN_CONTRACT_ERRORS:
        if known in text:
            return known

    return None


def describe_chain_failure(failure: Mapping[str, Any] | None) -> str:
    """Human-readable reason for a chain-level failure."""

    if not isinstance(failure, Mapping):
        failure = {}
    message = failure.get("errorMessage")
    if isinstance(message, str) and message.strip():
        return message.strip()

    stack_trace = str(failure.get("stackTrace") or "").lower()
    for fragment, description in STACK_TRACE_HINTS:
        if fragment in stack_trace:
            return description

    return "Transaction failed"


class ContractErrorClassifier:
    """Turn a raw execution record into a ``TransactionOutcome``."""

    def __init__(self, poller: ShardStatusPoller) -> None:
        self._poller = poller

    def classify(self, record: Mapping[str, Any] | None) -> TransactionOutcome:
        if record is None:
            return TransactionOutcome.pending()

        tx_id = record.get("identifier")
        execution = record.get("executionStatus")
        if not isinstance(execution, Mapping) or not execution.get("finalized"):
            return TransactionOutcome.pending(tx_id, raw_response=record)

        block_id = execution.get("blockId")
        if not execution.get("success"):
            reason = describe_chain_failure(execution.get("failure"))
            logger.info("Transaction %s failed on chain: %s", tx_id, reason)
            return TransactionOutcome(
                status=TransactionStatus.FAILED,
                tx_id=tx_id,
                finalized_block=block_id,
                blockchain_error=reason,
                raw_response=record,
            )

        events: list[ContractEvent] = []
        for entry in _event_entries(execution.get("events")):
            event = ContractEvent(
                identifier=entry["identifier"],
                destination_shard=entry.get("destinationShardId"),
                record=self._poller.fetch(entry["identifier"]),
            )
            events.append(event)

            if not _is_finalized(event.record):
                logger.debug(
                    "Event %s of %s not finalized on any shard yet", event.identifier, tx_id
                )
                return TransactionOutcome.pending(tx_id, events=events, raw_response=record)

            contract_error = _event_error(event)
            if contract_error:
                logger.info("Transaction %s rejected by contract: %s", tx_id, contract_error)
                return TransactionOutcome(
                    status=TransactionStatus.FAILED,
                    tx_id=tx_id,
                    finalized_block=block_id,
                    contract_error=contract_error,
                    events=events,
                    raw_response=record,
                )

        return TransactionOutcome(
            status=TransactionStatus.SUCCESS,
            tx_id=tx_id,
            finalized_block=block_id,
            events=events,
            raw_response=record,
        )


def _is_finalized(record: Mapping[str, Any] | None) -> bool:
    if record is None:
        return False
    execution = record.get("executionStatus")
    return isinstance(execution, Mapping) and bool(execution.get("finalized"))


def _event_error(event: ContractEvent) -> str | None:
    record = event.record or {}
    execution = record.get("executionStatus")
    if isinstance(execution, Mapping) and execution.get("success") is False:
        return CONTRACT_EXECUTION_FAILED

    return find_contract_error(_decoded_content(event.identifier, record.get("content")))


def _event_entries(raw_events: Any) -> list[Mapping[str, Any]]:
    if not isinstance(raw_events, Sequence) or isinstance(raw_events, str | bytes):
        return []

    entries: list[Mapping[str, Any]] = []
    for item in raw_events:
        if isinstance(item, str):
            entries.append({"identifier": item})
        elif isinstance(item, Mapping) and item.get("identifier"):
            entries.append(item)
    return entries


def _decoded_content(identifier: str, content: Any) -> str:
    if not isinstance(content, str) or not content:
        return ""
    try:
        decoded = base64.b64decode(content, validate=False)
    except (binascii.Error, ValueError):
        logger.debug("Event %s content is not base64", identifier)
        return ""
    return decoded.decode("utf-8", errors="ignore")
