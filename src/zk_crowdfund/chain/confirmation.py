"""Bounded polling until a transaction reaches a terminal state."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

import requests

from ..exceptions import CrowdfundError
from ..types import TransactionOutcome
from .classifier import ContractErrorClassifier
from .shards import ShardStatusPoller

logger = logging.getLogger(__name__)


class ConfirmationLoop:
    """Poll a transaction at a fixed interval until it succeeds, fails or times out.

    ``sleep`` and ``clock`` are injectable so the loop can run without real
    timers. When a cancellation event is supplied, the wait between attempts
    is ``cancel.wait(interval)`` so setting the event wakes the loop at once.
    """

    def __init__(
        self,
        poller: ShardStatusPoller,
        classifier: ContractErrorClassifier,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._poller = poller
        self._classifier = classifier
        self._sleep = sleep
        self._clock = clock

    def check_once(self, tx_id: str, shard_hint: str | None = None) -> TransactionOutcome:
        """Fetch and classify the transaction a single time."""

        outcome = self._classifier.classify(self._poller.fetch(tx_id, shard_hint))
        if outcome.tx_id is None:
            outcome.tx_id = tx_id
        return outcome

    def await_terminal(
        self,
        tx_id: str,
        shard_hint: str | None,
        interval: float,
        timeout: float,
        *,
        cancel: threading.Event | None = None,
        max_attempts: int | None = None,
    ) -> TransactionOutcome:
        deadline = self._clock() + timeout
        attempts = 0
        last = TransactionOutcome.pending(tx_id)

        logger.debug(
            "Awaiting %s (shard=%s, interval=%s, timeout=%s)", tx_id, shard_hint, interval, timeout
        )

        while True:
            if cancel is not None and cancel.is_set():
                logger.info("Stopped waiting for %s after %s attempts", tx_id, attempts)
                last.cancelled = True
                last.attempts = attempts
                return last

            attempts += 1
            try:
                outcome = self.check_once(tx_id, shard_hint)
            except (
                requests.RequestException,
                CrowdfundError,
                ValueError,
                KeyError,
                TypeError,
                AttributeError,
            ) as exc:
                logger.debug("Status check for %s failed (attempt %s): %s", tx_id, attempts, exc)
            else:
                outcome.attempts = attempts
                if outcome.is_terminal:
                    logger.info(
                        "Transaction %s reached %s after %s attempts",
                        tx_id,
                        outcome.status.value,
                        attempts,
                    )
                    return outcome
                last = outcome

            budget_spent = max_attempts is not None and attempts >= max_attempts
            if budget_spent or self._clock() + interval > deadline:
                logger.warning("Timed out waiting for %s after %s attempts", tx_id, attempts)
                return TransactionOutcome.timeout(tx_id, attempts=attempts)

            self._wait(interval, cancel)

    def _wait(self, interval: float, cancel: threading.Event | None) -> None:
        if cancel is None:
            self._sleep(interval)
        else:
            cancel.wait(interval)
