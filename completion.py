"""Bounded polling of an accepted prediction until it reaches a terminal state."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from errors import (
    BackendReportedFailure,
    EmptyOutput,
    GenerationCancelled,
    GenerationTimeout,
)

log = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 5.0   # seconds
DEFAULT_MAX_ATTEMPTS = 60     # 60 × 5s ≈ 5 minutes


class CompletionWaiter:
    """Turns an asynchronous remote job into a synchronous result.

    ``fetch_status`` is called once per attempt and must return the prediction
    resource as a dict with ``status`` and optionally ``output`` / ``error``.
    The waiter never resubmits a job; it only polls one that was accepted.
    """

    def __init__(
        self,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self.poll_interval = max(0.0, poll_interval)
        self.max_attempts = max(1, max_attempts)

    def wait(
        self,
        fetch_status: Callable[[], Dict[str, Any]],
        cancel_event: Optional[threading.Event] = None,
        label: str = "",
    ) -> str:
        for attempt in range(1, self.max_attempts + 1):
            if cancel_event is not None and cancel_event.is_set():
                raise GenerationCancelled()

            prediction = fetch_status()
            status = prediction.get("status")
            log.debug("Poll %s attempt=%d/%d status=%s", label, attempt, self.max_attempts, status)

            if status == "succeeded":
                output = prediction.get("output") or []
                if isinstance(output, str):
                    return output
                if output:
                    return output[0]
                raise EmptyOutput()

            if status == "failed":
                raise BackendReportedFailure(prediction.get("error") or "Unknown error")

            if status == "canceled":
                raise BackendReportedFailure("prediction was canceled")

            if attempt < self.max_attempts:
                self._pause(cancel_event)

        raise GenerationTimeout(self.max_attempts, self.poll_interval)

    def _pause(self, cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is None:
            time.sleep(self.poll_interval)
            return
        # Event.wait returns True as soon as the event is set
        if cancel_event.wait(self.poll_interval):
            raise GenerationCancelled()
