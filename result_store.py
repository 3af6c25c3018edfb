"""In-memory registry of every request the visualizer has seen."""

from __future__ import annotations

import threading
from typing import Any, Dict, Optional

from errors import ResultFinalized
from models import LookupStatus, ProcessingStats, VisualizationRequest, VisualizationResult


class ResultStore:
    """Thread-safe map of request id -> result.

    Entries are never evicted. Each entry is written only by the task that
    owns the request; the lock just keeps the dict itself consistent.
    """

    def __init__(self) -> None:
        self._results: Dict[str, VisualizationResult] = {}
        self._requests: Dict[str, VisualizationRequest] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def add(self, request: VisualizationRequest, result: VisualizationResult) -> None:
        if result.request_id != request.id:
            raise ValueError(f"Result id {result.request_id} does not match request {request.id}")
        with self._lock:
            if request.id in self._results:
                raise KeyError(f"Request {request.id} already registered")
            self._requests[request.id] = request
            self._results[request.id] = result.model_copy(deep=True)

    def update(self, request_id: str, **changes: Any) -> VisualizationResult:
        """Apply field changes to a non-terminal result and return a copy."""
        with self._lock:
            current = self._results.get(request_id)
            if current is None:
                raise KeyError(f"Request {request_id} does not exist")
            if current.is_terminal:
                raise ResultFinalized(request_id, current.status)
            updated = current.model_copy(update=changes, deep=True)
            self._results[request_id] = updated
            return updated.model_copy(deep=True)

    def get(self, request_id: str) -> Optional[VisualizationResult]:
        with self._lock:
            result = self._results.get(request_id)
            return result.model_copy(deep=True) if result else None

    def get_request(self, request_id: str) -> Optional[VisualizationRequest]:
        with self._lock:
            return self._requests.get(request_id)

    def status(self, request_id: str) -> LookupStatus:
        with self._lock:
            result = self._results.get(request_id)
            return result.status if result else "not_found"

    def stats(self) -> ProcessingStats:
        # Full scan on purpose; the store stays small
        with self._lock:
            statuses = [r.status for r in self._results.values()]
        return ProcessingStats(
            total=len(statuses),
            completed=statuses.count("completed"),
            failed=statuses.count("failed"),
            processing=statuses.count("processing"),
            pending=statuses.count("pending"),
        )

    def clear(self) -> None:
        with self._lock:
            self._results.clear()
            self._requests.clear()
