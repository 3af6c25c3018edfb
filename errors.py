"""Exception types raised by the visualizer.

Only NoPaintsResolved ever reaches a caller as a failed request. Everything
under GenerationError is absorbed per job and replaced by a placeholder image.
"""

from __future__ import annotations


class VisualizerError(Exception):
    """Base class for all visualizer errors."""


class NoPaintsResolved(VisualizerError):
    def __init__(self, message: str = "no matching paints") -> None:
        super().__init__(message)


class UnsupportedBackend(VisualizerError, ValueError):
    def __init__(self, provider: str) -> None:
        super().__init__(f"Unsupported generation backend: {provider}")
        self.provider = provider


class ResultFinalized(VisualizerError):
    """Raised when something tries to change a completed or failed result."""

    def __init__(self, request_id: str, status: str) -> None:
        super().__init__(f"Result {request_id} is already {status}")
        self.request_id = request_id
        self.status = status


# ---------------------------------------------------------------------------
# Per-job generation errors
# ---------------------------------------------------------------------------

class GenerationError(VisualizerError):
    """A single generation job failed; the request itself carries on."""


class BackendNotReady(GenerationError):
    pass


class BackendSubmitFailed(GenerationError):
    pass


class BackendPollFailed(GenerationError):
    pass


class EmptyOutput(GenerationError):
    def __init__(self, message: str = "No output image generated") -> None:
        super().__init__(message)


class BackendReportedFailure(GenerationError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Image generation failed: {detail}")
        self.detail = detail


class GenerationTimeout(GenerationError):
    def __init__(self, attempts: int, poll_interval: float) -> None:
        super().__init__(
            f"Image generation timeout after {attempts} polls "
            f"({attempts * poll_interval:.0f}s)"
        )
        self.attempts = attempts


class GenerationCancelled(GenerationError):
    def __init__(self, message: str = "Image generation cancelled") -> None:
        super().__init__(message)
