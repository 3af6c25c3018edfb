"""Placeholder fallback for generation jobs that cannot use a real backend."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional, Tuple

from backends import GenerationBackend
from models import GeneratedBy, GenerationPrompt, Paint

log = logging.getLogger(__name__)

PLACEHOLDER_IMAGE_PREFIX_LEN = 20
THUMBNAIL_PREFIX_LEN = 50


@dataclass(frozen=True)
class JobOutcome:
    """What one backend call produced: a payload, an error, or nothing at all."""

    payload: Optional[str] = None
    error: Optional[Exception] = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.payload is not None and self.error is None


def placeholder_image(image: str, paint: Paint) -> str:
    """Deterministic stand-in image reference for a paint."""
    return f"placeholder_{paint.product_code}_{image[:PLACEHOLDER_IMAGE_PREFIX_LEN]}"


def make_thumbnail(image_data: str) -> str:
    # Replicate serves its own thumbnails, so URLs pass through unchanged
    if image_data.startswith("http"):
        return image_data
    return f"thumbnail_{image_data[:THUMBNAIL_PREFIX_LEN]}"


def resize_image(image_data: str, max_width: Optional[int] = None, max_height: Optional[int] = None) -> str:
    # TODO: downscale to max_width/max_height once images are fetched as bytes
    return image_data


def optimize_quality(image_data: str, quality: Optional[int] = None) -> str:
    # TODO: re-encode at the requested JPEG quality once images are fetched as bytes
    return image_data


class DegradationPolicy:
    """Decides per job whether to call the backend and what to do when it fails."""

    def __init__(self, backend: Optional[GenerationBackend]) -> None:
        self.backend = backend

    def backend_available(self) -> bool:
        return self.backend is not None and self.backend.is_ready()

    def attempt(
        self,
        image: str,
        paint: Paint,
        prompt: GenerationPrompt,
        cancel_event: Optional[threading.Event] = None,
    ) -> JobOutcome:
        """Run the backend for one paint and capture the failure instead of raising."""
        if not self.backend_available():
            return JobOutcome(skipped=True)
        try:
            payload = self.backend.generate(image, paint, prompt, cancel_event=cancel_event)
        except Exception as exc:  # noqa: BLE001
            return JobOutcome(error=exc)
        return JobOutcome(payload=payload)

    def resolve(self, outcome: JobOutcome, image: str, paint: Paint) -> Tuple[str, GeneratedBy]:
        """Turn an outcome into (image_data, generated_by)."""
        if outcome.ok:
            return outcome.payload, "backend"

        if outcome.skipped:
            log.debug("Backend unavailable, using placeholder for %s", paint.product_code)
        else:
            log.warning(
                "Generation failed for %s, falling back to placeholder: %s: %s",
                paint.product_code, type(outcome.error).__name__, outcome.error,
            )
        return placeholder_image(image, paint), "placeholder"
