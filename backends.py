"""Image generation backends.

The orchestrator only sees ``GenerationBackend``. Which variant is active is
decided once, by ``create_backend`` reading the settings dict.

Replicate is called over plain HTTP rather than through the ``replicate`` SDK
so polling stays under ``CompletionWaiter`` (bounded and cancellable).
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests

from completion import CompletionWaiter
from errors import BackendNotReady, BackendPollFailed, BackendSubmitFailed, UnsupportedBackend
from models import GenerationPrompt, Paint

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Replicate defaults
# ---------------------------------------------------------------------------

REPLICATE_API_URL = "https://api.replicate.com/v1/predictions"
DEFAULT_MODEL = (
    "stability-ai/stable-diffusion:"
    "db21e45d3f7023abc2a46ee38a23973f6dce16bb082a930b0c49861f96d1e5bf"
)
DEFAULT_STEPS = 50
DEFAULT_GUIDANCE_SCALE = 7.5
DEFAULT_STRENGTH = 0.8
DEFAULT_SCHEDULER = "DPMSolverMultistep"
HTTP_TIMEOUT = 30  # seconds, per HTTP call

PROVIDERS = ("replicate", "stability-ai", "local")


class GenerationBackend(ABC):
    """Capability set every image generation backend provides."""

    name = "base"

    @abstractmethod
    def generate(
        self,
        image: str,
        paint: Paint,
        prompt: GenerationPrompt,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """Return a reference (normally a URL) to the repainted image."""

    @abstractmethod
    def is_ready(self) -> bool:
        ...


class ReplicateBackend(GenerationBackend):
    """Stable Diffusion img2img through the Replicate predictions API."""

    name = "replicate"

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        steps: Optional[int] = None,
        guidance_scale: Optional[float] = None,
        strength: Optional[float] = None,
        waiter: Optional[CompletionWaiter] = None,
        session: Optional[requests.Session] = None,
        api_url: str = REPLICATE_API_URL,
    ) -> None:
        self.api_key = api_key or ""
        self.model = model or DEFAULT_MODEL
        self.steps = steps or DEFAULT_STEPS
        self.guidance_scale = guidance_scale or DEFAULT_GUIDANCE_SCALE
        self.strength = strength or DEFAULT_STRENGTH
        self.waiter = waiter or CompletionWaiter()
        self.session = session or requests.Session()
        self.api_url = api_url.rstrip("/")

    def is_ready(self) -> bool:
        return bool(self.api_key)

    def build_payload(self, image: str, prompt: GenerationPrompt) -> Dict[str, Any]:
        return {
            "version": self.model,
            "input": {
                "image": image,
                "prompt": prompt.prompt,
                "negative_prompt": prompt.negative_prompt,
                "num_outputs": 1,
                "num_inference_steps": self.steps,
                "guidance_scale": self.guidance_scale,
                "prompt_strength": self.strength,
                "scheduler": DEFAULT_SCHEDULER,
            },
        }

    def generate(
        self,
        image: str,
        paint: Paint,
        prompt: GenerationPrompt,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        if not self.api_key:
            raise BackendNotReady("Replicate API key is required")

        payload = self.build_payload(image, prompt)
        t0 = time.time()
        prediction_id = self._submit(payload, paint)
        log.info("Replicate prediction submitted: id=%s paint=%s", prediction_id, paint.product_code)

        url = self.waiter.wait(
            lambda: self._fetch_prediction(prediction_id),
            cancel_event=cancel_event,
            label=prediction_id,
        )
        log.info(
            "Replicate prediction done: id=%s paint=%s total=%.1fs",
            prediction_id, paint.product_code, time.time() - t0,
        )
        return url

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Token {self.api_key}"}

    def _submit(self, payload: Dict[str, Any], paint: Paint) -> str:
        # Keep base64 images out of the log
        log_input = {
            k: (v[:120] + "…" if isinstance(v, str) and len(v) > 120 else v)
            for k, v in payload["input"].items()
        }
        log.debug("Replicate submit paint=%s model=%s input=%s", paint.product_code, self.model, log_input)

        try:
            resp = self.session.post(
                self.api_url,
                json=payload,
                headers={**self._headers(), "Content-Type": "application/json"},
                timeout=HTTP_TIMEOUT,
            )
            resp.raise_for_status()
            prediction = resp.json()
        except requests.RequestException as exc:
            raise BackendSubmitFailed(f"Replicate API error: {exc}") from exc
        except ValueError as exc:
            raise BackendSubmitFailed(f"Replicate returned invalid JSON: {exc}") from exc

        prediction_id = prediction.get("id") if isinstance(prediction, dict) else None
        if not prediction_id:
            raise BackendSubmitFailed("Replicate did not return a prediction id")
        return prediction_id

    def _fetch_prediction(self, prediction_id: str) -> Dict[str, Any]:
        try:
            resp = self.session.get(
                f"{self.api_url}/{prediction_id}",
                headers=self._headers(),
                timeout=HTTP_TIMEOUT,
            )
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as exc:
            raise BackendPollFailed(f"Replicate poll error for {prediction_id}: {exc}") from exc
        except ValueError as exc:
            raise BackendPollFailed(f"Replicate poll returned invalid JSON: {exc}") from exc


class StabilityAIBackend(GenerationBackend):
    """Stability AI REST API. Not wired up yet."""

    name = "stability-ai"

    def __init__(self, api_key: str = "") -> None:
        self.api_key = api_key

    def generate(
        self,
        image: str,
        paint: Paint,
        prompt: GenerationPrompt,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        raise BackendNotReady("Stability AI backend is not implemented yet")

    def is_ready(self) -> bool:
        return False


class LocalBackend(GenerationBackend):
    """Self-hosted Stable Diffusion (e.g. an AUTOMATIC1111 WebUI). Not wired up yet."""

    name = "local"

    def __init__(self, base_url: str = "") -> None:
        self.base_url = base_url

    def generate(
        self,
        image: str,
        paint: Paint,
        prompt: GenerationPrompt,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        raise BackendNotReady("Local backend is not implemented yet")

    def is_ready(self) -> bool:
        return False


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

def create_backend(
    settings: Dict[str, Any],
    session: Optional[requests.Session] = None,
) -> Optional[GenerationBackend]:
    """Build the configured backend, or None when generation is disabled."""
    provider = (settings.get("provider") or "").strip().lower()
    if provider in ("", "none"):
        log.info("No generation backend configured; placeholders only")
        return None

    if provider == "replicate":
        waiter = CompletionWaiter(
            poll_interval=settings.get("poll_interval", 5.0),
            max_attempts=settings.get("max_poll_attempts", 60),
        )
        return ReplicateBackend(
            api_key=settings.get("api_key", ""),
            model=settings.get("model"),
            steps=settings.get("steps"),
            guidance_scale=settings.get("guidance_scale"),
            strength=settings.get("strength"),
            waiter=waiter,
            session=session,
        )
    if provider == "stability-ai":
        return StabilityAIBackend(api_key=settings.get("api_key", ""))
    if provider == "local":
        return LocalBackend(base_url=settings.get("local_url", ""))

    raise UnsupportedBackend(provider)
