from __future__ import annotations

import threading
import time
from typing import Any, Callable

import pytest
import requests

from backends import GenerationBackend
from models import GenerationPrompt, Paint
from paint_catalog import PaintCatalog
from prompts import PromptBuilder
from visualizer_core import PaintVisualizer


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int = 200, json_data: Any = None) -> None:
        self.status_code = status_code
        self._json_data = json_data

    def json(self) -> Any:
        if self._json_data is None:
            raise ValueError("No JSON body")
        return self._json_data

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error", response=self)


class FakeSession:
    """Records calls; GET responses are served in order, the last one repeating."""

    def __init__(
        self,
        post_response: FakeResponse | None = None,
        get_responses: list[FakeResponse] | None = None,
        get_error: Exception | None = None,
    ) -> None:
        self.post_response = post_response or FakeResponse(200, {"id": "pred-1", "status": "starting"})
        self.get_responses = get_responses or [
            FakeResponse(200, {"status": "succeeded", "output": ["https://cdn.example/out.png"]})
        ]
        self.get_error = get_error
        self.posts: list[dict[str, Any]] = []
        self.gets: list[dict[str, Any]] = []

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        self.posts.append({"url": url, **kwargs})
        return self.post_response

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.gets.append({"url": url, **kwargs})
        if self.get_error is not None:
            raise self.get_error
        index = min(len(self.gets) - 1, len(self.get_responses) - 1)
        return self.get_responses[index]


class RecordingBackend(GenerationBackend):
    """Test backend with per-product-code behaviour."""

    name = "recording"

    def __init__(
        self,
        ready: bool = True,
        failures: dict[str, Exception] | None = None,
        delays: dict[str, float] | None = None,
        hook: Callable[[Paint], None] | None = None,
    ) -> None:
        self.ready = ready
        self.failures = failures or {}
        self.delays = delays or {}
        self.hook = hook
        self.calls: list[tuple[str, Paint, GenerationPrompt]] = []
        self._lock = threading.Lock()

    def generate(
        self,
        image: str,
        paint: Paint,
        prompt: GenerationPrompt,
        cancel_event: threading.Event | None = None,
    ) -> str:
        with self._lock:
            self.calls.append((image, paint, prompt))
        if self.hook is not None:
            self.hook(paint)
        delay = self.delays.get(paint.product_code)
        if delay:
            time.sleep(delay)
        failure = self.failures.get(paint.product_code)
        if failure is not None:
            raise failure
        return f"https://cdn.example/{paint.product_code}.png"

    def is_ready(self) -> bool:
        return self.ready


@pytest.fixture
def catalog() -> PaintCatalog:
    return PaintCatalog()


@pytest.fixture
def prompt_builder() -> PromptBuilder:
    return PromptBuilder()


@pytest.fixture
def make_visualizer(
    catalog: PaintCatalog, prompt_builder: PromptBuilder
) -> Callable[..., PaintVisualizer]:
    created: list[PaintVisualizer] = []

    def factory(backend: GenerationBackend | None = None, **kwargs: Any) -> PaintVisualizer:
        visualizer = PaintVisualizer(
            catalog=catalog,
            prompt_builder=prompt_builder,
            backend=backend,
            **kwargs,
        )
        created.append(visualizer)
        return visualizer

    yield factory
    for visualizer in created:
        visualizer.shutdown(cancel_in_flight=True)
