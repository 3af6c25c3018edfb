"""Request orchestrator: house photo + paint codes -> repainted previews.

Used by both the web app and the CLI.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union

from backends import GenerationBackend
from degradation import DegradationPolicy, make_thumbnail, optimize_quality, resize_image
from errors import NoPaintsResolved
from models import (
    GeneratedImage,
    GenerationOptions,
    GenerationPrompt,
    LookupStatus,
    Paint,
    ProcessingStats,
    VisualizationRequest,
    VisualizationResult,
)
from result_store import ResultStore

log = logging.getLogger(__name__)

OptionsLike = Union[GenerationOptions, Dict[str, Any], None]


class Catalog(Protocol):
    def resolve(self, product_codes: Sequence[str]) -> List[Paint]: ...


class PromptSource(Protocol):
    def build(self, paint: Paint) -> GenerationPrompt: ...


def _new_id(prefix: str) -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:7]}"


def _coerce_options(options: OptionsLike) -> GenerationOptions:
    if options is None:
        return GenerationOptions()
    if isinstance(options, GenerationOptions):
        return options
    return GenerationOptions.model_validate(options)


def select_paints(paints: List[Paint], max_patterns: Optional[int]) -> List[Paint]:
    """Front-truncate to max_patterns; unset or non-positive means no cap."""
    if not max_patterns or max_patterns <= 0:
        return list(paints)
    return paints[:max_patterns]


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class PaintVisualizer:
    """Drives one generation job per resolved paint and records the outcome.

    ``job_workers`` > 1 runs the jobs of a single request on a bounded thread
    pool; artifacts keep paint order either way. ``background_workers`` sizes
    the pool used by :meth:`enqueue`.
    """

    def __init__(
        self,
        catalog: Catalog,
        prompt_builder: PromptSource,
        backend: Optional[GenerationBackend] = None,
        store: Optional[ResultStore] = None,
        job_workers: int = 1,
        background_workers: int = 2,
    ) -> None:
        self.catalog = catalog
        self.prompt_builder = prompt_builder
        self.backend = backend
        self.policy = DegradationPolicy(backend)
        self.store = store or ResultStore()
        self.job_workers = max(1, job_workers)
        self.background_workers = max(1, background_workers)

        self._cancel = threading.Event()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()
        self._closed = False

        log.info(
            "Visualizer init: backend=%s ready=%s job_workers=%d",
            backend.name if backend else "none",
            self.policy.backend_available(),
            self.job_workers,
        )

    # ------------------------------------------------------------------
    # Public surface
    # ------------------------------------------------------------------

    def submit(
        self,
        image: str,
        product_codes: Sequence[str],
        options: OptionsLike = None,
    ) -> VisualizationResult:
        """Process a request to completion and return its final result.

        Raises RuntimeError once the visualizer has been shut down.
        """
        with self._executor_lock:
            if self._closed:
                raise RuntimeError("Visualizer has been shut down")
        request = self._register(image, product_codes, options, status="processing")
        return self._process(request)

    # Several patterns are just several codes; kept as a named entry point
    process_batch = submit

    def enqueue(
        self,
        image: str,
        product_codes: Sequence[str],
        options: OptionsLike = None,
    ) -> str:
        """Register a pending request, process it in the background, return its id."""
        executor = self._get_executor()
        request = self._register(image, product_codes, options, status="pending")
        try:
            executor.submit(self._run_in_background, request)
        except RuntimeError as exc:
            # Shut down between registration and scheduling
            log.warning("Request not scheduled: id=%s error=%s", request.id, exc)
            self._finish(request.id, status="failed", error=str(exc), artifacts=[])
            raise
        return request.id

    def get_result(self, request_id: str) -> Optional[VisualizationResult]:
        return self.store.get(request_id)

    def get_status(self, request_id: str) -> LookupStatus:
        return self.store.status(request_id)

    def stats(self) -> ProcessingStats:
        return self.store.stats()

    def clear(self) -> None:
        self.store.clear()

    def shutdown(self, cancel_in_flight: bool = False) -> None:
        """Stop accepting new requests; optionally cancel in-flight polling."""
        with self._executor_lock:
            self._closed = True
            executor, self._executor = self._executor, None
        if cancel_in_flight:
            self._cancel.set()
        if executor is not None:
            executor.shutdown(wait=True)
        log.info("Visualizer shut down (cancel_in_flight=%s)", cancel_in_flight)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _register(
        self,
        image: str,
        product_codes: Sequence[str],
        options: OptionsLike,
        status: str,
    ) -> VisualizationRequest:
        request = VisualizationRequest(
            id=_new_id("req"),
            original_image=image,
            product_codes=list(product_codes),
            options=_coerce_options(options),
        )
        self.store.add(request, VisualizationResult(request_id=request.id, status=status))
        log.info(
            "Request registered: id=%s codes=%s status=%s",
            request.id, request.product_codes, status,
        )
        return request

    def _run_in_background(self, request: VisualizationRequest) -> None:
        try:
            self.store.update(request.id, status="processing")
            self._process(request)
        except Exception as exc:
            log.error("Background request crashed: id=%s error=%s", request.id, exc, exc_info=True)

    def _process(self, request: VisualizationRequest) -> VisualizationResult:
        start = time.time()
        try:
            paints = self.catalog.resolve(request.product_codes)
            if not paints:
                raise NoPaintsResolved()

            selected = select_paints(paints, request.options.max_patterns)
            artifacts = self._run_jobs(request, selected)
        except NoPaintsResolved as exc:
            log.warning("Request failed: id=%s error=%s", request.id, exc)
            return self._finish(request.id, status="failed", error=str(exc), artifacts=[])
        except Exception as exc:
            log.error("Request crashed: id=%s error=%s", request.id, exc, exc_info=True)
            return self._finish(request.id, status="failed", error=str(exc) or type(exc).__name__, artifacts=[])

        duration_ms = int((time.time() - start) * 1000)
        n_real = sum(1 for a in artifacts if a.generated_by == "backend")
        log.info(
            "Request complete: id=%s artifacts=%d (backend=%d placeholder=%d) %dms",
            request.id, len(artifacts), n_real, len(artifacts) - n_real, duration_ms,
        )
        return self._finish(
            request.id,
            status="completed",
            artifacts=artifacts,
            processing_time_ms=duration_ms,
        )

    def _finish(self, request_id: str, **changes: Any) -> VisualizationResult:
        try:
            return self.store.update(request_id, **changes)
        except KeyError:
            # clear() dropped the entry while the request was in flight
            log.warning("Request vanished from store before finishing: id=%s", request_id)
            return VisualizationResult(request_id=request_id, **changes)

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    def _run_jobs(self, request: VisualizationRequest, paints: List[Paint]) -> List[GeneratedImage]:
        if self.job_workers == 1 or len(paints) == 1:
            return [self._run_job(request, paint) for paint in paints]

        workers = min(self.job_workers, len(paints))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"job-{request.id}") as pool:
            # map() yields in submission order, i.e. paint order
            return list(pool.map(lambda p: self._run_job(request, p), paints))

    def _run_job(self, request: VisualizationRequest, paint: Paint) -> GeneratedImage:
        image = request.original_image
        prompt = self.prompt_builder.build(paint)
        log.debug("Job start: request=%s paint=%s prompt=%r", request.id, paint.product_code, prompt.prompt)

        outcome = self.policy.attempt(image, paint, prompt, cancel_event=self._cancel)
        image_data, generated_by = self.policy.resolve(outcome, image, paint)

        opts = request.options
        image_data = optimize_quality(resize_image(image_data, opts.max_width, opts.max_height), opts.quality)

        return GeneratedImage(
            id=_new_id("img"),
            paint=paint,
            image_data=image_data,
            thumbnail=make_thumbnail(image_data),
            generated_by=generated_by,
        )

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._closed:
                raise RuntimeError("Visualizer has been shut down")
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.background_workers,
                    thread_name_prefix="paint-viz",
                )
            return self._executor
