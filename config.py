"""Settings from the environment (and .env) plus visualizer wiring.

Call load_settings() once at startup (from app.py or paint_cli.py), then hand
the dict to build_visualizer().
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

from backends import create_backend
from paint_catalog import PaintCatalog
from prompts import PromptBuilder
from visualizer_core import PaintVisualizer

log = logging.getLogger(__name__)

DEFAULT_PROVIDER = "replicate"


def load_settings(env: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> Dict[str, Any]:
    """Read visualizer settings. Malformed numbers fall back to defaults."""
    if env is None:
        if dotenv:
            load_dotenv()
        env = os.environ

    provider = env.get("PAINT_VIZ_PROVIDER", DEFAULT_PROVIDER).strip().lower()

    return {
        "provider": provider,
        "api_key": api_key_for(provider, env),
        "model": env.get("REPLICATE_MODEL") or None,
        "steps": _env_int(env, "PAINT_VIZ_STEPS", default=None),
        "guidance_scale": _env_float(env, "PAINT_VIZ_GUIDANCE_SCALE", default=None),
        "strength": _env_float(env, "PAINT_VIZ_STRENGTH", default=None),
        "poll_interval": _env_float(env, "PAINT_VIZ_POLL_INTERVAL_S", default=5.0),
        "max_poll_attempts": _env_int(env, "PAINT_VIZ_MAX_POLL_ATTEMPTS", default=60),
        "job_workers": _env_int(env, "PAINT_VIZ_JOB_WORKERS", default=1),
        "local_url": env.get("PAINT_VIZ_LOCAL_URL", ""),
        "log_level": env.get("PAINT_VIZ_LOG_LEVEL", "INFO"),
    }


def api_key_for(provider: str, env: Optional[Mapping[str, str]] = None) -> str:
    """Credential variable for a provider: STABILITY_API_KEY or REPLICATE_API_TOKEN."""
    if env is None:
        env = os.environ
    if provider == "stability-ai":
        return env.get("STABILITY_API_KEY", "")
    return env.get("REPLICATE_API_TOKEN", "")


def build_visualizer(settings: Dict[str, Any]) -> PaintVisualizer:
    backend = create_backend(settings)
    if backend is not None and not backend.is_ready():
        log.warning("Backend %s is not ready; every image will be a placeholder", backend.name)
    return PaintVisualizer(
        catalog=PaintCatalog(),
        prompt_builder=PromptBuilder(),
        backend=backend,
        job_workers=settings.get("job_workers") or 1,
    )


def _env_int(env: Mapping[str, str], name: str, *, default: Optional[int]) -> Optional[int]:
    raw_value = env.get(name)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        return int(raw_value)
    except ValueError:
        log.warning("Ignoring invalid %s=%r", name, raw_value)
        return default


def _env_float(env: Mapping[str, str], name: str, *, default: Optional[float]) -> Optional[float]:
    raw_value = env.get(name)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        return float(raw_value)
    except ValueError:
        log.warning("Ignoring invalid %s=%r", name, raw_value)
        return default
