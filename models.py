"""Typed records shared by the catalog, backends, orchestrator and store."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# Request lifecycle. "completed" and "failed" are terminal.
RequestStatus = Literal["pending", "processing", "completed", "failed"]
LookupStatus = Literal["pending", "processing", "completed", "failed", "not_found"]
GeneratedBy = Literal["backend", "placeholder"]

TERMINAL_STATUSES = ("completed", "failed")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Catalog records
# ---------------------------------------------------------------------------

class RGB(BaseModel):
    model_config = ConfigDict(frozen=True)

    r: int
    g: int
    b: int


class PaintColor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    hex: str
    rgb: RGB
    # Manufacturer-specific colour number
    color_code: Optional[str] = None


class Paint(BaseModel):
    """One catalog entry, looked up by product code."""

    model_config = ConfigDict(frozen=True)

    id: str
    product_code: str
    name: str
    manufacturer: str
    type: str
    color: PaintColor
    price_per_sqm: Optional[int] = None
    durability_years: Optional[int] = None
    description: Optional[str] = None


# ---------------------------------------------------------------------------
# Requests and results
# ---------------------------------------------------------------------------

class GenerationOptions(BaseModel):
    """Per-request knobs. Only max_patterns affects processing today."""

    model_config = ConfigDict(frozen=True)

    quality: Optional[int] = None
    max_patterns: Optional[int] = None
    max_width: Optional[int] = None
    max_height: Optional[int] = None


class VisualizationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    original_image: str
    product_codes: List[str] = Field(default_factory=list)
    options: GenerationOptions = Field(default_factory=GenerationOptions)
    submitted_at: datetime = Field(default_factory=utc_now)


class GenerationPrompt(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt: str
    negative_prompt: str = ""


class GeneratedImage(BaseModel):
    """A single repainted preview for one paint."""

    model_config = ConfigDict(frozen=True)

    id: str
    paint: Paint
    image_data: str
    thumbnail: str
    created_at: datetime = Field(default_factory=utc_now)
    generated_by: GeneratedBy


class VisualizationResult(BaseModel):
    request_id: str
    status: RequestStatus = "pending"
    artifacts: List[GeneratedImage] = Field(default_factory=list)
    error: Optional[str] = None
    processing_time_ms: Optional[int] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class ProcessingStats(BaseModel):
    total: int = 0
    completed: int = 0
    failed: int = 0
    processing: int = 0
    pending: int = 0
