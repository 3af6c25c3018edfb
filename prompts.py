"""Text prompts for repainting a house photo with a given paint."""

from __future__ import annotations

from typing import Dict, List, Optional

from models import GenerationPrompt, Paint

DEFAULT_BASE_PROMPT = "a house exterior"
DEFAULT_NEGATIVE_PROMPT = (
    "blurry, low quality, distorted, deformed, ugly, bad anatomy, watermark, text"
)

_PAINT_TYPE_FINISHES: Dict[str, str] = {
    "silicone":        "silicon resin paint finish",
    "fluorine":        "fluorine resin paint finish",
    "urethane":        "urethane paint finish",
    "acrylic":         "acrylic paint finish",
    "inorganic":       "inorganic paint finish",
    "radical_control": "radical control paint finish",
}
_FALLBACK_FINISH = "high-quality paint finish"

_QUALITY_PHRASES = [
    "professional quality",
    "smooth and even coating",
    "realistic texture",
    "natural lighting",
    "photorealistic",
    "high detail",
    "8k resolution",
]


class PromptBuilder:
    """Renders a deterministic img2img prompt from a paint record."""

    def __init__(
        self,
        base_prompt: Optional[str] = None,
        negative_prompt: Optional[str] = None,
        include_color_description: bool = True,
        include_paint_type_description: bool = True,
    ) -> None:
        self.base_prompt = base_prompt or DEFAULT_BASE_PROMPT
        self.negative_prompt = negative_prompt or DEFAULT_NEGATIVE_PROMPT
        self.include_color_description = include_color_description
        self.include_paint_type_description = include_paint_type_description

    def build(self, paint: Paint) -> GenerationPrompt:
        return GenerationPrompt(
            prompt=self.build_prompt(paint),
            negative_prompt=self.negative_prompt,
        )

    def build_prompt(self, paint: Paint) -> str:
        parts: List[str] = [self.base_prompt]
        if self.include_color_description:
            parts.append(self._color_description(paint))
        if self.include_paint_type_description:
            parts.append(_PAINT_TYPE_FINISHES.get(paint.type, _FALLBACK_FINISH))
        parts.append(", ".join(_QUALITY_PHRASES))
        return ", ".join(parts)

    def customize(self, paint: Paint, additions: List[str]) -> str:
        return ", ".join([self.build_prompt(paint), *additions])

    @staticmethod
    def _color_description(paint: Paint) -> str:
        return f"painted in {paint.color.name.lower()} ({paint.color.hex})"
