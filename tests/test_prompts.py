from __future__ import annotations

from paint_catalog import PaintCatalog
from prompts import DEFAULT_NEGATIVE_PROMPT, PromptBuilder


def test_prompt_describes_colour_and_finish(catalog: PaintCatalog) -> None:
    prompt = PromptBuilder().build(catalog.get("KP-200"))

    assert prompt.prompt.startswith(
        "a house exterior, painted in ivory (#FFFFF0), fluorine resin paint finish, "
    )
    assert prompt.prompt.endswith("photorealistic, high detail, 8k resolution")
    assert prompt.negative_prompt == DEFAULT_NEGATIVE_PROMPT


def test_prompt_is_deterministic(catalog: PaintCatalog) -> None:
    builder = PromptBuilder()
    paint = catalog.get("SK-300")

    assert builder.build(paint) == builder.build(paint)


def test_unknown_paint_type_gets_generic_finish(catalog: PaintCatalog) -> None:
    paint = catalog.get("ND-050").model_copy(update={"type": "latex"})

    assert "high-quality paint finish" in PromptBuilder().build_prompt(paint)


def test_descriptions_can_be_switched_off(catalog: PaintCatalog) -> None:
    builder = PromptBuilder(
        base_prompt="a cottage",
        include_color_description=False,
        include_paint_type_description=False,
    )

    text = builder.build_prompt(catalog.get("ND-050"))

    assert text.startswith("a cottage, professional quality")
    assert "painted in" not in text


def test_customize_appends_phrases(catalog: PaintCatalog) -> None:
    builder = PromptBuilder()
    paint = catalog.get("ND-101")

    assert builder.customize(paint, ["sunset", "wide angle"]) == (
        builder.build_prompt(paint) + ", sunset, wide angle"
    )
