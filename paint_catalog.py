"""Paint catalog: product-code lookup and search over the known paints."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional

from models import Paint

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Sample catalogue (seeded into every new PaintCatalog)
# ---------------------------------------------------------------------------

SAMPLE_PAINTS: List[Dict[str, Any]] = [
    # Nippon Paint
    {
        "id": "np-001",
        "product_code": "ND-050",
        "name": "Fine Silicon Fresh",
        "manufacturer": "Nippon Paint",
        "type": "silicone",
        "color": {
            "name": "Cream White",
            "hex": "#F5F5DC",
            "rgb": {"r": 245, "g": 245, "b": 220},
            "color_code": "ND-050",
        },
        "price_per_sqm": 2800,
        "durability_years": 12,
        "description": "Weather-resistant silicone resin paint",
    },
    {
        "id": "np-002",
        "product_code": "ND-101",
        "name": "Perfect Top",
        "manufacturer": "Nippon Paint",
        "type": "radical_control",
        "color": {
            "name": "Pure White",
            "hex": "#FFFFFF",
            "rgb": {"r": 255, "g": 255, "b": 255},
            "color_code": "ND-101",
        },
        "price_per_sqm": 3200,
        "durability_years": 15,
        "description": "Radical-control high-durability paint",
    },
    # Kansai Paint
    {
        "id": "kp-001",
        "product_code": "KP-200",
        "name": "Ales Dynamic TOP",
        "manufacturer": "Kansai Paint",
        "type": "fluorine",
        "color": {
            "name": "Ivory",
            "hex": "#FFFFF0",
            "rgb": {"r": 255, "g": 255, "b": 240},
            "color_code": "KP-200",
        },
        "price_per_sqm": 4500,
        "durability_years": 18,
        "description": "Ultra-durable fluorine resin paint",
    },
    {
        "id": "kp-002",
        "product_code": "KP-150",
        "name": "Cera M Silicon III",
        "manufacturer": "Kansai Paint",
        "type": "silicone",
        "color": {
            "name": "Beige",
            "hex": "#F5F5DC",
            "rgb": {"r": 245, "g": 245, "b": 220},
            "color_code": "KP-150",
        },
        "price_per_sqm": 2900,
        "durability_years": 13,
        "description": "High-performance silicone resin paint",
    },
    # SK Kaken
    {
        "id": "sk-001",
        "product_code": "SK-300",
        "name": "SK Premium Silicon",
        "manufacturer": "SK Kaken",
        "type": "silicone",
        "color": {
            "name": "Light Gray",
            "hex": "#D3D3D3",
            "rgb": {"r": 211, "g": 211, "b": 211},
            "color_code": "SK-300",
        },
        "price_per_sqm": 3000,
        "durability_years": 14,
        "description": "Premium silicone paint",
    },
]

SUPPORTED_MANUFACTURERS = ["Nippon Paint", "Kansai Paint", "SK Kaken", "Astec Paint", "Other"]


class PaintCatalog:
    """In-memory paint catalogue keyed by product code."""

    def __init__(self, paints: Optional[Iterable[Paint]] = None) -> None:
        self._paints: Dict[str, Paint] = {}
        if paints is None:
            paints = [Paint.model_validate(p) for p in SAMPLE_PAINTS]
        for paint in paints:
            self._paints[paint.product_code] = paint
        log.debug("Paint catalog loaded: %d paints", len(self._paints))

    def __len__(self) -> int:
        return len(self._paints)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, product_code: str) -> Optional[Paint]:
        return self._paints.get(product_code)

    def resolve(self, product_codes: Iterable[str]) -> List[Paint]:
        """Map codes to paints in input order.

        Unknown codes are dropped silently. Duplicates are kept so the caller
        can ask for several variants of the same paint.
        """
        resolved: List[Paint] = []
        for code in product_codes:
            paint = self._paints.get(code)
            if paint is None:
                log.debug("Unknown product code dropped: %r", code)
                continue
            resolved.append(paint)
        return resolved

    def all_paints(self) -> List[Paint]:
        return list(self._paints.values())

    def by_manufacturer(self, manufacturer: str) -> List[Paint]:
        return [p for p in self._paints.values() if p.manufacturer == manufacturer]

    def search(
        self,
        manufacturer: Optional[str] = None,
        paint_type: Optional[str] = None,
        color_name: Optional[str] = None,
        product_code: Optional[str] = None,
        min_price: Optional[int] = None,
        max_price: Optional[int] = None,
    ) -> List[Paint]:
        """Filter the catalogue. All criteria are optional and combine with AND."""
        results = self.all_paints()

        if manufacturer:
            results = [p for p in results if p.manufacturer == manufacturer]
        if paint_type:
            results = [p for p in results if p.type == paint_type]
        if color_name:
            needle = color_name.lower()
            results = [p for p in results if needle in p.color.name.lower()]
        if product_code:
            results = [p for p in results if product_code in p.product_code]
        # Paints without a price never match a price bound
        if min_price is not None:
            results = [p for p in results if p.price_per_sqm and p.price_per_sqm >= min_price]
        if max_price is not None:
            results = [p for p in results if p.price_per_sqm and p.price_per_sqm <= max_price]

        return results

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def add(self, paint: Paint) -> None:
        self._paints[paint.product_code] = paint

    def update(self, product_code: str, **fields: Any) -> bool:
        existing = self._paints.get(product_code)
        if existing is None:
            return False
        updated = Paint.model_validate({**existing.model_dump(), **fields})
        if updated.product_code != product_code:
            del self._paints[product_code]
        self._paints[updated.product_code] = updated
        return True

    def delete(self, product_code: str) -> bool:
        return self._paints.pop(product_code, None) is not None

    def statistics(self) -> Dict[str, Any]:
        paints = self.all_paints()
        return {
            "total_paints": len(paints),
            "by_manufacturer": dict(Counter(p.manufacturer for p in paints)),
            "by_type": dict(Counter(p.type for p in paints)),
        }
