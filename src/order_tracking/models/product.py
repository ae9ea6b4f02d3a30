from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


def _first(items: Any) -> dict[str, Any]:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return {}


def _in_stock(variant: dict[str, Any]) -> bool:
    try:
        qty = int(variant.get("inventory_quantity") or 0)
    except (TypeError, ValueError):
        qty = 0
    return qty > 0 or variant.get("inventory_policy") == "continue"


@dataclass(frozen=True)
class RecommendedProduct:
    """A published product shown under the tracking result, priced by its first variant."""
    id: Any
    title: Optional[str] = None
    handle: Optional[str] = None
    product_type: Optional[str] = None
    tags: Optional[str] = None
    price: str = "0.00"
    compare_at_price: Optional[str] = None
    featured_image: Optional[str] = None
    available: bool = False

    @property
    def url(self) -> str:
        return f"/products/{self.handle or ''}"

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RecommendedProduct":
        variant = _first(data.get("variants"))
        image = _first(data.get("images"))
        compare = variant.get("compare_at_price")
        return cls(
            id=data.get("id"),
            title=data.get("title"),
            handle=data.get("handle"),
            product_type=data.get("product_type"),
            tags=data.get("tags"),
            price=str(variant.get("price") or "0.00"),
            compare_at_price=str(compare) if compare is not None else None,
            featured_image=image.get("src") or None,
            available=_in_stock(variant),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "handle": self.handle,
            "product_type": self.product_type,
            "tags": self.tags,
            "price": self.price,
            "compare_at_price": self.compare_at_price,
            "featured_image": self.featured_image,
            "url": self.url,
            "available": self.available,
        }
