from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, List, Optional

from .tracking import TrackingSnapshot


def _is_blank(val: Any) -> bool:
    """True if value is None/empty/whitespace or a literal "none"/"null"."""
    if val is None:
        return True
    s = str(val).strip()
    return s == "" or s.lower() in {"none", "null"}


@dataclass(frozen=True)
class ShopContext:
    """Read-only credentials scoped to a single lookup."""
    shop_domain: str
    access_token: str
    api_version: str = "2023-10"


@dataclass(frozen=True)
class LineItem:
    id: Any = None
    title: Optional[str] = None
    quantity: int = 0
    price: Optional[str] = None
    variant_title: Optional[str] = None
    product_id: Any = None
    variant_id: Any = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "LineItem":
        try:
            qty = int(data.get("quantity") or 0)
        except (TypeError, ValueError):
            qty = 0
        price = data.get("price")
        return cls(
            id=data.get("id"),
            title=data.get("title"),
            quantity=qty,
            price=str(price) if price is not None else None,
            variant_title=data.get("variant_title"),
            product_id=data.get("product_id"),
            variant_id=data.get("variant_id"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "quantity": self.quantity,
            "price": self.price,
            "variant_title": self.variant_title,
            "product_id": self.product_id,
            "variant_id": self.variant_id,
        }


@dataclass(frozen=True)
class Fulfillment:
    id: Any
    status: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    tracking_company: Optional[str] = None
    tracking_number: Optional[str] = None
    tracking_url: Optional[str] = None
    tracking_urls: List[str] = field(default_factory=list)
    shipment_status: Optional[str] = None
    location_id: Any = None
    line_items: List[LineItem] = field(default_factory=list)

    # only populated when every tracked fulfillment is enhanced
    enhanced_tracking: Optional[TrackingSnapshot] = None

    @property
    def has_tracking(self) -> bool:
        """A carrier call needs both a carrier name and a tracking number."""
        return not _is_blank(self.tracking_company) and not _is_blank(self.tracking_number)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Fulfillment":
        return cls(
            id=data.get("id"),
            status=data.get("status"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
            tracking_company=data.get("tracking_company"),
            tracking_number=data.get("tracking_number"),
            tracking_url=data.get("tracking_url"),
            tracking_urls=list(data.get("tracking_urls") or []),
            shipment_status=data.get("shipment_status"),
            location_id=data.get("location_id"),
            line_items=[LineItem.from_api(li) for li in data.get("line_items") or []
                        if isinstance(li, dict)],
        )

    def with_tracking(self, snapshot: Optional[TrackingSnapshot]) -> "Fulfillment":
        return replace(self, enhanced_tracking=snapshot)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "status": self.status,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "tracking_company": self.tracking_company,
            "tracking_number": self.tracking_number,
            "tracking_url": self.tracking_url,
            "tracking_urls": list(self.tracking_urls),
            "shipment_status": self.shipment_status,
            "location_id": self.location_id,
            "line_items": [li.to_dict() for li in self.line_items],
        }
        if self.enhanced_tracking is not None:
            out["enhancedTracking"] = self.enhanced_tracking.to_dict()
        return out


@dataclass(frozen=True)
class Order:
    """Point-in-time read of a platform order. Never mutated by this package."""

    id: Any
    order_number: Any = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[str] = None
    financial_status: Optional[str] = None
    fulfillment_status: Optional[str] = None
    total_price: Optional[str] = None
    currency: Optional[str] = None
    line_items: List[LineItem] = field(default_factory=list)
    fulfillments: List[Fulfillment] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Order":
        total = data.get("total_price")
        return cls(
            id=data.get("id"),
            order_number=data.get("order_number"),
            name=data.get("name"),
            email=data.get("email"),
            phone=data.get("phone"),
            created_at=data.get("created_at"),
            financial_status=data.get("financial_status"),
            fulfillment_status=data.get("fulfillment_status"),
            total_price=str(total) if total is not None else None,
            currency=data.get("currency"),
            line_items=[LineItem.from_api(li) for li in data.get("line_items") or []
                        if isinstance(li, dict)],
        )

    def matches_contact(self, contact: str) -> bool:
        """E-mail compares case-insensitively; phone compares verbatim."""
        if _is_blank(contact):
            return False
        if self.email and self.email.lower() == contact.lower():
            return True
        return bool(self.phone) and self.phone == contact

    def with_fulfillments(self, fulfillments: List[Fulfillment]) -> "Order":
        return replace(self, fulfillments=list(fulfillments))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "order_number": self.order_number,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "created_at": self.created_at,
            "financial_status": self.financial_status,
            "fulfillment_status": self.fulfillment_status,
            "total_price": self.total_price,
            "currency": self.currency,
            "line_items": [li.to_dict() for li in self.line_items],
            "fulfillments": [f.to_dict() for f in self.fulfillments],
        }
