from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


class CanonicalStatus(str, Enum):
    """Carrier-independent shipment state; values are the display strings."""

    DELIVERED = "Delivered"
    OUT_FOR_DELIVERY = "Out for Delivery"
    IN_TRANSIT = "In Transit"
    PICKED_UP = "Picked Up"
    PROCESSING = "Processing"
    EXCEPTION = "Exception"
    RETURNED = "Returned"
    UNKNOWN = "Unknown"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TrackingEvent:
    date: Optional[str] = None
    time: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "time": self.time,
            "description": self.description,
            "location": self.location,
        }


@dataclass(frozen=True)
class TrackingSnapshot:
    # identity
    carrier: str
    tracking_number: str

    # normalized state
    status: CanonicalStatus
    tracking_url: str
    is_live_data: bool

    location: Optional[str] = None
    estimated_delivery: Optional[str] = None
    events: List[TrackingEvent] = field(default_factory=list)
    message: Optional[str] = None

    # carrier text before normalization, kept when it did not map to a bucket
    raw_status: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Wire shape consumed by the storefront widget (camelCase keys)."""
        out: dict[str, Any] = {
            "carrier": self.carrier,
            "trackingNumber": self.tracking_number,
            "status": self.status.value,
            "location": self.location,
            "estimatedDelivery": self.estimated_delivery,
            "trackingUrl": self.tracking_url,
            "events": [e.to_dict() for e in self.events],
            "isLiveData": self.is_live_data,
        }
        if self.message:
            out["message"] = self.message
        if self.raw_status:
            out["rawStatus"] = self.raw_status
        return out
