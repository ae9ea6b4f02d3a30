from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional, Union

from .order import Order
from .tracking import TrackingSnapshot


@dataclass(frozen=True)
class Found:
    order: Order
    enhanced_tracking: Optional[TrackingSnapshot] = None

    success = True
    http_status = 200

    def to_dict(self) -> dict[str, Any]:
        order = self.order.to_dict()
        if self.enhanced_tracking is not None:
            order["enhancedTracking"] = self.enhanced_tracking.to_dict()
        return {"success": True, "order": order}


@dataclass(frozen=True)
class NotFound:
    """Number/contact mismatch or tracking disabled. The reason never says which."""
    reason: str = "Order not found"

    success = False
    http_status = 404

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "error": self.reason}


@dataclass(frozen=True)
class ServiceError:
    cause: str
    http_status: int = 502

    success = False

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "error": self.cause}


LookupResult = Union[Found, NotFound, ServiceError]
