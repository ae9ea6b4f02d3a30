from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import quote
import logging

from order_tracking.errors import CarrierUnavailable
from order_tracking.models import TrackingEvent, TrackingSnapshot

from .fallback import resolve_tracking_url
from .payload import dig, text_or_none
from .snapshot import live_snapshot
from .transport import RequestsTransport

UPS_TRACK_URL = "https://onlinetools.ups.com/api/track/v1/details/{tn}"


@dataclass(frozen=True)
class UpsPackage:
    """The slice of a UPS Track API response we read."""
    status_description: Optional[str] = None
    delivery_date: Optional[str] = None
    city: Optional[str] = None
    activity: List[TrackingEvent] = field(default_factory=list)

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> Optional["UpsPackage"]:
        shipment = dig(payload, "trackResponse", "shipment", 0)
        if not isinstance(shipment, dict):
            return None
        pkg = dig(shipment, "package", 0, default={})
        activity = [
            TrackingEvent(
                date=text_or_none(a.get("date")),
                time=text_or_none(a.get("time")),
                description=text_or_none(dig(a, "status", "description")),
                location=text_or_none(dig(a, "location", "address", "city")),
            )
            for a in (pkg.get("activity") or [])
            if isinstance(a, dict)
        ]
        return cls(
            status_description=text_or_none(dig(pkg, "currentStatus", "description")),
            delivery_date=text_or_none(dig(pkg, "deliveryDate", 0, "date")),
            city=text_or_none(dig(pkg, "currentStatus", "location", "address", "city")),
            activity=activity,
        )


class UpsAdapter:
    code = "ups"
    name = "UPS"

    def __init__(self, api_key: str, transport: RequestsTransport, *, logger: Optional[logging.Logger] = None) -> None:
        self.api_key = api_key
        self.transport = transport
        self.logger = logger or logging.getLogger("order_tracking.api.ups")

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def track(self, tracking_number: str) -> TrackingSnapshot:
        url = UPS_TRACK_URL.format(tn=quote(tracking_number, safe=""))
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        self.logger.debug("UPS GET %s", url)
        resp = self.transport.get(url, headers=headers)
        resp.raise_for_status()

        pkg = UpsPackage.from_response(resp.json())
        if pkg is None:
            raise CarrierUnavailable("UPS response carried no shipment")

        return live_snapshot(
            carrier=self.name,
            tracking_number=tracking_number,
            raw_status=pkg.status_description,
            tracking_url=resolve_tracking_url(self.name, tracking_number),
            location=pkg.city,
            estimated_delivery=pkg.delivery_date,
            events=pkg.activity,
        )
