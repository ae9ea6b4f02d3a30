from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging

from order_tracking.errors import CarrierUnavailable
from order_tracking.models import TrackingEvent, TrackingSnapshot

from .fallback import resolve_tracking_url
from .payload import dig, split_timestamp, text_or_none
from .snapshot import live_snapshot
from .transport import RequestsTransport

DHL_TRACK_URL = "https://api-eu.dhl.com/track/shipments"


@dataclass(frozen=True)
class DhlShipment:
    """First entry of the Unified Tracking API `shipments` list."""
    status_description: Optional[str] = None
    estimated_delivery: Optional[str] = None
    events: List[TrackingEvent] = field(default_factory=list)

    @property
    def location(self) -> Optional[str]:
        # events arrive newest first
        return self.events[0].location if self.events else None

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> Optional["DhlShipment"]:
        shipment = dig(payload, "shipments", 0)
        if not isinstance(shipment, dict):
            return None
        events: List[TrackingEvent] = []
        for ev in shipment.get("events") or []:
            if not isinstance(ev, dict):
                continue
            day, clock = split_timestamp(ev.get("timestamp"))
            events.append(TrackingEvent(
                date=day,
                time=clock,
                description=text_or_none(ev.get("description")),
                location=text_or_none(dig(ev, "location", "address", "addressLocality")),
            ))
        return cls(
            status_description=text_or_none(dig(shipment, "status", "description"))
            or text_or_none(dig(shipment, "status", "status")),
            estimated_delivery=text_or_none(shipment.get("estimatedTimeOfDelivery")),
            events=events,
        )


class DhlAdapter:
    code = "dhl"
    name = "DHL"

    def __init__(self, api_key: str, transport: RequestsTransport, *, logger: Optional[logging.Logger] = None) -> None:
        self.api_key = api_key
        self.transport = transport
        self.logger = logger or logging.getLogger("order_tracking.api.dhl")

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def track(self, tracking_number: str) -> TrackingSnapshot:
        headers = {
            "DHL-API-Key": self.api_key,
            "Content-Type": "application/json",
        }
        self.logger.debug("DHL GET %s trackingNumber=%s", DHL_TRACK_URL, tracking_number)
        resp = self.transport.get(
            DHL_TRACK_URL, headers=headers, params={"trackingNumber": tracking_number})
        resp.raise_for_status()

        shipment = DhlShipment.from_response(resp.json())
        if shipment is None:
            raise CarrierUnavailable("DHL response carried no shipment")

        return live_snapshot(
            carrier=self.name,
            tracking_number=tracking_number,
            raw_status=shipment.status_description,
            tracking_url=resolve_tracking_url(self.name, tracking_number),
            location=shipment.location,
            estimated_delivery=shipment.estimated_delivery,
            events=shipment.events,
        )
