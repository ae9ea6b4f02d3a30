from __future__ import annotations

from typing import Iterable, Optional

from order_tracking.models import TrackingEvent, TrackingSnapshot
from order_tracking.rules.status_mapper import match_status, normalize_status


def live_snapshot(
    *,
    carrier: str,
    tracking_number: str,
    raw_status: Optional[str],
    tracking_url: str,
    location: Optional[str] = None,
    estimated_delivery: Optional[str] = None,
    events: Iterable[TrackingEvent] = (),
) -> TrackingSnapshot:
    """Build the snapshot for data that came back from a carrier API."""
    return TrackingSnapshot(
        carrier=carrier,
        tracking_number=tracking_number,
        status=normalize_status(raw_status),
        tracking_url=tracking_url,
        is_live_data=True,
        location=location,
        estimated_delivery=estimated_delivery,
        events=list(events),
        # keep carrier wording only when it did not map to a bucket
        raw_status=raw_status if match_status(raw_status) is None else None,
    )
