# src/order_tracking/rules/status_mapper.py
from __future__ import annotations

from typing import Optional, Tuple

from order_tracking.models import CanonicalStatus

# Ordered (keywords, status) rules. First match wins: a phrase such as
# "delivered, returned to sender" must land in a single bucket.
STATUS_RULES: Tuple[Tuple[Tuple[str, ...], CanonicalStatus], ...] = (
    (("delivered",), CanonicalStatus.DELIVERED),
    (("out for delivery",), CanonicalStatus.OUT_FOR_DELIVERY),
    (("in transit", "on the way"), CanonicalStatus.IN_TRANSIT),
    (("picked up", "collected"), CanonicalStatus.PICKED_UP),
    (("processing", "preparing"), CanonicalStatus.PROCESSING),
    (("exception", "delayed"), CanonicalStatus.EXCEPTION),
    (("returned",), CanonicalStatus.RETURNED),
)


def match_status(raw_status: Optional[str]) -> Optional[CanonicalStatus]:
    """Return the first bucket whose keyword occurs in `raw_status`, else None."""
    if not raw_status or not str(raw_status).strip():
        return None
    text = str(raw_status).lower()
    for keywords, status in STATUS_RULES:
        if any(k in text for k in keywords):
            return status
    return None


def normalize_status(raw_status: Optional[str]) -> CanonicalStatus:
    """
    Map a carrier's free-text status to a CanonicalStatus.

    Blank input and text that matches no rule both yield UNKNOWN; callers
    that want to keep the carrier wording should hold on to `raw_status`.
    """
    return match_status(raw_status) or CanonicalStatus.UNKNOWN


__all__ = ["STATUS_RULES", "match_status", "normalize_status"]
