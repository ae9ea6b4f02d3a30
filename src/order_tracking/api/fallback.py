# src/order_tracking/api/fallback.py
from __future__ import annotations

from typing import Optional, Tuple
from urllib.parse import quote, quote_plus

from order_tracking.models import CanonicalStatus, TrackingSnapshot

FALLBACK_MESSAGE = (
    "Live tracking data not available. Please check the carrier website for updates."
)

# (carrier key, URL template). Checked in order against the lower-cased
# carrier name; "usps" sits ahead of "ups" because it contains it.
TRACKING_URL_TEMPLATES: Tuple[Tuple[str, str], ...] = (
    ("usps", "https://tools.usps.com/go/TrackConfirmAction?tLabels={tn}"),
    ("ups", "https://www.ups.com/track?tracknum={tn}"),
    ("fedex", "https://www.fedex.com/fedextrack/?trknbr={tn}"),
    ("dhl", "https://www.dhl.com/en/express/tracking.html?AWB={tn}"),
    ("canada post",
     "https://www.canadapost-postescanada.ca/track-reperage/en#/search?searchFor={tn}"),
    ("royal mail", "https://www.royalmail.com/track-your-item#/tracking-results/{tn}"),
    ("australia post", "https://auspost.com.au/mypost/track/#/details/{tn}"),
)

SEARCH_URL_TEMPLATE = "https://www.google.com/search?q={query}"


def carrier_tracking_url(carrier: Optional[str], tracking_number: Optional[str]) -> Optional[str]:
    """Known carrier page for this shipment, or None when the carrier is not in the table."""
    name = (carrier or "").strip().lower()
    if not name:
        return None
    tn = quote(str(tracking_number or "").strip(), safe="")
    for key, template in TRACKING_URL_TEMPLATES:
        if key in name:
            return template.format(tn=tn)
    return None


def search_url(carrier: Optional[str], tracking_number: Optional[str]) -> str:
    query = f"{(carrier or '').strip()} tracking {(tracking_number or '').strip()}".strip()
    return SEARCH_URL_TEMPLATE.format(query=quote_plus(query))


def resolve_tracking_url(carrier: Optional[str], tracking_number: Optional[str]) -> str:
    """Always returns a link: the carrier's page if known, else a web search."""
    return carrier_tracking_url(carrier, tracking_number) or search_url(carrier, tracking_number)


def fallback_snapshot(carrier: Optional[str], tracking_number: Optional[str]) -> TrackingSnapshot:
    return TrackingSnapshot(
        carrier=str(carrier or ""),
        tracking_number=str(tracking_number or ""),
        status=CanonicalStatus.IN_TRANSIT,
        tracking_url=resolve_tracking_url(carrier, tracking_number),
        is_live_data=False,
        events=[],
        message=FALLBACK_MESSAGE,
    )


__all__ = [
    "FALLBACK_MESSAGE",
    "TRACKING_URL_TEMPLATES",
    "carrier_tracking_url",
    "search_url",
    "resolve_tracking_url",
    "fallback_snapshot",
]
