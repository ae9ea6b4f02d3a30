from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional
from xml.etree import ElementTree
from xml.sax.saxutils import quoteattr
import logging

from order_tracking.errors import CarrierUnavailable
from order_tracking.models import TrackingEvent, TrackingSnapshot

from .fallback import resolve_tracking_url
from .payload import text_or_none
from .snapshot import live_snapshot
from .transport import RequestsTransport

USPS_API_URL = "https://secure.shippingapis.com/ShippingAPI.dll"


@dataclass(frozen=True)
class UspsTrackInfo:
    """TrackV2 answers with a summary sentence plus older details, newest first."""
    summary: Optional[str] = None
    details: List[str] = field(default_factory=list)

    @classmethod
    def from_xml(cls, text: str) -> Optional["UspsTrackInfo"]:
        try:
            root = ElementTree.fromstring(text)
        except ElementTree.ParseError:
            return None
        info = root if root.tag == "TrackInfo" else root.find("TrackInfo")
        if info is None or info.find("Error") is not None:
            return None
        summary = text_or_none(info.findtext("TrackSummary"))
        if not summary:
            return None
        details = [d for d in (text_or_none(el.text) for el in info.findall("TrackDetail")) if d]
        return cls(summary=summary, details=details)


class UspsAdapter:
    code = "usps"
    name = "USPS"

    def __init__(self, user_id: str, transport: RequestsTransport, *, logger: Optional[logging.Logger] = None) -> None:
        self.user_id = user_id
        self.transport = transport
        self.logger = logger or logging.getLogger("order_tracking.api.usps")

    @property
    def available(self) -> bool:
        return bool(self.user_id)

    def _request_xml(self, tracking_number: str) -> str:
        return (
            f"<TrackRequest USERID={quoteattr(self.user_id)}>"
            f"<TrackID ID={quoteattr(tracking_number)}></TrackID>"
            "</TrackRequest>"
        )

    def track(self, tracking_number: str) -> TrackingSnapshot:
        params = {"API": "TrackV2", "XML": self._request_xml(tracking_number)}
        self.logger.debug("USPS TrackV2 request for %s", tracking_number)
        resp = self.transport.get(USPS_API_URL, params=params)
        resp.raise_for_status()

        info = UspsTrackInfo.from_xml(resp.text or "")
        if info is None:
            raise CarrierUnavailable("USPS response carried no TrackSummary")

        events = [TrackingEvent(description=d) for d in info.details]
        return live_snapshot(
            carrier=self.name,
            tracking_number=tracking_number,
            raw_status=info.summary,
            tracking_url=resolve_tracking_url(self.name, tracking_number),
            events=events,
        )
