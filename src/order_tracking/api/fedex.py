from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import json
import time
import logging

from order_tracking.errors import CarrierUnavailable
from order_tracking.models import TrackingEvent, TrackingSnapshot

from .fallback import resolve_tracking_url
from .payload import dig, split_timestamp, text_or_none
from .snapshot import live_snapshot
from .transport import RequestsTransport

FEDEX_TOKEN_URL = "https://apis.fedex.com/oauth/token"
FEDEX_BASE_URL = "https://apis.fedex.com/track"


def _truncate(text: Optional[str], limit: int = 4000) -> Optional[str]:
    if text and len(text) > limit:
        return text[:limit] + "..."
    return text


@dataclass
class FedExConfig:
    base_url: str = FEDEX_BASE_URL


@dataclass
class FedExAuth:
    client_id: str
    client_secret: str
    token_url: str = FEDEX_TOKEN_URL


class FedExClient:
    """Minimal FedEx Track API client.

    Responsibilities:
    - authenticate(): acquires an OAuth token using client_id/client_secret in
      the x-www-form-urlencoded body (no Basic auth header) and caches it
      until shortly before expiry.
    - post_tracking(body, access_token=None): POST a single tracking request
      body and return the parsed JSON, or an empty dict on any failure.
    """

    def __init__(
        self,
        auth: FedExAuth,
        cfg: Optional[FedExConfig] = None,
        transport: Optional[RequestsTransport] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.auth = auth
        self.cfg = cfg or FedExConfig()
        self.transport = transport or RequestsTransport()
        self._token: Optional[str] = None
        self._token_expires_at: float = 0.0
        self.logger: logging.Logger = logger or logging.getLogger(
            "order_tracking.api.fedex"
        )

    def authenticate(self) -> Optional[str]:
        now = time.time()
        if self._token and now < self._token_expires_at - 10:
            return self._token

        data = {
            "grant_type": "client_credentials",
            "client_id": self.auth.client_id,
            "client_secret": self.auth.client_secret,
        }
        headers = {"Content-Type": "application/x-www-form-urlencoded"}
        self.logger.debug("Requesting FedEx OAuth token from %s", self.auth.token_url)

        try:
            resp = self.transport.post(self.auth.token_url, headers=headers, data=data)
        except Exception as ex:  # network/transport error
            self.logger.warning("FedEx token request failed: %s", ex)
            self._token = None
            self._token_expires_at = 0.0
            return None

        status = getattr(resp, "status_code", None)
        try:
            resp.raise_for_status()
            j = resp.json()
            self._token = j.get("access_token")
            expires_in = int(j.get("expires_in", 3600))
            self._token_expires_at = time.time() + expires_in
            self.logger.debug("FedEx token acquired (expires_in=%s status=%s)", expires_in, status)
            return self._token
        except Exception as ex:
            self.logger.warning(
                "FedEx token request returned error status=%s exception=%s response_body=%s",
                status,
                ex,
                _truncate(getattr(resp, "text", None), 2000),
            )
            self._token = None
            self._token_expires_at = 0.0
            return None

    def _endpoint_for_tracking(self) -> str:
        base = self.cfg.base_url.rstrip("/")
        if "trackingnumbers" in base or "/v1/" in base:
            return base
        return base + "/v1/trackingnumbers"

    def post_tracking(self, body: Dict[str, Any], access_token: Optional[str] = None) -> Dict[str, Any]:
        token = access_token or self.authenticate()
        if not token:
            return {}

        headers = {"Authorization": f"Bearer {token}",
                   "Content-Type": "application/json"}
        endpoint = self._endpoint_for_tracking()
        self.logger.debug(
            "FedEx POST endpoint=%s request_body=%s",
            endpoint,
            _truncate(json.dumps(body, ensure_ascii=False)),
        )

        try:
            resp = self.transport.post(endpoint, headers=headers, json=body)
        except Exception as ex:
            self.logger.warning("FedEx transport POST failed for endpoint=%s: %s", endpoint, ex)
            return {}

        status = getattr(resp, "status_code", None)
        try:
            resp.raise_for_status()
            j = resp.json()
        except Exception as ex:
            self.logger.warning(
                "FedEx POST endpoint=%s returned error status=%s exception=%s response_body=%s",
                endpoint,
                status,
                ex,
                _truncate(getattr(resp, "text", None)),
            )
            return {}
        return j if isinstance(j, dict) else {}


@dataclass(frozen=True)
class FedExTrackResult:
    """One entry of output.completeTrackResults[0].trackResults."""
    description: Optional[str] = None
    city: Optional[str] = None
    estimated_delivery: Optional[str] = None
    scan_events: List[TrackingEvent] = field(default_factory=list)

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> Optional["FedExTrackResult"]:
        out = payload.get("output", payload)
        tr = dig(out, "completeTrackResults", 0, "trackResults", 0)
        if not isinstance(tr, dict):
            return None
        # FedEx reports unknown numbers as a trackResult carrying only an error
        if tr.get("error") and not tr.get("latestStatusDetail"):
            return None

        lsd = tr.get("latestStatusDetail") or {}
        events: List[TrackingEvent] = []
        for ev in tr.get("scanEvents") or []:
            if not isinstance(ev, dict):
                continue
            day, clock = split_timestamp(ev.get("date"))
            events.append(TrackingEvent(
                date=day,
                time=text_or_none(ev.get("time")) or clock,
                description=text_or_none(ev.get("eventDescription")),
                location=text_or_none(dig(ev, "scanLocation", "city")),
            ))
        return cls(
            description=text_or_none(lsd.get("description")) or text_or_none(lsd.get("statusByLocale")),
            city=text_or_none(dig(lsd, "scanLocation", "city")),
            estimated_delivery=text_or_none(
                dig(tr, "estimatedDeliveryTimeWindow", "window", "ends")),
            scan_events=events,
        )


class FedExAdapter:
    code = "fedex"
    name = "FedEx"

    def __init__(self, client: Optional[FedExClient], *, logger: Optional[logging.Logger] = None) -> None:
        self.client = client
        self.logger = logger or logging.getLogger("order_tracking.api.fedex")

    @property
    def available(self) -> bool:
        auth = getattr(self.client, "auth", None)
        return bool(auth and auth.client_id and auth.client_secret)

    def track(self, tracking_number: str) -> TrackingSnapshot:
        body = {
            "trackingInfo": [{"trackingNumberInfo": {"trackingNumber": tracking_number}}],
            "includeDetailedScans": True,
        }
        j = self.client.post_tracking(body)
        result = FedExTrackResult.from_response(j) if j else None
        if result is None:
            raise CarrierUnavailable("FedEx returned no track result")

        return live_snapshot(
            carrier=self.name,
            tracking_number=tracking_number,
            raw_status=result.description,
            tracking_url=resolve_tracking_url(self.name, tracking_number),
            location=result.city,
            estimated_delivery=result.estimated_delivery,
            events=result.scan_events,
        )
