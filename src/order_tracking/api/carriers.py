# src/order_tracking/api/carriers.py
from __future__ import annotations

from typing import Any, Callable, List, Optional, Protocol, Sequence, Tuple
import logging

from order_tracking.models import CarrierCredentials, TrackingSnapshot

from .dhl import DhlAdapter
from .fallback import fallback_snapshot
from .fedex import FedExAdapter, FedExAuth, FedExClient
from .transport import DEFAULT_TIMEOUT, RequestsTransport
from .ups import UpsAdapter
from .usps import UspsAdapter


class CarrierAdapter(Protocol):
    code: str
    name: str

    @property
    def available(self) -> bool:
        ...

    def track(self, tracking_number: str) -> TrackingSnapshot:
        ...


def _is_ups(name: str) -> bool:
    return "ups" in name and "usps" not in name


# Ordered (predicate, carrier code) pairs over the lower-cased carrier name.
# First match wins.
CARRIER_RULES: Tuple[Tuple[Callable[[str], bool], str], ...] = (
    (_is_ups, "ups"),
    (lambda name: "fedex" in name, "fedex"),
    (lambda name: "usps" in name, "usps"),
    (lambda name: "dhl" in name, "dhl"),
)

# Carriers shown to merchants; only the first four have an API integration.
SUPPORTED_CARRIERS: Tuple[Tuple[str, str], ...] = (
    ("UPS", "ups"),
    ("FedEx", "fedex"),
    ("USPS", "usps"),
    ("DHL", "dhl"),
    ("Canada Post", "canada_post"),
    ("Royal Mail", "royal_mail"),
    ("Australia Post", "australia_post"),
)


def select_carrier(carrier: Optional[str]) -> Optional[str]:
    """Return the carrier code for a free-text carrier name, or None when unrecognized."""
    name = (carrier or "").strip().lower()
    if not name:
        return None
    for predicate, code in CARRIER_RULES:
        if predicate(name):
            return code
    return None


class CarrierTrackingClient:
    """Fetches a normalized TrackingSnapshot for (carrier, tracking number).

    `track()` never raises. Unknown carriers, carriers without credentials
    and failed live calls all resolve to the fallback snapshot.
    """

    def __init__(
        self,
        adapters: Sequence[CarrierAdapter],
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._adapters = {a.code: a for a in adapters}
        self.logger: logging.Logger = logger or logging.getLogger(
            "order_tracking.api.carriers"
        )

    @classmethod
    def from_credentials(
        cls,
        creds: CarrierCredentials,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[Any] = None,
        logger: Optional[logging.Logger] = None,
    ) -> "CarrierTrackingClient":
        transport = transport or RequestsTransport(timeout=timeout, max_retries=0)
        fedex_client = None
        if creds.has_api("fedex"):
            fedex_client = FedExClient(
                FedExAuth(client_id=creds.fedex_api_key, client_secret=creds.fedex_secret_key),
                transport=transport,
            )
        adapters: List[CarrierAdapter] = [
            UpsAdapter(creds.ups_api_key, transport),
            FedExAdapter(fedex_client),
            UspsAdapter(creds.usps_user_id, transport),
            DhlAdapter(creds.dhl_api_key, transport),
        ]
        return cls(adapters, logger=logger)

    def adapter_for(self, carrier: Optional[str]) -> Optional[CarrierAdapter]:
        code = select_carrier(carrier)
        return self._adapters.get(code) if code else None

    def track(self, carrier: Optional[str], tracking_number: Optional[str]) -> TrackingSnapshot:
        tn = str(tracking_number or "").strip()
        adapter = self.adapter_for(carrier)

        if adapter is None:
            self.logger.debug("No carrier integration for %r; using fallback", carrier)
            return fallback_snapshot(carrier, tn)

        if not tn or not adapter.available:
            self.logger.debug("%s credentials not configured; using fallback", adapter.name)
            return fallback_snapshot(adapter.name, tn)

        try:
            snapshot = adapter.track(tn)
        except Exception as ex:
            self.logger.warning("%s tracking failed for %s: %s", adapter.name, tn, ex)
            return fallback_snapshot(adapter.name, tn)

        self.logger.info("%s live tracking for %s: %s", adapter.name, tn, snapshot.status.value)
        return snapshot

    def supported_carriers(self) -> List[dict[str, Any]]:
        out = []
        for name, code in SUPPORTED_CARRIERS:
            adapter = self._adapters.get(code)
            out.append({
                "name": name,
                "code": code,
                "hasApi": bool(adapter is not None and adapter.available),
            })
        return out


__all__ = [
    "CarrierAdapter",
    "CARRIER_RULES",
    "SUPPORTED_CARRIERS",
    "select_carrier",
    "CarrierTrackingClient",
]
