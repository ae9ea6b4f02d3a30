# src/order_tracking/__init__.py
from .api.carriers import CarrierTrackingClient
from .pipelines.lookup_service import TrackingLookupService
from .rules.status_mapper import normalize_status

__all__ = [
    "CarrierTrackingClient",
    "TrackingLookupService",
    "normalize_status",
]
