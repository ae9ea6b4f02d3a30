from .carrier_cfg import CarrierCredentials
from .order import Fulfillment, LineItem, Order, ShopContext
from .product import RecommendedProduct
from .results import Found, LookupResult, NotFound, ServiceError
from .settings import MerchantSettings
from .tracking import CanonicalStatus, TrackingEvent, TrackingSnapshot

__all__ = [
    "CarrierCredentials",
    "Fulfillment",
    "LineItem",
    "Order",
    "ShopContext",
    "RecommendedProduct",
    "Found",
    "LookupResult",
    "NotFound",
    "ServiceError",
    "MerchantSettings",
    "CanonicalStatus",
    "TrackingEvent",
    "TrackingSnapshot",
]
