from __future__ import annotations

from typing import Optional
import logging

from order_tracking.api.carriers import CarrierTrackingClient
from order_tracking.api.shopify import ShopifyClient
from order_tracking.config.env import AppConfig
from order_tracking.errors import UpstreamUnavailable
from order_tracking.models import Found, LookupResult, NotFound, ServiceError, ShopContext
from order_tracking.pipelines.fulfillment_aggregator import FulfillmentAggregator
from order_tracking.pipelines.order_resolver import (
    OrderMatchResolver,
    validate_lookup,
)
from order_tracking.storage import AnalyticsRecorder, SettingsStore
from order_tracking.storage.analytics import Dispatcher, inline_dispatcher

ORDER_NOT_FOUND = "Order not found"
TRACKING_UNAVAILABLE = "Tracking service not available"
SHOP_NOT_AUTHORIZED = "Shop not authorized"
UPSTREAM_FAILED = "Failed to lookup tracking information. Please try again later."


class TrackingLookupService:
    """Order lookup → fulfillment aggregation → carrier tracking, for one request at a time.

    Linear, no retries:
      1. validate (ValidationError escapes before any network call)
      2. resolve the order (None → NotFound, UpstreamUnavailable → ServiceError)
      3. aggregate fulfillments (never fails the lookup)
      4. hand the analytics write to the dispatcher; its outcome is not awaited
    """

    def __init__(
        self,
        resolver: OrderMatchResolver,
        aggregator: FulfillmentAggregator,
        *,
        settings: Optional[SettingsStore] = None,
        analytics: Optional[AnalyticsRecorder] = None,
        dispatch: Dispatcher = inline_dispatcher,
        api_version: str = "2023-10",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.resolver = resolver
        self.aggregator = aggregator
        self.settings = settings
        self.analytics = analytics
        self.dispatch = dispatch
        self.api_version = api_version
        self.logger = logger or logging.getLogger("order_tracking.pipelines.lookup")

    @classmethod
    def from_config(
        cls,
        cfg: AppConfig,
        *,
        settings: Optional[SettingsStore] = None,
        analytics: Optional[AnalyticsRecorder] = None,
        dispatch: Dispatcher = inline_dispatcher,
        shopify: Optional[ShopifyClient] = None,
        tracker: Optional[CarrierTrackingClient] = None,
    ) -> "TrackingLookupService":
        shopify = shopify or ShopifyClient()
        tracker = tracker or CarrierTrackingClient.from_credentials(
            cfg.carrier_credentials, timeout=cfg.CARRIER_TIMEOUT)
        return cls(
            OrderMatchResolver(shopify),
            FulfillmentAggregator(shopify, tracker, enhance_all=cfg.ENHANCE_ALL_FULFILLMENTS),
            settings=settings,
            analytics=analytics,
            dispatch=dispatch,
            api_version=cfg.SHOPIFY_API_VERSION,
        )

    def lookup(
        self,
        shop: ShopContext,
        order_number: str,
        contact: str,
        *,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> LookupResult:
        cleaned, contact = validate_lookup(order_number, contact)

        try:
            order = self.resolver.resolve(shop, cleaned, contact)
        except UpstreamUnavailable as ex:
            self.logger.warning(
                "Order lookup failed upstream for %s #%s: %s", shop.shop_domain, cleaned, ex)
            return ServiceError(UPSTREAM_FAILED)

        if order is None:
            return NotFound(ORDER_NOT_FOUND)

        aggregated = self.aggregator.aggregate(shop, order)
        self._record_view(shop.shop_domain, cleaned, user_agent, ip_address)
        return Found(order=aggregated.order, enhanced_tracking=aggregated.enhanced_tracking)

    def lookup_for_shop(
        self,
        shop_domain: str,
        order_number: str,
        contact: str,
        *,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> LookupResult:
        """Public entry point: settings gate and token resolution, then `lookup`."""
        cleaned, contact = validate_lookup(order_number, contact)

        token: Optional[str] = None
        if self.settings is not None:
            cfg = self.settings.get_settings(shop_domain)
            if cfg is None or not cfg.tracking_enabled:
                return NotFound(TRACKING_UNAVAILABLE)
            token = self.settings.get_access_token(shop_domain)

        if not token:
            self.logger.warning("No access token for %s", shop_domain)
            return ServiceError(SHOP_NOT_AUTHORIZED, http_status=401)

        shop = ShopContext(shop_domain=shop_domain, access_token=token, api_version=self.api_version)
        return self.lookup(shop, cleaned, contact, user_agent=user_agent, ip_address=ip_address)

    def _record_view(
        self,
        shop_domain: str,
        order_number: str,
        user_agent: Optional[str],
        ip_address: Optional[str],
    ) -> None:
        if self.analytics is None:
            return
        analytics = self.analytics
        logger = self.logger

        def task() -> None:
            try:
                analytics.record_view(
                    shop_domain, order_number, user_agent=user_agent, ip_address=ip_address)
            except Exception as ex:
                logger.warning("Analytics not recorded for %s #%s: %s", shop_domain, order_number, ex)

        try:
            self.dispatch(task)
        except Exception as ex:
            self.logger.warning("Analytics dispatch failed: %s", ex)
