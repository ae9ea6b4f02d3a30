from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional
import logging

from order_tracking.api.carriers import CarrierTrackingClient
from order_tracking.api.shopify import ShopifyClient
from order_tracking.errors import UpstreamUnavailable
from order_tracking.models import Fulfillment, Order, ShopContext, TrackingSnapshot


@dataclass(frozen=True)
class AggregatedOrder:
    order: Order
    enhanced_tracking: Optional[TrackingSnapshot] = None


class FulfillmentAggregator:
    """Attaches fulfillments and carrier tracking to a matched order.

    Only the first fulfillment with a carrier and tracking number is
    enhanced unless `enhance_all` is set. Nothing in here fails the lookup:
    a fulfillment fetch error yields an empty list and a carrier error
    drops the enhanced snapshot.
    """

    def __init__(
        self,
        client: ShopifyClient,
        tracker: CarrierTrackingClient,
        *,
        enhance_all: bool = False,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.client = client
        self.tracker = tracker
        self.enhance_all = enhance_all
        self.logger = logger or logging.getLogger(
            "order_tracking.pipelines.fulfillment_aggregator")

    def _fetch(self, shop: ShopContext, order: Order) -> List[Fulfillment]:
        try:
            return self.client.get_fulfillments(shop, order.id)
        except UpstreamUnavailable as ex:
            self.logger.warning(
                "Fulfillments unavailable for order %s on %s: %s", order.id, shop.shop_domain, ex)
            return []

    def _track(self, fulfillment: Fulfillment) -> Optional[TrackingSnapshot]:
        try:
            return self.tracker.track(fulfillment.tracking_company, fulfillment.tracking_number)
        except Exception as ex:
            self.logger.warning(
                "Enhanced tracking skipped for fulfillment %s: %s", fulfillment.id, ex)
            return None

    def aggregate(self, shop: ShopContext, order: Order) -> AggregatedOrder:
        fulfillments = self._fetch(shop, order)
        if not fulfillments:
            self.logger.debug("Order %s has no fulfillments yet", order.id)
            return AggregatedOrder(order=order.with_fulfillments([]))

        enhanced: Optional[TrackingSnapshot] = None
        attempted = False
        out: List[Fulfillment] = []
        for f in fulfillments:
            if not f.has_tracking or (attempted and not self.enhance_all):
                out.append(f)
                continue
            snapshot = self._track(f)
            if not attempted:
                enhanced = snapshot
                attempted = True
            out.append(f.with_tracking(snapshot) if self.enhance_all else f)

        return AggregatedOrder(order=order.with_fulfillments(out), enhanced_tracking=enhanced)
