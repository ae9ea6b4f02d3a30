# tests/unit/pipelines/test_fulfillment_aggregator.py
from order_tracking.errors import UpstreamUnavailable
from order_tracking.models import CanonicalStatus, Fulfillment, Order, ShopContext, TrackingSnapshot
from order_tracking.pipelines.fulfillment_aggregator import FulfillmentAggregator

SHOP = ShopContext("demo.myshopify.com", "tok")
ORDER = Order.from_api({"id": 42, "name": "#1002", "email": "jane@example.com"})


class FakeShopify:
    def __init__(self, fulfillments=None, error=None):
        self.fulfillments = fulfillments or []
        self.error = error

    def get_fulfillments(self, shop, order_id):
        if self.error is not None:
            raise self.error
        return list(self.fulfillments)


class FakeTracker:
    def __init__(self, fail_on=()):
        self.calls = []
        self.fail_on = set(fail_on)

    def track(self, carrier, tracking_number):
        self.calls.append((carrier, tracking_number))
        if tracking_number in self.fail_on:
            raise RuntimeError("carrier exploded")
        return TrackingSnapshot(carrier=carrier, tracking_number=tracking_number,
                                status=CanonicalStatus.IN_TRANSIT,
                                tracking_url="https://example.test", is_live_data=False)


def _f(fid, carrier=None, tn=None):
    return Fulfillment.from_api({"id": fid, "tracking_company": carrier, "tracking_number": tn})


def test_only_first_tracked_fulfillment_is_enhanced():
    tracker = FakeTracker()
    shopify = FakeShopify([_f(1), _f(2, "UPS", "1Z1"), _f(3, "FedEx", "FX2")])

    out = FulfillmentAggregator(shopify, tracker).aggregate(SHOP, ORDER)

    assert tracker.calls == [("UPS", "1Z1")]
    assert out.enhanced_tracking.tracking_number == "1Z1"
    assert [f.id for f in out.order.fulfillments] == [1, 2, 3]
    assert all(f.enhanced_tracking is None for f in out.order.fulfillments)


def test_enhance_all_attaches_snapshot_to_each_tracked_fulfillment():
    tracker = FakeTracker()
    shopify = FakeShopify([_f(1, "UPS", "1Z1"), _f(2), _f(3, "FedEx", "FX2")])

    out = FulfillmentAggregator(shopify, tracker, enhance_all=True).aggregate(SHOP, ORDER)

    assert tracker.calls == [("UPS", "1Z1"), ("FedEx", "FX2")]
    assert out.enhanced_tracking.tracking_number == "1Z1"
    tracked = [f.enhanced_tracking for f in out.order.fulfillments]
    assert tracked[0].tracking_number == "1Z1"
    assert tracked[1] is None
    assert tracked[2].tracking_number == "FX2"


def test_fulfillment_fetch_failure_yields_empty_list():
    shopify = FakeShopify(error=UpstreamUnavailable("timeout"))
    out = FulfillmentAggregator(shopify, FakeTracker()).aggregate(SHOP, ORDER)
    assert out.order.fulfillments == []
    assert out.enhanced_tracking is None
    assert out.order.name == "#1002"


def test_no_tracked_fulfillments_means_no_carrier_call():
    tracker = FakeTracker()
    out = FulfillmentAggregator(FakeShopify([_f(1), _f(2, "UPS", "")]), tracker).aggregate(SHOP, ORDER)
    assert tracker.calls == []
    assert out.enhanced_tracking is None
    assert len(out.order.fulfillments) == 2


def test_tracker_exception_drops_snapshot_without_trying_the_next():
    tracker = FakeTracker(fail_on={"1Z1"})
    shopify = FakeShopify([_f(1, "UPS", "1Z1"), _f(2, "UPS", "1Z2")])

    out = FulfillmentAggregator(shopify, tracker).aggregate(SHOP, ORDER)

    assert tracker.calls == [("UPS", "1Z1")]
    assert out.enhanced_tracking is None
    assert len(out.order.fulfillments) == 2


def test_source_order_is_not_mutated():
    FulfillmentAggregator(FakeShopify([_f(1, "UPS", "1Z1")]), FakeTracker()).aggregate(SHOP, ORDER)
    assert ORDER.fulfillments == []
