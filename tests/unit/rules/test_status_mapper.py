# tests/unit/rules/test_status_mapper.py
import pytest

from order_tracking.models import CanonicalStatus
from order_tracking.rules.status_mapper import match_status, normalize_status


@pytest.mark.parametrize("raw,expected", [
    ("Delivered to front door", CanonicalStatus.DELIVERED),
    ("Package is out for delivery", CanonicalStatus.OUT_FOR_DELIVERY),
    ("Delivered", CanonicalStatus.DELIVERED),
    ("DELIVERED - Front Door", CanonicalStatus.DELIVERED),
    ("Out For Delivery Today", CanonicalStatus.OUT_FOR_DELIVERY),
    ("In Transit to Next Facility", CanonicalStatus.IN_TRANSIT),
    ("Your package is on the way", CanonicalStatus.IN_TRANSIT),
    ("Picked up by carrier", CanonicalStatus.PICKED_UP),
    ("Shipment collected", CanonicalStatus.PICKED_UP),
    ("Label created, preparing shipment", CanonicalStatus.PROCESSING),
    ("Processing at UPS Facility", CanonicalStatus.PROCESSING),
    ("Delivery exception", CanonicalStatus.EXCEPTION),
    ("Shipment delayed", CanonicalStatus.EXCEPTION),
    ("Returned to shipper", CanonicalStatus.RETURNED),
])
def test_normalize_status_keyword_buckets(raw, expected):
    assert normalize_status(raw) is expected


def test_first_rule_wins_for_mixed_wording():
    # "delivered" is checked before "returned"
    assert normalize_status("Delivered, returned to sender") is CanonicalStatus.DELIVERED
    # "out for delivery" does not contain "delivered"
    assert normalize_status("Out for delivery, delayed") is CanonicalStatus.OUT_FOR_DELIVERY


def test_unmatched_and_blank_text_is_unknown():
    assert normalize_status("Label information received") is CanonicalStatus.UNKNOWN
    assert normalize_status("") is CanonicalStatus.UNKNOWN
    assert normalize_status("   ") is CanonicalStatus.UNKNOWN
    assert normalize_status(None) is CanonicalStatus.UNKNOWN


def test_match_status_returns_none_when_no_rule_applies():
    assert match_status("Arrived at hub") is None
    assert match_status("in transit") is CanonicalStatus.IN_TRANSIT


def test_status_values_are_display_strings():
    assert str(CanonicalStatus.OUT_FOR_DELIVERY) == "Out for Delivery"
    assert CanonicalStatus.UNKNOWN.value == "Unknown"
