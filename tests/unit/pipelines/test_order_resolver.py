# tests/unit/pipelines/test_order_resolver.py
import pytest

from order_tracking.errors import UpstreamUnavailable, ValidationError
from order_tracking.models import Order, ShopContext
from order_tracking.pipelines.order_resolver import (
    OrderMatchResolver,
    clean_order_number,
    validate_contact,
    validate_lookup,
)

SHOP = ShopContext("demo.myshopify.com", "tok")


class FakeShopify:
    def __init__(self, orders=None, error=None):
        self.orders = orders or []
        self.error = error
        self.calls = []

    def list_orders(self, shop, *, name, status="any", limit=10):
        self.calls.append({"name": name, "status": status, "limit": limit})
        if self.error is not None:
            raise self.error
        return list(self.orders)


def test_clean_order_number_is_idempotent():
    assert clean_order_number("#1002") == "1002"
    assert clean_order_number("  #1002 ") == "1002"
    assert clean_order_number("1002") == "1002"
    assert clean_order_number(clean_order_number("#1002")) == "1002"
    assert clean_order_number("##1002") == "1002"
    assert clean_order_number("# #1002") == "1002"


@pytest.mark.parametrize("raw", ["##1002", " #1002", "# # 1002 ", "1002", "#", ""])
def test_cleaning_twice_changes_nothing(raw):
    once = clean_order_number(raw)
    assert clean_order_number(once) == once


@pytest.mark.parametrize("contact", ["jane@example.com", "+1 (555) 123-4567", "5551234567"])
def test_validate_contact_accepts_email_or_phone(contact):
    assert validate_contact(f" {contact} ") == contact


@pytest.mark.parametrize("contact", ["", "   ", "@example.com", "jane@", "no-digits-here"])
def test_validate_contact_rejects_malformed(contact):
    with pytest.raises(ValidationError):
        validate_contact(contact)


@pytest.mark.parametrize("number,contact", [("", "a@b.c"), ("#", "a@b.c"), ("1002", ""), (None, None)])
def test_validate_lookup_requires_both_fields(number, contact):
    with pytest.raises(ValidationError) as e:
        validate_lookup(number, contact)
    assert "required" in str(e.value)


def test_resolve_returns_matching_candidate_and_searches_cleaned_number():
    other = Order.from_api({"id": 1, "name": "#10020", "email": "someone@example.com"})
    jane = Order.from_api({"id": 2, "name": "#1002", "email": "jane@example.com"})
    shopify = FakeShopify([other, jane])

    found = OrderMatchResolver(shopify).resolve(SHOP, "#1002", "JANE@example.com")

    assert found is jane
    assert shopify.calls == [{"name": "1002", "status": "any", "limit": 10}]


def test_resolve_by_phone_is_exact():
    order = Order.from_api({"id": 3, "phone": "+15551234567"})
    resolver = OrderMatchResolver(FakeShopify([order]))
    assert resolver.resolve(SHOP, "1003", "+15551234567") is order
    assert resolver.resolve(SHOP, "1003", "15551234567") is None


def test_wrong_contact_and_missing_order_look_the_same():
    order = Order.from_api({"id": 2, "email": "jane@example.com"})
    assert OrderMatchResolver(FakeShopify([order])).resolve(SHOP, "1002", "mallory@example.com") is None
    assert OrderMatchResolver(FakeShopify([])).resolve(SHOP, "9999", "jane@example.com") is None


def test_validation_happens_before_any_upstream_call():
    shopify = FakeShopify()
    with pytest.raises(ValidationError):
        OrderMatchResolver(shopify).resolve(SHOP, "#", "jane@example.com")
    assert shopify.calls == []


def test_upstream_failure_propagates():
    shopify = FakeShopify(error=UpstreamUnavailable("down", status_code=503))
    with pytest.raises(UpstreamUnavailable):
        OrderMatchResolver(shopify).resolve(SHOP, "1002", "jane@example.com")
