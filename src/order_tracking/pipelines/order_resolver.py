from __future__ import annotations

from typing import Optional
import logging
import string

from order_tracking.api.shopify import ORDER_SEARCH_LIMIT, ShopifyClient
from order_tracking.errors import ValidationError
from order_tracking.models import Order, ShopContext


def clean_order_number(order_number: str) -> str:
    """Trim whitespace and every leading '#', so cleaning twice changes nothing."""
    return str(order_number or "").strip().lstrip("#" + string.whitespace)


def validate_contact(contact: str) -> str:
    """
    Accept an e-mail (must contain '@' with text on both sides) or a phone
    string (must contain at least one digit). Returns the stripped value.
    """
    c = str(contact or "").strip()
    if not c:
        raise ValidationError("Order number and email or phone are required")
    if "@" in c:
        local, _, domain = c.rpartition("@")
        if not local or not domain:
            raise ValidationError("Contact e-mail is not valid")
        return c
    if not any(ch.isdigit() for ch in c):
        raise ValidationError("Contact must be an e-mail address or phone number")
    return c


def validate_lookup(order_number: str, contact: str) -> tuple[str, str]:
    """Fail fast on missing input. Returns (cleaned order number, contact)."""
    cleaned = clean_order_number(order_number)
    if not cleaned or not str(contact or "").strip():
        raise ValidationError("Order number and email or phone are required")
    return cleaned, validate_contact(contact)


class OrderMatchResolver:
    """Finds the order a shopper is allowed to see.

    The platform search only narrows candidates by number; the contact is
    the authentication factor and is compared after the fetch, never sent
    upstream.
    """

    def __init__(self, client: ShopifyClient, *, logger: Optional[logging.Logger] = None) -> None:
        self.client = client
        self.logger = logger or logging.getLogger("order_tracking.pipelines.order_resolver")

    def resolve(self, shop: ShopContext, order_number: str, contact: str) -> Optional[Order]:
        cleaned, contact = validate_lookup(order_number, contact)

        # UpstreamUnavailable propagates to the lookup service
        candidates = self.client.list_orders(
            shop, name=cleaned, status="any", limit=ORDER_SEARCH_LIMIT)
        if not candidates:
            self.logger.info("No orders for number %s on %s", cleaned, shop.shop_domain)
            return None

        for order in candidates:
            if order.matches_contact(contact):
                return order

        self.logger.info(
            "Order number %s on %s: %d candidate(s), none matched contact",
            cleaned, shop.shop_domain, len(candidates),
        )
        return None
