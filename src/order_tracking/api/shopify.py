from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import logging

from order_tracking.errors import UpstreamUnavailable
from order_tracking.models import Fulfillment, Order, RecommendedProduct, ShopContext

from .transport import RequestsTransport

# Exact-number searches should return at most one true match, but the
# platform's name filter can be fuzzy.
ORDER_SEARCH_LIMIT = 10
RECOMMENDED_PRODUCTS_LIMIT = 4
_PRODUCT_FIELDS = "id,title,handle,images,variants,product_type,tags"


def _truncate(text: Optional[str], limit: int = 2000) -> Optional[str]:
    if text and len(text) > limit:
        return text[:limit] + "..."
    return text


@dataclass
class ShopifyConfig:
    api_version: str = "2023-10"
    scheme: str = "https"


class ShopifyClient:
    """Read-only client for the platform's REST Admin order API.

    Responsibilities:
    - list_orders(shop, name=...): search orders by name across all statuses.
    - get_fulfillments(shop, order_id): fetch the shipments of one order.
    - get_recommended_products(shop, limit): published products for the storefront upsell.

    Every transport or HTTP failure is raised as UpstreamUnavailable so the
    lookup can tell "service down" apart from "no such order".
    """

    def __init__(
        self,
        cfg: Optional[ShopifyConfig] = None,
        transport: Optional[RequestsTransport] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.cfg = cfg or ShopifyConfig()
        self.transport = transport or RequestsTransport()
        self.logger: logging.Logger = logger or logging.getLogger(
            "order_tracking.api.shopify"
        )

    def _url(self, shop: ShopContext, path: str) -> str:
        version = shop.api_version or self.cfg.api_version
        domain = shop.shop_domain.strip().rstrip("/")
        if "://" in domain:
            domain = domain.split("://", 1)[1]
        return f"{self.cfg.scheme}://{domain}/admin/api/{version}/{path.lstrip('/')}"

    def _get_json(self, shop: ShopContext, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = self._url(shop, path)
        headers = {
            "X-Shopify-Access-Token": shop.access_token,
            "Accept": "application/json",
        }
        self.logger.debug("GET %s params=%s", url, params)

        try:
            resp = self.transport.get(url, headers=headers, params=params)
        except Exception as ex:
            self.logger.warning("Commerce API transport failed for %s: %s", url, ex)
            raise UpstreamUnavailable(f"transport error: {ex}") from ex

        status = getattr(resp, "status_code", None)
        try:
            resp.raise_for_status()
            payload = resp.json()
        except Exception as ex:
            self.logger.warning(
                "Commerce API %s returned error status=%s exception=%s response_body=%s",
                url,
                status,
                ex,
                _truncate(getattr(resp, "text", None)),
            )
            raise UpstreamUnavailable(
                f"commerce API error (status={status})", status_code=status
            ) from ex

        if not isinstance(payload, dict):
            raise UpstreamUnavailable(
                "commerce API returned a non-object body", status_code=status)
        return payload

    def list_orders(
        self,
        shop: ShopContext,
        *,
        name: str,
        status: str = "any",
        limit: int = ORDER_SEARCH_LIMIT,
    ) -> List[Order]:
        body = self._get_json(
            shop,
            "orders.json",
            params={"name": name, "status": status, "limit": limit},
        )
        raw = body.get("orders") or []
        orders = [Order.from_api(o) for o in raw if isinstance(o, dict)]
        self.logger.debug("orders search name=%s returned %d candidate(s)", name, len(orders))
        return orders

    def get_fulfillments(self, shop: ShopContext, order_id: Any) -> List[Fulfillment]:
        body = self._get_json(shop, f"orders/{order_id}/fulfillments.json")
        raw = body.get("fulfillments") or []
        return [Fulfillment.from_api(f) for f in raw if isinstance(f, dict)]

    def get_recommended_products(
        self,
        shop: ShopContext,
        limit: int = RECOMMENDED_PRODUCTS_LIMIT,
    ) -> List[RecommendedProduct]:
        body = self._get_json(
            shop,
            "products.json",
            params={"limit": limit, "published_status": "published", "fields": _PRODUCT_FIELDS},
        )
        raw = body.get("products") or []
        return [RecommendedProduct.from_api(p) for p in raw if isinstance(p, dict)]
