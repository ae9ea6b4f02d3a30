# src/order_tracking/web/app.py
from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from order_tracking.api.carriers import CarrierTrackingClient
from order_tracking.api.shopify import RECOMMENDED_PRODUCTS_LIMIT, ShopifyClient
from order_tracking.config.env import AppConfig
from order_tracking.errors import AnalyticsFailure, UpstreamUnavailable, ValidationError
from order_tracking.models import ShopContext
from order_tracking.pipelines.lookup_service import SHOP_NOT_AUTHORIZED, TrackingLookupService
from order_tracking.storage import (
    AnalyticsRecorder,
    BackgroundDispatcher,
    Database,
    SettingsStore,
)
from order_tracking.storage.analytics import Dispatcher

logger = logging.getLogger("order_tracking.web")


class LookupRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_number: Optional[str] = Field(default=None, alias="orderNumber")
    email: Optional[str] = None
    phone: Optional[str] = None
    contact: Optional[str] = None

    @property
    def contact_value(self) -> str:
        return (self.email or self.phone or self.contact or "").strip()


class ViewRequest(BaseModel):
    order_number: Optional[str] = None
    page_type: Optional[str] = None


class BlockEvent(BaseModel):
    event: Optional[str] = None
    order_number: Optional[str] = None
    block_id: Optional[str] = None
    timestamp: Optional[str] = None


LOOKUP_SUCCESS_EVENT = "order_lookup_success"
_STORE_REFERER = re.compile(r"https?://([^./]+)\.myshopify\.com")


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None


def _block_shop_domain(request: Request) -> Optional[str]:
    """The storefront block reports from the shop's own pages; fall back to X-Shop-Domain."""
    m = _STORE_REFERER.match(request.headers.get("referer") or "")
    if m:
        return f"{m.group(1)}.myshopify.com"
    return (request.headers.get("x-shop-domain") or "").strip() or None


def build_router(
    service: TrackingLookupService,
    settings: SettingsStore,
    analytics: AnalyticsRecorder,
    tracker: CarrierTrackingClient,
    shopify: ShopifyClient,
    *,
    api_version: str = "2023-10",
) -> APIRouter:
    router = APIRouter(prefix="/api/tracking", tags=["tracking"])

    @router.post("/lookup/{shop_domain}")
    def lookup(shop_domain: str, body: LookupRequest, request: Request):
        try:
            result = service.lookup_for_shop(
                shop_domain,
                body.order_number or "",
                body.contact_value,
                user_agent=request.headers.get("user-agent"),
                ip_address=_client_ip(request),
            )
        except ValidationError as ex:
            return JSONResponse(status_code=400, content={"success": False, "error": str(ex)})
        return JSONResponse(status_code=result.http_status, content=result.to_dict())

    @router.get("/settings/{shop_domain}")
    def public_settings(shop_domain: str):
        cfg = settings.get_settings(shop_domain)
        if cfg is None:
            raise HTTPException(status_code=404, detail="Store not found")
        return {"settings": cfg.public_dict()}

    @router.get("/products/{shop_domain}")
    def recommended_products(shop_domain: str, limit: int = RECOMMENDED_PRODUCTS_LIMIT):
        cfg = settings.get_settings(shop_domain)
        if cfg is None or not cfg.show_recommended_products:
            return {"products": []}

        token = settings.get_access_token(shop_domain)
        if not token:
            return JSONResponse(status_code=401, content={"success": False, "error": SHOP_NOT_AUTHORIZED})

        shop = ShopContext(shop_domain=shop_domain, access_token=token, api_version=api_version)
        try:
            products = shopify.get_recommended_products(shop, limit=limit)
        except UpstreamUnavailable as ex:
            logger.warning("Recommended products unavailable for %s: %s", shop_domain, ex)
            return JSONResponse(status_code=500, content={"success": False, "error": "Failed to fetch products"})
        return {"success": True, "products": [p.to_dict() for p in products]}

    @router.post("/analytics/{shop_domain}/view")
    def record_view(shop_domain: str, body: ViewRequest, request: Request):
        try:
            analytics.record_view(
                shop_domain,
                body.order_number,
                user_agent=request.headers.get("user-agent") or "",
                ip_address=_client_ip(request),
            )
        except AnalyticsFailure as ex:
            logger.warning("View not recorded: %s", ex)
            raise HTTPException(status_code=500, detail="Failed to record view")
        return {"message": "View recorded"}

    @router.post("/analytics/track")
    def record_block_event(body: BlockEvent, request: Request):
        shop_domain = _block_shop_domain(request)
        if shop_domain is None:
            raise HTTPException(status_code=400, detail="Shop domain not found")

        # only successful lookups count as views
        if body.event == LOOKUP_SUCCESS_EVENT and body.order_number:
            try:
                analytics.record_view(
                    shop_domain,
                    body.order_number,
                    user_agent=request.headers.get("user-agent") or "",
                    ip_address=_client_ip(request),
                )
            except AnalyticsFailure as ex:
                logger.warning("Block event not recorded: %s", ex)
                raise HTTPException(status_code=500, detail="Failed to record analytics")
        return {"message": "Analytics recorded"}

    @router.get("/carriers")
    def carriers():
        return {"carriers": tracker.supported_carriers()}

    return router


def create_app(
    cfg: AppConfig,
    *,
    db: Optional[Database] = None,
    tracker: Optional[CarrierTrackingClient] = None,
    service: Optional[TrackingLookupService] = None,
    dispatch: Optional[Dispatcher] = None,
    shopify: Optional[ShopifyClient] = None,
) -> FastAPI:
    """Wire storage, platform and carrier clients and the lookup service into a FastAPI app."""
    db = db or Database(cfg.DATABASE_URL)
    settings = SettingsStore(db, fallback_access_token=cfg.SHOPIFY_ACCESS_TOKEN)
    analytics = AnalyticsRecorder(db)
    shopify = shopify or ShopifyClient()
    tracker = tracker or CarrierTrackingClient.from_credentials(
        cfg.carrier_credentials, timeout=cfg.CARRIER_TIMEOUT)

    background: Optional[BackgroundDispatcher] = None
    if dispatch is None:
        background = BackgroundDispatcher()
        dispatch = background

    service = service or TrackingLookupService.from_config(
        cfg, settings=settings, analytics=analytics, dispatch=dispatch,
        shopify=shopify, tracker=tracker)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        if background is not None:
            background.shutdown(wait=True)

    app = FastAPI(title="Order Tracking", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def _unhandled_exc(_req: Request, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to lookup tracking information",
                     "message": "Please try again later"},
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_exc(_req: Request, exc: RequestValidationError):
        return JSONResponse(status_code=422, content={"success": False, "error": "Invalid request body"})

    @app.exception_handler(HTTPException)
    async def _http_exc(_req: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(build_router(
        service, settings, analytics, tracker, shopify, api_version=cfg.SHOPIFY_API_VERSION))
    app.state.db = db
    app.state.settings = settings
    app.state.analytics = analytics
    return app
