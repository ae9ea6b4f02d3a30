# src/order_tracking/cli.py
from __future__ import annotations

import argparse
import json
from pathlib import Path

from .config.env import get_app_env
from .config.logging_config import get_logger
from .errors import ConfigError, UpstreamUnavailable, ValidationError


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR). Default: INFO",
    )
    p.add_argument(
        "--no-console",
        action="store_true",
        help="Disable console logging (file logging remains).",
    )
    p.add_argument("--log-file", type=Path, default=None,
                   help="Also write logs to this file (rotated).")
    p.add_argument("--env-file", type=Path, default=Path(".env"),
                   help="Path to the .env file to load. Default: ./.env")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="order-tracking",
        description="Order tracking lookup, storefront API and merchant analytics.",
    )
    sub = p.add_subparsers(dest="command", required=True)

    lk = sub.add_parser("lookup", help="Look up an order by number and e-mail/phone.")
    lk.add_argument("shop", help="Shop domain, e.g. example.myshopify.com")
    lk.add_argument("order_number", help="Order number, with or without '#'.")
    lk.add_argument("contact", help="E-mail or phone stored on the order.")
    lk.add_argument(
        "--respect-settings",
        action="store_true",
        help="Apply the shop's tracking-enabled gate like the storefront endpoint does.",
    )
    _add_common(lk)

    sv = sub.add_parser("serve", help="Run the storefront HTTP API.")
    sv.add_argument("--host", default="127.0.0.1")
    sv.add_argument("--port", type=int, default=8000)
    _add_common(sv)

    st = sub.add_parser("settings", help="Show or update a shop's tracking settings.")
    st.add_argument("shop")
    page = st.add_mutually_exclusive_group()
    page.add_argument("--enable-page", dest="page", action="store_const", const=True)
    page.add_argument("--disable-page", dest="page", action="store_const", const=False)
    block = st.add_mutually_exclusive_group()
    block.add_argument("--enable-block", dest="block", action="store_const", const=True)
    block.add_argument("--disable-block", dest="block", action="store_const", const=False)
    st.add_argument("--page-title", default=None)
    st.add_argument("--access-token", default=None,
                    help="Store the platform access token for this shop.")
    _add_common(st)

    an = sub.add_parser("analytics", help="Summarize tracking page views.")
    an.add_argument("shop")
    an.add_argument("--days", type=int, default=30)
    an.add_argument("--limit", type=int, default=10, help="Number of top orders to list.")
    an.add_argument("--export", type=Path, default=None,
                    help="Write the report to this .xlsx file.")
    _add_common(an)
    return p


def _print_json(obj) -> None:
    print(json.dumps(obj, indent=2, default=str))


def _cmd_lookup(args, cfg, logger) -> int:
    from .models import ShopContext
    from .pipelines.lookup_service import TrackingLookupService
    from .storage import AnalyticsRecorder, Database, SettingsStore

    db = Database(cfg.DATABASE_URL)
    settings = SettingsStore(db, fallback_access_token=cfg.SHOPIFY_ACCESS_TOKEN)
    service = TrackingLookupService.from_config(
        cfg, settings=settings, analytics=AnalyticsRecorder(db))

    try:
        if args.respect_settings:
            result = service.lookup_for_shop(args.shop, args.order_number, args.contact)
        else:
            token = settings.get_access_token(args.shop)
            if not token:
                logger.error("No access token for %s (set SHOPIFY_ACCESS_TOKEN)", args.shop)
                return 2
            shop = ShopContext(args.shop, token, cfg.SHOPIFY_API_VERSION)
            result = service.lookup(shop, args.order_number, args.contact)
    except ValidationError as e:
        logger.error("Invalid input: %s", e)
        return 2

    _print_json(result.to_dict())
    return 0 if result.success else 1


def _cmd_serve(args, cfg, logger) -> int:
    import uvicorn

    from .web.app import create_app

    app = create_app(cfg)
    logger.info("Serving on http://%s:%s", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())
    return 0


def _cmd_settings(args, cfg, logger) -> int:
    from .storage import Database, SettingsStore

    store = SettingsStore(Database(cfg.DATABASE_URL))
    changes = {}
    if args.page is not None:
        changes["tracking_page_enabled"] = args.page
    if args.block is not None:
        changes["tracking_block_enabled"] = args.block
    if args.page_title is not None:
        changes["page_title"] = args.page_title

    if args.access_token:
        store.store_shop_data(args.shop, args.access_token)
        logger.info("Access token stored for %s", args.shop)

    if changes:
        current = store.update_settings(args.shop, **changes)
        logger.info("Settings updated for %s: %s", args.shop, ", ".join(sorted(changes)))
    else:
        current = store.get_settings(args.shop)
        if current is None:
            logger.error("No settings stored for %s", args.shop)
            return 1

    _print_json(current.to_dict())
    return 0


def _cmd_analytics(args, cfg, logger) -> int:
    from .storage import AnalyticsRecorder, Database

    recorder = AnalyticsRecorder(Database(cfg.DATABASE_URL))
    report = {
        "summary": recorder.summary(args.shop, args.days),
        "topOrders": recorder.top_orders(args.shop, args.days, args.limit),
    }
    _print_json(report)

    if args.export:
        path = recorder.export_workbook(args.shop, args.export, args.days)
        logger.info("Report written: %s", path)
    return 0


_COMMANDS = {
    "lookup": _cmd_lookup,
    "serve": _cmd_serve,
    "settings": _cmd_settings,
    "analytics": _cmd_analytics,
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logger = get_logger(
        "order_tracking",
        level=args.log_level,
        console=not args.no_console,
        log_file=args.log_file,
    )
    logger.debug("Logger initialized.")

    try:
        cfg = get_app_env(args.env_file, strict=False)
    except ConfigError as e:
        logger.error("Environment error: %s", e)
        return 2

    try:
        return _COMMANDS[args.command](args, cfg, logger)
    except UpstreamUnavailable as e:
        logger.error("Commerce platform unavailable: %s", e)
        return 1
    except Exception as e:
        logger.exception("Command %s failed: %s", args.command, e)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
