from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Optional
import logging
import warnings

import pandas as pd
from sqlalchemy import select

from order_tracking.errors import AnalyticsFailure

from .db import Database
from .tables import TrackingViewRow

_VIEW_COLUMNS = ["order_number", "user_agent", "ip_address", "viewed_at"]


class AnalyticsRecorder:
    """Persists tracking page views and aggregates them for the merchant."""

    def __init__(self, db: Database, *, logger: Optional[logging.Logger] = None) -> None:
        self.db = db
        self.logger = logger or logging.getLogger("order_tracking.storage.analytics")

    # ---- write ---------------------------------------------------------------

    def record_view(
        self,
        shop_domain: str,
        order_number: Optional[str],
        *,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> int:
        try:
            with self.db.session() as s:
                row = TrackingViewRow(
                    shop_domain=shop_domain,
                    order_number=(str(order_number).strip() or None) if order_number else None,
                    user_agent=user_agent,
                    ip_address=ip_address,
                )
                s.add(row)
                s.flush()
                return row.id
        except Exception as ex:
            raise AnalyticsFailure(f"could not record view for {shop_domain}: {ex}") from ex

    # ---- read ----------------------------------------------------------------

    def views_frame(self, shop_domain: str, days: int = 30, *, now: Optional[datetime] = None) -> pd.DataFrame:
        """All views for the shop in the trailing window as a DataFrame (UTC timestamps)."""
        now = now or datetime.now(timezone.utc)
        since = now - timedelta(days=int(days))
        stmt = select(
            TrackingViewRow.order_number,
            TrackingViewRow.user_agent,
            TrackingViewRow.ip_address,
            TrackingViewRow.viewed_at,
        ).where(TrackingViewRow.shop_domain == shop_domain)

        with self.db.engine.connect() as conn:
            df = pd.read_sql(stmt, conn)

        if df.empty:
            return pd.DataFrame(columns=_VIEW_COLUMNS)

        df["viewed_at"] = pd.to_datetime(df["viewed_at"], utc=True, errors="coerce")
        # SQLite drops tz info; stored values are UTC by construction
        return df[df["viewed_at"] >= pd.Timestamp(since)].reset_index(drop=True)

    def summary(self, shop_domain: str, days: int = 30, *, now: Optional[datetime] = None) -> dict[str, Any]:
        df = self.views_frame(shop_domain, days, now=now)
        return {
            "totalViews": int(len(df)),
            "uniqueVisitors": int(df["ip_address"].dropna().nunique()),
            "uniqueOrders": int(df["order_number"].dropna().nunique()),
            "period": f"{int(days)}d",
        }

    def top_orders(
        self, shop_domain: str, days: int = 30, limit: int = 10, *, now: Optional[datetime] = None
    ) -> list[dict[str, Any]]:
        df = self.views_frame(shop_domain, days, now=now).dropna(subset=["order_number"])
        if df.empty:
            return []
        grouped = (
            df.groupby("order_number")
            .agg(views=("viewed_at", "size"), last_viewed=("viewed_at", "max"))
            .reset_index()
            .sort_values(["views", "last_viewed"], ascending=[False, False])
            .head(int(limit))
        )
        return [
            {
                "orderNumber": r.order_number,
                "views": int(r.views),
                "lastViewed": r.last_viewed.date().isoformat(),
            }
            for r in grouped.itertuples(index=False)
        ]

    def daily_views(self, shop_domain: str, days: int = 30, *, now: Optional[datetime] = None) -> pd.DataFrame:
        """One row per calendar day (UTC) in the window, zero-filled."""
        now = now or datetime.now(timezone.utc)
        df = self.views_frame(shop_domain, days, now=now)
        end = pd.Timestamp(now).tz_convert("UTC").normalize()
        index = pd.date_range(end=end, periods=int(days) + 1, freq="D").date
        if df.empty:
            counts = pd.Series(0, index=index)
        else:
            counts = df["viewed_at"].dt.date.value_counts().reindex(index, fill_value=0)
        out = counts.rename_axis("date").reset_index(name="views")
        out["views"] = out["views"].astype("int64")
        return out

    def export_workbook(self, shop_domain: str, path: Path | str, days: int = 30) -> Path:
        """Write Summary / Top Orders / Daily Views / Views sheets to an .xlsx file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        now = datetime.now(timezone.utc)

        summary = pd.DataFrame([self.summary(shop_domain, days, now=now)])
        top = pd.DataFrame(self.top_orders(shop_domain, days, now=now),
                           columns=["orderNumber", "views", "lastViewed"])
        daily = self.daily_views(shop_domain, days, now=now)
        views = self.views_frame(shop_domain, days, now=now)
        if not views.empty:
            # Excel cannot store tz-aware datetimes
            views["viewed_at"] = views["viewed_at"].dt.tz_convert(None)

        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            with pd.ExcelWriter(path, engine="openpyxl", mode="w") as xw:
                summary.to_excel(xw, sheet_name="Summary", index=False)
                top.to_excel(xw, sheet_name="Top Orders", index=False)
                daily.to_excel(xw, sheet_name="Daily Views", index=False)
                views.to_excel(xw, sheet_name="Views", index=False, na_rep="")

        self.logger.info("Analytics for %s written to %s", shop_domain, path)
        return path


Dispatcher = Callable[[Callable[[], Any]], Any]


class BackgroundDispatcher:
    """Runs analytics writes off the response path; errors are logged, never raised."""

    def __init__(self, max_workers: int = 2, *, logger: Optional[logging.Logger] = None) -> None:
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="analytics")
        self.logger = logger or logging.getLogger("order_tracking.storage.analytics")

    def __call__(self, fn: Callable[[], Any]) -> Future:
        fut = self._pool.submit(fn)
        fut.add_done_callback(self._log_failure)
        return fut

    def _log_failure(self, fut: Future) -> None:
        if fut.cancelled():
            return
        ex = fut.exception()
        if ex is not None:
            self.logger.warning("Background analytics task failed: %s", ex)

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)


def inline_dispatcher(fn: Callable[[], Any]) -> Any:
    """Runs the task immediately in the caller's thread (CLI and tests)."""
    return fn()
