# tests/unit/storage/test_analytics.py
from datetime import datetime, timedelta, timezone
from pathlib import Path
import logging
import threading

import pandas as pd
import pytest

from order_tracking.errors import AnalyticsFailure
from order_tracking.storage import AnalyticsRecorder, BackgroundDispatcher, Database, inline_dispatcher
from order_tracking.storage.tables import TrackingViewRow

SHOP = "demo.myshopify.com"


def _recorder(tmp_path: Path) -> AnalyticsRecorder:
    return AnalyticsRecorder(Database.sqlite_file(tmp_path / "analytics.sqlite"))


def _seed(rec: AnalyticsRecorder, rows):
    """rows: (order_number, ip, viewed_at) tuples written straight to the table."""
    with rec.db.session() as s:
        for order_number, ip, viewed_at in rows:
            s.add(TrackingViewRow(shop_domain=SHOP, order_number=order_number,
                                  ip_address=ip, user_agent="ua", viewed_at=viewed_at))


NOW = datetime(2025, 10, 10, 12, 0, tzinfo=timezone.utc)


def test_record_view_for_unknown_shop_succeeds(tmp_path: Path):
    rec = _recorder(tmp_path)
    view_id = rec.record_view("never-installed.myshopify.com", "1002",
                              user_agent="Mozilla", ip_address="10.0.0.1")
    assert isinstance(view_id, int)
    assert rec.summary("never-installed.myshopify.com")["totalViews"] == 1


def test_record_view_wraps_storage_errors(tmp_path: Path):
    rec = _recorder(tmp_path)
    rec.db.dispose()
    with rec.db.engine.begin() as conn:
        conn.exec_driver_sql("DROP TABLE tracking_analytics")
    with pytest.raises(AnalyticsFailure):
        rec.record_view(SHOP, "1002")


def test_summary_and_top_orders(tmp_path: Path):
    rec = _recorder(tmp_path)
    _seed(rec, [
        ("1002", "1.1.1.1", NOW - timedelta(days=1)),
        ("1002", "2.2.2.2", NOW - timedelta(hours=2)),
        ("1003", "1.1.1.1", NOW - timedelta(days=3)),
        (None, "3.3.3.3", NOW - timedelta(days=2)),
        ("1004", "4.4.4.4", NOW - timedelta(days=45)),
    ])

    summary = rec.summary(SHOP, 30, now=NOW)
    assert summary == {"totalViews": 4, "uniqueVisitors": 3, "uniqueOrders": 2, "period": "30d"}

    top = rec.top_orders(SHOP, 30, now=NOW)
    assert [t["orderNumber"] for t in top] == ["1002", "1003"]
    assert top[0]["views"] == 2
    assert top[0]["lastViewed"] == "2025-10-10"


def test_other_shops_are_not_counted(tmp_path: Path):
    rec = _recorder(tmp_path)
    rec.record_view("other.myshopify.com", "1", ip_address="9.9.9.9")
    assert rec.summary(SHOP)["totalViews"] == 0
    assert rec.top_orders(SHOP) == []


def test_daily_views_is_zero_filled(tmp_path: Path):
    rec = _recorder(tmp_path)
    _seed(rec, [
        ("1002", "1.1.1.1", NOW - timedelta(days=1)),
        ("1002", "1.1.1.1", NOW - timedelta(days=1, hours=1)),
        ("1003", "1.1.1.1", NOW),
    ])
    daily = rec.daily_views(SHOP, 3, now=NOW)

    assert list(daily.columns) == ["date", "views"]
    assert len(daily) == 4
    by_day = {d.isoformat(): v for d, v in zip(daily["date"], daily["views"])}
    assert by_day == {"2025-10-07": 0, "2025-10-08": 0, "2025-10-09": 2, "2025-10-10": 1}


def test_export_workbook_writes_all_sheets(tmp_path: Path):
    rec = _recorder(tmp_path)
    rec.record_view(SHOP, "1002", ip_address="1.1.1.1")
    rec.record_view(SHOP, "1002", ip_address="2.2.2.2")

    out = rec.export_workbook(SHOP, tmp_path / "reports" / "views.xlsx", days=7)

    assert out.exists()
    sheets = pd.read_excel(out, sheet_name=None, engine="openpyxl")
    assert list(sheets) == ["Summary", "Top Orders", "Daily Views", "Views"]
    assert int(sheets["Summary"].loc[0, "totalViews"]) == 2
    assert str(sheets["Top Orders"].loc[0, "orderNumber"]) == "1002"
    assert len(sheets["Daily Views"]) == 8
    assert len(sheets["Views"]) == 2


def test_export_workbook_with_no_views(tmp_path: Path):
    out = _recorder(tmp_path).export_workbook(SHOP, tmp_path / "empty.xlsx", days=3)
    sheets = pd.read_excel(out, sheet_name=None, engine="openpyxl")
    assert int(sheets["Summary"].loc[0, "totalViews"]) == 0
    assert sheets["Top Orders"].empty
    assert sheets["Daily Views"]["views"].sum() == 0


def test_inline_dispatcher_runs_immediately():
    seen = []
    inline_dispatcher(lambda: seen.append(1))
    assert seen == [1]


def test_background_dispatcher_logs_failures_and_never_raises(caplog):
    done = threading.Event()
    dispatcher = BackgroundDispatcher(max_workers=1, logger=logging.getLogger("tests.dispatch"))

    def boom():
        done.set()
        raise RuntimeError("db locked")

    with caplog.at_level(logging.WARNING, logger="tests.dispatch"):
        fut = dispatcher(boom)
        assert done.wait(5)
        dispatcher.shutdown(wait=True)
        # the failure stays on the future; the caller never sees it raised
        with pytest.raises(RuntimeError):
            fut.result()

    assert any("db locked" in r.getMessage() for r in caplog.records)


def test_background_dispatcher_ignores_cancelled_tasks(caplog):
    release = threading.Event()
    dispatcher = BackgroundDispatcher(max_workers=1, logger=logging.getLogger("tests.dispatch"))

    with caplog.at_level(logging.WARNING):
        running = dispatcher(release.wait)
        queued = dispatcher(lambda: None)
        assert queued.cancel()
        release.set()
        dispatcher.shutdown(wait=True)

    assert running.result() is True
    assert queued.cancelled()
    # a cancelled future has no exception to report
    assert not any(r.name in ("tests.dispatch", "concurrent.futures") for r in caplog.records)
