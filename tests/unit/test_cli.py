from pathlib import Path
import json

import pandas as pd
import pytest

from order_tracking import cli
from order_tracking.api.transport import RequestsTransport

_CARRIER_KEYS = ("UPS_API_KEY", "FEDEX_API_KEY", "FEDEX_SECRET_KEY", "USPS_USER_ID", "DHL_API_KEY")


def run_cli(args):
    return cli.main(args)


class FakeResponse:
    def __init__(self, payload):
        self._payload = payload
        self.status_code = 200
        self.text = ""

    def json(self):
        return self._payload

    def raise_for_status(self):
        return None


def _fake_get(self, url, *, headers=None, params=None):
    if url.endswith("/orders.json"):
        orders = []
        if params["name"] == "1002":
            orders = [{"id": 5001, "name": "#1002", "email": "jane@example.com"}]
        return FakeResponse({"orders": orders})
    if url.endswith("/orders/5001/fulfillments.json"):
        return FakeResponse({"fulfillments": [
            {"id": 1, "tracking_company": "UPS", "tracking_number": "1Z999AA1"}]})
    raise AssertionError(f"unexpected GET {url}")


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch):
    """Isolated env: tmp SQLite store, dev token set, no carrier keys, no network."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'cli.sqlite'}")
    monkeypatch.setenv("SHOPIFY_ACCESS_TOKEN", "shpat_dev")
    monkeypatch.setenv("CARRIER_TIMEOUT", "5")
    for k in _CARRIER_KEYS:
        monkeypatch.setenv(k, "")
    monkeypatch.setattr(RequestsTransport, "get", _fake_get)
    return ["--no-console", "--env-file", str(tmp_path / "absent.env")]


def test_lookup_found_prints_json_and_returns_0(cli_env, capsys):
    code = run_cli(["lookup", "demo.myshopify.com", "#1002", "jane@example.com", *cli_env])
    assert code == 0

    body = json.loads(capsys.readouterr().out)
    assert body["success"] is True
    enhanced = body["order"]["enhancedTracking"]
    assert enhanced["isLiveData"] is False
    assert "ups.com" in enhanced["trackingUrl"]


def test_lookup_not_found_returns_1(cli_env, capsys):
    code = run_cli(["lookup", "demo.myshopify.com", "#9999", "jane@example.com", *cli_env])
    assert code == 1
    assert json.loads(capsys.readouterr().out) == {"success": False, "error": "Order not found"}


def test_lookup_invalid_input_returns_2(cli_env):
    assert run_cli(["lookup", "demo.myshopify.com", "#", "jane@example.com", *cli_env]) == 2
    assert run_cli(["lookup", "demo.myshopify.com", "1002", "no-digits", *cli_env]) == 2


def test_lookup_without_token_returns_2(cli_env, monkeypatch):
    monkeypatch.setenv("SHOPIFY_ACCESS_TOKEN", "")
    assert run_cli(["lookup", "demo.myshopify.com", "1002", "jane@example.com", *cli_env]) == 2


def test_lookup_respect_settings_gates_disabled_shop(cli_env, capsys):
    # no settings stored for the shop yet
    code = run_cli(["lookup", "demo.myshopify.com", "1002", "jane@example.com",
                    "--respect-settings", *cli_env])
    assert code == 1
    assert json.loads(capsys.readouterr().out)["error"] == "Tracking service not available"


def test_settings_update_then_show(cli_env, capsys):
    code = run_cli(["settings", "demo.myshopify.com", "--disable-page", "--enable-block",
                    "--page-title", "Where is it?", *cli_env])
    assert code == 0
    updated = json.loads(capsys.readouterr().out)
    assert updated["tracking_page_enabled"] is False
    assert updated["tracking_block_enabled"] is True
    assert updated["page_title"] == "Where is it?"

    assert run_cli(["settings", "demo.myshopify.com", *cli_env]) == 0
    shown = json.loads(capsys.readouterr().out)
    assert shown["page_title"] == "Where is it?"


def test_settings_show_for_unknown_shop_returns_1(cli_env):
    assert run_cli(["settings", "nobody.myshopify.com", *cli_env]) == 1


def test_analytics_summary_and_export(cli_env, tmp_path: Path, capsys):
    assert run_cli(["lookup", "demo.myshopify.com", "1002", "jane@example.com", *cli_env]) == 0
    capsys.readouterr()

    out = tmp_path / "report.xlsx"
    code = run_cli(["analytics", "demo.myshopify.com", "--days", "7", "--export", str(out), *cli_env])
    assert code == 0

    report = json.loads(capsys.readouterr().out)
    assert report["summary"]["totalViews"] == 1
    assert report["topOrders"][0]["orderNumber"] == "1002"
    assert out.exists()
    assert "Summary" in pd.ExcelFile(out, engine="openpyxl").sheet_names


def test_bad_configuration_returns_2(cli_env, monkeypatch):
    monkeypatch.setenv("CARRIER_TIMEOUT", "later")
    assert run_cli(["settings", "demo.myshopify.com", *cli_env]) == 2


def test_serve_hands_app_to_uvicorn(cli_env, monkeypatch):
    import uvicorn

    calls = {}

    def fake_run(app, **kwargs):
        calls["app"] = app
        calls.update(kwargs)

    monkeypatch.setattr(uvicorn, "run", fake_run)
    code = run_cli(["serve", "--host", "0.0.0.0", "--port", "9000", *cli_env])

    assert code == 0
    assert calls["host"] == "0.0.0.0" and calls["port"] == 9000
    assert any(getattr(r, "path", None) == "/health" for r in calls["app"].routes)
