from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from quotegate.config import Settings
from quotegate.main import _build_parser, _jsonable
from quotegate.marketdata.client import YFinanceClient
from quotegate.marketdata.errors import (
    BlockedError,
    PayloadError,
    RateLimitedError,
    UpstreamStatusError,
)
from quotegate.marketdata.models import Quote
from quotegate.utils import _JSONFormatter, from_epoch, safe_float, to_iso_z

from conftest import make_http


# ── config ────────────────────────────────────────────────────────────


def test_settings_defaults() -> None:
    s = Settings(_env_file=None)
    assert s.cache_ttl_quote == 300
    assert s.cache_ttl_chart == 1800
    assert s.request_timeout_seconds == 8.0
    assert s.batch_delay_seconds == 0.3


def test_legacy_ttl_env_names(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setenv("YAHOO_CACHE_TTL_REALTIME", "30")
    monkeypatch.setenv("CACHE_TTL_CHART", "90")
    s = Settings(_env_file=None)
    assert s.cache_ttl_quote == 30
    assert s.cache_ttl_chart == 90


# ── utils ─────────────────────────────────────────────────────────────


def test_to_iso_z() -> None:
    assert to_iso_z(datetime(2024, 1, 2, 3, 4, 5, 678900, tzinfo=timezone.utc)) == "2024-01-02T03:04:05.678Z"
    eastern = timezone(timedelta(hours=-5))
    assert to_iso_z(datetime(2024, 1, 1, 19, 0, tzinfo=eastern)) == "2024-01-02T00:00:00.000Z"
    assert to_iso_z(datetime(2024, 1, 1)) == "2024-01-01T00:00:00.000Z"


def test_from_epoch_and_safe_float() -> None:
    assert from_epoch(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)
    assert from_epoch("nope") is None
    assert from_epoch(None) is None
    assert safe_float("1.5") == 1.5
    assert safe_float(float("nan")) == 0.0
    assert safe_float(None, default=None) is None
    assert safe_float("abc", default=-1.0) == -1.0


def test_json_formatter_emits_one_line() -> None:
    record = logging.LogRecord("quotegate.test", logging.WARNING, __file__, 1, "tier %s failed", ("client",), None)
    line = _JSONFormatter().format(record)
    payload = json.loads(line)
    assert payload["level"] == "WARNING"
    assert payload["msg"] == "tier client failed"
    assert "\n" not in line


# ── http ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,error",
    [(429, RateLimitedError), (401, BlockedError), (403, BlockedError), (500, UpstreamStatusError)],
)
async def test_get_json_status_mapping(status: int, error: type) -> None:
    http = make_http(lambda req: httpx.Response(status, text="x"))
    with pytest.raises(error):
        await http.get_json("https://chart.test/v8/finance/chart/AAPL")


@pytest.mark.asyncio
async def test_get_json_rejects_non_json() -> None:
    http = make_http(lambda req: httpx.Response(200, text="<html>"))
    with pytest.raises(PayloadError):
        await http.get_json("https://chart.test/x")


@pytest.mark.asyncio
async def test_get_text_keeps_blocked_page_body() -> None:
    http = make_http(lambda req: httpx.Response(403, text="<div data-last-price=\"1.0\">"))
    assert "data-last-price" in await http.get_text("https://scrape.test/quote/X")

    http = make_http(lambda req: httpx.Response(502, text=""))
    with pytest.raises(UpstreamStatusError):
        await http.get_text("https://scrape.test/quote/X")

    http = make_http(lambda req: httpx.Response(429, text="slow down"))
    with pytest.raises(RateLimitedError):
        await http.get_text("https://scrape.test/quote/X")


# ── cli ───────────────────────────────────────────────────────────────


def test_cli_parser() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--chart", "SPX", "--range", "5d"])
    assert (args.chart, args.range) == ("SPX", "5d")
    assert parser.parse_args(["--news"]).news == "market news"
    with pytest.raises(SystemExit):
        parser.parse_args(["--quote", "AAPL", "--summary"])


def test_cli_output_is_json_serialisable() -> None:
    q = Quote("AAPL", "Apple", 1.0, 0.0, 0.0, 1.0, 1.0, 1.0, 1.0, 0.0)
    out = json.loads(json.dumps(_jsonable([q, None])))
    assert out[0]["symbol"] == "AAPL"
    assert out[1] is None


# ── structured client ─────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_client_runs_blocking_call_in_thread() -> None:
    client = YFinanceClient(timeout=1.0)
    assert await client._run(lambda a, b: a + b, 2, 3) == 5


@pytest.mark.asyncio
async def test_client_call_is_bounded_by_timeout() -> None:
    import time

    client = YFinanceClient(timeout=0.05)
    with pytest.raises(asyncio.TimeoutError):
        await client._run(time.sleep, 0.5)
