from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import httpx
import pytest

from quotegate.config import Settings
from quotegate.marketdata.cache import TTLCache
from quotegate.marketdata.fetcher import FetchResult, ResilientFetcher
from quotegate.marketdata.gateway import MarketDataGateway
from quotegate.marketdata.http import UpstreamHttp
from quotegate.marketdata.models import LibraryBars, LibraryQuote

CHART_BASE = "https://chart.test"
SCRAPE_BASE = "https://scrape.test/quote"


class FakeClient:
    """Structured client stand-in; ``None`` for a field means that call raises."""

    def __init__(
        self,
        quote: dict[str, Any] | None = None,
        history: list[dict[str, Any]] | None = None,
        search: dict[str, list[dict[str, Any]]] | None = None,
        exc: Exception | None = None,
    ) -> None:
        self._quote = quote
        self._history = history
        self._search = search
        self._exc = exc or RuntimeError("client blocked")
        self.calls: list[str] = []

    async def quote(self, symbol: str) -> dict[str, Any] | None:
        self.calls.append(f"quote:{symbol}")
        if self._quote is None:
            raise self._exc
        return self._quote

    async def history(self, symbol, start, interval):  # noqa: ANN001
        self.calls.append(f"history:{symbol}:{interval}")
        if self._history is None:
            raise self._exc
        return self._history

    async def search(self, query, quotes_count, news_count):  # noqa: ANN001
        self.calls.append(f"search:{query}")
        if self._search is None:
            raise self._exc
        return self._search


class Recorder:
    """httpx handler that records requested URLs and delegates to ``respond``."""

    def __init__(self, respond: Callable[[httpx.Request], httpx.Response]) -> None:
        self.respond = respond
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    @property
    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


def make_http(handler: Callable[[httpx.Request], httpx.Response]) -> UpstreamHttp:
    return UpstreamHttp(
        timeout=8.0,
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def make_fetcher(client: FakeClient, handler: Callable[[httpx.Request], httpx.Response]) -> ResilientFetcher:
    return ResilientFetcher(
        client,
        make_http(handler),
        chart_base_url=CHART_BASE,
        scrape_base_url=SCRAPE_BASE,
    )


def chart_json(price: float = 150.0, prev: float = 100.0, symbol: str = "AAPL") -> dict[str, Any]:
    return {
        "chart": {
            "result": [
                {
                    "meta": {
                        "symbol": symbol,
                        "regularMarketPrice": price,
                        "chartPreviousClose": prev,
                        "exchangeName": "NMS",
                    },
                    "timestamp": [1700000000, 1700000300],
                    "indicators": {
                        "quote": [
                            {
                                "open": [1.0, 2.0],
                                "high": [1.5, 2.5],
                                "low": [0.5, 1.5],
                                "close": [1.2, 2.2],
                                "volume": [10, 20],
                            }
                        ]
                    },
                }
            ],
            "error": None,
        }
    }


@pytest.fixture
def settings() -> Settings:
    return Settings(
        chart_base_url=CHART_BASE,
        scrape_base_url=SCRAPE_BASE,
        batch_delay_seconds=0,
    )


@pytest.fixture
def make_gateway(settings: Settings):
    def _make(client: FakeClient, handler: Callable[[httpx.Request], httpx.Response]) -> MarketDataGateway:
        return MarketDataGateway(
            cache=TTLCache(),
            fetcher=make_fetcher(client, handler),
            settings=settings,
        )

    return _make


class ScriptedFetcher:
    """Fetcher stand-in returning canned payloads keyed by upstream symbol or query."""

    def __init__(
        self,
        quotes: dict[str, Any] | None = None,
        charts: dict[str, Any] | None = None,
        search: dict[str, Any] | None = None,
        news: dict[str, Any] | None = None,
        raise_for: set[str] | None = None,
    ) -> None:
        self.quotes = quotes or {}
        self.charts = charts or {}
        self.search = search or {}
        self.news = news or {}
        self.raise_for = raise_for or set()
        self.calls: list[str] = []

    @staticmethod
    def _result(payload: Any) -> FetchResult:
        if payload is None:
            return FetchResult(payload=None, attempts=["client:NO_DATA"])
        return FetchResult(payload=payload, provider_used="client")

    async def fetch_quote(self, symbol: str) -> FetchResult:
        self.calls.append(f"quote:{symbol}")
        if symbol in self.raise_for:
            raise RuntimeError(f"boom {symbol}")
        return self._result(self.quotes.get(symbol))

    async def fetch_chart(self, symbol: str, spec) -> FetchResult:  # noqa: ANN001
        self.calls.append(f"chart:{symbol}:{spec.requested_range}")
        return self._result(self.charts.get(symbol))

    async def fetch_search(self, query: str) -> FetchResult:
        self.calls.append(f"search:{query}")
        return self._result(self.search.get(query))

    async def fetch_news(self, query: str) -> FetchResult:
        self.calls.append(f"news:{query}")
        return self._result(self.news.get(query))


def library_quote(symbol: str, price: float, change_percent: float = 0.0, volume: float = 0.0) -> LibraryQuote:
    return LibraryQuote(
        record={
            "symbol": symbol,
            "shortName": f"{symbol} Inc",
            "regularMarketPrice": price,
            "regularMarketChange": price * change_percent / 100,
            "regularMarketChangePercent": change_percent,
            "regularMarketVolume": volume,
        }
    )


def bars(*closes: float) -> LibraryBars:
    return LibraryBars(
        rows=[
            {
                "date": datetime(2024, 1, 2, 14, 30, tzinfo=timezone.utc) + timedelta(minutes=5 * i),
                "open": c,
                "high": c,
                "low": c,
                "close": c,
                "volume": 100,
            }
            for i, c in enumerate(closes)
        ]
    )


@pytest.fixture
def scripted_gateway(settings: Settings):
    def _make(fetcher: ScriptedFetcher, cache: TTLCache | None = None) -> MarketDataGateway:
        return MarketDataGateway(cache=cache if cache is not None else TTLCache(), fetcher=fetcher, settings=settings)

    return _make
