"""Ordered multi-tier retrieval against an unreliable upstream.

Each tier is an async callable returning ``Ok`` or ``Failed``. Tiers run in
order; the first ``Ok`` wins, and a rate-limited ``Failed`` stops the chain
for that request. Nothing raised by a tier escapes ``ResilientFetcher``:
callers see a payload or ``None``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Union

import httpx

from quotegate.marketdata.client import StructuredClient
from quotegate.marketdata.errors import (
    BlockedError,
    PayloadError,
    RateLimitedError,
    UpstreamError,
)
from quotegate.marketdata.http import UpstreamHttp
from quotegate.marketdata.models import (
    ChartEnvelope,
    ChartMeta,
    LibraryBars,
    LibraryQuote,
    RawPayload,
    ScrapedQuote,
    SearchEnvelope,
)
from quotegate.marketdata.ranges import RangeSpec
from quotegate.marketdata.scrape import extract_name, extract_price
from quotegate.marketdata.symbols import scrape_candidates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ok:
    payload: RawPayload


@dataclass(frozen=True)
class Failed:
    reason: str
    rate_limited: bool = False
    blocked: bool = False


TierResult = Union[Ok, Failed]
Tier = tuple[str, Callable[[], Awaitable[TierResult]]]


@dataclass
class FetchResult:
    payload: RawPayload | None
    provider_used: str | None = None
    attempts: list[str] = field(default_factory=list)
    rate_limited: bool = False

    @property
    def ok(self) -> bool:
        return self.payload is not None


def _failure_from_exception(exc: BaseException) -> Failed:
    if isinstance(exc, RateLimitedError):
        return Failed("RATE_LIMITED", rate_limited=True)
    if isinstance(exc, BlockedError):
        return Failed(f"AUTH_FAIL_{exc.status}", blocked=True)
    if isinstance(exc, asyncio.TimeoutError):
        return Failed("TIMEOUT")
    if isinstance(exc, UpstreamError):
        return Failed(exc.code)
    if isinstance(exc, httpx.HTTPError):
        return Failed(f"TRANSPORT_{type(exc).__name__}")
    return Failed(f"PROVIDER_ERROR_{type(exc).__name__}")


class ResilientFetcher:
    """Runs the quote/chart/search/news tier chains."""

    def __init__(
        self,
        client: StructuredClient,
        http: UpstreamHttp,
        *,
        chart_base_url: str = "https://query1.finance.yahoo.com",
        scrape_base_url: str = "https://www.google.com/finance/quote",
        search_quotes_count: int = 10,
        news_count: int = 15,
    ) -> None:
        self._client = client
        self._http = http
        self._chart_base = chart_base_url.rstrip("/")
        self._scrape_base = scrape_base_url.rstrip("/")
        self._search_quotes_count = search_quotes_count
        self._news_count = news_count

    # ------------------------------------------------------------------
    # Chain evaluation
    # ------------------------------------------------------------------
    async def run_tiers(self, label: str, tiers: list[Tier]) -> FetchResult:
        attempts: list[str] = []
        for name, tier in tiers:
            try:
                outcome = await tier()
            except Exception as exc:
                outcome = _failure_from_exception(exc)

            if isinstance(outcome, Ok):
                if attempts:
                    logger.info("%s served by %s after %s", label, name, ", ".join(attempts))
                return FetchResult(payload=outcome.payload, provider_used=name, attempts=attempts)

            attempts.append(f"{name}:{outcome.reason}")
            logger.warning("%s tier %s failed: %s", label, name, outcome.reason)
            if outcome.rate_limited:
                logger.warning("%s rate limited by upstream; not trying further tiers", label)
                return FetchResult(payload=None, attempts=attempts, rate_limited=True)

        logger.warning("%s: all tiers exhausted (%s)", label, ", ".join(attempts))
        return FetchResult(payload=None, attempts=attempts)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    async def fetch_quote(self, symbol: str) -> FetchResult:
        tiers: list[Tier] = [
            ("client", lambda: self._client_quote(symbol)),
            ("chart_endpoint", lambda: self._direct_quote(symbol)),
            ("scrape", lambda: self._scrape_quote(symbol)),
        ]
        return await self.run_tiers(f"quote {symbol}", tiers)

    async def fetch_chart(self, symbol: str, spec: RangeSpec) -> FetchResult:
        tiers: list[Tier] = [
            ("client", lambda: self._client_chart(symbol, spec)),
            ("chart_endpoint", lambda: self._direct_chart(symbol, spec)),
        ]
        return await self.run_tiers(f"chart {symbol} {spec.requested_range}", tiers)

    async def fetch_search(self, query: str) -> FetchResult:
        tiers: list[Tier] = [
            ("client", lambda: self._client_search(query, news=False)),
            ("search_endpoint", lambda: self._direct_search(query, news=False)),
        ]
        return await self.run_tiers(f"search {query!r}", tiers)

    async def fetch_news(self, query: str) -> FetchResult:
        tiers: list[Tier] = [
            ("client", lambda: self._client_search(query, news=True)),
            ("search_endpoint", lambda: self._direct_search(query, news=True)),
        ]
        return await self.run_tiers(f"news {query!r}", tiers)

    # ------------------------------------------------------------------
    # Tier 1: structured client
    # ------------------------------------------------------------------
    async def _client_quote(self, symbol: str) -> TierResult:
        record = await self._client.quote(symbol)
        if not record:
            return Failed("NO_DATA")
        has_price = any(
            record.get(k) not in (None, 0)
            for k in ("regularMarketPrice", "postMarketPrice", "preMarketPrice", "bid", "ask")
        )
        if not has_price and not (record.get("shortName") or record.get("longName")):
            return Failed("NO_DATA")
        return Ok(LibraryQuote(record=record))

    async def _client_chart(self, symbol: str, spec: RangeSpec) -> TierResult:
        rows = await self._client.history(symbol, spec.start, spec.upstream_interval)
        if not rows:
            return Failed("NO_DATA")
        return Ok(LibraryBars(rows=rows))

    async def _client_search(self, query: str, *, news: bool) -> TierResult:
        if news:
            raw = await self._client.search(query, quotes_count=0, news_count=self._news_count)
        else:
            raw = await self._client.search(query, quotes_count=self._search_quotes_count, news_count=0)
        envelope = SearchEnvelope(quotes=list(raw.get("quotes") or []), news=list(raw.get("news") or []))
        if news and not envelope.news:
            return Failed("NO_DATA")
        if not news and not envelope.quotes:
            return Failed("NO_DATA")
        return Ok(envelope)

    # ------------------------------------------------------------------
    # Tier 2: direct endpoint
    # ------------------------------------------------------------------
    async def _chart_result(self, symbol: str, interval: str, range_: str) -> dict[str, Any]:
        raw = await self._http.get_json(
            f"{self._chart_base}/v8/finance/chart/{symbol}",
            params={"interval": interval, "range": range_},
        )
        results = ((raw or {}).get("chart") or {}).get("result") or []
        if not results or not isinstance(results[0], dict):
            raise PayloadError("NO_RESULT")
        return results[0]

    async def _direct_quote(self, symbol: str) -> TierResult:
        result = await self._chart_result(symbol, "1d", "1d")
        meta = result.get("meta")
        if not meta:
            return Failed("NO_META")
        return Ok(ChartMeta(meta=meta))

    async def _direct_chart(self, symbol: str, spec: RangeSpec) -> TierResult:
        result = await self._chart_result(symbol, spec.upstream_interval, spec.upstream_range)
        if not result.get("timestamp"):
            return Failed("NO_TIMESTAMPS")
        return Ok(ChartEnvelope(result=result))

    async def _direct_search(self, query: str, *, news: bool) -> TierResult:
        params = {
            "q": query,
            "quotesCount": 0 if news else self._search_quotes_count,
            "newsCount": self._news_count if news else 0,
        }
        raw = await self._http.get_json(f"{self._chart_base}/v1/finance/search", params=params)
        if not isinstance(raw, dict):
            return Failed("INVALID_PAYLOAD")
        envelope = SearchEnvelope(quotes=list(raw.get("quotes") or []), news=list(raw.get("news") or []))
        if news and not envelope.news:
            return Failed("NO_DATA")
        if not news and not envelope.quotes:
            return Failed("NO_DATA")
        return Ok(envelope)

    # ------------------------------------------------------------------
    # Tier 3: scrape (quotes only)
    # ------------------------------------------------------------------
    async def _scrape_quote(self, symbol: str) -> TierResult:
        for candidate in scrape_candidates(symbol):
            url = f"{self._scrape_base}/{candidate}"
            try:
                page = await self._http.get_text(url)
            except (UpstreamError, httpx.HTTPError, asyncio.TimeoutError) as exc:
                logger.warning("Scrape candidate %s for %s failed: %s", candidate, symbol, exc or type(exc).__name__)
                continue

            price = extract_price(page)
            if price is None:
                logger.debug("Scrape candidate %s for %s: no price pattern matched", candidate, symbol)
                continue

            name = extract_name(page) or candidate
            logger.info("Scrape succeeded for %s via %s: %s", symbol, candidate, price)
            return Ok(ScrapedQuote(price=price, name=name, source_id=candidate))

        return Failed("CANDIDATES_EXHAUSTED")
