"""Canonical market data gateway: cache-aside over the resilient fetcher.

All application code should consume market data through this module.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, TypeVar

from quotegate.config import Settings, get_settings
from quotegate.marketdata.cache import TTLCache, cache_key
from quotegate.marketdata.client import StructuredClient, YFinanceClient
from quotegate.marketdata.fetcher import FetchResult, ResilientFetcher
from quotegate.marketdata.http import UpstreamHttp
from quotegate.marketdata.models import ChartPoint, NewsItem, Quote, SearchResult
from quotegate.marketdata.normalize import (
    normalize_chart,
    normalize_news,
    normalize_quote,
    normalize_search,
)
from quotegate.marketdata.ranges import resolve_range
from quotegate.marketdata.symbols import to_upstream_symbol

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_NEWS_QUERY = "market news"
_NEWS_RETRY_QUERY = "finance"


class MarketDataGateway:
    """Single entrypoint for quotes, charts, search and news.

    Every lookup is cache-aside: a hit returns the stored value; a miss runs
    the fetcher, normalizes, and stores the result under the category TTL.
    Empty results are never stored, so the next caller retries upstream.
    Nothing here raises to the caller; failures surface as ``None`` or ``[]``.
    """

    def __init__(
        self,
        cache: TTLCache | None = None,
        fetcher: ResilientFetcher | None = None,
        settings: Settings | None = None,
        *,
        client: StructuredClient | None = None,
        http: UpstreamHttp | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.cache = cache if cache is not None else TTLCache()
        self._http = http
        if fetcher is None:
            if self._http is None:
                self._http = UpstreamHttp(timeout=self.settings.request_timeout_seconds)
            fetcher = ResilientFetcher(
                client or YFinanceClient(timeout=self.settings.request_timeout_seconds),
                self._http,
                chart_base_url=self.settings.chart_base_url,
                scrape_base_url=self.settings.scrape_base_url,
                search_quotes_count=self.settings.search_quotes_count,
                news_count=self.settings.news_count,
            )
        self.fetcher = fetcher

    async def close(self) -> None:
        if self._http is not None:
            await self._http.close()

    # ------------------------------------------------------------------
    # Cache-aside core
    # ------------------------------------------------------------------
    async def cached(
        self,
        key: str,
        ttl: int,
        produce: Callable[[], Awaitable[T]],
    ) -> T | None:
        """Return ``key`` from cache or ``produce()`` it; falsy results are not stored."""
        hit = self.cache.get(key)
        if hit is not None:
            logger.debug("cache hit %s", key)
            return hit

        value = await produce()
        if value:
            self.cache.set(key, value, ttl)
        return value

    @staticmethod
    def _normalized(label: str, result: FetchResult, normalizer: Callable[[], T], empty: T) -> T:
        if result.rate_limited:
            logger.warning("%s: upstream rate limited (%s); returning no data", label, ", ".join(result.attempts))
            return empty
        if not result.ok:
            return empty
        try:
            return normalizer()
        except Exception:
            logger.exception("Failed to normalize %s payload from %s", label, result.provider_used)
            return empty

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def get_quote(self, symbol: str) -> Quote | None:
        internal = (symbol or "").strip().upper()
        if not internal:
            return None
        upstream = to_upstream_symbol(internal)

        async def _produce() -> Quote | None:
            result = await self.fetcher.fetch_quote(upstream)
            return self._normalized(
                f"quote {upstream}",
                result,
                lambda: normalize_quote(result.payload, internal),
                None,
            )

        return await self.cached(cache_key("quote", upstream), self.settings.cache_ttl_quote, _produce)

    async def get_chart(self, symbol: str, range_: str = "1d") -> list[ChartPoint]:
        internal = (symbol or "").strip().upper()
        if not internal:
            return []
        upstream = to_upstream_symbol(internal)
        spec = resolve_range(range_)

        async def _produce() -> list[ChartPoint]:
            result = await self.fetcher.fetch_chart(upstream, spec)
            return self._normalized(
                f"chart {upstream}",
                result,
                lambda: normalize_chart(result.payload),
                [],
            )

        key = cache_key("chart", upstream, spec.requested_range)
        return await self.cached(key, self.settings.cache_ttl_chart, _produce) or []

    async def search(self, query: str) -> list[SearchResult]:
        query = (query or "").strip()
        if not query:
            return []

        async def _produce() -> list[SearchResult]:
            result = await self.fetcher.fetch_search(query)
            return self._normalized(
                f"search {query!r}",
                result,
                lambda: normalize_search(result.payload),
                [],
            )

        key = cache_key("search", query.lower())
        return await self.cached(key, self.settings.cache_ttl_search, _produce) or []

    async def get_news(self, query: str = DEFAULT_NEWS_QUERY) -> list[NewsItem]:
        query = (query or "").strip() or DEFAULT_NEWS_QUERY

        async def _produce() -> list[NewsItem]:
            result = await self.fetcher.fetch_news(query)
            items = self._normalized(
                f"news {query!r}",
                result,
                lambda: normalize_news(result.payload),
                [],
            )
            if not items and query == DEFAULT_NEWS_QUERY:
                logger.info("No news for %r; retrying with %r", query, _NEWS_RETRY_QUERY)
                return await self.get_news(_NEWS_RETRY_QUERY)
            return items

        key = cache_key("news", query.lower())
        return await self.cached(key, self.settings.cache_ttl_news, _produce) or []

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------
    def cache_stats(self) -> dict[str, Any]:
        return self.cache.stats()

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Market data cache cleared")
