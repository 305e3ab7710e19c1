"""Multi-symbol views: watchlist valuation, market summary, movers."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from typing import Any, Iterable

from quotegate.marketdata.cache import cache_key
from quotegate.marketdata.gateway import MarketDataGateway
from quotegate.marketdata.models import ChartPoint, MarketMovers, MarketSummary, Quote, SummaryFigures

logger = logging.getLogger(__name__)

US_INDICATORS: tuple[str, ...] = ("SPX", "IXIC", "DJI", "RUT", "VIX", "TNX")

DOLLAR_INDEX_SYMBOL = "DX-Y.NYB"
US_10_YEAR_SYMBOL = "^TNX"
DEFAULT_DOLLAR_INDEX = 100.0
DEFAULT_US_10_YEAR = 4.0

# Globally diversified universe for movers ranking.
MOVERS_UNIVERSE: tuple[str, ...] = (
    # Tech & chips
    "AAPL", "MSFT", "GOOGL", "AMZN", "NVDA", "META", "TSLA", "AVGO", "ORCL",
    "AMD", "INTC", "TSM", "QCOM", "ASML", "ADBE", "CRM", "SAP",
    # Finance & payments
    "JPM", "BAC", "V", "MA", "PYPL", "HSBA.L", "RY", "C",
    # Europe
    "MC.PA", "OR.PA", "SHEL.L", "AZN.L", "NOVO-B.CO", "SIE.DE", "TTE.PA", "NESN.SW",
    # Asia
    "7203.T", "005930.KS", "0700.HK", "9988.HK", "RELIANCE.NS", "TCS.NS", "600519.SS", "BHP.AX",
    # Software & growth
    "NFLX", "SHOP", "PLTR", "SNOW", "U",
    # Autos
    "RIVN", "NIO", "F", "GM", "RACE",
    # Consumer
    "WMT", "COST", "NKE", "SBUX", "UL", "DIAGEO.L",
    # Energy & industry
    "XOM", "CVX", "CAT", "PBR", "VALE", "ABB",
)

FEATURED_SYMBOL = "SPX"
FEATURED_NAME = "S&P 500"


def rank_movers(quotes: Iterable[Quote], limit: int = 5) -> MarketMovers:
    """Top gainers, losers and most active. Ties keep input order."""
    quotes = list(quotes)
    gainers = sorted((q for q in quotes if q.change_percent > 0), key=lambda q: q.change_percent, reverse=True)
    losers = sorted((q for q in quotes if q.change_percent < 0), key=lambda q: q.change_percent)
    most_active = sorted(quotes, key=lambda q: q.volume, reverse=True)
    return MarketMovers(
        gainers=gainers[:limit],
        losers=losers[:limit],
        most_active=most_active[:limit],
    )


def _mini_chart(points: list[ChartPoint], size: int) -> list[dict[str, Any]]:
    return [{"time": p.time, "value": p.close} for p in points[-size:]]


class BatchOrchestrator:
    """Sequences quote lookups to stay under upstream rate limits."""

    def __init__(self, gateway: MarketDataGateway, delay_seconds: float | None = None) -> None:
        self.gateway = gateway
        self.delay_seconds = (
            gateway.settings.batch_delay_seconds if delay_seconds is None else delay_seconds
        )

    async def get_quotes(self, symbols: Iterable[str]) -> list[Quote]:
        """Quotes in request order; symbols without data are omitted."""
        quotes: list[Quote] = []
        for i, symbol in enumerate(symbols):
            if i and self.delay_seconds > 0:
                await asyncio.sleep(self.delay_seconds)
            quote = await self.gateway.get_quote(symbol)
            if quote is not None:
                quotes.append(quote)
        return quotes

    async def get_market_summary(self) -> MarketSummary:
        """Index quotes plus dollar-index and 10-year figures.

        The two auxiliary lookups run concurrently and fail independently;
        a failed one is replaced by its default.
        """
        key = cache_key("market-summary")
        hit = self.gateway.cache.get(key)
        if hit is not None:
            return hit

        indices = await self.get_quotes(US_INDICATORS)
        dxy, tnx = await asyncio.gather(
            self.gateway.get_quote(DOLLAR_INDEX_SYMBOL),
            self.gateway.get_quote(US_10_YEAR_SYMBOL),
            return_exceptions=True,
        )
        if isinstance(dxy, BaseException):
            logger.warning("Dollar index lookup failed: %s", dxy)
            dxy = None
        if isinstance(tnx, BaseException):
            logger.warning("10-year yield lookup failed: %s", tnx)
            tnx = None

        summary = MarketSummary(
            indices=indices,
            summary=SummaryFigures(
                dollar_index=dxy.price if dxy and dxy.price else DEFAULT_DOLLAR_INDEX,
                dollar_index_change=dxy.change_percent if dxy else 0.0,
                us_10_year=tnx.price if tnx and tnx.price else DEFAULT_US_10_YEAR,
                us_10_year_change=tnx.change_percent if tnx else 0.0,
            ),
        )
        if indices:
            self.gateway.cache.set(key, summary, self.gateway.settings.cache_ttl_market_summary)
        return summary

    async def get_market_movers(self, universe: Iterable[str] = MOVERS_UNIVERSE) -> MarketMovers:
        universe = tuple(universe)
        if universe == MOVERS_UNIVERSE:
            key = cache_key("market-movers")
        else:
            key = cache_key("market-movers", ",".join(universe))
        hit = self.gateway.cache.get(key)
        if hit is not None:
            return hit

        quotes = await self.get_quotes(universe)
        movers = rank_movers(quotes)
        if quotes:
            self.gateway.cache.set(key, movers, self.gateway.settings.cache_ttl_quote)
        return movers

    async def get_market_overview(self) -> dict[str, Any]:
        """Summary, movers and the featured chart, shaped for the dashboard."""
        summary, movers, featured = await asyncio.gather(
            self.get_market_summary(),
            self.get_market_movers(),
            self.gateway.get_chart(FEATURED_SYMBOL, "1d"),
        )

        async def _with_chart(quote: Quote) -> dict[str, Any]:
            points = await self.gateway.get_chart(quote.symbol, "1d")
            return {**asdict(quote), "chart_data": _mini_chart(points, 30)}

        indices = await asyncio.gather(*[_with_chart(q) for q in summary.indices])
        return {
            "indices": list(indices),
            "featured": {
                "symbol": FEATURED_SYMBOL,
                "name": FEATURED_NAME,
                "chart_data": _mini_chart(featured, 60),
            },
            "summary": asdict(summary.summary),
            "movers": {
                "gainers": [asdict(q) for q in movers.gainers[:3]],
                "losers": [asdict(q) for q in movers.losers[:3]],
                "most_active": [asdict(q) for q in movers.most_active[:3]],
            },
        }

