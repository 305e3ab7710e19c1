"""Market endpoints: quotes, charts, indices, search, summary, movers and news."""

from __future__ import annotations

import asyncio
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from quotegate.api.app import get_batch, get_gateway
from quotegate.marketdata import BatchOrchestrator, MarketDataGateway
from quotegate.marketdata.models import ChartPoint
from quotegate.marketdata.symbols import is_valid_symbol
from quotegate.utils import to_iso_z, utc_now

router = APIRouter(tags=["markets"])

_MAX_BATCH_SYMBOLS = 50


def _checked_symbol(symbol: str) -> str:
    if not is_valid_symbol(symbol):
        raise HTTPException(status_code=400, detail="Invalid symbol format")
    return symbol.upper()


def _chart_stats(points: list[ChartPoint]) -> dict[str, float | int]:
    first, last = points[0], points[-1]
    change = last.close - first.open
    change_pct = (change / first.open * 100.0) if first.open else 0.0
    return {
        "high": round(max(p.high for p in points), 2),
        "low": round(min(p.low for p in points), 2),
        "open": round(first.open, 2),
        "close": round(last.close, 2),
        "change": round(change, 2),
        "change_percent": round(change_pct, 2),
        "data_points": len(points),
    }


@router.get("/stocks/search")
async def search_stocks(
    response: Response,
    q: str | None = Query(None),
    query: str | None = Query(None),
    gateway: MarketDataGateway = Depends(get_gateway),
):
    text = (q or query or "").strip()
    if not text:
        raise HTTPException(status_code=400, detail="Search query is required (min 1 character)")
    results = await gateway.search(text)
    response.headers["Cache-Control"] = "s-maxage=300, stale-while-revalidate=60"
    return {"query": text, "results": [asdict(r) for r in results], "count": len(results)}


@router.get("/stocks/{symbol}")
async def stock_detail(
    symbol: str,
    response: Response,
    range: str = Query("1d"),  # noqa: A002
    gateway: MarketDataGateway = Depends(get_gateway),
):
    sym = _checked_symbol(symbol)
    quote, chart = await asyncio.gather(gateway.get_quote(sym), gateway.get_chart(sym, range))
    if quote is None:
        raise HTTPException(status_code=404, detail=f"Stock {sym} not found")
    response.headers["Cache-Control"] = "s-maxage=60, stale-while-revalidate=30"
    return {
        **asdict(quote),
        "exchange": quote.exchange or "Unknown",
        "chart_data": [asdict(p) for p in chart],
        "timestamp": to_iso_z(utc_now()),
    }


@router.get("/indices/{symbol}")
async def index_detail(
    symbol: str,
    response: Response,
    range: str = Query("1d"),  # noqa: A002
    gateway: MarketDataGateway = Depends(get_gateway),
):
    sym = _checked_symbol(symbol)
    quote, chart = await asyncio.gather(gateway.get_quote(sym), gateway.get_chart(sym, range))
    if quote is None:
        raise HTTPException(status_code=404, detail=f"Index {sym} not found")

    window_change = 0.0
    if chart and chart[0].close:
        window_change = (quote.price - chart[0].close) / chart[0].close * 100.0

    response.headers["Cache-Control"] = "s-maxage=60, stale-while-revalidate=30"
    return {
        "symbol": quote.symbol,
        "name": quote.name,
        "exchange": quote.exchange or "Unknown",
        "price": quote.price,
        "change": quote.change,
        "change_percent": quote.change_percent,
        "open": quote.open,
        "previous_close": quote.previous_close,
        "volume": quote.volume,
        "day_range": {"low": quote.day_low, "high": quote.day_high},
        "one_year_change": round(window_change, 2),
        "chart_data": [asdict(p) for p in chart],
        "timestamp": to_iso_z(utc_now()),
    }


@router.get("/charts/{symbol}")
async def chart_detail(
    symbol: str,
    response: Response,
    range: str = Query("1d"),  # noqa: A002
    gateway: MarketDataGateway = Depends(get_gateway),
):
    sym = _checked_symbol(symbol)
    points = await gateway.get_chart(sym, range)
    if not points:
        raise HTTPException(status_code=404, detail=f"No chart data found for {sym}")
    cache_time = 60 if range == "1d" else 300
    response.headers["Cache-Control"] = f"s-maxage={cache_time}, stale-while-revalidate=60"
    return {
        "symbol": sym,
        "range": range,
        "data": [asdict(p) for p in points],
        "stats": _chart_stats(points),
        "timestamp": to_iso_z(utc_now()),
    }


@router.get("/quotes")
async def batch_quotes(
    symbols: str = Query(..., description="Comma-separated tickers"),
    batch: BatchOrchestrator = Depends(get_batch),
):
    requested = [s.strip().upper() for s in symbols.split(",") if s.strip()]
    if not requested:
        raise HTTPException(status_code=400, detail="At least one symbol is required")
    if len(requested) > _MAX_BATCH_SYMBOLS:
        raise HTTPException(status_code=400, detail=f"At most {_MAX_BATCH_SYMBOLS} symbols per request")
    invalid = [s for s in requested if not is_valid_symbol(s)]
    if invalid:
        raise HTTPException(status_code=400, detail=f"Invalid symbol format: {', '.join(invalid)}")

    quotes = await batch.get_quotes(requested)
    found = {q.symbol for q in quotes}
    return {
        "quotes": [asdict(q) for q in quotes],
        "missing": [s for s in requested if s not in found],
    }


@router.get("/markets/summary")
async def market_summary(response: Response, batch: BatchOrchestrator = Depends(get_batch)):
    overview = await batch.get_market_overview()
    response.headers["Cache-Control"] = "s-maxage=60, stale-while-revalidate=30"
    return {**overview, "timestamp": to_iso_z(utc_now())}


@router.get("/markets/movers")
async def market_movers(batch: BatchOrchestrator = Depends(get_batch)):
    movers = await batch.get_market_movers()
    return asdict(movers)


@router.get("/news")
async def news(
    q: str | None = Query(None),
    gateway: MarketDataGateway = Depends(get_gateway),
):
    items = await gateway.get_news(q or "market news")
    return {"news": [asdict(n) for n in items], "count": len(items)}
