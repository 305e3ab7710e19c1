"""Map raw provider payloads onto the canonical model, one function per kind."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from quotegate.marketdata.models import (
    ChartEnvelope,
    ChartMeta,
    ChartPayload,
    ChartPoint,
    LibraryBars,
    LibraryQuote,
    NewsItem,
    Quote,
    QuotePayload,
    ScrapedQuote,
    SearchEnvelope,
    SearchResult,
)
from quotegate.utils import from_epoch, safe_float, to_iso_z

logger = logging.getLogger(__name__)

_PRICE_FIELDS = (
    "regularMarketPrice",
    "postMarketPrice",
    "preMarketPrice",
    "bid",
    "ask",
)


def _first(record: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return default


def _first_number(record: dict[str, Any], *keys: str) -> float:
    for key in keys:
        value = safe_float(record.get(key), default=None)
        if value is not None:
            return value
    return 0.0


def select_price(record: dict[str, Any]) -> float:
    """First positive price among regular, post, pre market, bid, ask; else 0."""
    for key in _PRICE_FIELDS:
        value = safe_float(record.get(key), default=None)
        if value is not None and value > 0:
            return value
    return 0.0


def _record_from_meta(meta: dict[str, Any]) -> dict[str, Any]:
    price = safe_float(meta.get("regularMarketPrice"), default=None)
    prev = safe_float(meta.get("chartPreviousClose"), default=None)
    if prev is None:
        prev = safe_float(meta.get("previousClose"), default=None)
    change = change_pct = None
    if price is not None and prev:
        change = price - prev
        change_pct = change / prev * 100.0
    return {
        "symbol": meta.get("symbol"),
        "shortName": meta.get("shortName"),
        "longName": meta.get("longName"),
        "regularMarketPrice": price,
        "regularMarketChange": change,
        "regularMarketChangePercent": change_pct,
        "regularMarketPreviousClose": prev,
        "regularMarketDayHigh": meta.get("regularMarketDayHigh"),
        "regularMarketDayLow": meta.get("regularMarketDayLow"),
        "regularMarketVolume": meta.get("regularMarketVolume"),
        "exchangeName": meta.get("exchangeName"),
        "fullExchangeName": meta.get("fullExchangeName"),
    }


def _record_from_scrape(scraped: ScrapedQuote) -> dict[str, Any]:
    return {
        "regularMarketPrice": scraped.price,
        "shortName": scraped.name,
        "regularMarketChange": 0.0,
        "regularMarketChangePercent": 0.0,
    }


def normalize_quote(payload: QuotePayload | None, symbol: str) -> Quote | None:
    """Build a ``Quote`` for ``symbol`` (the app-facing ticker).

    Returns ``None`` only when there is no upstream record at all. A record
    without any usable price still yields a quote with ``price == 0``.
    """
    if payload is None:
        return None
    if isinstance(payload, LibraryQuote):
        record = payload.record
    elif isinstance(payload, ChartMeta):
        record = _record_from_meta(payload.meta)
    elif isinstance(payload, ScrapedQuote):
        record = _record_from_scrape(payload)
    else:
        raise TypeError(f"unsupported quote payload: {type(payload).__name__}")

    if not record:
        return None

    price = select_price(record)
    if price == 0:
        logger.warning(
            "Price for %s is 0 or missing; record keys: %s",
            symbol,
            ", ".join(sorted(record.keys())),
        )

    market_cap = safe_float(record.get("marketCap"), default=None)
    exchange = _first(record, "exchange", "fullExchangeName", "exchangeName")
    return Quote(
        symbol=symbol.upper(),
        name=str(_first(record, "shortName", "longName", "symbol", default=symbol)),
        price=price,
        change=_first_number(record, "regularMarketChange", "postMarketChange", "preMarketChange"),
        change_percent=_first_number(
            record,
            "regularMarketChangePercent",
            "postMarketChangePercent",
            "preMarketChangePercent",
        ),
        previous_close=_first_number(record, "regularMarketPreviousClose", "previousClose"),
        open=_first_number(record, "regularMarketOpen", "open"),
        day_high=_first_number(record, "regularMarketHigh", "regularMarketDayHigh", "dayHigh"),
        day_low=_first_number(record, "regularMarketLow", "regularMarketDayLow", "dayLow"),
        volume=_first_number(record, "regularMarketVolume", "volume"),
        market_cap=market_cap,
        exchange=str(exchange) if exchange is not None else None,
    )


def _rows_from_envelope(result: dict[str, Any]) -> list[dict[str, Any]]:
    timestamps = result.get("timestamp") or []
    quote_lists = ((result.get("indicators") or {}).get("quote") or [{}])
    ind = quote_lists[0] if quote_lists else {}

    def _at(key: str, i: int) -> Any:
        values = ind.get(key) or []
        return values[i] if i < len(values) else None

    rows: list[dict[str, Any]] = []
    for i, ts in enumerate(timestamps):
        dt = from_epoch(ts)
        if dt is None:
            continue
        rows.append(
            {
                "date": dt,
                "open": _at("open", i),
                "high": _at("high", i),
                "low": _at("low", i),
                "close": _at("close", i),
                "volume": _at("volume", i),
            }
        )
    return rows


def normalize_chart(payload: ChartPayload | None) -> list[ChartPoint]:
    """Chronological points; rows without a close are dropped."""
    if payload is None:
        return []
    if isinstance(payload, LibraryBars):
        rows = payload.rows
    elif isinstance(payload, ChartEnvelope):
        rows = _rows_from_envelope(payload.result)
    else:
        raise TypeError(f"unsupported chart payload: {type(payload).__name__}")

    points: list[tuple[Any, ChartPoint]] = []
    for row in rows:
        close = safe_float(row.get("close"), default=None)
        dt = row.get("date")
        if close is None or dt is None:
            continue
        points.append(
            (
                dt,
                ChartPoint(
                    time=to_iso_z(dt),
                    open=safe_float(row.get("open")) or 0.0,
                    high=safe_float(row.get("high")) or 0.0,
                    low=safe_float(row.get("low")) or 0.0,
                    close=close,
                    volume=safe_float(row.get("volume")) or 0.0,
                ),
            )
        )
    points.sort(key=lambda p: p[0])
    return [p for _, p in points]


def normalize_search(payload: SearchEnvelope | None) -> list[SearchResult]:
    if payload is None:
        return []
    out: list[SearchResult] = []
    for q in payload.quotes:
        sym = q.get("symbol")
        if not sym:
            continue
        out.append(
            SearchResult(
                symbol=str(sym),
                name=str(_first(q, "shortname", "longname", "name", default=sym)),
                type=str(_first(q, "quoteType", "typeDisp", default="EQUITY")),
                exchange=str(_first(q, "exchange", default="Unknown")),
            )
        )
    return out


def _thumbnail(item: dict[str, Any]) -> str | None:
    resolutions = (item.get("thumbnail") or {}).get("resolutions") or []
    if resolutions and isinstance(resolutions[0], dict):
        return resolutions[0].get("url")
    return None


def normalize_news(payload: SearchEnvelope | None) -> list[NewsItem]:
    if payload is None:
        return []
    out: list[NewsItem] = []
    for item in payload.news:
        title = item.get("title")
        if not title:
            continue
        published = from_epoch(item.get("providerPublishTime"))
        out.append(
            NewsItem(
                id=str(item.get("uuid") or uuid.uuid4().hex[:12]),
                title=str(title),
                source=item.get("publisher"),
                link=item.get("link"),
                published_at=to_iso_z(published) if published else None,
                thumbnail=_thumbnail(item),
            )
        )
    return out
