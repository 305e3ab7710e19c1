"""Canonical market-data records and the raw payload shapes that feed them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


# ── Canonical model ───────────────────────────────────────────────────

@dataclass(frozen=True)
class Quote:
    symbol: str
    name: str
    price: float
    change: float
    change_percent: float
    previous_close: float
    open: float
    day_high: float
    day_low: float
    volume: float
    market_cap: float | None = None
    exchange: str | None = None


@dataclass(frozen=True)
class ChartPoint:
    time: str
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass(frozen=True)
class SearchResult:
    symbol: str
    name: str
    type: str
    exchange: str


@dataclass(frozen=True)
class NewsItem:
    id: str
    title: str
    source: str | None
    link: str | None
    published_at: str | None
    category: str = "Market News"
    thumbnail: str | None = None


@dataclass(frozen=True)
class SummaryFigures:
    dollar_index: float
    dollar_index_change: float
    us_10_year: float
    us_10_year_change: float


@dataclass(frozen=True)
class MarketSummary:
    indices: list[Quote]
    summary: SummaryFigures


@dataclass(frozen=True)
class MarketMovers:
    gainers: list[Quote] = field(default_factory=list)
    losers: list[Quote] = field(default_factory=list)
    most_active: list[Quote] = field(default_factory=list)


# ── Raw provider payloads ─────────────────────────────────────────────
# One variant per upstream shape. Normalizers dispatch on the variant type.

@dataclass(frozen=True)
class LibraryQuote:
    """Quote record from the structured client (Yahoo quote field names)."""

    record: dict[str, Any]


@dataclass(frozen=True)
class ChartMeta:
    """``meta`` object of a raw chart envelope."""

    meta: dict[str, Any]


@dataclass(frozen=True)
class ScrapedQuote:
    price: float
    name: str
    source_id: str


@dataclass(frozen=True)
class LibraryBars:
    """Rows built from the structured client's history frame.

    Each row holds ``date`` (aware datetime) and open/high/low/close/volume.
    """

    rows: list[dict[str, Any]]


@dataclass(frozen=True)
class ChartEnvelope:
    """``chart.result[0]`` of the raw chart endpoint."""

    result: dict[str, Any]


@dataclass(frozen=True)
class SearchEnvelope:
    quotes: list[dict[str, Any]] = field(default_factory=list)
    news: list[dict[str, Any]] = field(default_factory=list)


QuotePayload = Union[LibraryQuote, ChartMeta, ScrapedQuote]
ChartPayload = Union[LibraryBars, ChartEnvelope]
RawPayload = Union[LibraryQuote, ChartMeta, ScrapedQuote, LibraryBars, ChartEnvelope, SearchEnvelope]
