"""Market data interfaces for quotegate."""

from .batch import BatchOrchestrator, rank_movers
from .cache import TTLCache
from .gateway import MarketDataGateway
from .models import ChartPoint, MarketMovers, MarketSummary, NewsItem, Quote, SearchResult
from .ranges import RangeSpec, resolve_range
from .symbols import to_upstream_symbol

__all__ = [
    "BatchOrchestrator",
    "ChartPoint",
    "MarketDataGateway",
    "MarketMovers",
    "MarketSummary",
    "NewsItem",
    "Quote",
    "RangeSpec",
    "SearchResult",
    "TTLCache",
    "rank_movers",
    "resolve_range",
    "to_upstream_symbol",
]
