"""Ticker translation between app-facing aliases and upstream identifiers."""

from __future__ import annotations

import re

# Internal alias -> Yahoo identifier. Keys are upper-case.
INDEX_SYMBOLS: dict[str, str] = {
    "SPX": "^GSPC",       # S&P 500
    "NDX": "^NDX",        # Nasdaq 100
    "IXIC": "^IXIC",      # Nasdaq Composite
    "DJI": "^DJI",        # Dow Jones
    "N225": "^N225",      # Nikkei 225
    "FTSE": "^FTSE",      # FTSE 100
    "DAX": "^GDAXI",
    "CAC": "^FCHI",
    "HSI": "^HSI",        # Hang Seng
    "SSEC": "000001.SS",  # SSE Composite
    "VIX": "^VIX",
    "RUT": "^RUT",        # Russell 2000
    "TSX": "^GSPTSE",
    "AXJO": "^AXJO",      # ASX 200
    "STOXX": "^STOXX50E",
    "IBEX": "^IBEX",
    "NSEI": "^NSEI",      # Nifty 50
    "BVSP": "^BVSP",      # Bovespa
    "MXX": "^MXX",        # Mexico IPC
    "SSMI": "^SSMI",      # Swiss Market Index
    "TNX": "^TNX",        # 10-Year Treasury Yield
    "DXY": "DX-Y.NYB",    # US Dollar Index
}

# Yahoo identifier -> Google Finance identifiers, tried in order by the scrape tier.
SCRAPE_CANDIDATES: dict[str, tuple[str, ...]] = {
    "^GSPC": (".INX:INDEXSP", "SPX"),
    "^NDX": ("NDX:INDEXNASDAQ", "NDX", ".IXIC"),
    "^DJI": (".DJI:INDEXDJX", "DJI"),
    "^TNX": ("TNX:INDEXCBOE", "TNX"),
    "DX-Y.NYB": ("DXY:CURRENCY", "DXY"),
    "^N225": ("NI225:INDEXNIKKEI", "N225"),
    "^FTSE": ("UKX:INDEXFTSE", "FTSE"),
    "^GDAXI": ("DAX:INDEXDB", "DAX"),
    "^FCHI": ("PX1:INDEXEURO", "CAC"),
    "^HSI": ("HSI:INDEXHONGKONG", "HSI"),
}

_SYMBOL_RE = re.compile(r"^[A-Za-z0-9.\-^=]{1,20}$")


def to_upstream_symbol(symbol: str) -> str:
    """Translate an alias such as ``SPX`` to ``^GSPC``; unknown symbols pass through."""
    return INDEX_SYMBOLS.get((symbol or "").strip().upper(), symbol)


def scrape_candidates(upstream_symbol: str) -> tuple[str, ...]:
    return SCRAPE_CANDIDATES.get(upstream_symbol, (upstream_symbol,))


def is_valid_symbol(symbol: str | None) -> bool:
    return bool(symbol) and bool(_SYMBOL_RE.match(symbol))
