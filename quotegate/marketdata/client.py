"""Structured upstream client backed by yfinance.

yfinance is blocking, so every call runs in a worker thread. The methods
return plain Python structures shaped like Yahoo's own quote/search
records so the normalizers can treat them like the raw endpoint payloads.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Protocol, TypeVar

logger = logging.getLogger(__name__)
_YF_LOGGER = logging.getLogger("yfinance")
_YF_LOGGER.setLevel(logging.CRITICAL)

T = TypeVar("T")


class StructuredClient(Protocol):
    async def quote(self, symbol: str) -> dict[str, Any] | None: ...

    async def history(self, symbol: str, start: datetime, interval: str) -> list[dict[str, Any]]: ...

    async def search(self, query: str, quotes_count: int, news_count: int) -> dict[str, list[dict[str, Any]]]: ...


class YFinanceClient:
    """``StructuredClient`` over ``yfinance.Ticker`` and ``yfinance.Search``."""

    def __init__(self, timeout: float = 8.0) -> None:
        self._timeout = timeout

    async def _run(self, fn: Callable[..., T], *args: Any) -> T:
        return await asyncio.wait_for(asyncio.to_thread(fn, *args), timeout=self._timeout)

    async def quote(self, symbol: str) -> dict[str, Any] | None:
        def _load() -> dict[str, Any] | None:
            import yfinance as yf

            info = yf.Ticker(symbol).info
            return dict(info) if info else None

        return await self._run(_load)

    async def history(self, symbol: str, start: datetime, interval: str) -> list[dict[str, Any]]:
        timeout = self._timeout

        def _load() -> list[dict[str, Any]]:
            import yfinance as yf

            data = yf.Ticker(symbol).history(
                start=start.strftime("%Y-%m-%d"),
                interval=interval,
                auto_adjust=False,
                timeout=timeout,
            )
            if data is None or data.empty:
                return []

            rows: list[dict[str, Any]] = []
            for idx, r in data.iterrows():
                try:
                    dt = idx.to_pydatetime()
                except Exception:
                    continue
                if dt.tzinfo is None:
                    dt = dt.replace(tzinfo=timezone.utc)
                rows.append(
                    {
                        "date": dt,
                        "open": r.get("Open"),
                        "high": r.get("High"),
                        "low": r.get("Low"),
                        "close": r.get("Close"),
                        "volume": r.get("Volume"),
                    }
                )
            return rows

        return await self._run(_load)

    async def search(self, query: str, quotes_count: int, news_count: int) -> dict[str, list[dict[str, Any]]]:
        timeout = self._timeout

        def _load() -> dict[str, list[dict[str, Any]]]:
            import yfinance as yf

            result = yf.Search(
                query,
                max_results=quotes_count,
                news_count=news_count,
                timeout=timeout,
            )
            return {
                "quotes": list(result.quotes or []),
                "news": list(result.news or []),
            }

        return await self._run(_load)
