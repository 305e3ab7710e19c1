"""Chart window tokens -> upstream range/interval and a start timestamp."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from quotegate.utils import utc_now

DEFAULT_RANGE = "1d"

# token -> (upstream range, upstream interval)
RANGE_CONFIG: dict[str, tuple[str, str]] = {
    "1d": ("1d", "5m"),
    "5d": ("5d", "15m"),
    "1m": ("1mo", "1h"),
    "3m": ("3mo", "1d"),
    "6m": ("6mo", "1d"),
    "ytd": ("ytd", "1d"),
    "1y": ("1y", "1d"),
    "5y": ("5y", "1wk"),
    "max": ("max", "1mo"),
    "all": ("max", "1mo"),
}

SUPPORTED_RANGES: tuple[str, ...] = ("1d", "5d", "1m", "3m", "6m", "ytd", "1y", "5y", "max")

_EPOCH_FLOOR = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MONTH_OFFSETS = {"1m": 1, "3m": 3, "6m": 6, "1y": 12, "5y": 60}


@dataclass(frozen=True)
class RangeSpec:
    requested_range: str
    upstream_range: str
    upstream_interval: str
    start: datetime


def _shift_months(dt: datetime, months: int) -> datetime:
    total = dt.year * 12 + (dt.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def _start_for(token: str, now: datetime) -> datetime:
    if token == "1d":
        return now - timedelta(days=1)
    if token == "5d":
        return now - timedelta(days=5)
    if token in _MONTH_OFFSETS:
        return _shift_months(now, _MONTH_OFFSETS[token])
    if token == "ytd":
        return datetime(now.year, 1, 1, tzinfo=timezone.utc)
    return _EPOCH_FLOOR


def resolve_range(requested: str | None, now: datetime | None = None) -> RangeSpec:
    """Resolve a chart token; unknown tokens fall back to ``1d``."""
    token = (requested or "").strip().lower()
    if token not in RANGE_CONFIG:
        token = DEFAULT_RANGE
    if token == "all":
        token = "max"

    now = now or utc_now()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)

    upstream_range, interval = RANGE_CONFIG[token]
    return RangeSpec(
        requested_range=token,
        upstream_range=upstream_range,
        upstream_interval=interval,
        start=_start_for(token, now),
    )
