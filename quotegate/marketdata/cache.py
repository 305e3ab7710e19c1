"""In-process key/value cache with per-entry expiry."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    expires_at: float


class TTLCache:
    """Dict-backed cache where every entry carries its own deadline.

    Entries are replaced wholesale on ``set``; a read after the deadline
    behaves exactly like a miss and evicts the entry. ``None`` is the miss
    sentinel, so callers never store ``None`` as a value.

    The gateway owns one instance per process. Tests build a fresh one and
    may pass a fake ``clock``.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._clock = clock

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() > entry.expires_at:
            self._entries.pop(key, None)
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl_seconds)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def sweep(self) -> int:
        """Evict every expired entry; return how many were dropped."""
        now = self._clock()
        expired = [k for k, e in list(self._entries.items()) if now > e.expires_at]
        for key in expired:
            self._entries.pop(key, None)
        return len(expired)

    def stats(self) -> dict[str, Any]:
        self.sweep()
        keys = list(self._entries.keys())
        return {"size": len(keys), "keys": keys}

    def __len__(self) -> int:
        return len(self._entries)


def cache_key(namespace: str, *parts: str) -> str:
    """Compose ``namespace:part:part`` with whitespace-stable parts."""
    suffix = ":".join(p.strip() for p in parts if p)
    return f"{namespace}:{suffix}" if suffix else namespace
