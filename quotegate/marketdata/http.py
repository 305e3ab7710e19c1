"""Plain HTTPS access to the upstream with a browser-shaped request."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import httpx

from quotegate.marketdata.errors import (
    BlockedError,
    PayloadError,
    RateLimitedError,
    UpstreamStatusError,
)

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,image/apng,*/*;q=0.8"
    ),
    "Accept-Language": "en-US,en;q=0.9",
}


class UpstreamHttp:
    """Thin wrapper over one shared ``httpx.AsyncClient``.

    Every request is bounded by ``timeout`` seconds end to end; on expiry
    the request is cancelled and ``asyncio.TimeoutError`` propagates to the
    caller (the fetcher), which counts it as a tier failure.
    """

    def __init__(
        self,
        timeout: float = 8.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._timeout = timeout
        # trust_env=False keeps proxy variables from rerouting upstream calls.
        self._client = client or httpx.AsyncClient(
            headers=BROWSER_HEADERS,
            timeout=timeout,
            follow_redirects=True,
            trust_env=False,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _get(self, url: str, params: dict[str, Any] | None) -> httpx.Response:
        return await asyncio.wait_for(
            self._client.get(url, params=params, headers=BROWSER_HEADERS),
            timeout=self._timeout,
        )

    async def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        resp = await self._get(url, params)
        status = resp.status_code
        if status == 429:
            raise RateLimitedError("HTTP_429")
        if status in (401, 403):
            raise BlockedError(status)
        if not 200 <= status < 300:
            raise UpstreamStatusError(status, resp.text)
        try:
            return resp.json()
        except (json.JSONDecodeError, ValueError) as exc:
            raise PayloadError("INVALID_JSON") from exc

    async def get_text(self, url: str, params: dict[str, Any] | None = None) -> str:
        """Fetch a page body.

        Blocked (401/403) and other error pages are still returned when they
        carry a body, since some of them embed the data anyway. 429 raises.
        """
        resp = await self._get(url, params)
        status = resp.status_code
        if status == 429:
            raise RateLimitedError("HTTP_429")
        body = resp.text
        if 200 <= status < 300 or status in (401, 403):
            return body
        if body:
            logger.debug("Using body of HTTP %d page from %s", status, url)
            return body
        raise UpstreamStatusError(status)
