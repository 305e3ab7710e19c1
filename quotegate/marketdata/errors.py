"""Upstream failure types raised by the HTTP/client layer.

None of these cross the gateway boundary: the fetcher turns them into
failed tier results.
"""

from __future__ import annotations


class UpstreamError(RuntimeError):
    """Base class for any upstream failure."""

    code = "PROVIDER_ERROR"


class RateLimitedError(UpstreamError):
    """HTTP 429 from the upstream."""

    code = "RATE_LIMITED"


class BlockedError(UpstreamError):
    """HTTP 401/403, the upstream refused programmatic access."""

    code = "AUTH_FAIL"

    def __init__(self, status: int) -> None:
        super().__init__(f"HTTP_{status}")
        self.status = status


class UpstreamStatusError(UpstreamError):
    code = "HTTP_ERROR"

    def __init__(self, status: int, body: str = "") -> None:
        super().__init__(f"HTTP_{status}: {body[:100]}")
        self.status = status


class PayloadError(UpstreamError):
    """Response arrived but had no usable data."""

    code = "NO_DATA"
