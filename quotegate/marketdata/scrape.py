"""Price/name extraction from a public finance quote page.

This is the most brittle part of the gateway: the patterns track the
page's current markup and need updating whenever it changes. Patterns are
tried in order; the first one yielding a usable value wins.
"""

from __future__ import annotations

import html as html_lib
import re

PRICE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r'class="[\w\d\s]*YMl78c[\w\d\s]*">\$?([\d,]+\.\d+)'),
    re.compile(r'data-last-price="([\d.]+)"'),
    re.compile(r">\$?([\d,]+\.\d+)<"),
    re.compile(r'div[^>]*aria-label=".*" price="([\d.]+)"'),
)

NAME_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r'class="[\w\d\s]*zzS5lb[\w\d\s]*">([^<]+)'),
    re.compile(r'<div class="zzS5lb">([^<]+)</div>'),
    re.compile(r"<h1[^>]*>([^<]+)</h1>"),
)


def extract_price(page: str) -> float | None:
    """First positive price matched by ``PRICE_PATTERNS``, else ``None``."""
    if not page:
        return None
    for pattern in PRICE_PATTERNS:
        match = pattern.search(page)
        if not match:
            continue
        try:
            price = float(match.group(1).replace(",", ""))
        except ValueError:
            continue
        if price > 0:
            return price
    return None


def extract_name(page: str) -> str | None:
    if not page:
        return None
    for pattern in NAME_PATTERNS:
        match = pattern.search(page)
        if match:
            name = html_lib.unescape(match.group(1)).strip()
            if name:
                return name
    return None
