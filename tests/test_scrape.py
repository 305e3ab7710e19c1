"""Scrape extraction patterns.

These track the live page markup and are the first thing to break when the
page changes; update the fixtures together with the patterns.
"""

from __future__ import annotations

from quotegate.marketdata.scrape import extract_name, extract_price


def test_price_from_primary_class_pattern() -> None:
    page = '<div class="YMl78c fxKbKc">$5,123.45</div><div class="zzS5lb">S&amp;P 500</div>'
    assert extract_price(page) == 5123.45
    assert extract_name(page) == "S&P 500"


def test_price_falls_through_to_data_attribute() -> None:
    page = '<div data-last-price="4.213" data-currency-code="USD"></div><h1 class="x">US 10Y</h1>'
    assert extract_price(page) == 4.213
    assert extract_name(page) == "US 10Y"


def test_price_skips_zero_match_and_tries_next_pattern() -> None:
    page = '<span class="YMl78c">0.00</span><div data-last-price="101.5"></div>'
    assert extract_price(page) == 101.5


def test_no_match_returns_none() -> None:
    page = "<html><body>Our systems have detected unusual traffic</body></html>"
    assert extract_price(page) is None
    assert extract_name(page) is None
    assert extract_price("") is None
