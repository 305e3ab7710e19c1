"""Centralized configuration via pydantic-settings, loaded from .env."""

from __future__ import annotations

import functools

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ── Upstream endpoints ─────────────────────────────────────────────
    chart_base_url: str = "https://query1.finance.yahoo.com"
    scrape_base_url: str = "https://www.google.com/finance/quote"
    request_timeout_seconds: float = 8.0

    # ── Cache TTLs (seconds) ───────────────────────────────────────────
    cache_ttl_quote: int = Field(
        default=300,
        validation_alias=AliasChoices("CACHE_TTL_QUOTE", "YAHOO_CACHE_TTL_REALTIME"),
    )
    cache_ttl_chart: int = Field(
        default=1800,
        validation_alias=AliasChoices("CACHE_TTL_CHART", "YAHOO_CACHE_TTL_HISTORICAL"),
    )
    cache_ttl_search: int = 3600
    cache_ttl_news: int = 600
    cache_ttl_market_summary: int = 300
    cache_sweep_interval_seconds: int = 60

    # ── Batch / upstream request shaping ───────────────────────────────
    batch_delay_seconds: float = 0.3
    search_quotes_count: int = 10
    news_count: int = 15

    # ── API Server ────────────────────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton accessor for the global settings."""
    return Settings()
