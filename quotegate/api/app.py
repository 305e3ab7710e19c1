"""FastAPI application factory with lifespan, CORS, and routers."""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from quotegate import __version__
from quotegate.config import get_settings
from quotegate.marketdata import BatchOrchestrator, MarketDataGateway

logger = logging.getLogger(__name__)

_start_time: float = 0.0


def get_uptime() -> float:
    return time.time() - _start_time if _start_time else 0.0


def get_gateway(request: Request) -> MarketDataGateway:
    return request.app.state.gateway


def get_batch(request: Request) -> BatchOrchestrator:
    return request.app.state.batch


async def _sweep_cache(gateway: MarketDataGateway, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        evicted = gateway.cache.sweep()
        if evicted:
            logger.debug("Cache sweep evicted %d entries", evicted)


def create_app(gateway: MarketDataGateway | None = None) -> FastAPI:
    """Build and return the fully-configured FastAPI application.

    A gateway may be injected (tests); otherwise one is built at startup and
    closed at shutdown.
    """
    settings = get_settings()

    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        global _start_time
        _start_time = time.time()

        owned = gateway is None
        gw = gateway or MarketDataGateway(settings=settings)
        app.state.gateway = gw
        app.state.batch = BatchOrchestrator(gw)

        sweeper = asyncio.create_task(
            _sweep_cache(gw, settings.cache_sweep_interval_seconds),
            name="cache-sweeper",
        )
        logger.info("quotegate API v%s starting", __version__)
        try:
            yield
        finally:
            sweeper.cancel()
            with suppress(asyncio.CancelledError):
                await sweeper
            if owned:
                await gw.close()
            logger.info("quotegate API shutting down")

    app = FastAPI(
        title="quotegate",
        description="Quotes, charts, search and news behind a cache and provider fallback",
        version=__version__,
        lifespan=_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    from quotegate.api.routes import markets, system
    app.include_router(markets.router, prefix="/api")
    app.include_router(system.router, prefix="/api")

    return app
