"""Health and cache administration endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from quotegate import __version__
from quotegate.api.app import get_gateway, get_uptime
from quotegate.marketdata import MarketDataGateway

router = APIRouter(tags=["system"])


@router.get("/health")
async def health(gateway: MarketDataGateway = Depends(get_gateway)):
    stats = gateway.cache_stats()
    return {
        "status": "ok",
        "version": __version__,
        "uptime_seconds": round(get_uptime(), 1),
        "cache_size": stats["size"],
    }


@router.get("/cache/stats")
async def cache_stats(gateway: MarketDataGateway = Depends(get_gateway)):
    return gateway.cache_stats()


@router.post("/cache/clear")
async def cache_clear(gateway: MarketDataGateway = Depends(get_gateway)):
    gateway.clear_cache()
    return {"cleared": True}
