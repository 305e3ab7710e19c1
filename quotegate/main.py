"""quotegate CLI entrypoint.

Serve the API or run a one-shot lookup::

    python -m quotegate.main --server
    python -m quotegate.main --quote AAPL
    python -m quotegate.main --chart SPX --range 5d
    python -m quotegate.main --search tesla
    python -m quotegate.main --news
    python -m quotegate.main --summary
    python -m quotegate.main --movers
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict, is_dataclass
from typing import Any

from quotegate import __version__
from quotegate.config import get_settings
from quotegate.utils import setup_logging

logger = logging.getLogger("quotegate")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quotegate",
        description="Cached, fault-tolerant market data gateway",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    group = parser.add_mutually_exclusive_group()
    group.add_argument("--server", action="store_true", help="Run the FastAPI server (default)")
    group.add_argument("--quote", metavar="SYMBOL", help="Print a quote")
    group.add_argument("--chart", metavar="SYMBOL", help="Print chart points")
    group.add_argument("--search", metavar="QUERY", help="Search symbols")
    group.add_argument("--news", nargs="?", const="market news", metavar="QUERY", help="Print headlines")
    group.add_argument("--summary", action="store_true", help="Print the market summary")
    group.add_argument("--movers", action="store_true", help="Print gainers/losers/most active")

    parser.add_argument("--range", default="1d", help="Chart range token (with --chart)")
    return parser


def _jsonable(value: Any) -> Any:
    if is_dataclass(value):
        return asdict(value)
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return value


async def _lookup(args: argparse.Namespace) -> Any:
    from quotegate.marketdata import BatchOrchestrator, MarketDataGateway

    gateway = MarketDataGateway()
    try:
        if args.quote:
            return await gateway.get_quote(args.quote)
        if args.chart:
            return await gateway.get_chart(args.chart, args.range)
        if args.search:
            return await gateway.search(args.search)
        if args.news:
            return await gateway.get_news(args.news)
        batch = BatchOrchestrator(gateway)
        if args.summary:
            return await batch.get_market_summary()
        return await batch.get_market_movers()
    finally:
        await gateway.close()


async def _serve() -> None:
    import uvicorn
    from quotegate.api.app import create_app

    settings = get_settings()
    config = uvicorn.Config(
        create_app(),
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )
    server = uvicorn.Server(config)
    await server.serve()


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    settings = get_settings()
    setup_logging(settings.log_level)

    one_shot = any([args.quote, args.chart, args.search, args.news, args.summary, args.movers])
    try:
        if one_shot:
            result = asyncio.run(_lookup(args))
            print(json.dumps(_jsonable(result), indent=2, default=str))
        else:
            asyncio.run(_serve())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        sys.exit(130)


if __name__ == "__main__":
    main()
