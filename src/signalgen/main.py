"""Entry point for the signal API server.

Wires the components together and serves the FastAPI app with uvicorn's
programmatic API. Client lifecycles are tied to FastAPI's lifespan.

Component wiring order (in _build_components):
1. CoinGeckoClient (proxy candles, trending list, fundamentals)
2. NewsClient (CryptoCompare headlines)
3. MarketDataClient (ccxt perpetual futures, OHLCV fallback chain)
4. CatalystService (news + trending + fundamentals)
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from signalgen.api.app import create_app
from signalgen.config import AppSettings
from signalgen.logging import get_logger, setup_logging
from signalgen.market_data.catalyst_service import CatalystService
from signalgen.market_data.client import MarketDataClient
from signalgen.market_data.coingecko import CoinGeckoClient
from signalgen.market_data.news import NewsClient


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build the market-data collaborators from settings.

    Does NOT connect the exchange -- that happens in the lifespan.
    """
    md = settings.market_data
    coingecko = CoinGeckoClient(
        base_url=md.coingecko_base_url,
        api_key=md.coingecko_api_key.get_secret_value(),
        timeout=md.request_timeout_seconds,
        cache_ttl_seconds=md.context_cache_ttl_seconds,
        cache_max_entries=md.cache_max_entries,
    )
    news = NewsClient(
        url=md.news_url,
        limit=md.news_limit,
        timeout=md.request_timeout_seconds,
        cache_ttl_seconds=md.context_cache_ttl_seconds,
    )
    market_data = MarketDataClient(md, coingecko=coingecko)
    catalyst_service = CatalystService(news, coingecko)
    return {
        "market_data": market_data,
        "catalyst_service": catalyst_service,
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect the exchange on startup and release ccxt sessions on shutdown."""
    logger = get_logger("signalgen.main")
    components = app.state.components

    app.state.market_data = components["market_data"]
    app.state.catalyst_service = components["catalyst_service"]

    await components["market_data"].connect()
    logger.info("lifespan_started", exchange=components["market_data"].provider)

    yield

    await components["market_data"].close()
    logger.info("signal_api_stopped")


async def run() -> None:
    """Load settings, configure logging, build components, and serve."""
    settings = AppSettings()
    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("signalgen.main")

    app = create_app(settings=settings, lifespan=lifespan)
    app.state.components = _build_components(settings)

    logger.info(
        "starting_signal_api",
        host=settings.api.host,
        port=settings.api.port,
        exchange=settings.market_data.exchange_id,
    )

    config = uvicorn.Config(
        app,
        host=settings.api.host,
        port=settings.api.port,
        log_level="warning",  # request logging goes through structlog
    )
    server = uvicorn.Server(config)
    await server.serve()


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
