"""Market-data client for perpetual futures via ccxt async.

Wraps a ccxt.async_support exchange with connect/close lifecycle, an OHLCV
fallback chain, and the derivatives context fetch. Owns its own TTL caches;
the composition root constructs one instance and closes it on shutdown.

OHLCV fallback chain:
1. Exchange perpetual klines
2. CoinGecko market_chart proxy candles (tag ``coingecko_proxy``)
3. Deterministic demo candles (tag ``demo``), when enabled
"""

import asyncio
from collections.abc import Awaitable
from typing import Any

import ccxt.async_support as ccxt_async
from ccxt.base.errors import BaseError as CcxtError

from signalgen.config import MarketDataSettings
from signalgen.context.futures import normalize_futures_context
from signalgen.exceptions import MarketDataUnavailable, ProviderError
from signalgen.logging import get_logger
from signalgen.market_data.cache import TTLCache
from signalgen.market_data.coingecko import CoinGeckoClient
from signalgen.market_data.demo import generate_demo_candles
from signalgen.market_data.symbols import lookup, to_ccxt_symbol
from signalgen.models import Candle, CandleSeries, FuturesContext
from signalgen.utils import to_float

logger = get_logger(__name__)

SUPPORTED_TIMEFRAMES = ("15m", "1h", "4h", "1d")
DEFAULT_TIMEFRAME = "4h"

#: Points of open-interest and long/short history requested.
CONTEXT_HISTORY_POINTS = 12


def map_timeframe(timeframe: str | None) -> str:
    return timeframe if timeframe in SUPPORTED_TIMEFRAMES else DEFAULT_TIMEFRAME


def _parse_ohlcv(rows: list[Any]) -> tuple[Candle, ...]:
    """Convert ccxt ``[ts, o, h, l, c, v]`` rows, skipping incomplete ones."""
    candles: list[Candle] = []
    for row in rows or ():
        if not isinstance(row, (list, tuple)) or len(row) < 6:
            continue
        values = [to_float(v) for v in row[:6]]
        if any(v is None for v in values):
            continue
        ts, open_, high, low, close, volume = values
        candles.append(
            Candle(timestamp=int(ts), open=open_, high=high, low=low, close=close, volume=volume)
        )
    candles.sort(key=lambda c: c.timestamp)
    return tuple(candles)


class MarketDataClient:
    """Fetches candles and derivatives positioning for one futures venue.

    Args:
        settings: Market-data settings (exchange id, timeouts, cache TTLs).
        coingecko: Optional CoinGecko client used as the OHLCV proxy provider.
        exchange: Pre-built ccxt exchange, injectable for tests.
    """

    def __init__(
        self,
        settings: MarketDataSettings,
        coingecko: CoinGeckoClient | None = None,
        exchange: Any | None = None,
    ) -> None:
        self._settings = settings
        self._coingecko = coingecko
        if exchange is None:
            exchange_cls = getattr(ccxt_async, settings.exchange_id)
            exchange = exchange_cls(
                {
                    "enableRateLimit": True,
                    "timeout": int(settings.request_timeout_seconds * 1000),
                    "options": {"defaultType": "swap"},
                }
            )
        self._exchange = exchange
        self._ohlcv_cache = TTLCache(settings.ohlcv_cache_ttl_seconds, settings.cache_max_entries)
        self._context_cache = TTLCache(settings.context_cache_ttl_seconds, settings.cache_max_entries)

    @property
    def exchange(self) -> Any:
        """Access the underlying ccxt exchange instance."""
        return self._exchange

    @property
    def provider(self) -> str:
        return self._settings.exchange_id

    async def connect(self) -> None:
        """Load markets up front; failure is logged and retried lazily by ccxt."""
        logger.info("connecting_to_exchange", exchange=self.provider)
        try:
            markets = await self._exchange.load_markets()
        except CcxtError as e:
            logger.warning("exchange_connect_failed", exchange=self.provider, error=str(e))
            return
        logger.info("exchange_connected", exchange=self.provider, market_count=len(markets))

    async def close(self) -> None:
        """Release ccxt async resources. Must be called to avoid session leaks."""
        await self._exchange.close()
        logger.info("exchange_connection_closed", exchange=self.provider)

    # ──────────────────────────────────────────────
    # OHLCV
    # ──────────────────────────────────────────────

    async def _fetch_exchange_ohlcv(self, symbol: str, timeframe: str, limit: int) -> CandleSeries:
        try:
            rows = await self._exchange.fetch_ohlcv(to_ccxt_symbol(symbol), timeframe, limit=limit)
        except CcxtError as e:
            raise ProviderError(self.provider, str(e)) from e
        candles = _parse_ohlcv(rows)
        if not candles:
            raise ProviderError(self.provider, f"no candles for {symbol} {timeframe}")
        return CandleSeries(candles=candles, data_source=self.provider)

    async def _fetch_proxy_ohlcv(
        self, symbol: str, timeframe: str, limit: int, gecko_id: str | None
    ) -> CandleSeries:
        if self._coingecko is None:
            raise ProviderError("coingecko", "proxy provider not configured")
        info = lookup(symbol)
        resolved = gecko_id or (info.gecko_id if info is not None else None)
        if not resolved:
            raise ProviderError("coingecko", f"no CoinGecko id for {symbol}")
        return await self._coingecko.fetch_proxy_candles(resolved, timeframe, limit)

    async def fetch_ohlcv(
        self,
        symbol: str,
        timeframe: str = DEFAULT_TIMEFRAME,
        limit: int | None = None,
        *,
        gecko_id: str | None = None,
    ) -> CandleSeries:
        """Fetch candles, walking the fallback chain until one provider succeeds.

        Args:
            symbol: Exchange-native pair, e.g. "BTCUSDT".
            timeframe: One of 15m/1h/4h/1d; anything else maps to 4h.
            limit: Number of candles (defaults to the configured limit).
            gecko_id: CoinGecko id override for the proxy provider.

        Returns:
            CandleSeries tagged with the provider that produced it.

        Raises:
            MarketDataUnavailable: If every provider failed and the demo
                fallback is disabled.
        """
        timeframe = map_timeframe(timeframe)
        limit = limit or self._settings.ohlcv_limit
        cache_key = f"{symbol}:{timeframe}:{limit}:{gecko_id or ''}"
        cached = await self._ohlcv_cache.get(cache_key)
        if cached is not None:
            return cached

        providers = (
            (self.provider, lambda: self._fetch_exchange_ohlcv(symbol, timeframe, limit)),
            ("coingecko", lambda: self._fetch_proxy_ohlcv(symbol, timeframe, limit, gecko_id)),
        )
        for name, fetch in providers:
            try:
                series = await fetch()
            except ProviderError as e:
                logger.warning(
                    "ohlcv_provider_failed",
                    provider=name,
                    symbol=symbol,
                    timeframe=timeframe,
                    error=str(e),
                )
                continue
            await self._ohlcv_cache.set(cache_key, series)
            return series

        if not self._settings.demo_fallback_enabled:
            raise MarketDataUnavailable(f"no OHLCV provider available for {symbol} {timeframe}")
        logger.warning("ohlcv_demo_fallback", symbol=symbol, timeframe=timeframe)
        return generate_demo_candles(symbol, timeframe, limit)

    # ──────────────────────────────────────────────
    # Derivatives context
    # ──────────────────────────────────────────────

    async def _guarded(self, name: str, call: Awaitable[Any]) -> Any | None:
        try:
            return await call
        except CcxtError as e:
            logger.warning("futures_context_part_failed", part=name, error=str(e))
            return None

    async def fetch_futures_context(
        self, symbol: str, timeframe: str = DEFAULT_TIMEFRAME
    ) -> FuturesContext:
        """Fetch funding, open-interest history and long/short history concurrently.

        Parts that fail come back as None in the normalized context.

        Raises:
            MarketDataUnavailable: If all three parts failed.
        """
        timeframe = map_timeframe(timeframe)
        cache_key = f"{symbol}:{timeframe}"
        cached = await self._context_cache.get(cache_key)
        if cached is not None:
            return cached

        unified = to_ccxt_symbol(symbol)
        funding, oi_history, ls_history = await asyncio.gather(
            self._guarded("funding_rate", self._exchange.fetch_funding_rate(unified)),
            self._guarded(
                "open_interest",
                self._exchange.fetch_open_interest_history(
                    unified, timeframe, limit=CONTEXT_HISTORY_POINTS
                ),
            ),
            self._guarded(
                "long_short_ratio",
                self._exchange.fetch_long_short_ratio_history(
                    unified, timeframe, limit=CONTEXT_HISTORY_POINTS
                ),
            ),
        )
        if funding is None and oi_history is None and ls_history is None:
            raise MarketDataUnavailable(f"no derivatives data for {symbol}")

        context = normalize_futures_context(
            funding, oi_history, ls_history, source=self.provider
        )
        await self._context_cache.set(cache_key, context)
        logger.debug(
            "futures_context_fetched",
            symbol=symbol,
            funding_rate=context.funding_rate.current,
            oi_change_pct=context.open_interest.change_pct,
            long_short_ratio=context.long_short_ratio.ratio,
        )
        return context
