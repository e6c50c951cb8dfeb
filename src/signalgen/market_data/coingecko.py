"""CoinGecko client: proxy candles, trending list, and coin fundamentals.

Uses urllib.request (stdlib) in a worker thread and caches every response
in the client's own TTLCache.
"""

from typing import Any

from signalgen.exceptions import ProviderError
from signalgen.logging import get_logger
from signalgen.market_data.cache import TTLCache
from signalgen.market_data.http import build_url, get_json_async
from signalgen.models import Candle, CandleSeries
from signalgen.utils import to_float

logger = get_logger(__name__)

PROVIDER = "coingecko"
PROXY_SOURCE = "coingecko_proxy"

#: High/low are synthesized around the sampled price by this fraction.
PROXY_WICK = 0.005

#: History window (days) requested per timeframe.
TIMEFRAME_DAYS: dict[str, int] = {"15m": 1, "1h": 3, "4h": 7, "1d": 90}


class CoinGeckoClient:
    """Thin async wrapper over the public CoinGecko v3 API.

    Args:
        base_url: API root, e.g. "https://api.coingecko.com/api/v3".
        api_key: Optional demo API key for higher rate limits.
        timeout: Per-request timeout in seconds.
        cache_ttl_seconds: Lifetime of cached responses.
        cache_max_entries: Cached responses kept at most.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 10.0,
        cache_ttl_seconds: float = 120,
        cache_max_entries: int = 400,
    ) -> None:
        self._base_url = base_url
        self._api_key = api_key or None
        self._timeout = timeout
        self._cache = TTLCache(cache_ttl_seconds, cache_max_entries)

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        query = dict(params or {})
        if self._api_key:
            query["x_cg_demo_api_key"] = self._api_key
        url = build_url(self._base_url, path, query)

        async def load() -> Any:
            return await get_json_async(url, provider=PROVIDER, timeout=self._timeout)

        return await self._cache.get_or_load(url, load)

    async def fetch_market_chart(self, gecko_id: str, days: int) -> dict[str, Any]:
        params: dict[str, Any] = {"vs_currency": "usd", "days": days}
        if days > 30:
            params["interval"] = "daily"
        data = await self._get(f"coins/{gecko_id}/market_chart", params)
        if not isinstance(data, dict):
            raise ProviderError(PROVIDER, "unexpected market_chart payload")
        return data

    async def fetch_proxy_candles(self, gecko_id: str, timeframe: str, limit: int) -> CandleSeries:
        """Build approximate candles from sampled prices.

        CoinGecko only returns point prices, so open == close and high/low
        are the price +/- 0.5%.

        Raises:
            ProviderError: If the request fails or yields no prices.
        """
        days = TIMEFRAME_DAYS.get(timeframe, TIMEFRAME_DAYS["4h"])
        data = await self.fetch_market_chart(gecko_id, days)
        prices = data.get("prices") or []
        volumes = data.get("total_volumes") or []

        candles: list[Candle] = []
        offset = max(0, len(prices) - limit)
        for i, point in enumerate(prices[offset:], start=offset):
            if not isinstance(point, (list, tuple)) or len(point) < 2:
                continue
            ts = to_float(point[0])
            price = to_float(point[1])
            if ts is None or price is None or price <= 0:
                continue
            volume_point = volumes[i] if i < len(volumes) else None
            volume = to_float(volume_point[1]) if isinstance(volume_point, (list, tuple)) else None
            candles.append(
                Candle(
                    timestamp=int(ts),
                    open=price,
                    high=price * (1 + PROXY_WICK),
                    low=price * (1 - PROXY_WICK),
                    close=price,
                    volume=max(volume or 0.0, 0.0),
                )
            )

        if not candles:
            raise ProviderError(PROVIDER, f"no prices for {gecko_id}")
        logger.debug("coingecko_proxy_candles", gecko_id=gecko_id, count=len(candles))
        return CandleSeries(candles=tuple(candles), data_source=PROXY_SOURCE)

    async def fetch_trending(self) -> dict[str, Any]:
        data = await self._get("search/trending")
        if not isinstance(data, dict):
            raise ProviderError(PROVIDER, "unexpected trending payload")
        return data

    async def fetch_coin(self, gecko_id: str) -> dict[str, Any]:
        """Coin detail payload with market, developer and community data."""
        data = await self._get(
            f"coins/{gecko_id}",
            {
                "localization": "false",
                "tickers": "false",
                "market_data": "true",
                "community_data": "true",
                "developer_data": "true",
                "sparkline": "false",
            },
        )
        if not isinstance(data, dict):
            raise ProviderError(PROVIDER, f"unexpected coin payload for {gecko_id}")
        return data
