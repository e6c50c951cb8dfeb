"""CryptoCompare news feed client."""

from typing import Any

from signalgen.exceptions import ProviderError
from signalgen.market_data.cache import TTLCache
from signalgen.market_data.http import build_url, get_json_async

PROVIDER = "cryptocompare"


class NewsClient:
    """Fetches the latest crypto headlines.

    Args:
        url: News endpoint including its fixed query (language, categories).
        limit: Number of rows requested.
        timeout: Per-request timeout in seconds.
        cache_ttl_seconds: Lifetime of the cached feed.
    """

    def __init__(
        self,
        url: str,
        limit: int = 40,
        timeout: float = 10.0,
        cache_ttl_seconds: float = 120,
    ) -> None:
        self._url = build_url(url, params={"limit": limit})
        self._timeout = timeout
        self._cache = TTLCache(cache_ttl_seconds)

    async def fetch_news(self) -> list[dict[str, Any]]:
        """Return raw news rows, newest first.

        Raises:
            ProviderError: If the feed is unreachable or malformed.
        """

        async def load() -> list[dict[str, Any]]:
            data = await get_json_async(self._url, provider=PROVIDER, timeout=self._timeout)
            rows = data.get("Data") if isinstance(data, dict) else None
            if not isinstance(rows, list):
                raise ProviderError(PROVIDER, "response has no Data list")
            return [row for row in rows if isinstance(row, dict)]

        return await self._cache.get_or_load("news", load)
