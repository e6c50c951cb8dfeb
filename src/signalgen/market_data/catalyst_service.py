"""Catalyst watch service: news, trending list and fundamentals for one asset.

Runs the three upstream fetches concurrently. Each part that fails is logged
and treated as absent; the normalizer turns whatever arrived into a
CatalystWatch.
"""

import asyncio
from typing import Any

from signalgen.context.catalyst import build_catalyst_watch, parse_trending
from signalgen.exceptions import MarketDataUnavailable, ProviderError
from signalgen.logging import get_logger
from signalgen.market_data.coingecko import CoinGeckoClient
from signalgen.market_data.news import NewsClient
from signalgen.market_data.symbols import keywords_for, lookup, symbol_base
from signalgen.models import CatalystWatch

logger = get_logger(__name__)


class CatalystService:
    """Builds the CatalystWatch for a trading pair."""

    def __init__(self, news: NewsClient, coingecko: CoinGeckoClient) -> None:
        self._news = news
        self._coingecko = coingecko

    async def _fetch_coin(self, gecko_id: str | None) -> dict[str, Any] | None:
        if not gecko_id:
            return None
        return await self._coingecko.fetch_coin(gecko_id)

    async def fetch_catalyst_watch(
        self,
        symbol: str,
        *,
        gecko_id: str | None = None,
        coin_name: str | None = None,
    ) -> CatalystWatch:
        """Fetch and score catalysts for ``symbol``.

        Args:
            symbol: Exchange-native pair, e.g. "BTCUSDT".
            gecko_id: CoinGecko id override for unknown pairs.
            coin_name: Extra news keyword for unknown pairs.

        Raises:
            MarketDataUnavailable: If every upstream part failed.
        """
        info = lookup(symbol)
        gecko_id = gecko_id or (info.gecko_id if info is not None else None)
        keywords = list(keywords_for(symbol))
        if coin_name and coin_name.lower() not in keywords:
            keywords.append(coin_name.lower())

        news, trending, coin = await asyncio.gather(
            self._news.fetch_news(),
            self._coingecko.fetch_trending(),
            self._fetch_coin(gecko_id),
            return_exceptions=True,
        )

        failed = []
        for part, result in (("news", news), ("trending", trending), ("fundamentals", coin)):
            if isinstance(result, ProviderError):
                logger.warning("catalyst_part_failed", part=part, symbol=symbol, error=str(result))
                failed.append(part)
            elif isinstance(result, BaseException):
                raise result
        if len(failed) == 3:
            raise MarketDataUnavailable(f"no catalyst data for {symbol}")

        watch = build_catalyst_watch(
            symbol_base=symbol_base(symbol),
            keywords=keywords,
            news_rows=None if "news" in failed else news,
            trending=() if "trending" in failed else parse_trending(trending),
            coin=None if "fundamentals" in failed else coin,
        )
        logger.debug(
            "catalyst_watch_built",
            symbol=symbol,
            combined_score=watch.combined_score,
            label=watch.sentiment_label,
            failed_parts=failed,
        )
        return watch
