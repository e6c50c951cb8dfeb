"""Tests for CatalystService with mocked news and CoinGecko clients."""

from unittest.mock import AsyncMock

import pytest

from signalgen.exceptions import MarketDataUnavailable, ProviderError
from signalgen.market_data.catalyst_service import CatalystService

TRENDING = {"coins": [{"item": {"name": "Solana", "symbol": "sol"}}, {"item": {"name": "Bitcoin", "symbol": "btc"}}]}
COIN = {"market_data": {"price_change_percentage_30d": 30.0}}


def _make_service(news_result=None, trending_result=None, coin_result=None):
    news = AsyncMock()
    coingecko = AsyncMock()
    for mock, result in (
        (news.fetch_news, news_result),
        (coingecko.fetch_trending, trending_result),
        (coingecko.fetch_coin, coin_result),
    ):
        if isinstance(result, BaseException):
            mock.side_effect = result
        else:
            mock.return_value = result
    return CatalystService(news, coingecko), news, coingecko


class TestFetchCatalystWatch:
    """Tests for CatalystService.fetch_catalyst_watch."""

    @pytest.mark.asyncio
    async def test_all_parts(self) -> None:
        service, _, coingecko = _make_service(
            news_result=[{"title": "Bitcoin ETF inflow record"}],
            trending_result=TRENDING,
            coin_result=COIN,
        )

        watch = await service.fetch_catalyst_watch("BTCUSDT")

        assert watch.news_score == pytest.approx(16.0)
        assert watch.symbol_trending_rank == 2
        assert watch.fundamental_score == pytest.approx(10.0)
        assert watch.combined_score == pytest.approx(16.0 + 5.0 + 10.0)
        coingecko.fetch_coin.assert_awaited_once_with("bitcoin")

    @pytest.mark.asyncio
    async def test_failed_news_leaves_other_parts(self) -> None:
        service, _, _ = _make_service(
            news_result=ProviderError("cryptocompare", "timeout"),
            trending_result=TRENDING,
            coin_result=COIN,
        )

        watch = await service.fetch_catalyst_watch("BTCUSDT")

        assert watch.news_score is None
        assert watch.symbol_trending_rank == 2

    @pytest.mark.asyncio
    async def test_unknown_pair_skips_fundamentals(self) -> None:
        service, news, coingecko = _make_service(
            news_result=[{"title": "Pepe surge continues"}],
            trending_result={"coins": []},
        )

        watch = await service.fetch_catalyst_watch("PEPEUSDT")

        assert watch.fundamental_score is None
        assert watch.news_score == pytest.approx(16.0)
        coingecko.fetch_coin.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_coin_name_added_as_keyword(self) -> None:
        service, _, _ = _make_service(
            news_result=[{"title": "Frogcoin rally"}],
            trending_result={"coins": []},
        )

        watch = await service.fetch_catalyst_watch("FRGUSDT", coin_name="Frogcoin")

        assert watch.news_score == pytest.approx(16.0)

    @pytest.mark.asyncio
    async def test_all_parts_failed_raises(self) -> None:
        service, _, _ = _make_service(
            news_result=ProviderError("cryptocompare", "down"),
            trending_result=ProviderError("coingecko", "down"),
            coin_result=ProviderError("coingecko", "down"),
        )

        with pytest.raises(MarketDataUnavailable):
            await service.fetch_catalyst_watch("BTCUSDT")

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self) -> None:
        service, _, _ = _make_service(
            news_result=KeyError("bug"),
            trending_result=TRENDING,
            coin_result=COIN,
        )

        with pytest.raises(KeyError):
            await service.fetch_catalyst_watch("BTCUSDT")
