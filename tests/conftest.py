"""Shared test fixtures for the crypto signal engine."""

import pytest

from signalgen.config import AppSettings, MarketDataSettings
from signalgen.models import Candle


def _candles_from_closes(
    closes: list[float],
    wick: float = 0.002,
    volume: float = 1000.0,
    start_ts: int = 1_700_000_000_000,
    step_ms: int = 14_400_000,  # 4 hours
) -> list[Candle]:
    """Build candles whose open is the previous close.

    High/low extend ``wick`` beyond the body so every candle satisfies the
    OHLC ordering invariant.
    """
    candles = []
    prev = closes[0]
    for i, close in enumerate(closes):
        open_ = prev
        candles.append(
            Candle(
                timestamp=start_ts + i * step_ms,
                open=open_,
                high=max(open_, close) * (1 + wick),
                low=min(open_, close) * (1 - wick),
                close=close,
                volume=volume,
            )
        )
        prev = close
    return candles


@pytest.fixture
def candles_from_closes():
    """Factory fixture exposing the close-series candle builder."""
    return _candles_from_closes


@pytest.fixture
def flat_candles() -> list[Candle]:
    """120 identical candles at price 100 with zero range."""
    return [
        Candle(
            timestamp=1_700_000_000_000 + i * 14_400_000,
            open=100.0,
            high=100.0,
            low=100.0,
            close=100.0,
            volume=1000.0,
        )
        for i in range(120)
    ]


@pytest.fixture
def uptrend_candles() -> list[Candle]:
    """120 candles rising 1% per bar from 100."""
    return _candles_from_closes([100 * 1.01**i for i in range(120)])


@pytest.fixture
def downtrend_candles() -> list[Candle]:
    """120 candles falling 1% per bar from 100."""
    return _candles_from_closes([100 * 0.99**i for i in range(120)])


@pytest.fixture
def app_settings() -> AppSettings:
    """Return AppSettings with test defaults (demo fallback on, no API key)."""
    return AppSettings(
        log_level="DEBUG",
        market_data=MarketDataSettings(
            exchange_id="binanceusdm",
            demo_fallback_enabled=True,
        ),
    )
