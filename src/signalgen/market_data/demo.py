"""Deterministic synthetic candles, the last link of the OHLCV fallback chain.

The random walk is seeded with symbol + timeframe, so the same request always
gets the same price path. Only the timestamps move with the wall clock.
"""

import random
import time

from signalgen.models import Candle, CandleSeries

#: Rough price level per known pair so demo output looks plausible.
BASE_PRICES: dict[str, float] = {
    "BTCUSDT": 96500.0,
    "ETHUSDT": 2700.0,
    "SOLUSDT": 195.0,
    "BNBUSDT": 640.0,
    "XRPUSDT": 2.65,
    "ADAUSDT": 0.78,
    "AVAXUSDT": 36.0,
    "DOGEUSDT": 0.26,
}
DEFAULT_BASE_PRICE = 50000.0

TIMEFRAME_MS: dict[str, int] = {
    "15m": 15 * 60_000,
    "1h": 60 * 60_000,
    "4h": 4 * 60 * 60_000,
    "1d": 24 * 60 * 60_000,
}

DEMO_SOURCE = "demo"


def generate_demo_candles(
    symbol: str,
    timeframe: str,
    limit: int = 120,
    now_ms: int | None = None,
) -> CandleSeries:
    """Random-walk candles with a per-symbol drift and volatility.

    Drift sign is a coin flip and per-bar volatility is drawn from [1%, 3%];
    both come from the seeded generator. Every candle satisfies
    ``low <= min(open, close) <= max(open, close) <= high``.
    """
    rng = random.Random(f"{symbol}:{timeframe}")
    interval = TIMEFRAME_MS.get(timeframe, TIMEFRAME_MS["4h"])
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    start = now_ms - now_ms % interval - limit * interval

    trend = 1 if rng.random() > 0.5 else -1
    volatility = 0.01 + rng.random() * 0.02
    price = BASE_PRICES.get(symbol, DEFAULT_BASE_PRICE)

    candles: list[Candle] = []
    for i in range(limit):
        open_ = price * (1 + (rng.random() - 0.5 + trend * 0.002) * volatility)
        close = open_ * (1 + (rng.random() - 0.5) * volatility)
        high = max(open_, close) * (1 + rng.random() * volatility * 0.5)
        low = min(open_, close) * (1 - rng.random() * volatility * 0.5)
        candles.append(
            Candle(
                timestamp=start + i * interval,
                open=open_,
                high=high,
                low=low,
                close=close,
                volume=100_000 + rng.random() * 400_000,
            )
        )
        price = close

    return CandleSeries(candles=tuple(candles), data_source=DEMO_SOURCE)
