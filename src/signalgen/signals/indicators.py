"""Technical indicator library.

Pure, stateless functions over an ordered close series or candle series
(oldest first). Every function returns None when the history is too short
instead of raising, so callers always branch on None.

Some formulas deliberately differ from textbook versions because the scoring
thresholds were tuned against them:
- RSI averages gains/losses over a single ``period`` window (no Wilder smoothing).
- ATR is a plain mean of the last ``period`` true ranges.
- The MACD signal line replays EMA12/EMA26 forward to build its own history.
"""

from collections.abc import Sequence

from signalgen.exceptions import InsufficientDataError
from signalgen.models import Candle
from signalgen.signals.models import (
    BollingerBands,
    IndicatorSnapshot,
    MacdValue,
    StochasticValue,
)


def mean(values: Sequence[float]) -> float | None:
    if not values:
        return None
    return sum(values) / len(values)


def std_dev(values: Sequence[float]) -> float | None:
    """Population standard deviation. None on empty input."""
    avg = mean(values)
    if avg is None:
        return None
    variance = sum((v - avg) ** 2 for v in values) / len(values)
    return variance**0.5


def sma(prices: Sequence[float], period: int) -> float | None:
    """Arithmetic mean of the last ``period`` prices."""
    if period <= 0 or len(prices) < period:
        return None
    return sum(prices[-period:]) / period


def ema(prices: Sequence[float], period: int) -> float | None:
    """Exponential moving average seeded with the SMA of the first ``period`` prices.

    Recurrence: ``e = price * k + e * (1 - k)`` with ``k = 2 / (period + 1)``,
    applied forward over the remaining prices.
    """
    if period <= 0 or len(prices) < period:
        return None
    k = 2 / (period + 1)
    e = sum(prices[:period]) / period
    for price in prices[period:]:
        e = price * k + e * (1 - k)
    return e


def rsi(prices: Sequence[float], period: int = 14) -> float | None:
    """Relative Strength Index over the last ``period`` deltas.

    Returns 100 when the window holds no losses.
    """
    if period <= 0 or len(prices) < period + 1:
        return None
    gains = 0.0
    losses = 0.0
    for i in range(len(prices) - period, len(prices)):
        delta = prices[i] - prices[i - 1]
        if delta > 0:
            gains += delta
        else:
            losses -= delta
    avg_gain = gains / period
    avg_loss = losses / period
    if avg_loss == 0:
        return 100.0
    return 100 - 100 / (1 + avg_gain / avg_loss)


def macd(prices: Sequence[float]) -> MacdValue:
    """MACD(12, 26, 9).

    The signal line is a 9-period EMA over the (EMA12 - EMA26) history, where
    the history is produced by replaying both EMAs forward from their SMA
    seeds: EMA12 advances alone over indices 12..25, then both advance together
    from index 26, emitting one history point per bar.
    """
    if len(prices) < 26:
        return MacdValue()
    ema12 = ema(prices, 12)
    ema26 = ema(prices, 26)
    if ema12 is None or ema26 is None:
        return MacdValue()
    line = ema12 - ema26

    k12 = 2 / 13
    k26 = 2 / 27
    e12 = sum(prices[:12]) / 12
    e26 = sum(prices[:26]) / 26
    for i in range(12, 26):
        e12 = prices[i] * k12 + e12 * (1 - k12)
    history: list[float] = []
    for i in range(26, len(prices)):
        e12 = prices[i] * k12 + e12 * (1 - k12)
        e26 = prices[i] * k26 + e26 * (1 - k26)
        history.append(e12 - e26)

    signal_line: float | None = None
    if len(history) >= 9:
        k9 = 2 / 10
        signal_line = sum(history[:9]) / 9
        for value in history[9:]:
            signal_line = value * k9 + signal_line * (1 - k9)

    histogram = line - signal_line if signal_line is not None else None
    return MacdValue(line=line, signal=signal_line, histogram=histogram)


def bollinger_bands(
    prices: Sequence[float], period: int = 20, std_multiplier: float = 2.0
) -> BollingerBands:
    """Bollinger Bands from SMA(period) +/- multiplier * population stddev."""
    middle = sma(prices, period)
    if middle is None:
        return BollingerBands()
    window = prices[-period:]
    variance = sum((v - middle) ** 2 for v in window) / period
    band = std_multiplier * variance**0.5
    return BollingerBands(upper=middle + band, middle=middle, lower=middle - band)


def momentum(prices: Sequence[float], period: int) -> float | None:
    """Relative change of the last price against the price ``period`` bars ago."""
    if period < 0 or len(prices) <= period:
        return None
    base = prices[-1 - period]
    if not base:
        return None
    return (prices[-1] - base) / base


def _true_range(candle: Candle, prev_close: float) -> float:
    return max(
        candle.high - candle.low,
        abs(candle.high - prev_close),
        abs(candle.low - prev_close),
    )


def atr(candles: Sequence[Candle], period: int = 14) -> float | None:
    """Mean true range over the last ``period`` candles."""
    if period <= 0 or len(candles) < period + 1:
        return None
    ranges = [
        _true_range(candles[i], candles[i - 1].close)
        for i in range(len(candles) - period, len(candles))
    ]
    return mean(ranges)


def _wilder_smooth(values: Sequence[float], period: int) -> list[float]:
    """Wilder running sum seeded with the sum of the first ``period`` values."""
    smoothed = [sum(values[:period])]
    for value in values[period:]:
        smoothed.append(smoothed[-1] - smoothed[-1] / period + value)
    return smoothed


def adx(candles: Sequence[Candle], period: int = 14) -> float | None:
    """Average Directional Index (trend strength, not direction)."""
    if period <= 0 or len(candles) < 2 * period + 1:
        return None

    trs: list[float] = []
    plus_dm: list[float] = []
    minus_dm: list[float] = []
    for i in range(1, len(candles)):
        cur, prev = candles[i], candles[i - 1]
        up_move = cur.high - prev.high
        down_move = prev.low - cur.low
        plus_dm.append(up_move if up_move > down_move and up_move > 0 else 0.0)
        minus_dm.append(down_move if down_move > up_move and down_move > 0 else 0.0)
        trs.append(_true_range(cur, prev.close))

    smooth_tr = _wilder_smooth(trs, period)
    smooth_plus = _wilder_smooth(plus_dm, period)
    smooth_minus = _wilder_smooth(minus_dm, period)

    dx_series: list[float] = []
    for tr_s, plus_s, minus_s in zip(smooth_tr, smooth_plus, smooth_minus):
        plus_di = 100 * plus_s / tr_s if tr_s > 0 else 0.0
        minus_di = 100 * minus_s / tr_s if tr_s > 0 else 0.0
        di_sum = plus_di + minus_di
        dx_series.append(100 * abs(plus_di - minus_di) / di_sum if di_sum > 0 else 0.0)

    if len(dx_series) < period:
        return None
    value = sum(dx_series[:period]) / period
    for dx in dx_series[period:]:
        value = (value * (period - 1) + dx) / period
    return value


def stochastic_oscillator(
    candles: Sequence[Candle], k_period: int = 14, d_period: int = 3
) -> StochasticValue:
    """Stochastic %K/%D with the previous bar's values for crossover checks.

    %K is 50 when the window's high equals its low. All four values are None
    unless there are at least ``k_period + d_period`` candles.
    """
    if k_period <= 0 or d_period <= 0 or len(candles) < k_period + d_period:
        return StochasticValue()

    k_series: list[float] = []
    for i in range(k_period - 1, len(candles)):
        window = candles[i - k_period + 1 : i + 1]
        highest = max(c.high for c in window)
        lowest = min(c.low for c in window)
        if highest == lowest:
            k_series.append(50.0)
        else:
            k_series.append(100 * (candles[i].close - lowest) / (highest - lowest))

    return StochasticValue(
        k=k_series[-1],
        d=sum(k_series[-d_period:]) / d_period,
        prev_k=k_series[-2],
        prev_d=sum(k_series[-d_period - 1 : -1]) / d_period,
    )


def ema_slope(prices: Sequence[float], period: int, lookback: int) -> float | None:
    """Relative change of EMA(period) between now and ``lookback`` bars ago."""
    if lookback <= 0 or len(prices) < period + lookback:
        return None
    now = ema(prices, period)
    past = ema(prices[:-lookback], period)
    if now is None or not past:
        return None
    return (now - past) / past


def compute_indicators(candles: Sequence[Candle]) -> IndicatorSnapshot:
    """Compute the full indicator snapshot for a candle series.

    Raises:
        InsufficientDataError: If ``candles`` is empty.
    """
    if not candles:
        raise InsufficientDataError("cannot compute indicators without candles")

    closes = [c.close for c in candles]
    returns = [
        (price - prev) / prev if prev else 0.0
        for prev, price in zip(closes, closes[1:])
    ]
    latest_volume = candles[-1].volume
    avg_volume = mean([c.volume for c in candles[-20:]]) or 0.0
    prev_macd = macd(closes[:-1]) if len(closes) > 30 else MacdValue()

    return IndicatorSnapshot(
        current_price=closes[-1],
        rsi=rsi(closes),
        macd=macd(closes),
        prev_macd_histogram=prev_macd.histogram,
        bollinger_bands=bollinger_bands(closes),
        ema20=ema(closes, 20),
        ema50=ema(closes, 50),
        sma200=sma(closes, 200),
        atr14=atr(candles, 14),
        adx14=adx(candles, 14),
        stochastic=stochastic_oscillator(candles),
        ema20_slope=ema_slope(closes, 20, 5),
        ema50_slope=ema_slope(closes, 50, 5),
        momentum3=momentum(closes, 3),
        momentum10=momentum(closes, 10),
        volatility20=std_dev(returns[-20:]),
        latest_volume=latest_volume,
        avg_volume=avg_volume,
        volume_ratio=latest_volume / avg_volume if avg_volume > 0 else None,
    )
