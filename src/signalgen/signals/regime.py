"""Market regime classification from EMA spread and ADX.

The regime decides which RSI thresholds apply, how Bollinger touches are
weighted, and how the confluence threshold and price targets are adjusted.
"""

from dataclasses import dataclass

from signalgen.signals.models import Regime

#: |EMA20 - EMA50| / price needed to call a direction.
TREND_BIAS_THRESHOLD = 0.009

#: Wider spread used to guess trend strength when ADX is unavailable.
PROXY_BIAS_THRESHOLD = 0.012

STRONG_TREND_ADX = 22.0
WEAK_TREND_ADX = 18.0


@dataclass(frozen=True)
class RegimeAssessment:
    regime: Regime
    trend_bias: float  # (EMA20 - EMA50) / price; 0 without both EMAs
    trend_strength: float  # ADX14, or a 23/16 proxy without it
    strong_trend: bool
    weak_trend: bool


def _directional(trend_bias: float) -> Regime:
    return Regime.UPTREND if trend_bias > 0 else Regime.DOWNTREND


def classify_regime(
    price: float,
    ema20: float | None,
    ema50: float | None,
    adx14: float | None,
) -> RegimeAssessment:
    """Classify the market as uptrend, downtrend, or range.

    Three tiers, in order: a strong trend (wide EMA spread and ADX >= 22) takes
    the sign of the spread; otherwise a weak trend (ADX < 18) is a range;
    otherwise the EMA spread alone decides.
    """
    trend_bias = (ema20 - ema50) / price if ema20 is not None and ema50 is not None and price else 0.0
    if adx14 is not None:
        trend_strength = adx14
    else:
        trend_strength = 23.0 if abs(trend_bias) >= PROXY_BIAS_THRESHOLD else 16.0

    strong_trend = abs(trend_bias) >= TREND_BIAS_THRESHOLD and trend_strength >= STRONG_TREND_ADX
    weak_trend = trend_strength < WEAK_TREND_ADX

    if strong_trend:
        regime = _directional(trend_bias)
    elif weak_trend:
        regime = Regime.RANGE
    elif abs(trend_bias) >= TREND_BIAS_THRESHOLD:
        regime = _directional(trend_bias)
    else:
        regime = Regime.RANGE

    return RegimeAssessment(
        regime=regime,
        trend_bias=trend_bias,
        trend_strength=trend_strength,
        strong_trend=strong_trend,
        weak_trend=weak_trend,
    )
