"""Breakout vs fakeout detection at liquidity levels.

Looks at the last two candles: a close that crosses a liquidity hotspot is a
break candidate, and the geometry of the breaking candle (body/wick ratios)
plus volume and open-interest expansion decide whether the break is real or a
trap.
"""

from collections.abc import Sequence

from signalgen.models import Candle
from signalgen.signals.models import (
    Bias,
    BreakoutFakeout,
    BreakoutPattern,
    LiquidityHeatmap,
    LiquidityNode,
)
from signalgen.utils import clamp, round_or_none

# Confirmation thresholds (each adds one quality point, 0-4)
_MIN_BODY_RATIO = 0.55
_MAX_OPPOSING_WICK = 0.22
_MIN_VOLUME_BOOST = 0.15
_MIN_OI_BOOST = 0.1

# Trap thresholds (each adds one fakeout flag, 0-3)
_TRAP_OPPOSING_WICK = 0.38
_TRAP_VOLUME_BOOST = -0.1
_TRAP_OI_BOOST = -0.15


def _level_above(hotspots: Sequence[LiquidityNode], price: float) -> float | None:
    centers = [n.center for n in hotspots if n.center >= price]
    return min(centers) if centers else None


def _level_below(hotspots: Sequence[LiquidityNode], price: float) -> float | None:
    centers = [n.center for n in hotspots if n.center <= price]
    return max(centers) if centers else None


def _classify(
    *,
    upward: bool,
    level: float,
    body_ratio: float,
    opposing_wick: float,
    volume_boost: float,
    oi_boost: float,
    metrics: dict[str, float | int | None],
) -> BreakoutFakeout:
    quality = sum(
        (
            body_ratio > _MIN_BODY_RATIO,
            opposing_wick < _MAX_OPPOSING_WICK,
            volume_boost > _MIN_VOLUME_BOOST,
            oi_boost > _MIN_OI_BOOST,
        )
    )
    flags = sum(
        (
            opposing_wick > _TRAP_OPPOSING_WICK,
            volume_boost < _TRAP_VOLUME_BOOST,
            oi_boost < _TRAP_OI_BOOST,
        )
    )
    metrics = {**metrics, "qualityScore": quality, "fakeoutFlags": flags}
    side = "above resistance" if upward else "below support"

    if quality >= 3 and flags <= 1:
        confidence = clamp(56 + quality * 10 + (volume_boost + oi_boost) * 8, 55, 95)
        return BreakoutFakeout(
            pattern=BreakoutPattern.BREAKOUT_UP if upward else BreakoutPattern.BREAKOUT_DOWN,
            bias=Bias.BULLISH if upward else Bias.BEARISH,
            confidence=round(confidence, 1),
            break_level=level,
            summary=f"Decisive close {side} ${level:.2f} with {quality}/4 confirmations",
            metrics=tuple(metrics.items()),
        )

    confidence = clamp(50 + flags * 12 - quality * 3, 45, 90)
    trap = "bull trap" if upward else "bear trap"
    return BreakoutFakeout(
        pattern=BreakoutPattern.FAKEOUT_UP if upward else BreakoutPattern.FAKEOUT_DOWN,
        bias=Bias.BEARISH if upward else Bias.BULLISH,
        confidence=round(confidence, 1),
        break_level=level,
        summary=f"Break {side} ${level:.2f} lacks follow-through ({flags} trap flags) - likely {trap}",
        metrics=tuple(metrics.items()),
    )


def detect_breakout_fakeout(
    candles: Sequence[Candle],
    liquidity: LiquidityHeatmap | None,
    volume_ratio: float | None,
    oi_change_pct: float | None,
    atr14: float | None,
) -> BreakoutFakeout:
    """Classify the latest candle as a breakout, a fakeout, or neither.

    Levels come from the heatmap hotspots nearest to the *previous* close: a
    breakout-up needs ``prev.close <= resistance < cur.close`` and a
    breakout-down needs ``prev.close >= support > cur.close``.

    Args:
        candles: Candle series, oldest first (only the last two are used).
        liquidity: Heatmap for the same window, or None.
        volume_ratio: Latest volume over the 20-bar average.
        oi_change_pct: Open-interest change in percent over the context window.
        atr14: ATR used to express the breaking candle's size.

    Returns:
        BreakoutFakeout; NO_CLEAR_PATTERN when nothing was broken.
    """
    volume_boost = clamp((volume_ratio - 1) / 1.2, -1, 1) if volume_ratio is not None else 0.0
    oi_boost = clamp(oi_change_pct / 12, -1, 1) if oi_change_pct is not None else 0.0
    metrics: dict[str, float | int | None] = {
        "bodyRatio": None,
        "upperWickRatio": None,
        "lowerWickRatio": None,
        "volumeRatio": round_or_none(volume_ratio, 2),
        "volumeBoost": round(volume_boost, 3),
        "oiBoost": round(oi_boost, 3),
        "rangeToAtr": None,
    }

    if len(candles) >= 2 and liquidity is not None:
        prev, cur = candles[-2], candles[-1]
        candle_range = cur.high - cur.low
        if candle_range > 0:
            body_ratio = abs(cur.close - cur.open) / candle_range
            upper_wick = (cur.high - max(cur.open, cur.close)) / candle_range
            lower_wick = (min(cur.open, cur.close) - cur.low) / candle_range
        else:
            body_ratio = upper_wick = lower_wick = 0.0
        metrics.update(
            bodyRatio=round(body_ratio, 3),
            upperWickRatio=round(upper_wick, 3),
            lowerWickRatio=round(lower_wick, 3),
            rangeToAtr=round(candle_range / atr14, 2) if atr14 else None,
        )

        resistance = _level_above(liquidity.hotspots, prev.close)
        support = _level_below(liquidity.hotspots, prev.close)
        if resistance is not None and prev.close <= resistance < cur.close:
            return _classify(
                upward=True,
                level=resistance,
                body_ratio=body_ratio,
                opposing_wick=upper_wick,
                volume_boost=volume_boost,
                oi_boost=oi_boost,
                metrics=metrics,
            )
        if support is not None and prev.close >= support > cur.close:
            return _classify(
                upward=False,
                level=support,
                body_ratio=body_ratio,
                opposing_wick=lower_wick,
                volume_boost=volume_boost,
                oi_boost=oi_boost,
                metrics=metrics,
            )

    confidence = clamp(32.0 + (8 if volume_boost > 0 else 0), 30, 55)
    return BreakoutFakeout(
        pattern=BreakoutPattern.NO_CLEAR_PATTERN,
        bias=Bias.NEUTRAL,
        confidence=confidence,
        break_level=None,
        summary="No liquidity level broken on the latest candle",
        metrics=tuple(metrics.items()),
    )
