"""Signal engine: candles plus context in, graded BUY/SELL/HOLD out.

``generate_signal`` is the single public entry point of the scoring core:
1. Computes the indicator snapshot once
2. Builds the liquidity heatmap for the same window
3. Runs the breakout/fakeout and liquidation detectors
4. Scores the evidence table and decides against the threshold
5. Places entry, targets and stop, then packages the rounded result

The engine is synchronous and performs no I/O. Every intermediate value is
local to one call, so concurrent requests share nothing.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from enum import Enum
from typing import TypeVar

from signalgen.exceptions import InsufficientDataError
from signalgen.logging import get_logger
from signalgen.models import Candle, CandleSeries, SignalContext
from signalgen.signals.assembler import assemble_signal_result
from signalgen.signals.breakout import detect_breakout_fakeout
from signalgen.signals.indicators import compute_indicators
from signalgen.signals.levels import compute_price_levels
from signalgen.signals.liquidation import build_liquidation_risk_meter
from signalgen.signals.liquidity import build_liquidity_heatmap
from signalgen.signals.models import RiskTolerance, SignalResult, SignalType
from signalgen.signals.scoring import score_signal

logger = get_logger(__name__)

E = TypeVar("E", bound=Enum)


def _coerce(enum_cls: type[E], value: E | str | None, default: E) -> E:
    """Map a raw option onto ``enum_cls``; unknown values fall back to ``default``."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        return default


def generate_signal(
    candles: Sequence[Candle] | CandleSeries,
    signal_type: SignalType | str = SignalType.SWING,
    risk_tolerance: RiskTolerance | str = RiskTolerance.MODERATE,
    context: SignalContext | None = None,
    *,
    data_source: str | None = None,
    bucket_count: int = 24,
    timestamp: datetime | None = None,
) -> SignalResult:
    """Generate a trading signal for one candle window.

    Args:
        candles: Candles oldest first, or a CandleSeries whose ``data_source``
            tag is carried onto the result.
        signal_type: "scalp", "intraday" or "swing"; unknown values use swing.
        risk_tolerance: "conservative", "moderate" or "aggressive"; unknown
            values use moderate.
        context: Futures and catalyst context; neutral when omitted.
        data_source: Overrides the provider tag on the result.
        bucket_count: Liquidity heatmap resolution.
        timestamp: Generation time stamped on the result (defaults to now).

    Returns:
        SignalResult. Sparse or missing context degrades toward HOLD.

    Raises:
        InsufficientDataError: If there are no candles.
    """
    if isinstance(candles, CandleSeries):
        source = data_source or candles.data_source
        candles = candles.candles
    else:
        source = data_source or "live"
    if not candles:
        raise InsufficientDataError("generate_signal requires at least one candle")

    kind = _coerce(SignalType, signal_type, SignalType.SWING)
    tolerance = _coerce(RiskTolerance, risk_tolerance, RiskTolerance.MODERATE)
    context = context or SignalContext()
    futures = context.futures_context
    catalyst = context.catalyst_watch

    snapshot = compute_indicators(candles)
    liquidity = build_liquidity_heatmap(candles, snapshot.current_price, bucket_count)
    oi_change = futures.open_interest.change_pct
    breakout = detect_breakout_fakeout(
        candles, liquidity, snapshot.volume_ratio, oi_change, snapshot.atr14
    )
    liquidation = build_liquidation_risk_meter(
        futures.funding_rate.current,
        futures.long_short_ratio.ratio,
        oi_change,
        snapshot.volatility20,
        catalyst.combined_score,
    )

    outcome = score_signal(
        snapshot,
        liquidity=liquidity,
        futures=futures,
        catalyst=catalyst,
        breakout=breakout,
        liquidation=liquidation,
        risk_tolerance=tolerance,
    )
    levels = compute_price_levels(
        snapshot.current_price,
        outcome.signal,
        kind,
        outcome.regime,
        snapshot.atr14,
        snapshot.volatility20,
    )

    logger.debug(
        "signal_scored",
        signal=outcome.signal.value,
        regime=outcome.regime.regime.value,
        buy_score=round(outcome.buy_score, 3),
        sell_score=round(outcome.sell_score, 3),
        threshold=round(outcome.threshold, 3),
        quality=outcome.quality.score,
        candles=len(candles),
    )

    return assemble_signal_result(
        outcome=outcome,
        levels=levels,
        snapshot=snapshot,
        liquidity=liquidity,
        breakout=breakout,
        liquidation=liquidation,
        futures=futures,
        catalyst=catalyst,
        data_source=source,
        timestamp=timestamp,
    )
