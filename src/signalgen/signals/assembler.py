"""Package scoring output, detectors and context into a display-ready SignalResult.

All rounding lives here. The scoring core works on raw floats; this module
produces the values a client sees.
"""

from dataclasses import replace
from datetime import datetime, timezone

from signalgen.models import (
    CatalystWatch,
    FundingRateInfo,
    FuturesContext,
    LongShortInfo,
    OpenInterestInfo,
)
from signalgen.signals.levels import PriceLevels
from signalgen.signals.models import (
    BollingerBands,
    BreakoutFakeout,
    EntryRange,
    IndicatorSnapshot,
    LiquidationRiskMeter,
    LiquidityHeatmap,
    LiquidityNode,
    MacdValue,
    SignalResult,
    StochasticValue,
)
from signalgen.signals.scoring import ScoreOutcome
from signalgen.utils import round_or_none

#: Catalysts and trending topics shown per result.
MAX_CATALYST_ITEMS = 6


def _pct(value: float | None, digits: int = 2) -> float | None:
    return round_or_none(value * 100, digits) if value is not None else None


def _display_indicators(snapshot: IndicatorSnapshot) -> IndicatorSnapshot:
    macd = snapshot.macd
    bb = snapshot.bollinger_bands
    stoch = snapshot.stochastic
    return IndicatorSnapshot(
        current_price=round(snapshot.current_price, 2),
        rsi=round_or_none(snapshot.rsi, 2),
        macd=MacdValue(
            line=round_or_none(macd.line, 4),
            signal=round_or_none(macd.signal, 4),
            histogram=round_or_none(macd.histogram, 4),
        ),
        prev_macd_histogram=round_or_none(snapshot.prev_macd_histogram, 4),
        bollinger_bands=BollingerBands(
            upper=round_or_none(bb.upper, 2),
            middle=round_or_none(bb.middle, 2),
            lower=round_or_none(bb.lower, 2),
        ),
        ema20=round_or_none(snapshot.ema20, 2),
        ema50=round_or_none(snapshot.ema50, 2),
        sma200=round_or_none(snapshot.sma200, 2),
        atr14=round_or_none(snapshot.atr14, 4),
        adx14=round_or_none(snapshot.adx14, 2),
        stochastic=StochasticValue(
            k=round_or_none(stoch.k, 2),
            d=round_or_none(stoch.d, 2),
            prev_k=round_or_none(stoch.prev_k, 2),
            prev_d=round_or_none(stoch.prev_d, 2),
        ),
        ema20_slope=_pct(snapshot.ema20_slope, 3),
        ema50_slope=_pct(snapshot.ema50_slope, 3),
        momentum3=_pct(snapshot.momentum3),
        momentum10=_pct(snapshot.momentum10),
        volatility20=_pct(snapshot.volatility20),
        latest_volume=round(snapshot.latest_volume, 2),
        avg_volume=round(snapshot.avg_volume, 2),
        volume_ratio=round_or_none(snapshot.volume_ratio, 2),
    )


def _display_node(node: LiquidityNode) -> LiquidityNode:
    return LiquidityNode(
        low=round(node.low, 2),
        high=round(node.high, 2),
        center=round(node.center, 2),
        intensity=round(node.intensity, 1),
        volume=round(node.volume, 2),
    )


def _display_heatmap(heatmap: LiquidityHeatmap | None) -> LiquidityHeatmap | None:
    """Round every node and drop the full bucket list."""
    if heatmap is None:
        return None
    return LiquidityHeatmap(
        min_price=round(heatmap.min_price, 2),
        max_price=round(heatmap.max_price, 2),
        bucket_count=heatmap.bucket_count,
        hotspots=tuple(_display_node(n) for n in heatmap.hotspots),
        support_zones=tuple(_display_node(n) for n in heatmap.support_zones),
        resistance_zones=tuple(_display_node(n) for n in heatmap.resistance_zones),
    )


def _display_futures(ctx: FuturesContext) -> FuturesContext:
    return FuturesContext(
        funding_rate=FundingRateInfo(
            current=round_or_none(ctx.funding_rate.current, 6),
            annualized_pct=round_or_none(ctx.funding_rate.annualized_pct, 2),
            next_funding_time=ctx.funding_rate.next_funding_time,
        ),
        open_interest=OpenInterestInfo(
            latest=round_or_none(ctx.open_interest.latest, 2),
            change_pct=round_or_none(ctx.open_interest.change_pct, 2),
        ),
        long_short_ratio=LongShortInfo(
            ratio=round_or_none(ctx.long_short_ratio.ratio, 2),
            change_pct=round_or_none(ctx.long_short_ratio.change_pct, 2),
        ),
        source=ctx.source,
    )


def _display_catalyst(watch: CatalystWatch) -> CatalystWatch:
    return replace(
        watch,
        sentiment_score=round_or_none(watch.sentiment_score, 1),
        trend_boost=round_or_none(watch.trend_boost, 1),
        news_score=round_or_none(watch.news_score, 1),
        fundamental_score=round_or_none(watch.fundamental_score, 1),
        combined_score=round_or_none(watch.combined_score, 1),
        catalysts=watch.catalysts[:MAX_CATALYST_ITEMS],
        trending_topics=watch.trending_topics[:MAX_CATALYST_ITEMS],
    )


def assemble_signal_result(
    *,
    outcome: ScoreOutcome,
    levels: PriceLevels,
    snapshot: IndicatorSnapshot,
    liquidity: LiquidityHeatmap | None,
    breakout: BreakoutFakeout,
    liquidation: LiquidationRiskMeter,
    futures: FuturesContext,
    catalyst: CatalystWatch,
    data_source: str = "live",
    timestamp: datetime | None = None,
) -> SignalResult:
    """Build the final, rounded SignalResult.

    Args:
        timestamp: Generation time; defaults to now (UTC). The only field
            that varies between otherwise identical calls.
    """
    generated_at = timestamp or datetime.now(timezone.utc)
    return SignalResult(
        signal=outcome.signal,
        confidence=round(outcome.confidence, 1),
        regime=outcome.regime.regime,
        current_price=round(snapshot.current_price, 2),
        entry_range=EntryRange(
            low=round(levels.entry_low, 2),
            high=round(levels.entry_high, 2),
        ),
        take_profit_1=round(levels.take_profit_1, 2),
        take_profit_1_pct=round(levels.take_profit_1_pct, 2),
        take_profit_2=round(levels.take_profit_2, 2),
        take_profit_2_pct=round(levels.take_profit_2_pct, 2),
        stop_loss=round(levels.stop_loss, 2),
        stop_loss_pct=round(levels.stop_loss_pct, 2),
        risk_reward=round(levels.risk_reward, 2),
        buy_score=round(outcome.buy_score, 2),
        sell_score=round(outcome.sell_score, 2),
        threshold=round(outcome.threshold, 2),
        signal_quality=outcome.quality,
        liquidation_risk_meter=liquidation,
        breakout_fakeout_detector=breakout,
        indicators=_display_indicators(snapshot),
        futures_context=_display_futures(futures),
        catalyst_watch=_display_catalyst(catalyst),
        liquidity_heatmap=_display_heatmap(liquidity),
        reasons=outcome.reasons,
        timestamp=generated_at.isoformat(),
        data_source=data_source or "live",
    )
