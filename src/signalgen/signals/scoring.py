"""Confluence scoring: evidence rules, threshold, quality grade, and confidence.

``score_signal`` runs an ordered table of rules over one indicator snapshot
and its context. Each rule may add weighted points to the buy or sell side
under a category, record a reason, or apply a soft penalty. After the table a
single contradiction penalty is applied and the result is compared against a
regime- and volatility-adjusted threshold.

Rule order is the order reasons appear in the output.
"""

from collections.abc import Callable
from dataclasses import dataclass

from signalgen.models import CatalystWatch, FuturesContext
from signalgen.signals.evidence import CATEGORY_LABELS, EvidenceAccumulator
from signalgen.signals.models import (
    Bias,
    BreakoutFakeout,
    IndicatorSnapshot,
    LiquidationBias,
    LiquidationRiskMeter,
    LiquidityHeatmap,
    QualityBreakdownItem,
    Regime,
    RiskTolerance,
    SignalAction,
    SignalQuality,
)
from signalgen.signals.regime import RegimeAssessment, classify_regime
from signalgen.utils import clamp

#: Base confluence threshold per risk tolerance.
RISK_THRESHOLDS: dict[RiskTolerance, float] = {
    RiskTolerance.CONSERVATIVE: 5.1,
    RiskTolerance.MODERATE: 3.8,
    RiskTolerance.AGGRESSIVE: 2.8,
}

#: Minimum |buy - sell| for a directional signal.
MIN_EDGE = 0.9

CONTRADICTION_RATIO = 0.35


@dataclass(frozen=True)
class RuleInputs:
    """Everything the evidence rules may read. Immutable for the whole pass."""

    snapshot: IndicatorSnapshot
    regime: RegimeAssessment
    liquidity: LiquidityHeatmap | None
    futures: FuturesContext
    catalyst: CatalystWatch
    breakout: BreakoutFakeout
    liquidation: LiquidationRiskMeter


@dataclass(frozen=True)
class ScoreOutcome:
    signal: SignalAction
    confidence: float
    regime: RegimeAssessment
    buy_score: float
    sell_score: float
    threshold: float
    edge: float
    quality: SignalQuality
    reasons: tuple[str, ...]


# ──────────────────────────────────────────────
# Evidence rules
# ──────────────────────────────────────────────


def _regime_rule(acc: EvidenceAccumulator, inp: RuleInputs) -> None:
    regime = inp.regime.regime
    if regime is Regime.RANGE:
        acc.note("Market regime: ranging - mean reversion signals weighted higher")
    else:
        acc.note(f"Market regime: {regime.value} - trend-following signals weighted higher")


def _adx_rule(acc: EvidenceAccumulator, inp: RuleInputs) -> None:
    adx = inp.snapshot.adx14
    if adx is None:
        return
    bias = inp.regime.trend_bias
    if adx >= 28:
        if bias > 0:
            acc.add_buy(1.0, "trend", f"ADX({adx:.1f}) confirms a strong uptrend")
        elif bias < 0:
            acc.add_sell(1.0, "trend", f"ADX({adx:.1f}) confirms a strong downtrend")
        else:
            acc.note(f"ADX({adx:.1f}) strong but EMA direction is flat")
    elif adx <= 17:
        acc.soften(0.95, f"ADX({adx:.1f}) shows a weak trend - directional signals discounted")


def _rsi_rule(acc: EvidenceAccumulator, inp: RuleInputs) -> None:
    value = inp.snapshot.rsi
    if value is None:
        return
    regime = inp.regime.regime
    label = f"RSI({value:.1f})"
    if regime is Regime.UPTREND:
        if value < 38:
            acc.add_buy(1.6, "technical", f"{label} pullback in uptrend - dip-buy setup")
        elif value > 78:
            acc.add_sell(1.2, "technical", f"{label} extended in uptrend - exhaustion risk")
        else:
            acc.note(f"{label} healthy for uptrend continuation")
    elif regime is Regime.DOWNTREND:
        if value > 62:
            acc.add_sell(1.6, "technical", f"{label} bounce in downtrend - sell-the-rally setup")
        elif value < 22:
            acc.add_buy(1.1, "technical", f"{label} deeply oversold - relief bounce possible")
        else:
            acc.note(f"{label} neutral within downtrend")
    elif value < 30:
        acc.add_buy(1.8, "technical", f"{label} oversold in range - bullish mean reversion")
    elif value > 70:
        acc.add_sell(1.8, "technical", f"{label} overbought in range - bearish mean reversion")
    else:
        acc.note(f"{label} neutral in ranging market")


def _macd_rule(acc: EvidenceAccumulator, inp: RuleInputs) -> None:
    macd = inp.snapshot.macd
    hist = macd.histogram
    if hist is None or macd.line is None or macd.signal is None:
        return
    prev = inp.snapshot.prev_macd_histogram
    if hist > 0 and macd.line > macd.signal:
        if prev is not None and prev <= 0:
            acc.add_buy(1.9, "technical", "MACD fresh bullish crossover - momentum shift upward")
        elif prev is not None and hist > prev:
            acc.add_buy(1.4, "technical", "MACD bullish momentum is strengthening")
        else:
            acc.add_buy(1.1, "technical", "MACD remains bullish")
    elif hist < 0 and macd.line < macd.signal:
        if prev is not None and prev >= 0:
            acc.add_sell(1.9, "technical", "MACD fresh bearish crossover - momentum shift downward")
        elif prev is not None and hist < prev:
            acc.add_sell(1.4, "technical", "MACD bearish momentum is strengthening")
        else:
            acc.add_sell(1.1, "technical", "MACD remains bearish")


def _bollinger_rule(acc: EvidenceAccumulator, inp: RuleInputs) -> None:
    bb = inp.snapshot.bollinger_bands
    if bb.upper is None or bb.middle is None or bb.lower is None:
        return
    price = inp.snapshot.current_price
    regime = inp.regime.regime
    if price <= bb.lower:
        points = 0.8 if regime is Regime.DOWNTREND else 1.4
        acc.add_buy(points, "technical", f"Price touched lower Bollinger Band (${bb.lower:.2f})")
    elif price >= bb.upper:
        points = 0.8 if regime is Regime.UPTREND else 1.4
        acc.add_sell(points, "technical", f"Price touched upper Bollinger Band (${bb.upper:.2f})")
    bandwidth = (bb.upper - bb.lower) / bb.middle if bb.middle else 0.0
    if bandwidth < 0.04:
        acc.soften(0.95, "Bollinger bandwidth compressed - breakout risk rising")


def _ema_structure_rule(acc: EvidenceAccumulator, inp: RuleInputs) -> None:
    snap = inp.snapshot
    if snap.ema20 is None or snap.ema50 is None:
        return
    price = snap.current_price
    if price > snap.ema20 > snap.ema50:
        acc.add_buy(1.5, "trend", "Price above EMA20 > EMA50 - bullish structure intact")
    elif price < snap.ema20 < snap.ema50:
        acc.add_sell(1.5, "trend", "Price below EMA20 < EMA50 - bearish structure intact")
    else:
        acc.note("EMA structure mixed - trend conviction reduced")


def _sma200_rule(acc: EvidenceAccumulator, inp: RuleInputs) -> None:
    sma200 = inp.snapshot.sma200
    if sma200 is None:
        return
    if inp.snapshot.current_price > sma200:
        acc.add_buy(0.7, "trend", "Price above SMA200 - long-term support")
    else:
        acc.add_sell(0.7, "trend", "Price below SMA200 - long-term pressure")


def _ema_slope_rule(acc: EvidenceAccumulator, inp: RuleInputs) -> None:
    fast, slow = inp.snapshot.ema20_slope, inp.snapshot.ema50_slope
    if fast is None or slow is None:
        return
    if fast > 0 and slow > 0:
        acc.add_buy(0.8, "trend", "EMA20 and EMA50 both sloping upward")
    elif fast < 0 and slow < 0:
        acc.add_sell(0.8, "trend", "EMA20 and EMA50 both sloping downward")
    else:
        acc.note("EMA slopes diverging - trend transition possible")


def _momentum_rule(acc: EvidenceAccumulator, inp: RuleInputs) -> None:
    short, medium = inp.snapshot.momentum3, inp.snapshot.momentum10
    if short is None or medium is None:
        return
    if short > 0 and medium > 0:
        acc.add_buy(1.1, "technical", "Short and medium momentum aligned upward")
    elif short < 0 and medium < 0:
        acc.add_sell(1.1, "technical", "Short and medium momentum aligned downward")
    else:
        acc.note("Momentum mixed across windows - transition risk")


def _stochastic_rule(acc: EvidenceAccumulator, inp: RuleInputs) -> None:
    stoch = inp.snapshot.stochastic
    if stoch.k is None or stoch.d is None or stoch.prev_k is None or stoch.prev_d is None:
        return
    k, d = stoch.k, stoch.d
    if stoch.prev_k <= stoch.prev_d and k > d and k < 25:
        acc.add_buy(1.1, "technical", f"Stochastic bullish cross in oversold zone (%K {k:.1f})")
    elif stoch.prev_k >= stoch.prev_d and k < d and k > 75:
        acc.add_sell(1.1, "technical", f"Stochastic bearish cross in overbought zone (%K {k:.1f})")
    elif k <= 12:
        acc.add_buy(0.5, "technical", f"Stochastic deeply oversold (%K {k:.1f})")
    elif k >= 88:
        acc.add_sell(0.5, "technical", f"Stochastic deeply overbought (%K {k:.1f})")


def _volume_rule(acc: EvidenceAccumulator, inp: RuleInputs) -> None:
    ratio = inp.snapshot.volume_ratio
    if ratio is None:
        return
    if ratio > 1.6:
        acc.reinforce_dominant(
            0.6, "technical", f"Volume spike ({ratio:.2f}x avg) - stronger move conviction"
        )
    elif ratio < 0.75:
        acc.soften(0.93, f"Volume below average ({ratio:.2f}x) - weaker breakout quality")


def _volume_adx_rule(acc: EvidenceAccumulator, inp: RuleInputs) -> None:
    ratio, adx = inp.snapshot.volume_ratio, inp.snapshot.adx14
    if ratio is None or adx is None or ratio < 1.2 or adx < 25:
        return
    if inp.regime.trend_bias > 0:
        acc.add_buy(0.4, "trend", f"Volume expansion backs the ADX({adx:.1f}) uptrend")
    elif inp.regime.trend_bias < 0:
        acc.add_sell(0.4, "trend", f"Volume expansion backs the ADX({adx:.1f}) downtrend")


def _liquidity_rule(acc: EvidenceAccumulator, inp: RuleInputs) -> None:
    if inp.liquidity is None:
        return
    price = inp.snapshot.current_price
    atr14 = inp.snapshot.atr14
    atr_pct = atr14 / price if atr14 is not None and price else 0.006
    proximity = max(0.008, atr_pct * 1.4)
    if inp.liquidity.support_zones:
        support = inp.liquidity.support_zones[0]
        dist = (price - support.center) / price
        if 0 <= dist <= proximity:
            acc.add_buy(0.9, "liquidity", f"Near high-liquidity support zone (${support.center:.2f})")
    if inp.liquidity.resistance_zones:
        resistance = inp.liquidity.resistance_zones[0]
        dist = (resistance.center - price) / price
        if 0 <= dist <= proximity:
            acc.add_sell(
                0.9, "liquidity", f"Near high-liquidity resistance zone (${resistance.center:.2f})"
            )


def _funding_rule(acc: EvidenceAccumulator, inp: RuleInputs) -> None:
    funding = inp.futures.funding_rate.current
    ratio = inp.futures.long_short_ratio.ratio
    if funding is None or ratio is None:
        return
    pct = funding * 100
    if funding > 0.0008 and ratio > 1.1:
        acc.add_sell(1.2, "derivatives", f"Funding positive {pct:.3f}% with crowded longs")
    elif funding < -0.0008 and ratio < 0.9:
        acc.add_buy(1.2, "derivatives", f"Funding negative {pct:.3f}% with crowded shorts")
    else:
        acc.note(f"Funding neutral at {pct:.3f}%")


def _long_short_rule(acc: EvidenceAccumulator, inp: RuleInputs) -> None:
    ratio = inp.futures.long_short_ratio.ratio
    if ratio is None:
        return
    if ratio > 1.35:
        acc.add_sell(0.7, "derivatives", f"Long/Short ratio {ratio:.2f} indicates long crowding")
    elif ratio < 0.75:
        acc.add_buy(0.7, "derivatives", f"Long/Short ratio {ratio:.2f} indicates short crowding")


def _open_interest_rule(acc: EvidenceAccumulator, inp: RuleInputs) -> None:
    change = inp.futures.open_interest.change_pct
    if change is None:
        return
    mom = inp.snapshot.momentum10
    if change > 5 and mom is not None and mom > 0:
        acc.add_buy(0.8, "derivatives", f"Open interest rising {change:.1f}% with bullish momentum")
    elif change > 5 and mom is not None and mom < 0:
        acc.add_sell(0.8, "derivatives", f"Open interest rising {change:.1f}% with bearish momentum")
    elif change < -8:
        acc.soften(0.96, f"Open interest dropped {change:.1f}% - deleveraging phase")


def _news_rule(acc: EvidenceAccumulator, inp: RuleInputs) -> None:
    score = inp.catalyst.news_score
    if score is None:
        return
    if score >= 22:
        acc.add_buy(1.1, "news", f"News flow bullish ({score:.1f})")
    elif score <= -22:
        acc.add_sell(1.1, "news", f"News flow bearish ({score:.1f})")


def _fundamental_rule(acc: EvidenceAccumulator, inp: RuleInputs) -> None:
    score = inp.catalyst.fundamental_score
    if score is None:
        return
    if score >= 16:
        acc.add_buy(1.0, "fundamental", f"Fundamentals supportive ({score:.1f})")
    elif score <= -16:
        acc.add_sell(1.0, "fundamental", f"Fundamentals weak ({score:.1f})")


def _catalyst_rule(acc: EvidenceAccumulator, inp: RuleInputs) -> None:
    score = inp.catalyst.combined_score
    if score is None:
        return
    if score >= 25:
        acc.add_buy(1.2, "catalyst", f"Catalyst watch bullish ({score:.1f})")
    elif score <= -25:
        acc.add_sell(1.2, "catalyst", f"Catalyst watch bearish ({score:.1f})")
    else:
        acc.note(f"Catalyst watch neutral ({score:.1f})")


def _news_fundamental_alignment_rule(acc: EvidenceAccumulator, inp: RuleInputs) -> None:
    news, fundamental = inp.catalyst.news_score, inp.catalyst.fundamental_score
    if news is None or fundamental is None:
        return
    if news >= 22 and fundamental >= 16:
        acc.add_buy(0.6, "catalyst", "News flow and fundamentals aligned bullish")
    elif news <= -22 and fundamental <= -16:
        acc.add_sell(0.6, "catalyst", "News flow and fundamentals aligned bearish")


def _trending_rule(acc: EvidenceAccumulator, inp: RuleInputs) -> None:
    rank = inp.catalyst.symbol_trending_rank
    if rank is None or rank > 5:
        return
    mom = inp.snapshot.momentum10
    if mom is not None and mom >= 0:
        acc.add_buy(0.5, "catalyst", f"Asset ranks #{rank} on trending topics")
    else:
        acc.add_buy(0.2, "catalyst", f"Asset trending #{rank} but momentum still mixed")


def _breakout_rule(acc: EvidenceAccumulator, inp: RuleInputs) -> None:
    detector = inp.breakout
    points = 1.1 if detector.pattern.is_breakout else 0.9
    label = detector.pattern.value.replace("_", " ").title()
    if detector.bias is Bias.BULLISH and acc.buy_score >= acc.sell_score:
        acc.add_buy(points, "liquidity", f"{label}: {detector.summary}")
    elif detector.bias is Bias.BEARISH and acc.sell_score >= acc.buy_score:
        acc.add_sell(points, "liquidity", f"{label}: {detector.summary}")


def _liquidation_rule(acc: EvidenceAccumulator, inp: RuleInputs) -> None:
    meter = inp.liquidation
    if meter.score < 45:
        return
    points = 1.2 if meter.score >= 65 else 0.7
    if meter.bias is LiquidationBias.LONGS_AT_RISK:
        acc.add_sell(
            points,
            "derivatives",
            f"Liquidation risk {meter.level.value} ({meter.score:.0f}) - crowded longs exposed to a flush",
        )
    elif meter.bias is LiquidationBias.SHORTS_AT_RISK:
        acc.add_buy(
            points,
            "derivatives",
            f"Liquidation risk {meter.level.value} ({meter.score:.0f}) - short squeeze fuel building",
        )


Rule = Callable[[EvidenceAccumulator, RuleInputs], None]

EVIDENCE_RULES: tuple[Rule, ...] = (
    _regime_rule,
    _adx_rule,
    _rsi_rule,
    _macd_rule,
    _bollinger_rule,
    _ema_structure_rule,
    _sma200_rule,
    _ema_slope_rule,
    _momentum_rule,
    _stochastic_rule,
    _volume_rule,
    _volume_adx_rule,
    _liquidity_rule,
    _funding_rule,
    _long_short_rule,
    _open_interest_rule,
    _news_rule,
    _fundamental_rule,
    _catalyst_rule,
    _news_fundamental_alignment_rule,
    _trending_rule,
    _breakout_rule,
    _liquidation_rule,
)


# ──────────────────────────────────────────────
# Decision
# ──────────────────────────────────────────────


def signal_threshold(
    risk_tolerance: RiskTolerance,
    regime: RegimeAssessment,
    volatility20: float | None,
    adx14: float | None,
) -> float:
    """Confluence score a side must reach before it can become a signal."""
    threshold = RISK_THRESHOLDS.get(risk_tolerance, RISK_THRESHOLDS[RiskTolerance.MODERATE])
    if regime.regime is Regime.RANGE:
        threshold += 0.25
    if regime.weak_trend:
        threshold += 0.15
    if volatility20 is not None and volatility20 > 0.025:
        threshold += 0.2
        if volatility20 > 0.04:
            threshold += 0.15
    if adx14 is not None and adx14 >= 30:
        threshold -= 0.15
    return threshold


def decide_signal(buy_score: float, sell_score: float, threshold: float) -> SignalAction:
    edge = abs(buy_score - sell_score)
    if buy_score >= threshold and buy_score > sell_score and edge >= MIN_EDGE:
        return SignalAction.BUY
    if sell_score >= threshold and sell_score > buy_score and edge >= MIN_EDGE:
        return SignalAction.SELL
    return SignalAction.HOLD


def grade_for(score: float) -> str:
    if score >= 90:
        return "A+"
    if score >= 80:
        return "A"
    if score >= 70:
        return "B"
    if score >= 60:
        return "C"
    return "D"


def _detector_alignment(
    signal: SignalAction,
    breakout: BreakoutFakeout,
    liquidation: LiquidationRiskMeter,
) -> tuple[float, float]:
    """Return (alignment bonus, conflict penalty) from the two detectors."""
    if signal is SignalAction.HOLD:
        return 0.0, 0.0
    wanted = Bias.BULLISH if signal is SignalAction.BUY else Bias.BEARISH
    supporting = (
        LiquidationBias.SHORTS_AT_RISK if signal is SignalAction.BUY else LiquidationBias.LONGS_AT_RISK
    )
    bonus = 0.0
    conflict = 0.0
    if breakout.bias is wanted:
        bonus += 6 if breakout.pattern.is_breakout else 3
    elif breakout.bias is not Bias.NEUTRAL:
        conflict += 8 if breakout.pattern.is_breakout else 4
    if liquidation.score >= 45:
        if liquidation.bias is supporting:
            bonus += 4
        elif liquidation.bias is not LiquidationBias.BALANCED:
            conflict += 6
    return bonus, conflict


def compute_quality(
    acc: EvidenceAccumulator,
    signal: SignalAction,
    breakout: BreakoutFakeout,
    liquidation: LiquidationRiskMeter,
) -> SignalQuality:
    """Grade how clean the setup is, independent of the raw direction."""
    if signal is SignalAction.BUY:
        side = "buy"
    elif signal is SignalAction.SELL:
        side = "sell"
    else:
        side = "buy" if acc.buy_score >= acc.sell_score else "sell"
    other = "sell" if side == "buy" else "buy"

    dominant_score = max(acc.buy_score, acc.sell_score)
    dominant_evidence = acc.buy_evidence if side == "buy" else acc.sell_evidence
    bonus, conflict = _detector_alignment(signal, breakout, liquidation)

    raw = (
        28
        + dominant_score * 8
        + acc.edge * 10
        + dominant_evidence * 1.9
        + bonus
        - acc.contradiction_penalty * 10
        - acc.soft_penalty * 18
        - conflict
    )
    score = clamp(raw, 10, 99)
    if signal is SignalAction.HOLD:
        score = clamp(score - 12, 15, 62)
    score = float(round(score))

    confluence = acc.raw_points(side)
    opposition = acc.raw_points(other)
    breakdown = []
    for key, label in CATEGORY_LABELS.items():
        category = acc.categories[key]
        if category.buy == 0 and category.sell == 0:
            continue
        points = getattr(category, side)
        breakdown.append(
            QualityBreakdownItem(
                key=key,
                label=label,
                buy=round(category.buy, 2),
                sell=round(category.sell, 2),
                points=round(points, 2),
                contribution_pct=round(points / confluence * 100, 1) if confluence > 0 else 0.0,
            )
        )

    return SignalQuality(
        score=score,
        grade=grade_for(score),
        confluence_points=round(confluence, 2),
        opposition_points=round(opposition, 2),
        breakdown=tuple(breakdown),
    )


def compute_confidence(signal: SignalAction, edge: float, quality_score: float) -> float:
    if signal is SignalAction.HOLD:
        return clamp(35 + edge * 7 + quality_score * 0.2, 40, 68)
    return clamp(quality_score * 0.72 + edge * 8.5, 55, 97)


def score_signal(
    snapshot: IndicatorSnapshot,
    *,
    liquidity: LiquidityHeatmap | None,
    futures: FuturesContext,
    catalyst: CatalystWatch,
    breakout: BreakoutFakeout,
    liquidation: LiquidationRiskMeter,
    risk_tolerance: RiskTolerance,
) -> ScoreOutcome:
    """Run the evidence rules and turn the scores into a graded decision.

    Never raises for missing values: every rule skips itself when its inputs
    are None, so sparse evidence falls short of the threshold and yields HOLD.
    """
    regime = classify_regime(snapshot.current_price, snapshot.ema20, snapshot.ema50, snapshot.adx14)
    inputs = RuleInputs(
        snapshot=snapshot,
        regime=regime,
        liquidity=liquidity,
        futures=futures,
        catalyst=catalyst,
        breakout=breakout,
        liquidation=liquidation,
    )
    acc = EvidenceAccumulator()
    for rule in EVIDENCE_RULES:
        rule(acc, inputs)
    acc.apply_contradiction_penalty(CONTRADICTION_RATIO)

    threshold = signal_threshold(risk_tolerance, regime, snapshot.volatility20, snapshot.adx14)
    signal = decide_signal(acc.buy_score, acc.sell_score, threshold)
    if signal is SignalAction.HOLD:
        acc.note("Insufficient directional edge after confluence check - wait for confirmation")

    quality = compute_quality(acc, signal, breakout, liquidation)
    confidence = compute_confidence(signal, acc.edge, quality.score)

    return ScoreOutcome(
        signal=signal,
        confidence=round(confidence, 1),
        regime=regime,
        buy_score=acc.buy_score,
        sell_score=acc.sell_score,
        threshold=threshold,
        edge=acc.edge,
        quality=quality,
        reasons=tuple(acc.reasons),
    )
