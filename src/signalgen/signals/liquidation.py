"""Liquidation risk meter.

Estimates which side of the perpetual market is more exposed to a forced
liquidation cascade. Four stress components are each normalized to [0, 1]:

- crowding: long/short account ratio away from 1
- funding: how much one side is paying to hold its position
- leverage: open-interest build-up (applies to both sides)
- volatility: realized volatility of recent returns (applies to both sides)

A strong catalyst reading in either direction amplifies both sides by up to 35%.
"""

from signalgen.signals.models import LiquidationBias, LiquidationRiskMeter, RiskLevel
from signalgen.utils import clamp

#: Minimum point gap between long and short risk before one side is flagged.
BIAS_MARGIN = 6.0


def _risk_level(score: float) -> RiskLevel:
    if score >= 80:
        return RiskLevel.EXTREME
    if score >= 65:
        return RiskLevel.HIGH
    if score >= 45:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def build_liquidation_risk_meter(
    funding_rate: float | None,
    long_short_ratio: float | None,
    oi_change_pct: float | None,
    volatility20: float | None,
    catalyst_score: float | None,
) -> LiquidationRiskMeter:
    """Score liquidation stress for longs and shorts.

    Args:
        funding_rate: Current funding rate per period (0.001 == 0.1%).
        long_short_ratio: Long/short account ratio.
        oi_change_pct: Open-interest change in percent.
        volatility20: Stddev of the last 20 returns (0.03 == 3%).
        catalyst_score: Combined catalyst score in [-100, 100].

    Returns:
        LiquidationRiskMeter with the dominant side's score (0-100).
    """
    crowd_long = clamp((long_short_ratio - 1) / 0.8, 0, 1) if long_short_ratio is not None else 0.0
    crowd_short = clamp((1 - long_short_ratio) / 0.45, 0, 1) if long_short_ratio is not None else 0.0
    funding_long = clamp(funding_rate / 0.0015, 0, 1) if funding_rate is not None else 0.0
    funding_short = clamp(-(funding_rate if funding_rate is not None else 0.0) / 0.0015, 0, 1)
    leverage = clamp(oi_change_pct / 20, 0, 1) if oi_change_pct is not None else 0.0
    vol_stress = clamp((volatility20 - 0.01) / 0.04, 0, 1) if volatility20 is not None else 0.0
    catalyst_stress = (
        clamp(abs(catalyst_score) / 100, 0, 1) * 0.35 if catalyst_score is not None else 0.0
    )

    long_raw = (crowd_long * 30 + funding_long * 30 + leverage * 20 + vol_stress * 20) * (
        1 + catalyst_stress
    )
    short_raw = (crowd_short * 30 + funding_short * 30 + leverage * 20 + vol_stress * 20) * (
        1 + catalyst_stress
    )
    score = clamp(max(long_raw, short_raw), 0, 100)

    if long_raw > short_raw + BIAS_MARGIN:
        bias = LiquidationBias.LONGS_AT_RISK
    elif short_raw > long_raw + BIAS_MARGIN:
        bias = LiquidationBias.SHORTS_AT_RISK
    else:
        bias = LiquidationBias.BALANCED

    factors: list[str] = []
    if oi_change_pct is not None and oi_change_pct > 8:
        factors.append(f"Open interest expanded {oi_change_pct:.1f}% - leverage building")
    if volatility20 is not None and volatility20 > 0.028:
        factors.append(f"Realized volatility {volatility20 * 100:.2f}% - wide liquidation sweeps")
    if funding_rate is not None and funding_rate > 0.001:
        factors.append(f"Funding {funding_rate * 100:.3f}% - longs paying a heavy premium")
    elif funding_rate is not None and funding_rate < -0.001:
        factors.append(f"Funding {funding_rate * 100:.3f}% - shorts paying a heavy premium")
    if long_short_ratio is not None and long_short_ratio > 1.35:
        factors.append(f"Long/Short ratio {long_short_ratio:.2f} - longs crowded")
    elif long_short_ratio is not None and long_short_ratio < 0.72:
        factors.append(f"Long/Short ratio {long_short_ratio:.2f} - shorts crowded")
    if not factors:
        factors.append("Positioning currently balanced")

    return LiquidationRiskMeter(
        score=round(score, 1),
        level=_risk_level(score),
        bias=bias,
        long_risk_score=round(clamp(long_raw, 0, 100), 1),
        short_risk_score=round(clamp(short_raw, 0, 100), 1),
        factors=tuple(factors),
    )
