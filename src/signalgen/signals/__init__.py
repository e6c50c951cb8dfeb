"""Confluence signal scoring core.

Pure, synchronous computation: indicator library, liquidity heatmap,
breakout/fakeout and liquidation detectors, the evidence-rule scorer, price
levels, and the ``generate_signal`` entry point that ties them together.
"""

from signalgen.signals.breakout import detect_breakout_fakeout
from signalgen.signals.engine import generate_signal
from signalgen.signals.indicators import compute_indicators
from signalgen.signals.liquidation import build_liquidation_risk_meter
from signalgen.signals.liquidity import build_liquidity_heatmap
from signalgen.signals.models import (
    BreakoutPattern,
    IndicatorSnapshot,
    Regime,
    RiskTolerance,
    SignalAction,
    SignalResult,
    SignalType,
)

__all__ = [
    "BreakoutPattern",
    "IndicatorSnapshot",
    "Regime",
    "RiskTolerance",
    "SignalAction",
    "SignalResult",
    "SignalType",
    "build_liquidation_risk_meter",
    "build_liquidity_heatmap",
    "compute_indicators",
    "detect_breakout_fakeout",
    "generate_signal",
]
