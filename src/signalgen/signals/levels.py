"""Entry range, take-profit targets, and ATR-aware stop-loss."""

from dataclasses import dataclass

from signalgen.signals.models import Regime, SignalAction, SignalType
from signalgen.signals.regime import RegimeAssessment
from signalgen.utils import clamp

#: (take-profit 1, take-profit 2, stop-loss) as fractions of price.
TARGET_PROFILES: dict[SignalType, tuple[float, float, float]] = {
    SignalType.SCALP: (0.01, 0.02, 0.005),
    SignalType.INTRADAY: (0.018, 0.035, 0.009),
    SignalType.SWING: (0.03, 0.08, 0.015),
}

DEFAULT_ENTRY_PAD = 0.002


@dataclass(frozen=True)
class PriceLevels:
    entry_low: float
    entry_high: float
    take_profit_1: float
    take_profit_1_pct: float
    take_profit_2: float
    take_profit_2_pct: float
    stop_loss: float
    stop_loss_pct: float
    risk_reward: float


def compute_price_levels(
    price: float,
    signal: SignalAction,
    signal_type: SignalType,
    regime: RegimeAssessment,
    atr14: float | None,
    volatility20: float | None,
) -> PriceLevels:
    """Place targets and stop around ``price`` in the direction of ``signal``.

    HOLD is laid out like a long setup for reference, with a risk/reward of 0.
    Percentages are signed relative to the entry and expressed in percent.
    """
    tp1, tp2, sl = TARGET_PROFILES.get(signal_type, TARGET_PROFILES[SignalType.SWING])
    if regime.trend_strength >= 30:
        tp1, tp2, sl = tp1 * 1.1, tp2 * 1.18, sl * 1.05
    elif regime.regime is Regime.RANGE:
        tp1, tp2, sl = tp1 * 0.9, tp2 * 0.82, sl * 0.92
    if volatility20 is not None and volatility20 > 0.04:
        sl *= 1.12

    atr_pct = atr14 / price if atr14 is not None and price else None
    if atr_pct is not None:
        entry_pad = clamp(atr_pct * 0.3, 0.0015, 0.008)
        stop = clamp(max(sl, atr_pct * 1.1), sl * 0.85, sl * 1.9)
    else:
        entry_pad = DEFAULT_ENTRY_PAD
        stop = sl

    direction = -1 if signal is SignalAction.SELL else 1
    tp1_price = price * (1 + direction * tp1)
    tp2_price = price * (1 + direction * tp2)
    stop_price = price * (1 - direction * stop)

    risk = abs(price - stop_price)
    if signal is SignalAction.HOLD or risk <= 0:
        risk_reward = 0.0
    else:
        risk_reward = abs(tp2_price - price) / risk

    return PriceLevels(
        entry_low=price * (1 - entry_pad),
        entry_high=price * (1 + entry_pad),
        take_profit_1=tp1_price,
        take_profit_1_pct=direction * tp1 * 100,
        take_profit_2=tp2_price,
        take_profit_2_pct=direction * tp2 * 100,
        stop_loss=stop_price,
        stop_loss_pct=-direction * stop * 100,
        risk_reward=risk_reward,
    )
