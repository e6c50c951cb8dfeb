"""Signal engine data models: indicator snapshot, detectors, and the final result.

All models are frozen dataclasses. Indicator fields are float | None where None
means "not enough history", never zero.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from signalgen.models import CatalystWatch, FuturesContext


class SignalAction(str, Enum):
    """Final trading decision."""

    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class SignalType(str, Enum):
    """Holding horizon; selects the target/stop distance profile."""

    SCALP = "scalp"
    INTRADAY = "intraday"
    SWING = "swing"


class RiskTolerance(str, Enum):
    """Selects the base confluence threshold."""

    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


class Regime(str, Enum):
    """Market state classification from EMA spread and ADX."""

    UPTREND = "uptrend"
    DOWNTREND = "downtrend"
    RANGE = "range"


class Bias(str, Enum):
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"


class BreakoutPattern(str, Enum):
    BREAKOUT_UP = "BREAKOUT_UP"
    BREAKOUT_DOWN = "BREAKOUT_DOWN"
    FAKEOUT_UP = "FAKEOUT_UP"
    FAKEOUT_DOWN = "FAKEOUT_DOWN"
    NO_CLEAR_PATTERN = "NO_CLEAR_PATTERN"

    @property
    def is_breakout(self) -> bool:
        return self in (BreakoutPattern.BREAKOUT_UP, BreakoutPattern.BREAKOUT_DOWN)

    @property
    def is_fakeout(self) -> bool:
        return self in (BreakoutPattern.FAKEOUT_UP, BreakoutPattern.FAKEOUT_DOWN)


class LiquidationBias(str, Enum):
    LONGS_AT_RISK = "LONGS_AT_RISK"
    SHORTS_AT_RISK = "SHORTS_AT_RISK"
    BALANCED = "BALANCED"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    EXTREME = "EXTREME"


@dataclass(frozen=True)
class MacdValue:
    line: float | None = None
    signal: float | None = None
    histogram: float | None = None


@dataclass(frozen=True)
class BollingerBands:
    upper: float | None = None
    middle: float | None = None
    lower: float | None = None


@dataclass(frozen=True)
class StochasticValue:
    """Current and previous %K/%D, kept together for crossover detection."""

    k: float | None = None
    d: float | None = None
    prev_k: float | None = None
    prev_d: float | None = None


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Every indicator the scoring engine reads, computed once per request."""

    current_price: float
    rsi: float | None = None
    macd: MacdValue = field(default_factory=MacdValue)
    prev_macd_histogram: float | None = None
    bollinger_bands: BollingerBands = field(default_factory=BollingerBands)
    ema20: float | None = None
    ema50: float | None = None
    sma200: float | None = None
    atr14: float | None = None
    adx14: float | None = None
    stochastic: StochasticValue = field(default_factory=StochasticValue)
    ema20_slope: float | None = None
    ema50_slope: float | None = None
    momentum3: float | None = None
    momentum10: float | None = None
    volatility20: float | None = None
    latest_volume: float = 0.0
    avg_volume: float = 0.0
    volume_ratio: float | None = None


@dataclass(frozen=True)
class LiquidityNode:
    """One price bucket of the volume-by-price histogram."""

    low: float
    high: float
    center: float
    intensity: float  # 0-100, relative to the busiest bucket
    volume: float


@dataclass(frozen=True)
class LiquidityHeatmap:
    min_price: float
    max_price: float
    bucket_count: int
    hotspots: tuple[LiquidityNode, ...]
    support_zones: tuple[LiquidityNode, ...]  # nearest first, centers <= price
    resistance_zones: tuple[LiquidityNode, ...]  # nearest first, centers >= price
    buckets: tuple[LiquidityNode, ...] = ()


@dataclass(frozen=True)
class BreakoutFakeout:
    pattern: BreakoutPattern
    bias: Bias
    confidence: float
    break_level: float | None
    summary: str
    metrics: tuple[tuple[str, float | int | None], ...] = ()  # (name, value) pairs

    def metric(self, name: str) -> float | int | None:
        """Look up one detector metric by its camelCase name; None when absent."""
        return dict(self.metrics).get(name)


@dataclass(frozen=True)
class LiquidationRiskMeter:
    score: float
    level: RiskLevel
    bias: LiquidationBias
    long_risk_score: float
    short_risk_score: float
    factors: tuple[str, ...]


@dataclass(frozen=True)
class QualityBreakdownItem:
    key: str
    label: str
    buy: float
    sell: float
    points: float  # raw points on the dominant side
    contribution_pct: float


@dataclass(frozen=True)
class SignalQuality:
    score: float
    grade: str
    confluence_points: float
    opposition_points: float
    breakdown: tuple[QualityBreakdownItem, ...] = ()


@dataclass(frozen=True)
class EntryRange:
    low: float | None
    high: float | None


@dataclass(frozen=True)
class SignalResult:
    """The packaged output of one generate_signal call.

    ``indicators`` is the display form of the snapshot: momentum, volatility
    and EMA slopes are expressed in percent and every value is rounded.
    """

    signal: SignalAction
    confidence: float
    regime: Regime
    current_price: float
    entry_range: EntryRange
    take_profit_1: float
    take_profit_1_pct: float
    take_profit_2: float
    take_profit_2_pct: float
    stop_loss: float
    stop_loss_pct: float
    risk_reward: float
    buy_score: float
    sell_score: float
    threshold: float
    signal_quality: SignalQuality
    liquidation_risk_meter: LiquidationRiskMeter
    breakout_fakeout_detector: BreakoutFakeout
    indicators: IndicatorSnapshot
    futures_context: FuturesContext
    catalyst_watch: CatalystWatch
    liquidity_heatmap: LiquidityHeatmap | None
    reasons: tuple[str, ...]
    timestamp: str
    data_source: str = "live"
    market_type: str = "futures_perpetual"

    def to_dict(self) -> dict[str, Any]:
        """Render the camelCase JSON payload served by the HTTP API."""
        payload = _camelize(asdict(self))
        if payload["liquidityHeatmap"] is not None:
            payload["liquidityHeatmap"].pop("buckets", None)
        payload["breakoutFakeoutDetector"]["metrics"] = dict(self.breakout_fakeout_detector.metrics)
        return payload


def _camel_key(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _camelize(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {_camel_key(str(k)): _camelize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_camelize(item) for item in obj]
    return obj
