"""Shared input value objects for the signal engine.

Everything here is request-scoped and immutable: candles come from a market-data
fetch, the futures and catalyst contexts from their normalizers. A missing
upstream field is None, never 0, so the scoring engine can tell "no signal"
apart from "neutral reading".
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Candle:
    """A single OHLCV candle.

    Invariant (guaranteed by the producer): low <= min(open, close) <=
    max(open, close) <= high and volume >= 0.
    """

    timestamp: int  # Unix milliseconds
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass(frozen=True)
class CandleSeries:
    """Candles ordered ascending by timestamp plus the provider that produced them."""

    candles: tuple[Candle, ...]
    data_source: str = "live"

    def __len__(self) -> int:
        return len(self.candles)

    @property
    def closes(self) -> list[float]:
        return [c.close for c in self.candles]


@dataclass(frozen=True)
class FundingRateInfo:
    current: float | None = None  # per funding period, e.g. 0.0001 == 0.01%
    annualized_pct: float | None = None
    next_funding_time: str | None = None  # ISO-8601


@dataclass(frozen=True)
class OpenInterestInfo:
    latest: float | None = None
    change_pct: float | None = None


@dataclass(frozen=True)
class LongShortInfo:
    ratio: float | None = None
    change_pct: float | None = None


@dataclass(frozen=True)
class FuturesContext:
    """Derivatives positioning context. Absent fields mean "no data"."""

    funding_rate: FundingRateInfo = field(default_factory=FundingRateInfo)
    open_interest: OpenInterestInfo = field(default_factory=OpenInterestInfo)
    long_short_ratio: LongShortInfo = field(default_factory=LongShortInfo)
    source: str = "live"

    @classmethod
    def empty(cls) -> FuturesContext:
        """Neutral context served when the derivatives fetch fails."""
        return cls(source="fallback")


@dataclass(frozen=True)
class Catalyst:
    """A single news item that moved the catalyst score."""

    title: str
    source: str
    url: str
    published_at: str | None
    sentiment: str  # "Bullish" | "Bearish" | "Neutral"
    impact: float


@dataclass(frozen=True)
class TrendingTopic:
    rank: int
    name: str
    symbol: str
    price_change_24h: float | None = None
    market_cap_rank: int | None = None


@dataclass(frozen=True)
class CatalystWatch:
    """News, fundamental and trending-list sentiment for one asset."""

    sentiment_score: float | None = 0.0
    trend_boost: float | None = 0.0
    news_score: float | None = 0.0
    fundamental_score: float | None = 0.0
    combined_score: float | None = 0.0
    sentiment_label: str = "Neutral"
    symbol_trending_rank: int | None = None
    news_signals: tuple[str, ...] = ()
    fundamental_signals: tuple[str, ...] = ()
    catalysts: tuple[Catalyst, ...] = ()
    trending_topics: tuple[TrendingTopic, ...] = ()

    @classmethod
    def empty(cls) -> CatalystWatch:
        """Neutral payload served when the news/fundamental fetch fails."""
        return cls()


@dataclass(frozen=True)
class SignalContext:
    """Auxiliary context handed to generate_signal alongside the candles."""

    futures_context: FuturesContext = field(default_factory=FuturesContext.empty)
    catalyst_watch: CatalystWatch = field(default_factory=CatalystWatch.empty)
