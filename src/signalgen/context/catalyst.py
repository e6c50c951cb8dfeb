"""Normalize news, trending and coin-fundamental payloads into a CatalystWatch.

Three independent scores feed the combined catalyst reading:

- news: keyword sentiment of recent headlines, weighted by relevance to the asset
- fundamentals: bounded points from dilution, turnover, supply, developer
  activity, community size and 30-day performance
- trend boost: extra points when the asset sits on the trending list

Each sub-signal is clamped, the sub-signals are summed, and the sum is clamped
again to [-100, 100].
"""

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from signalgen.models import Catalyst, CatalystWatch, TrendingTopic
from signalgen.utils import clamp, to_float

BULLISH_TERMS = ("bullish", "breakout", "surge", "rally", "adoption", "inflow", "approval", "buy")
BEARISH_TERMS = ("bearish", "selloff", "dump", "hack", "exploit", "ban", "outflow", "sell")

#: Market-wide terms that make a headline partially relevant to any asset.
MACRO_TERMS = ("bitcoin", "crypto", "market", "futures", "etf", "regulation", "fed")

DIRECT_RELEVANCE = 1.0
MACRO_RELEVANCE = 0.45

#: Multiplier from mean keyword sentiment to news score points.
NEWS_SCORE_SCALE = 16

#: Weight of the fundamental score inside the combined score.
FUNDAMENTAL_WEIGHT = 0.5

MAX_CATALYSTS = 6


def score_sentiment(text: str) -> int:
    """+1 per bullish term present, -1 per bearish term present."""
    lower = text.lower()
    score = sum(1 for term in BULLISH_TERMS if term in lower)
    score -= sum(1 for term in BEARISH_TERMS if term in lower)
    return score


def sentiment_label(score: float | None) -> str:
    if score is None:
        return "Neutral"
    if score >= 35:
        return "Strong Bullish"
    if score >= 15:
        return "Bullish"
    if score <= -35:
        return "Strong Bearish"
    if score <= -15:
        return "Bearish"
    return "Neutral"


def trend_boost(rank: int | None) -> float:
    """Points for sitting on the trending list; rank 1 earns the most."""
    if rank is None:
        return 0.0
    return clamp(14 - rank * 2, 2, 12)


# ──────────────────────────────────────────────
# News
# ──────────────────────────────────────────────


@dataclass(frozen=True)
class ScoredHeadline:
    title: str
    source: str
    url: str
    published_at: str | None
    relevance: float
    sentiment: int

    @property
    def impact(self) -> float:
        return abs(self.sentiment * self.relevance)


def _relevance(text: str, keywords: Sequence[str]) -> float:
    lower = text.lower()
    if any(k in lower for k in keywords):
        return DIRECT_RELEVANCE
    if any(term in lower for term in MACRO_TERMS):
        return MACRO_RELEVANCE
    return 0.0


def _published_at(value: Any) -> str | None:
    seconds = to_float(value)
    if seconds is None or seconds <= 0:
        return None
    return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()


def score_headlines(
    rows: Iterable[Mapping[str, Any]], keywords: Sequence[str]
) -> list[ScoredHeadline]:
    """Score raw news rows and drop the ones unrelated to the asset."""
    keywords = [k.lower() for k in keywords if k]
    scored: list[ScoredHeadline] = []
    for row in rows:
        if not isinstance(row, Mapping):
            continue
        title = str(row.get("title") or "")
        text = f"{title} {row.get('body') or ''}"
        relevance = _relevance(text, keywords)
        if relevance <= 0:
            continue
        source_info = row.get("source_info")
        source = source_info.get("name") if isinstance(source_info, Mapping) else None
        scored.append(
            ScoredHeadline(
                title=title,
                source=str(source or row.get("source") or "Unknown"),
                url=str(row.get("url") or ""),
                published_at=_published_at(row.get("published_on")),
                relevance=relevance,
                sentiment=score_sentiment(text),
            )
        )
    return scored


def news_score(headlines: Sequence[ScoredHeadline]) -> float:
    """Relevance-weighted mean sentiment, scaled and clamped to [-100, 100]."""
    weight = sum(h.relevance for h in headlines)
    if weight <= 0:
        return 0.0
    weighted = sum(h.sentiment * h.relevance for h in headlines)
    return clamp(weighted / weight * NEWS_SCORE_SCALE, -100, 100)


def _news_signals(headlines: Sequence[ScoredHeadline]) -> tuple[str, ...]:
    if not headlines:
        return ()
    direct = sum(1 for h in headlines if h.relevance == DIRECT_RELEVANCE)
    bullish = sum(1 for h in headlines if h.sentiment > 0)
    bearish = sum(1 for h in headlines if h.sentiment < 0)
    return (
        f"{len(headlines)} relevant headlines ({direct} direct, {len(headlines) - direct} macro)",
        f"Headline tone: {bullish} bullish vs {bearish} bearish",
    )


def top_catalysts(headlines: Sequence[ScoredHeadline], limit: int = MAX_CATALYSTS) -> tuple[Catalyst, ...]:
    ranked = sorted(headlines, key=lambda h: h.impact, reverse=True)[:limit]
    return tuple(
        Catalyst(
            title=h.title,
            source=h.source,
            url=h.url,
            published_at=h.published_at,
            sentiment="Bullish" if h.sentiment > 0 else "Bearish" if h.sentiment < 0 else "Neutral",
            impact=round(h.impact, 2),
        )
        for h in ranked
    )


# ──────────────────────────────────────────────
# Trending
# ──────────────────────────────────────────────


def parse_trending(payload: Mapping[str, Any] | None) -> tuple[TrendingTopic, ...]:
    """Parse a CoinGecko ``/search/trending`` payload; rank is list position."""
    if not payload:
        return ()
    topics: list[TrendingTopic] = []
    for idx, entry in enumerate(payload.get("coins") or [], start=1):
        item = entry.get("item") if isinstance(entry, Mapping) else None
        if not isinstance(item, Mapping):
            continue
        data = item.get("data") if isinstance(item.get("data"), Mapping) else {}
        change = data.get("price_change_percentage_24h")
        rank = to_float(item.get("market_cap_rank"))
        topics.append(
            TrendingTopic(
                rank=idx,
                name=str(item.get("name") or ""),
                symbol=str(item.get("symbol") or "").upper(),
                price_change_24h=to_float(change.get("usd")) if isinstance(change, Mapping) else None,
                market_cap_rank=int(rank) if rank is not None else None,
            )
        )
    return tuple(topics)


# ──────────────────────────────────────────────
# Fundamentals
# ──────────────────────────────────────────────


def _usd(market_data: Mapping[str, Any], key: str) -> float | None:
    value = market_data.get(key)
    if isinstance(value, Mapping):
        return to_float(value.get("usd"))
    return to_float(value)


def score_fundamentals(coin: Mapping[str, Any] | None) -> tuple[float | None, tuple[str, ...]]:
    """Score a CoinGecko ``/coins/{id}`` payload.

    Returns:
        (fundamental score in [-100, 100] or None without data, signal notes).
    """
    if not coin:
        return None, ()
    market = coin.get("market_data") if isinstance(coin.get("market_data"), Mapping) else {}
    developer = coin.get("developer_data") if isinstance(coin.get("developer_data"), Mapping) else {}
    community = coin.get("community_data") if isinstance(coin.get("community_data"), Mapping) else {}

    points: list[float] = []
    signals: list[str] = []

    def add(value: float, note: str) -> None:
        points.append(value)
        signals.append(f"{note} ({value:+.1f})")

    market_cap = _usd(market, "market_cap")
    fdv = _usd(market, "fully_diluted_valuation")
    if market_cap and fdv:
        ratio = fdv / market_cap
        add(clamp((1.5 - ratio) * 8, -12, 6), f"FDV/market cap {ratio:.2f}x")

    volume = _usd(market, "total_volume")
    if market_cap and volume is not None:
        turnover = volume / market_cap
        add(clamp((turnover - 0.05) * 100, -6, 10), f"Volume/market cap {turnover * 100:.1f}%")

    circulating = to_float(market.get("circulating_supply"))
    max_supply = to_float(market.get("max_supply")) or to_float(market.get("total_supply"))
    if circulating is not None and max_supply:
        supply_ratio = circulating / max_supply
        add(clamp((supply_ratio - 0.6) * 20, -8, 6), f"Circulating supply {supply_ratio * 100:.0f}% of max")

    commits = to_float(developer.get("commit_count_4_weeks"))
    if commits is not None:
        add(clamp(commits / 10, 0, 8) if commits > 0 else -3.0, f"{commits:.0f} commits in 4 weeks")

    followers = (to_float(community.get("twitter_followers")) or 0) + (
        to_float(community.get("reddit_subscribers")) or 0
    )
    if followers > 0:
        add(clamp((math.log10(followers) - 4) * 3, -3, 6), f"Community of {followers:,.0f}")

    change_30d = to_float(market.get("price_change_percentage_30d"))
    if change_30d is not None:
        add(clamp(change_30d / 3, -10, 10), f"30d price change {change_30d:+.1f}%")

    if not points:
        return None, ()
    return clamp(sum(points), -100, 100), tuple(signals)


# ──────────────────────────────────────────────
# Assembly
# ──────────────────────────────────────────────


def build_catalyst_watch(
    *,
    symbol_base: str,
    keywords: Sequence[str],
    news_rows: Iterable[Mapping[str, Any]] | None,
    trending: Sequence[TrendingTopic] = (),
    coin: Mapping[str, Any] | None = None,
) -> CatalystWatch:
    """Assemble the catalyst watch for one asset.

    Args:
        symbol_base: Base asset ticker, e.g. "BTC", matched against trending symbols.
        keywords: Lower-case terms that make a headline directly relevant.
        news_rows: Raw news rows, or None when the news fetch failed.
        trending: Parsed trending list, rank order.
        coin: Raw coin-fundamentals payload, or None.
    """
    headlines = score_headlines(news_rows, keywords) if news_rows is not None else []
    news = news_score(headlines) if news_rows is not None else None
    fundamental, fundamental_signals = score_fundamentals(coin)

    base = symbol_base.upper()
    match = next((t for t in trending if t.symbol == base), None)
    rank = match.rank if match is not None else None
    boost = trend_boost(rank)

    combined = clamp((news or 0.0) + FUNDAMENTAL_WEIGHT * (fundamental or 0.0) + boost, -100, 100)

    return CatalystWatch(
        sentiment_score=news,
        trend_boost=boost,
        news_score=news,
        fundamental_score=fundamental,
        combined_score=combined,
        sentiment_label=sentiment_label(combined),
        symbol_trending_rank=rank,
        news_signals=_news_signals(headlines),
        fundamental_signals=fundamental_signals,
        catalysts=top_catalysts(headlines),
        trending_topics=tuple(trending[:MAX_CATALYSTS]),
    )
