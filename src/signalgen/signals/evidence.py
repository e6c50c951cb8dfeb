"""Evidence accumulator for the confluence score.

One accumulator lives for exactly one scoring pass. Rules add points to the
buy or sell side under a category, append a human-readable reason, or apply a
soft penalty that scales both sides down. Reasons keep evaluation order.
"""

from dataclasses import dataclass, field

#: Category keys in display order, with their labels.
CATEGORY_LABELS: dict[str, str] = {
    "technical": "Technical",
    "trend": "Trend Structure",
    "liquidity": "Liquidity",
    "derivatives": "Derivatives",
    "news": "News Flow",
    "fundamental": "Fundamentals",
    "catalyst": "Catalyst",
}


@dataclass
class CategoryScore:
    buy: float = 0.0
    sell: float = 0.0


@dataclass
class EvidenceAccumulator:
    """Running buy/sell scores, evidence counts, and per-category raw points.

    ``buy_score``/``sell_score`` are penalized as soft penalties apply;
    category totals keep the raw points for the quality breakdown.
    """

    buy_score: float = 0.0
    sell_score: float = 0.0
    buy_evidence: int = 0
    sell_evidence: int = 0
    soft_penalty: float = 0.0
    contradiction_penalty: float = 0.0
    reasons: list[str] = field(default_factory=list)
    categories: dict[str, CategoryScore] = field(
        default_factory=lambda: {key: CategoryScore() for key in CATEGORY_LABELS}
    )

    def add_buy(self, points: float, category: str, reason: str) -> None:
        self.buy_score += points
        self.buy_evidence += 1
        self.categories[category].buy += points
        self.reasons.append(reason)

    def add_sell(self, points: float, category: str, reason: str) -> None:
        self.sell_score += points
        self.sell_evidence += 1
        self.categories[category].sell += points
        self.reasons.append(reason)

    def note(self, reason: str) -> None:
        """Record a reason without moving either score."""
        self.reasons.append(reason)

    def soften(self, factor: float, reason: str) -> None:
        """Scale both scores by ``factor`` (< 1) and remember the penalty size."""
        self.buy_score *= factor
        self.sell_score *= factor
        self.soft_penalty += 1 - factor
        self.reasons.append(reason)

    def reinforce_dominant(self, points: float, category: str, reason: str) -> None:
        """Add points to whichever side currently leads; no-op on a tie.

        Not counted as evidence: it amplifies existing conviction rather than
        being an independent observation.
        """
        self.reasons.append(reason)
        if self.buy_score > self.sell_score:
            self.buy_score += points
            self.categories[category].buy += points
        elif self.sell_score > self.buy_score:
            self.sell_score += points
            self.categories[category].sell += points

    def apply_contradiction_penalty(self, ratio: float = 0.35) -> float:
        """Subtract ``ratio * min(buy, sell)`` from both sides when both are positive.

        Applied once, after every rule. Both scores stay >= 0 because the
        overlap never exceeds the smaller score.

        Returns:
            The overlap subtracted from each side (0 when not applied).
        """
        if self.buy_score <= 0 or self.sell_score <= 0:
            return 0.0
        overlap = min(self.buy_score, self.sell_score) * ratio
        self.buy_score -= overlap
        self.sell_score -= overlap
        self.contradiction_penalty = overlap
        self.reasons.append(
            "Bullish and bearish evidence both present - applied contradiction penalty"
        )
        return overlap

    @property
    def edge(self) -> float:
        return abs(self.buy_score - self.sell_score)

    def raw_points(self, side: str) -> float:
        """Sum of raw category points for ``side`` ("buy" or "sell")."""
        return sum(getattr(score, side) for score in self.categories.values())
