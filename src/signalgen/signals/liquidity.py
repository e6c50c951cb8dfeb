"""Liquidity heatmap: traded volume bucketed by price.

Spreads each candle's volume evenly across every price bucket its high-low
range touches, then treats the busiest buckets as support/resistance zones
around the current price.
"""

from collections.abc import Sequence

from signalgen.models import Candle
from signalgen.signals.models import LiquidityHeatmap, LiquidityNode

#: Number of highest-volume buckets kept as hotspots.
HOTSPOT_COUNT = 8

#: Support/resistance zones reported on each side of the price.
ZONES_PER_SIDE = 3


def _clamp_index(index: int, bucket_count: int) -> int:
    return max(0, min(bucket_count - 1, index))


def build_liquidity_heatmap(
    candles: Sequence[Candle],
    current_price: float,
    bucket_count: int = 24,
) -> LiquidityHeatmap | None:
    """Build the volume-by-price heatmap for a candle window.

    Args:
        candles: Candle window, oldest first.
        current_price: Reference price splitting support from resistance.
        bucket_count: Number of equal-width price buckets.

    Returns:
        LiquidityHeatmap, or None when there are no candles or the window has
        zero price range (e.g. perfectly flat candles).
    """
    if not candles or bucket_count <= 0:
        return None
    min_price = min(c.low for c in candles)
    max_price = max(c.high for c in candles)
    price_range = max_price - min_price
    if price_range <= 0:
        return None

    bucket_size = price_range / bucket_count
    volumes = [0.0] * bucket_count
    for candle in candles:
        start = _clamp_index(int((candle.low - min_price) // bucket_size), bucket_count)
        end = _clamp_index(int((candle.high - min_price) // bucket_size), bucket_count)
        spread = max(1, end - start + 1)
        share = candle.volume / spread
        for i in range(start, end + 1):
            volumes[i] += share

    max_volume = max(max(volumes), 1.0)
    buckets = tuple(
        LiquidityNode(
            low=min_price + i * bucket_size,
            high=min_price + (i + 1) * bucket_size,
            center=min_price + (i + 0.5) * bucket_size,
            intensity=volume / max_volume * 100,
            volume=volume,
        )
        for i, volume in enumerate(volumes)
    )

    # sorted() is stable, so equal-volume buckets keep price order
    hotspots = sorted(
        sorted(buckets, key=lambda n: n.volume, reverse=True)[:HOTSPOT_COUNT],
        key=lambda n: n.center,
    )
    support = sorted(
        (n for n in hotspots if n.center <= current_price),
        key=lambda n: n.center,
        reverse=True,
    )[:ZONES_PER_SIDE]
    resistance = sorted(
        (n for n in hotspots if n.center >= current_price),
        key=lambda n: n.center,
    )[:ZONES_PER_SIDE]

    return LiquidityHeatmap(
        min_price=min_price,
        max_price=max_price,
        bucket_count=bucket_count,
        hotspots=tuple(hotspots),
        support_zones=tuple(support),
        resistance_zones=tuple(resistance),
        buckets=buckets,
    )
