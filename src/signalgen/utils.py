"""Small numeric helpers shared by the scoring core and the normalizers."""

import math


def clamp(value: float, low: float, high: float) -> float:
    """Bound ``value`` to the closed interval [low, high]."""
    return max(low, min(high, value))


def round_or_none(value: float | None, digits: int = 2) -> float | None:
    """Round for display; None and NaN both map to None."""
    if value is None or math.isnan(value):
        return None
    return round(value, digits)


def to_float(value: object) -> float | None:
    """Parse a provider field into a finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None
