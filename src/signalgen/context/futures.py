"""Normalize ccxt-unified derivatives payloads into a FuturesContext.

Accepts the structures returned by ``fetch_funding_rate``,
``fetch_open_interest_history`` and ``fetch_long_short_ratio_history``.
Any part that is missing or unparseable becomes None rather than 0, so the
scoring engine treats it as "no signal" instead of a neutral reading.
"""

from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from signalgen.models import FundingRateInfo, FuturesContext, LongShortInfo, OpenInterestInfo
from signalgen.utils import to_float

#: Funding settles three times a day on the supported perpetual venues.
FUNDING_PERIODS_PER_DAY = 3


def _iso_from_millis(value: Any) -> str | None:
    millis = to_float(value)
    if millis is None or millis <= 0:
        return None
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).isoformat()


def _series(rows: Iterable[Mapping[str, Any]] | None, *keys: str) -> list[float]:
    """Pull the first finite value found under ``keys`` from each row."""
    values: list[float] = []
    for row in rows or ():
        if not isinstance(row, Mapping):
            continue
        for key in keys:
            value = to_float(row.get(key))
            if value is not None:
                values.append(value)
                break
    return values


def change_pct(series: Sequence[float]) -> float | None:
    """Percent change from the first to the last point; None with fewer than two."""
    if len(series) < 2 or series[0] == 0:
        return None
    return (series[-1] - series[0]) / series[0] * 100


def normalize_funding_rate(payload: Mapping[str, Any] | None) -> FundingRateInfo:
    if not payload:
        return FundingRateInfo()
    current = to_float(payload.get("fundingRate"))
    next_time = payload.get("nextFundingTimestamp") or payload.get("fundingTimestamp")
    return FundingRateInfo(
        current=current,
        annualized_pct=current * FUNDING_PERIODS_PER_DAY * 365 * 100 if current is not None else None,
        next_funding_time=_iso_from_millis(next_time),
    )


def normalize_open_interest(history: Iterable[Mapping[str, Any]] | None) -> OpenInterestInfo:
    # Prefer notional value; fall back to contract amount
    series = _series(history, "openInterestValue", "openInterestAmount")
    return OpenInterestInfo(
        latest=series[-1] if series else None,
        change_pct=change_pct(series),
    )


def normalize_long_short_ratio(history: Iterable[Mapping[str, Any]] | None) -> LongShortInfo:
    series = _series(history, "longShortRatio")
    return LongShortInfo(
        ratio=series[-1] if series else None,
        change_pct=change_pct(series),
    )


def normalize_futures_context(
    funding: Mapping[str, Any] | None,
    open_interest_history: Iterable[Mapping[str, Any]] | None,
    long_short_history: Iterable[Mapping[str, Any]] | None,
    *,
    source: str = "live",
) -> FuturesContext:
    """Combine the three derivatives payloads into one context.

    Args:
        funding: ccxt funding-rate structure, or None if the fetch failed.
        open_interest_history: ccxt open-interest history rows, oldest first.
        long_short_history: ccxt long/short ratio rows, oldest first.
        source: Provider tag carried on the context.

    Returns:
        FuturesContext with None for every part that had no usable data.
    """
    return FuturesContext(
        funding_rate=normalize_funding_rate(funding),
        open_interest=normalize_open_interest(open_interest_history),
        long_short_ratio=normalize_long_short_ratio(long_short_history),
        source=source,
    )
