"""Tests for normalizing ccxt derivatives payloads."""

import pytest

from signalgen.context.futures import (
    change_pct,
    normalize_funding_rate,
    normalize_futures_context,
    normalize_long_short_ratio,
    normalize_open_interest,
)


class TestNormalizeFundingRate:
    """Tests for normalize_funding_rate."""

    def test_annualizes_three_periods_per_day(self) -> None:
        info = normalize_funding_rate({"fundingRate": 0.0001, "fundingTimestamp": 1_700_000_000_000})

        assert info.current == pytest.approx(0.0001)
        assert info.annualized_pct == pytest.approx(10.95)
        assert info.next_funding_time == "2023-11-14T22:13:20+00:00"

    def test_prefers_next_funding_timestamp(self) -> None:
        info = normalize_funding_rate(
            {
                "fundingRate": "0.0002",
                "fundingTimestamp": 1_700_000_000_000,
                "nextFundingTimestamp": 1_700_028_800_000,
            }
        )
        assert info.current == pytest.approx(0.0002)
        assert info.next_funding_time == "2023-11-15T06:13:20+00:00"

    def test_missing_rate_is_none_not_zero(self) -> None:
        info = normalize_funding_rate({"fundingRate": None})
        assert info.current is None
        assert info.annualized_pct is None
        assert info.next_funding_time is None

    def test_none_payload(self) -> None:
        assert normalize_funding_rate(None).current is None


class TestHistories:
    """Tests for open-interest and long/short history normalization."""

    def test_change_pct(self) -> None:
        assert change_pct([100.0, 125.0]) == pytest.approx(25.0)
        assert change_pct([100.0]) is None
        assert change_pct([0.0, 5.0]) is None

    def test_open_interest_skips_unparseable_rows(self) -> None:
        rows = [
            {"openInterestValue": 100.0},
            {"openInterestValue": "bad"},
            "junk",
            {"openInterestValue": 125.0},
        ]
        info = normalize_open_interest(rows)
        assert info.latest == pytest.approx(125.0)
        assert info.change_pct == pytest.approx(25.0)

    def test_open_interest_falls_back_to_amount(self) -> None:
        info = normalize_open_interest([{"openInterestAmount": 10.0}, {"openInterestAmount": 12.0}])
        assert info.latest == pytest.approx(12.0)
        assert info.change_pct == pytest.approx(20.0)

    def test_long_short_ratio(self) -> None:
        info = normalize_long_short_ratio([{"longShortRatio": 1.2}, {"longShortRatio": 1.5}])
        assert info.ratio == pytest.approx(1.5)
        assert info.change_pct == pytest.approx(25.0)

    def test_single_point_has_no_change(self) -> None:
        info = normalize_long_short_ratio([{"longShortRatio": 0.9}])
        assert info.ratio == pytest.approx(0.9)
        assert info.change_pct is None


class TestNormalizeFuturesContext:
    """Tests for normalize_futures_context."""

    def test_all_parts_missing(self) -> None:
        ctx = normalize_futures_context(None, None, None)
        assert ctx.funding_rate.current is None
        assert ctx.open_interest.latest is None
        assert ctx.long_short_ratio.ratio is None
        assert ctx.source == "live"

    def test_combines_parts_and_tags_source(self) -> None:
        ctx = normalize_futures_context(
            {"fundingRate": 0.0005},
            [{"openInterestValue": 200.0}, {"openInterestValue": 220.0}],
            None,
            source="binanceusdm",
        )
        assert ctx.funding_rate.current == pytest.approx(0.0005)
        assert ctx.open_interest.change_pct == pytest.approx(10.0)
        assert ctx.long_short_ratio.ratio is None
        assert ctx.source == "binanceusdm"
