"""Tests for generate_signal (end-to-end over candle fixtures).

Tests verify:
- Empty input is the only hard failure
- Flat and trending series produce sane, bounded decisions
- Identical inputs produce identical results
- Provider tags and option coercion flow through to the result
"""

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from signalgen.exceptions import InsufficientDataError
from signalgen.market_data.demo import TIMEFRAME_MS, generate_demo_candles
from signalgen.market_data.symbols import SYMBOL_MAP
from signalgen.models import Catalyst, CatalystWatch, CandleSeries, SignalContext
from signalgen.signals.engine import generate_signal
from signalgen.signals.models import Regime, SignalAction

FIXED_TS = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestGenerateSignal:
    """Tests for generate_signal."""

    def test_empty_candles_raise(self) -> None:
        with pytest.raises(InsufficientDataError):
            generate_signal([])

    def test_empty_series_raises(self) -> None:
        with pytest.raises(InsufficientDataError):
            generate_signal(CandleSeries(candles=()))

    def test_flat_market_holds(self, flat_candles) -> None:
        result = generate_signal(flat_candles, "swing", "moderate")

        assert result.signal is SignalAction.HOLD
        assert result.regime is Regime.RANGE
        assert result.liquidity_heatmap is None
        bands = result.indicators.bollinger_bands
        assert bands.upper == bands.middle == bands.lower == 100.0
        assert 40 <= result.confidence <= 68
        assert result.risk_reward == 0.0

    def test_uptrend_never_sells(self, uptrend_candles) -> None:
        result = generate_signal(uptrend_candles)

        assert result.regime is Regime.UPTREND
        assert result.signal is not SignalAction.SELL
        assert result.buy_score > result.sell_score
        assert any("uptrend" in reason for reason in result.reasons)

    def test_downtrend_never_buys(self, downtrend_candles) -> None:
        result = generate_signal(downtrend_candles)

        assert result.regime is Regime.DOWNTREND
        assert result.signal is not SignalAction.BUY
        assert result.sell_score > result.buy_score

    def test_deterministic(self, uptrend_candles) -> None:
        first = generate_signal(uptrend_candles, timestamp=FIXED_TS)
        second = generate_signal(uptrend_candles, timestamp=FIXED_TS)
        assert first == second
        assert first.to_dict() == second.to_dict()

    def test_series_tag_carried(self, uptrend_candles) -> None:
        series = CandleSeries(candles=tuple(uptrend_candles), data_source="demo")
        assert generate_signal(series).data_source == "demo"
        assert generate_signal(series, data_source="override").data_source == "override"
        assert generate_signal(uptrend_candles).data_source == "live"

    def test_unknown_options_fall_back(self, uptrend_candles) -> None:
        default = generate_signal(uptrend_candles, "swing", "moderate", timestamp=FIXED_TS)
        coerced = generate_signal(uptrend_candles, "bogus", "reckless", timestamp=FIXED_TS)
        assert coerced == default

    def test_signal_type_changes_targets(self, uptrend_candles) -> None:
        scalp = generate_signal(uptrend_candles, "scalp")
        swing = generate_signal(uptrend_candles, "swing")
        assert abs(scalp.take_profit_1_pct) < abs(swing.take_profit_1_pct)

    def test_single_candle_holds(self, flat_candles) -> None:
        result = generate_signal(flat_candles[:1])
        assert result.signal is SignalAction.HOLD
        assert result.indicators.rsi is None

    def test_timestamp_is_iso(self, flat_candles) -> None:
        result = generate_signal(flat_candles, timestamp=FIXED_TS)
        assert result.timestamp == "2024-01-01T00:00:00+00:00"

    @pytest.mark.parametrize("symbol", sorted(SYMBOL_MAP))
    @pytest.mark.parametrize("timeframe", sorted(TIMEFRAME_MS))
    def test_invariants_on_demo_series(self, symbol, timeframe) -> None:
        series = generate_demo_candles(symbol, timeframe, now_ms=1_700_000_000_000)
        result = generate_signal(series)

        assert result.buy_score >= 0
        assert result.sell_score >= 0
        if result.signal is SignalAction.HOLD:
            assert 40 <= result.confidence <= 68
            assert result.risk_reward == 0.0
        else:
            assert 55 <= result.confidence <= 97
        if result.signal is SignalAction.BUY:
            assert result.buy_score >= result.threshold - 0.01
            assert result.buy_score - result.sell_score >= 0.89
        if result.signal is SignalAction.SELL:
            assert result.sell_score >= result.threshold - 0.01
            assert result.sell_score - result.buy_score >= 0.89
        assert 0 <= result.liquidation_risk_meter.score <= 100
        assert 10 <= result.signal_quality.score <= 99
        assert result.reasons


class TestSignalResultPayload:
    """Tests for the display rounding and camelCase payload."""

    def test_camel_case_keys_and_enum_values(self, uptrend_candles) -> None:
        payload = generate_signal(uptrend_candles, timestamp=FIXED_TS).to_dict()

        for key in (
            "signal",
            "confidence",
            "entryRange",
            "takeProfit1",
            "takeProfit2Pct",
            "stopLossPct",
            "riskReward",
            "buyScore",
            "signalQuality",
            "liquidationRiskMeter",
            "breakoutFakeoutDetector",
            "futuresContext",
            "catalystWatch",
            "liquidityHeatmap",
            "dataSource",
            "marketType",
        ):
            assert key in payload
        assert payload["signal"] in ("BUY", "SELL", "HOLD")
        assert payload["regime"] == "uptrend"
        assert payload["marketType"] == "futures_perpetual"
        assert "bollingerBands" in payload["indicators"]
        assert "buckets" not in payload["liquidityHeatmap"]
        assert "supportZones" in payload["liquidityHeatmap"]

    def test_detector_metrics_rendered_as_object(self, uptrend_candles) -> None:
        payload = generate_signal(uptrend_candles, timestamp=FIXED_TS).to_dict()
        metrics = payload["breakoutFakeoutDetector"]["metrics"]
        assert isinstance(metrics, dict)
        assert {"bodyRatio", "volumeBoost", "oiBoost", "rangeToAtr"} <= set(metrics)

    def test_result_is_hashable(self, uptrend_candles) -> None:
        result = generate_signal(uptrend_candles, timestamp=FIXED_TS)
        assert hash(result) == hash(generate_signal(uptrend_candles, timestamp=FIXED_TS))

    def test_momentum_shown_in_percent(self, uptrend_candles) -> None:
        result = generate_signal(uptrend_candles)
        assert result.indicators.momentum10 == pytest.approx(round((1.01**10 - 1) * 100, 2))
        assert result.current_price == round(uptrend_candles[-1].close, 2)

    def test_catalysts_truncated(self, flat_candles) -> None:
        catalyst = Catalyst(
            title="headline",
            source="wire",
            url="",
            published_at=None,
            sentiment="Neutral",
            impact=0.0,
        )
        watch = CatalystWatch(catalysts=tuple(replace(catalyst, title=f"h{i}") for i in range(9)))
        result = generate_signal(flat_candles, context=SignalContext(catalyst_watch=watch))
        assert len(result.catalyst_watch.catalysts) == 6
        assert result.catalyst_watch.catalysts[0].title == "h0"

    def test_neutral_context_when_omitted(self, flat_candles) -> None:
        result = generate_signal(flat_candles)
        assert result.futures_context.source == "fallback"
        assert result.futures_context.funding_rate.current is None
