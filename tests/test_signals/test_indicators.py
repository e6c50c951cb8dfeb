"""Tests for the technical indicator library."""

import pytest

from signalgen.exceptions import InsufficientDataError
from signalgen.signals.indicators import (
    adx,
    atr,
    bollinger_bands,
    compute_indicators,
    ema,
    ema_slope,
    macd,
    momentum,
    rsi,
    sma,
    std_dev,
    stochastic_oscillator,
)


class TestMovingAverages:
    """Tests for sma and ema."""

    def test_sma_uses_last_period_values(self) -> None:
        assert sma([1.0, 2.0, 3.0, 4.0, 5.0], 3) == pytest.approx(4.0)

    def test_sma_too_short_is_none(self) -> None:
        assert sma([1.0, 2.0], 3) is None

    def test_ema_seeded_with_sma(self) -> None:
        """Seed (1+2+3)/3 = 2, then k = 0.5 over 4 and 5."""
        assert ema([1.0, 2.0, 3.0, 4.0, 5.0], 3) == pytest.approx(4.0)

    def test_ema_too_short_is_none(self) -> None:
        assert ema([1.0, 2.0], 3) is None

    def test_ema_of_constant_series(self) -> None:
        assert ema([7.0] * 30, 20) == pytest.approx(7.0)

    def test_std_dev_is_population(self) -> None:
        assert std_dev([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]) == pytest.approx(2.0)

    def test_std_dev_empty_is_none(self) -> None:
        assert std_dev([]) is None


class TestRsi:
    """Tests for the single-window RSI."""

    def test_balanced_gains_and_losses(self) -> None:
        """Seven +1 and seven -1 deltas give RS = 1."""
        assert rsi([1.0, 2.0] * 7 + [1.0]) == pytest.approx(50.0)

    def test_no_losses_is_100(self) -> None:
        assert rsi([float(i) for i in range(1, 21)]) == 100.0

    def test_flat_window_is_100(self) -> None:
        """Zero deltas count as no losses."""
        assert rsi([100.0] * 20) == 100.0

    def test_only_losses_is_0(self) -> None:
        assert rsi([float(i) for i in range(20, 0, -1)]) == pytest.approx(0.0)

    def test_requires_period_plus_one_prices(self) -> None:
        assert rsi([1.0] * 14) is None
        assert rsi([1.0] * 15) is not None


class TestMacd:
    """Tests for MACD(12, 26, 9)."""

    def test_short_series_is_all_none(self) -> None:
        value = macd([1.0] * 25)
        assert value.line is None
        assert value.signal is None
        assert value.histogram is None

    def test_signal_needs_nine_history_points(self) -> None:
        """30 prices give only four line history points."""
        value = macd([float(i) for i in range(1, 31)])
        assert value.line is not None
        assert value.signal is None
        assert value.histogram is None

    def test_constant_series_is_zero(self) -> None:
        value = macd([50.0] * 40)
        assert value.line == pytest.approx(0.0)
        assert value.signal == pytest.approx(0.0)
        assert value.histogram == pytest.approx(0.0)

    def test_rising_series_has_positive_line(self) -> None:
        value = macd([100 * 1.01**i for i in range(60)])
        assert value.line > 0
        assert value.histogram is not None


class TestBollingerAndMomentum:
    """Tests for bollinger_bands and momentum."""

    def test_constant_series_collapses_bands(self) -> None:
        bands = bollinger_bands([100.0] * 20)
        assert bands.upper == bands.middle == bands.lower == pytest.approx(100.0)

    def test_bands_symmetric_around_sma(self) -> None:
        prices = [float(i) for i in range(1, 21)]
        bands = bollinger_bands(prices)
        assert bands.middle == pytest.approx(10.5)
        assert bands.upper - bands.middle == pytest.approx(bands.middle - bands.lower)

    def test_short_series_has_no_bands(self) -> None:
        assert bollinger_bands([1.0] * 19).middle is None

    def test_momentum_relative_change(self) -> None:
        assert momentum([100.0, 110.0], 1) == pytest.approx(0.1)

    def test_momentum_zero_base_is_none(self) -> None:
        assert momentum([0.0, 5.0], 1) is None

    def test_momentum_too_short_is_none(self) -> None:
        assert momentum([100.0, 110.0], 2) is None


class TestCandleIndicators:
    """Tests for atr, adx, stochastic_oscillator and ema_slope."""

    def test_atr_of_flat_candles_is_zero(self, flat_candles) -> None:
        assert atr(flat_candles) == pytest.approx(0.0)

    def test_atr_too_short_is_none(self, flat_candles) -> None:
        assert atr(flat_candles[:14]) is None

    def test_adx_of_monotonic_uptrend_near_100(self, uptrend_candles) -> None:
        """Only +DM is ever recorded, so every DX is 100."""
        assert adx(uptrend_candles) > 99

    def test_adx_of_flat_candles_is_zero(self, flat_candles) -> None:
        assert adx(flat_candles) == pytest.approx(0.0)

    def test_adx_needs_two_periods_plus_one(self, uptrend_candles) -> None:
        assert adx(uptrend_candles[:28]) is None
        assert adx(uptrend_candles[:29]) is not None

    def test_stochastic_flat_window_is_50(self, flat_candles) -> None:
        value = stochastic_oscillator(flat_candles)
        assert value.k == 50.0
        assert value.d == pytest.approx(50.0)
        assert value.prev_k == 50.0
        assert value.prev_d == pytest.approx(50.0)

    def test_stochastic_too_short_is_all_none(self, flat_candles) -> None:
        value = stochastic_oscillator(flat_candles[:16])
        assert value.k is None
        assert value.prev_d is None

    def test_stochastic_stays_in_bounds(self, uptrend_candles) -> None:
        value = stochastic_oscillator(uptrend_candles)
        assert 0 <= value.k <= 100
        assert 0 <= value.d <= 100

    def test_ema_slope_sign_follows_trend(self, uptrend_candles, downtrend_candles) -> None:
        up = [c.close for c in uptrend_candles]
        down = [c.close for c in downtrend_candles]
        assert ema_slope(up, 20, 5) > 0
        assert ema_slope(down, 20, 5) < 0

    def test_ema_slope_too_short_is_none(self) -> None:
        assert ema_slope([1.0] * 24, 20, 5) is None


class TestComputeIndicators:
    """Tests for the full snapshot."""

    def test_empty_candles_raise(self) -> None:
        with pytest.raises(InsufficientDataError):
            compute_indicators([])

    def test_uptrend_snapshot(self, uptrend_candles) -> None:
        snap = compute_indicators(uptrend_candles)
        assert snap.current_price == pytest.approx(uptrend_candles[-1].close)
        assert snap.ema20 > snap.ema50
        assert snap.sma200 is None
        assert snap.volume_ratio == pytest.approx(1.0)
        assert snap.macd.signal is not None
        assert snap.prev_macd_histogram is not None
        assert snap.momentum10 == pytest.approx(1.01**10 - 1)

    def test_single_candle_degrades_to_none(self, flat_candles) -> None:
        snap = compute_indicators(flat_candles[:1])
        assert snap.current_price == 100.0
        assert snap.rsi is None
        assert snap.ema20 is None
        assert snap.adx14 is None
        assert snap.volatility20 is None
        assert snap.volume_ratio == pytest.approx(1.0)
