"""Tests for deterministic demo candles."""

from signalgen.market_data.demo import BASE_PRICES, DEMO_SOURCE, TIMEFRAME_MS, generate_demo_candles

NOW_MS = 1_700_000_000_000


class TestGenerateDemoCandles:
    """Tests for generate_demo_candles."""

    def test_same_request_same_prices(self) -> None:
        first = generate_demo_candles("BTCUSDT", "4h", now_ms=NOW_MS)
        second = generate_demo_candles("BTCUSDT", "4h", now_ms=NOW_MS)
        assert first == second

    def test_prices_independent_of_clock(self) -> None:
        early = generate_demo_candles("ETHUSDT", "1h", now_ms=NOW_MS)
        late = generate_demo_candles("ETHUSDT", "1h", now_ms=NOW_MS + 86_400_000)
        assert early.closes == late.closes
        assert early.candles[0].timestamp != late.candles[0].timestamp

    def test_symbols_differ(self) -> None:
        btc = generate_demo_candles("BTCUSDT", "4h", now_ms=NOW_MS)
        eth = generate_demo_candles("ETHUSDT", "4h", now_ms=NOW_MS)
        assert btc.closes != eth.closes

    def test_tagged_demo(self) -> None:
        assert generate_demo_candles("SOLUSDT", "1d", now_ms=NOW_MS).data_source == DEMO_SOURCE

    def test_ohlc_ordering_and_volume(self) -> None:
        series = generate_demo_candles("DOGEUSDT", "15m", limit=200, now_ms=NOW_MS)
        assert len(series) == 200
        for c in series.candles:
            assert c.low <= min(c.open, c.close) <= max(c.open, c.close) <= c.high
            assert c.volume > 0

    def test_timestamps_spaced_by_interval(self) -> None:
        series = generate_demo_candles("BTCUSDT", "1h", limit=10, now_ms=NOW_MS)
        stamps = [c.timestamp for c in series.candles]
        assert all(b - a == TIMEFRAME_MS["1h"] for a, b in zip(stamps, stamps[1:]))
        assert stamps[-1] < NOW_MS

    def test_price_level_near_base(self) -> None:
        series = generate_demo_candles("BTCUSDT", "4h", limit=1, now_ms=NOW_MS)
        assert abs(series.candles[0].open / BASE_PRICES["BTCUSDT"] - 1) < 0.05

    def test_unknown_timeframe_uses_4h(self) -> None:
        series = generate_demo_candles("BTCUSDT", "3m", limit=3, now_ms=NOW_MS)
        stamps = [c.timestamp for c in series.candles]
        assert stamps[1] - stamps[0] == TIMEFRAME_MS["4h"]
