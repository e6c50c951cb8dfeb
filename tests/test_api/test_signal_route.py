"""Tests for the /api/signal route.

Collaborators are replaced with AsyncMocks on app.state; no lifespan runs.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from signalgen.api.app import create_app
from signalgen.config import AppSettings, MarketDataSettings
from signalgen.exceptions import MarketDataUnavailable
from signalgen.market_data.demo import generate_demo_candles
from signalgen.models import CandleSeries, CatalystWatch, FuturesContext


def _make_client(
    settings: AppSettings,
    ohlcv: CandleSeries | Exception | None = None,
    futures: FuturesContext | Exception | None = None,
    catalyst: CatalystWatch | Exception | None = None,
) -> tuple[TestClient, AsyncMock, AsyncMock]:
    market_data = AsyncMock()
    catalyst_service = AsyncMock()
    for mock, result, default in (
        (
            market_data.fetch_ohlcv,
            ohlcv,
            CandleSeries(
                candles=generate_demo_candles("ETHUSDT", "4h", now_ms=1_700_000_000_000).candles,
                data_source="binanceusdm",
            ),
        ),
        (market_data.fetch_futures_context, futures, FuturesContext(source="binanceusdm")),
        (catalyst_service.fetch_catalyst_watch, catalyst, CatalystWatch()),
    ):
        if isinstance(result, Exception):
            mock.side_effect = result
        else:
            mock.return_value = result if result is not None else default

    app = create_app(settings=settings)
    app.state.market_data = market_data
    app.state.catalyst_service = catalyst_service
    return TestClient(app), market_data, catalyst_service


class TestGetSignal:
    """Tests for GET /api/signal."""

    def test_happy_path(self, app_settings) -> None:
        client, market_data, catalyst_service = _make_client(app_settings)

        response = client.get("/api/signal", params={"symbol": "eth"})

        assert response.status_code == 200
        body = response.json()
        assert body["symbol"] == "ETHUSDT"
        assert body["symbolName"] == "Ethereum"
        assert body["geckoId"] == "ethereum"
        assert body["timeframe"] == "4h"
        assert body["signalType"] == "swing"
        assert body["riskTolerance"] == "moderate"
        assert body["reasoningSource"] == "rules"
        assert body["degraded"] is False
        assert body["warnings"] == []
        assert body["signal"] in ("BUY", "SELL", "HOLD")
        assert body["dataSource"] == "binanceusdm"
        assert response.headers["cache-control"] == "s-maxage=60, stale-while-revalidate=300"
        market_data.fetch_ohlcv.assert_awaited_once_with("ETHUSDT", "4h", gecko_id=None)
        catalyst_service.fetch_catalyst_watch.assert_awaited_once_with(
            "ETHUSDT", gecko_id=None, coin_name=None
        )

    def test_invalid_options_normalized_with_warnings(self, app_settings) -> None:
        client, market_data, _ = _make_client(app_settings)

        response = client.get(
            "/api/signal",
            params={"symbol": "ETHUSDT", "timeframe": "3m", "signalType": "hodl", "riskTolerance": "yolo"},
        )

        body = response.json()
        assert body["timeframe"] == "4h"
        assert body["signalType"] == "swing"
        assert body["riskTolerance"] == "moderate"
        assert body["degraded"] is True
        assert body["warnings"] == [
            "Invalid timeframe normalized to 4h",
            "Invalid signalType normalized to swing",
            "Invalid riskTolerance normalized to moderate",
        ]
        market_data.fetch_ohlcv.assert_awaited_once_with("ETHUSDT", "4h", gecko_id=None)

    def test_unknown_symbol_uses_base_name(self, app_settings) -> None:
        client, _, _ = _make_client(app_settings)

        body = client.get("/api/signal", params={"symbol": "pepe"}).json()

        assert body["symbol"] == "PEPEUSDT"
        assert body["symbolName"] == "PEPE"
        assert body["geckoId"] is None

    def test_default_symbol(self, app_settings) -> None:
        client, _, _ = _make_client(app_settings)
        assert client.get("/api/signal").json()["symbol"] == "BTCUSDT"

    def test_futures_failure_degrades(self, app_settings) -> None:
        client, _, _ = _make_client(app_settings, futures=MarketDataUnavailable("no derivatives"))

        body = client.get("/api/signal", params={"symbol": "ETHUSDT"}).json()

        assert body["degraded"] is True
        assert body["warnings"] == ["Futures context unavailable, served neutral values"]
        assert body["futuresContext"]["source"] == "fallback"
        assert body["futuresContext"]["fundingRate"]["current"] is None

    def test_catalyst_failure_degrades(self, app_settings) -> None:
        client, _, _ = _make_client(app_settings, catalyst=MarketDataUnavailable("no catalysts"))

        body = client.get("/api/signal", params={"symbol": "ETHUSDT"}).json()

        assert body["warnings"] == ["Catalyst watch unavailable, served neutral values"]
        assert body["catalystWatch"]["combinedScore"] == 0.0

    def test_ohlcv_failure_switches_to_demo(self, app_settings) -> None:
        client, _, _ = _make_client(app_settings, ohlcv=MarketDataUnavailable("all providers down"))

        body = client.get("/api/signal", params={"symbol": "ETHUSDT"}).json()

        assert body["dataSource"] == "demo"
        assert "Primary OHLCV unavailable, switched to demo fallback" in body["warnings"]

    def test_ohlcv_failure_without_demo_is_503(self) -> None:
        settings = AppSettings(market_data=MarketDataSettings(demo_fallback_enabled=False))
        client, _, _ = _make_client(settings, ohlcv=MarketDataUnavailable("all providers down"))

        response = client.get("/api/signal", params={"symbol": "ETHUSDT"})

        assert response.status_code == 503


class TestPostSignal:
    """Tests for POST /api/signal."""

    def test_json_body(self, app_settings) -> None:
        client, market_data, catalyst_service = _make_client(app_settings)

        response = client.post(
            "/api/signal",
            json={
                "symbol": "SOLUSDT",
                "timeframe": "1h",
                "signalType": "scalp",
                "riskTolerance": "aggressive",
                "symbolName": "Solana",
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["symbol"] == "SOLUSDT"
        assert body["timeframe"] == "1h"
        assert body["signalType"] == "scalp"
        assert body["riskTolerance"] == "aggressive"
        assert body["geckoId"] == "solana"
        market_data.fetch_ohlcv.assert_awaited_once_with("SOLUSDT", "1h", gecko_id=None)
        catalyst_service.fetch_catalyst_watch.assert_awaited_once_with(
            "SOLUSDT", gecko_id=None, coin_name="Solana"
        )

    def test_empty_body_uses_defaults(self, app_settings) -> None:
        client, _, _ = _make_client(app_settings)

        body = client.post("/api/signal").json()

        assert body["symbol"] == "BTCUSDT"
        assert body["timeframe"] == "4h"
        assert body["warnings"] == []

    def test_symbol_base_accepted(self, app_settings) -> None:
        client, _, _ = _make_client(app_settings)
        body = client.post("/api/signal", json={"symbolBase": "doge"}).json()
        assert body["symbol"] == "DOGEUSDT"


def test_health(app_settings) -> None:
    client, _, _ = _make_client(app_settings)
    assert client.get("/api/health").json() == {"status": "ok"}


@pytest.mark.parametrize("method", ["put", "delete"])
def test_other_methods_rejected(app_settings, method) -> None:
    client, _, _ = _make_client(app_settings)
    assert getattr(client, method)("/api/signal").status_code == 405
