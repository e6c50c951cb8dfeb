"""Signal endpoint: fetch inputs concurrently, score, and serve the camelCase payload.

Invalid request options are normalized to the configured defaults with a
warning. Context fetches that fail degrade to neutral payloads; the response
is then flagged ``degraded`` and lists every warning.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any

import structlog
from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from signalgen.config import AppSettings
from signalgen.market_data.client import SUPPORTED_TIMEFRAMES
from signalgen.market_data.demo import generate_demo_candles
from signalgen.market_data.symbols import lookup, normalize_trading_symbol, symbol_base
from signalgen.models import CandleSeries, CatalystWatch, FuturesContext, SignalContext
from signalgen.signals.engine import generate_signal
from signalgen.signals.models import RiskTolerance, SignalType

log = structlog.get_logger(__name__)

router = APIRouter()

SIGNAL_TYPES = tuple(t.value for t in SignalType)
RISK_TOLERANCES = tuple(r.value for r in RiskTolerance)


class SignalRequest(BaseModel):
    """Signal options, accepted as query parameters (GET) or a JSON body (POST)."""

    model_config = ConfigDict(populate_by_name=True)

    symbol: str | None = None
    timeframe: str | None = None
    signal_type: str | None = Field(None, alias="signalType")
    risk_tolerance: str | None = Field(None, alias="riskTolerance")
    gecko_id: str | None = Field(None, alias="geckoId")
    symbol_name: str | None = Field(None, alias="symbolName")
    symbol_base: str | None = Field(None, alias="symbolBase")


def _pick(
    value: str | None,
    allowed: Sequence[str],
    default: str,
    field: str,
    warnings: list[str],
) -> str:
    if value is None or value == "":
        return default
    if value in allowed:
        return value
    warnings.append(f"Invalid {field} normalized to {default}")
    return default


def _failed(result: Any) -> bool:
    """True for an exception returned by gather; cancellation is re-raised."""
    if isinstance(result, Exception):
        return True
    if isinstance(result, BaseException):
        raise result
    return False


async def _build_signal_response(request: Request, params: SignalRequest) -> JSONResponse:
    settings: AppSettings = request.app.state.settings
    market_data = request.app.state.market_data
    catalyst_service = request.app.state.catalyst_service
    defaults = settings.signal

    warnings: list[str] = []
    symbol = normalize_trading_symbol(params.symbol or params.symbol_base)
    timeframe = _pick(params.timeframe, SUPPORTED_TIMEFRAMES, defaults.default_timeframe, "timeframe", warnings)
    signal_type = _pick(params.signal_type, SIGNAL_TYPES, defaults.default_signal_type, "signalType", warnings)
    risk_tolerance = _pick(
        params.risk_tolerance, RISK_TOLERANCES, defaults.default_risk_tolerance, "riskTolerance", warnings
    )

    with structlog.contextvars.bound_contextvars(symbol=symbol, timeframe=timeframe):
        ohlcv, futures, catalyst = await asyncio.gather(
            market_data.fetch_ohlcv(symbol, timeframe, gecko_id=params.gecko_id),
            market_data.fetch_futures_context(symbol, timeframe),
            catalyst_service.fetch_catalyst_watch(
                symbol, gecko_id=params.gecko_id, coin_name=params.symbol_name
            ),
            return_exceptions=True,
        )

        if _failed(ohlcv) or not isinstance(ohlcv, CandleSeries) or not ohlcv.candles:
            if not settings.market_data.demo_fallback_enabled:
                log.error("ohlcv_unavailable", error=str(ohlcv))
                raise HTTPException(status_code=503, detail="Market data unavailable")
            log.warning("ohlcv_fetch_failed", error=str(ohlcv))
            warnings.append("Primary OHLCV unavailable, switched to demo fallback")
            ohlcv = generate_demo_candles(symbol, timeframe, settings.market_data.ohlcv_limit)

        if _failed(futures):
            log.warning("futures_context_failed", error=str(futures))
            warnings.append("Futures context unavailable, served neutral values")
            futures = FuturesContext.empty()

        if _failed(catalyst):
            log.warning("catalyst_watch_failed", error=str(catalyst))
            warnings.append("Catalyst watch unavailable, served neutral values")
            catalyst = CatalystWatch.empty()

        result = generate_signal(
            ohlcv,
            signal_type,
            risk_tolerance,
            SignalContext(futures_context=futures, catalyst_watch=catalyst),
            bucket_count=defaults.liquidity_bucket_count,
        )

        info = lookup(symbol)
        payload = result.to_dict()
        payload.update(
            symbol=symbol,
            symbolName=params.symbol_name or (info.name if info else symbol_base(symbol)),
            geckoId=params.gecko_id or (info.gecko_id if info else None),
            timeframe=timeframe,
            signalType=signal_type,
            riskTolerance=risk_tolerance,
            reasoningSource="rules",
            degraded=bool(warnings),
            warnings=warnings,
        )

        log.info(
            "signal_generated",
            signal=result.signal.value,
            confidence=result.confidence,
            grade=result.signal_quality.grade,
            data_source=result.data_source,
            degraded=bool(warnings),
        )

    api = settings.api
    return JSONResponse(
        content=payload,
        headers={
            "Cache-Control": (
                f"s-maxage={api.cache_max_age_seconds}, "
                f"stale-while-revalidate={api.stale_while_revalidate_seconds}"
            )
        },
    )


@router.get("/signal")
async def get_signal(
    request: Request,
    symbol: str | None = None,
    timeframe: str | None = None,
    signal_type: str | None = Query(None, alias="signalType"),
    risk_tolerance: str | None = Query(None, alias="riskTolerance"),
    gecko_id: str | None = Query(None, alias="geckoId"),
    symbol_name: str | None = Query(None, alias="symbolName"),
    symbol_base_: str | None = Query(None, alias="symbolBase"),
) -> JSONResponse:
    """Generate a signal from query parameters."""
    params = SignalRequest(
        symbol=symbol,
        timeframe=timeframe,
        signal_type=signal_type,
        risk_tolerance=risk_tolerance,
        gecko_id=gecko_id,
        symbol_name=symbol_name,
        symbol_base=symbol_base_,
    )
    return await _build_signal_response(request, params)


@router.post("/signal")
async def post_signal(request: Request, params: SignalRequest | None = None) -> JSONResponse:
    """Generate a signal from a JSON body; an empty body uses every default."""
    return await _build_signal_response(request, params or SignalRequest())


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
