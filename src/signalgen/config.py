"""Configuration system using pydantic-settings with environment variable loading."""

from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class MarketDataSettings(BaseSettings):
    """Upstream market-data providers (exchange, CoinGecko, news)."""

    model_config = SettingsConfigDict(env_prefix="MARKET_DATA_")

    exchange_id: str = "binanceusdm"  # ccxt id of the perpetual futures venue
    request_timeout_seconds: float = 10.0
    ohlcv_limit: int = 120
    ohlcv_cache_ttl_seconds: int = 60
    context_cache_ttl_seconds: int = 120
    cache_max_entries: int = 400  # per cache; keys come from request symbols and ids
    coingecko_api_key: SecretStr = SecretStr("")
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    news_url: str = (
        "https://min-api.cryptocompare.com/data/v2/news/"
        "?lang=EN&categories=BTC,ETH,Market,Regulation&excludeCategories=Sponsored"
    )
    news_limit: int = 40
    demo_fallback_enabled: bool = True  # synthesize candles when every provider fails


class SignalSettings(BaseSettings):
    """Defaults applied when a request omits or mangles signal parameters."""

    model_config = SettingsConfigDict(env_prefix="SIGNAL_")

    default_timeframe: Literal["15m", "1h", "4h", "1d"] = "4h"
    default_signal_type: Literal["scalp", "intraday", "swing"] = "swing"
    default_risk_tolerance: Literal["conservative", "moderate", "aggressive"] = "moderate"
    liquidity_bucket_count: int = 24


class ApiSettings(BaseSettings):
    """HTTP API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8080
    cache_max_age_seconds: int = 60
    stale_while_revalidate_seconds: int = 300


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"  # LOG_FORMAT
    market_data: MarketDataSettings = MarketDataSettings()
    signal: SignalSettings = SignalSettings()
    api: ApiSettings = ApiSettings()
