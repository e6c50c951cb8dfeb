"""Market data layer -- exchange candles, derivatives context, news and fundamentals."""

from signalgen.market_data.cache import TTLCache
from signalgen.market_data.catalyst_service import CatalystService
from signalgen.market_data.client import SUPPORTED_TIMEFRAMES, MarketDataClient
from signalgen.market_data.coingecko import CoinGeckoClient
from signalgen.market_data.demo import generate_demo_candles
from signalgen.market_data.news import NewsClient
from signalgen.market_data.symbols import SYMBOL_MAP, normalize_trading_symbol

__all__ = [
    "SUPPORTED_TIMEFRAMES",
    "SYMBOL_MAP",
    "CatalystService",
    "CoinGeckoClient",
    "MarketDataClient",
    "NewsClient",
    "TTLCache",
    "generate_demo_candles",
    "normalize_trading_symbol",
]
