"""Known trading pairs and symbol conversions.

Pairs are written in exchange-native form (``BTCUSDT``). ccxt works with
unified symbols, so perpetual pairs are converted to ``BTC/USDT:USDT``
before any exchange call.
"""

import re
from dataclasses import dataclass

DEFAULT_SYMBOL = "BTCUSDT"
QUOTE = "USDT"


@dataclass(frozen=True)
class SymbolInfo:
    name: str
    gecko_id: str
    keywords: tuple[str, ...]


# Static mapping from exchange-native pairs to display name, CoinGecko id and news keywords
SYMBOL_MAP: dict[str, SymbolInfo] = {
    "BTCUSDT": SymbolInfo("Bitcoin", "bitcoin", ("bitcoin", "btc")),
    "ETHUSDT": SymbolInfo("Ethereum", "ethereum", ("ethereum", "eth")),
    "SOLUSDT": SymbolInfo("Solana", "solana", ("solana", "sol")),
    "BNBUSDT": SymbolInfo("BNB", "binancecoin", ("bnb", "binance")),
    "XRPUSDT": SymbolInfo("Ripple", "ripple", ("xrp", "ripple")),
    "ADAUSDT": SymbolInfo("Cardano", "cardano", ("ada", "cardano")),
    "AVAXUSDT": SymbolInfo("Avalanche", "avalanche-2", ("avax", "avalanche")),
    "DOGEUSDT": SymbolInfo("Dogecoin", "dogecoin", ("doge", "dogecoin")),
}

_NON_ALNUM = re.compile(r"[^A-Z0-9]")


def normalize_trading_symbol(raw: str | None) -> str:
    """Uppercase, strip separators, and make sure the pair ends in USDT.

    ``"btc"``, ``"BTC/USDT"`` and ``"btc-usdt"`` all become ``"BTCUSDT"``.
    Empty input falls back to ``DEFAULT_SYMBOL``.
    """
    cleaned = _NON_ALNUM.sub("", (raw or "").upper())
    if not cleaned:
        return DEFAULT_SYMBOL
    return cleaned if cleaned.endswith(QUOTE) and cleaned != QUOTE else f"{cleaned}{QUOTE}"


def symbol_base(symbol: str) -> str:
    """``"BTCUSDT"`` -> ``"BTC"``."""
    return symbol[: -len(QUOTE)] if symbol.endswith(QUOTE) else symbol


def to_ccxt_symbol(symbol: str) -> str:
    """``"BTCUSDT"`` -> ``"BTC/USDT:USDT"`` (linear perpetual)."""
    return f"{symbol_base(symbol)}/{QUOTE}:{QUOTE}"


def lookup(symbol: str) -> SymbolInfo | None:
    return SYMBOL_MAP.get(symbol)


def keywords_for(symbol: str) -> tuple[str, ...]:
    info = SYMBOL_MAP.get(symbol)
    if info is not None:
        return info.keywords
    return (symbol_base(symbol).lower(),)
