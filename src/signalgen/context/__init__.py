"""Context normalizers: provider payloads into FuturesContext and CatalystWatch."""

from signalgen.context.catalyst import build_catalyst_watch, parse_trending, sentiment_label
from signalgen.context.futures import normalize_futures_context

__all__ = [
    "build_catalyst_watch",
    "normalize_futures_context",
    "parse_trending",
    "sentiment_label",
]
