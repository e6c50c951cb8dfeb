"""Custom exceptions for the signal engine.

The scoring core never raises for missing indicator values (it degrades to
None/neutral instead). These exceptions cover the hard precondition on the
candle input and failures of the market-data collaborators.
"""


class SignalGenError(Exception):
    """Base exception for all signal engine errors."""


class InsufficientDataError(SignalGenError):
    """Raised when a signal is requested for an empty candle sequence."""


class ProviderError(SignalGenError):
    """Raised when a single upstream data provider fails or returns garbage."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class MarketDataUnavailable(SignalGenError):
    """Raised when every provider in a fallback chain has failed."""
