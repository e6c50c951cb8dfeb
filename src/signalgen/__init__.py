"""Crypto confluence signal engine."""

__version__ = "0.1.0"
