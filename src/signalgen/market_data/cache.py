"""Per-client in-memory cache with per-entry expiry and a size cap.

Each market-data client owns one instance, so cached upstream responses live
exactly as long as the client that fetched them. Async-safe via asyncio.Lock
for concurrent reads/writes from in-flight requests.

Keys are derived from request input (symbols, CoinGecko ids), so every write
purges expired entries and evicts the oldest ones past ``max_entries``.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any

from signalgen.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_ENTRIES = 400


class TTLCache:
    """Key/value cache where every entry expires ``ttl_seconds`` after it was set.

    Args:
        ttl_seconds: Default lifetime of an entry.
        max_entries: Entries kept at most; the oldest writes are evicted first.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._max_entries = max(1, max_entries)
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Any | None:
        """Return the cached value, or None when missing or expired."""
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    async def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        ttl = self._ttl if ttl_seconds is None else ttl_seconds
        async with self._lock:
            now = self._clock()
            # Re-inserting moves the key to the end, so dict order is write order.
            self._entries.pop(key, None)
            self._entries[key] = (value, now + ttl)
            self._purge_expired(now)
            evicted = 0
            while len(self._entries) > self._max_entries:
                del self._entries[next(iter(self._entries))]
                evicted += 1
            if evicted:
                logger.debug("cache_evicted", count=evicted, size=len(self._entries))

    def _purge_expired(self, now: float) -> None:
        expired = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
        for k in expired:
            del self._entries[k]

    async def get_or_load(self, key: str, loader: Callable[[], Awaitable[Any]]) -> Any:
        """Return the cached value or await ``loader`` and cache its result.

        Loader exceptions propagate and nothing is cached.
        """
        cached = await self.get(key)
        if cached is not None:
            logger.debug("cache_hit", key=key)
            return cached
        value = await loader()
        await self.set(key, value)
        return value

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
