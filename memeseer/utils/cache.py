"""Caller-owned TTL cache for scan results.

The scanner itself is stateless; front-ends that want to avoid re-scanning
the same token within a short window keep one of these next to it.
"""

import time
from collections.abc import Callable
from typing import Generic, TypeVar

from loguru import logger

from memeseer.models.analysis import TokenAnalysis
from memeseer.parsers.scanner import TokenScanner

V = TypeVar("V")

DEFAULT_SCAN_TTL_SEC = 300.0
DEFAULT_MAX_SIZE = 500  # prevents unbounded growth for long-running callers


class TTLCache(Generic[V]):
    """Key -> (value, expiry) store with lazy eviction on read.

    Bounded by ``max_size``: inserting a new key into a full cache drops
    expired entries first, then the entry expiring soonest.
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        max_size: int = DEFAULT_MAX_SIZE,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._max_size = max(max_size, 1)
        self._entries: dict[str, tuple[V, float]] = {}

    def get(self, key: str) -> V | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: V, ttl_seconds: float | None = None) -> None:
        ttl = self._ttl if ttl_seconds is None else ttl_seconds
        now = self._clock()
        if len(self._entries) >= self._max_size and key not in self._entries:
            expired = [k for k, (_, exp) in self._entries.items() if exp <= now]
            for k in expired:
                del self._entries[k]
            if len(self._entries) >= self._max_size:
                soonest = min(self._entries, key=lambda k: self._entries[k][1])
                del self._entries[soonest]
        self._entries[key] = (value, now + ttl)

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


async def cached_scan(
    scanner: TokenScanner,
    cache: TTLCache[TokenAnalysis],
    address: str,
) -> TokenAnalysis:
    """Return a fresh-enough cached analysis or scan and store it.

    Keys are lowercased so checksum and plain forms share one entry.
    Invalid addresses are never cached: scan() raises before storing.
    """
    key = address.lower()
    hit = cache.get(key)
    if hit is not None:
        logger.debug(f"[CACHE] hit for {address[:10]}")
        return hit

    analysis = await scanner.scan(address)
    cache.set(key, analysis)
    return analysis
