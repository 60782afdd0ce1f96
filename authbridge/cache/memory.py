"""
In-memory TTL cache.

Default KeyedCache implementation, used for single-process deployments and in
tests. Thread-safe within one event loop using asyncio.Lock.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class MemoryCache:
    """
    In-memory key/value cache with per-entry expiry.

    Entries are stored together with an absolute expiry timestamp (or None
    for entries that never expire). Every write sweeps all expired entries,
    so keys that are never read again do not accumulate.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """
        Initialize the cache.

        Args:
            clock: Monotonic time source in seconds (injectable for tests)
        """
        self._cache: Dict[str, Tuple[Any, Optional[float]]] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """
        Store a value under key.

        Args:
            key: Cache key
            value: Value to store
            ttl_seconds: Time-to-live in seconds; 0 or less means no expiry
        """
        async with self._lock:
            now = self._clock()
            self._evict_expired(now)

            expires_at = now + ttl_seconds if ttl_seconds > 0 else None
            self._cache[key] = (value, expires_at)
            logger.debug(f"Set cache entry {key}", extra={"ttl_seconds": ttl_seconds})

    async def get(self, key: str) -> Optional[Any]:
        """
        Get a value if it exists and hasn't expired.

        Returns:
            Stored value, or None if absent or expired
        """
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            value, expires_at = entry
            if expires_at is not None and self._clock() >= expires_at:
                del self._cache[key]
                logger.debug(f"Removed expired cache entry {key}")
                return None

            return value

    async def remove(self, key: str) -> None:
        async with self._lock:
            if self._cache.pop(key, None) is not None:
                logger.debug(f"Removed cache entry {key}")

    async def purge_expired(self) -> int:
        """
        Drop every expired entry.

        Returns:
            Number of entries removed
        """
        async with self._lock:
            return self._evict_expired(self._clock())

    def _evict_expired(self, now: float) -> int:
        """Drop expired entries; caller must hold the lock."""
        expired_keys = [
            key
            for key, (_, expires_at) in self._cache.items()
            if expires_at is not None and now >= expires_at
        ]
        for key in expired_keys:
            del self._cache[key]

        if expired_keys:
            logger.debug(f"Purged {len(expired_keys)} expired cache entries")
        return len(expired_keys)

    def __len__(self) -> int:
        return len(self._cache)
