"""TTL-based response cache with single-flight fetch coalescing."""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional


@dataclass
class CacheEntry:
    """Cache entry with TTL."""

    key: str
    payload: Any
    fetched_at: float  # clock() reading at store time
    ttl_seconds: float

    def is_expired(self, now: float) -> bool:
        """Check if cache entry has expired at clock reading `now`."""
        return now - self.fetched_at >= self.ttl_seconds


class Cache:
    """
    In-memory TTL cache for provider responses.

    Constructed explicitly by its owner; the clock is injectable so tests can
    drive expiry without sleeping. `get_or_fetch` guarantees at most one
    in-flight fetch per key: concurrent callers on a miss wait for the first
    caller's result instead of issuing their own request.
    """

    def __init__(
        self,
        ttl_seconds: float = 15.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize empty cache.

        Args:
            ttl_seconds: Default time-to-live for stored entries
            clock: Monotonic clock returning seconds
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._store: dict[str, CacheEntry] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    def get(self, key: str) -> Optional[Any]:
        """
        Get cached value if exists and not expired.

        Args:
            key: Cache key

        Returns:
            Cached payload or None if miss/expired
        """
        entry = self._store.get(key)
        if entry is None:
            return None

        if entry.is_expired(self._clock()):
            del self._store[key]
            return None

        return entry.payload

    def set(self, key: str, payload: Any, ttl_seconds: float | None = None) -> None:
        """
        Store value in cache with TTL.

        Args:
            key: Cache key
            payload: Data to cache
            ttl_seconds: Time-to-live in seconds (defaults to the cache TTL)
        """
        self._store[key] = CacheEntry(
            key=key,
            payload=payload,
            fetched_at=self._clock(),
            ttl_seconds=self.ttl_seconds if ttl_seconds is None else ttl_seconds,
        )

    async def get_or_fetch(
        self,
        key: str,
        fetch: Callable[[], Awaitable[Any]],
    ) -> Any:
        """
        Return the cached value for key, fetching it once on a miss.

        Args:
            key: Cache key
            fetch: Coroutine factory producing the value on a miss

        Returns:
            Cached or freshly fetched payload

        Raises:
            Whatever `fetch` raises; failures are not cached
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        self.prune_expired()

        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                # Another caller may have filled the entry while we waited
                cached = self.get(key)
                if cached is not None:
                    return cached

                payload = await fetch()
                self.set(key, payload)
                return payload
        finally:
            self._release_lock(key)

    def _release_lock(self, key: str) -> None:
        # Drop the lock once no caller holds or awaits it
        remaining = self._lock_users[key] - 1
        if remaining:
            self._lock_users[key] = remaining
        else:
            del self._lock_users[key]
            del self._locks[key]

    def clear(self) -> None:
        """Clear all cache entries."""
        self._store.clear()

    def prune_expired(self) -> int:
        """
        Remove all expired entries.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired_keys = [
            key for key, entry in self._store.items() if entry.is_expired(now)
        ]
        for key in expired_keys:
            del self._store[key]
        return len(expired_keys)
