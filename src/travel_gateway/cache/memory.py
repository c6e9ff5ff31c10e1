"""In-memory cache backend implementation."""

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

from travel_gateway.cache.base import CacheBackend, CacheEntry

logger = logging.getLogger(__name__)


class InMemoryCache(CacheBackend):
    """
    In-memory cache backend using a simple dictionary.

    Best for:
    - Single-process deployments
    - Development and testing

    Limitations:
    - Not shared across processes
    - Lost on restart
    """

    def __init__(
        self,
        default_ttl_seconds: float = 300,
        max_size: int | None = None,
        cleanup_interval_seconds: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize in-memory cache.

        Args:
            default_ttl_seconds: Default TTL for cache entries
            max_size: Maximum number of entries (None = unlimited)
            cleanup_interval_seconds: How often to clean expired entries
            clock: Monotonic time source, injectable for tests
        """
        super().__init__(default_ttl_seconds)
        self._store: dict[str, CacheEntry] = {}
        self._max_size = max_size
        self._cleanup_interval = cleanup_interval_seconds
        self._cleanup_task: asyncio.Task | None = None
        self._clock = clock
        self._lock = asyncio.Lock()
        self._connected = True

    @property
    def name(self) -> str:
        return "memory"

    @property
    def is_connected(self) -> bool:
        return self._connected

    def _live_entry(self, key: str) -> CacheEntry | None:
        """Return the entry for key, dropping it if expired (caller holds lock)."""
        entry = self._store.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._store[key]
            return None
        return entry

    async def get(self, key: str) -> Any | None:
        """Get a value from the cache."""
        async with self._lock:
            entry = self._live_entry(key)
            self._record_lookup(entry is not None)
            return entry.value if entry is not None else None

    async def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: float | None = None,
    ) -> bool:
        """Set a value in the cache."""
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl

        async with self._lock:
            if (
                self._max_size
                and key not in self._store
                and len(self._store) >= self._max_size
            ):
                self._evict_oldest()

            self._store[key] = CacheEntry(
                key=key,
                value=value,
                created_at=self._clock(),
                ttl_seconds=ttl,
            )
            return True

    async def delete(self, key: str) -> bool:
        """Delete a value from the cache."""
        async with self._lock:
            return self._store.pop(key, None) is not None

    async def exists(self, key: str) -> bool:
        """Check if a key exists in the cache."""
        async with self._lock:
            return self._live_entry(key) is not None

    async def keys(self) -> list[str]:
        """List keys of live entries."""
        async with self._lock:
            now = self._clock()
            return [k for k, v in self._store.items() if not v.is_expired(now)]

    async def clear(self, pattern: str | None = None) -> int:
        """Clear cache entries whose key contains pattern."""
        async with self._lock:
            if pattern is None:
                count = len(self._store)
                self._store.clear()
                return count

            keys_to_delete = [k for k in self._store if pattern in k]
            for key in keys_to_delete:
                del self._store[key]
            return len(keys_to_delete)

    async def close(self) -> None:
        """Close the cache and stop cleanup task."""
        self._connected = False
        if self._cleanup_task:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None
        self._store.clear()

    def _evict_oldest(self) -> None:
        """Evict the oldest entry (caller must hold lock)."""
        if not self._store:
            return

        oldest_key = min(
            self._store.keys(),
            key=lambda k: self._store[k].created_at
        )
        del self._store[oldest_key]

    async def cleanup_expired(self) -> int:
        """Remove all expired entries."""
        async with self._lock:
            now = self._clock()
            expired_keys = [
                k for k, v in self._store.items()
                if v.is_expired(now)
            ]
            for key in expired_keys:
                del self._store[key]

            if expired_keys:
                logger.debug(f"Cleaned up {len(expired_keys)} expired cache entries")

            return len(expired_keys)

    async def start_cleanup_task(self) -> None:
        """Start background task to periodically clean expired entries."""
        if self._cleanup_task is not None:
            return

        async def cleanup_loop():
            while self._connected:
                try:
                    await asyncio.sleep(self._cleanup_interval)
                    await self.cleanup_expired()
                except asyncio.CancelledError:
                    break
                except Exception as e:
                    logger.error(f"Cache cleanup error: {e}")

        self._cleanup_task = asyncio.create_task(cleanup_loop())

    async def health_check(self) -> dict[str, Any]:
        """Return health status with cache statistics."""
        async with self._lock:
            now = self._clock()
            total_entries = len(self._store)
            expired_entries = sum(1 for v in self._store.values() if v.is_expired(now))

        return {
            "backend": self.name,
            "connected": self.is_connected,
            "total_entries": total_entries,
            "expired_entries": expired_entries,
            "max_size": self._max_size,
        }

    def size(self) -> int:
        """Get current number of stored entries, expired ones included."""
        return len(self._store)
