"""Abstract base class for cache backends."""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CacheEntry:
    """
    A cached value with its expiration metadata.

    Attributes:
        key: Cache key
        value: Cached result of a producer invocation
        created_at: Monotonic clock reading when the entry was written
        ttl_seconds: Time-to-live in seconds (None = no expiry)
    """

    key: str
    value: Any
    created_at: float
    ttl_seconds: float | None = None

    @property
    def expires_at(self) -> float | None:
        """Get expiration time on the same clock as created_at."""
        if self.ttl_seconds is None:
            return None
        return self.created_at + self.ttl_seconds

    def is_expired(self, now: float | None = None) -> bool:
        """Check if entry has expired at the given clock reading."""
        if self.expires_at is None:
            return False
        now = time.monotonic() if now is None else now
        return now >= self.expires_at

    def ttl_remaining(self, now: float | None = None) -> float | None:
        """Get remaining TTL in seconds, or None if no expiry."""
        if self.expires_at is None:
            return None
        now = time.monotonic() if now is None else now
        return max(0.0, self.expires_at - now)


@dataclass
class CacheStats:
    """Cache counters exposed for observability."""

    keys: int
    hits: int
    misses: int

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "keys": self.keys,
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": round(self.hit_rate, 4),
        }


class CacheBackend(ABC):
    """
    Abstract base class for cache backends.

    Implement this class to add new cache storage backends.
    A ``get`` must never return a value past its expiration.
    """

    def __init__(self, default_ttl_seconds: float) -> None:
        self._default_ttl = default_ttl_seconds
        self._hits = 0
        self._misses = 0

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Unique identifier for this backend.

        Returns:
            Backend name (e.g., 'memory', 'redis')
        """
        ...

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Check if the backend is connected and healthy."""
        ...

    @property
    def default_ttl(self) -> float:
        """TTL in seconds applied to writes that do not pass one."""
        return self._default_ttl

    def set_default_ttl(self, ttl_seconds: float) -> None:
        """
        Change the TTL used for future writes.

        Entries already stored keep their original expiration.
        """
        if ttl_seconds <= 0:
            raise ValueError(f"TTL must be positive, got {ttl_seconds}")
        self._default_ttl = ttl_seconds

    def _record_lookup(self, hit: bool) -> None:
        if hit:
            self._hits += 1
        else:
            self._misses += 1

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """
        Get a value from the cache.

        Args:
            key: Cache key

        Returns:
            Cached value, or None if not found/expired
        """
        ...

    @abstractmethod
    async def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: float | None = None,
    ) -> bool:
        """
        Set a value in the cache, replacing any previous entry.

        Args:
            key: Cache key
            value: Value to cache
            ttl_seconds: Time-to-live in seconds (None = use default)

        Returns:
            True if successful, False otherwise
        """
        ...

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a value from the cache; False if it was not present."""
        ...

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if a live (non-expired) entry exists for key."""
        ...

    @abstractmethod
    async def keys(self) -> list[str]:
        """List keys of all live entries."""
        ...

    @abstractmethod
    async def clear(self, pattern: str | None = None) -> int:
        """
        Clear cache entries.

        Args:
            pattern: Substring matched against stored keys,
                    None = clear all entries

        Returns:
            Number of entries cleared
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the cache connection."""
        ...

    async def stats(self) -> CacheStats:
        """Get key count and hit/miss counters."""
        return CacheStats(
            keys=len(await self.keys()),
            hits=self._hits,
            misses=self._misses,
        )

    async def health_check(self) -> dict[str, Any]:
        """
        Perform a health check on the cache backend.

        Returns:
            Dict with health status info
        """
        return {
            "backend": self.name,
            "connected": self.is_connected,
        }
