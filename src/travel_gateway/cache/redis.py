"""Redis cache backend implementation."""

import json
import logging
from datetime import datetime, timezone
from typing import Any

from travel_gateway.cache.base import CacheBackend

logger = logging.getLogger(__name__)


class RedisCache(CacheBackend):
    """
    Redis cache backend for sharing results across processes.

    Expiration is delegated to Redis (millisecond precision), so a read
    never observes an entry past its TTL. Any Redis error degrades to a
    cache miss; it is logged and never surfaced to callers.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        default_ttl_seconds: float = 300,
        prefix: str = "travel-gateway:",
        max_connections: int = 10,
        socket_timeout: float = 5.0,
        socket_connect_timeout: float = 5.0,
    ) -> None:
        """
        Initialize Redis cache.

        Args:
            url: Redis connection URL
            default_ttl_seconds: Default TTL for cache entries
            prefix: Key prefix for namespacing
            max_connections: Maximum connections in pool
            socket_timeout: Socket timeout in seconds
            socket_connect_timeout: Connection timeout in seconds
        """
        super().__init__(default_ttl_seconds)
        self._url = url
        self._prefix = prefix
        self._max_connections = max_connections
        self._socket_timeout = socket_timeout
        self._socket_connect_timeout = socket_connect_timeout
        self._client: Any = None
        self._connected = False

    @property
    def name(self) -> str:
        return "redis"

    @property
    def is_connected(self) -> bool:
        return self._connected

    def _get_key(self, key: str) -> str:
        """Get prefixed key."""
        return f"{self._prefix}{key}"

    def _strip_key(self, key: str | bytes) -> str:
        if isinstance(key, bytes):
            key = key.decode("utf-8")
        return key[len(self._prefix):] if key.startswith(self._prefix) else key

    @staticmethod
    def _escape_glob(text: str) -> str:
        """Escape glob metacharacters so pattern matches literally."""
        return "".join(f"\\{c}" if c in "*?[]\\" else c for c in text)

    def _serialize(self, value: Any) -> str:
        """
        Serialize value to JSON string.

        Raises:
            TypeError: If value would not come back unchanged (dates,
                tuples, sets and other non-JSON types)
        """
        data = json.dumps({
            "v": value,
            "t": datetime.now(timezone.utc).isoformat(),
        })
        if json.loads(data)["v"] != value:
            raise TypeError(f"{type(value).__name__} value does not survive JSON encoding")
        return data

    def _deserialize(self, data: str | bytes | None) -> Any | None:
        """Deserialize JSON string to value."""
        if data is None:
            return None
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        try:
            parsed = json.loads(data)
            return parsed.get("v")
        except (json.JSONDecodeError, TypeError, AttributeError):
            return None

    async def connect(self) -> bool:
        """
        Connect to Redis.

        Returns:
            True if connected successfully
        """
        if self._connected and self._client:
            return True

        try:
            import redis.asyncio as redis

            self._client = redis.from_url(
                self._url,
                max_connections=self._max_connections,
                socket_timeout=self._socket_timeout,
                socket_connect_timeout=self._socket_connect_timeout,
                decode_responses=False,
            )

            await self._client.ping()
            self._connected = True
            logger.info(f"Connected to Redis at {self._url}")
            return True

        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            self._connected = False
            return False

    async def _ensure_connected(self) -> bool:
        """Ensure we're connected to Redis."""
        if not self._connected:
            return await self.connect()
        return True

    async def get(self, key: str) -> Any | None:
        """Get a value from the cache."""
        value = None
        if await self._ensure_connected():
            try:
                data = await self._client.get(self._get_key(key))
                value = self._deserialize(data)
            except Exception as e:
                logger.error(f"Redis GET error for {key}: {e}")

        self._record_lookup(value is not None)
        return value

    async def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: float | None = None,
    ) -> bool:
        """Set a value in the cache."""
        if not await self._ensure_connected():
            return False

        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl

        try:
            serialized = self._serialize(value)
            if ttl and ttl > 0:
                await self._client.set(
                    self._get_key(key),
                    serialized,
                    px=max(1, int(ttl * 1000)),
                )
            else:
                await self._client.set(self._get_key(key), serialized)
            return True
        except Exception as e:
            logger.error(f"Redis SET error for {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        """Delete a value from the cache."""
        if not await self._ensure_connected():
            return False

        try:
            result = await self._client.delete(self._get_key(key))
            return result > 0
        except Exception as e:
            logger.error(f"Redis DELETE error for {key}: {e}")
            return False

    async def exists(self, key: str) -> bool:
        """Check if a key exists in the cache."""
        if not await self._ensure_connected():
            return False

        try:
            return await self._client.exists(self._get_key(key)) > 0
        except Exception as e:
            logger.error(f"Redis EXISTS error for {key}: {e}")
            return False

    async def _scan(self, pattern: str | None) -> list[bytes | str]:
        if pattern is None:
            search_pattern = f"{self._escape_glob(self._prefix)}*"
        else:
            search_pattern = (
                f"{self._escape_glob(self._prefix)}*{self._escape_glob(pattern)}*"
            )

        found = []
        async for key in self._client.scan_iter(match=search_pattern):
            found.append(key)
        return found

    async def keys(self) -> list[str]:
        """List keys stored under our prefix."""
        if not await self._ensure_connected():
            return []

        try:
            return [self._strip_key(k) for k in await self._scan(None)]
        except Exception as e:
            logger.error(f"Redis SCAN error: {e}")
            return []

    async def clear(self, pattern: str | None = None) -> int:
        """Clear cache entries whose key contains pattern."""
        if not await self._ensure_connected():
            return 0

        try:
            found = await self._scan(pattern)
            if pattern is not None:
                # SCAN matches the prefix too; keep only key-part matches
                found = [k for k in found if pattern in self._strip_key(k)]
            if found:
                await self._client.delete(*found)
            return len(found)
        except Exception as e:
            logger.error(f"Redis CLEAR error: {e}")
            return 0

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._client:
            try:
                await self._client.aclose()
            except Exception as e:
                logger.error(f"Error closing Redis connection: {e}")
            finally:
                self._client = None
                self._connected = False

    async def health_check(self) -> dict[str, Any]:
        """Return health status with Redis info."""
        if not await self._ensure_connected():
            return {
                "backend": self.name,
                "connected": False,
                "error": "Not connected to Redis",
            }

        try:
            info = await self._client.info("server")
            return {
                "backend": self.name,
                "connected": True,
                "redis_version": info.get("redis_version"),
                "total_keys": len(await self._scan(None)),
            }
        except Exception as e:
            return {
                "backend": self.name,
                "connected": self._connected,
                "error": str(e),
            }
