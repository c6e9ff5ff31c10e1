"""Cache factory for creating cache instances based on configuration."""

import logging
from typing import Any

from travel_gateway.cache.base import CacheBackend
from travel_gateway.cache.memory import InMemoryCache
from travel_gateway.cache.redis import RedisCache
from travel_gateway.config import Settings, settings

logger = logging.getLogger(__name__)


def create_cache(
    backend: str | None = None,
    config: Settings | None = None,
    **kwargs: Any,
) -> CacheBackend:
    """
    Create a cache backend instance.

    Args:
        backend: Backend type ("memory" or "redis"), defaults to config
        config: Settings to read defaults from (module settings if None)
        **kwargs: Additional arguments passed to the backend

    Returns:
        CacheBackend instance

    Raises:
        ValueError: If backend type is unknown
    """
    config = config or settings
    backend_type = backend or config.cache_backend
    ttl_seconds = kwargs.get("ttl_seconds", config.cache_ttl_seconds)

    if backend_type == "memory":
        return InMemoryCache(
            default_ttl_seconds=ttl_seconds,
            max_size=kwargs.get("max_size", config.cache_max_size),
            cleanup_interval_seconds=kwargs.get(
                "cleanup_interval", config.cache_cleanup_interval_seconds
            ),
        )

    elif backend_type == "redis":
        url = kwargs.get("url", config.redis_url)
        if not url:
            logger.warning(
                "Redis URL not configured, falling back to in-memory cache. "
                "Set REDIS_URL environment variable to enable Redis caching."
            )
            return InMemoryCache(default_ttl_seconds=ttl_seconds)

        return RedisCache(
            url=url,
            default_ttl_seconds=ttl_seconds,
            prefix=kwargs.get("prefix", config.redis_prefix),
            max_connections=kwargs.get("max_connections", 10),
        )

    else:
        raise ValueError(f"Unknown cache backend: {backend_type}")


async def initialize_cache(cache: CacheBackend) -> CacheBackend:
    """
    Establish connections and start housekeeping for a cache.

    A Redis backend that cannot be reached is replaced by an in-memory
    cache with the same TTL.

    Returns:
        The ready-to-use CacheBackend
    """
    if isinstance(cache, RedisCache):
        connected = await cache.connect()
        if not connected:
            logger.warning("Failed to connect to Redis, using fallback memory cache")
            cache = InMemoryCache(default_ttl_seconds=cache.default_ttl)

    if isinstance(cache, InMemoryCache):
        await cache.start_cleanup_task()

    logger.info(f"Initialized {cache.name} cache backend")
    return cache
