"""
Cache module for remote call results.

Provides pluggable cache backends (in-memory and Redis) with
per-entry expiration.
"""

from travel_gateway.cache.base import CacheBackend, CacheEntry, CacheStats
from travel_gateway.cache.memory import InMemoryCache
from travel_gateway.cache.redis import RedisCache
from travel_gateway.cache.factory import create_cache, initialize_cache

__all__ = [
    "CacheBackend",
    "CacheEntry",
    "CacheStats",
    "InMemoryCache",
    "RedisCache",
    "create_cache",
    "initialize_cache",
]
