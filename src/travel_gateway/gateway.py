"""
Cached execution of remote provider calls.

:class:`CachedExecutor` is the single entry point tool handlers go through:
a cache lookup, then (on a miss) the producer runs inside a concurrency
slot under the retry policy, and successful results are written back.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from travel_gateway.cache.base import CacheBackend, CacheStats
from travel_gateway.cache.factory import create_cache, initialize_cache
from travel_gateway.config import Settings, settings
from travel_gateway.errors import (
    ClassifiedFailure,
    FailureKind,
    classify,
    find_payload_error,
)
from travel_gateway.limiter import ConcurrencyLimiter
from travel_gateway.retry import RetryConfig, RetryPolicy

logger = logging.getLogger(__name__)

Producer = Callable[[], Awaitable[Any]]


class CachedExecutor:
    """Cache, concurrency bound and retry around remote producers."""

    def __init__(
        self,
        cache: CacheBackend,
        limiter: ConcurrencyLimiter,
        retry_policy: RetryPolicy,
        ttl_seconds: float | None = None,
        producer_timeout: float | None = None,
    ) -> None:
        """
        Initialize the executor.

        Args:
            cache: Store for successful results
            limiter: Bounds producers in flight
            retry_policy: Backoff policy for failed attempts
            ttl_seconds: TTL for new entries (cache default if None)
            producer_timeout: Per-attempt deadline in seconds (None = none)
        """
        self._cache = cache
        self._limiter = limiter
        self._retry = retry_policy
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError(f"TTL must be positive, got {ttl_seconds}")
        self._ttl_seconds = ttl_seconds
        self._producer_timeout = producer_timeout or None

    @property
    def cache(self) -> CacheBackend:
        return self._cache

    @property
    def limiter(self) -> ConcurrencyLimiter:
        return self._limiter

    @property
    def ttl_seconds(self) -> float:
        if self._ttl_seconds is None:
            return self._cache.default_ttl
        return self._ttl_seconds

    async def _run_producer(self, producer: Producer) -> Any:
        if self._producer_timeout is None:
            return await producer()
        return await asyncio.wait_for(producer(), timeout=self._producer_timeout)

    async def _attempt(self, producer: Producer) -> Any:
        """One limited producer invocation; failures leave classified."""
        try:
            result = await self._limiter.run(lambda: self._run_producer(producer))
        except Exception as e:
            failure = classify(e)
            if failure is e:
                raise
            raise failure from e

        failure = find_payload_error(result)
        if failure is not None:
            raise failure
        return result

    async def fetch(self, key: str, producer: Producer) -> Any:
        """
        Return the cached value for key, or compute it with producer.

        Args:
            key: Request fingerprint
            producer: Zero-argument coroutine function doing the remote call

        Returns:
            The cached or freshly produced value

        Raises:
            ClassifiedFailure: The last attempt's failure once retries run out
        """
        cached = await self._cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit for {key}")
            return cached

        logger.info(f"Cache miss for {key} - fetching from API")

        attempts = 0

        async def attempt() -> Any:
            nonlocal attempts
            attempts += 1
            return await self._attempt(producer)

        def on_failed_attempt(error: Exception, attempt_number: int) -> None:
            logger.warning(
                f"Retrying {key} due to: {error} (attempt {attempt_number})"
            )

        try:
            result = await self._retry.execute(attempt, on_failed_attempt)
        except ClassifiedFailure as failure:
            failure.attempts = attempts
            logger.error(
                f"Fetching {key} failed after {attempts} attempt(s): "
                f"[{failure.kind.value}] {failure.message}"
            )
            raise

        await self._cache.set(key, result, self._ttl_seconds)
        logger.debug(f"Cached result for {key}")
        return result

    async def get_stats(self) -> CacheStats:
        """Get key count and hit/miss counters of the cache."""
        return await self._cache.stats()

    async def clear(self, pattern: str | None = None) -> int:
        """
        Invalidate cached results.

        Args:
            pattern: Substring of keys to drop, None = everything

        Returns:
            Number of entries removed
        """
        count = await self._cache.clear(pattern)
        if pattern:
            logger.info(f"Cleared {count} cache entries matching pattern: {pattern}")
        else:
            logger.info("Cleared all cache entries")
        return count

    def set_ttl(self, seconds: float) -> None:
        """Set the TTL for future writes; stored entries keep theirs."""
        if seconds <= 0:
            raise ValueError(f"TTL must be positive, got {seconds}")
        self._ttl_seconds = seconds
        logger.info(f"Cache TTL set to {seconds} seconds")

    async def health_check(self) -> dict[str, Any]:
        return {
            "cache": await self._cache.health_check(),
            "limiter": self._limiter.status().to_dict(),
        }

    async def close(self) -> None:
        await self._cache.close()


def _retry_predicate(config: Settings) -> Callable[[Exception], bool] | None:
    if config.retry_domain_errors:
        return None

    def should_retry(error: Exception) -> bool:
        return not (
            isinstance(error, ClassifiedFailure)
            and error.kind is FailureKind.DOMAIN_ERROR
        )

    return should_retry


def build_executor(
    cache: CacheBackend,
    config: Settings | None = None,
) -> CachedExecutor:
    """
    Assemble an executor around an existing cache from settings.

    Args:
        cache: Cache backend to store results in
        config: Settings (module settings if None)

    Returns:
        CachedExecutor
    """
    config = config or settings
    return CachedExecutor(
        cache=cache,
        limiter=ConcurrencyLimiter(config.rate_limit_requests),
        retry_policy=RetryPolicy(
            RetryConfig.from_settings(config),
            should_retry=_retry_predicate(config),
        ),
        ttl_seconds=config.cache_ttl_seconds,
        producer_timeout=config.producer_timeout_seconds,
    )


async def create_executor(config: Settings | None = None) -> CachedExecutor:
    """
    Create a ready executor from settings.

    Call once at startup and share the instance with every caller.
    """
    config = config or settings
    cache = await initialize_cache(create_cache(config=config))
    executor = build_executor(cache, config)
    logger.info(
        f"Executor ready: cache={cache.name}, "
        f"ttl={config.cache_ttl_seconds}s, "
        f"concurrency={config.rate_limit_requests}, "
        f"retries={config.max_retries}"
    )
    return executor
