"""Retry policy with exponential backoff."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from travel_gateway.config import Settings, settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]
FailureObserver = Callable[[Exception, int], None]


@dataclass(frozen=True)
class RetryConfig:
    """Backoff parameters for a retry policy."""

    max_retries: int = 3
    """Retries after the first attempt (max_retries + 1 attempts in total)."""

    base_delay: float = 1.0
    """Delay in seconds before the second attempt."""

    backoff_factor: float = 2.0
    """Multiplier applied to the delay after each failed attempt."""

    max_delay: float = 10.0
    """Upper bound for any single delay."""

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays cannot be negative")
        if self.backoff_factor < 1:
            raise ValueError("backoff_factor must be at least 1")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, attempt: int) -> float:
        """
        Delay to wait after the given failed attempt.

        Args:
            attempt: 1-based number of the attempt that just failed

        Returns:
            min(max_delay, base_delay * backoff_factor ** (attempt - 1))
        """
        if attempt < 1:
            raise ValueError(f"attempt must be >= 1, got {attempt}")
        return min(self.max_delay, self.base_delay * self.backoff_factor ** (attempt - 1))

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "RetryConfig":
        config = config or settings
        return cls(
            max_retries=config.max_retries,
            base_delay=config.retry_base_delay_seconds,
            backoff_factor=config.retry_backoff_factor,
            max_delay=config.retry_max_delay_seconds,
        )


class RetryPolicy:
    """
    Re-invokes an operation on failure, sleeping between attempts.

    Every exception is retried the same way unless a ``should_retry``
    predicate says otherwise. The sleep is a coroutine, so waiting never
    blocks other tasks on the loop.
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        sleep_func: SleepFunc | None = None,
        should_retry: Callable[[Exception], bool] | None = None,
    ) -> None:
        """
        Initialize the policy.

        Args:
            config: Backoff parameters (defaults if None)
            sleep_func: Injectable async sleep, for time control in tests
            should_retry: Predicate; returning False ends retrying early
        """
        self._config = config or RetryConfig()
        self._sleep = sleep_func or asyncio.sleep
        self._should_retry = should_retry

    @property
    def config(self) -> RetryConfig:
        return self._config

    async def execute(
        self,
        fn: Callable[[], Awaitable[T]],
        on_failed_attempt: FailureObserver | None = None,
    ) -> T:
        """
        Run fn until it succeeds or attempts run out.

        Args:
            fn: Zero-argument coroutine function
            on_failed_attempt: Called with (error, attempt_number) before
                each backoff sleep

        Returns:
            Result of the first successful attempt

        Raises:
            Exception: The error of the last attempt, unchanged
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return await fn()
            except Exception as e:
                if attempt >= self._config.max_attempts:
                    raise
                if self._should_retry is not None and not self._should_retry(e):
                    logger.debug(f"Not retrying after attempt {attempt}: {e}")
                    raise

                if on_failed_attempt is not None:
                    on_failed_attempt(e, attempt)
                await self._sleep(self._config.delay_for(attempt))
