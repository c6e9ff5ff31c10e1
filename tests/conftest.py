"""Pytest configuration and fixtures."""

from collections.abc import Callable

import pytest

from travel_gateway.cache.memory import InMemoryCache
from travel_gateway.config import Settings
from travel_gateway.gateway import CachedExecutor
from travel_gateway.limiter import ConcurrencyLimiter
from travel_gateway.retry import RetryConfig, RetryPolicy


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeps() -> list[float]:
    """Delays requested by the retry policy, in order."""
    return []


@pytest.fixture
def fake_sleep(sleeps: list[float]) -> Callable:
    """Async sleep that records the delay instead of waiting."""

    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return _sleep


@pytest.fixture
def make_executor(clock: FakeClock, fake_sleep: Callable) -> Callable[..., CachedExecutor]:
    """Factory for executors wired to the fake clock and sleep."""

    def _make(
        limit: int = 5,
        max_retries: int = 3,
        ttl_seconds: float = 300,
        producer_timeout: float | None = None,
        should_retry: Callable[[Exception], bool] | None = None,
    ) -> CachedExecutor:
        return CachedExecutor(
            cache=InMemoryCache(default_ttl_seconds=ttl_seconds, clock=clock),
            limiter=ConcurrencyLimiter(limit),
            retry_policy=RetryPolicy(
                RetryConfig(max_retries=max_retries),
                sleep_func=fake_sleep,
                should_retry=should_retry,
            ),
            producer_timeout=producer_timeout,
        )

    return _make


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        cache_backend="memory",
        cache_ttl_minutes=5,
        rate_limit_requests=2,
        max_retries=1,
        retry_base_delay_seconds=0,
        retry_max_delay_seconds=0,
        producer_timeout_seconds=None,
        amadeus_api_key="key",
        amadeus_api_secret="secret",
    )


@pytest.fixture
def domain_error_payload() -> dict:
    """Error payload in the shape the Amadeus API returns."""
    return {
        "errors": [
            {
                "status": 400,
                "code": 477,
                "title": "INVALID FORMAT",
                "detail": "departureDate must be in YYYY-MM-DD format",
            }
        ]
    }
