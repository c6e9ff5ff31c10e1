"""Tests for the retry policy."""

import pytest

from travel_gateway.retry import RetryConfig, RetryPolicy


class FlakyOperation:
    """Fails a fixed number of times, then returns a value."""

    def __init__(self, failures: int, result: object = "ok") -> None:
        self.failures = failures
        self.result = result
        self.calls = 0
        self.errors: list[Exception] = []

    async def __call__(self) -> object:
        self.calls += 1
        if self.calls <= self.failures:
            error = ConnectionError(f"failure {self.calls}")
            self.errors.append(error)
            raise error
        return self.result


class TestRetryConfig:
    """Tests for RetryConfig."""

    def test_defaults(self) -> None:
        """Test default backoff parameters."""
        config = RetryConfig()
        assert config.max_retries == 3
        assert config.max_attempts == 4
        assert config.base_delay == 1.0
        assert config.backoff_factor == 2.0
        assert config.max_delay == 10.0

    def test_delay_grows_and_caps(self) -> None:
        """Test delays double from the base and stop at max_delay."""
        config = RetryConfig(max_retries=6)
        delays = [config.delay_for(n) for n in range(1, 7)]
        assert delays == [1.0, 2.0, 4.0, 8.0, 10.0, 10.0]

    def test_delay_rejects_attempt_zero(self) -> None:
        """Test attempts are numbered from one."""
        with pytest.raises(ValueError):
            RetryConfig().delay_for(0)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_retries": -1},
            {"base_delay": -1.0},
            {"max_delay": -0.5},
            {"backoff_factor": 0.5},
        ],
    )
    def test_invalid_values(self, kwargs: dict) -> None:
        """Test invalid parameters are rejected."""
        with pytest.raises(ValueError):
            RetryConfig(**kwargs)

    def test_from_settings(self, test_settings) -> None:
        """Test configuration is read from settings."""
        config = RetryConfig.from_settings(test_settings)
        assert config.max_retries == 1
        assert config.base_delay == 0
        assert config.backoff_factor == 2.0


class TestRetryPolicy:
    """Tests for RetryPolicy."""

    @pytest.mark.asyncio
    async def test_success_first_attempt(self, fake_sleep, sleeps) -> None:
        """Test no sleeping happens when the first attempt succeeds."""
        policy = RetryPolicy(sleep_func=fake_sleep)
        operation = FlakyOperation(failures=0, result=42)

        assert await policy.execute(operation) == 42
        assert operation.calls == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_success_after_failures(self, fake_sleep, sleeps) -> None:
        """Test the policy recovers from transient failures."""
        policy = RetryPolicy(RetryConfig(max_retries=3), sleep_func=fake_sleep)
        operation = FlakyOperation(failures=2, result=42)

        assert await policy.execute(operation) == 42
        assert operation.calls == 3
        assert sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_always_failing_runs_max_attempts(self, fake_sleep, sleeps) -> None:
        """Test an always-failing operation is called max_retries + 1 times."""
        policy = RetryPolicy(RetryConfig(max_retries=5), sleep_func=fake_sleep)
        operation = FlakyOperation(failures=100)

        with pytest.raises(ConnectionError) as exc_info:
            await policy.execute(operation)

        assert operation.calls == 6
        assert exc_info.value is operation.errors[-1]
        assert sleeps == sorted(sleeps)
        assert all(delay <= 10.0 for delay in sleeps)
        assert len(sleeps) == 5

    @pytest.mark.asyncio
    async def test_zero_retries(self, fake_sleep, sleeps) -> None:
        """Test max_retries=0 means a single attempt."""
        policy = RetryPolicy(RetryConfig(max_retries=0), sleep_func=fake_sleep)
        operation = FlakyOperation(failures=1)

        with pytest.raises(ConnectionError):
            await policy.execute(operation)

        assert operation.calls == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_observer_called_before_each_retry(self, fake_sleep) -> None:
        """Test the observer sees each non-final failure with its attempt number."""
        policy = RetryPolicy(RetryConfig(max_retries=2), sleep_func=fake_sleep)
        operation = FlakyOperation(failures=100)
        observed: list[tuple[str, int]] = []

        with pytest.raises(ConnectionError):
            await policy.execute(
                operation,
                on_failed_attempt=lambda err, n: observed.append((str(err), n)),
            )

        assert observed == [("failure 1", 1), ("failure 2", 2)]

    @pytest.mark.asyncio
    async def test_should_retry_short_circuits(self, fake_sleep, sleeps) -> None:
        """Test a predicate returning False stops after the first failure."""
        policy = RetryPolicy(
            RetryConfig(max_retries=3),
            sleep_func=fake_sleep,
            should_retry=lambda err: not isinstance(err, ConnectionError),
        )
        operation = FlakyOperation(failures=100)

        with pytest.raises(ConnectionError):
            await policy.execute(operation)

        assert operation.calls == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_default_sleep_is_asyncio(self) -> None:
        """Test the real sleep path with zero delays."""
        policy = RetryPolicy(RetryConfig(max_retries=1, base_delay=0, max_delay=0))
        operation = FlakyOperation(failures=1, result="done")

        assert await policy.execute(operation) == "done"
