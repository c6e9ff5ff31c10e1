"""Tests for the concurrency limiter."""

import asyncio

import pytest

from travel_gateway.limiter import ConcurrencyLimiter, LimiterStatus


async def _settle() -> None:
    """Let pending tasks run until they block."""
    for _ in range(10):
        await asyncio.sleep(0)


class TestConcurrencyLimiter:
    """Tests for ConcurrencyLimiter."""

    def test_rejects_invalid_limit(self) -> None:
        """Test a limit below one is rejected."""
        with pytest.raises(ValueError):
            ConcurrencyLimiter(0)

    def test_initial_status(self) -> None:
        """Test a fresh limiter is idle."""
        limiter = ConcurrencyLimiter(3)
        assert limiter.name == "semaphore"
        assert limiter.status() == LimiterStatus(limit=3, active=0, waiting=0, peak=0)
        assert limiter.status().to_dict()["limit"] == 3

    @pytest.mark.asyncio
    async def test_run_returns_result(self) -> None:
        """Test run passes the result through."""
        limiter = ConcurrencyLimiter(1)

        async def fn():
            return {"data": 42}

        assert await limiter.run(fn) == {"data": 42}
        assert limiter.active == 0

    @pytest.mark.asyncio
    async def test_run_propagates_exception_unchanged(self) -> None:
        """Test exceptions leave run untouched and free the slot."""
        limiter = ConcurrencyLimiter(1)
        error = RuntimeError("remote down")

        async def fn():
            raise error

        with pytest.raises(RuntimeError) as exc_info:
            await limiter.run(fn)

        assert exc_info.value is error
        assert limiter.active == 0

        async def ok():
            return "ok"

        assert await limiter.run(ok) == "ok"

    @pytest.mark.asyncio
    async def test_bounds_concurrent_operations(self) -> None:
        """Test the third of three slow operations waits for a free slot."""
        limiter = ConcurrencyLimiter(2)
        gates = [asyncio.Event() for _ in range(3)]
        started: list[int] = []

        def make(i: int):
            async def fn():
                started.append(i)
                await gates[i].wait()
                return i

            return fn

        tasks = [asyncio.create_task(limiter.run(make(i))) for i in range(3)]
        await _settle()

        assert started == [0, 1]
        assert limiter.active == 2
        assert limiter.waiting == 1

        gates[0].set()
        await _settle()

        assert started == [0, 1, 2]
        assert limiter.active == 2

        gates[1].set()
        gates[2].set()
        assert await asyncio.gather(*tasks) == [0, 1, 2]
        assert limiter.peak == 2
        assert limiter.active == 0

    @pytest.mark.asyncio
    async def test_burst_never_exceeds_limit(self) -> None:
        """Test a large burst never has more than the limit running."""
        limiter = ConcurrencyLimiter(3)
        running = 0
        max_running = 0

        async def fn():
            nonlocal running, max_running
            running += 1
            max_running = max(max_running, running)
            await asyncio.sleep(0.001)
            running -= 1

        await asyncio.gather(*(limiter.run(fn) for _ in range(25)))

        assert max_running == 3
        assert limiter.peak == 3

    @pytest.mark.asyncio
    async def test_waiters_admitted_in_fifo_order(self) -> None:
        """Test queued callers get slots in arrival order."""
        limiter = ConcurrencyLimiter(1)
        gate = asyncio.Event()
        order: list[int] = []

        async def hold():
            await gate.wait()

        holder = asyncio.create_task(limiter.run(hold))
        await _settle()

        tasks = []
        for i in range(4):
            async def job(i=i):
                order.append(i)

            tasks.append(asyncio.create_task(limiter.run(job)))
            await _settle()

        gate.set()
        await asyncio.gather(holder, *tasks)

        assert order == [0, 1, 2, 3]
