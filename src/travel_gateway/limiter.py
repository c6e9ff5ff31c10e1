"""
Concurrency limiting for calls against the remote provider.

Admission control only: at most ``limit`` operations run at once and
extra callers wait in FIFO order for a free slot.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class LimiterStatus:
    """Snapshot of limiter occupancy."""

    limit: int
    """Maximum concurrently running operations."""

    active: int
    """Operations currently holding a slot."""

    waiting: int
    """Operations queued for a slot."""

    peak: int
    """Highest number of simultaneously active operations seen."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "limit": self.limit,
            "active": self.active,
            "waiting": self.waiting,
            "peak": self.peak,
        }


class ConcurrencyLimiter:
    """
    Bounds the number of operations in flight.

    Backed by an asyncio.Semaphore, whose waiters are woken in the
    order they arrived.
    """

    def __init__(self, limit: int) -> None:
        """
        Initialize the limiter.

        Args:
            limit: Maximum concurrently running operations (>= 1)
        """
        if limit < 1:
            raise ValueError(f"Concurrency limit must be at least 1, got {limit}")
        self._limit = limit
        self._semaphore = asyncio.Semaphore(limit)
        self._active = 0
        self._waiting = 0
        self._peak = 0

    @property
    def name(self) -> str:
        return "semaphore"

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def active(self) -> int:
        return self._active

    @property
    def waiting(self) -> int:
        return self._waiting

    @property
    def peak(self) -> int:
        return self._peak

    async def run(self, fn: Callable[[], Awaitable[T]]) -> T:
        """
        Run fn once a slot is free.

        Args:
            fn: Zero-argument coroutine function

        Returns:
            Whatever fn returns; exceptions propagate unchanged
        """
        self._waiting += 1
        try:
            await self._semaphore.acquire()
        finally:
            self._waiting -= 1

        self._active += 1
        self._peak = max(self._peak, self._active)
        try:
            return await fn()
        finally:
            self._active -= 1
            self._semaphore.release()

    def status(self) -> LimiterStatus:
        return LimiterStatus(
            limit=self._limit,
            active=self._active,
            waiting=self._waiting,
            peak=self._peak,
        )
