"""FIFO concurrency limiter for outbound synthesis calls."""

import asyncio
import contextlib
from collections import deque
from collections.abc import Awaitable, Callable
from typing import TypeVar

T = TypeVar("T")


class ConcurrencyLimiter:
    """Semaphore admitting at most N tasks, queuing the rest in FIFO order.

    A finishing task hands its permit straight to the oldest waiter, so a task
    submitted later can never overtake one already queued.
    """

    def __init__(self, permits: int) -> None:
        """Initialize the limiter.

        Args:
            permits: Maximum number of tasks executing at once (>= 1)

        Raises:
            ValueError: If permits is below 1
        """
        if permits < 1:
            raise ValueError(f"permits must be at least 1, got {permits}")
        self.permits = permits
        self._available = permits
        self._waiters: deque[asyncio.Future[None]] = deque()
        self._active = 0

    @property
    def active(self) -> int:
        """Number of tasks currently holding a permit."""
        return self._active

    @property
    def waiting(self) -> int:
        """Number of tasks queued for a permit."""
        return sum(1 for waiter in self._waiters if not waiter.done())

    async def acquire(self, task: Callable[[], Awaitable[T]]) -> T:
        """Run task while holding a permit and return its result.

        The permit is released whether task succeeds, fails or is cancelled.
        """
        await self._take()
        self._active += 1
        try:
            return await task()
        finally:
            self._active -= 1
            self._give()

    async def _take(self) -> None:
        if self._available > 0 and not self._waiters:
            self._available -= 1
            return

        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # Permit was already handed over; pass it on.
                self._give()
            else:
                with contextlib.suppress(ValueError):
                    self._waiters.remove(waiter)
            raise

    def _give(self) -> None:
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return
        self._available += 1
