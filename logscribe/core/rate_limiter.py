"""FIFO minimum-interval rate limiter for asyncio callers."""

import asyncio
import logging
import time
from collections import deque
from typing import Awaitable, Callable, Optional

logger = logging.getLogger("logscribe")

DEFAULT_INTERVAL_SEC = 2.0


class RateLimiter:
    """Releases waiters one at a time, at least `interval_sec` apart.

    Waiters queue in arrival order. A single drain task releases them;
    the `_processing` flag keeps a second drain from starting. The dispatch
    time is recorded when a waiter is released, not when its call finishes.
    """

    def __init__(
        self,
        interval_sec: float = DEFAULT_INTERVAL_SEC,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._interval = interval_sec
        self._clock = clock
        self._sleep = sleep
        self._queue: deque[asyncio.Future] = deque()
        self._processing = False
        self._last_dispatch: Optional[float] = None
        self._drain_task: Optional[asyncio.Task] = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def pending(self) -> int:
        return len(self._queue)

    async def acquire(self) -> None:
        """Wait until the caller may issue its throttled call."""
        loop = asyncio.get_running_loop()
        waiter = loop.create_future()
        self._queue.append(waiter)

        if not self._processing:
            self._processing = True
            self._drain_task = loop.create_task(self._drain())

        await waiter

    async def _drain(self) -> None:
        try:
            while self._queue:
                if self._last_dispatch is not None:
                    elapsed = self._clock() - self._last_dispatch
                    if elapsed < self._interval:
                        wait_time = self._interval - elapsed
                        logger.debug(f"Rate limiter: sleeping {wait_time:.2f}s")
                        await self._sleep(wait_time)

                waiter = self._queue.popleft()
                if waiter.done():
                    # Caller gave up while queued; its slot is not consumed.
                    continue

                self._last_dispatch = self._clock()
                waiter.set_result(None)
        finally:
            self._processing = False
