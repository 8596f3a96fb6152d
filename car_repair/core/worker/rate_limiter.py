"""
Sliding-window rate limiter for job starts.

Dependencies: asyncio, collections (stdlib)
System role: Throttles calls into the rate-limited vision model
"""

import asyncio
import time
from collections import deque
from typing import Awaitable, Callable


class SlidingWindowRateLimiter:
    """
    Allow at most `max_events` acquisitions in any `window_seconds` span.

    A window of 0 disables limiting. Waiters are served in arrival order.
    """

    def __init__(
        self,
        max_events: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_events < 1:
            raise ValueError("max_events must be at least 1")
        self._max_events = max_events
        self._window = window_seconds
        self._clock = clock
        self._sleep = sleep
        self._events: deque[float] = deque()
        self._lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self._window > 0

    async def acquire(self) -> float:
        """
        Wait until a start is allowed, then record it.

        Returns:
            float: Seconds spent waiting
        """
        if not self.enabled:
            return 0.0

        waited = 0.0
        async with self._lock:
            while True:
                now = self._clock()
                while self._events and now - self._events[0] >= self._window:
                    self._events.popleft()
                if len(self._events) < self._max_events:
                    self._events.append(now)
                    return waited
                delay = self._window - (now - self._events[0])
                await self._sleep(delay)
                waited += delay

    def refund(self) -> None:
        """Return the most recent start, e.g. when the queue turned out empty."""
        if self._events:
            self._events.pop()
