"""FIFO request queue enforcing a requests-per-minute ceiling (async).

Outbound Spoonacular calls share one queue so search and detail fan-out
together stay under the plan's rate limit. Requests are dispatched one at a
time in arrival order; each dispatch waits until ``60 / requests_per_minute``
seconds have passed since the previous dispatch. Bursts are delayed, never
dropped.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional, TypeVar

from recipe_engine.utils.logger import logger

T = TypeVar("T")


class RateLimitedQueue:
    """Serialize awaitable requests at a fixed minimum interval.

    The clock and sleep functions are injectable so tests can run on a fake
    timeline.
    """

    def __init__(
        self,
        requests_per_minute: int,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the queue.

        Args:
            requests_per_minute: Dispatch ceiling. Must be positive.
            clock: Monotonic time source in seconds.
            sleep: Coroutine function used to wait.

        Raises:
            ValueError: If requests_per_minute is not positive.
        """
        if requests_per_minute <= 0:
            raise ValueError(f"requests_per_minute must be positive, got: {requests_per_minute}")

        self.requests_per_minute = requests_per_minute
        self.min_interval = 60.0 / requests_per_minute
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_dispatch: Optional[float] = None

    @classmethod
    def create(cls, requests_per_minute: int) -> "RateLimitedQueue":
        return cls(requests_per_minute)

    def reset(self) -> None:
        """Forget the last dispatch time and start a fresh queue."""
        self._lock = asyncio.Lock()
        self._last_dispatch = None

    async def submit(self, request: Callable[[], Awaitable[T]]) -> T:
        """Run ``request()`` once its turn comes and the interval has elapsed.

        Args:
            request: Zero-argument callable returning an awaitable.

        Returns:
            Whatever the request returns. Exceptions propagate to the caller
            and do not block later requests.
        """
        # asyncio.Lock wakes waiters in acquisition order, which gives FIFO dispatch
        async with self._lock:
            if self._last_dispatch is not None:
                delay = self.min_interval - (self._clock() - self._last_dispatch)
                if delay > 0:
                    logger.debug(f"Rate limit: waiting {delay:.2f}s before next request")
                    await self._sleep(delay)
            self._last_dispatch = self._clock()
            return await request()
