"""Implementation of a rate limiter.

Controls the frequency of outgoing requests to stay under the design API's
rate limit. Uses a sliding window of admission timestamps: callers over the
limit are suspended until the oldest admission leaves the window, they are
never rejected.
"""

import asyncio
import logging
import time
from collections import deque
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Deque

from figlink.domain.models.common import RateLimitStats

logger = logging.getLogger(__name__)

DEFAULT_MAX_REQUESTS = 60          # Max 60 requests...
DEFAULT_TIME_WINDOW_SECONDS = 60.0  # ...per 60 seconds


class RateLimiter:
    """Sliding window rate limiter.

    Admissions are serialized through an ``asyncio.Lock``, which wakes
    waiters in FIFO order, so concurrent callers are admitted in arrival
    order. Only the waiting tasks are suspended.
    """

    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_seconds: float = DEFAULT_TIME_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initializes the rate limiter.

        Args:
            max_requests: Maximum number of admissions allowed in the window.
            window_seconds: The trailing window length in seconds.
            clock: Monotonic time source (seconds).
            sleep: Coroutine used to suspend the caller.
        """
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._sleep = sleep
        self.timestamps: Deque[float] = deque()
        self._lock = asyncio.Lock()
        logger.info(f"RateLimiter initialized: {max_requests} requests / {window_seconds} seconds")

    def _cleanup_timestamps(self) -> None:
        """Removes timestamps that have left the window."""
        cutoff = self._clock() - self.window_seconds
        while self.timestamps and self.timestamps[0] <= cutoff:
            self.timestamps.popleft()

    def get_wait_time(self) -> float:
        """Estimates how long the next admission would wait, without recording anything."""
        self._cleanup_timestamps()
        if len(self.timestamps) < self.max_requests:
            return 0.0
        oldest_timestamp = self.timestamps[0]
        return max(0.0, self.window_seconds - (self._clock() - oldest_timestamp))

    async def wait_if_needed(self) -> None:
        """Waits until a request is permitted, then records the admission."""
        async with self._lock:
            self._cleanup_timestamps()
            if len(self.timestamps) >= self.max_requests:
                oldest_timestamp = self.timestamps[0]
                wait_time = self.window_seconds - (self._clock() - oldest_timestamp)
                if wait_time > 0:
                    logger.info(f"Rate limit reached. Waiting {wait_time:.2f} seconds...")
                    await self._sleep(wait_time)
                    self._cleanup_timestamps()
            self.timestamps.append(self._clock())
            logger.debug(f"Rate limit admission granted ({len(self.timestamps)}/{self.max_requests} in window).")

    def get_stats(self) -> RateLimitStats:
        """Returns the current window usage."""
        self._cleanup_timestamps()
        return RateLimitStats(
            requests_in_window=len(self.timestamps),
            max_requests=self.max_requests,
            window_seconds=self.window_seconds,
            next_reset_time=datetime.now() + timedelta(seconds=self.window_seconds),
        )

    def reset(self) -> None:
        """Forgets all recorded admissions. Intended for test setup."""
        self.timestamps.clear()
        logger.debug("RateLimiter reset.")
