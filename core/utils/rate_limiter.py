"""
Async token bucket shared by every request a client sends
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class TokenBucketRateLimiter:
    """
    Token bucket for request pacing.

    The bucket starts full with ``capacity`` tokens and refills at
    ``rate_per_second``. Each ``acquire()`` takes one token, sleeping first if
    the bucket is empty. ``capacity`` is ``burst_size`` when positive,
    otherwise equal to the rate.

    Example:
        >>> limiter = TokenBucketRateLimiter(rate_per_second=3, burst_size=6)
        >>> await limiter.acquire()  # first 6 calls return immediately
    """

    def __init__(
        self,
        rate_per_second: float,
        burst_size: int = 0,
        *,
        time_fn: Callable[[], float] | None = None,
        sleep_func: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        if rate_per_second <= 0:
            raise ValueError(f"rate_per_second must be > 0, got {rate_per_second}")
        if burst_size < 0:
            raise ValueError(f"burst_size must be >= 0, got {burst_size}")

        self.rate_per_second = float(rate_per_second)
        self.capacity = float(burst_size) if burst_size > 0 else self.rate_per_second

        self._time = time_fn or time.monotonic
        self._sleep = sleep_func or asyncio.sleep

        self._tokens = self.capacity
        self._last_refill = self._time()
        self._lock = asyncio.Lock()

    @property
    def available_tokens(self) -> float:
        """Tokens left as of the last refill (no refill is performed)"""
        return self._tokens

    def _refill(self, now: float) -> None:
        elapsed = now - self._last_refill
        if elapsed <= 0:
            return
        self._tokens = min(self.capacity, self._tokens + elapsed * self.rate_per_second)
        self._last_refill = now

    async def acquire(self) -> None:
        """Block until a token is available, then take it."""
        while True:
            async with self._lock:
                self._refill(self._time())

                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    return

                wait_time = (1.0 - self._tokens) / self.rate_per_second

            logger.debug(f"Rate limit reached, waiting {wait_time:.3f}s")
            await self._sleep(wait_time)

    def __repr__(self) -> str:
        return (
            f"TokenBucketRateLimiter(rate_per_second={self.rate_per_second}, "
            f"capacity={self.capacity})"
        )
