"""
Token bucket limiter for outbound RPC and payment traffic.

Batches acquire one token per upstream call; the bucket refills
continuously at `rate` tokens per second up to `capacity`.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional

import structlog


logger = structlog.get_logger(__name__)


class TokenBucket:
    """Async token bucket shared across one batch run."""

    def __init__(
        self,
        rate: float,
        capacity: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if rate <= 0:
            raise ValueError("rate must be positive")
        if capacity < 1:
            raise ValueError("capacity must be at least 1")

        self.rate = rate
        self.capacity = capacity
        self._clock = clock
        self._sleep = sleep
        self._tokens = capacity
        self._updated_at = clock()
        self._lock = asyncio.Lock()
        self.total_acquired = 0
        self.total_wait_time = 0.0

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated_at)
        self._tokens = min(self.capacity, self._tokens + elapsed * self.rate)
        self._updated_at = now

    @property
    def available(self) -> float:
        self._refill()
        return self._tokens

    def try_acquire(self) -> bool:
        """Take a token if one is available right now."""
        self._refill()
        if self._tokens >= 1:
            self._tokens -= 1
            self.total_acquired += 1
            return True
        return False

    async def acquire(self) -> float:
        """
        Wait until a token is available and take it.

        Returns:
            Seconds spent waiting
        """
        waited = 0.0
        async with self._lock:
            while not self.try_acquire():
                delay = (1 - self._tokens) / self.rate
                await self._sleep(delay)
                waited += delay

        if waited:
            self.total_wait_time += waited
            logger.debug("Rate limiter delayed call", waited=round(waited, 3), rate=self.rate)
        return waited


def build_bucket(rate: Optional[float]) -> Optional[TokenBucket]:
    """Build a bucket, or None when limiting is disabled (rate <= 0)."""
    if not rate or rate <= 0:
        return None
    return TokenBucket(rate=rate)
