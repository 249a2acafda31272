"""
Client-side pacing for Strava API calls.

The enrichment pass calls acquire() before every detail request. The limiter decides
how long to wait; swapping implementations or tuning intervals is configuration only.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from stravasync.config import Settings

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[None]]


class RateLimiter(ABC):
    @abstractmethod
    async def acquire(self) -> None:
        """Block until the caller may issue one request."""


class NoopRateLimiter(RateLimiter):
    async def acquire(self) -> None:
        return None


class MinIntervalRateLimiter(RateLimiter):
    """Guarantees at least `interval` seconds between successive acquisitions. The first is immediate."""

    def __init__(self, interval: float, *, clock: Clock = time.monotonic, sleep: Sleeper = asyncio.sleep):
        if interval < 0:
            raise ValueError("interval must be >= 0")
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._last: float | None = None
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        async with self._lock:
            if self._last is not None:
                wait = self._last + self.interval - self._clock()
                if wait > 0:
                    await self._sleep(wait)
            self._last = self._clock()


class TokenBucketRateLimiter(RateLimiter):
    """Allows bursts of up to `capacity` requests, refilling at `rate` tokens per second."""

    def __init__(
        self,
        rate: float,
        capacity: int = 1,
        *,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ):
        if rate <= 0:
            raise ValueError("rate must be > 0")
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.rate = rate
        self.capacity = capacity
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._updated = clock()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = self._clock()
        self._tokens = min(self.capacity, self._tokens + (now - self._updated) * self.rate)
        self._updated = now

    async def acquire(self) -> None:
        async with self._lock:
            self._refill()
            if self._tokens < 1:
                await self._sleep((1 - self._tokens) / self.rate)
                self._refill()
                # Sleep may return marginally early on coarse clocks
                self._tokens = max(self._tokens, 1.0)
            self._tokens -= 1


def build_enrichment_limiter(settings: Settings) -> RateLimiter:
    """Limiter for the best-effort detail calls, from STRAVA_ENRICHMENT_* settings."""
    interval = max(0, settings.strava_enrichment_min_interval_ms) / 1000.0
    kind = (settings.strava_enrichment_limiter or "min_interval").strip().lower()
    if interval == 0:
        return NoopRateLimiter()
    if kind == "token_bucket":
        return TokenBucketRateLimiter(rate=1.0 / interval, capacity=max(1, settings.strava_enrichment_burst))
    if kind != "min_interval":
        logger.warning("Unknown STRAVA_ENRICHMENT_LIMITER=%r; using min_interval", kind)
    return MinIntervalRateLimiter(interval)
