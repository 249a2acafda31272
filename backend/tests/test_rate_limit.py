"""Unit tests for the enrichment rate limiters (fake clock, no real sleeping)."""

import pytest

from stravasync.config import Settings
from stravasync.core.rate_limit import (
    MinIntervalRateLimiter,
    NoopRateLimiter,
    TokenBucketRateLimiter,
    build_enrichment_limiter,
)


class FakeClock:
    def __init__(self):
        self.now = 1000.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(round(seconds, 6))
        self.now += seconds


@pytest.mark.asyncio
async def test_min_interval_first_call_is_immediate_then_waits():
    clock = FakeClock()
    limiter = MinIntervalRateLimiter(0.1, clock=clock, sleep=clock.sleep)
    await limiter.acquire()
    assert clock.sleeps == []
    await limiter.acquire()
    await limiter.acquire()
    assert clock.sleeps == [0.1, 0.1]


@pytest.mark.asyncio
async def test_min_interval_does_not_wait_when_caller_was_slow():
    clock = FakeClock()
    limiter = MinIntervalRateLimiter(0.1, clock=clock, sleep=clock.sleep)
    await limiter.acquire()
    clock.now += 0.5  # a slow detail request
    await limiter.acquire()
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_token_bucket_allows_burst_then_paces():
    clock = FakeClock()
    limiter = TokenBucketRateLimiter(rate=10.0, capacity=3, clock=clock, sleep=clock.sleep)
    for _ in range(3):
        await limiter.acquire()
    assert clock.sleeps == []
    await limiter.acquire()
    assert clock.sleeps == [0.1]


def test_invalid_limiter_arguments():
    with pytest.raises(ValueError):
        MinIntervalRateLimiter(-1)
    with pytest.raises(ValueError):
        TokenBucketRateLimiter(rate=0)
    with pytest.raises(ValueError):
        TokenBucketRateLimiter(rate=1, capacity=0)


def test_build_enrichment_limiter_from_settings():
    default = build_enrichment_limiter(Settings(_env_file=None))
    assert isinstance(default, MinIntervalRateLimiter)
    assert default.interval == pytest.approx(0.1)

    bucket = build_enrichment_limiter(
        Settings(_env_file=None, strava_enrichment_limiter="token_bucket", strava_enrichment_burst=5)
    )
    assert isinstance(bucket, TokenBucketRateLimiter)
    assert bucket.capacity == 5
    assert bucket.rate == pytest.approx(10.0)

    off = build_enrichment_limiter(Settings(_env_file=None, strava_enrichment_min_interval_ms=0))
    assert isinstance(off, NoopRateLimiter)
