"""
Test the token bucket with a fake clock.
"""

import pytest

from snakepill.utils.rate_limiter import TokenBucket, build_bucket
from tests.conftest import FakeClock


@pytest.mark.asyncio
async def test_acquire_spaces_calls_at_rate():
    clock = FakeClock()
    bucket = TokenBucket(rate=2.0, clock=clock, sleep=clock.sleep)

    waits = [await bucket.acquire() for _ in range(3)]

    assert waits == [0.0, 0.5, 0.5]
    assert clock.now == pytest.approx(1.0)
    assert bucket.total_acquired == 3
    assert bucket.total_wait_time == pytest.approx(1.0)


def test_try_acquire_and_refill():
    clock = FakeClock()
    bucket = TokenBucket(rate=5.0, capacity=2, clock=clock)

    assert bucket.try_acquire() is True
    assert bucket.try_acquire() is True
    assert bucket.try_acquire() is False

    clock.now += 0.2
    assert bucket.try_acquire() is True

    clock.now += 10
    assert bucket.available == 2


def test_invalid_parameters():
    with pytest.raises(ValueError):
        TokenBucket(rate=0)
    with pytest.raises(ValueError):
        TokenBucket(rate=1, capacity=0.5)


def test_build_bucket_disabled_for_zero_rate():
    assert build_bucket(0) is None
    assert build_bucket(None) is None
    assert build_bucket(3).rate == 3
