"""Tests for RateLimiter."""

import asyncio
import time

import pytest

from logscribe.core.rate_limiter import RateLimiter, DEFAULT_INTERVAL_SEC


class FakeTimer:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def clock(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        await asyncio.sleep(0)
        self.now += seconds


class TestRateLimiter:
    def test_default_interval(self):
        assert RateLimiter().interval == DEFAULT_INTERVAL_SEC == 2.0

    @pytest.mark.asyncio
    async def test_first_acquire_is_immediate(self):
        timer = FakeTimer()
        limiter = RateLimiter(2.0, clock=timer.clock, sleep=timer.sleep)

        await limiter.acquire()

        assert timer.sleeps == []
        assert limiter.pending == 0

    @pytest.mark.asyncio
    async def test_releases_in_arrival_order_spaced_by_interval(self):
        timer = FakeTimer()
        limiter = RateLimiter(2.0, clock=timer.clock, sleep=timer.sleep)
        released = []

        async def worker(name):
            await limiter.acquire()
            released.append((name, timer.now))

        await asyncio.gather(*(worker(n) for n in ("a", "b", "c", "d")))

        assert [name for name, _ in released] == ["a", "b", "c", "d"]
        times = [t for _, t in released]
        gaps = [later - earlier for earlier, later in zip(times, times[1:])]
        assert all(gap >= 2.0 for gap in gaps)

    @pytest.mark.asyncio
    async def test_no_wait_when_interval_already_elapsed(self):
        timer = FakeTimer()
        limiter = RateLimiter(2.0, clock=timer.clock, sleep=timer.sleep)

        await limiter.acquire()
        timer.now += 5.0
        await limiter.acquire()

        assert timer.sleeps == []

    @pytest.mark.asyncio
    async def test_partial_wait_for_remaining_interval(self):
        timer = FakeTimer()
        limiter = RateLimiter(2.0, clock=timer.clock, sleep=timer.sleep)

        await limiter.acquire()
        timer.now += 0.5
        await limiter.acquire()

        assert timer.sleeps == [pytest.approx(1.5)]

    @pytest.mark.asyncio
    async def test_real_clock_spacing(self):
        limiter = RateLimiter(0.05)
        stamps = []

        async def worker():
            await limiter.acquire()
            stamps.append(time.monotonic())

        await asyncio.gather(*(worker() for _ in range(3)))

        gaps = [later - earlier for earlier, later in zip(stamps, stamps[1:])]
        assert all(gap >= 0.04 for gap in gaps)
