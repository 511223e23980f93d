"""Tests for the routing rate limiter."""

import asyncio
import time

import pytest

from station_navigation.adapters.osrm_api import ApiRateLimiter, RateLimitWaitExceeded


class TestApiRateLimiter:
    """Tests for ApiRateLimiter class."""

    @pytest.fixture(autouse=True)
    def reset_instances(self) -> None:
        """Reset the shared instances before each test."""
        ApiRateLimiter._instances.clear()

    @pytest.mark.asyncio
    async def test_first_request_is_immediate(self) -> None:
        """Given a fresh limiter, when acquiring, then no wait happens."""
        limiter = ApiRateLimiter("osrm.test", min_delay_seconds=1.0)

        start = time.monotonic()
        await limiter.acquire()

        assert time.monotonic() - start < 0.05

    @pytest.mark.asyncio
    async def test_second_request_waits_for_delay(self) -> None:
        """Given a request was just sent, when acquiring again, then the minimum delay passes first."""
        delay = 0.2
        limiter = ApiRateLimiter("osrm.test", min_delay_seconds=delay)
        await limiter.acquire()

        start = time.monotonic()
        await limiter.acquire()

        assert time.monotonic() - start >= delay * 0.9

    @pytest.mark.asyncio
    async def test_request_after_delay_is_immediate(self) -> None:
        """Given the delay has passed, when acquiring, then no wait happens."""
        delay = 0.1
        limiter = ApiRateLimiter("osrm.test", min_delay_seconds=delay)
        await limiter.acquire()
        await asyncio.sleep(delay * 1.5)

        assert limiter.next_wait_seconds() == 0.0
        start = time.monotonic()
        await limiter.acquire()

        assert time.monotonic() - start < 0.05

    def test_same_host_returns_same_limiter(self) -> None:
        """Given one host, when asking twice, then the same limiter is shared."""
        limiter1 = ApiRateLimiter.for_host("router.project-osrm.org", 1.0)
        limiter2 = ApiRateLimiter.for_host("router.project-osrm.org", 1.0)

        assert limiter1 is limiter2

    def test_different_hosts_get_different_limiters(self) -> None:
        """Given two hosts, when asking for limiters, then each host gets its own."""
        limiter1 = ApiRateLimiter.for_host("router.project-osrm.org", 1.0)
        limiter2 = ApiRateLimiter.for_host("osrm.internal:5000", 1.0)

        assert limiter1 is not limiter2

    @pytest.mark.asyncio
    async def test_concurrent_callers_are_spaced(self) -> None:
        """Given three concurrent callers, when acquiring, then they are spaced by the delay."""
        delay = 0.1
        limiter = ApiRateLimiter.for_host("osrm.test", delay)

        start = time.monotonic()
        await asyncio.gather(*(limiter.acquire() for _ in range(3)))

        assert time.monotonic() - start >= 2 * delay * 0.9

    @pytest.mark.asyncio
    async def test_wait_beyond_budget_is_refused_at_once(self) -> None:
        """Given the next slot is further away than the budget, when acquiring, then it fails without waiting."""
        limiter = ApiRateLimiter("osrm.test", min_delay_seconds=5.0)
        await limiter.acquire()
        wait_before = limiter.next_wait_seconds()

        start = time.monotonic()
        with pytest.raises(RateLimitWaitExceeded):
            await limiter.acquire(max_wait_seconds=0.1)

        assert time.monotonic() - start < 0.05
        # No slot was reserved by the refused call
        assert limiter.next_wait_seconds() <= wait_before

    @pytest.mark.asyncio
    async def test_wait_within_budget_is_granted(self) -> None:
        """Given the next slot is inside the budget, when acquiring, then the caller waits for it."""
        limiter = ApiRateLimiter("osrm.test", min_delay_seconds=0.05)
        await limiter.acquire()

        await limiter.acquire(max_wait_seconds=1.0)

        assert limiter.next_wait_seconds() > 0.0

    @pytest.mark.asyncio
    async def test_cancelled_waiter_returns_its_slot(self) -> None:
        """Given a waiter is cancelled before its slot, when the next caller arrives, then it takes that slot."""
        delay = 0.5
        limiter = ApiRateLimiter("osrm.test", min_delay_seconds=delay)
        await limiter.acquire()

        waiter = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0)
        assert limiter.next_wait_seconds() > delay

        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        assert limiter.next_wait_seconds() <= delay

    @pytest.mark.asyncio
    async def test_cancelled_waiter_keeps_later_reservations(self) -> None:
        """Given a later caller reserved after a waiter, when the waiter is cancelled, then the later slot stands."""
        delay = 0.5
        limiter = ApiRateLimiter("osrm.test", min_delay_seconds=delay)
        await limiter.acquire()

        first = asyncio.create_task(limiter.acquire())
        second = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0)

        first.cancel()
        await asyncio.gather(first, return_exceptions=True)

        assert limiter.next_wait_seconds() > 2 * delay * 0.9
        second.cancel()
        await asyncio.gather(second, return_exceptions=True)
