"""Rate limiter for outgoing routing requests.

Public OSRM servers ask clients to keep to about one request per second.
Each caller reserves the next free send slot for the host and sleeps until
it; a caller that is cancelled before its slot gives the slot back.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import ClassVar

logger = logging.getLogger(__name__)


class RateLimitWaitExceeded(TimeoutError):
    """The next free slot lies beyond the caller's wait budget."""


class ApiRateLimiter:
    """Spaces requests to one routing host by a minimum delay.

    Slots are handed out in call order. Callers run on one event loop, so
    reservations need no lock.
    """

    # Shared limiters by host
    _instances: ClassVar[dict[str, ApiRateLimiter]] = {}

    def __init__(self, host: str, min_delay_seconds: float = 1.0) -> None:
        """Initialize the rate limiter.

        Args:
            host: Routing host the limiter applies to (for logging).
            min_delay_seconds: Minimum delay between requests in seconds.
        """
        self.host = host
        self.min_delay_seconds = min_delay_seconds
        self._next_slot = 0.0

    @classmethod
    def for_host(cls, host: str, min_delay_seconds: float = 1.0) -> ApiRateLimiter:
        """Get or create the shared rate limiter for a host."""
        limiter = cls._instances.get(host)
        if limiter is None:
            limiter = cls._instances[host] = cls(host, min_delay_seconds)
            logger.info(f"Created rate limiter for {host} with {min_delay_seconds}s minimum delay")
        return limiter

    def next_wait_seconds(self) -> float:
        """How long a caller arriving now would wait for its slot."""
        return max(0.0, self._next_slot - time.monotonic())

    async def acquire(self, max_wait_seconds: float | None = None) -> None:
        """Wait for the next free slot.

        Args:
            max_wait_seconds: Refuse the slot instead of waiting longer than this.

        Raises:
            RateLimitWaitExceeded: The slot is further away than max_wait_seconds.
                No slot is reserved in that case.
        """
        now = time.monotonic()
        slot = max(now, self._next_slot)
        wait_time = slot - now
        if max_wait_seconds is not None and wait_time > max_wait_seconds:
            raise RateLimitWaitExceeded(
                f"{self.host}: next request slot in {wait_time:.2f}s exceeds {max_wait_seconds:g}s"
            )

        self._next_slot = slot + self.min_delay_seconds
        if wait_time <= 0:
            return

        logger.debug(f"{self.host}: waiting {wait_time:.2f}s before next request")
        try:
            await asyncio.sleep(wait_time)
        except asyncio.CancelledError:
            # Only the newest reservation can be returned without reordering others
            if self._next_slot == slot + self.min_delay_seconds:
                self._next_slot = slot
                logger.debug(f"{self.host}: cancelled request returned its slot")
            raise
