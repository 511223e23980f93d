"""Sequence tagging for in-flight route requests."""

from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger(__name__)


class RequestSequencer:
    """Tags route requests with monotonically increasing tickets.

    A response is accepted only if its ticket is the latest issued and was
    issued after the last invalidation. Any response overtaken by a newer
    request is stale, whether or not the newer one has answered yet.
    """

    def __init__(self) -> None:
        """Initialize with no requests issued."""
        self._latest_issued = 0
        self._latest_accepted = 0
        self._floor = 0
        self._tasks: set[asyncio.Task] = set()

    @property
    def latest_issued(self) -> int:
        """Ticket of the most recently issued request."""
        return self._latest_issued

    @property
    def pending(self) -> int:
        """Number of tracked tasks that have not finished."""
        return sum(1 for task in self._tasks if not task.done())

    def issue(self) -> int:
        """Issue a new ticket."""
        self._latest_issued += 1
        return self._latest_issued

    def track(self, task: asyncio.Task) -> None:
        """Track a task serving route requests so it can be cancelled later."""
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def accept(self, ticket: int) -> bool:
        """Decide whether the response for a ticket may be applied.

        Args:
            ticket: Ticket the response was issued with.

        Returns:
            True if the response is current and was recorded as accepted,
            False if it is stale and must be discarded.
        """
        if (
            ticket <= self._floor
            or ticket != self._latest_issued
            or ticket <= self._latest_accepted
        ):
            logger.debug(
                f"Discarding stale response #{ticket} "
                f"(latest: {self._latest_issued}, floor: {self._floor})"
            )
            return False
        self._latest_accepted = ticket
        return True

    def invalidate(self) -> int:
        """Mark every ticket issued so far as stale and cancel tracked tasks.

        Returns:
            Number of tasks that were cancelled.
        """
        self._floor = self._latest_issued
        return self.cancel_all()

    def cancel_all(self) -> int:
        """Cancel every tracked task except the one currently running.

        Returns:
            Number of tasks that were cancelled.
        """
        current = asyncio.current_task() if _has_running_loop() else None
        cancelled = 0
        for task in list(self._tasks):
            if task is current:
                continue
            self._tasks.discard(task)
            if not task.done():
                task.cancel()
                cancelled += 1
        if cancelled:
            logger.debug(f"Cancelled {cancelled} in-flight route request(s)")
        return cancelled


def _has_running_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True
