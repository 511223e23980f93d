"""Position source that replays a recorded or simulated track."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta

from station_navigation.domain.errors import (
    PermissionDeniedError,
    PositionError,
    PositionUnavailableError,
)
from station_navigation.domain.models import Coordinate, PermissionState, PositionFix
from station_navigation.domain.ports.position_source import PositionSource

logger = logging.getLogger(__name__)


class ReplaySubscription:
    """Subscription handle for a replayed position stream."""

    def __init__(self) -> None:
        """Initialize an unattached handle."""
        self._task: asyncio.Task | None = None
        self._cancelled = False

    @property
    def active(self) -> bool:
        """Whether fixes may still be delivered."""
        return not self._cancelled and self._task is not None and not self._task.done()

    @property
    def cancelled(self) -> bool:
        """Whether cancel() was called."""
        return self._cancelled

    def attach(self, task: asyncio.Task) -> None:
        """Attach the task producing the stream."""
        self._task = task

    def cancel(self) -> None:
        """Stop delivery immediately. Idempotent."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()


class ReplayPositionSource(PositionSource):
    """Replays a finite sequence of fixes at a fixed interval.

    Used for simulations and demos, where no real sensor is available.
    """

    def __init__(
        self,
        fixes: Iterable[PositionFix],
        interval_seconds: float = 1.0,
        permission: PermissionState = PermissionState.GRANTED,
    ) -> None:
        """Initialize the replay.

        Args:
            fixes: Fixes to replay, in order.
            interval_seconds: Delay before each replayed fix.
            permission: Permission state the simulated device reports.
        """
        self._fixes = list(fixes)
        self._interval_seconds = interval_seconds
        self._permission = permission

    @classmethod
    def from_coordinates(
        cls,
        coordinates: Iterable[Coordinate],
        interval_seconds: float = 1.0,
        permission: PermissionState = PermissionState.GRANTED,
        accuracy_meters: float | None = 5.0,
    ) -> ReplayPositionSource:
        """Build a replay from bare coordinates, timestamping them one interval apart."""
        return cls(
            _timestamped(coordinates, interval_seconds, accuracy_meters),
            interval_seconds=interval_seconds,
            permission=permission,
        )

    def load_coordinates(
        self, coordinates: Iterable[Coordinate], accuracy_meters: float | None = 5.0
    ) -> None:
        """Replace the track replayed by subsequent watch_position calls."""
        self._fixes = _timestamped(coordinates, self._interval_seconds, accuracy_meters)

    async def request_permission(self) -> PermissionState:
        """Report the configured permission state."""
        return self._permission

    async def get_current_position(self) -> Coordinate:
        """Return the first fix of the replay."""
        if self._permission is PermissionState.DENIED:
            raise PermissionDeniedError("Location permission denied")
        if not self._fixes:
            raise PositionUnavailableError("No position available")
        return self._fixes[0].coordinate

    def watch_position(
        self,
        on_update: Callable[[PositionFix], None],
        on_error: Callable[[PositionError], None],
    ) -> ReplaySubscription:
        """Start replaying fixes on the running event loop."""
        subscription = ReplaySubscription()
        task = asyncio.create_task(
            self._replay(subscription, on_update, on_error), name="position-replay"
        )
        subscription.attach(task)
        return subscription

    async def _replay(
        self,
        subscription: ReplaySubscription,
        on_update: Callable[[PositionFix], None],
        on_error: Callable[[PositionError], None],
    ) -> None:
        if self._permission is PermissionState.DENIED:
            on_error(PermissionDeniedError("Location permission denied"))
            return

        logger.info(f"Replaying {len(self._fixes)} position fix(es)")
        for fix in self._fixes:
            await asyncio.sleep(self._interval_seconds)
            if subscription.cancelled:
                return
            on_update(fix)
        logger.info("Position replay finished")


def _timestamped(
    coordinates: Iterable[Coordinate], interval_seconds: float, accuracy_meters: float | None
) -> list[PositionFix]:
    start = datetime.now(UTC)
    return [
        PositionFix(
            coordinate=coordinate,
            timestamp=start + timedelta(seconds=index * interval_seconds),
            accuracy_meters=accuracy_meters,
        )
        for index, coordinate in enumerate(coordinates)
    ]
