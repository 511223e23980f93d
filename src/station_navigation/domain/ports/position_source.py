"""Position source port."""

from collections.abc import Callable
from typing import Protocol

from station_navigation.domain.errors import PositionError
from station_navigation.domain.models.coordinate import Coordinate, PositionFix
from station_navigation.domain.models.travel_mode import PermissionState


class SubscriptionHandle(Protocol):
    """Handle for a continuous position stream."""

    @property
    def active(self) -> bool:
        """Whether fixes may still be delivered."""
        ...

    def cancel(self) -> None:
        """Stop delivery immediately. Calling it again is a no-op."""
        ...


class PositionSource(Protocol):
    """Port for the device geolocation sensor."""

    async def request_permission(self) -> PermissionState:
        """Ask for location access; resolves or fails within a bounded wait."""
        ...

    async def get_current_position(self) -> Coordinate:
        """Get a one-shot position fix."""
        ...

    def watch_position(
        self,
        on_update: Callable[[PositionFix], None],
        on_error: Callable[[PositionError], None],
    ) -> SubscriptionHandle:
        """Start a continuous stream of fixes delivered on the event loop."""
        ...
