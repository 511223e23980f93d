"""Navigation state and snapshot domain models."""

from dataclasses import dataclass
from enum import Enum

from station_navigation.domain.models.coordinate import Coordinate
from station_navigation.domain.models.error_details import ErrorDetails
from station_navigation.domain.models.station import Station
from station_navigation.domain.models.travel_mode import TravelMode


class NavigationState(Enum):
    """States of a navigation session."""

    IDLE = "idle"
    PREVIEWING = "previewing"
    READY_TO_START = "ready_to_start"
    NAVIGATING = "navigating"
    ARRIVED = "arrived"
    STOPPED = "stopped"

    @property
    def is_terminal(self) -> bool:
        """Whether the session has finished its trip (arrived or stopped)."""
        return self in (NavigationState.ARRIVED, NavigationState.STOPPED)


@dataclass(frozen=True)
class NavigationSnapshot:
    """Read-only view of a session pushed to the map presenter."""

    state: NavigationState
    station: Station | None
    mode: TravelMode
    user_position: Coordinate | None
    destination: Coordinate | None
    route_geometry: tuple[Coordinate, ...]
    total_distance_meters: float | None
    total_duration_seconds: float | None
    remaining_distance_meters: float | None
    remaining_duration_seconds: float | None
    error: ErrorDetails | None = None
