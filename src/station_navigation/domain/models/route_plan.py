"""Route plan and progress domain models."""

from dataclasses import dataclass

from station_navigation.domain.models.coordinate import Coordinate
from station_navigation.domain.models.travel_mode import TravelMode


@dataclass(frozen=True)
class RoutePlan:
    """Result of a routing request.

    Plans are never mutated; every planning call produces a new one.
    """

    origin: Coordinate
    destination: Coordinate
    mode: TravelMode
    geometry: tuple[Coordinate, ...]
    distance_meters: float
    duration_seconds: float

    def is_valid_for(self, destination: Coordinate, mode: TravelMode) -> bool:
        """Check whether this plan was computed for the given destination and mode."""
        return self.destination == destination and self.mode == mode


@dataclass(frozen=True)
class Progress:
    """Remaining distance/duration along the routed path."""

    remaining_distance_meters: float
    remaining_duration_seconds: float
    has_arrived: bool
    geometry: tuple[Coordinate, ...] = ()
