"""Domain models for station navigation."""

from station_navigation.domain.models.coordinate import Coordinate, PositionFix
from station_navigation.domain.models.error_details import ErrorDetails
from station_navigation.domain.models.navigation_state import (
    NavigationSnapshot,
    NavigationState,
)
from station_navigation.domain.models.route_plan import Progress, RoutePlan
from station_navigation.domain.models.station import Station
from station_navigation.domain.models.travel_mode import PermissionState, TravelMode

__all__ = [
    "Coordinate",
    "ErrorDetails",
    "NavigationSnapshot",
    "NavigationState",
    "PermissionState",
    "PositionFix",
    "Progress",
    "RoutePlan",
    "Station",
    "TravelMode",
]
