"""Domain layer - navigation models, errors and ports."""

from station_navigation.domain.models import (
    Coordinate,
    NavigationState,
    RoutePlan,
    Station,
    TravelMode,
)
from station_navigation.domain.ports import (
    MapPresenter,
    PositionSource,
    RouteClient,
)

__all__ = [
    "Coordinate",
    "MapPresenter",
    "NavigationState",
    "PositionSource",
    "RouteClient",
    "RoutePlan",
    "Station",
    "TravelMode",
]
