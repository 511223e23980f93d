"""Route client port."""

from typing import Protocol

from station_navigation.domain.models.coordinate import Coordinate
from station_navigation.domain.models.route_plan import RoutePlan
from station_navigation.domain.models.travel_mode import TravelMode


class RouteClient(Protocol):
    """Port for the external routing service."""

    async def plan_route(
        self, origin: Coordinate, destination: Coordinate, mode: TravelMode
    ) -> RoutePlan:
        """Plan a route from origin to destination for the travel mode.

        Raises:
            NoRouteFoundError: The service reports no viable path.
            ServiceUnavailableError: Network or service failure.
            RouteTimeoutError: No response within the bounded interval.
        """
        ...
