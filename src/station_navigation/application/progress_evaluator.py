"""Progress evaluation against the routed path."""

import logging
from typing import TYPE_CHECKING

from station_navigation.domain.geo import haversine_distance
from station_navigation.domain.models import Coordinate, Progress, RoutePlan

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from station_navigation.domain.ports import RouteClient

ARRIVAL_THRESHOLD_METERS = 50.0


class ProgressEvaluator:
    """Computes remaining distance/duration by re-planning from the current position.

    Straight-line distance underestimates travel distance, so progress and
    arrival are always decided on the routed distance.
    """

    def __init__(
        self,
        route_client: "RouteClient",
        arrival_threshold_meters: float = ARRIVAL_THRESHOLD_METERS,
    ) -> None:
        """Initialize the evaluator.

        Args:
            route_client: Client used to re-plan the remaining route.
            arrival_threshold_meters: Remaining distance below which the
                traveler has arrived.
        """
        if arrival_threshold_meters <= 0:
            raise ValueError("arrival_threshold_meters must be positive")
        self._route_client = route_client
        self.arrival_threshold_meters = arrival_threshold_meters

    def has_arrived(self, remaining_distance_meters: float) -> bool:
        """Whether the remaining routed distance is below the arrival threshold."""
        return remaining_distance_meters < self.arrival_threshold_meters

    async def evaluate(self, plan: RoutePlan, current: Coordinate) -> Progress:
        """Re-plan from the current position and derive progress.

        Args:
            plan: The active route plan (supplies destination and mode).
            current: Latest known user position.

        Returns:
            Remaining distance/duration and the arrival decision.

        Raises:
            RoutingError: If re-planning fails.
        """
        remaining = await self._route_client.plan_route(current, plan.destination, plan.mode)
        logger.debug(
            f"Remaining {remaining.distance_meters:.0f} m / {remaining.duration_seconds:.0f} s "
            f"(straight line {haversine_distance(current, plan.destination):.0f} m)"
        )
        return Progress(
            remaining_distance_meters=remaining.distance_meters,
            remaining_duration_seconds=remaining.duration_seconds,
            has_arrived=self.has_arrived(remaining.distance_meters),
            geometry=remaining.geometry,
        )
