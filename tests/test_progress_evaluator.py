"""Tests for progress evaluation."""

import pytest

from station_navigation.application import ARRIVAL_THRESHOLD_METERS, ProgressEvaluator
from station_navigation.domain.errors import RouteTimeoutError
from station_navigation.domain.models import Coordinate, TravelMode
from tests.test_navigation_session import ORIGIN, STATION, ScriptedRouteClient, make_plan


def test_default_threshold_is_fifty_meters() -> None:
    """Given no threshold, when creating an evaluator, then 50 m is used."""
    evaluator = ProgressEvaluator(ScriptedRouteClient([]))

    assert evaluator.arrival_threshold_meters == ARRIVAL_THRESHOLD_METERS == 50.0


@pytest.mark.parametrize(
    ("remaining", "expected"),
    [(0.0, True), (49.9, True), (50.0, False), (51.0, False), (950.0, False)],
)
def test_has_arrived_is_strictly_below_threshold(remaining: float, expected: bool) -> None:
    """Given a remaining distance, when checking arrival, then only values below the threshold count."""
    evaluator = ProgressEvaluator(ScriptedRouteClient([]))

    assert evaluator.has_arrived(remaining) is expected


@pytest.mark.parametrize("threshold", [0.0, -5.0])
def test_threshold_must_be_positive(threshold: float) -> None:
    """Given a non-positive threshold, when creating an evaluator, then a ValueError is raised."""
    with pytest.raises(ValueError, match="must be positive"):
        ProgressEvaluator(ScriptedRouteClient([]), arrival_threshold_meters=threshold)


@pytest.mark.asyncio
async def test_evaluate_replans_from_current_position() -> None:
    """Given an active plan, when evaluating, then the route is re-planned to the same destination and mode."""
    client = ScriptedRouteClient([(420.0, 75.0)])
    evaluator = ProgressEvaluator(client)
    plan = make_plan(ORIGIN, STATION.coordinate, TravelMode.WALKING, 950.0)
    current = Coordinate(latitude=-4.4390, longitude=15.2680)

    progress = await evaluator.evaluate(plan, current)

    assert client.calls == [(current, STATION.coordinate, TravelMode.WALKING)]
    assert progress.remaining_distance_meters == 420.0
    assert progress.remaining_duration_seconds == 75.0
    assert progress.has_arrived is False
    assert progress.geometry == (current, STATION.coordinate)


@pytest.mark.asyncio
async def test_evaluate_uses_routed_distance_for_arrival() -> None:
    """Given a custom threshold, when the routed distance falls below it, then arrival is reported."""
    evaluator = ProgressEvaluator(ScriptedRouteClient([80.0]), arrival_threshold_meters=100.0)
    plan = make_plan(ORIGIN, STATION.coordinate, TravelMode.DRIVING, 950.0)

    progress = await evaluator.evaluate(plan, STATION.coordinate)

    assert progress.has_arrived is True


@pytest.mark.asyncio
async def test_evaluate_propagates_routing_errors() -> None:
    """Given the routing service times out, when evaluating, then the error propagates."""
    evaluator = ProgressEvaluator(ScriptedRouteClient([RouteTimeoutError("timeout")]))
    plan = make_plan(ORIGIN, STATION.coordinate, TravelMode.DRIVING, 950.0)

    with pytest.raises(RouteTimeoutError):
        await evaluator.evaluate(plan, ORIGIN)
