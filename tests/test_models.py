"""Tests for domain models and errors."""

from dataclasses import FrozenInstanceError

import pytest
from pydantic import ValidationError

from station_navigation.domain.errors import (
    InvalidTransitionError,
    NavigationError,
    NoRouteFoundError,
    PermissionDeniedError,
    PositionError,
    RouteTimeoutError,
    RoutingError,
    ServiceUnavailableError,
)
from station_navigation.domain.models import (
    Coordinate,
    ErrorDetails,
    NavigationState,
    RoutePlan,
    TravelMode,
)


def test_coordinate_creation() -> None:
    """Given valid degrees, when creating a Coordinate, then both fields are set."""
    coordinate = Coordinate(latitude=-4.4419, longitude=15.2663)

    assert coordinate.latitude == -4.4419
    assert coordinate.longitude == 15.2663
    assert str(coordinate) == "-4.44190,15.26630"


@pytest.mark.parametrize(
    ("latitude", "longitude"),
    [(90.1, 0.0), (-90.1, 0.0), (0.0, 180.5), (0.0, -181.0)],
)
def test_coordinate_rejects_out_of_range(latitude: float, longitude: float) -> None:
    """Given degrees outside WGS84, when creating a Coordinate, then a ValueError is raised."""
    with pytest.raises(ValueError, match="must be within"):
        Coordinate(latitude=latitude, longitude=longitude)


def test_coordinate_is_frozen() -> None:
    """Given a Coordinate, when trying to modify it, then raises FrozenInstanceError."""
    coordinate = Coordinate(latitude=1.0, longitude=2.0)

    with pytest.raises(FrozenInstanceError):
        coordinate.latitude = 3.0  # type: ignore[misc]


def test_coordinate_parse() -> None:
    """Given a 'lat,lon' string, when parsing, then a Coordinate is returned."""
    assert Coordinate.parse(" -4.4350 , 15.27 ") == Coordinate(latitude=-4.435, longitude=15.27)


@pytest.mark.parametrize("value", ["", "1.0", "1,2,3", "north,east", "91,0"])
def test_coordinate_parse_rejects_invalid(value: str) -> None:
    """Given a malformed string, when parsing, then a ValueError is raised."""
    with pytest.raises(ValueError):
        Coordinate.parse(value)


def test_travel_mode_labels() -> None:
    """Given each travel mode, when reading its label, then the display label is returned."""
    assert TravelMode.DRIVING.label == "Car"
    assert TravelMode.WALKING.label == "On foot"
    assert TravelMode("walking") is TravelMode.WALKING


def test_route_plan_validity() -> None:
    """Given a plan, when checking validity, then destination and mode must both match."""
    origin = Coordinate(latitude=-4.44, longitude=15.26)
    destination = Coordinate(latitude=-4.43, longitude=15.27)
    plan = RoutePlan(
        origin=origin,
        destination=destination,
        mode=TravelMode.DRIVING,
        geometry=(origin, destination),
        distance_meters=950.0,
        duration_seconds=180.0,
    )

    assert plan.is_valid_for(destination, TravelMode.DRIVING)
    assert not plan.is_valid_for(destination, TravelMode.WALKING)
    assert not plan.is_valid_for(origin, TravelMode.DRIVING)


@pytest.mark.parametrize(
    ("state", "terminal"),
    [
        (NavigationState.IDLE, False),
        (NavigationState.PREVIEWING, False),
        (NavigationState.READY_TO_START, False),
        (NavigationState.NAVIGATING, False),
        (NavigationState.ARRIVED, True),
        (NavigationState.STOPPED, True),
    ],
)
def test_terminal_states(state: NavigationState, terminal: bool) -> None:
    """Given a state, when checking is_terminal, then only arrived and stopped are terminal."""
    assert state.is_terminal is terminal


def test_error_hierarchy() -> None:
    """Given the error taxonomy, when checking subclasses, then sensor and routing errors are separate."""
    assert issubclass(PermissionDeniedError, PositionError)
    assert issubclass(NoRouteFoundError, RoutingError)
    assert issubclass(RouteTimeoutError, RoutingError)
    assert not issubclass(RoutingError, PositionError)
    assert issubclass(InvalidTransitionError, NavigationError)


def test_error_details_from_error() -> None:
    """Given a routing error with status, when describing it, then kind, reason and status are kept."""
    details = ServiceUnavailableError("Rate limit exceeded", status_code=429).to_error_details()

    assert details == ErrorDetails(
        kind="service_unavailable", reason="Rate limit exceeded", retryable=True, status_code=429
    )


def test_no_route_is_not_retryable() -> None:
    """Given a no-route error, when describing it, then it is marked non-retryable."""
    details = NoRouteFoundError("No route found").to_error_details()

    assert details.retryable is False
    assert details.status_code is None


def test_error_details_is_frozen() -> None:
    """Given ErrorDetails, when trying to modify it, then a ValidationError is raised."""
    details = ErrorDetails(kind="route_timeout", reason="timeout")

    with pytest.raises(ValidationError):
        details.reason = "changed"  # type: ignore[misc]
