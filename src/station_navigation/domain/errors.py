"""Navigation error taxonomy.

Sensor failures derive from PositionError, routing failures from RoutingError.
Every error can describe itself as an ErrorDetails for the presenter.
"""

from station_navigation.domain.models.error_details import ErrorDetails


class NavigationError(Exception):
    """Base class for all navigation errors."""

    kind = "navigation_error"
    retryable = True

    def __init__(self, reason: str, status_code: int | None = None) -> None:
        """Initialize with a human readable reason and optional HTTP status code."""
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code

    def to_error_details(self) -> ErrorDetails:
        """Describe this error for display."""
        return ErrorDetails(
            kind=self.kind,
            reason=self.reason,
            retryable=self.retryable,
            status_code=self.status_code,
        )


class PositionError(NavigationError):
    """Failure reported by the geolocation sensor."""

    kind = "position_error"


class PermissionDeniedError(PositionError):
    """The user or the OS refused access to the location sensor."""

    kind = "permission_denied"


class PositionUnavailableError(PositionError):
    """No position fix could be obtained."""

    kind = "position_unavailable"


class PositionTimeoutError(PositionError):
    """The sensor did not answer within the bounded wait."""

    kind = "position_timeout"


class RoutingError(NavigationError):
    """Failure reported by the routing service."""

    kind = "routing_error"


class NoRouteFoundError(RoutingError):
    """The routing service found no viable path for the travel mode."""

    kind = "no_route_found"
    retryable = False


class ServiceUnavailableError(RoutingError):
    """Network or service failure while planning a route."""

    kind = "service_unavailable"


class RouteTimeoutError(RoutingError):
    """No routing response arrived within the bounded interval."""

    kind = "route_timeout"


class InvalidTransitionError(NavigationError):
    """An operation was requested in a state that does not allow it."""

    kind = "invalid_transition"
    retryable = False
