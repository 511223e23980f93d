"""OSRM route client adapter.

Uses the OSRM HTTP route service.
API Documentation: https://project-osrm.org/docs/v5.24.0/api/#route-service
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

import aiohttp

from station_navigation.adapters.osrm_api.rate_limiter import (
    ApiRateLimiter,
    RateLimitWaitExceeded,
)
from station_navigation.adapters.osrm_api.request_logger import log_api_request
from station_navigation.domain.errors import (
    NoRouteFoundError,
    RouteTimeoutError,
    ServiceUnavailableError,
)
from station_navigation.domain.models import Coordinate, RoutePlan, TravelMode
from station_navigation.domain.ports.route_client import RouteClient

if TYPE_CHECKING:
    from aiohttp import ClientResponse, ClientSession

logger = logging.getLogger(__name__)

DEFAULT_OSRM_BASE_URL = "https://router.project-osrm.org"

# OSRM codes meaning the service answered but found no path
NO_ROUTE_CODES = frozenset({"NoRoute", "NoSegment"})

# OSRM profile per travel mode
PROFILES = {
    TravelMode.DRIVING: "driving",
    TravelMode.WALKING: "walking",
}


def describe_http_status(status_code: int) -> str:
    """Map an HTTP status code to a human readable reason."""
    if status_code == 429:
        return "Rate limit exceeded"
    if status_code == 502:
        return "Bad gateway (server error)"
    if status_code == 503:
        return "Service unavailable"
    if status_code == 504:
        return "Gateway timeout"
    return f"HTTP {status_code}"


def format_coordinates(*coordinates: Coordinate) -> str:
    """Convert coordinates to the OSRM 'lon,lat;lon,lat' path segment."""
    return ";".join(f"{c.longitude},{c.latitude}" for c in coordinates)


class OsrmRouteClient(RouteClient):
    """Plans routes with an OSRM server."""

    def __init__(
        self,
        session: ClientSession,
        base_url: str = DEFAULT_OSRM_BASE_URL,
        timeout_seconds: float = 12.0,
        min_delay_seconds: float = 1.0,
        log_requests: bool = False,
    ) -> None:
        """Initialize the client.

        Args:
            session: Shared aiohttp session.
            base_url: OSRM server base URL.
            timeout_seconds: Bound for a single request, rate limiting wait included.
            min_delay_seconds: Minimum delay between requests to the host.
            log_requests: Log every outgoing request.
        """
        self._session = session
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._min_delay_seconds = min_delay_seconds
        self._log_requests = log_requests
        self._rate_limiter: ApiRateLimiter | None = None

    def _get_rate_limiter(self) -> ApiRateLimiter:
        """Get the shared rate limiter for the routing host."""
        if self._rate_limiter is None:
            host = urlsplit(self._base_url).netloc
            self._rate_limiter = ApiRateLimiter.for_host(host, self._min_delay_seconds)
        return self._rate_limiter

    def build_route_url(
        self, origin: Coordinate, destination: Coordinate, mode: TravelMode
    ) -> str:
        """Build the route service URL for two coordinates."""
        return (
            f"{self._base_url}/route/v1/{PROFILES[mode]}/"
            f"{format_coordinates(origin, destination)}"
        )

    async def plan_route(
        self, origin: Coordinate, destination: Coordinate, mode: TravelMode
    ) -> RoutePlan:
        """Plan a route from origin to destination.

        Raises:
            NoRouteFoundError: OSRM reports no route for the profile.
            ServiceUnavailableError: Network failure, HTTP error or malformed body.
            RouteTimeoutError: No response within timeout_seconds, counting the
                wait for a rate limiter slot.
        """
        url = self.build_route_url(origin, destination, mode)
        params = {"overview": "full", "geometries": "geojson"}

        rate_limiter = self._get_rate_limiter()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._timeout_seconds

        try:
            async with asyncio.timeout_at(deadline):
                await rate_limiter.acquire(max_wait_seconds=deadline - loop.time())
                if self._log_requests:
                    log_api_request("GET", url, params)
                async with self._session.get(url, params=params) as response:
                    data = await self._read_response(response)
        except RateLimitWaitExceeded as e:
            logger.warning(f"Routing request not sent: {e}")
            raise RouteTimeoutError(
                f"No routing slot free within {self._timeout_seconds:g}s"
            ) from e
        except TimeoutError as e:
            raise RouteTimeoutError(
                f"No routing response within {self._timeout_seconds:g}s"
            ) from e
        except aiohttp.ClientError as e:
            raise ServiceUnavailableError(f"Routing service unreachable: {e}") from e

        return self._parse_route(data, origin, destination, mode)

    async def _read_response(self, response: ClientResponse) -> dict[str, Any]:
        """Read the JSON body, mapping failures to routing errors."""
        try:
            data = await response.json(content_type=None)
        except ValueError:
            data = None

        if isinstance(data, dict) and data.get("code") in NO_ROUTE_CODES:
            raise NoRouteFoundError(data.get("message") or "No route found")

        if response.status != 200:
            body = await response.text()
            logger.error(f"OSRM returned status {response.status}: {body[:200]}")
            raise ServiceUnavailableError(
                describe_http_status(response.status), status_code=response.status
            )

        if not isinstance(data, dict):
            raise ServiceUnavailableError("Malformed routing response")
        return data

    @staticmethod
    def _parse_route(
        data: dict[str, Any], origin: Coordinate, destination: Coordinate, mode: TravelMode
    ) -> RoutePlan:
        """Normalize the first OSRM route into a RoutePlan."""
        code = data.get("code")
        if code != "Ok":
            raise ServiceUnavailableError(f"OSRM error: {data.get('message', code)}")

        routes = data.get("routes") or []
        if not routes:
            raise NoRouteFoundError("No route found")

        route = routes[0]
        try:
            geometry = tuple(
                Coordinate(latitude=float(lat), longitude=float(lon))
                for lon, lat in route.get("geometry", {}).get("coordinates", [])
            )
            distance = float(route["distance"])
            duration = float(route["duration"])
        except (KeyError, TypeError, ValueError) as e:
            raise ServiceUnavailableError(f"Malformed routing response: {e}") from e

        return RoutePlan(
            origin=origin,
            destination=destination,
            mode=mode,
            geometry=geometry,
            distance_meters=distance,
            duration_seconds=duration,
        )
