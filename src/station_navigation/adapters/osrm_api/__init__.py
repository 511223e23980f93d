"""OSRM routing service adapter."""

from station_navigation.adapters.osrm_api.osrm_route_client import OsrmRouteClient
from station_navigation.adapters.osrm_api.rate_limiter import (
    ApiRateLimiter,
    RateLimitWaitExceeded,
)

__all__ = ["ApiRateLimiter", "OsrmRouteClient", "RateLimitWaitExceeded"]
