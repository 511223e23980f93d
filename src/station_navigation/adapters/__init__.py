"""Adapters layer - external system integrations."""

from station_navigation.adapters.config import AppConfig, StationCatalogLoader
from station_navigation.adapters.geolocation import NmeaPositionSource, ReplayPositionSource
from station_navigation.adapters.osrm_api import OsrmRouteClient
from station_navigation.adapters.presenters import ConsoleMapPresenter, LoggingMapPresenter

__all__ = [
    "AppConfig",
    "ConsoleMapPresenter",
    "LoggingMapPresenter",
    "NmeaPositionSource",
    "OsrmRouteClient",
    "ReplayPositionSource",
    "StationCatalogLoader",
]
