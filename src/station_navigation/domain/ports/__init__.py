"""Ports (interfaces) for the ports-and-adapters architecture."""

from station_navigation.domain.ports.map_presenter import MapPresenter
from station_navigation.domain.ports.position_source import PositionSource, SubscriptionHandle
from station_navigation.domain.ports.route_client import RouteClient

__all__ = [
    "MapPresenter",
    "PositionSource",
    "RouteClient",
    "SubscriptionHandle",
]
