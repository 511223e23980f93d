"""Geolocation sensor adapters."""

from station_navigation.adapters.geolocation.nmea_position_source import (
    EpochFixFilter,
    NmeaPositionSource,
    parse_nmea_fix,
)
from station_navigation.adapters.geolocation.replay_position_source import (
    ReplayPositionSource,
)

__all__ = ["EpochFixFilter", "NmeaPositionSource", "ReplayPositionSource", "parse_nmea_fix"]
