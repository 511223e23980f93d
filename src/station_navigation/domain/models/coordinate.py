"""Coordinate and position fix domain models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Coordinate:
    """A latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        """Reject coordinates outside the WGS84 range."""
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude must be within [-90, 90], got {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude must be within [-180, 180], got {self.longitude}")

    @classmethod
    def parse(cls, value: str) -> "Coordinate":
        """Parse a "lat,lon" string (e.g. "-4.4419,15.2663")."""
        parts = [part.strip() for part in value.split(",")]
        if len(parts) != 2:
            raise ValueError(f"Expected 'latitude,longitude', got {value!r}")
        try:
            latitude, longitude = float(parts[0]), float(parts[1])
        except ValueError as e:
            raise ValueError(f"Invalid coordinate {value!r}: {e}") from e
        return cls(latitude=latitude, longitude=longitude)

    def __str__(self) -> str:
        return f"{self.latitude:.5f},{self.longitude:.5f}"


@dataclass(frozen=True)
class PositionFix:
    """A single fix reported by the geolocation sensor."""

    coordinate: Coordinate
    timestamp: datetime
    accuracy_meters: float | None = None  # None when the receiver does not report it
