"""Station catalogue loader."""

import logging
from typing import Any

from station_navigation.adapters.config.app_config import AppConfig
from station_navigation.domain.models import Coordinate, Station

logger = logging.getLogger(__name__)


class StationCatalogLoader:
    """Loads stations from the TOML catalogue referenced by the app config."""

    @staticmethod
    def load(config: AppConfig) -> list[Station]:
        """Load stations from app config, skipping malformed entries."""
        stations: list[Station] = []
        seen_ids: set[str] = set()

        for index, station_data in enumerate(config.get_stations_config()):
            if not isinstance(station_data, dict):
                logger.warning(f"Skipping station entry #{index}: not a table")
                continue
            try:
                station = StationCatalogLoader._parse_station(station_data)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping station entry #{index}: {e}")
                continue
            if station.id in seen_ids:
                logger.warning(f"Skipping duplicate station id {station.id!r}")
                continue
            seen_ids.add(station.id)
            stations.append(station)

        return stations

    @staticmethod
    def _parse_station(data: dict[str, Any]) -> Station:
        station_id = str(data["id"])
        if not station_id:
            raise ValueError("station id must not be empty")

        rating = data.get("rating")
        review_count = data.get("review_count")
        fuel_types = data.get("fuel_types", [])
        if not isinstance(fuel_types, list):
            fuel_types = []

        return Station(
            id=station_id,
            name=str(data.get("name", station_id)),
            address=str(data.get("address", "")),
            coordinate=Coordinate(
                latitude=float(data["latitude"]), longitude=float(data["longitude"])
            ),
            city=str(data.get("city", "")),
            phone_number=data.get("phone_number"),
            rating=float(rating) if rating is not None else None,
            review_count=int(review_count) if review_count is not None else None,
            opening_hours=data.get("opening_hours"),
            fuel_types=tuple(str(item) for item in fuel_types),
            is_open=data.get("is_open"),
        )

    @staticmethod
    def find(stations: list[Station], station_id: str) -> Station | None:
        """Find a station by id."""
        return next((s for s in stations if s.id == station_id), None)
