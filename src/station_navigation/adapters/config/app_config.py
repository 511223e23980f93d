"""12-factor configuration adapter using environment variables and TOML config."""

import logging
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """Application configuration following 12-factor principles."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Routing service configuration
    osrm_base_url: str = Field(
        default="https://router.project-osrm.org",
        description="Base URL of the OSRM routing service",
    )
    route_timeout_seconds: float = Field(
        default=12.0, description="Timeout for a single routing request in seconds"
    )
    osrm_min_delay_seconds: float = Field(
        default=1.0,
        description="Minimum delay between requests to the same routing host in seconds",
    )
    log_requests: bool = Field(
        default=False, description="Log every outgoing routing request"
    )

    # Navigation policy
    arrival_threshold_meters: float = Field(
        default=50.0,
        description="Remaining routed distance below which the traveler has arrived",
    )

    # Geolocation configuration
    permission_timeout_seconds: float = Field(
        default=10.0, description="Bounded wait for a location permission answer"
    )
    position_timeout_seconds: float = Field(
        default=15.0, description="Bounded wait for a one-shot position fix"
    )
    gps_serial_port: str = Field(
        default="/dev/ttyS0", description="Serial device of the NMEA GPS receiver"
    )
    gps_baud: int = Field(default=9600, description="Baud rate of the NMEA GPS receiver")
    replay_interval_seconds: float = Field(
        default=1.0, description="Interval between replayed fixes in simulations"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root logging level")

    # TOML station catalogue, supplied by the listing subsystem
    config_file: str | None = Field(
        default=None,
        description="Path to TOML file with [[stations]] entries",
    )

    @classmethod
    def for_testing(cls, **overrides: Any) -> "AppConfig":
        """Build a config that ignores any .env file in the working directory."""
        return cls(_env_file=None, **overrides)  # type: ignore[call-arg]

    @field_validator("osrm_base_url")
    @classmethod
    def validate_osrm_base_url(cls, v: str) -> str:
        """Validate the routing URL is http(s) and strip trailing slashes."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("osrm_base_url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("route_timeout_seconds")
    @classmethod
    def validate_route_timeout(cls, v: float) -> float:
        """Validate the routing timeout is bounded."""
        if not 1 <= v <= 60:
            raise ValueError("route_timeout_seconds must be between 1 and 60")
        return v

    @field_validator("arrival_threshold_meters")
    @classmethod
    def validate_arrival_threshold(cls, v: float) -> float:
        """Validate the arrival threshold is positive."""
        if v <= 0:
            raise ValueError("arrival_threshold_meters must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate the log level is a known logging level name."""
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"log_level must be a logging level name, got {v!r}")
        return level

    def get_stations_config(self) -> list[dict[str, Any]]:
        """Parse and return the [[stations]] entries of the TOML file.

        Returns an empty list when no config file is set.
        """
        if not self.config_file:
            return []

        config_path = Path(self.config_file)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)

        stations = toml_data.get("stations", [])
        if not isinstance(stations, list):
            raise ValueError("TOML config 'stations' must be a list")
        return stations
