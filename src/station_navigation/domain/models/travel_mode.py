"""Travel mode and permission enumerations."""

from enum import StrEnum


class TravelMode(StrEnum):
    """Mode of transport used for routing and progress."""

    DRIVING = "driving"
    WALKING = "walking"

    @property
    def label(self) -> str:
        """Human readable label for display."""
        return "Car" if self is TravelMode.DRIVING else "On foot"


class PermissionState(StrEnum):
    """Tri-state geolocation permission as reported by the device."""

    GRANTED = "granted"
    DENIED = "denied"
    PROMPT = "prompt"
