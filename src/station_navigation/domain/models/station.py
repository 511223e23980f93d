"""Station domain model."""

from dataclasses import dataclass, field

from station_navigation.domain.models.coordinate import Coordinate


@dataclass(frozen=True)
class Station:
    """A fuel/service station the user can navigate to."""

    id: str
    name: str
    address: str
    coordinate: Coordinate
    city: str = ""
    phone_number: str | None = None
    rating: float | None = None
    review_count: int | None = None
    opening_hours: str | None = None
    fuel_types: tuple[str, ...] = field(default_factory=tuple)
    is_open: bool | None = None
