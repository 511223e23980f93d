"""Geographic helper functions.

Pure math on Coordinates; no I/O and no dependencies on other layers.
"""

import math

from station_navigation.domain.models.coordinate import Coordinate

EARTH_RADIUS_M = 6_371_000.0


def haversine_distance(origin: Coordinate, destination: Coordinate) -> float:
    """Great-circle distance between two coordinates in metres."""
    lat1 = math.radians(origin.latitude)
    lat2 = math.radians(destination.latitude)
    d_lat = lat2 - lat1
    d_lon = math.radians(destination.longitude - origin.longitude)
    a = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def path_length(geometry: tuple[Coordinate, ...] | list[Coordinate]) -> float:
    """Length of a polyline in metres."""
    return sum(haversine_distance(a, b) for a, b in zip(geometry, geometry[1:], strict=False))


def interpolate(origin: Coordinate, destination: Coordinate, fraction: float) -> Coordinate:
    """Linear interpolation between two nearby coordinates.

    Good enough for the short segments of a routed polyline.
    """
    fraction = max(0.0, min(1.0, fraction))
    return Coordinate(
        latitude=origin.latitude + (destination.latitude - origin.latitude) * fraction,
        longitude=origin.longitude + (destination.longitude - origin.longitude) * fraction,
    )


def sample_path(
    geometry: tuple[Coordinate, ...] | list[Coordinate], step_meters: float
) -> list[Coordinate]:
    """Walk a polyline and return points spaced roughly step_meters apart.

    The first and last vertices are always included.
    """
    if step_meters <= 0:
        raise ValueError("step_meters must be positive")
    if not geometry:
        return []

    points = [geometry[0]]
    carried = 0.0
    for start, end in zip(geometry, geometry[1:], strict=False):
        segment = haversine_distance(start, end)
        if segment == 0:
            continue
        offset = step_meters - carried
        while offset <= segment:
            points.append(interpolate(start, end, offset / segment))
            offset += step_meters
        carried = segment - (offset - step_meters)

    if points[-1] != geometry[-1]:
        points.append(geometry[-1])
    return points
