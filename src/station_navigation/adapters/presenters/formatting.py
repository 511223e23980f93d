"""Formatting of distances, durations and session snapshots for display."""

from station_navigation.domain.models import NavigationSnapshot, NavigationState


def format_distance(meters: float) -> str:
    """Format a distance as metres below one kilometre, else kilometres with one decimal."""
    if meters < 1000:
        return f"{round(meters)} m"
    return f"{meters / 1000:.1f} km"


def format_duration(seconds: float) -> str:
    """Format a duration compactly (e.g. '< 1min', '12min', '1h05min')."""
    total_minutes = int(round(seconds / 60))
    if seconds < 60 or total_minutes == 0:
        return "< 1min"
    hours, minutes = divmod(total_minutes, 60)
    if hours:
        return f"{hours}h{minutes:02d}min"
    return f"{minutes}min"


def format_snapshot(snapshot: NavigationSnapshot) -> str:
    """Render a one-line status for a navigation snapshot."""
    station_name = snapshot.station.name if snapshot.station else "-"
    parts = [f"[{snapshot.state.value}]", station_name, f"({snapshot.mode.label})"]

    if snapshot.state is NavigationState.ARRIVED:
        parts.append(f"- arrived at {station_name}")
    elif snapshot.remaining_distance_meters is not None:
        parts.append(f"- {format_distance(snapshot.remaining_distance_meters)}")
        if snapshot.remaining_duration_seconds is not None:
            parts.append(f"/ {format_duration(snapshot.remaining_duration_seconds)}")
    elif snapshot.total_distance_meters is not None:
        parts.append(f"- total {format_distance(snapshot.total_distance_meters)}")

    if snapshot.error is not None:
        parts.append(f"! {snapshot.error.reason}")
    return " ".join(parts)
