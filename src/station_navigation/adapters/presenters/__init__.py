"""Map presenter adapters."""

from station_navigation.adapters.presenters.console_presenter import (
    ConsoleMapPresenter,
    LoggingMapPresenter,
)
from station_navigation.adapters.presenters.formatting import (
    format_distance,
    format_duration,
    format_snapshot,
)

__all__ = [
    "ConsoleMapPresenter",
    "LoggingMapPresenter",
    "format_distance",
    "format_duration",
    "format_snapshot",
]
