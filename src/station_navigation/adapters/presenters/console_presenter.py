"""Map presenters that render session snapshots as text."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

from station_navigation.adapters.presenters.formatting import format_snapshot
from station_navigation.domain.models import NavigationSnapshot
from station_navigation.domain.ports.map_presenter import MapPresenter

logger = logging.getLogger(__name__)


class ConsoleMapPresenter(MapPresenter):
    """Prints one status line per snapshot, skipping unchanged lines."""

    def __init__(self, stream: TextIO | None = None) -> None:
        """Initialize with an output stream (stdout by default)."""
        self._stream = stream or sys.stdout
        self._last_line: str | None = None

    def present(self, snapshot: NavigationSnapshot) -> None:
        """Print the formatted snapshot."""
        line = format_snapshot(snapshot)
        if line == self._last_line:
            return
        self._last_line = line
        print(line, file=self._stream, flush=True)


class LoggingMapPresenter(MapPresenter):
    """Logs every snapshot at debug level."""

    def present(self, snapshot: NavigationSnapshot) -> None:
        """Log the formatted snapshot with the user position."""
        logger.debug(f"{format_snapshot(snapshot)} at {snapshot.user_position}")
