"""Map presenter port."""

from typing import Protocol

from station_navigation.domain.models.navigation_state import NavigationSnapshot


class MapPresenter(Protocol):
    """Port for the map renderer. Receives snapshots, never emits events back."""

    def present(self, snapshot: NavigationSnapshot) -> None:
        """Render the user marker, destination marker and route polyline."""
        ...
