"""Application services (use cases) for station navigation."""

from station_navigation.application.navigation_session import NavigationSession
from station_navigation.application.progress_evaluator import (
    ARRIVAL_THRESHOLD_METERS,
    ProgressEvaluator,
)
from station_navigation.application.request_sequencer import RequestSequencer

__all__ = [
    "ARRIVAL_THRESHOLD_METERS",
    "NavigationSession",
    "ProgressEvaluator",
    "RequestSequencer",
]
