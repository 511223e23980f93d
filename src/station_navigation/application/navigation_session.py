"""Navigation session: the stateful core of live station navigation."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from station_navigation.application.progress_evaluator import (
    ARRIVAL_THRESHOLD_METERS,
    ProgressEvaluator,
)
from station_navigation.application.request_sequencer import RequestSequencer
from station_navigation.domain.errors import (
    InvalidTransitionError,
    NavigationError,
    NoRouteFoundError,
    PermissionDeniedError,
    PositionError,
    RoutingError,
)
from station_navigation.domain.models import (
    Coordinate,
    ErrorDetails,
    NavigationSnapshot,
    NavigationState,
    PermissionState,
    PositionFix,
    RoutePlan,
    Station,
    TravelMode,
)

if TYPE_CHECKING:
    from station_navigation.domain.ports import (
        MapPresenter,
        PositionSource,
        RouteClient,
        SubscriptionHandle,
    )

logger = logging.getLogger(__name__)

_STOPPABLE_STATES = (
    NavigationState.PREVIEWING,
    NavigationState.READY_TO_START,
    NavigationState.NAVIGATING,
)


class NavigationSession:
    """Guides the user to a selected station and tracks live progress.

    The session is the only writer of its own fields. It owns at most one
    position subscription and every in-flight route request, and releases
    both on every terminal transition and on close().

    All methods must be called from the event loop thread. Operations that
    issue route requests return the asyncio.Task serving the request so the
    caller can await it; the session applies the result itself.
    """

    def __init__(
        self,
        position_source: PositionSource,
        route_client: RouteClient,
        presenter: MapPresenter | None = None,
        arrival_threshold_meters: float = ARRIVAL_THRESHOLD_METERS,
    ) -> None:
        """Initialize an idle session.

        Args:
            position_source: Device geolocation sensor.
            route_client: Routing service client.
            presenter: Optional map presenter notified on every change.
            arrival_threshold_meters: Remaining routed distance below which
                the traveler has arrived.
        """
        self._position_source = position_source
        self._route_client = route_client
        self._presenter = presenter
        self._evaluator = ProgressEvaluator(route_client, arrival_threshold_meters)
        self._sequencer = RequestSequencer()
        self._subscription: SubscriptionHandle | None = None
        self._progress_task: asyncio.Task[None] | None = None
        self._pending_position: Coordinate | None = None
        self._user_position: Coordinate | None = None
        self._reset_trip()
        self._state = NavigationState.IDLE

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def state(self) -> NavigationState:
        """Current navigation state."""
        return self._state

    @property
    def station(self) -> Station | None:
        """Selected destination station."""
        return self._station

    @property
    def mode(self) -> TravelMode:
        """Selected travel mode."""
        return self._mode

    @property
    def route_plan(self) -> RoutePlan | None:
        """Latest accepted preview plan."""
        return self._plan

    @property
    def user_position(self) -> Coordinate | None:
        """Latest known user position."""
        return self._user_position

    @property
    def remaining_distance_meters(self) -> float | None:
        """Remaining routed distance, or None before the first plan."""
        return self._remaining_distance

    @property
    def remaining_duration_seconds(self) -> float | None:
        """Remaining routed duration, or None before the first plan."""
        return self._remaining_duration

    @property
    def has_arrived(self) -> bool:
        """Whether the session reached the station."""
        return self._state is NavigationState.ARRIVED

    @property
    def last_error(self) -> ErrorDetails | None:
        """Last user-visible failure, cleared on success."""
        return self._last_error

    @property
    def subscription_active(self) -> bool:
        """Whether a position subscription is currently open."""
        return self._subscription is not None and self._subscription.active

    @property
    def pending_requests(self) -> int:
        """Number of route requests still in flight."""
        return self._sequencer.pending

    def snapshot(self) -> NavigationSnapshot:
        """Build the read-only view pushed to the presenter."""
        geometry: tuple[Coordinate, ...] = ()
        if self._remaining_geometry and self._state is NavigationState.NAVIGATING:
            geometry = self._remaining_geometry
        elif self._plan is not None:
            geometry = self._plan.geometry

        return NavigationSnapshot(
            state=self._state,
            station=self._station,
            mode=self._mode,
            user_position=self._user_position,
            destination=self._station.coordinate if self._station else None,
            route_geometry=geometry,
            total_distance_meters=self._plan.distance_meters if self._plan else None,
            total_duration_seconds=self._plan.duration_seconds if self._plan else None,
            remaining_distance_meters=self._remaining_distance,
            remaining_duration_seconds=self._remaining_duration,
            error=self._last_error,
        )

    # ------------------------------------------------------------------
    # User position
    # ------------------------------------------------------------------

    async def locate_user(self) -> Coordinate | None:
        """Request location permission and a one-shot position fix.

        Sensor failures are recorded in last_error and leave the state as is.

        Returns:
            The user's position, or None if it could not be obtained.
        """
        if self._state is NavigationState.NAVIGATING:
            raise InvalidTransitionError("User position is tracked continuously while navigating")

        try:
            permission = await self._position_source.request_permission()
        except PositionError as e:
            self._fail(e)
            return None

        if permission is not PermissionState.GRANTED:
            reason = (
                "Location permission denied"
                if permission is PermissionState.DENIED
                else "Location permission not granted yet"
            )
            self._fail(PermissionDeniedError(reason))
            return None

        try:
            position = await self._position_source.get_current_position()
        except PositionError as e:
            self._fail(e)
            return None

        logger.info(f"User located at {position}")
        self._user_position = position
        self._last_error = None
        self._publish()
        return position

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def select_station(self, station: Station) -> None:
        """Select the destination station and start previewing.

        Any previous trip state is reset; the last known user position is kept.
        """
        if self._state is NavigationState.NAVIGATING:
            raise InvalidTransitionError("Stop navigation before selecting another station")

        self._release_resources()
        self._reset_trip()
        self._station = station
        self._transition(NavigationState.PREVIEWING)
        self._publish()

    def select_mode(self, mode: TravelMode) -> None:
        """Choose the travel mode, invalidating any plan computed for another one."""
        if self._state is NavigationState.NAVIGATING:
            raise InvalidTransitionError("Travel mode cannot change while navigating; stop first")
        if self._state not in (NavigationState.PREVIEWING, NavigationState.READY_TO_START):
            raise InvalidTransitionError(f"Cannot select travel mode in state {self._state.value}")

        self._mode = mode
        self._invalidate_plan()
        self._transition(NavigationState.PREVIEWING)
        self._publish()

    def confirm_mode(self) -> asyncio.Task[None]:
        """Confirm the travel mode and request the preview route plan.

        Returns:
            The task serving the route request.
        """
        if self._state is not NavigationState.PREVIEWING:
            raise InvalidTransitionError(f"Cannot confirm travel mode in state {self._state.value}")
        if self._user_position is None:
            raise InvalidTransitionError("User position is unknown; locate the user first")

        self._last_error = None
        self._transition(NavigationState.READY_TO_START)
        task = self._issue_plan_request()
        self._publish()
        return task

    def retry_plan(self) -> asyncio.Task[None]:
        """Re-issue the preview route request after a transient failure."""
        if self._state is not NavigationState.READY_TO_START:
            raise InvalidTransitionError(f"Cannot retry planning in state {self._state.value}")

        self._invalidate_plan()
        self._last_error = None
        task = self._issue_plan_request()
        self._publish()
        return task

    def start_navigation(self) -> None:
        """Start live navigation by opening the continuous position stream."""
        if self._state is not NavigationState.READY_TO_START or self._plan is None:
            raise InvalidTransitionError("A route plan must be ready before starting navigation")

        station = self._require_station()
        if not self._plan.is_valid_for(station.coordinate, self._mode):
            logger.warning("Stored route plan no longer matches the station; re-planning")
            self.retry_plan()
            raise InvalidTransitionError("Route plan was stale and is being recomputed")

        self._release_subscription()
        self._transition(NavigationState.NAVIGATING)
        self._subscription = self._position_source.watch_position(
            self._handle_fix, self._handle_position_error
        )
        self._publish()

    def position_update(self, position: Coordinate) -> asyncio.Task[None] | None:
        """Process a live position and recompute progress.

        At most one progress request is in flight. A fix arriving meanwhile
        replaces any fix still waiting, and is routed once the request in
        flight has answered. Updates arriving after the session left
        NAVIGATING are ignored.

        Returns:
            The task recomputing progress, which finishes once this fix or a
            newer one has been evaluated, or None if the update was ignored.
        """
        if self._state is not NavigationState.NAVIGATING:
            logger.debug(f"Ignoring position update in state {self._state.value}")
            return None

        self._user_position = position
        self._publish()

        if self._pending_position is not None:
            logger.debug("Superseding a position fix that was not routed yet")
        self._pending_position = position
        if self._progress_task is None or self._progress_task.done():
            self._progress_task = asyncio.create_task(
                self._track_progress(), name="route-progress"
            )
            self._sequencer.track(self._progress_task)
        return self._progress_task

    def stop(self) -> None:
        """Stop the trip, releasing the subscription and all in-flight requests.

        Outside previewing/ready/navigating this only releases resources.
        """
        self._release_resources()
        if self._state not in _STOPPABLE_STATES:
            return

        self._plan = None
        self._remaining_distance = None
        self._remaining_duration = None
        self._remaining_geometry = ()
        self._transition(NavigationState.STOPPED)
        self._publish()

    def clear(self) -> None:
        """Clear the route and station, returning to idle."""
        self._release_resources()
        self._reset_trip()
        self._transition(NavigationState.IDLE)
        self._publish()

    def close(self) -> None:
        """Dispose of the session, releasing every resource it owns."""
        self._release_resources()

    async def __aenter__(self) -> NavigationSession:
        return self

    async def __aexit__(
        self, _exc_type: type | None, _exc_val: Exception | None, _exc_tb: object
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Route requests
    # ------------------------------------------------------------------

    def _issue_plan_request(self) -> asyncio.Task[None]:
        station = self._require_station()
        origin = self._user_position
        if origin is None:
            raise InvalidTransitionError("User position is unknown; locate the user first")

        ticket = self._sequencer.issue()
        logger.info(
            f"Requesting {self._mode.value} route #{ticket} to {station.name} from {origin}"
        )
        task = asyncio.create_task(
            self._request_plan(ticket, origin, station.coordinate, self._mode),
            name=f"route-plan-{ticket}",
        )
        self._sequencer.track(task)
        return task

    async def _request_plan(
        self, ticket: int, origin: Coordinate, destination: Coordinate, mode: TravelMode
    ) -> None:
        try:
            plan = await self._route_client.plan_route(origin, destination, mode)
        except NoRouteFoundError as e:
            if not self._accepts_plan_response(ticket):
                return
            # The user can pick another travel mode from the preview.
            self._plan = None
            self._transition(NavigationState.PREVIEWING)
            self._fail(e)
            return
        except RoutingError as e:
            if not self._accepts_plan_response(ticket):
                return
            self._fail(e)
            return

        if not self._accepts_plan_response(ticket):
            return
        self._on_plan_received(plan)

    def _accepts_plan_response(self, ticket: int) -> bool:
        if self._state is not NavigationState.READY_TO_START:
            logger.debug(f"Discarding route plan #{ticket} in state {self._state.value}")
            return False
        return self._sequencer.accept(ticket)

    def _on_plan_received(self, plan: RoutePlan) -> None:
        station = self._require_station()
        if not plan.is_valid_for(station.coordinate, self._mode):
            logger.warning(
                f"Discarding route plan for {plan.destination} ({plan.mode.value}); "
                f"session expects {station.coordinate} ({self._mode.value})"
            )
            return

        logger.info(
            f"Route plan ready: {plan.distance_meters:.0f} m, {plan.duration_seconds:.0f} s, "
            f"{len(plan.geometry)} points"
        )
        self._plan = plan
        self._remaining_distance = plan.distance_meters
        self._remaining_duration = plan.duration_seconds
        self._remaining_geometry = plan.geometry
        self._last_error = None
        self._publish()

    async def _track_progress(self) -> None:
        while self._pending_position is not None and self._state is NavigationState.NAVIGATING:
            position = self._pending_position
            self._pending_position = None
            await self._evaluate_progress(self._sequencer.issue(), position)

    async def _evaluate_progress(self, ticket: int, position: Coordinate) -> None:
        plan = self._plan
        if plan is None:
            return

        try:
            progress = await self._evaluator.evaluate(plan, position)
        except RoutingError as e:
            # Keep the last known progress and retry on the next fix.
            logger.warning(f"Progress update #{ticket} failed ({e.kind}): {e.reason}")
            return

        if self._state is not NavigationState.NAVIGATING:
            logger.debug(f"Discarding progress #{ticket} in state {self._state.value}")
            return
        if not self._sequencer.accept(ticket):
            return

        self._remaining_distance = progress.remaining_distance_meters
        self._remaining_duration = progress.remaining_duration_seconds
        if progress.geometry:
            self._remaining_geometry = progress.geometry

        if progress.has_arrived:
            self._arrive()
        else:
            self._publish()

    def _arrive(self) -> None:
        logger.info(f"Arrived at {self._require_station().name}")
        self._transition(NavigationState.ARRIVED)
        self._release_resources()
        self._publish()

    # ------------------------------------------------------------------
    # Position stream callbacks
    # ------------------------------------------------------------------

    def _handle_fix(self, fix: PositionFix) -> None:
        self.position_update(fix.coordinate)

    def _handle_position_error(self, error: PositionError) -> None:
        if self._state is not NavigationState.NAVIGATING:
            return
        if isinstance(error, PermissionDeniedError):
            # The stream cannot recover without the user's consent.
            logger.warning(f"Location permission revoked while navigating: {error.reason}")
            self._last_error = error.to_error_details()
            self.stop()
            return
        self._fail(error)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_station(self) -> Station:
        if self._station is None:
            raise InvalidTransitionError("No station selected")
        return self._station

    def _reset_trip(self) -> None:
        self._station: Station | None = None
        self._mode = TravelMode.DRIVING
        self._plan: RoutePlan | None = None
        self._remaining_distance: float | None = None
        self._remaining_duration: float | None = None
        self._remaining_geometry: tuple[Coordinate, ...] = ()
        self._last_error: ErrorDetails | None = None

    def _invalidate_plan(self) -> None:
        self._sequencer.invalidate()
        self._plan = None
        self._remaining_distance = None
        self._remaining_duration = None
        self._remaining_geometry = ()

    def _release_subscription(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def _release_resources(self) -> None:
        self._release_subscription()
        self._pending_position = None
        self._progress_task = None
        self._sequencer.invalidate()

    def _transition(self, new_state: NavigationState) -> None:
        if new_state is not self._state:
            logger.info(f"Navigation state {self._state.value} -> {new_state.value}")
        self._state = new_state

    def _fail(self, error: NavigationError) -> None:
        logger.warning(f"Navigation error ({error.kind}): {error.reason}")
        self._last_error = error.to_error_details()
        self._publish()

    def _publish(self) -> None:
        if self._presenter is None:
            return
        try:
            self._presenter.present(self.snapshot())
        except Exception as e:
            logger.error(f"Map presenter failed: {e}", exc_info=True)
