"""Navigation session: owns the active route and reacts to position samples.

A session plans the initial route, subscribes to a geolocation source and,
for every fresh sample, asks the :class:`ProgressTracker` what to do. Step
changes are announced, arrival is published on the proximity bus, and
off-route samples trigger a throttled reroute that runs on an executor while
the previous route keeps serving samples.

Failures never escape to the host: planner errors keep the last good route,
geolocation permission errors switch tracking off.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence

from ..errors import GRemindError, RouteValidationError
from ..events import ProximityEventBus
from ..geolocation import (
    GeolocationError,
    GeolocationErrorCode,
    GeolocationOptions,
    GeolocationSource,
)
from ..models import (
    Coordinate,
    ExitedWithoutConfirmationEvent,
    Location,
    NearDestinationEvent,
    PositionSample,
    Route,
    RouteStep,
)
from ..voice import VoiceAnnouncer
from .planner import RoutePlanner, split_destination
from .settings import NavigationSettings
from .throttle import RerouteThrottle
from .tracker import NOT_STARTED, ProgressAction, ProgressTracker, ProgressUpdate

StepCallback = Callable[[int, RouteStep], None]
RerouteCallback = Callable[[Coordinate], None]

__all__ = ["NavigationSession"]


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


class NavigationSession:
    def __init__(
        self,
        planner: RoutePlanner,
        geolocation: GeolocationSource,
        bus: ProximityEventBus,
        *,
        settings: NavigationSettings | None = None,
        voice: VoiceAnnouncer | None = None,
        on_step_changed: StepCallback | None = None,
        on_reroute_requested: RerouteCallback | None = None,
        executor: Executor | None = None,
        clock: Callable[[], float] = time.monotonic,
        clock_ms: Callable[[], int] = _wall_clock_ms,
        geolocation_options: GeolocationOptions | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.settings = settings or NavigationSettings()
        self._planner = planner
        self._geolocation = geolocation
        self._bus = bus
        self._voice = voice
        self._on_step_changed = on_step_changed
        self._on_reroute_requested = on_reroute_requested
        self._executor = executor
        self._owns_executor = False
        self._clock = clock
        self._clock_ms = clock_ms
        self._geolocation_options = geolocation_options or GeolocationOptions(
            maximum_age_ms=self.settings.max_sample_age_ms
        )
        self._log = logger or logging.getLogger(self.__class__.__name__)
        self._tracker = ProgressTracker(self.settings)
        self._throttle = RerouteThrottle(self.settings.reroute_cooldown_s)
        self._lock = threading.RLock()

        self._route: Optional[Route] = None
        self._step_index = NOT_STARTED
        self._destination: Optional[Location] = None
        self._waypoints: List[Location] = []
        self._task_id: Optional[str] = None
        self._active = False
        self._generation = 0
        self._handle: Optional[int] = None
        self._last_timestamp_ms: Optional[int] = None
        self._last_position: Optional[Coordinate] = None
        self._near_emitted = False
        self._exit_emitted = False
        self._confirmed = False
        self._reroutes_in_flight = 0
        self._announcements: List[str] = []
        self.tracking_available = True

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------
    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def route(self) -> Optional[Route]:
        return self._route

    @property
    def current_step_index(self) -> int:
        return self._step_index

    @property
    def current_step(self) -> Optional[RouteStep]:
        with self._lock:
            if self._route is None:
                return None
            steps = self._route.steps
            if 0 <= self._step_index < len(steps):
                return steps[self._step_index]
            return None

    @property
    def last_position(self) -> Optional[Coordinate]:
        return self._last_position

    @property
    def near_destination_emitted(self) -> bool:
        return self._near_emitted

    @property
    def reroutes_in_flight(self) -> int:
        return self._reroutes_in_flight

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(
        self,
        origin: Location,
        destination: Location,
        waypoints: Sequence[Location] = (),
        *,
        task_id: str | None = None,
    ) -> bool:
        """Plan the route and begin tracking.

        Returns False if planning failed; a session that was already running
        then keeps its current route and subscription.
        """

        try:
            route = self._planner.plan_route(
                origin, destination, waypoints, optimize=True
            )
        except RouteValidationError as exc:
            self._log.warning("Navigation not started: %s", exc)
            return False
        except GRemindError as exc:
            self._log.warning("Navigation not started, route unavailable: %s", exc)
            return False

        if self._active:
            self.stop()
        with self._lock:
            self._generation += 1
            self._destination = destination
            self._waypoints = list(waypoints)
            self._task_id = task_id
            self._last_timestamp_ms = None
            self._last_position = None
            self._near_emitted = False
            self._exit_emitted = False
            self._confirmed = False
            self._throttle.reset()
            self._active = True
            self._install_route(route)
            # A new session asks for location access again.
            self.tracking_available = True
            self._handle = self._geolocation.subscribe(
                self.handle_position,
                self._on_geolocation_error,
                self._geolocation_options,
            )
        self._flush_announcements()
        self._log.info(
            "Navigation started to %s (%d waypoints, task=%s)",
            destination,
            len(self._waypoints),
            task_id,
        )
        return True

    def stop(self) -> None:
        """End the session; no callbacks fire after this returns."""

        with self._lock:
            if self._handle is not None:
                self._geolocation.unsubscribe(self._handle)
                self._handle = None
            self._throttle.reset()
            self._generation += 1
            was_active = self._active
            self._active = False
            self._route = None
            self._step_index = NOT_STARTED
            self._announcements = []
            executor = self._executor if self._owns_executor else None
            if executor is not None:
                self._executor = None
                self._owns_executor = False
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)
        if was_active:
            self._log.info("Navigation stopped")

    def __enter__(self) -> "NavigationSession":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.stop()

    def confirm_arrival(self, task_id: str | None = None) -> bool:
        """Mark the task at the destination as done; suppresses exit prompts.

        When ``task_id`` is given it must match the session's task, otherwise
        nothing is confirmed and False is returned.
        """

        with self._lock:
            if task_id is not None and task_id != self._task_id:
                self._log.debug(
                    "Ignoring confirmation for task %s (session task %s)",
                    task_id,
                    self._task_id,
                )
                return False
            self._confirmed = True
        return True

    def reoptimize_remaining(
        self, origin: Location, stops: Sequence[Location]
    ) -> bool:
        """Reorder the remaining stops and restart navigation along them."""

        try:
            ordered = self._planner.reoptimize(origin, stops)
        except GRemindError as exc:
            self._log.warning("Reoptimization skipped: %s", exc)
            return False
        waypoints, destination = split_destination(ordered)
        return self.start(origin, destination, waypoints, task_id=self._task_id)

    # ------------------------------------------------------------------
    # Position pipeline
    # ------------------------------------------------------------------
    def handle_position(self, sample: PositionSample) -> Optional[ProgressUpdate]:
        """Process one geolocation sample; returns the tracker decision if used."""

        update = self._process_sample(sample)
        self._flush_announcements()
        return update

    def _process_sample(self, sample: PositionSample) -> Optional[ProgressUpdate]:
        with self._lock:
            if not self._active or self._route is None:
                self._log.debug("Ignoring sample: no active route")
                return None
            age_ms = self._clock_ms() - sample.timestamp_ms
            if age_ms > self.settings.max_sample_age_ms:
                self._log.debug("Ignoring stale sample (%d ms old)", age_ms)
                return None
            if (
                self._last_timestamp_ms is not None
                and sample.timestamp_ms < self._last_timestamp_ms
            ):
                self._log.debug(
                    "Ignoring out-of-order sample ts=%d (last=%d)",
                    sample.timestamp_ms,
                    self._last_timestamp_ms,
                )
                return None
            self._last_timestamp_ms = sample.timestamp_ms
            position = sample.coordinate
            self._last_position = position

            update = self._tracker.evaluate(
                position,
                self._route,
                self._step_index,
                near_destination_emitted=self._near_emitted,
            )
            if update.closest_index == NOT_STARTED:
                return update
            if update.near_destination:
                self._near_emitted = True
                self._bus.publish(
                    NearDestinationEvent(
                        distance_m=int(round(update.distance_to_destination_m)),
                        task_id=self._task_id,
                    )
                )
            self._check_exit(update)

            if update.action is ProgressAction.REROUTE:
                self._request_reroute(position, update)
            elif update.action is ProgressAction.ADVANCE and update.step is not None:
                self._step_index = update.new_index or 0
                self._notify_step(self._step_index, update.step)
            return update

    def _check_exit(self, update: ProgressUpdate) -> None:
        if (
            not self._near_emitted
            or self._exit_emitted
            or self._confirmed
            or not self._task_id
        ):
            return
        limit = self.settings.proximity_m + self.settings.exit_margin_m
        if update.distance_to_destination_m <= limit:
            return
        self._exit_emitted = True
        self._log.info("Left destination area of task %s unconfirmed", self._task_id)
        self._bus.publish(ExitedWithoutConfirmationEvent(task_id=self._task_id))

    # ------------------------------------------------------------------
    # Rerouting
    # ------------------------------------------------------------------
    def _request_reroute(self, position: Coordinate, update: ProgressUpdate) -> None:
        if not self._throttle.try_acquire(self._clock()):
            self._log.debug("Off-route but reroute throttled")
            return
        self._log.info(
            "Off-route (%.0f m from step end); requesting new route",
            update.distance_to_step_end_m,
        )
        if self._on_reroute_requested is not None:
            try:
                self._on_reroute_requested(position)
            except Exception as exc:
                self._log.error("Reroute callback failed: %s", exc, exc_info=True)
        destination = self._destination
        if destination is None:
            return
        executor = self._executor
        if executor is None:
            executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="reroute")
            self._executor = executor
            self._owns_executor = True
        self._reroutes_in_flight += 1
        executor.submit(
            self._run_reroute,
            position,
            destination,
            list(self._waypoints),
            self._generation,
        )

    def _run_reroute(
        self,
        origin: Coordinate,
        destination: Location,
        waypoints: List[Location],
        generation: int,
    ) -> None:
        try:
            route = self._planner.plan_route(
                origin, destination, waypoints, optimize=False
            )
        except GRemindError as exc:
            self._log.warning("Reroute failed, keeping previous route: %s", exc)
            with self._lock:
                self._reroutes_in_flight -= 1
            return
        with self._lock:
            self._reroutes_in_flight -= 1
            if generation != self._generation or not self._active:
                self._log.debug("Discarding reroute result for an ended session")
                return
            self._install_route(route)
        self._flush_announcements()
        self._log.info("Rerouted: %d steps", len(route.steps))

    # ------------------------------------------------------------------
    # Helpers (called with the lock held)
    # ------------------------------------------------------------------
    def _install_route(self, route: Route) -> None:
        self._route = route
        steps = route.steps
        if not steps:
            self._step_index = NOT_STARTED
            return
        self._step_index = 0
        self._notify_step(0, steps[0])

    def _notify_step(self, index: int, step: RouteStep) -> None:
        self._log.info("Step %d: %s", index, step.instruction)
        if self._on_step_changed is not None:
            try:
                self._on_step_changed(index, step)
            except Exception as exc:
                self._log.error("Step callback failed: %s", exc, exc_info=True)
        if self.settings.voice_enabled and self._voice is not None:
            self._announcements.append(step.instruction)

    def _flush_announcements(self) -> None:
        """Speak queued instructions; runs without the session lock held."""

        with self._lock:
            pending, self._announcements = self._announcements, []
        if self._voice is None:
            return
        for text in pending:
            self._voice.speak(text)

    def _on_geolocation_error(self, error: GeolocationError) -> None:
        if error.code is GeolocationErrorCode.PERMISSION_DENIED:
            with self._lock:
                self.tracking_available = False
                if self._handle is not None:
                    self._geolocation.unsubscribe(self._handle)
                    self._handle = None
            self._log.warning(
                "Location permission denied; proximity tracking disabled"
            )
            return
        self._log.warning("Geolocation error (%s): %s", error.code.name, error.message)
