"""Global pytest fixtures & helpers.

Adds project root to path and provides reusable route builders and fakes
(directions provider, executor, clock) shared by the navigation tests.
"""
from __future__ import annotations

import os
import sys
from concurrent.futures import Executor, Future
from typing import Any, Callable, List, Sequence, Tuple

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from gremind.models import Coordinate, Route, RouteLeg, RouteStep


ORIGIN = Coordinate(37.4220, -122.0840)
WAYPOINT = Coordinate(37.4260, -122.0870)
DESTINATION = Coordinate(37.4300, -122.0900)


# --- Factory helpers -------------------------------------------------
def make_route(
    points: Sequence[Coordinate],
    instructions: Sequence[str] | None = None,
    *,
    waypoint_order: Tuple[int, ...] = (),
) -> Route:
    """Build a single-leg route whose steps join consecutive ``points``."""

    steps = []
    for idx, (start, end) in enumerate(zip(points, points[1:])):
        text = instructions[idx] if instructions else f"Step {idx}"
        steps.append(RouteStep(start=start, end=end, instruction=text, index=idx))
    leg = RouteLeg(start=points[0], end=points[-1], steps=tuple(steps))
    return Route(legs=(leg,), destination=points[-1], waypoint_order=waypoint_order)


def make_two_leg_route() -> Route:
    """Origin -> waypoint -> destination, one step per leg."""

    first = RouteStep(
        start=ORIGIN,
        end=WAYPOINT,
        instruction="Head north on Amphitheatre Pkwy",
        index=0,
        leg_index=0,
    )
    second = RouteStep(
        start=WAYPOINT,
        end=DESTINATION,
        instruction="Turn left onto Charleston Rd",
        index=1,
        leg_index=1,
    )
    return Route(
        legs=(
            RouteLeg(start=ORIGIN, end=WAYPOINT, steps=(first,)),
            RouteLeg(start=WAYPOINT, end=DESTINATION, steps=(second,)),
        ),
        destination=DESTINATION,
        waypoints=(WAYPOINT,),
    )


class FakeDirections:
    """Directions provider returning (or raising) queued results in order."""

    def __init__(self, *results: Any) -> None:
        self.results: List[Any] = list(results)
        self.calls: List[dict[str, Any]] = []

    def route(self, origin, destination, waypoints=(), *, optimize=False, travel_mode=None):
        self.calls.append(
            {
                "origin": origin,
                "destination": destination,
                "waypoints": list(waypoints),
                "optimize": optimize,
            }
        )
        if not self.results:
            raise AssertionError("FakeDirections called more often than expected")
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class DeferredExecutor(Executor):
    """Executor that queues work until ``run_pending`` is called."""

    def __init__(self) -> None:
        self.pending: List[Tuple[Future, Callable[..., Any], tuple, dict]] = []

    def submit(self, fn, /, *args, **kwargs):  # type: ignore[override]
        future: Future = Future()
        self.pending.append((future, fn, args, kwargs))
        return future

    def run_pending(self) -> int:
        ran = 0
        while self.pending:
            future, fn, args, kwargs = self.pending.pop(0)
            try:
                future.set_result(fn(*args, **kwargs))
            except Exception as exc:  # pragma: no cover - surfaced via future
                future.set_exception(exc)
            ran += 1
        return ran


class ManualClock:
    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self.now_ms = start_ms

    def advance(self, seconds: float) -> None:
        self.now_ms += int(seconds * 1000)

    def millis(self) -> int:
        return self.now_ms

    def seconds(self) -> float:
        return self.now_ms / 1000.0


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def two_leg_route() -> Route:
    return make_two_leg_route()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def deferred_executor() -> DeferredExecutor:
    return DeferredExecutor()
