"""Progress decisions for a single position sample.

The tracker is pure: it reads the route and the session's current step and
returns a :class:`ProgressUpdate` describing what should happen next. The
navigation session applies the decision (advancing the index, publishing
events, requesting a reroute).
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from ..geo import distance
from ..models import Coordinate, Route, RouteStep
from .settings import NavigationSettings

NOT_STARTED = -1

__all__ = [
    "NOT_STARTED",
    "ProgressAction",
    "ProgressTracker",
    "ProgressUpdate",
    "find_closest_step",
]


class ProgressAction(enum.Enum):
    NONE = "none"
    ADVANCE = "advance"
    REROUTE = "reroute"


@dataclass(frozen=True, slots=True)
class ProgressUpdate:
    action: ProgressAction = ProgressAction.NONE
    closest_index: int = NOT_STARTED
    closest_distance_m: float = math.inf
    distance_to_destination_m: float = math.inf
    distance_to_step_end_m: float = math.inf
    near_destination: bool = False
    new_index: Optional[int] = None
    step: Optional[RouteStep] = None


def find_closest_step(
    position: Coordinate, steps: Sequence[RouteStep]
) -> Tuple[int, float]:
    """Return ``(index, metres)`` of the step whose end is nearest.

    Ties resolve to the lowest index. ``(-1, inf)`` for an empty sequence.
    """

    best_index = NOT_STARTED
    best_distance = math.inf
    for idx, step in enumerate(steps):
        d = distance(position, step.end)
        if d < best_distance:
            best_distance = d
            best_index = idx
    return best_index, best_distance


class ProgressTracker:
    def __init__(self, settings: NavigationSettings | None = None) -> None:
        self.settings = settings or NavigationSettings()

    def evaluate(
        self,
        position: Coordinate,
        route: Route | None,
        current_index: int,
        *,
        near_destination_emitted: bool = False,
    ) -> ProgressUpdate:
        if route is None:
            return ProgressUpdate()
        steps = route.steps
        if not steps:
            return ProgressUpdate()

        closest_index, closest_distance = find_closest_step(position, steps)
        to_destination = distance(position, route.destination)
        near = (
            to_destination <= self.settings.proximity_m and not near_destination_emitted
        )

        tracked = current_index if 0 <= current_index < len(steps) else 0
        to_step_end = distance(position, steps[tracked].end)
        common = dict(
            closest_index=closest_index,
            closest_distance_m=closest_distance,
            distance_to_destination_m=to_destination,
            distance_to_step_end_m=to_step_end,
            near_destination=near,
        )

        if to_step_end > self.settings.deviation_m:
            return ProgressUpdate(action=ProgressAction.REROUTE, **common)

        target = closest_index
        # Reaching the end of a step makes the following step current.
        if closest_distance <= self.settings.step_arrival_m and target < len(steps) - 1:
            target += 1
        if target > current_index:
            return ProgressUpdate(
                action=ProgressAction.ADVANCE,
                new_index=target,
                step=steps[target],
                **common,
            )
        return ProgressUpdate(**common)
