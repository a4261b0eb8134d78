"""Route planning adapter over the directions provider.

``plan_route`` validates its inputs locally and lets provider failures
propagate as :class:`RoutePlannerError` so the caller can keep its previous
route. ``reoptimize`` never fails on provider errors: it falls back to the
caller's original stop order.
"""

from __future__ import annotations

import logging
from typing import List, Protocol, Sequence, Tuple, TypeVar

from ..errors import RoutePlannerError, RouteValidationError
from ..models import Location, Route

T = TypeVar("T")

__all__ = ["DirectionsProvider", "RoutePlanner", "split_destination"]


class DirectionsProvider(Protocol):
    def route(
        self,
        origin: Location,
        destination: Location,
        waypoints: Sequence[Location] = (),
        *,
        optimize: bool = False,
        travel_mode: str | None = None,
    ) -> Route: ...


def _is_missing(location: Location | None) -> bool:
    return location is None or (isinstance(location, str) and not location.strip())


def split_destination(ordered: Sequence[T]) -> Tuple[List[T], T]:
    """Split a travel-ordered stop list into ``(waypoints, destination)``."""

    if not ordered:
        raise RouteValidationError("At least one stop is required")
    return list(ordered[:-1]), ordered[-1]


class RoutePlanner:
    def __init__(
        self,
        directions: DirectionsProvider,
        *,
        travel_mode: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._directions = directions
        self._travel_mode = travel_mode
        self._log = logger or logging.getLogger(self.__class__.__name__)

    def plan_route(
        self,
        origin: Location,
        destination: Location,
        waypoints: Sequence[Location] = (),
        *,
        optimize: bool = True,
    ) -> Route:
        """Compute a fresh route.

        Raises:
            RouteValidationError: ``origin`` or ``destination`` is missing.
            RoutePlannerError: The provider failed or returned malformed data.
        """

        if _is_missing(origin):
            raise RouteValidationError("An origin is required to plan a route")
        if _is_missing(destination):
            raise RouteValidationError("A destination is required to plan a route")
        clean_waypoints = [wp for wp in waypoints if not _is_missing(wp)]
        route = self._directions.route(
            origin,
            destination,
            clean_waypoints,
            optimize=optimize and bool(clean_waypoints),
            travel_mode=self._travel_mode,
        )
        self._log.info(
            "Planned route to %s: %d legs, %d steps",
            destination,
            len(route.legs),
            len(route.steps),
        )
        return route

    def reoptimize(self, origin: Location, stops: Sequence[Location]) -> List[Location]:
        """Return ``stops`` in travel order; the last element is the destination.

        Raises:
            RouteValidationError: ``origin`` is missing or ``stops`` is empty.
        """

        if _is_missing(origin):
            raise RouteValidationError("An origin is required to reoptimize stops")
        original = [stop for stop in stops if not _is_missing(stop)]
        if not original:
            raise RouteValidationError("At least one stop is required to reoptimize")
        if len(original) == 1:
            return original

        waypoints, destination = split_destination(original)
        try:
            route = self._directions.route(
                origin,
                destination,
                waypoints,
                optimize=True,
                travel_mode=self._travel_mode,
            )
        except RoutePlannerError as exc:
            self._log.warning(
                "Reoptimization failed, keeping original stop order: %s", exc
            )
            return original

        order = list(route.waypoint_order)
        if sorted(order) != list(range(len(waypoints))):
            self._log.warning(
                "Provider returned invalid waypoint_order %s for %d waypoints; "
                "keeping original stop order",
                order,
                len(waypoints),
            )
            return original
        optimized = [waypoints[idx] for idx in order] + [destination]
        self._log.info("Reoptimized %d stops: order=%s", len(original), order)
        return optimized
