"""Directions web-service client.

Turns an origin/destination/waypoints request into a :class:`Route`. Every
failure mode surfaces as a :class:`RoutePlannerError` subclass so callers can
fall back to their last known good route with a single ``except``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Sequence, Tuple

import requests

from ..config import DIRECTIONS_URL, GOOGLE_MAPS_API_KEY, REQUEST_TIMEOUT, TRAVEL_MODE
from ..errors import (
    ConfigurationError,
    DirectionsStatusError,
    MalformedResponseError,
    RoutePlannerError,
)
from ..models import Coordinate, Location, Route, RouteLeg, RouteStep
from ..utils import decode_polyline, strip_html
from .response_handling import extract_error, parse_json_object
from .session import get_default_session

LOGGER = logging.getLogger(__name__)

__all__ = ["DirectionsAPI", "parse_route", "format_waypoints"]


def _location_param(location: Location) -> str:
    return str(location).strip()


def format_waypoints(waypoints: Sequence[Location], *, optimize: bool) -> str:
    """Return the ``waypoints`` query value, e.g. ``optimize:true|a|b``."""

    parts = [_location_param(wp) for wp in waypoints]
    if optimize:
        parts.insert(0, "optimize:true")
    return "|".join(parts)


class DirectionsAPI:
    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        api_key: str | None = None,
        base_url: str = DIRECTIONS_URL,
        travel_mode: str = TRAVEL_MODE,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self._session = session or get_default_session()
        self._api_key = GOOGLE_MAPS_API_KEY if api_key is None else api_key
        self._base_url = base_url
        self._travel_mode = travel_mode
        self._timeout = timeout

    def route(
        self,
        origin: Location,
        destination: Location,
        waypoints: Sequence[Location] = (),
        *,
        optimize: bool = False,
        travel_mode: str | None = None,
    ) -> Route:
        """Request a route and return it parsed.

        Raises:
            ConfigurationError: No API key is configured.
            DirectionsStatusError: The provider answered with a non-OK status.
            MalformedResponseError: The payload lacks routes, legs or steps.
            RoutePlannerError: Network failure or HTTP error status.
        """

        if not self._api_key:
            raise ConfigurationError("Google Maps API key is not configured.")
        mode = travel_mode or self._travel_mode
        params: Dict[str, Any] = {
            "origin": _location_param(origin),
            "destination": _location_param(destination),
            "mode": mode,
            "key": self._api_key,
        }
        if waypoints:
            params["waypoints"] = format_waypoints(waypoints, optimize=optimize)
        if mode == "driving":
            params["departure_time"] = "now"

        LOGGER.debug(
            "GET %s origin=%s destination=%s waypoints=%d optimize=%s",
            self._base_url,
            params["origin"],
            params["destination"],
            len(waypoints),
            optimize,
        )
        try:
            response = self._session.get(
                self._base_url, params=params, timeout=self._timeout
            )
        except requests.exceptions.RequestException as exc:
            raise RoutePlannerError(f"Directions request failed: {exc}") from exc

        if response.status_code >= 400:
            detail = extract_error(response)
            message = f"Directions request failed (HTTP {response.status_code})"
            raise RoutePlannerError(f"{message} | {detail}" if detail else message)

        data = parse_json_object(response, "Directions")
        status = data.get("status")
        if status != "OK":
            raise DirectionsStatusError(str(status), data.get("error_message"))
        return parse_route(data, waypoints)


def parse_route(data: Mapping[str, Any], waypoints: Sequence[Location] = ()) -> Route:
    """Build a :class:`Route` from the first route of a Directions payload."""

    routes = data.get("routes")
    if not isinstance(routes, list) or not routes:
        raise MalformedResponseError("Directions response contains no routes")
    raw_route = routes[0]
    if not isinstance(raw_route, dict):
        raise MalformedResponseError("Directions route is not an object")
    raw_legs = raw_route.get("legs")
    if not isinstance(raw_legs, list) or not raw_legs:
        raise MalformedResponseError("Directions route contains no legs")

    legs: List[RouteLeg] = []
    step_index = 0
    for leg_index, raw_leg in enumerate(raw_legs):
        leg = _parse_leg(raw_leg, leg_index, step_index)
        step_index += len(leg.steps)
        legs.append(leg)
    if step_index == 0:
        raise MalformedResponseError("Directions route contains no steps")

    waypoint_order = raw_route.get("waypoint_order") or []
    try:
        order = tuple(int(idx) for idx in waypoint_order)
    except (TypeError, ValueError) as exc:
        raise MalformedResponseError("Invalid waypoint_order in response") from exc

    overview = _safe_path((raw_route.get("overview_polyline") or {}).get("points"))
    return Route(
        legs=tuple(legs),
        destination=legs[-1].end,
        waypoints=tuple(waypoints),
        waypoint_order=order,
        overview_path=overview,
    )


def _parse_leg(raw_leg: Any, leg_index: int, first_step_index: int) -> RouteLeg:
    if not isinstance(raw_leg, dict):
        raise MalformedResponseError(f"Leg {leg_index} is not an object")
    raw_steps = raw_leg.get("steps")
    if not isinstance(raw_steps, list):
        raise MalformedResponseError(f"Leg {leg_index} has no steps")
    steps = tuple(
        _parse_step(raw_step, first_step_index + offset, leg_index)
        for offset, raw_step in enumerate(raw_steps)
    )
    return RouteLeg(
        start=_coordinate(raw_leg, "start_location"),
        end=_coordinate(raw_leg, "end_location"),
        steps=steps,
        distance_m=_value(raw_leg, "distance"),
        duration_s=_value(raw_leg, "duration"),
        start_address=raw_leg.get("start_address"),
        end_address=raw_leg.get("end_address"),
    )


def _parse_step(raw_step: Any, index: int, leg_index: int) -> RouteStep:
    if not isinstance(raw_step, dict):
        raise MalformedResponseError(f"Step {index} is not an object")
    instruction = raw_step.get("html_instructions") or raw_step.get("instructions")
    return RouteStep(
        start=_coordinate(raw_step, "start_location"),
        end=_coordinate(raw_step, "end_location"),
        instruction=strip_html(instruction),
        index=index,
        leg_index=leg_index,
        distance_m=_value(raw_step, "distance"),
        duration_s=_value(raw_step, "duration"),
        path=_safe_path((raw_step.get("polyline") or {}).get("points")),
    )


def _coordinate(payload: Mapping[str, Any], key: str) -> Coordinate:
    raw = payload.get(key)
    if not isinstance(raw, dict):
        raise MalformedResponseError(f"Missing {key} in directions payload")
    try:
        return Coordinate(float(raw["lat"]), float(raw["lng"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedResponseError(f"Invalid {key} in directions payload") from exc


def _value(payload: Mapping[str, Any], key: str) -> float:
    """Return the numeric ``value`` of a ``{text, value}`` field, 0 when absent."""

    raw = payload.get(key)
    if not isinstance(raw, dict):
        return 0.0
    try:
        return float(raw.get("value", 0.0))
    except (TypeError, ValueError):
        return 0.0


def _safe_path(encoded: Any) -> Tuple[Coordinate, ...]:
    if not isinstance(encoded, str):
        return ()
    try:
        return tuple(decode_polyline(encoded))
    except ValueError as exc:
        LOGGER.debug("Ignoring undecodable polyline: %s", exc)
        return ()
