"""Render a planned route and a travelled trace as an interactive HTML map."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence, Union

import folium

from ..config import DEFAULT_PROXIMITY_METERS
from ..geo import distance
from ..models import Coordinate, Route
from ..navigation.tracker import find_closest_step

PathLike = Union[str, Path]

_ROUTE_COLOR = "#1f77b4"
_TRACE_COLOR = "#ff7f0e"
_OFF_ROUTE_COLOR = "#d62728"
_DESTINATION_COLOR = "#2ca02c"


def _route_points(route: Route) -> List[Coordinate]:
    """Return the drawable path: step polylines, falling back to step ends."""

    if route.overview_path:
        return list(route.overview_path)
    points: List[Coordinate] = []
    for step in route.steps:
        if step.path:
            points.extend(step.path)
        else:
            points.extend((step.start, step.end))
    return points


def _as_latlon(points: Sequence[Coordinate]) -> List[tuple[float, float]]:
    return [point.as_tuple() for point in points]


def build_route_map(
    route: Route,
    trace: Sequence[Coordinate] = (),
    *,
    deviation_m: Optional[float] = None,
    output_html: Optional[PathLike] = None,
) -> folium.Map:
    """Create a map of ``route`` with the optional travelled ``trace``.

    Args:
        route: Route to draw; each step end gets a numbered marker.
        trace: Positions actually travelled, in order.
        deviation_m: When set, trace points farther than this from every step
            end are highlighted as off-route.
        output_html: Optional path where the rendered HTML map is saved.

    Returns:
        The :class:`folium.Map` holding the overlay.
    """

    path = _route_points(route)
    center = path[0] if path else route.destination
    folium_map = folium.Map(
        location=center.as_tuple(), zoom_start=15, control_scale=True
    )

    if len(path) >= 2:
        folium.PolyLine(
            _as_latlon(path),
            color=_ROUTE_COLOR,
            weight=6,
            opacity=0.8,
            tooltip="Planned route",
        ).add_to(folium_map)

    for step in route.steps:
        folium.CircleMarker(
            location=step.end.as_tuple(),
            radius=4,
            color=_ROUTE_COLOR,
            fill=True,
            tooltip=f"{step.index}: {step.instruction}",
        ).add_to(folium_map)

    folium.Marker(
        location=route.destination.as_tuple(),
        tooltip="Destination",
        icon=folium.Icon(color="green"),
    ).add_to(folium_map)

    if len(trace) >= 2:
        folium.PolyLine(
            _as_latlon(trace),
            color=_TRACE_COLOR,
            weight=4,
            opacity=0.6,
            tooltip="Travelled trace",
        ).add_to(folium_map)

    if deviation_m is not None and route.steps:
        for point in trace:
            _idx, nearest = find_closest_step(point, route.steps)
            if nearest <= deviation_m:
                continue
            folium.CircleMarker(
                location=point.as_tuple(),
                radius=6,
                color=_OFF_ROUTE_COLOR,
                fill=True,
                fill_color=_OFF_ROUTE_COLOR,
                tooltip=f"Off-route ({nearest:.0f} m)",
            ).add_to(folium_map)

    if trace:
        final_gap = distance(trace[-1], route.destination)
        arrived = final_gap <= DEFAULT_PROXIMITY_METERS
        folium.CircleMarker(
            location=trace[-1].as_tuple(),
            radius=7,
            color=_DESTINATION_COLOR if arrived else _TRACE_COLOR,
            fill=True,
            tooltip=f"Last position ({final_gap:.0f} m to destination)",
        ).add_to(folium_map)

    if output_html is not None:
        output_path = Path(output_html)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        folium_map.save(str(output_path))

    return folium_map


__all__ = ["build_route_map"]
