"""Great-circle helpers shared by the tracker, planner and tools."""

from __future__ import annotations

import math

from .models import Coordinate

EARTH_RADIUS_M = 6_371_000.0


def distance(first: Coordinate, second: Coordinate) -> float:
    """Return the haversine distance between two coordinates in metres."""

    sin = math.sin
    cos = math.cos
    radians = math.radians
    lat1_rad = radians(first.lat)
    lat2_rad = radians(second.lat)
    delta_lat = lat2_rad - lat1_rad
    delta_lon = radians(second.lng - first.lng)
    sin_half_lat = sin(delta_lat / 2.0)
    sin_half_lon = sin(delta_lon / 2.0)
    a = sin_half_lat**2 + cos(lat1_rad) * cos(lat2_rad) * sin_half_lon**2
    # Rounding can push ``a`` a hair above 1 for antipodal points.
    a = min(1.0, a)
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_M * c


def parse_latlng(text: str) -> Coordinate:
    """Parse a ``"lat,lng"`` string, raising ``ValueError`` when malformed."""

    return Coordinate.parse(text)


def format_latlng(coordinate: Coordinate) -> str:
    return str(coordinate)


__all__ = ["EARTH_RADIUS_M", "distance", "format_latlng", "parse_latlng"]
