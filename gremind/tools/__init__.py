"""Supplementary tooling for inspecting navigation runs."""

from .route_map import build_route_map

__all__ = ["build_route_map"]
