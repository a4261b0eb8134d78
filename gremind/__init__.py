"""G-Remind navigation and proximity core."""

from .errors import GRemindError, RoutePlannerError, RouteValidationError
from .events import ProximityEventBus
from .main import main
from .models import Coordinate, PositionSample, Route, RouteLeg, RouteStep
from .navigation import NavigationSession, NavigationSettings, RoutePlanner

__all__ = [
    "main",
    "Coordinate",
    "PositionSample",
    "Route",
    "RouteLeg",
    "RouteStep",
    "NavigationSession",
    "NavigationSettings",
    "RoutePlanner",
    "ProximityEventBus",
    "GRemindError",
    "RoutePlannerError",
    "RouteValidationError",
]
