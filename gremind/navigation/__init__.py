"""Navigation layer: progress tracking, reroute throttling, route planning.

Exports the pieces consumed by the CLI and by embedding applications.
"""

from .planner import RoutePlanner, split_destination
from .session import NavigationSession
from .settings import NavigationSettings
from .throttle import RerouteThrottle, ThrottleState
from .tracker import NOT_STARTED, ProgressAction, ProgressTracker, ProgressUpdate

__all__ = [
    "NOT_STARTED",
    "NavigationSession",
    "NavigationSettings",
    "ProgressAction",
    "ProgressTracker",
    "ProgressUpdate",
    "RerouteThrottle",
    "RoutePlanner",
    "ThrottleState",
    "split_destination",
]
