"""Central error types used across the application."""

from __future__ import annotations


class GRemindError(RuntimeError):
    """Base error for the navigation core."""


class ConfigurationError(GRemindError):
    """Raised when a required setting (API key, endpoint URL) is missing."""


class RouteValidationError(GRemindError, ValueError):
    """Raised before any network call when route inputs are missing or invalid."""


class RoutePlannerError(GRemindError):
    """Raised when the directions provider cannot produce a route."""


class DirectionsStatusError(RoutePlannerError):
    """Raised when the directions provider answers with a non-OK status."""

    def __init__(self, status: str, detail: str | None = None) -> None:
        self.status = status
        self.detail = detail
        message = f"Directions request failed with status {status}"
        if detail:
            message = f"{message} | {detail}"
        super().__init__(message)


class MalformedResponseError(RoutePlannerError):
    """Raised when a provider payload is missing expected fields."""


class PlacesAPIError(GRemindError):
    """Raised when a nearby-places search fails."""


class NotificationError(GRemindError):
    """Raised when a notification cannot be delivered."""


__all__ = [
    "GRemindError",
    "ConfigurationError",
    "RouteValidationError",
    "RoutePlannerError",
    "DirectionsStatusError",
    "MalformedResponseError",
    "PlacesAPIError",
    "NotificationError",
]
