from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union


@dataclass(frozen=True, slots=True)
class Coordinate:
    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"Latitude out of range: {self.lat}")
        if not -180.0 <= self.lng <= 180.0:
            raise ValueError(f"Longitude out of range: {self.lng}")

    @classmethod
    def parse(cls, text: str) -> "Coordinate":
        """Build a coordinate from a ``"lat,lng"`` string."""

        parts = [part.strip() for part in str(text).split(",")]
        if len(parts) != 2:
            raise ValueError(f"Expected 'lat,lng', got {text!r}")
        try:
            lat, lng = float(parts[0]), float(parts[1])
        except ValueError as exc:
            raise ValueError(f"Expected 'lat,lng', got {text!r}") from exc
        return cls(lat, lng)

    def as_tuple(self) -> Tuple[float, float]:
        return (self.lat, self.lng)

    def __str__(self) -> str:
        return f"{self.lat},{self.lng}"


# Addresses, place names and "lat,lng" strings are all accepted by the provider.
Location = Union[Coordinate, str]


@dataclass(frozen=True, slots=True)
class RouteStep:
    start: Coordinate
    end: Coordinate
    instruction: str
    index: int = 0
    leg_index: int = 0
    distance_m: float = 0.0
    duration_s: float = 0.0
    path: Tuple[Coordinate, ...] = ()


@dataclass(frozen=True, slots=True)
class RouteLeg:
    start: Coordinate
    end: Coordinate
    steps: Tuple[RouteStep, ...]
    distance_m: float = 0.0
    duration_s: float = 0.0
    start_address: str | None = None
    end_address: str | None = None


@dataclass(frozen=True, slots=True)
class Route:
    legs: Tuple[RouteLeg, ...]
    destination: Coordinate
    waypoints: Tuple[Location, ...] = ()
    waypoint_order: Tuple[int, ...] = ()
    overview_path: Tuple[Coordinate, ...] = ()

    @property
    def steps(self) -> List[RouteStep]:
        """All steps of all legs, in travel order."""

        return [step for leg in self.legs for step in leg.steps]

    @property
    def distance_m(self) -> float:
        return sum(leg.distance_m for leg in self.legs)

    @property
    def duration_s(self) -> float:
        return sum(leg.duration_s for leg in self.legs)


@dataclass(frozen=True, slots=True)
class PositionSample:
    coordinate: Coordinate
    timestamp_ms: int
    accuracy_m: Optional[float] = None


class ProximityEventKind(str, Enum):
    NEAR_DESTINATION = "near-destination"
    EXITED_WITHOUT_CONFIRMATION = "exited-without-confirmation"


@dataclass(frozen=True, slots=True)
class NearDestinationEvent:
    distance_m: int
    task_id: str | None = None

    @property
    def kind(self) -> ProximityEventKind:
        return ProximityEventKind.NEAR_DESTINATION


@dataclass(frozen=True, slots=True)
class ExitedWithoutConfirmationEvent:
    task_id: str

    @property
    def kind(self) -> ProximityEventKind:
        return ProximityEventKind.EXITED_WITHOUT_CONFIRMATION


ProximityEvent = Union[NearDestinationEvent, ExitedWithoutConfirmationEvent]


@dataclass(slots=True)
class Place:
    name: str
    lat: float
    lng: float
    place_id: str | None = None
    vicinity: str | None = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "lat": self.lat,
            "lng": self.lng,
            "placeId": self.place_id,
            "vicinity": self.vicinity,
        }


@dataclass(slots=True)
class NotificationAction:
    action: str
    title: str


@dataclass(slots=True)
class NotificationOptions:
    actions: Sequence[NotificationAction] = ()
    require_interaction: bool = False
    tag: str | None = None
    data: Dict[str, Any] = field(default_factory=dict)
