"""Position-sample sources.

The navigation session only depends on the :class:`GeolocationSource`
protocol. :class:`ReplayGeolocationSource` replays a recorded trace and backs
the ``replay`` command and the test-suite.
"""

from __future__ import annotations

import enum
import itertools
import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Union

from .config import (
    GEOLOCATION_HIGH_ACCURACY,
    GEOLOCATION_MAX_AGE_MS,
    GEOLOCATION_TIMEOUT_MS,
)
from .models import Coordinate, PositionSample

LOGGER = logging.getLogger(__name__)

SampleCallback = Callable[[PositionSample], None]
ErrorCallback = Callable[["GeolocationError"], None]
PathLike = Union[str, Path]

__all__ = [
    "GeolocationErrorCode",
    "GeolocationError",
    "GeolocationOptions",
    "GeolocationSource",
    "ReplayGeolocationSource",
    "load_trace",
]


class GeolocationErrorCode(enum.IntEnum):
    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3


class GeolocationError(Exception):
    """Error reported by a position source (permission, signal loss, timeout)."""

    def __init__(self, code: GeolocationErrorCode, message: str = "") -> None:
        self.code = code
        self.message = message or code.name.replace("_", " ").lower()
        super().__init__(self.message)


@dataclass(frozen=True, slots=True)
class GeolocationOptions:
    high_accuracy: bool = GEOLOCATION_HIGH_ACCURACY
    maximum_age_ms: int = GEOLOCATION_MAX_AGE_MS
    timeout_ms: int = GEOLOCATION_TIMEOUT_MS


class GeolocationSource(Protocol):
    def subscribe(
        self,
        on_sample: SampleCallback,
        on_error: Optional[ErrorCallback] = None,
        options: Optional[GeolocationOptions] = None,
    ) -> int: ...

    def unsubscribe(self, handle: int) -> None: ...


@dataclass(slots=True)
class _Subscription:
    on_sample: SampleCallback
    on_error: Optional[ErrorCallback]
    options: GeolocationOptions


class ReplayGeolocationSource:
    """Deliver a recorded list of samples (and optional errors) in order."""

    def __init__(self, samples: Iterable[PositionSample] = ()) -> None:
        self._samples: List[PositionSample] = list(samples)
        self._subscriptions: Dict[int, _Subscription] = {}
        self._handles = itertools.count(1)
        self._lock = threading.Lock()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def subscribe(
        self,
        on_sample: SampleCallback,
        on_error: Optional[ErrorCallback] = None,
        options: Optional[GeolocationOptions] = None,
    ) -> int:
        with self._lock:
            handle = next(self._handles)
            self._subscriptions[handle] = _Subscription(
                on_sample, on_error, options or GeolocationOptions()
            )
        LOGGER.debug("Geolocation subscriber %d registered", handle)
        return handle

    def unsubscribe(self, handle: int) -> None:
        with self._lock:
            removed = self._subscriptions.pop(handle, None)
        if removed is not None:
            LOGGER.debug("Geolocation subscriber %d removed", handle)

    def push(self, sample: PositionSample) -> int:
        """Deliver one sample to every current subscriber; return deliveries."""

        delivered = 0
        for handle in self._active_handles():
            subscription = self._lookup(handle)
            # Unsubscribed by an earlier callback in this round.
            if subscription is None:
                continue
            subscription.on_sample(sample)
            delivered += 1
        return delivered

    def fail(self, error: GeolocationError) -> None:
        for handle in self._active_handles():
            subscription = self._lookup(handle)
            if subscription is not None and subscription.on_error is not None:
                subscription.on_error(error)

    def replay(self) -> int:
        """Push every recorded sample; stops early once nobody is listening."""

        delivered = 0
        for sample in self._samples:
            if not self.subscriber_count:
                break
            delivered += self.push(sample)
        return delivered

    def _active_handles(self) -> List[int]:
        with self._lock:
            return list(self._subscriptions)

    def _lookup(self, handle: int) -> Optional[_Subscription]:
        with self._lock:
            return self._subscriptions.get(handle)


def _sample_from_json(raw: Dict[str, Any]) -> PositionSample:
    lng = raw.get("lng", raw.get("lon"))
    timestamp = raw.get("timestampMs", raw.get("timestamp_ms"))
    if raw.get("lat") is None or lng is None or timestamp is None:
        raise ValueError(f"Trace entry missing lat/lng/timestampMs: {raw}")
    accuracy = raw.get("accuracy")
    return PositionSample(
        coordinate=Coordinate(float(raw["lat"]), float(lng)),
        timestamp_ms=int(timestamp),
        accuracy_m=float(accuracy) if accuracy is not None else None,
    )


def load_trace(path: PathLike) -> List[PositionSample]:
    """Read a JSON trace ``[{"lat", "lng", "timestampMs", "accuracy"?}, ...]``."""

    with open(path, "r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, list):
        raise ValueError(f"Trace file {path} must contain a JSON list")
    samples = [_sample_from_json(entry) for entry in payload]
    LOGGER.info("Loaded %d position samples from %s", len(samples), path)
    return samples
