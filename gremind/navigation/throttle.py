"""Cooldown gate limiting how often a reroute may be requested."""

from __future__ import annotations

import enum
import logging
import threading

from ..config import REROUTE_COOLDOWN_SECONDS

__all__ = ["RerouteThrottle", "ThrottleState"]


class ThrottleState(enum.Enum):
    IDLE = "idle"
    COOLING_DOWN = "cooling-down"


class RerouteThrottle:
    """Two-state gate: ``IDLE`` grants one acquisition, then ``COOLING_DOWN``.

    The cooldown ends on its own once ``cooldown_s`` has elapsed, whether or
    not the reroute it guarded succeeded. Time is always passed in by the
    caller (seconds on a monotonic scale).
    """

    def __init__(self, cooldown_s: float = REROUTE_COOLDOWN_SECONDS) -> None:
        if cooldown_s < 0:
            raise ValueError("cooldown_s must be >= 0")
        self._cooldown_s = cooldown_s
        self._lock = threading.Lock()
        self._state = ThrottleState.IDLE
        self._cooldown_until = 0.0

    def try_acquire(self, now: float) -> bool:
        with self._lock:
            if self._expired(now):
                self._state = ThrottleState.IDLE
            if self._state is ThrottleState.COOLING_DOWN:
                return False
            self._state = ThrottleState.COOLING_DOWN
            self._cooldown_until = now + self._cooldown_s
            logging.debug("Reroute throttle armed until %.3f", self._cooldown_until)
            return True

    def reset(self) -> None:
        """Clear the cooldown timer (session ended)."""

        with self._lock:
            self._state = ThrottleState.IDLE
            self._cooldown_until = 0.0

    def state(self, now: float) -> ThrottleState:
        with self._lock:
            if self._expired(now):
                return ThrottleState.IDLE
            return self._state

    def _expired(self, now: float) -> bool:
        return (
            self._state is ThrottleState.COOLING_DOWN and now >= self._cooldown_until
        )

    def snapshot(self) -> dict[str, float | str]:
        """Return current throttle state (used by tests and diagnostics)."""

        with self._lock:
            return {
                "state": self._state.value,
                "cooldown_until": self._cooldown_until,
                "cooldown_s": self._cooldown_s,
            }
