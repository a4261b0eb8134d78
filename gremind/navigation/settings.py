"""Per-session navigation thresholds."""

from __future__ import annotations

from dataclasses import dataclass

from ..config import (
    DEFAULT_PROXIMITY_METERS,
    DEVIATION_THRESHOLD_METERS,
    GEOLOCATION_MAX_AGE_MS,
    PROXIMITY_EXIT_MARGIN_METERS,
    REROUTE_COOLDOWN_SECONDS,
    STEP_ARRIVAL_METERS,
    VOICE_ENABLED,
)


@dataclass(slots=True)
class NavigationSettings:
    proximity_m: float = DEFAULT_PROXIMITY_METERS
    deviation_m: float = DEVIATION_THRESHOLD_METERS
    step_arrival_m: float = STEP_ARRIVAL_METERS
    exit_margin_m: float = PROXIMITY_EXIT_MARGIN_METERS
    reroute_cooldown_s: float = REROUTE_COOLDOWN_SECONDS
    max_sample_age_ms: int = GEOLOCATION_MAX_AGE_MS
    voice_enabled: bool = VOICE_ENABLED

    def __post_init__(self) -> None:
        if self.proximity_m <= 0:
            raise ValueError("proximity_m must be > 0")
        if self.deviation_m <= 0:
            raise ValueError("deviation_m must be > 0")
        if self.step_arrival_m < 0:
            raise ValueError("step_arrival_m must be >= 0")
        if self.reroute_cooldown_s < 0:
            raise ValueError("reroute_cooldown_s must be >= 0")


__all__ = ["NavigationSettings"]
