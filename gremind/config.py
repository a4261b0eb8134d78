"""Central configuration for the G-Remind navigation core.

All values are constants imported by the rest of the package. Adjust as needed
for your environment. Secrets are read from environment variables (optionally
via a local `.env`).
"""

from __future__ import annotations

import os

from dotenv import load_dotenv


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


# Load .env from the current directory or any parent folder.
load_dotenv()


# ---------------------------------------------------------------------------
# Maps provider settings
# ---------------------------------------------------------------------------
# Key shared by the Directions and Places web services. The NEXT_PUBLIC_
# variant is accepted so the web app's .env can be reused as-is.
GOOGLE_MAPS_API_KEY = os.getenv("GOOGLE_MAPS_API_KEY") or os.getenv(
    "NEXT_PUBLIC_GOOGLE_MAPS_API_KEY", ""
)

DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"
PLACES_NEARBY_URL = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"

# driving, walking, bicycling or transit.
TRAVEL_MODE = os.getenv("TRAVEL_MODE", "driving").strip().lower() or "driving"


# ---------------------------------------------------------------------------
# Navigation thresholds
# ---------------------------------------------------------------------------
# Distance (metres) from the final destination at which the traveler counts
# as arrived and a near-destination alert is raised.
DEFAULT_PROXIMITY_METERS = _env_float("DEFAULT_PROXIMITY_METERS", 100.0)

# Distance (metres) from the current step's end beyond which the traveler is
# off-route and a new route is requested.
DEVIATION_THRESHOLD_METERS = _env_float("DEVIATION_THRESHOLD_METERS", 200.0)

# A step is complete once the traveler is this close (metres) to its end.
STEP_ARRIVAL_METERS = _env_float("STEP_ARRIVAL_METERS", 25.0)

# Extra distance beyond the proximity threshold before leaving the
# destination area counts as an exit. Avoids flapping on GPS jitter.
PROXIMITY_EXIT_MARGIN_METERS = _env_float("PROXIMITY_EXIT_MARGIN_METERS", 20.0)

# Minimum spacing between two reroute requests.
REROUTE_COOLDOWN_SECONDS = _env_float("REROUTE_COOLDOWN_SECONDS", 8.0)


# ---------------------------------------------------------------------------
# Geolocation
# ---------------------------------------------------------------------------
GEOLOCATION_HIGH_ACCURACY = _env_bool("GEOLOCATION_HIGH_ACCURACY", True)
# Samples older than this are stale and ignored.
GEOLOCATION_MAX_AGE_MS = _env_int("GEOLOCATION_MAX_AGE_MS", 5000)
GEOLOCATION_TIMEOUT_MS = _env_int("GEOLOCATION_TIMEOUT_MS", 10000)


# ---------------------------------------------------------------------------
# Voice
# ---------------------------------------------------------------------------
VOICE_ENABLED = _env_bool("VOICE_ENABLED", True)
# Words per minute passed to the speech engine.
VOICE_RATE = _env_int("VOICE_RATE", 150)


# ---------------------------------------------------------------------------
# Places / reoptimization endpoint
# ---------------------------------------------------------------------------
REOPTIMIZE_DEFAULT_RADIUS = 5000

# Nearby-search responses are cached briefly; places rarely move.
PLACES_CACHE_SIZE = _env_int("PLACES_CACHE_SIZE", 128)
PLACES_CACHE_TTL_SECONDS = _env_int("PLACES_CACHE_TTL_SECONDS", 300)

API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = _env_int("API_PORT", 9002)


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
# Push relay receiving background notifications. Empty disables push delivery.
PUSH_ENDPOINT_URL = os.getenv("PUSH_ENDPOINT_URL", "")


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------
# Request timeout in seconds.
REQUEST_TIMEOUT = 15

# HTTP session pool sizes.
HTTP_POOL_CONNECTIONS = 10
HTTP_POOL_MAXSIZE = 10

# Transport-level retries for 429/5xx answers (provider quota or outages).
HTTP_MAX_RETRIES = _env_int("HTTP_MAX_RETRIES", 3)
HTTP_BACKOFF_FACTOR = _env_float("HTTP_BACKOFF_FACTOR", 0.5)
HTTP_USER_AGENT = "gremind-navigation/0.1"
