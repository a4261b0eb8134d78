"""Nearby-places search used by the reoptimization endpoint."""

from __future__ import annotations

import logging
from threading import RLock
from typing import Any, Dict, List, Tuple

import requests
from cachetools import TTLCache

from ..config import (
    GOOGLE_MAPS_API_KEY,
    PLACES_CACHE_SIZE,
    PLACES_CACHE_TTL_SECONDS,
    PLACES_NEARBY_URL,
    REOPTIMIZE_DEFAULT_RADIUS,
    REQUEST_TIMEOUT,
)
from ..errors import ConfigurationError, MalformedResponseError, PlacesAPIError
from ..models import Coordinate, Place
from .response_handling import extract_error, parse_json_object
from .session import get_default_session

LOGGER = logging.getLogger(__name__)

_CacheKey = Tuple[str, float, float, int]

__all__ = ["PlacesAPI"]


class PlacesAPI:
    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        api_key: str | None = None,
        base_url: str = PLACES_NEARBY_URL,
        timeout: float = REQUEST_TIMEOUT,
        cache_size: int = PLACES_CACHE_SIZE,
        cache_ttl: float = PLACES_CACHE_TTL_SECONDS,
    ) -> None:
        self._session = session or get_default_session()
        self._api_key = GOOGLE_MAPS_API_KEY if api_key is None else api_key
        self._base_url = base_url
        self._timeout = timeout
        self._cache: TTLCache[_CacheKey, List[Place]] = TTLCache(
            maxsize=max(1, cache_size), ttl=cache_ttl
        )
        self._cache_lock = RLock()

    def nearby_search(
        self,
        keyword: str,
        location: Coordinate,
        radius: int = REOPTIMIZE_DEFAULT_RADIUS,
    ) -> List[Place]:
        """Return places matching ``keyword`` around ``location``.

        An empty list means the provider found nothing; failures raise
        :class:`PlacesAPIError`.
        """

        if not self._api_key:
            raise ConfigurationError("Google Maps API key is not configured.")
        # ~1 m of rounding keeps jittery GPS fixes on the same cache entry.
        cache_key: _CacheKey = (
            keyword.strip().lower(),
            round(location.lat, 5),
            round(location.lng, 5),
            int(radius),
        )
        with self._cache_lock:
            cached = self._cache.get(cache_key)
        if cached is not None:
            LOGGER.debug("Places cache hit for %s", cache_key)
            return list(cached)

        params: Dict[str, Any] = {
            "keyword": keyword,
            "location": str(location),
            "radius": int(radius),
            "key": self._api_key,
        }
        try:
            response = self._session.get(
                self._base_url, params=params, timeout=self._timeout
            )
        except requests.exceptions.RequestException as exc:
            raise PlacesAPIError(f"Places request failed: {exc}") from exc

        if response.status_code >= 400:
            detail = extract_error(response)
            message = f"Places request failed (HTTP {response.status_code})"
            raise PlacesAPIError(f"{message} | {detail}" if detail else message)

        try:
            data = parse_json_object(response, "Places")
        except MalformedResponseError as exc:
            raise PlacesAPIError(str(exc)) from exc

        status = data.get("status")
        results = data.get("results")
        if status == "ZERO_RESULTS" or (status == "OK" and not results):
            places: List[Place] = []
        elif status == "OK" and isinstance(results, list):
            places = [
                place for place in (_parse_place(raw) for raw in results) if place
            ]
        else:
            detail = extract_error(response)
            raise PlacesAPIError(
                f"Places search failed with status {status}"
                + (f" | {detail}" if detail else "")
            )

        with self._cache_lock:
            self._cache[cache_key] = places
        LOGGER.info(
            "Places search keyword=%r near %s returned %d results",
            keyword,
            location,
            len(places),
        )
        return list(places)

    def clear_cache(self) -> None:
        with self._cache_lock:
            self._cache.clear()


def _parse_place(raw: Any) -> Place | None:
    if not isinstance(raw, dict):
        return None
    try:
        location = raw["geometry"]["location"]
        return Place(
            name=str(raw.get("name") or ""),
            lat=float(location["lat"]),
            lng=float(location["lng"]),
            place_id=raw.get("place_id"),
            vicinity=raw.get("vicinity"),
        )
    except (KeyError, TypeError, ValueError) as exc:
        LOGGER.debug("Skipping malformed place entry: %s", exc)
        return None
