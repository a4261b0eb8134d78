"""HTTP endpoint suggesting nearby stops for route reoptimization.

``GET /api/reoptimize?keyword=pharmacy&lat=..&lng=..&radius=5000`` answers
with ``[{name, lat, lng, placeId, vicinity}, ...]``.
"""

from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, jsonify, request
from flask.typing import ResponseReturnValue

from .config import REOPTIMIZE_DEFAULT_RADIUS
from .errors import GRemindError
from .maps_client.places import PlacesAPI
from .models import Coordinate

LOGGER = logging.getLogger(__name__)

__all__ = ["create_app"]


def create_app(places_api: Optional[PlacesAPI] = None) -> Flask:
    """Build the Flask app; ``places_api`` is injectable for tests."""

    app = Flask(__name__)
    places = places_api or PlacesAPI()

    @app.get("/api/reoptimize")
    def reoptimize() -> ResponseReturnValue:
        keyword = (request.args.get("keyword") or "").strip()
        lat = request.args.get("lat")
        lng = request.args.get("lng")
        radius_raw = request.args.get("radius") or str(REOPTIMIZE_DEFAULT_RADIUS)

        if not keyword or not lat or not lng:
            return jsonify({"error": "Missing parameters"}), 400
        try:
            location = Coordinate(float(lat), float(lng))
            radius = int(float(radius_raw))
        except ValueError:
            return jsonify({"error": "Invalid parameters"}), 400
        if radius <= 0:
            return jsonify({"error": "Invalid parameters"}), 400

        try:
            results = places.nearby_search(keyword, location, radius)
        except GRemindError as exc:
            LOGGER.error("reoptimize error: %s", exc)
            return jsonify({"error": "Failed to call Places API"}), 500
        return jsonify([place.to_dict() for place in results]), 200

    return app
