"""General utility helpers shared across modules."""

from __future__ import annotations

import html
import re
from typing import List

from polyline import decode as polyline_decode

from .models import Coordinate

_TAG_RE = re.compile(r"<[^>]+>")
_BLOCK_TAG_RE = re.compile(r"<\s*(div|br|p)\b[^>]*>", re.IGNORECASE)
_SPACE_RE = re.compile(r"\s+")


def strip_html(text: str | None) -> str:
    """Return plain text for provider HTML such as ``html_instructions``."""

    if not text:
        return ""
    # Block tags separate sentences ("Turn left<div>Destination on right</div>").
    spaced = _BLOCK_TAG_RE.sub(" ", text)
    plain = html.unescape(_TAG_RE.sub("", spaced))
    return _SPACE_RE.sub(" ", plain).strip()


def decode_polyline(encoded: str | None) -> List[Coordinate]:
    """Decode an encoded polyline string into coordinates."""

    if not encoded:
        return []
    try:
        decoded = polyline_decode(encoded)
    except (ValueError, TypeError, IndexError) as exc:
        raise ValueError("Unable to decode polyline") from exc
    return [Coordinate(float(lat), float(lng)) for lat, lng in decoded]


def format_distance(meters: float) -> str:
    """Format a distance as ``850 m`` or ``1.2 km``."""

    if meters < 1000:
        return f"{int(round(meters))} m"
    return f"{meters / 1000:.1f} km"
