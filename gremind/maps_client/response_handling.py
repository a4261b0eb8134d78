"""Shared HTTP response helpers for maps web-service interactions."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Type

import requests

from ..errors import MalformedResponseError

RequestsJSONDecodeError: Type[Exception] = requests.exceptions.JSONDecodeError

__all__ = [
    "extract_error",
    "parse_json_object",
]


def parse_json_object(response: requests.Response, context: str) -> Dict[str, Any]:
    """Return the decoded JSON object body or raise ``MalformedResponseError``."""

    data = _safe_json(response)
    if not isinstance(data, dict):
        raise MalformedResponseError(f"{context} returned a non-object JSON body")
    return data


def extract_error(resp: Optional[requests.Response]) -> Optional[str]:
    """Return compact string with provider error info (status + message) if present."""

    if resp is None:
        return None
    data = _safe_json(resp)
    if data is None:
        return _extract_error_text(resp)
    if not isinstance(data, dict):
        return None
    parts = _collect_error_parts(data)
    return " | ".join(parts) if parts else None


def _safe_json(resp: requests.Response) -> Optional[Any]:
    """Safely parse JSON; return None if parsing fails."""

    try:
        return resp.json()
    except (
        ValueError,
        RequestsJSONDecodeError,
    ) as exc:
        logging.debug(
            "Failed to decode JSON from %s: %s", getattr(resp, "url", "?"), exc
        )
        return None


def _extract_error_text(resp: requests.Response) -> Optional[str]:
    """Best-effort plain-text extraction when JSON parsing fails."""

    text = getattr(resp, "text", "")
    if not isinstance(text, str):
        return None
    trimmed = text.strip()
    if not trimmed:
        return None
    return (trimmed[:297] + "...") if len(trimmed) > 300 else trimmed


def _collect_error_parts(data: Dict[str, Any]) -> List[str]:
    """Build error snippets from the standard Google web-service envelope."""

    parts: List[str] = []
    status = data.get("status")
    if status and status != "OK":
        parts.append(str(status))
    message = data.get("error_message")
    if message:
        parts.append(str(message))
    error = data.get("error")
    if isinstance(error, dict):
        if error.get("message"):
            parts.append(str(error["message"]))
    elif error:
        parts.append(str(error))
    return parts
