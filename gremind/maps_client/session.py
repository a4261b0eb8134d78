"""Pooled HTTP sessions for the maps web services and the push relay."""

from __future__ import annotations

import threading
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config import (
    HTTP_BACKOFF_FACTOR,
    HTTP_MAX_RETRIES,
    HTTP_POOL_CONNECTIONS,
    HTTP_POOL_MAXSIZE,
    HTTP_USER_AGENT,
)

__all__ = ["create_default_session", "get_default_session"]

# Google answers quota problems with 429 or a 200 + status envelope; only
# transport-level failures are retried here.
RETRY_STATUSES = (429, 500, 502, 503, 504)

_default_session: Optional[requests.Session] = None
_default_lock = threading.Lock()


def create_default_session(
    *,
    retries: int = HTTP_MAX_RETRIES,
    backoff_factor: float = HTTP_BACKOFF_FACTOR,
) -> requests.Session:
    """Build a session that retries idempotent calls and honours Retry-After.

    The final failing response is returned rather than raised so callers can
    surface the provider's error envelope.
    """

    retry = Retry(
        total=max(0, retries),
        backoff_factor=backoff_factor,
        status_forcelist=RETRY_STATUSES,
        allowed_methods=frozenset({"GET"}),
        respect_retry_after_header=True,
        raise_on_status=False,
    )
    adapter = HTTPAdapter(
        pool_connections=HTTP_POOL_CONNECTIONS,
        pool_maxsize=HTTP_POOL_MAXSIZE,
        max_retries=retry,
    )
    session = requests.Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update(
        {"Accept": "application/json", "User-Agent": HTTP_USER_AGENT}
    )
    return session


def get_default_session() -> requests.Session:
    """Return the process-wide session, creating it on first use."""

    global _default_session
    with _default_lock:
        if _default_session is None:
            _default_session = create_default_session()
        return _default_session
