"""In-process publish/subscribe channel for proximity events."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Callable, Dict, List

from .models import ProximityEvent, ProximityEventKind

Listener = Callable[[ProximityEvent], None]

__all__ = ["ProximityEventBus", "Listener"]


class ProximityEventBus:
    """Deliver events to the listeners registered for their kind.

    Delivery is fire-and-forget: an event with no listener is dropped, and a
    failing listener is logged without affecting the others.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._listeners: Dict[ProximityEventKind, List[Listener]] = defaultdict(list)
        self._lock = threading.Lock()
        self._log = logger or logging.getLogger(self.__class__.__name__)

    def subscribe(
        self, kind: ProximityEventKind | str, listener: Listener
    ) -> Callable[[], None]:
        """Register ``listener`` for ``kind``; returns an unsubscribe callable."""

        key = ProximityEventKind(kind)
        with self._lock:
            self._listeners[key].append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                listeners = self._listeners.get(key, [])
                if listener in listeners:
                    listeners.remove(listener)

        return _unsubscribe

    def listener_count(self, kind: ProximityEventKind | str) -> int:
        with self._lock:
            return len(self._listeners.get(ProximityEventKind(kind), []))

    def publish(self, event: ProximityEvent) -> int:
        """Deliver ``event``; return how many listeners received it."""

        with self._lock:
            listeners = list(self._listeners.get(event.kind, []))
        if not listeners:
            self._log.debug("Dropping %s event: no listeners", event.kind.value)
            return 0
        delivered = 0
        for listener in listeners:
            try:
                listener(event)
            except Exception as exc:
                self._log.error(
                    "Listener for %s failed: %s",
                    event.kind.value,
                    exc,
                    exc_info=True,
                )
                continue
            delivered += 1
        return delivered
