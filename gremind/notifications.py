"""User-visible alerts for proximity events.

:class:`ProximityNotifier` listens on a :class:`ProximityEventBus` and turns
events into alerts on a presenter. Presenters honour the platform permission
state: a denied permission silently disables alerts, an undecided one
triggers a permission request and drops the alert.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

import requests

from .config import PUSH_ENDPOINT_URL, REQUEST_TIMEOUT
from .errors import ConfigurationError, NotificationError
from .events import ProximityEventBus
from .maps_client.session import get_default_session
from .models import (
    ExitedWithoutConfirmationEvent,
    NearDestinationEvent,
    NotificationAction,
    NotificationOptions,
    ProximityEvent,
    ProximityEventKind,
)

LOGGER = logging.getLogger(__name__)

ChoiceCallback = Callable[[str, bool], None]


class ArrivalConfirmer(Protocol):
    def confirm_arrival(self, task_id: str | None = None) -> bool: ...


ACTION_YES = "yes"
ACTION_NO = "no"
COMPLETION_ACTIONS = (
    NotificationAction(action=ACTION_YES, title="Yes"),
    NotificationAction(action=ACTION_NO, title="Not Yet"),
)

__all__ = [
    "ArrivalConfirmer",
    "NotificationPermission",
    "NotificationPresenter",
    "LoggingNotificationPresenter",
    "PushNotificationPresenter",
    "ProximityNotifier",
    "build_push_payload",
]


class NotificationPermission(str, enum.Enum):
    GRANTED = "granted"
    DENIED = "denied"
    DEFAULT = "default"


class NotificationPresenter(Protocol):
    permission: NotificationPermission

    def request_permission(self) -> NotificationPermission: ...

    def present(
        self, title: str, body: str, options: NotificationOptions
    ) -> None: ...


def build_push_payload(
    title: str, body: str, options: NotificationOptions
) -> Dict[str, Any]:
    """Return the JSON body understood by the background push relay."""

    return {
        "title": title,
        "body": body,
        "tag": options.tag,
        "data": dict(options.data),
        "requireInteraction": options.require_interaction,
        "actions": [
            {"action": action.action, "title": action.title}
            for action in options.actions
        ],
    }


class LoggingNotificationPresenter:
    """Log alerts and keep them in memory (CLI and dry runs)."""

    def __init__(
        self, permission: NotificationPermission = NotificationPermission.GRANTED
    ) -> None:
        self.permission = permission
        self.presented: List[Tuple[str, str, NotificationOptions]] = []

    def request_permission(self) -> NotificationPermission:
        if self.permission is NotificationPermission.DEFAULT:
            self.permission = NotificationPermission.GRANTED
        return self.permission

    def present(self, title: str, body: str, options: NotificationOptions) -> None:
        actions = ", ".join(a.title for a in options.actions)
        LOGGER.info(
            "[notification] %s | %s%s",
            title,
            body,
            f" [{actions}]" if actions else "",
        )
        self.presented.append((title, body, options))


class PushNotificationPresenter:
    """Deliver alerts through a push relay so they survive a backgrounded app."""

    def __init__(
        self,
        endpoint_url: str = PUSH_ENDPOINT_URL,
        *,
        session: requests.Session | None = None,
        timeout: float = REQUEST_TIMEOUT,
        permission: NotificationPermission = NotificationPermission.GRANTED,
    ) -> None:
        if not endpoint_url:
            raise ConfigurationError("PUSH_ENDPOINT_URL is not configured.")
        self._endpoint_url = endpoint_url
        self._session = session or get_default_session()
        self._timeout = timeout
        self.permission = permission

    def request_permission(self) -> NotificationPermission:
        # Subscription consent is granted out of band when the relay is set up.
        return self.permission

    def present(self, title: str, body: str, options: NotificationOptions) -> None:
        payload = build_push_payload(title, body, options)
        try:
            response = self._session.post(
                self._endpoint_url, json=payload, timeout=self._timeout
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as exc:
            raise NotificationError(f"Push delivery failed: {exc}") from exc
        LOGGER.debug("Pushed notification tag=%s", options.tag)


class ProximityNotifier:
    """Bridge proximity events to alerts and alert choices back to the caller."""

    def __init__(
        self,
        bus: ProximityEventBus,
        presenter: NotificationPresenter,
        *,
        on_choice: Optional[ChoiceCallback] = None,
        session: Optional[ArrivalConfirmer] = None,
    ) -> None:
        self._bus = bus
        self._presenter = presenter
        self._on_choice = on_choice
        self._session = session
        self._unsubscribers: List[Callable[[], None]] = []

    def attach(self) -> "ProximityNotifier":
        if not self._unsubscribers:
            self._unsubscribers = [
                self._bus.subscribe(
                    ProximityEventKind.NEAR_DESTINATION, self._on_near_destination
                ),
                self._bus.subscribe(
                    ProximityEventKind.EXITED_WITHOUT_CONFIRMATION, self._on_exited
                ),
            ]
        return self

    def detach(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def handle_action(self, action: str, task_id: str) -> None:
        """Apply the user's answer to a completion prompt.

        ``"yes"`` confirms arrival on the attached session (when its task
        matches); ``on_choice`` is told about both answers.
        """

        if action not in (ACTION_YES, ACTION_NO):
            LOGGER.warning("Ignoring unknown notification action %r", action)
            return
        LOGGER.info("Task %s completion answer: %s", task_id, action)
        if action == ACTION_YES and self._session is not None:
            self._session.confirm_arrival(task_id)
        if self._on_choice is not None:
            self._on_choice(task_id, action == ACTION_YES)

    def _on_near_destination(self, event: ProximityEvent) -> None:
        if not isinstance(event, NearDestinationEvent):
            return
        self._show(
            f"Nearby: You're {event.distance_m}m away",
            "You are near a location for one of your tasks.",
            NotificationOptions(tag=f"{event.task_id}_proximity"),
        )

    def _on_exited(self, event: ProximityEvent) -> None:
        if not isinstance(event, ExitedWithoutConfirmationEvent):
            return
        self._show(
            "Did you complete the task?",
            'Tap "Yes" if you completed it.',
            NotificationOptions(
                actions=COMPLETION_ACTIONS,
                require_interaction=True,
                tag=event.task_id,
                data={"taskId": event.task_id},
            ),
        )

    def _show(self, title: str, body: str, options: NotificationOptions) -> None:
        permission = self._presenter.permission
        if permission is NotificationPermission.DENIED:
            LOGGER.debug("Notifications denied; skipping %r", title)
            return
        if permission is not NotificationPermission.GRANTED:
            LOGGER.info("Requesting notification permission; dropping %r", title)
            self._presenter.request_permission()
            return
        try:
            self._presenter.present(title, body, options)
        except NotificationError as exc:
            LOGGER.warning("Notification %r not delivered: %s", title, exc)
