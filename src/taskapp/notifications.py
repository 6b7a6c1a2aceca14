from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, List, MutableMapping, Protocol

SESSION_KEY = "_notifications"


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Notification:
    """A transient message shown once to the user."""

    title: str
    description: str
    variant: str = "default"  # default | destructive

    @classmethod
    def success(cls, description: str) -> "Notification":
        return cls(title="Success", description=description)

    @classmethod
    def error(cls, description: str) -> "Notification":
        return cls(title="Error", description=description, variant="destructive")


class Notifier(Protocol):
    def notify(self, notification: Notification) -> None: ...


class SessionNotifier:
    """
    Queue notifications in the signed session so they survive the redirect
    that usually follows a form post. Rendered and cleared by pop_notifications.
    """

    def __init__(self, session: MutableMapping[str, Any]) -> None:
        self._session = session

    def notify(self, notification: Notification) -> None:
        queued = list(self._session.get(SESSION_KEY, []))
        queued.append(asdict(notification))
        self._session[SESSION_KEY] = queued


def pop_notifications(session: MutableMapping[str, Any]) -> List[Notification]:
    raw = session.pop(SESSION_KEY, None) or []
    return [Notification(**item) for item in raw]
