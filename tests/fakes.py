# tests/fakes.py

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Set

from taskapp.auth import LocalAuthProvider
from taskapp.models import Task
from taskapp.notifications import Notification
from taskapp.store import InMemoryTaskStore, TaskStore, TaskStoreError, TaskTable


class RecordingNotifier:
    """Notifier that keeps every notification for assertions."""

    def __init__(self) -> None:
        self.sent: List[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.sent.append(notification)

    @property
    def last(self) -> Optional[Notification]:
        return self.sent[-1] if self.sent else None


class FlakyTaskStore(TaskStore):
    """
    In-memory store that records calls and fails the operations named in
    ``failing`` with a network-style TaskStoreError.
    """

    def __init__(self, owner_id: str = "user-1", failing: Optional[Set[str]] = None) -> None:
        self.inner = InMemoryTaskStore(TaskTable(), owner_id)
        self.failing = set(failing or ())
        self.calls: List[str] = []

    def _check(self, op: str) -> None:
        self.calls.append(op)
        if op in self.failing:
            raise TaskStoreError("Network request failed")

    def insert(self, data: Mapping[str, Any]) -> Task:
        self._check("insert")
        return self.inner.insert(data)

    def update(self, task_id: str, changes: Mapping[str, Any]) -> Task:
        self._check("update")
        return self.inner.update(task_id, changes)

    def delete(self, task_id: str) -> None:
        self._check("delete")
        self.inner.delete(task_id)

    def get(self, task_id: str) -> Optional[Task]:
        self._check("get")
        return self.inner.get(task_id)

    def list(self) -> List[Task]:
        self._check("list")
        return self.inner.list()


class HostedAuthProvider(LocalAuthProvider):
    """Local provider that takes callback tokens, the way the hosted service does."""

    accepts_external_tokens = True
