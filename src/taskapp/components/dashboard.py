from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from ..models import Task, TaskStatus
from ..notifications import Notification, Notifier
from ..store import TaskStore, TaskStoreError
from .task_card import TaskCard
from .task_form import TaskForm

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class TaskList:
    """
    Parent controller for a user's task list.

    Owns the local copy of the tasks and keeps it in step with the callbacks
    fired by TaskCard and TaskForm. The store stays the source of truth; the
    local list only mirrors records the store has returned.
    """

    def __init__(self, store: TaskStore, notifier: Notifier, *, user_id: str) -> None:
        self._store = store
        self._notifier = notifier
        self.user_id = user_id
        self.tasks: List[Task] = []
        self.editing: Optional[Task] = None
        self.form_open = False

    def load(self) -> bool:
        try:
            self.tasks = self._store.list()
        except TaskStoreError as e:
            logger.warning("Loading tasks failed: %s", e.message)
            self._notifier.notify(Notification.error(e.message or "Failed to load tasks"))
            return False
        return True

    def notify(self, notification: Notification) -> None:
        self._notifier.notify(notification)

    def find(self, task_id: str) -> Optional[Task]:
        return next((t for t in self.tasks if t.id == task_id), None)

    def counts(self) -> Dict[str, int]:
        out = {"total": len(self.tasks)}
        for status in TaskStatus:
            out[status.value] = sum(1 for t in self.tasks if t.status is status)
        return out

    # Callbacks handed to the child components

    def open_create(self) -> None:
        self.editing = None
        self.form_open = True

    def open_edit(self, task: Task) -> None:
        self.editing = task
        self.form_open = True

    def close_form(self) -> None:
        self.editing = None
        self.form_open = False

    def handle_save(self, task: Task) -> None:
        if self.find(task.id) is None:
            self.tasks.insert(0, task)
        else:
            self.handle_update(task)
        self.close_form()

    def handle_update(self, task: Task) -> None:
        self.tasks = [task if t.id == task.id else t for t in self.tasks]

    def handle_delete(self, task_id: str) -> bool:
        try:
            self._store.delete(task_id)
        except TaskStoreError as e:
            logger.warning("Deleting task %s failed: %s", task_id, e.message)
            self._notifier.notify(Notification.error(e.message or "Failed to delete task"))
            return False
        self.tasks = [t for t in self.tasks if t.id != task_id]
        self._notifier.notify(Notification.success("Task deleted successfully"))
        return True

    # Component factories wired to this list

    def card(self, task: Task) -> TaskCard:
        return TaskCard(
            task,
            self._store,
            self._notifier,
            on_edit=self.open_edit,
            on_delete=self.handle_delete,
            on_update=self.handle_update,
        )

    def form(self, task: Optional[Task] = None, on_cancel: Optional[Callable[[], None]] = None) -> TaskForm:
        return TaskForm(
            self._store,
            self._notifier,
            user_id=self.user_id,
            task=task,
            on_save=self.handle_save,
            on_cancel=on_cancel or self.close_form,
        )
