from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Dict, Optional, Union

from ..display import (
    STATUS_LABELS,
    format_date,
    is_overdue,
    priority_color,
    status_color,
    status_label,
)
from ..models import Task, TaskStatus
from ..notifications import Notification, Notifier
from ..store import TaskStore, TaskStoreError

logger = logging.getLogger(__name__)

DELETE_CONFIRMATION = "Are you sure you want to delete this task?"


# PUBLIC_INTERFACE
class TaskCard:
    """
    One task with its derived display attributes and a quick status control.

    The card never mutates its own task: after a successful status change the
    server's record is handed to ``on_update`` and the parent list decides
    what to show.
    """

    def __init__(
        self,
        task: Task,
        store: TaskStore,
        notifier: Notifier,
        *,
        on_edit: Callable[[Task], None],
        on_delete: Callable[[str], None],
        on_update: Callable[[Task], None],
    ) -> None:
        self.task = task
        self._store = store
        self._notifier = notifier
        self._on_edit = on_edit
        self._on_delete = on_delete
        self._on_update = on_update
        self.updating = False

    @property
    def status_class(self) -> str:
        return status_color(self.task.status)

    @property
    def priority_class(self) -> str:
        return priority_color(self.task.priority)

    def is_overdue(self, today: Optional[date] = None) -> bool:
        return is_overdue(self.task.due_date, self.task.status, today)

    def edit(self) -> None:
        self._on_edit(self.task)

    def change_status(self, new_status: Union[TaskStatus, str]) -> Optional[Task]:
        """
        Write only the status field. Returns the server's record on success,
        None on failure (the error is shown and the card keeps its task).
        """
        self.updating = True
        try:
            status = TaskStatus(new_status)
            updated = self._store.update(self.task.id, {"status": status.value})
        except TaskStoreError as e:
            logger.warning("Quick status update of task %s failed: %s", self.task.id, e.message)
            self._notifier.notify(Notification.error(e.message or "Failed to update task status"))
            return None
        except ValueError:
            self._notifier.notify(Notification.error("Failed to update task status"))
            return None
        finally:
            self.updating = False

        self._on_update(updated)
        self._notifier.notify(Notification.success("Task status updated successfully"))
        return updated

    def request_delete(self, confirm: Callable[[str], bool]) -> bool:
        """Ask for confirmation, then hand the id to ``on_delete``. No undo."""
        if not confirm(DELETE_CONFIRMATION):
            return False
        self._on_delete(self.task.id)
        return True

    def view(self, today: Optional[date] = None) -> Dict[str, Any]:
        """Template context for rendering the card."""
        task = self.task
        return {
            "task": task,
            "status_class": self.status_class,
            "priority_class": self.priority_class,
            "status_text": status_label(task.status),
            "priority_text": task.priority.value,
            "due_text": format_date(task.due_date),
            "created_text": format_date(task.created_at),
            "overdue": self.is_overdue(today),
            "updating": self.updating,
            "status_options": [(s.value, label) for s, label in STATUS_LABELS.items()],
            "delete_confirmation": DELETE_CONFIRMATION,
        }
