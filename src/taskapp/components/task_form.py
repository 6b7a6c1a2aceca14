from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

from ..display import PRIORITY_LABELS, STATUS_LABELS
from ..models import Task
from ..notifications import Notification, Notifier
from ..schemas import FORM_FIELDS, form_values_from_task, validate_task_form
from ..store import TaskStore, TaskStoreError

logger = logging.getLogger(__name__)


class FormState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    CLOSED = "closed"


# PUBLIC_INTERFACE
class TaskForm:
    """
    Create-or-edit form for a task.

    Editing when ``task`` is given, creating otherwise. A submit moves the
    form from idle to submitting and then either to closed (saved, via
    ``on_save``) or back to idle with an error shown and the submitted values
    kept for another try. Validation failures never reach the store.
    """

    def __init__(
        self,
        store: TaskStore,
        notifier: Notifier,
        *,
        user_id: Optional[str],
        on_save: Callable[[Task], None],
        on_cancel: Callable[[], None],
        task: Optional[Task] = None,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._user_id = user_id
        self._on_save = on_save
        self._on_cancel = on_cancel
        self.task = task
        self.state = FormState.IDLE
        self.values: Dict[str, str] = form_values_from_task(task)
        self.errors: Dict[str, str] = {}

    @property
    def is_edit(self) -> bool:
        return self.task is not None

    @property
    def submitting(self) -> bool:
        return self.state is FormState.SUBMITTING

    @property
    def heading(self) -> str:
        return "Edit Task" if self.is_edit else "Create New Task"

    @property
    def subheading(self) -> str:
        return "Update your task details" if self.is_edit else "Add a new task to your list"

    @property
    def submit_label(self) -> str:
        if self.submitting:
            return "Saving..."
        return "Update Task" if self.is_edit else "Create Task"

    def submit(self, values: Mapping[str, Any]) -> Optional[Task]:
        """
        Validate and save. Returns the server's record on success and None
        otherwise. Ignored while a previous submit is still in flight.
        """
        if self.state is not FormState.IDLE:
            return None

        self.values = {name: "" if values.get(name) is None else str(values.get(name)) for name in FORM_FIELDS}
        result = validate_task_form(values)
        data = result.data
        if data is None:
            self.errors = result.errors_by_field()
            return None
        self.errors = {}

        if self._user_id is None:
            # Nothing to stamp the task with; the caller should have required a session.
            return None

        self.state = FormState.SUBMITTING
        saved: Optional[Task] = None
        try:
            if self.task is not None:
                saved = self._store.update(self.task.id, data.to_record())
            else:
                saved = self._store.insert(data.to_record(user_id=self._user_id))
        except TaskStoreError as e:
            logger.warning("Saving task failed: %s", e.message)
            self._notifier.notify(Notification.error(e.message or "Failed to save task"))
            return None
        finally:
            self.state = FormState.CLOSED if saved is not None else FormState.IDLE

        self._on_save(saved)
        self._notifier.notify(
            Notification.success("Task updated successfully" if self.is_edit else "Task created successfully")
        )
        return saved

    def cancel(self) -> None:
        """Discard the form without persisting anything."""
        self.state = FormState.CLOSED
        self._on_cancel()

    def view(self) -> Dict[str, Any]:
        return {
            "task": self.task,
            "heading": self.heading,
            "subheading": self.subheading,
            "submit_label": self.submit_label,
            "busy_label": "Saving...",
            "submitting": self.submitting,
            "field_values": self.values,
            "errors": self.errors,
            "status_options": [(s.value, label) for s, label in STATUS_LABELS.items()],
            "priority_options": [(p.value, label) for p, label in PRIORITY_LABELS.items()],
        }
