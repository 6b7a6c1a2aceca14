from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from .models import Task, TaskPriority, TaskStatus, parse_due_date

TITLE_MAX_LENGTH = 100

FORM_FIELDS = ("title", "description", "status", "priority", "due_date")


# PUBLIC_INTERFACE
class TaskFormData(BaseModel):
    """
    Validated and normalized task form input.

    Blank description and due_date collapse to None; the title is stripped.
    Error messages are user-facing and rendered next to the offending field.
    """

    title: str = Field(..., description="Short title for the task", max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Lifecycle state")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Relative importance")
    due_date: Optional[date] = Field(default=None, description="Optional due date")

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Any) -> str:
        """
        Strip whitespace and enforce 1..100 length.
        """
        s = v.strip() if isinstance(v, str) else ""
        if not s:
            raise PydanticCustomError("title_required", "Title is required")
        if len(s) > TITLE_MAX_LENGTH:
            raise PydanticCustomError(
                "title_too_long", "Title must be less than 100 characters"
            )
        return s

    @field_validator("description", mode="before")
    @classmethod
    def blank_description_is_absent(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        s = str(v)
        return s if s.strip() else None

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v: Any) -> TaskStatus:
        try:
            return TaskStatus(v)
        except ValueError:
            raise PydanticCustomError(
                "status_invalid", "Status must be one of: pending, in_progress, completed"
            ) from None

    @field_validator("priority", mode="before")
    @classmethod
    def validate_priority(cls, v: Any) -> TaskPriority:
        try:
            return TaskPriority(v)
        except ValueError:
            raise PydanticCustomError(
                "priority_invalid", "Priority must be one of: low, medium, high"
            ) from None

    @field_validator("due_date", mode="before")
    @classmethod
    def validate_due_date(cls, v: Any) -> Optional[date]:
        try:
            return parse_due_date(v)
        except ValueError:
            raise PydanticCustomError("due_date_invalid", "Due date must be a valid date") from None

    def to_record(self, user_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Build the payload written to the task store. Absent optionals are sent
        as None so an update clears them; user_id is stamped only when given.
        """
        record: Dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "due_date": self.due_date.isoformat() if self.due_date else None,
        }
        if user_id is not None:
            record["user_id"] = user_id
        return record


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


@dataclass(frozen=True)
class FormResult:
    """Outcome of validate_task_form: either data or a non-empty list of errors."""

    data: Optional[TaskFormData] = None
    errors: List[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.data is not None and not self.errors

    def errors_by_field(self) -> Dict[str, str]:
        """First error message per field, in form order."""
        out: Dict[str, str] = {}
        for err in self.errors:
            out.setdefault(err.field, err.message)
        return out


# PUBLIC_INTERFACE
def validate_task_form(values: Mapping[str, Any]) -> FormResult:
    """
    Validate raw form values without touching the network.

    Missing keys are treated like blank inputs, so an absent title fails with
    "Title is required" rather than a generic missing-field error.
    """
    raw = {
        "title": values.get("title", ""),
        "description": values.get("description"),
        "status": values.get("status") or TaskStatus.PENDING.value,
        "priority": values.get("priority") or TaskPriority.MEDIUM.value,
        "due_date": values.get("due_date"),
    }
    try:
        return FormResult(data=TaskFormData(**raw))
    except ValidationError as exc:
        errors = [
            FieldError(field=str(e["loc"][0]) if e["loc"] else "__all__", message=e["msg"])
            for e in exc.errors()
        ]
        return FormResult(errors=errors)


# PUBLIC_INTERFACE
def form_values_from_task(task: Optional[Task]) -> Dict[str, str]:
    """Initial form values: the task's fields, or defaults for a new task."""
    if task is None:
        return {
            "title": "",
            "description": "",
            "status": TaskStatus.PENDING.value,
            "priority": TaskPriority.MEDIUM.value,
            "due_date": "",
        }
    return {
        "title": task.title,
        "description": task.description or "",
        "status": task.status.value,
        "priority": task.priority.value,
        "due_date": task.due_date.isoformat() if task.due_date else "",
    }
