from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, field_validator

DueDateInput = Union[date, datetime, str]


# PUBLIC_INTERFACE
class TaskStatus(str, Enum):
    """Lifecycle state of a task."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# PUBLIC_INTERFACE
class TaskPriority(str, Enum):
    """Relative importance of a task."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def parse_due_date(value: Optional[DueDateInput]) -> Optional[date]:
    """
    Normalize a due date coming from the backend or a form into a plain date.
    - None and blank strings are treated as absent.
    - Datetimes (and ISO datetime strings) are reduced to their date part.
    - Plain ISO date strings are parsed as-is.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            return date.fromisoformat(s)
        except ValueError:
            pass
        try:
            # fromisoformat on older interpreters does not accept a trailing 'Z'
            return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
        except ValueError as e:
            raise ValueError(
                "Invalid due_date format. Use an ISO8601 date (e.g., '2025-01-31')."
            ) from e

    raise ValueError("Invalid type for due_date; expected date, datetime, or ISO8601 string.")


# PUBLIC_INTERFACE
class Task(BaseModel):
    """
    A task record as returned by the task store.

    Empty-string description and due_date are normalized to None on read so
    that "absent" has a single representation throughout the app.
    """

    id: str = Field(..., description="Opaque server-assigned identifier")
    title: str = Field(..., description="Short title for the task", min_length=1)
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Lifecycle state")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Relative importance")
    due_date: Optional[date] = Field(default=None, description="Optional due date")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
    user_id: Optional[str] = Field(default=None, description="Owner of the task")

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def coerce_identifier(cls, v: Any) -> Any:
        """Backends may hand back integer or UUID keys; the app treats them as opaque strings."""
        return v if v is None else str(v)

    @field_validator("description", mode="before")
    @classmethod
    def blank_description_is_absent(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v if str(v).strip() else None

    @field_validator("due_date", mode="before")
    @classmethod
    def normalize_due_date(cls, v: Optional[DueDateInput]) -> Optional[date]:
        return parse_due_date(v)
