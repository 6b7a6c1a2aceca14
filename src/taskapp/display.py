"""
Display mapping for tasks: badge classes, labels and the overdue flag.

Everything here is pure so templates and components can share it.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Dict, Optional, Union

from .models import TaskPriority, TaskStatus

DEFAULT_BADGE_CLASS = "badge badge-default"

_STATUS_CLASSES: Dict[TaskStatus, str] = {
    TaskStatus.PENDING: "badge badge-pending",
    TaskStatus.IN_PROGRESS: "badge badge-in-progress",
    TaskStatus.COMPLETED: "badge badge-completed",
}

_PRIORITY_CLASSES: Dict[TaskPriority, str] = {
    TaskPriority.HIGH: "badge badge-high",
    TaskPriority.MEDIUM: "badge badge-medium",
    TaskPriority.LOW: "badge badge-low",
}

STATUS_LABELS: Dict[TaskStatus, str] = {
    TaskStatus.PENDING: "Pending",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.COMPLETED: "Completed",
}

PRIORITY_LABELS: Dict[TaskPriority, str] = {
    TaskPriority.LOW: "Low",
    TaskPriority.MEDIUM: "Medium",
    TaskPriority.HIGH: "High",
}


# PUBLIC_INTERFACE
def status_color(status: Union[TaskStatus, str, None]) -> str:
    """Badge class for a status; unknown values get the default class."""
    try:
        return _STATUS_CLASSES[TaskStatus(status)]
    except ValueError:
        return DEFAULT_BADGE_CLASS


# PUBLIC_INTERFACE
def priority_color(priority: Union[TaskPriority, str, None]) -> str:
    """Badge class for a priority; unknown values get the default class."""
    try:
        return _PRIORITY_CLASSES[TaskPriority(priority)]
    except ValueError:
        return DEFAULT_BADGE_CLASS


# PUBLIC_INTERFACE
def is_overdue(
    due_date: Optional[date],
    status: Union[TaskStatus, str, None],
    today: Optional[date] = None,
) -> bool:
    """
    A task is overdue when it has a due date strictly before today and is not
    completed. Comparing dates is the same as comparing against today's midnight.
    """
    if due_date is None:
        return False
    today = today or date.today()
    return due_date < today and status != TaskStatus.COMPLETED


def status_label(status: Union[TaskStatus, str]) -> str:
    try:
        return STATUS_LABELS[TaskStatus(status)]
    except ValueError:
        return str(status).replace("_", " ")


def format_date(value: Union[date, datetime, None]) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        value = value.date()
    return value.strftime("%b %d, %Y")
