"""
UI components. Each one takes its collaborators (store, notifier, callbacks)
explicitly and knows nothing about HTTP; the routers build them per request.
"""
from .dashboard import TaskList
from .landing import resolve_landing
from .task_card import TaskCard
from .task_form import FormState, TaskForm

__all__ = ["FormState", "TaskCard", "TaskForm", "TaskList", "resolve_landing"]
