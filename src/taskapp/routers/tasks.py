from __future__ import annotations

from typing import Any, Dict, Iterator, Optional

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from ..auth import AuthContext, LoginRequired, require_auth
from ..components.dashboard import TaskList
from ..components.task_form import TaskForm
from ..models import Task
from ..notifications import Notification, SessionNotifier
from ..store import TaskStore, TaskStoreError, open_task_store
from ..templating import render

router = APIRouter(
    prefix="/dashboard",
    tags=["dashboard"],
)

DASHBOARD_PATH = "/dashboard"


def get_task_store(auth: AuthContext = Depends(require_auth)) -> Iterator[TaskStore]:
    """
    Dependency yielding a store scoped to the signed-in user.
    """
    if auth.user_id is None:
        raise LoginRequired()
    yield from open_task_store(auth.user_id, auth.access_token)


def get_task_list(
    request: Request,
    auth: AuthContext = Depends(require_auth),
    store: TaskStore = Depends(get_task_store),
) -> TaskList:
    if auth.user_id is None:
        raise LoginRequired()
    return TaskList(store, SessionNotifier(request.session), user_id=auth.user_id)


def _to_dashboard() -> RedirectResponse:
    return RedirectResponse(DASHBOARD_PATH, status_code=status.HTTP_303_SEE_OTHER)


def _lookup(tasks: TaskList, store: TaskStore, task_id: str) -> Optional[Task]:
    """Find a task for a mutation; queue a 'not found' error when it is gone."""
    try:
        task = store.get(task_id)
    except TaskStoreError as e:
        tasks.notify(Notification.error(e.message))
        return None
    if task is None:
        tasks.notify(Notification.error("Task not found"))
    return task


def _render_dashboard(
    request: Request,
    auth: AuthContext,
    tasks: TaskList,
    form: Optional[TaskForm] = None,
    status_code: int = 200,
) -> Response:
    tasks.load()
    context: Dict[str, Any] = {
        "user": auth.user,
        "counts": tasks.counts(),
        "cards": [tasks.card(t).view() for t in tasks.tasks],
        "form": form.view() if form is not None else None,
    }
    return render(request, "dashboard.html", context, status_code=status_code)


def _form_values(title: str, description: str, status_value: str, priority: str, due_date: str) -> Dict[str, str]:
    return {
        "title": title,
        "description": description,
        "status": status_value,
        "priority": priority,
        "due_date": due_date,
    }


# PUBLIC_INTERFACE
@router.get("", response_class=HTMLResponse, summary="Dashboard")
def dashboard(
    request: Request,
    auth: AuthContext = Depends(require_auth),
    tasks: TaskList = Depends(get_task_list),
) -> Response:
    """List the signed-in user's tasks, newest first."""
    return _render_dashboard(request, auth, tasks)


# PUBLIC_INTERFACE
@router.get("/tasks/new", response_class=HTMLResponse, summary="New task form")
def new_task(
    request: Request,
    auth: AuthContext = Depends(require_auth),
    tasks: TaskList = Depends(get_task_list),
) -> Response:
    tasks.open_create()
    return _render_dashboard(request, auth, tasks, form=tasks.form())


# PUBLIC_INTERFACE
@router.get("/tasks/{task_id}/edit", response_class=HTMLResponse, summary="Edit task form")
def edit_task(
    task_id: str,
    request: Request,
    auth: AuthContext = Depends(require_auth),
    tasks: TaskList = Depends(get_task_list),
    store: TaskStore = Depends(get_task_store),
) -> Response:
    task = _lookup(tasks, store, task_id)
    if task is None:
        return _to_dashboard()
    tasks.card(task).edit()
    return _render_dashboard(request, auth, tasks, form=tasks.form(tasks.editing))


# PUBLIC_INTERFACE
@router.post("/tasks", response_class=HTMLResponse, summary="Create task")
def create_task(
    request: Request,
    title: str = Form(""),
    description: str = Form(""),
    status_value: str = Form("pending", alias="status"),
    priority: str = Form("medium"),
    due_date: str = Form(""),
    auth: AuthContext = Depends(require_auth),
    tasks: TaskList = Depends(get_task_list),
) -> Response:
    """
    Submit the create form. Redirects to the dashboard once saved; otherwise
    re-renders the open form with its values (422 for validation errors).
    """
    form = tasks.form()
    saved = form.submit(_form_values(title, description, status_value, priority, due_date))
    if saved is not None:
        return _to_dashboard()
    code = status.HTTP_422_UNPROCESSABLE_ENTITY if form.errors else status.HTTP_200_OK
    return _render_dashboard(request, auth, tasks, form=form, status_code=code)


# PUBLIC_INTERFACE
@router.post("/tasks/{task_id}", response_class=HTMLResponse, summary="Update task")
def update_task(
    task_id: str,
    request: Request,
    title: str = Form(""),
    description: str = Form(""),
    status_value: str = Form("pending", alias="status"),
    priority: str = Form("medium"),
    due_date: str = Form(""),
    auth: AuthContext = Depends(require_auth),
    tasks: TaskList = Depends(get_task_list),
    store: TaskStore = Depends(get_task_store),
) -> Response:
    task = _lookup(tasks, store, task_id)
    if task is None:
        return _to_dashboard()
    form = tasks.form(task)
    saved = form.submit(_form_values(title, description, status_value, priority, due_date))
    if saved is not None:
        return _to_dashboard()
    code = status.HTTP_422_UNPROCESSABLE_ENTITY if form.errors else status.HTTP_200_OK
    return _render_dashboard(request, auth, tasks, form=form, status_code=code)


# PUBLIC_INTERFACE
@router.post("/tasks/{task_id}/status", summary="Quick status update")
def change_task_status(
    task_id: str,
    status_value: str = Form(..., alias="status"),
    tasks: TaskList = Depends(get_task_list),
    store: TaskStore = Depends(get_task_store),
) -> Response:
    """Write only the status field; the outcome is shown on the dashboard."""
    task = _lookup(tasks, store, task_id)
    if task is not None:
        tasks.card(task).change_status(status_value)
    return _to_dashboard()


# PUBLIC_INTERFACE
@router.post("/tasks/{task_id}/delete", summary="Delete task")
def delete_task(
    task_id: str,
    confirm: str = Form(""),
    tasks: TaskList = Depends(get_task_list),
    store: TaskStore = Depends(get_task_store),
) -> Response:
    """
    Delete a task. The browser asks for confirmation and sends confirm=yes;
    without it nothing is deleted.
    """
    task = _lookup(tasks, store, task_id)
    if task is not None:
        tasks.card(task).request_delete(lambda _message: confirm == "yes")
    return _to_dashboard()
