from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from threading import RLock
from typing import Any, Dict, Iterator, List, Mapping, Optional

import httpx

from .models import Task
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

# Columns the client may write; everything else is server-assigned.
WRITABLE_FIELDS = frozenset({"title", "description", "status", "priority", "due_date", "user_id"})


# PUBLIC_INTERFACE
class TaskStoreError(Exception):
    """A task store call failed. ``message`` is safe to show to the user."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


# PUBLIC_INTERFACE
class TaskNotFoundError(TaskStoreError):
    """No task with the requested id is visible to the current user."""

    def __init__(self, task_id: str) -> None:
        super().__init__("Task not found", status_code=404)
        self.task_id = task_id


# PUBLIC_INTERFACE
class TaskStore(ABC):
    """Abstract contract for the task table, scoped to one authenticated user."""

    @abstractmethod
    def insert(self, data: Mapping[str, Any]) -> Task:
        """Insert one task and return the stored record."""

    @abstractmethod
    def update(self, task_id: str, changes: Mapping[str, Any]) -> Task:
        """Update the given fields of a task and return the stored record."""

    @abstractmethod
    def delete(self, task_id: str) -> None:
        """Delete a task by id. Raises TaskNotFoundError if it does not exist."""

    @abstractmethod
    def get(self, task_id: str) -> Optional[Task]:
        """Return a task by id, or None if not found."""

    @abstractmethod
    def list(self) -> List[Task]:
        """Return the user's tasks, newest first."""


def _writable(data: Mapping[str, Any]) -> Dict[str, Any]:
    unknown = set(data) - WRITABLE_FIELDS
    if unknown:
        raise TaskStoreError(f"Unknown task field(s): {', '.join(sorted(unknown))}")
    return dict(data)


class TaskTable:
    """
    Thread-safe in-memory task table shared by every InMemoryTaskStore.
    Rows are stored as plain dicts, the way a remote backend would return them.
    """

    def __init__(self) -> None:
        self.lock = RLock()
        self.rows: Dict[str, Dict[str, Any]] = {}

    def clear(self) -> None:
        with self.lock:
            self.rows.clear()


class InMemoryTaskStore(TaskStore):
    """
    Task store backed by a process-local TaskTable, suitable for testing and
    the default runtime. Every call is restricted to rows owned by ``owner_id``,
    mirroring the row-level security of the hosted backend.
    """

    def __init__(self, table: TaskTable, owner_id: str) -> None:
        self._table = table
        self._owner_id = owner_id

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _owned(self, task_id: str) -> Optional[Dict[str, Any]]:
        row = self._table.rows.get(task_id)
        if row is None or row.get("user_id") != self._owner_id:
            return None
        return row

    def insert(self, data: Mapping[str, Any]) -> Task:
        payload = _writable(data)
        if payload.get("user_id", self._owner_id) != self._owner_id:
            raise TaskStoreError("Cannot create a task owned by another user")
        now = self._now()
        row: Dict[str, Any] = {
            "id": str(uuid.uuid4()),
            "title": payload.get("title"),
            "description": payload.get("description"),
            "status": payload.get("status", "pending"),
            "priority": payload.get("priority", "medium"),
            "due_date": payload.get("due_date"),
            "created_at": now,
            "updated_at": now,
            "user_id": self._owner_id,
        }
        # Validate before storing so a bad row never lands in the table.
        task = _to_task(row)
        with self._table.lock:
            self._table.rows[row["id"]] = row
        return task

    def update(self, task_id: str, changes: Mapping[str, Any]) -> Task:
        payload = _writable(changes)
        with self._table.lock:
            existing = self._owned(task_id)
            if existing is None:
                raise TaskNotFoundError(task_id)
            updated = existing.copy()
            updated.update(payload)
            updated["user_id"] = self._owner_id
            updated["updated_at"] = self._now()
            task = _to_task(updated)
            self._table.rows[task_id] = updated
            return task

    def delete(self, task_id: str) -> None:
        with self._table.lock:
            if self._owned(task_id) is None:
                raise TaskNotFoundError(task_id)
            del self._table.rows[task_id]

    def get(self, task_id: str) -> Optional[Task]:
        with self._table.lock:
            row = self._owned(task_id)
            return None if row is None else _to_task(row)

    def list(self) -> List[Task]:
        with self._table.lock:
            rows = [r.copy() for r in self._table.rows.values() if r.get("user_id") == self._owner_id]
        rows.sort(key=lambda r: r["created_at"], reverse=True)
        return [_to_task(r) for r in rows]


def _to_task(row: Mapping[str, Any]) -> Task:
    try:
        return Task.model_validate(row)
    except ValueError as e:
        # pydantic.ValidationError subclasses ValueError
        raise TaskStoreError("Received an invalid task record from the backend") from e


class RemoteTaskStore(TaskStore):
    """
    Task store talking to a hosted PostgREST-style backend over HTTP.

    The access token of the signed-in user is sent as a bearer token so the
    backend's row-level security scopes every query to that user.
    """

    OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"

    def __init__(
        self,
        client: httpx.Client,
        *,
        base_url: str,
        table: str,
        api_key: Optional[str],
        access_token: Optional[str],
        owner_id: Optional[str] = None,
    ) -> None:
        self._client = client
        self._endpoint = f"{base_url.rstrip('/')}/rest/v1/{table}"
        self._owner_id = owner_id
        self._headers: Dict[str, str] = {"Content-Type": "application/json"}
        if api_key:
            self._headers["apikey"] = api_key
        bearer = access_token or api_key
        if bearer:
            self._headers["Authorization"] = f"Bearer {bearer}"

    def _request(
        self,
        method: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        single: bool = False,
        prefer_representation: bool = False,
    ) -> httpx.Response:
        headers = dict(self._headers)
        if single:
            headers["Accept"] = self.OBJECT_MEDIA_TYPE
        if prefer_representation:
            headers["Prefer"] = "return=representation"
        try:
            return self._client.request(method, self._endpoint, params=params, json=json, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("Task store %s request failed: %s", method, e)
            raise TaskStoreError(str(e) or "Could not reach the task store") from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            for key in ("message", "msg", "error_description", "error"):
                if body.get(key):
                    return str(body[key])
        return f"Task store request failed with status {response.status_code}"

    def _raise_for_status(self, response: httpx.Response, task_id: Optional[str] = None) -> None:
        if response.is_success:
            return
        # 406 is PostgREST's answer to a single-object request matching zero rows.
        if task_id is not None and response.status_code in (404, 406):
            raise TaskNotFoundError(task_id)
        message = self._error_message(response)
        logger.warning("Task store responded %s: %s", response.status_code, message)
        raise TaskStoreError(message, status_code=response.status_code)

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            logger.warning("Task store sent an unreadable body (status %s)", response.status_code)
            raise TaskStoreError("Task store returned an invalid response", status_code=response.status_code) from e

    @staticmethod
    def _first(response: httpx.Response) -> Mapping[str, Any]:
        body = RemoteTaskStore._json(response)
        if isinstance(body, list):
            if not body:
                raise TaskStoreError("Task store returned no record")
            body = body[0]
        if not isinstance(body, dict):
            raise TaskStoreError("Task store returned an invalid response", status_code=response.status_code)
        return body

    def insert(self, data: Mapping[str, Any]) -> Task:
        payload = _writable(data)
        if self._owner_id is not None:
            payload.setdefault("user_id", self._owner_id)
        response = self._request("POST", json=[payload], prefer_representation=True)
        self._raise_for_status(response)
        task = _to_task(self._first(response))
        logger.info("Inserted task %s", task.id)
        return task

    def update(self, task_id: str, changes: Mapping[str, Any]) -> Task:
        response = self._request(
            "PATCH",
            params={"id": f"eq.{task_id}"},
            json=_writable(changes),
            single=True,
            prefer_representation=True,
        )
        self._raise_for_status(response, task_id)
        task = _to_task(self._first(response))
        logger.info("Updated task %s (%s)", task_id, ", ".join(sorted(changes)))
        return task

    def delete(self, task_id: str) -> None:
        response = self._request("DELETE", params={"id": f"eq.{task_id}"}, prefer_representation=True)
        self._raise_for_status(response, task_id)
        if response.content and self._json(response) == []:
            raise TaskNotFoundError(task_id)
        logger.info("Deleted task %s", task_id)

    def get(self, task_id: str) -> Optional[Task]:
        response = self._request("GET", params={"id": f"eq.{task_id}", "select": "*"}, single=True)
        try:
            self._raise_for_status(response, task_id)
        except TaskNotFoundError:
            return None
        return _to_task(self._first(response))

    def list(self) -> List[Task]:
        params = {"select": "*", "order": "created_at.desc"}
        if self._owner_id is not None:
            params["user_id"] = f"eq.{self._owner_id}"
        response = self._request("GET", params=params)
        self._raise_for_status(response)
        rows = self._json(response)
        if not isinstance(rows, list):
            raise TaskStoreError("Task store returned an invalid response", status_code=response.status_code)
        tasks = [_to_task(row) for row in rows]
        logger.debug("Listed %d task(s)", len(tasks))
        return tasks


_memory_table = TaskTable()


# PUBLIC_INTERFACE
def get_memory_table() -> TaskTable:
    """The process-wide table behind the memory backend."""
    return _memory_table


# PUBLIC_INTERFACE
def open_task_store(
    owner_id: str,
    access_token: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> Iterator[TaskStore]:
    """
    Yield the configured task store for one user and release its resources
    afterwards. Written as a generator so it can back a FastAPI dependency.
    - memory: InMemoryTaskStore over the shared process table
    - remote: RemoteTaskStore with its own httpx client
    """
    settings = settings or get_settings()
    if settings.taskstore_backend == "remote":
        if not settings.taskstore_url:
            raise TaskStoreError("TASKSTORE_URL must be set when TASKSTORE_BACKEND=remote")
        with httpx.Client() as client:
            yield RemoteTaskStore(
                client,
                base_url=settings.taskstore_url,
                table=settings.taskstore_table,
                api_key=settings.taskstore_api_key,
                access_token=access_token,
                owner_id=owner_id,
            )
        return
    yield InMemoryTaskStore(_memory_table, owner_id)
