import json

import httpx
import pytest

from taskapp.models import TaskStatus
from taskapp.store import (
    InMemoryTaskStore,
    RemoteTaskStore,
    TaskNotFoundError,
    TaskStoreError,
    TaskTable,
)

ROW = {
    "id": "11111111-2222-3333-4444-555555555555",
    "title": "Remote task",
    "description": None,
    "status": "pending",
    "priority": "medium",
    "due_date": None,
    "created_at": "2025-01-25T10:15:30.123456+00:00",
    "updated_at": "2025-01-25T10:15:30.123456+00:00",
    "user_id": "user-1",
}


class TestInMemoryTaskStore:
    def test_insert_assigns_id_and_timestamps(self):
        store = InMemoryTaskStore(TaskTable(), "user-1")
        task = store.insert({"title": "A", "priority": "high"})
        assert task.id
        assert task.user_id == "user-1"
        assert task.created_at == task.updated_at
        assert store.get(task.id) == task

    def test_update_advances_updated_at(self):
        store = InMemoryTaskStore(TaskTable(), "user-1")
        task = store.insert({"title": "A"})
        updated = store.update(task.id, {"status": "completed"})
        assert updated.status is TaskStatus.COMPLETED
        assert updated.created_at == task.created_at
        assert updated.updated_at >= task.updated_at

    def test_owners_cannot_see_each_other(self):
        table = TaskTable()
        alice = InMemoryTaskStore(table, "alice")
        bob = InMemoryTaskStore(table, "bob")
        task = alice.insert({"title": "Private"})

        assert bob.get(task.id) is None
        assert bob.list() == []
        with pytest.raises(TaskNotFoundError):
            bob.update(task.id, {"title": "Hijacked"})
        with pytest.raises(TaskNotFoundError):
            bob.delete(task.id)
        with pytest.raises(TaskStoreError):
            bob.insert({"title": "Spoofed", "user_id": "alice"})

    def test_delete_and_missing(self):
        store = InMemoryTaskStore(TaskTable(), "user-1")
        task = store.insert({"title": "A"})
        store.delete(task.id)
        assert store.get(task.id) is None
        with pytest.raises(TaskNotFoundError):
            store.delete(task.id)

    def test_invalid_rows_are_rejected(self):
        store = InMemoryTaskStore(TaskTable(), "user-1")
        with pytest.raises(TaskStoreError):
            store.insert({"title": "A", "status": "archived"})
        with pytest.raises(TaskStoreError):
            store.insert({"title": "A", "colour": "red"})
        assert store.list() == []


def remote_store(handler, **kwargs):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return RemoteTaskStore(
        client,
        base_url="https://backend.example.com/",
        table="tasks",
        api_key="anon-key",
        access_token=kwargs.pop("access_token", "user-token"),
        owner_id="user-1",
    )


class TestRemoteTaskStore:
    def test_insert_posts_with_owner_and_returns_record(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json=[ROW])

        task = remote_store(handler).insert({"title": "Remote task", "description": None})

        assert task.id == ROW["id"]
        assert seen["method"] == "POST"
        assert seen["path"] == "/rest/v1/tasks"
        assert seen["body"] == [{"title": "Remote task", "description": None, "user_id": "user-1"}]
        assert seen["headers"]["apikey"] == "anon-key"
        assert seen["headers"]["authorization"] == "Bearer user-token"
        assert seen["headers"]["prefer"] == "return=representation"

    def test_update_patches_by_id_as_single_object(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["params"] = dict(request.url.params)
            seen["accept"] = request.headers["accept"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={**ROW, "status": "completed"})

        task = remote_store(handler).update(ROW["id"], {"status": "completed"})

        assert task.status is TaskStatus.COMPLETED
        assert seen["method"] == "PATCH"
        assert seen["params"] == {"id": f"eq.{ROW['id']}"}
        assert seen["accept"] == RemoteTaskStore.OBJECT_MEDIA_TYPE
        assert seen["body"] == {"status": "completed"}

    def test_update_of_missing_row_is_not_found(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(406, json={"message": "JSON object requested, multiple (or no) rows returned"})

        with pytest.raises(TaskNotFoundError):
            remote_store(handler).update("missing", {"status": "completed"})

    def test_error_body_message_is_surfaced(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"message": "new row violates check constraint"})

        with pytest.raises(TaskStoreError) as excinfo:
            remote_store(handler).insert({"title": "x"})
        assert excinfo.value.message == "new row violates check constraint"
        assert excinfo.value.status_code == 400

    def test_transport_errors_become_store_errors(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TaskStoreError) as excinfo:
            remote_store(handler).list()
        assert "connection refused" in excinfo.value.message

    def test_list_orders_newest_first_for_owner(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=[ROW, {**ROW, "id": "2", "description": ""}])

        tasks = remote_store(handler).list()

        assert [t.id for t in tasks] == [ROW["id"], "2"]
        assert tasks[1].description is None
        assert seen["params"] == {"select": "*", "order": "created_at.desc", "user_id": "eq.user-1"}

    def test_get_missing_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(406, json={"message": "no rows"})

        assert remote_store(handler).get("nope") is None

    def test_delete_of_nothing_is_not_found(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "DELETE"
            return httpx.Response(200, json=[])

        with pytest.raises(TaskNotFoundError):
            remote_store(handler).delete("nope")

    def test_delete_returns_quietly(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[ROW])

        remote_store(handler).delete(ROW["id"])

    def test_empty_success_body_is_a_store_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(201, content=b"")

        with pytest.raises(TaskStoreError) as excinfo:
            remote_store(handler).insert({"title": "x"})
        assert excinfo.value.message == "Task store returned an invalid response"

    def test_non_json_list_body_is_a_store_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>gateway page</html>", headers={"content-type": "text/html"})

        with pytest.raises(TaskStoreError):
            remote_store(handler).list()
        with pytest.raises(TaskStoreError):
            remote_store(handler).get(ROW["id"])
        with pytest.raises(TaskStoreError):
            remote_store(handler).delete(ROW["id"])
