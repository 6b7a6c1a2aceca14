from datetime import date, timedelta

import pytest

from taskapp.components.task_card import DELETE_CONFIRMATION, TaskCard
from taskapp.display import DEFAULT_BADGE_CLASS
from taskapp.models import TaskStatus


def seed_task(store, **overrides):
    data = {"title": "Card task", "status": "pending", "priority": "medium", "user_id": "user-1"}
    data.update(overrides)
    return store.inner.insert(data)


class Recorder:
    def __init__(self):
        self.edited = []
        self.deleted = []
        self.updated = []


@pytest.fixture()
def recorder():
    return Recorder()


def make_card(task, store, notifier, recorder):
    return TaskCard(
        task,
        store,
        notifier,
        on_edit=recorder.edited.append,
        on_delete=recorder.deleted.append,
        on_update=recorder.updated.append,
    )


class TestDisplay:
    def test_badges_follow_status_and_priority(self, store, notifier, recorder):
        task = seed_task(store, status="in_progress", priority="high")
        card = make_card(task, store, notifier, recorder)
        assert card.status_class == "badge badge-in-progress"
        assert card.priority_class == "badge badge-high"
        assert card.status_class != DEFAULT_BADGE_CLASS

    def test_overdue_view(self, store, notifier, recorder):
        today = date(2025, 6, 10)
        task = seed_task(store, due_date=(today - timedelta(days=1)).isoformat())
        view = make_card(task, store, notifier, recorder).view(today=today)
        assert view["overdue"] is True
        assert view["status_text"] == "Pending"
        assert view["due_text"] == "Jun 09, 2025"
        assert view["updating"] is False

    def test_completed_task_is_never_overdue(self, store, notifier, recorder):
        task = seed_task(store, status="completed", due_date="2000-01-01")
        assert make_card(task, store, notifier, recorder).is_overdue() is False


class TestQuickStatusChange:
    def test_success_hands_server_record_to_parent(self, store, notifier, recorder):
        task = seed_task(store)
        card = make_card(task, store, notifier, recorder)

        updated = card.change_status("completed")

        assert updated is not None
        assert updated.status is TaskStatus.COMPLETED
        assert recorder.updated == [updated]
        assert updated.updated_at >= task.updated_at
        assert notifier.last.title == "Success"
        assert notifier.last.description == "Task status updated successfully"
        assert card.updating is False
        # The card itself keeps the task it was given; the parent re-renders it.
        assert card.task.status is TaskStatus.PENDING

    def test_only_status_is_written(self, store, notifier, recorder):
        task = seed_task(store, title="Keep me", description="and me")
        updated = make_card(task, store, notifier, recorder).change_status(TaskStatus.IN_PROGRESS)
        assert updated.title == "Keep me"
        assert updated.description == "and me"

    def test_failure_shows_error_and_keeps_state(self, store, notifier, recorder):
        task = seed_task(store)
        store.failing.add("update")
        card = make_card(task, store, notifier, recorder)

        assert card.change_status("completed") is None

        assert recorder.updated == []
        assert notifier.last.title == "Error"
        assert notifier.last.variant == "destructive"
        assert notifier.last.description == "Network request failed"
        assert card.updating is False
        assert store.inner.get(task.id).status is TaskStatus.PENDING

    def test_unknown_status_is_not_sent(self, store, notifier, recorder):
        task = seed_task(store)
        card = make_card(task, store, notifier, recorder)
        assert card.change_status("archived") is None
        assert "update" not in store.calls
        assert notifier.last.description == "Failed to update task status"


class TestEditAndDelete:
    def test_edit_passes_task(self, store, notifier, recorder):
        task = seed_task(store)
        make_card(task, store, notifier, recorder).edit()
        assert recorder.edited == [task]

    def test_delete_requires_confirmation(self, store, notifier, recorder):
        task = seed_task(store)
        card = make_card(task, store, notifier, recorder)
        prompts = []

        def decline(message):
            prompts.append(message)
            return False

        assert card.request_delete(decline) is False
        assert prompts == [DELETE_CONFIRMATION]
        assert recorder.deleted == []

    def test_confirmed_delete_passes_id(self, store, notifier, recorder):
        task = seed_task(store)
        card = make_card(task, store, notifier, recorder)
        assert card.request_delete(lambda message: True) is True
        assert recorder.deleted == [task.id]
