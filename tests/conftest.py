# tests/conftest.py

from __future__ import annotations

import os

import pytest

# Ensure we default to memory backend for tests to avoid network dependencies
os.environ.setdefault("TASKSTORE_BACKEND", "memory")

from taskapp.store import get_memory_table  # noqa: E402

from .fakes import FlakyTaskStore, RecordingNotifier  # noqa: E402


@pytest.fixture(autouse=True)
def clean_memory_table():
    """The memory backend is process-wide; start every test from an empty table."""
    get_memory_table().clear()
    yield
    get_memory_table().clear()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def store() -> FlakyTaskStore:
    return FlakyTaskStore(owner_id="user-1")
