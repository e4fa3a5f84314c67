"""Shared test fixtures for the task board tests."""

import sys
from pathlib import Path

import pytest

# Ensure the repository root is importable (taskboard/ and taskboard_server.py)
sys.path.insert(0, str(Path(__file__).parent.parent))

from taskboard.fixtures import seed
from taskboard.schema import Project, Status, Task
from taskboard.store import BoardStore


class FakeHandle:
    def __init__(self, when, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Manual clock standing in for an event loop's call_later."""

    def __init__(self):
        self.now = 0.0
        self.handles = []

    def call_later(self, delay, callback):
        handle = FakeHandle(self.now + delay, callback)
        self.handles.append(handle)
        return handle

    def advance(self, seconds):
        self.now += seconds
        for handle in list(self.handles):
            if not handle.cancelled and handle.when <= self.now:
                self.handles.remove(handle)
                handle.callback()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def store(tmp_path):
    return BoardStore(str(tmp_path / "board.db"))


@pytest.fixture
def seeded_store(store):
    """Demo data: users u1 (admin), u2 (moderator), u3 (member); projects p1, p2."""
    seed(store)
    return store


@pytest.fixture
def px_store(store):
    """
    Project "px" in board order:

        t2  To Do
        t3  To Do
        t4  In Progress
        t6  Review
        (Done is empty)
    """
    store.save_project(Project("px", "Drag Playground"))
    for task in (
        Task("t2", "Second", status=Status.TODO, project_id="px"),
        Task("t3", "Third", status=Status.TODO, project_id="px"),
        Task("t4", "Fourth", status=Status.IN_PROGRESS, project_id="px"),
        Task("t6", "Sixth", status=Status.REVIEW, project_id="px"),
    ):
        store.save_task(task)
    return store
