"""Shared fixtures for tasktracker tests."""

from __future__ import annotations

import os
from collections.abc import Generator
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from tasktracker.models import TaskStatus
from tasktracker.store import TaskStore


class FakeClock:
    """Stand-in for ``tasktracker.models.now`` that only moves when told."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


@pytest.fixture
def temp_project(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a temporary project directory and change to it."""
    original_dir = os.getcwd()
    os.chdir(tmp_path)
    try:
        yield tmp_path
    finally:
        os.chdir(original_dir)


@pytest.fixture
def temp_tracker_dir(temp_project: Path) -> Path:
    """Create a temporary .tasktracker directory."""
    tracker_dir = temp_project / ".tasktracker"
    tracker_dir.mkdir()
    return tracker_dir


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> FakeClock:
    """Freeze task timestamps at a known millisecond-precision instant."""
    fake = FakeClock(datetime(2025, 1, 10, 10, 0, 0, 123000))
    monkeypatch.setattr("tasktracker.models.now", fake)
    return fake


@pytest.fixture
def sample_store(clock: FakeClock) -> TaskStore:
    """A store with a spread of statuses, categories and priorities."""
    store = TaskStore()
    store.add_task("Write report", "Quarterly numbers")
    clock.advance(minutes=5)
    store.add_task("Buy milk")
    clock.advance(minutes=5)
    store.add_task("Fix bike", "Rear brake squeaks")
    clock.advance(minutes=5)
    store.add_task("Call plumber")

    store.set_category(1, "Work")
    store.set_priority(1, 8)
    store.set_category(2, "Shopping")
    store.set_priority(2, 3)
    store.set_category(3, "Home")
    store.set_priority(3, 5)
    store.update_status(1, TaskStatus.COMPLETED)
    store.update_status(3, TaskStatus.IN_PROGRESS)
    return store


@pytest.fixture
def sample_tasks_text() -> str:
    """A hand-written task file in the on-disk format."""
    return """\
{
  "version": "1.0",
  "next_id": 5,
  "tasks": [
    {
      "id": 1,
      "title": "Write report",
      "description": "Quarterly numbers",
      "status": "Completed",
      "category": "Work",
      "priority": 8,
      "created_at": "2025-01-10T10:00:00.123",
      "updated_at": "2025-01-10T10:30:00.456",
      "completed_at": "2025-01-10T10:30:00.456"
    },
    {
      "id": 3,
      "title": "Fix bike",
      "description": "",
      "status": "InProgress",
      "category": "Home",
      "priority": 5,
      "created_at": "2025-01-10T10:10:00.000",
      "updated_at": "2025-01-10T10:20:00.000"
    }
  ]
}
"""
