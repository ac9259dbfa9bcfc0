"""Tests for tasktracker.models module."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from tasktracker.errors import Err, Ok, TaskError
from tasktracker.models import (
    MAX_DESCRIPTION_LENGTH,
    MAX_TITLE_LENGTH,
    Task,
    TaskStatus,
    is_valid_priority,
    now,
    validate_title,
)


class TestTaskStatus:
    """Tests for TaskStatus enum."""

    def test_file_names(self) -> None:
        """Test values are the names written to disk."""
        assert [s.value for s in TaskStatus] == [
            "Pending",
            "InProgress",
            "Completed",
            "Cancelled",
        ]

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Pending", TaskStatus.PENDING),
            ("pending", TaskStatus.PENDING),
            ("InProgress", TaskStatus.IN_PROGRESS),
            ("In Progress", TaskStatus.IN_PROGRESS),
            ("in-progress", TaskStatus.IN_PROGRESS),
            ("progress", TaskStatus.IN_PROGRESS),
            ("completed", TaskStatus.COMPLETED),
            ("Cancelled", TaskStatus.CANCELLED),
        ],
    )
    def test_parse_aliases(self, text: str, expected: TaskStatus) -> None:
        """Test status names and aliases parse."""
        assert TaskStatus.parse(text) is expected

    def test_parse_unknown(self) -> None:
        """Test unknown names return None."""
        assert TaskStatus.parse("done") is None
        assert TaskStatus.parse("") is None

    def test_label(self) -> None:
        """Test human-readable label."""
        assert TaskStatus.IN_PROGRESS.label == "In Progress"


class TestHelpers:
    """Tests for module-level helpers."""

    def test_now_has_millisecond_precision(self) -> None:
        """Test now() drops sub-millisecond digits."""
        assert now().microsecond % 1000 == 0

    def test_validate_title(self) -> None:
        """Test title validation rules."""
        assert validate_title("ok") is None
        assert validate_title("") is TaskError.EMPTY_TITLE
        assert validate_title("x" * MAX_TITLE_LENGTH) is None
        assert validate_title("x" * (MAX_TITLE_LENGTH + 1)) is TaskError.TITLE_TOO_LONG

    @pytest.mark.parametrize("value", [0, 5, 10])
    def test_valid_priorities(self, value: int) -> None:
        """Test priorities inside the range."""
        assert is_valid_priority(value)

    @pytest.mark.parametrize("value", [-1, 11, 100, True, 2.5, "3"])
    def test_invalid_priorities(self, value: object) -> None:
        """Test priorities outside the range or of the wrong type."""
        assert not is_valid_priority(value)


class TestTask:
    """Tests for Task model."""

    def test_defaults(self, clock) -> None:
        """Test default values."""
        task = Task(id=1, title="Test task")
        assert task.description == ""
        assert task.status is TaskStatus.PENDING
        assert task.category == "General"
        assert task.priority == 0
        assert task.created_at == clock.current
        assert task.updated_at == task.created_at
        assert task.completed_at is None

    def test_set_title(self, clock) -> None:
        """Test title change strips whitespace and bumps updated_at."""
        task = Task(id=1, title="Old")
        later = clock.advance(seconds=1)
        assert task.set_title("  New  ") == Ok(True)
        assert task.title == "New"
        assert task.updated_at == later

    def test_set_title_blank(self, clock) -> None:
        """Test blank title is rejected without changes."""
        task = Task(id=1, title="Old")
        clock.advance(seconds=1)
        assert task.set_title("   ") == Err(TaskError.EMPTY_TITLE)
        assert task.title == "Old"
        assert task.updated_at == task.created_at

    def test_set_title_too_long(self) -> None:
        """Test title bound is enforced."""
        task = Task(id=1, title="Old")
        result = task.set_title("x" * (MAX_TITLE_LENGTH + 1))
        assert result == Err(TaskError.TITLE_TOO_LONG)

    def test_set_description(self, clock) -> None:
        """Test description change."""
        task = Task(id=1, title="T")
        clock.advance(seconds=1)
        assert task.set_description("details").ok
        assert task.description == "details"
        assert task.updated_at > task.created_at

    def test_set_description_too_long(self) -> None:
        """Test description bound is enforced."""
        task = Task(id=1, title="T")
        result = task.set_description("x" * (MAX_DESCRIPTION_LENGTH + 1))
        assert result == Err(TaskError.DESCRIPTION_TOO_LONG)
        assert task.description == ""

    def test_set_priority_bounds(self) -> None:
        """Test boundary values 0 and 10 are accepted."""
        task = Task(id=1, title="T")
        assert task.set_priority(10).ok
        assert task.priority == 10
        assert task.set_priority(0).ok
        assert task.priority == 0

    @pytest.mark.parametrize("value", [-1, 11])
    def test_set_priority_rejects_out_of_range(self, clock, value: int) -> None:
        """Test out-of-range priority leaves the task untouched."""
        task = Task(id=1, title="T")
        clock.advance(seconds=30)
        result = task.set_priority(value)
        assert result == Err(TaskError.INVALID_PRIORITY)
        assert task.priority == 0
        assert task.updated_at == task.created_at

    def test_set_category_verbatim(self) -> None:
        """Test category is stored without trimming."""
        task = Task(id=1, title="T")
        assert task.set_category("  Work ").ok
        assert task.category == "  Work "

    def test_completion_sets_completed_at(self, clock) -> None:
        """Test moving to Completed stamps completed_at."""
        task = Task(id=1, title="T")
        stamp = clock.advance(minutes=1)
        task.set_status(TaskStatus.COMPLETED)
        assert task.completed_at == stamp
        assert task.is_completed

    def test_repeated_completion_overwrites(self, clock) -> None:
        """Test a second completion moves completed_at forward."""
        task = Task(id=1, title="T")
        first = clock.advance(minutes=1)
        task.set_status(TaskStatus.COMPLETED)
        task.set_status(TaskStatus.PENDING)
        assert task.completed_at == first

        second = clock.advance(minutes=1)
        task.set_status(TaskStatus.COMPLETED)
        assert task.completed_at == second

    def test_leaving_completed_keeps_timestamp(self, clock) -> None:
        """Test completed_at survives a move away from Completed."""
        task = Task(id=1, title="T")
        task.mark_completed()
        stamp = task.completed_at
        clock.advance(minutes=1)
        task.set_status(TaskStatus.CANCELLED)
        assert task.completed_at == stamp
        assert not task.is_completed

    def test_updated_never_before_created(self, clock) -> None:
        """Test updated_at is clamped if the clock steps backwards."""
        task = Task(id=1, title="T")
        clock.current = task.created_at - timedelta(hours=1)
        task.set_category("Work")
        assert task.updated_at >= task.created_at

    def test_age(self, clock) -> None:
        """Test age is measured from creation."""
        task = Task(id=1, title="T")
        clock.advance(hours=2)
        assert task.age == timedelta(hours=2)

    def test_copy_is_independent(self) -> None:
        """Test copies do not share mutations."""
        task = Task(id=1, title="T")
        duplicate = task.copy()
        duplicate.set_category("Other")
        assert task.category == "General"
        assert duplicate == Task(
            id=1,
            title="T",
            category="Other",
            created_at=task.created_at,
            updated_at=duplicate.updated_at,
        )

    def test_describe(self, clock) -> None:
        """Test the multi-line description."""
        clock.current = datetime(2025, 3, 1, 9, 30, 0)
        task = Task(id=7, title="Plan trip")
        text = task.describe()
        assert "Task [ID: 7]" in text
        assert "Description: None" in text
        assert "Status: Pending" in text
        assert "Created: 2025-03-01 09:30:00" in text
        assert "Completed" not in text
