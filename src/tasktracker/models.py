"""Task model for tasktracker."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum

from tasktracker.errors import Err, Ok, TaskError, TaskResult

MAX_TITLE_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500
MIN_PRIORITY = 0
MAX_PRIORITY = 10
DEFAULT_CATEGORY = "General"


class TaskStatus(Enum):
    """Lifecycle state of a task.

    Values are the names written to the task file.
    """

    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

    @property
    def label(self) -> str:
        """Human-readable name."""
        return _STATUS_LABELS[self]

    @classmethod
    def parse(cls, text: str) -> TaskStatus | None:
        """Parse a status name or alias, ignoring case. None if unknown."""
        return _STATUS_ALIASES.get(text.strip().lower())


_STATUS_LABELS: dict[TaskStatus, str] = {
    TaskStatus.PENDING: "Pending",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.COMPLETED: "Completed",
    TaskStatus.CANCELLED: "Cancelled",
}

_STATUS_ALIASES: dict[str, TaskStatus] = {
    "pending": TaskStatus.PENDING,
    "inprogress": TaskStatus.IN_PROGRESS,
    "in progress": TaskStatus.IN_PROGRESS,
    "in-progress": TaskStatus.IN_PROGRESS,
    "in_progress": TaskStatus.IN_PROGRESS,
    "progress": TaskStatus.IN_PROGRESS,
    "completed": TaskStatus.COMPLETED,
    "cancelled": TaskStatus.CANCELLED,
    "canceled": TaskStatus.CANCELLED,
}


def now() -> datetime:
    """Current local time truncated to milliseconds."""
    current = datetime.now()
    return current.replace(microsecond=current.microsecond // 1000 * 1000)


def validate_title(title: str) -> TaskError | None:
    """Check a (stripped) title against the title rules."""
    if not title:
        return TaskError.EMPTY_TITLE
    if len(title) > MAX_TITLE_LENGTH:
        return TaskError.TITLE_TOO_LONG
    return None


def validate_description(description: str) -> TaskError | None:
    """Check a description against the length bound."""
    if len(description) > MAX_DESCRIPTION_LENGTH:
        return TaskError.DESCRIPTION_TOO_LONG
    return None


def is_valid_priority(priority: object) -> bool:
    """Return True for an int in [0, 10]."""
    if isinstance(priority, bool) or not isinstance(priority, int):
        return False
    return MIN_PRIORITY <= priority <= MAX_PRIORITY


@dataclass
class Task:
    """A single tracked task.

    Attributes are read directly; changes go through the ``set_*``
    methods, which validate and bump ``updated_at``.
    """

    id: int
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING
    category: str = DEFAULT_CATEGORY
    priority: int = 0
    created_at: datetime = field(default_factory=lambda: now())
    updated_at: datetime | None = None
    completed_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.updated_at is None:
            self.updated_at = self.created_at

    def _touch(self) -> None:
        self.updated_at = max(now(), self.created_at)

    def set_title(self, title: str) -> TaskResult:
        """Replace the title."""
        title = title.strip()
        error = validate_title(title)
        if error is not None:
            return Err(error)
        self.title = title
        self._touch()
        return Ok(True)

    def set_description(self, description: str) -> TaskResult:
        """Replace the description."""
        error = validate_description(description)
        if error is not None:
            return Err(error)
        self.description = description
        self._touch()
        return Ok(True)

    def set_status(self, status: TaskStatus) -> TaskResult:
        """Change status; every move to Completed restamps ``completed_at``."""
        self.status = status
        self._touch()
        if status is TaskStatus.COMPLETED:
            self.completed_at = self.updated_at
        return Ok(True)

    def set_priority(self, priority: int) -> TaskResult:
        """Set priority, rejecting values outside 0-10."""
        if not is_valid_priority(priority):
            return Err(TaskError.INVALID_PRIORITY)
        self.priority = priority
        self._touch()
        return Ok(True)

    def set_category(self, category: str) -> TaskResult:
        """Set category verbatim."""
        self.category = category
        self._touch()
        return Ok(True)

    def mark_completed(self) -> None:
        self.set_status(TaskStatus.COMPLETED)

    @property
    def is_completed(self) -> bool:
        return self.status is TaskStatus.COMPLETED

    @property
    def age(self) -> timedelta:
        """Time elapsed since creation."""
        return now() - self.created_at

    def copy(self) -> Task:
        """Return an independent copy of this task."""
        return replace(self)

    def describe(self) -> str:
        """Multi-line human description of the task."""
        lines = [
            f"Task [ID: {self.id}]",
            f"  Title: {self.title}",
            f"  Description: {self.description or 'None'}",
            f"  Status: {self.status.label}",
            f"  Category: {self.category}",
            f"  Priority: {self.priority}",
            f"  Created: {self.created_at:%Y-%m-%d %H:%M:%S}",
            f"  Updated: {self.updated_at:%Y-%m-%d %H:%M:%S}",
        ]
        if self.completed_at is not None:
            lines.append(f"  Completed: {self.completed_at:%Y-%m-%d %H:%M:%S}")
        return "\n".join(lines)
