"""Error kinds and result values for tasktracker.

Every fallible core operation returns either ``Ok(value)`` or
``Err(error)``. Domain rule violations use ``TaskError``; persistence
faults use ``JsonError``. The two are never mixed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E", bound=Enum)


class TaskError(Enum):
    """In-memory domain rule violations."""

    INVALID_ID = "Invalid task ID"
    TASK_NOT_FOUND = "Task not found"
    INVALID_STATUS = "Invalid task status"
    EMPTY_TITLE = "Task title cannot be empty"
    DUPLICATE_TASK = "Task with this title already exists"
    INVALID_PRIORITY = "Priority must be between 0 and 10"
    TITLE_TOO_LONG = "Task title is too long"
    DESCRIPTION_TOO_LONG = "Task description is too long"


class JsonError(Enum):
    """Persistence faults."""

    FILE_NOT_FOUND = "JSON file not found"
    INVALID_FORMAT = "Invalid JSON format"
    WRITE_ERROR = "Failed to write JSON file"
    PARSE_ERROR = "Failed to parse JSON"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed outcome carrying a named error."""

    error: E

    @property
    def ok(self) -> bool:
        return False

    @property
    def message(self) -> str:
        return str(self.error.value)


Result = Union[Ok[T], Err[E]]
TaskResult = Union[Ok[bool], Err[TaskError]]
JsonResult = Union[Ok[bool], Err[JsonError]]
