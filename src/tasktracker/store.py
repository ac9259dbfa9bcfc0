"""Authoritative in-memory task collection.

The store owns the ordered list of tasks and the id counter. Ids start
at 1, only ever go up, and are never handed out twice, even after the
task that held one is removed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from typing import Any

from tasktracker.errors import Err, Ok, Result, TaskError, TaskResult
from tasktracker.models import (
    Task,
    TaskStatus,
    validate_description,
    validate_title,
)

logger = logging.getLogger(__name__)


class TaskStore:
    """Ordered collection of tasks plus the next-id counter."""

    def __init__(self) -> None:
        self._tasks: list[Task] = []
        self._next_id = 1

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks)

    @property
    def next_id(self) -> int:
        return self._next_id

    @property
    def tasks(self) -> tuple[Task, ...]:
        """Snapshot of the live tasks in insertion order."""
        return tuple(self._tasks)

    def _find(self, task_id: int) -> Task | None:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def _title_taken(self, title: str, exclude_id: int | None = None) -> bool:
        return any(t.title == title and t.id != exclude_id for t in self._tasks)

    # -- mutations -----------------------------------------------------

    def add_task(self, title: str, description: str = "") -> Result[int, TaskError]:
        """Create a task and return its id.

        Fails with EMPTY_TITLE, TITLE_TOO_LONG, DESCRIPTION_TOO_LONG or
        DUPLICATE_TASK, in which case nothing changes.
        """
        title = title.strip()
        error = validate_title(title) or validate_description(description)
        if error is not None:
            return Err(error)
        if self._title_taken(title):
            return Err(TaskError.DUPLICATE_TASK)

        task_id = self._next_id
        self._next_id += 1
        self._tasks.append(Task(id=task_id, title=title, description=description))
        logger.debug("Added task %d: %r", task_id, title)
        return Ok(task_id)

    def remove_task(self, task_id: int) -> TaskResult:
        """Remove a task by id. Remaining ids are left alone."""
        task = self._find(task_id)
        if task is None:
            return Err(TaskError.TASK_NOT_FOUND)
        self._tasks.remove(task)
        logger.debug("Removed task %d", task_id)
        return Ok(True)

    def update_status(self, task_id: int, status: TaskStatus) -> TaskResult:
        task = self._find(task_id)
        if task is None:
            return Err(TaskError.TASK_NOT_FOUND)
        logger.debug("Task %d status -> %s", task_id, status.value)
        return task.set_status(status)

    def set_priority(self, task_id: int, priority: int) -> TaskResult:
        task = self._find(task_id)
        if task is None:
            return Err(TaskError.TASK_NOT_FOUND)
        return task.set_priority(priority)

    def set_category(self, task_id: int, category: str) -> TaskResult:
        task = self._find(task_id)
        if task is None:
            return Err(TaskError.TASK_NOT_FOUND)
        return task.set_category(category)

    def set_title(self, task_id: int, title: str) -> TaskResult:
        """Rename a task; the new title must not belong to another task."""
        task = self._find(task_id)
        if task is None:
            return Err(TaskError.TASK_NOT_FOUND)
        if self._title_taken(title.strip(), exclude_id=task_id):
            return Err(TaskError.DUPLICATE_TASK)
        return task.set_title(title)

    def set_description(self, task_id: int, description: str) -> TaskResult:
        task = self._find(task_id)
        if task is None:
            return Err(TaskError.TASK_NOT_FOUND)
        return task.set_description(description)

    def replace_contents(self, tasks: Iterable[Task], next_id: int) -> None:
        """Swap in a complete task list, as done by a load.

        The counter is raised past the highest id present so it can
        never reissue one of them.
        """
        new_tasks = list(tasks)
        highest = max((t.id for t in new_tasks), default=0)
        self._tasks = new_tasks
        self._next_id = max(next_id, highest + 1, 1)

    # -- queries -------------------------------------------------------

    def get_task(self, task_id: int) -> Result[Task, TaskError]:
        """Return a copy of the task with the given id."""
        task = self._find(task_id)
        if task is None:
            return Err(TaskError.TASK_NOT_FOUND)
        return Ok(task.copy())

    def filter_tasks(self, predicate: Callable[[Task], bool]) -> Iterator[Task]:
        """Lazily yield live tasks matching ``predicate``.

        Each call starts a fresh pass. Do not hold the iterator across
        a mutation of the store.
        """
        return (task for task in self._tasks if predicate(task))

    def tasks_by_status(self, status: TaskStatus) -> Iterator[Task]:
        return self.filter_tasks(lambda task: task.status is status)

    def tasks_by_priority(self, min_priority: int, max_priority: int) -> Iterator[Task]:
        return self.filter_tasks(lambda task: min_priority <= task.priority <= max_priority)

    def search(self, keyword: str) -> Iterator[Task]:
        """Case-insensitive substring match on title or description."""
        needle = keyword.lower()
        return self.filter_tasks(
            lambda task: needle in task.title.lower() or needle in task.description.lower()
        )

    def get_sorted_tasks(
        self, key: Callable[[Task], Any], reverse: bool = False
    ) -> list[Task]:
        """Return copies of all tasks, stably sorted by ``key``."""
        return sorted((task.copy() for task in self._tasks), key=key, reverse=reverse)

    # -- statistics ----------------------------------------------------

    def _count(self, status: TaskStatus) -> int:
        return sum(1 for task in self._tasks if task.status is status)

    @property
    def completed_count(self) -> int:
        return self._count(TaskStatus.COMPLETED)

    @property
    def pending_count(self) -> int:
        return self._count(TaskStatus.PENDING)

    @property
    def in_progress_count(self) -> int:
        return self._count(TaskStatus.IN_PROGRESS)

    @property
    def cancelled_count(self) -> int:
        return self._count(TaskStatus.CANCELLED)

    @property
    def completion_rate(self) -> float:
        """Percentage of completed tasks, 0.0 for an empty store."""
        if not self._tasks:
            return 0.0
        return self.completed_count / len(self._tasks) * 100.0
