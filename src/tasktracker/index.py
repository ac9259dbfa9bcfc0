"""Category x priority index over task copies.

The index is a view, not a second source of truth. It is not kept in
step with the store; callers rebuild it from the store right before
they query it.
"""

from __future__ import annotations

from collections.abc import Iterable

from tasktracker.models import Task

DEFAULT_INDEX_CATEGORY = "Default"


class TaskIndex:
    """Tasks grouped by category, then priority.

    Categories and priorities are kept in the order they were first
    seen, not sorted.
    """

    def __init__(self) -> None:
        self._buckets: dict[str, dict[int, list[Task]]] = {}

    @classmethod
    def from_tasks(cls, tasks: Iterable[Task]) -> TaskIndex:
        index = cls()
        index.rebuild(tasks)
        return index

    def rebuild(self, tasks: Iterable[Task]) -> None:
        """Clear and refill from the given tasks."""
        self.clear()
        for task in tasks:
            self.add_task(task)

    def add_task(self, task: Task) -> None:
        category = task.category or DEFAULT_INDEX_CATEGORY
        priorities = self._buckets.setdefault(category, {})
        priorities.setdefault(task.priority, []).append(task.copy())

    def remove_task(self, task_id: int) -> bool:
        """Drop the first copy with ``task_id``. Returns whether one was found."""
        for priorities in self._buckets.values():
            for bucket in priorities.values():
                for position, task in enumerate(bucket):
                    if task.id == task_id:
                        del bucket[position]
                        return True
        return False

    def get(self, category: str, priority: int) -> list[Task]:
        """Tasks filed under ``(category, priority)``; empty if none.

        A miss does not create an entry.
        """
        bucket = self._buckets.get(category, {}).get(priority)
        return list(bucket) if bucket else []

    def __getitem__(self, key: tuple[str, int]) -> list[Task]:
        category, priority = key
        return self.get(category, priority)

    def has_category(self, category: str) -> bool:
        return category in self._buckets

    def get_categories(self) -> list[str]:
        return list(self._buckets)

    def get_priorities(self, category: str) -> list[int]:
        return list(self._buckets.get(category, {}))

    def get_task_count(self, category: str, priority: int) -> int:
        return len(self._buckets.get(category, {}).get(priority, []))

    def get_total_task_count(self) -> int:
        return sum(
            len(bucket)
            for priorities in self._buckets.values()
            for bucket in priorities.values()
        )

    def clear(self) -> None:
        self._buckets.clear()
