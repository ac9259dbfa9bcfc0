"""Interactive command shell for tasktracker.

Each input line is tokenized, matched against the command table, checked
for argument count and dispatched to a handler. Handlers call into the
store, index and codec and print the outcome. A failed command never
ends the loop.
"""

from __future__ import annotations

import logging
import re
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from tasktracker.codec import load_store, read_document, save_store
from tasktracker.config import TrackerConfig
from tasktracker.errors import Err, JsonError, TaskError
from tasktracker.index import TaskIndex
from tasktracker.models import Task, TaskStatus
from tasktracker.render import (
    matrix_tree,
    snapshot_tables,
    stats_table,
    status_text,
    task_detail,
    task_table,
)
from tasktracker.store import TaskStore

logger = logging.getLogger(__name__)

PROMPT = "tasktracker> "
_INTEGER = re.compile(r"[+-]?\d+")

SORT_KEYS: dict[str, tuple[Callable[[Task], object], bool, str]] = {
    "priority": (lambda task: task.priority, True, "priority (highest first)"),
    "created": (lambda task: task.created_at, True, "creation date (newest first)"),
    "title": (lambda task: task.title, False, "title"),
}


@dataclass
class Command:
    """One entry in the shell's command table."""

    name: str
    usage: str
    description: str
    handler: Callable[[list[str]], None]
    min_args: int = 0
    max_args: int = 0


def tokenize(line: str) -> list[str]:
    """Split on spaces, keeping double-quoted spans together.

    Quote characters toggle quoting and are dropped. There is no
    escaping inside quotes.
    """
    tokens: list[str] = []
    current: list[str] = []
    in_quotes = False
    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char.isspace() and not in_quotes:
            if current:
                tokens.append("".join(current))
                current = []
        else:
            current.append(char)
    if current:
        tokens.append("".join(current))
    return tokens


def parse_int(text: str) -> int | None:
    """Parse a whole token as an integer, None if it is not one."""
    if not _INTEGER.fullmatch(text.strip()):
        return None
    return int(text)


class Shell:
    """Read-eval-print loop over a ``TaskStore``."""

    def __init__(
        self,
        store: TaskStore | None = None,
        config: TrackerConfig | None = None,
        console: Console | None = None,
        input_func: Callable[[str], str] | None = None,
    ) -> None:
        self.store = store if store is not None else TaskStore()
        self.config = config if config is not None else TrackerConfig()
        self.console = console if console is not None else Console()
        self._input = input_func if input_func is not None else self.console.input
        self.index = TaskIndex()
        self.history: deque[str] = deque(maxlen=self.config.history_size)
        self.running = False
        self.commands: dict[str, Command] = {}
        self._register_commands()

    # -- command table -------------------------------------------------

    def _register_commands(self) -> None:
        table = [
            Command("add", 'add "title" [description]', "Add a new task", self._add, 1, 2),
            Command("list", "list [status]", "List all tasks or those with a status", self._list, 0, 1),
            Command("complete", "complete <id>", "Mark a task as completed", self._complete, 1, 1),
            Command("remove", "remove <id>", "Remove a task", self._remove, 1, 1),
            Command("status", "status <id> <status>", "Change a task's status", self._status, 2, 2),
            Command("priority", "priority <id> <0-10>", "Set a task's priority", self._priority, 2, 2),
            Command("category", "category <id> <name>", "Set a task's category", self._category, 2, 2),
            Command("stats", "stats", "Show task statistics", self._stats),
            Command("find", "find <keyword>", "Search titles and descriptions", self._find, 1, 1),
            Command("sort", "sort <priority|created|title>", "List tasks in sorted order", self._sort, 1, 1),
            Command("show", "show <id>", "Show every detail of a task", self._show, 1, 1),
            Command("save", "save [file]", "Save tasks to a JSON file", self._save, 0, 1),
            Command("load", "load [file]", "Load tasks from a JSON file", self._load, 0, 1),
            Command("view", "view [file]", "Inspect a JSON task file without loading it", self._view, 0, 1),
            Command("matrix", "matrix", "Show tasks grouped by category and priority", self._matrix),
            Command("get", "get <category> <priority>", "List tasks in one matrix cell", self._get, 2, 2),
            Command("recent", "recent", "Show recent commands", self._recent),
            Command("help", "help", "Show this help", self._help),
            Command("exit", "exit", "Leave the shell", self._exit),
        ]
        for command in table:
            self.commands[command.name] = command
        self.commands["quit"] = self.commands["exit"]

    # -- loop ----------------------------------------------------------

    def run(self) -> None:
        """Prompt for commands until ``exit`` or end of input."""
        self.running = True
        self.console.print(
            Panel.fit(
                "[bold]Task Tracker[/bold]\nType [cyan]help[/cyan] to see available commands.",
                title="tasktracker",
            )
        )
        while self.running:
            try:
                line = self._input(PROMPT)
            except (EOFError, KeyboardInterrupt):
                self.console.print()
                break
            self.execute(line)
        self.running = False

    def execute(self, line: str) -> None:
        """Run a single command line."""
        tokens = tokenize(line)
        if not tokens:
            return

        name, args = tokens[0], tokens[1:]
        command = self.commands.get(name.lower())
        if command is None:
            self.console.print(f"[red]Unknown command:[/red] {escape(name)}")
            self.console.print("[dim]Type 'help' to see available commands.[/dim]")
            return

        if not command.min_args <= len(args) <= command.max_args:
            self.console.print(f"[red]Invalid number of arguments for '{command.name}'[/red]")
            self.console.print(f"Usage: [cyan]{escape(command.usage)}[/cyan]")
            return

        self.history.append(command.name)
        logger.debug("Executing %s %r", command.name, args)
        command.handler(args)

    # -- helpers -------------------------------------------------------

    def _error(self, error: TaskError | JsonError) -> None:
        prefix = "JSON error" if isinstance(error, JsonError) else "Error"
        self.console.print(f"[red]{prefix}:[/red] {error.value}")

    def _int_arg(self, token: str) -> int | None:
        value = parse_int(token)
        if value is None:
            self.console.print(f"[red]Invalid number:[/red] {escape(token)}")
        return value

    def _path(self, args: list[str]) -> Path:
        return Path(args[0]) if args else self.config.tasks_path

    def _changed(self) -> None:
        if not self.config.autosave:
            return
        result = save_store(self.store, self.config.tasks_path)
        if isinstance(result, Err):
            self._error(result.error)

    def _rebuild_index(self) -> None:
        self.index.rebuild(self.store)

    # -- handlers ------------------------------------------------------

    def _add(self, args: list[str]) -> None:
        title = args[0]
        description = args[1] if len(args) > 1 else ""
        result = self.store.add_task(title, description)
        if isinstance(result, Err):
            self._error(result.error)
            return
        self.console.print(
            f"[green]Task added:[/green] '{escape(title.strip())}' with ID = {result.value}"
        )
        self._changed()

    def _list(self, args: list[str]) -> None:
        if args:
            status = TaskStatus.parse(args[0])
            if status is None:
                self.console.print(f"[red]Invalid status:[/red] {escape(args[0])}")
                self.console.print("Valid statuses: pending, progress, completed, cancelled")
                return
            tasks = list(self.store.tasks_by_status(status))
            if not tasks:
                self.console.print(f"[dim]No tasks with status: {status.label}[/dim]")
                return
            self.console.print(task_table(tasks, title=f"{status.label} Tasks ({len(tasks)})"))
            return

        if not len(self.store):
            self.console.print("[dim]No tasks available.[/dim]")
            return
        self.console.print(task_table(self.store, title=f"Task List ({len(self.store)} tasks)"))
        self.console.print(f"Completion rate: {self.store.completion_rate:.1f}%")

    def _set_status(self, task_id: int, status: TaskStatus, message: str) -> None:
        result = self.store.update_status(task_id, status)
        if isinstance(result, Err):
            self._error(result.error)
            return
        self.console.print(message)
        self._changed()

    def _complete(self, args: list[str]) -> None:
        task_id = self._int_arg(args[0])
        if task_id is None:
            return
        self._set_status(
            task_id, TaskStatus.COMPLETED, f"[green]Task {task_id} marked as completed![/green]"
        )

    def _status(self, args: list[str]) -> None:
        task_id = self._int_arg(args[0])
        if task_id is None:
            return
        status = TaskStatus.parse(args[1])
        if status is None:
            self.console.print(f"[red]Invalid status:[/red] {escape(args[1])}")
            return
        self._set_status(
            task_id, status, f"Task {task_id} status updated to {status_text(status)}"
        )

    def _remove(self, args: list[str]) -> None:
        task_id = self._int_arg(args[0])
        if task_id is None:
            return
        result = self.store.remove_task(task_id)
        if isinstance(result, Err):
            self._error(result.error)
            return
        self.console.print(f"[green]Task {task_id} removed.[/green]")
        self._changed()

    def _priority(self, args: list[str]) -> None:
        task_id = self._int_arg(args[0])
        priority = self._int_arg(args[1]) if task_id is not None else None
        if task_id is None or priority is None:
            return
        result = self.store.set_priority(task_id, priority)
        if isinstance(result, Err):
            self._error(result.error)
            return
        self.console.print(f"Task {task_id} priority set to {priority}")
        self._changed()

    def _category(self, args: list[str]) -> None:
        task_id = self._int_arg(args[0])
        if task_id is None:
            return
        result = self.store.set_category(task_id, args[1])
        if isinstance(result, Err):
            self._error(result.error)
            return
        self.console.print(f"Task {task_id} category set to '{escape(args[1])}'")
        self._changed()

    def _stats(self, args: list[str]) -> None:
        self.console.print(stats_table(self.store))

    def _find(self, args: list[str]) -> None:
        keyword = args[0]
        matches = list(self.store.search(keyword))
        if not matches:
            self.console.print(f"[dim]No tasks found containing: '{escape(keyword)}'[/dim]")
            return
        self.console.print(
            task_table(matches, title=f"Found {len(matches)} task(s) containing '{escape(keyword)}'")
        )

    def _sort(self, args: list[str]) -> None:
        criteria = args[0].lower()
        if criteria not in SORT_KEYS:
            self.console.print(f"[red]Invalid sort criteria:[/red] {escape(args[0])}")
            self.console.print("Valid options: priority, created, title")
            return
        key, reverse, label = SORT_KEYS[criteria]
        ordered = self.store.get_sorted_tasks(key, reverse=reverse)
        self.console.print(task_table(ordered, title=f"Tasks sorted by {label}"))

    def _show(self, args: list[str]) -> None:
        task_id = self._int_arg(args[0])
        if task_id is None:
            return
        result = self.store.get_task(task_id)
        if isinstance(result, Err):
            self._error(result.error)
            return
        self.console.print(task_detail(result.value))

    def _save(self, args: list[str]) -> None:
        path = self._path(args)
        result = save_store(self.store, path)
        if isinstance(result, Err):
            self._error(result.error)
            self.console.print("[dim]Make sure the directory exists and is writable.[/dim]")
            return
        self.console.print(f"[green]Saved {len(self.store)} task(s) to[/green] {escape(str(path))}")

    def _load(self, args: list[str]) -> None:
        path = self._path(args)
        result = load_store(self.store, path)
        if isinstance(result, Err):
            self._error(result.error)
            if result.error is JsonError.FILE_NOT_FOUND:
                self.console.print(
                    f"[dim]File '{escape(str(path))}' not found. Use 'save' to create it.[/dim]"
                )
            return
        self.console.print(
            f"[green]Loaded {len(self.store)} task(s) from[/green] {escape(str(path))}"
        )
        if len(self.store):
            self.console.print(
                f"  Pending: {self.store.pending_count} | "
                f"Completed: {self.store.completed_count} | "
                f"Completion rate: {self.store.completion_rate:.1f}%"
            )

    def _view(self, args: list[str]) -> None:
        path = self._path(args)
        if path.exists() and path.is_file() and path.stat().st_size == 0:
            self.console.print(f"[yellow]File is empty:[/yellow] {escape(str(path))}")
            return
        result = read_document(path)
        if isinstance(result, Err):
            self._error(result.error)
            return
        snapshot = result.value
        info, tasks = snapshot_tables(snapshot, path.stat().st_size)
        self.console.print(info)
        if not snapshot.tasks:
            self.console.print("[dim]No tasks found in the file.[/dim]")
            return
        self.console.print(tasks)

    def _matrix(self, args: list[str]) -> None:
        self._rebuild_index()
        total = self.index.get_total_task_count()
        if total == 0:
            self.console.print("[dim]No tasks to display in matrix.[/dim]")
            return
        self.console.print(matrix_tree(self.index))
        self.console.print(
            f"Total tasks: {total} | Categories: {len(self.index.get_categories())}"
        )

    def _get(self, args: list[str]) -> None:
        category = args[0]
        priority = parse_int(args[1])
        if priority is None:
            self.console.print(f"[red]Invalid number:[/red] {escape(args[1])}")
            return
        self._rebuild_index()
        tasks = self.index.get(category, priority)
        if not tasks:
            self.console.print(
                f"[dim]No tasks found for category '{escape(category)}' "
                f"with priority {priority}[/dim]"
            )
            return
        self.console.print(
            task_table(tasks, title=f"Category '{escape(category)}', priority {priority}")
        )
        self.console.print(f"Found {len(tasks)} task(s)")

    def _recent(self, args: list[str]) -> None:
        self.console.print("[bold]Recent commands:[/bold]")
        for position, name in enumerate(self.history, start=1):
            self.console.print(f"  {position}. {name}")

    def _help(self, args: list[str]) -> None:
        table = Table(title="Available Commands", show_header=True)
        table.add_column("Usage", style="cyan")
        table.add_column("Description", style="white")
        for name in sorted(set(self.commands) - {"quit"}):
            command = self.commands[name]
            table.add_row(escape(command.usage), command.description)
        self.console.print(table)
        self.console.print()
        self.console.print("[bold]Examples:[/bold]")
        for example in (
            'add "Buy groceries" "Get milk, bread, and eggs"',
            "list pending",
            "complete 1",
            "priority 2 5",
            "category 1 Shopping",
            "save tasks.json",
        ):
            self.console.print(f"  [cyan]{escape(example)}[/cyan]")

    def _exit(self, args: list[str]) -> None:
        self.console.print("Goodbye! Have a productive day.")
        self.running = False
