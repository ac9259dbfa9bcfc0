"""Rich renderables for tasks, statistics and the task matrix."""

from __future__ import annotations

from collections.abc import Iterable

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from tasktracker.codec import Snapshot, format_timestamp
from tasktracker.index import TaskIndex
from tasktracker.models import Task, TaskStatus
from tasktracker.store import TaskStore

STATUS_STYLES: dict[TaskStatus, str] = {
    TaskStatus.PENDING: "[yellow]⏳ Pending[/yellow]",
    TaskStatus.IN_PROGRESS: "[cyan]🚧 In Progress[/cyan]",
    TaskStatus.COMPLETED: "[green]✓ Completed[/green]",
    TaskStatus.CANCELLED: "[dim]✗ Cancelled[/dim]",
}


def status_text(status: TaskStatus) -> str:
    return STATUS_STYLES[status]


def _truncate(text: str, width: int) -> str:
    text = text.replace("\n", " ")
    text = text[: width - 3] + "..." if len(text) > width else text
    return escape(text)


def task_table(tasks: Iterable[Task], title: str = "Tasks") -> Table:
    """Table of tasks with id, title, status, category and priority."""
    table = Table(title=title, show_header=True)
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Title", style="white")
    table.add_column("Status", style="white")
    table.add_column("Category", style="magenta")
    table.add_column("Pri", style="dim", justify="right")

    for task in tasks:
        table.add_row(
            str(task.id),
            _truncate(task.title, 50),
            status_text(task.status),
            escape(task.category),
            str(task.priority),
        )
    return table


def task_detail(task: Task) -> Panel:
    """Panel around the task's own multi-line description."""
    return Panel.fit(escape(task.describe()), title=f"Task {task.id}")


def stats_table(store: TaskStore) -> Table:
    """Summary counts and completion rate."""
    table = Table(title="Task Statistics", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white", justify="right")
    table.add_row("Total tasks", str(len(store)))
    table.add_row("Completed", str(store.completed_count))
    table.add_row("Pending", str(store.pending_count))
    table.add_row("In progress", str(store.in_progress_count))
    table.add_row("Cancelled", str(store.cancelled_count))
    table.add_row("Completion rate", f"{store.completion_rate:.1f}%")
    return table


def matrix_tree(index: TaskIndex) -> Tree:
    """Category > priority > task tree. Priorities shown highest first."""
    tree = Tree("[bold]Task Matrix[/bold]")
    for category in index.get_categories():
        branch = tree.add(f"[magenta]📂 {escape(category)}[/magenta]")
        for priority in sorted(index.get_priorities(category), reverse=True):
            bucket = index.get(category, priority)
            node = branch.add(f"[cyan]Priority {priority}[/cyan] [dim]({len(bucket)} task(s))[/dim]")
            for task in bucket:
                label = escape(f"[{task.id}]")
                node.add(f"{label} {_truncate(task.title, 60)}")
    return tree


def snapshot_tables(snapshot: Snapshot, file_size: int) -> tuple[Table, Table]:
    """File information and task listing for a decoded task file."""
    info = Table(title="File Information", show_header=True)
    info.add_column("Property", style="cyan")
    info.add_column("Value", style="white")
    info.add_row("Version", escape(snapshot.version))
    info.add_row("Next ID", str(snapshot.next_id))
    info.add_row("File size", f"{file_size} bytes")
    info.add_row("Tasks", str(len(snapshot.tasks)))

    tasks = Table(title=f"Tasks ({len(snapshot.tasks)} total)", show_header=True)
    tasks.add_column("ID", style="cyan", justify="right")
    tasks.add_column("Title", style="white")
    tasks.add_column("Status", style="white")
    tasks.add_column("Category", style="magenta")
    tasks.add_column("Pri", style="dim", justify="right")
    tasks.add_column("Created", style="dim")
    for task in snapshot.tasks:
        tasks.add_row(
            str(task.id),
            _truncate(task.title, 19),
            task.status.value,
            _truncate(task.category, 11),
            str(task.priority),
            format_timestamp(task.created_at)[:19],
        )
    return info, tasks
