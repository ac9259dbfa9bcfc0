"""CLI interface for tasktracker."""

from __future__ import annotations

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from tasktracker import __version__
from tasktracker.codec import load_store, read_document, save_store
from tasktracker.config import TrackerConfig
from tasktracker.errors import Err, JsonError
from tasktracker.index import TaskIndex
from tasktracker.logging_setup import setup_logging
from tasktracker.models import TaskStatus
from tasktracker.render import matrix_tree, snapshot_tables, stats_table, task_table
from tasktracker.store import TaskStore

console = Console()

STATUS_CHOICES = ["pending", "progress", "completed", "cancelled"]


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="tasktracker")
@click.option(
    "--file",
    "-f",
    "tasks_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Task file (default from config, usually tasks.json)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def main(ctx: click.Context, tasks_file: Path | None, verbose: bool) -> None:
    """tasktracker - a personal command-line task tracker.

    \b
    Examples:
      tasktracker                      # Interactive shell
      tasktracker add "Buy milk" -p 3  # Add a task
      tasktracker list --status pending
      tasktracker done 1
      tasktracker matrix
    """
    config = TrackerConfig.load()
    setup_logging(logging.DEBUG if verbose else config.log_level)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["path"] = tasks_file or config.tasks_path

    if ctx.invoked_subcommand is None:
        ctx.invoke(shell)


def _open_store(ctx: click.Context) -> TaskStore:
    """Load the task file, starting empty when it does not exist yet."""
    path: Path = ctx.obj["path"]
    store = TaskStore()
    result = load_store(store, path)
    if isinstance(result, Err) and result.error is not JsonError.FILE_NOT_FOUND:
        console.print(f"[red]Cannot read {escape(str(path))}:[/red] {result.message}")
        ctx.exit(1)
    return store


def _commit(ctx: click.Context, store: TaskStore) -> None:
    path: Path = ctx.obj["path"]
    result = save_store(store, path)
    if isinstance(result, Err):
        console.print(f"[red]Cannot save {escape(str(path))}:[/red] {result.message}")
        ctx.exit(1)


@main.command()
@click.pass_context
def shell(ctx: click.Context) -> None:
    """Start the interactive shell.

    The task file is loaded on start if it exists. Use 'save' inside the
    shell (or enable autosave in .tasktracker/config.json) to persist.
    """
    from tasktracker.shell import Shell

    store = _open_store(ctx)
    Shell(store=store, config=ctx.obj["config"], console=console).run()


@main.command()
@click.argument("title")
@click.argument("description", required=False, default="")
@click.option("--category", "-c", help="Category for the new task")
@click.option("--priority", "-p", type=click.IntRange(0, 10), help="Priority 0-10")
@click.pass_context
def add(
    ctx: click.Context,
    title: str,
    description: str,
    category: str | None,
    priority: int | None,
) -> None:
    """Add a task."""
    store = _open_store(ctx)
    result = store.add_task(title, description)
    if isinstance(result, Err):
        console.print(f"[red]Error:[/red] {result.message}")
        ctx.exit(1)

    task_id = result.value
    if category is not None:
        store.set_category(task_id, category)
    if priority is not None:
        store.set_priority(task_id, priority)

    _commit(ctx, store)
    console.print(f"[green]Task added:[/green] {escape(title.strip())} (ID {task_id})")


@main.command("list")
@click.option("--status", "-s", type=click.Choice(STATUS_CHOICES), help="Only show this status")
@click.pass_context
def list_tasks(ctx: click.Context, status: str | None) -> None:
    """List tasks."""
    store = _open_store(ctx)
    if status is not None:
        wanted = TaskStatus.parse(status)
        tasks = list(store.filter_tasks(lambda task: task.status is wanted))
    else:
        tasks = list(store)

    if not tasks:
        console.print("[dim]No tasks.[/dim]")
        return

    console.print(task_table(tasks, title=f"Tasks ({len(tasks)})"))
    console.print(f"[dim]Completion rate: {store.completion_rate:.1f}%[/dim]")


@main.command()
@click.argument("task_id", type=int)
@click.pass_context
def done(ctx: click.Context, task_id: int) -> None:
    """Mark a task as completed."""
    store = _open_store(ctx)
    result = store.update_status(task_id, TaskStatus.COMPLETED)
    if isinstance(result, Err):
        console.print(f"[red]Error:[/red] {result.message}: {task_id}")
        ctx.exit(1)

    _commit(ctx, store)
    console.print(f"[green]Task completed:[/green] {task_id}")


@main.command()
@click.argument("task_id", type=int)
@click.pass_context
def remove(ctx: click.Context, task_id: int) -> None:
    """Remove a task."""
    store = _open_store(ctx)
    result = store.remove_task(task_id)
    if isinstance(result, Err):
        console.print(f"[red]Error:[/red] {result.message}: {task_id}")
        ctx.exit(1)

    _commit(ctx, store)
    console.print(f"[green]Task removed:[/green] {task_id}")


@main.command()
@click.pass_context
def stats(ctx: click.Context) -> None:
    """Show task statistics."""
    store = _open_store(ctx)
    console.print(stats_table(store))


@main.command()
@click.argument("tasks_file", required=False, type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def view(ctx: click.Context, tasks_file: Path | None) -> None:
    """Inspect a task file without loading it."""
    path = tasks_file or ctx.obj["path"]
    result = read_document(path)
    if isinstance(result, Err):
        console.print(f"[red]Cannot view {escape(str(path))}:[/red] {result.message}")
        ctx.exit(1)

    info, tasks = snapshot_tables(result.value, path.stat().st_size)
    console.print(info)
    if result.value.tasks:
        console.print(tasks)
    else:
        console.print("[dim]No tasks found in the file.[/dim]")


@main.command()
@click.pass_context
def matrix(ctx: click.Context) -> None:
    """Show tasks grouped by category and priority."""
    store = _open_store(ctx)
    index = TaskIndex.from_tasks(store)
    if index.get_total_task_count() == 0:
        console.print("[dim]No tasks to display in matrix.[/dim]")
        return

    console.print(matrix_tree(index))
    console.print(
        f"[dim]Total tasks: {index.get_total_task_count()} | "
        f"Categories: {len(index.get_categories())}[/dim]"
    )


if __name__ == "__main__":
    main()
