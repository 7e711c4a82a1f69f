"""tasks: a to-do list with priorities and due dates.

Commands:
    tasks add TEXT... [-p high|med|low] [-d DATE]
    tasks list [--all|--overdue|--today|--priority|--high]   (default)
    tasks done ID / undone ID
    tasks edit ID TEXT...
    tasks priority ID high|med|low|clear
    tasks due ID DATE|clear
    tasks remove ID
    tasks clear                 drop completed tasks
    tasks stats

tasks.json:
    {"tasks": [{"id": 1, "description": "...", "created": "2026-03-14 09:30",
                "completed": false, "completed_at": null,
                "priority": "high", "due": "2026-03-20"}],
     "next_id": 2}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Any

import click

from prodkit import dates
from prodkit.config import load_config
from prodkit.groups import tool_group
from prodkit.output import console, setup_logging
from prodkit.store import JsonStore, allocate_id

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger("prodkit.tasks")

PRIORITIES = ("high", "med", "low")
_PRIORITY_ALIASES = {
    "h": "high", "high": "high",
    "m": "med", "med": "med", "medium": "med",
    "l": "low", "low": "low",
}
_PRIORITY_RANK = {"high": 0, "med": 1, "low": 2, None: 3}
_PRIORITY_STYLE = {"high": "red", "med": "yellow", "low": "blue"}


def normalize_priority(value: str) -> str:
    """'h' / 'medium' / 'LOW' -> canonical priority. Raises ValueError."""
    key = value.strip().lower()
    if key not in _PRIORITY_ALIASES:
        msg = f"invalid priority '{value}' (use high, med or low)"
        raise ValueError(msg)
    return _PRIORITY_ALIASES[key]


@dataclass
class Task:
    id: int
    description: str
    created: str = ""
    completed: bool = False
    completed_at: str | None = None
    priority: str | None = None
    due: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Task:
        return cls(
            id=int(d["id"]),
            description=d.get("description", ""),
            created=d.get("created", ""),
            completed=bool(d.get("completed", False)),
            completed_at=d.get("completed_at"),
            priority=d.get("priority"),
            due=d.get("due"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "created": self.created,
            "completed": self.completed,
            "completed_at": self.completed_at,
            "priority": self.priority,
            "due": self.due,
        }

    def is_overdue(self, today: date) -> bool:
        return bool(self.due) and not self.completed and dates.parse_date(self.due) < today  # type: ignore[arg-type]

    def is_due_today(self, today: date) -> bool:
        return bool(self.due) and dates.parse_date(self.due) == today  # type: ignore[arg-type]


def due_label(due: str, today: date) -> str:
    """OVERDUE / TODAY / Tomorrow / weekday name within a week / the date."""
    days = (dates.parse_date(due) - today).days
    if days < 0:
        return "OVERDUE"
    if days == 0:
        return "TODAY"
    if days == 1:
        return "Tomorrow"
    if days <= 7:
        return dates.weekday_name(due)
    return due


class TaskList:
    """tasks.json under the tool's data dir."""

    def __init__(self, data_dir: Path) -> None:
        self.store = JsonStore(data_dir / "tasks.json", {"tasks": [], "next_id": 1})

    def all(self) -> list[Task]:
        return [Task.from_dict(t) for t in self.store.read()["tasks"]]

    def get(self, task_id: int) -> Task:
        for task in self.all():
            if task.id == task_id:
                return task
        msg = f"task #{task_id} not found"
        raise KeyError(msg)

    def add(self, description: str, priority: str | None = None, due: str | None = None) -> Task:
        description = description.strip()
        if not description:
            msg = "task description is empty"
            raise ValueError(msg)
        prio = normalize_priority(priority) if priority else None
        due_str = dates.parse_relative(due).strftime(dates.DATE_FMT) if due else None
        with self.store.update() as doc:
            task = Task(
                id=allocate_id(doc),
                description=description,
                created=dates.stamp(),
                priority=prio,
                due=due_str,
            )
            doc["tasks"].append(task.to_dict())
        logger.info("task added: #%d", task.id)
        return task

    def _modify(self, task_id: int, **changes: Any) -> Task:
        with self.store.update() as doc:
            for raw in doc["tasks"]:
                if int(raw["id"]) == task_id:
                    raw.update(changes)
                    return Task.from_dict(raw)
        msg = f"task #{task_id} not found"
        raise KeyError(msg)

    def complete(self, task_id: int) -> tuple[Task, bool]:
        """Mark done. Returns (task, changed); changed is False if it was already done."""
        task = self.get(task_id)
        if task.completed:
            return task, False
        task = self._modify(task_id, completed=True, completed_at=dates.stamp())
        logger.info("task completed: #%d", task_id)
        return task, True

    def reopen(self, task_id: int) -> Task:
        return self._modify(task_id, completed=False, completed_at=None)

    def edit(self, task_id: int, description: str) -> Task:
        if not description.strip():
            msg = "task description is empty"
            raise ValueError(msg)
        return self._modify(task_id, description=description.strip())

    def set_priority(self, task_id: int, priority: str | None) -> Task:
        prio = normalize_priority(priority) if priority else None
        return self._modify(task_id, priority=prio)

    def set_due(self, task_id: int, due: str | None) -> Task:
        due_str = dates.parse_relative(due).strftime(dates.DATE_FMT) if due else None
        return self._modify(task_id, due=due_str)

    def remove(self, task_id: int) -> Task:
        with self.store.update() as doc:
            for i, raw in enumerate(doc["tasks"]):
                if int(raw["id"]) == task_id:
                    removed = Task.from_dict(doc["tasks"].pop(i))
                    break
            else:
                msg = f"task #{task_id} not found"
                raise KeyError(msg)
        logger.info("task removed: #%d", task_id)
        return removed

    def clear_completed(self) -> int:
        with self.store.update() as doc:
            before = len(doc["tasks"])
            doc["tasks"] = [t for t in doc["tasks"] if not t.get("completed")]
            removed = before - len(doc["tasks"])
        logger.info("cleared %d completed tasks", removed)
        return removed

    def select(
        self,
        *,
        include_done: bool = False,
        overdue: bool = False,
        due_today: bool = False,
        by_priority: bool = False,
        high_only: bool = False,
        today: date | None = None,
    ) -> list[Task]:
        today = today or dates.today()
        tasks = self.all()
        if not include_done:
            tasks = [t for t in tasks if not t.completed]
        if overdue:
            tasks = [t for t in tasks if t.is_overdue(today)]
        if due_today:
            tasks = [t for t in tasks if t.is_due_today(today)]
        if high_only:
            tasks = [t for t in tasks if t.priority == "high"]
        if by_priority:
            tasks.sort(key=lambda t: (_PRIORITY_RANK.get(t.priority, 3), t.id))
        return tasks


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _tasks() -> TaskList:
    return TaskList(load_config().tool_dir("tasks"))


def _render(task: Task, today: date) -> str:
    mark = click.style("✓", fg="green") if task.completed else "○"
    text = click.style(task.description, dim=True) if task.completed else task.description
    line = f"  {click.style(f'[{task.id}]', fg='cyan')} {mark} {text}"
    if task.priority:
        line += " " + click.style(f"({task.priority})", fg=_PRIORITY_STYLE[task.priority])
    if task.due and not task.completed:
        label = due_label(task.due, today)
        color = "red" if label in ("OVERDUE", "TODAY") else "magenta"
        line += " " + click.style(f"[{label}]", fg=color)
    return line


@tool_group("tasks")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Simple task list with priorities and due dates."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(list_cmd)


@cli.command()
@click.argument("text", nargs=-1, required=True)
@click.option("--priority", "-p", help="high, med or low")
@click.option("--due", "-d", help="YYYY-MM-DD, today, tomorrow or +N")
def add(text: tuple[str, ...], priority: str | None, due: str | None) -> None:
    """Add a task."""
    task = _tasks().add(" ".join(text), priority=priority, due=due)
    click.echo(f"{click.style('Added task', fg='green')} #{task.id}: {task.description}")


@cli.command("list")
@click.option("--all", "-a", "show_all", is_flag=True, help="Include completed tasks")
@click.option("--overdue", is_flag=True, help="Only overdue tasks")
@click.option("--today", "due_today", is_flag=True, help="Only tasks due today")
@click.option("--priority", "by_priority", is_flag=True, help="Sort by priority")
@click.option("--high", is_flag=True, help="Only high-priority tasks")
def list_cmd(show_all: bool, overdue: bool, due_today: bool, by_priority: bool, high: bool) -> None:
    """List pending tasks."""
    today = dates.today()
    tasks = _tasks().select(
        include_done=show_all, overdue=overdue, due_today=due_today,
        by_priority=by_priority, high_only=high, today=today,
    )
    if not tasks:
        click.echo("No tasks." if (overdue or due_today or high) else "No pending tasks. Add one with: tasks add <description>")
        return
    for task in tasks:
        click.echo(_render(task, today))
    pending = sum(1 for t in tasks if not t.completed)
    click.echo(click.style(f"\n{pending} pending", dim=True))


@cli.command()
@click.argument("task_id", type=int)
def done(task_id: int) -> None:
    """Mark a task as completed."""
    task, changed = _tasks().complete(task_id)
    if not changed:
        click.echo(f"Task #{task_id} is already completed")
        return
    click.echo(f"{click.style('Completed', fg='green')} #{task.id}: {task.description}")


@cli.command()
@click.argument("task_id", type=int)
def undone(task_id: int) -> None:
    """Mark a completed task as pending again."""
    task = _tasks().reopen(task_id)
    click.echo(f"Reopened #{task.id}: {task.description}")


@cli.command()
@click.argument("task_id", type=int)
@click.argument("text", nargs=-1, required=True)
def edit(task_id: int, text: tuple[str, ...]) -> None:
    """Replace a task's description."""
    task = _tasks().edit(task_id, " ".join(text))
    click.echo(f"Updated #{task.id}: {task.description}")


@cli.command()
@click.argument("task_id", type=int)
@click.argument("level")
def priority(task_id: int, level: str) -> None:
    """Set priority (high, med, low) or clear it."""
    task = _tasks().set_priority(task_id, None if level == "clear" else level)
    click.echo(f"Task #{task.id} priority: {task.priority or 'none'}")


@cli.command()
@click.argument("task_id", type=int)
@click.argument("when")
def due(task_id: int, when: str) -> None:
    """Set a due date (YYYY-MM-DD, today, tomorrow, +N) or clear it."""
    task = _tasks().set_due(task_id, None if when == "clear" else when)
    click.echo(f"Task #{task.id} due: {task.due or 'none'}")


@cli.command()
@click.argument("task_id", type=int)
def remove(task_id: int) -> None:
    """Delete a task."""
    task = _tasks().remove(task_id)
    click.echo(f"{click.style('Removed', fg='red')} #{task.id}: {task.description}")


@cli.command()
def clear() -> None:
    """Remove all completed tasks."""
    n = _tasks().clear_completed()
    click.echo(f"Cleared {n} completed task(s)")


@cli.command()
def stats() -> None:
    """Show task counts."""
    from rich.table import Table

    today = dates.today()
    tasks = _tasks().all()
    pending = [t for t in tasks if not t.completed]
    table = Table(title="Tasks", show_header=False)
    table.add_column("Metric", style="dim")
    table.add_column("Value", justify="right")
    table.add_row("Total", str(len(tasks)))
    table.add_row("Pending", str(len(pending)))
    table.add_row("Completed", str(len(tasks) - len(pending)))
    table.add_row("Overdue", str(sum(1 for t in pending if t.is_overdue(today))))
    table.add_row("Due today", str(sum(1 for t in pending if t.is_due_today(today))))
    for prio in PRIORITIES:
        table.add_row(f"  {prio}", str(sum(1 for t in pending if t.priority == prio)))
    console().print(table)


cli.add_command(remove, name="rm")
cli.add_command(list_cmd, name="ls")


def main() -> None:
    setup_logging()
    cli(standalone_mode=True)
