"""goals: long-term goals with milestones, progress and deadlines.

goals.json:
    {"goals": [{"id": 1, "title": "...", "deadline": "2026-12-31",
                "created": "2026-03-14 09:30", "progress": 40,
                "milestones": [{"id": 1, "description": "...", "done": true,
                                "completed_at": "2026-03-20 18:00"}],
                "notes": [{"date": "2026-03-15", "text": "..."}],
                "status": "active"}],
     "next_id": 2, "archived": []}

status moves active -> completed | abandoned, never back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

import click

from prodkit import dates
from prodkit.config import load_config
from prodkit.groups import tool_group
from prodkit.output import bar, console, header, setup_logging
from prodkit.store import JsonStore, allocate_id

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger("prodkit.goals")

ACTIVE = "active"
COMPLETED = "completed"
ABANDONED = "abandoned"


@dataclass
class Milestone:
    id: int
    description: str
    done: bool = False
    completed_at: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Milestone:
        return cls(
            id=int(d["id"]),
            description=d.get("description", ""),
            done=bool(d.get("done", False)),
            completed_at=d.get("completed_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "description": self.description, "done": self.done, "completed_at": self.completed_at}


@dataclass
class Goal:
    id: int
    title: str
    deadline: str | None = None
    created: str = ""
    progress: int = 0
    milestones: list[Milestone] = field(default_factory=list)
    notes: list[dict[str, str]] = field(default_factory=list)
    status: str = ACTIVE
    completed_at: str | None = None
    abandoned_at: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Goal:
        return cls(
            id=int(d["id"]),
            title=d.get("title", ""),
            deadline=d.get("deadline"),
            created=d.get("created", ""),
            progress=int(d.get("progress", 0)),
            milestones=[Milestone.from_dict(m) for m in d.get("milestones", [])],
            notes=list(d.get("notes", [])),
            status=d.get("status", ACTIVE),
            completed_at=d.get("completed_at"),
            abandoned_at=d.get("abandoned_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "deadline": self.deadline,
            "created": self.created,
            "progress": self.progress,
            "milestones": [m.to_dict() for m in self.milestones],
            "notes": self.notes,
            "status": self.status,
        }
        if self.completed_at:
            d["completed_at"] = self.completed_at
        if self.abandoned_at:
            d["abandoned_at"] = self.abandoned_at
        return d

    @property
    def milestones_done(self) -> int:
        return sum(1 for m in self.milestones if m.done)

    def suggested_progress(self) -> int:
        if not self.milestones:
            return self.progress
        return self.milestones_done * 100 // len(self.milestones)


def deadline_text(deadline: str | None, today: date | None = None) -> str:
    """'no deadline', 'N days overdue', 'due today', '1 day left', 'N days left'."""
    if not deadline:
        return "no deadline"
    days = dates.days_between(today or dates.today(), deadline)
    if days < 0:
        return f"{-days} days overdue"
    if days == 0:
        return "due today"
    if days == 1:
        return "1 day left"
    return f"{days} days left"


def validate_percent(value: int | str) -> int:
    text = str(value).strip()
    if not text.isdigit() or not 0 <= int(text) <= 100:
        msg = "progress must be 0-100"
        raise ValueError(msg)
    return int(text)


class GoalBook:
    """goals.json under the tool's data dir."""

    def __init__(self, data_dir: Path) -> None:
        self.store = JsonStore(data_dir / "goals.json", {"goals": [], "next_id": 1, "archived": []})

    def all(self) -> list[Goal]:
        return [Goal.from_dict(g) for g in self.store.read()["goals"]]

    def archived(self) -> list[Goal]:
        return [Goal.from_dict(g) for g in self.store.read()["archived"]]

    def get(self, goal_id: int) -> Goal:
        for goal in self.all():
            if goal.id == goal_id:
                return goal
        msg = f"goal #{goal_id} not found"
        raise KeyError(msg)

    def add(self, title: str, deadline: str | None = None) -> Goal:
        title = title.strip()
        if not title:
            msg = "goal title is empty"
            raise ValueError(msg)
        if deadline:
            dates.parse_date(deadline)
        with self.store.update() as doc:
            goal = Goal(id=allocate_id(doc), title=title, deadline=deadline or None, created=dates.stamp())
            doc["goals"].append(goal.to_dict())
        logger.info("goal added: #%d", goal.id)
        return goal

    def _mutate(self, goal_id: int, fn: Any, *, active_only: bool = False) -> Goal:
        """Apply fn(goal) to the stored goal and write it back."""
        with self.store.update() as doc:
            for i, raw in enumerate(doc["goals"]):
                if int(raw["id"]) != goal_id:
                    continue
                goal = Goal.from_dict(raw)
                if active_only and goal.status != ACTIVE:
                    msg = f"active goal #{goal_id} not found"
                    raise KeyError(msg)
                fn(goal)
                doc["goals"][i] = goal.to_dict()
                return goal
        msg = f"{'active ' if active_only else ''}goal #{goal_id} not found"
        raise KeyError(msg)

    def set_progress(self, goal_id: int, percent: int | str) -> Goal:
        pct = validate_percent(percent)

        def apply(goal: Goal) -> None:
            goal.progress = pct

        return self._mutate(goal_id, apply, active_only=True)

    def add_milestone(self, goal_id: int, description: str) -> tuple[Goal, Milestone]:
        if not description.strip():
            msg = "milestone description is empty"
            raise ValueError(msg)
        created: list[Milestone] = []

        def apply(goal: Goal) -> None:
            ms = Milestone(id=len(goal.milestones) + 1, description=description.strip())
            goal.milestones.append(ms)
            created.append(ms)

        goal = self._mutate(goal_id, apply)
        return goal, created[0]

    def check_milestone(self, goal_id: int, milestone_id: int) -> tuple[Goal, Milestone]:
        found: list[Milestone] = []

        def apply(goal: Goal) -> None:
            for ms in goal.milestones:
                if ms.id == milestone_id:
                    ms.done = True
                    ms.completed_at = dates.stamp()
                    found.append(ms)
                    return
            msg = f"milestone #{milestone_id} not found in goal #{goal_id}"
            raise KeyError(msg)

        goal = self._mutate(goal_id, apply)
        return goal, found[0]

    def add_note(self, goal_id: int, text: str) -> Goal:
        if not text.strip():
            msg = "note is empty"
            raise ValueError(msg)

        def apply(goal: Goal) -> None:
            goal.notes.append({"date": dates.today_str(), "text": text.strip()})

        return self._mutate(goal_id, apply)

    def complete(self, goal_id: int) -> Goal:
        def apply(goal: Goal) -> None:
            goal.status = COMPLETED
            goal.progress = 100
            goal.completed_at = dates.stamp()

        goal = self._mutate(goal_id, apply, active_only=True)
        logger.info("goal completed: #%d", goal_id)
        return goal

    def abandon(self, goal_id: int) -> Goal:
        def apply(goal: Goal) -> None:
            goal.status = ABANDONED
            goal.abandoned_at = dates.stamp()

        goal = self._mutate(goal_id, apply, active_only=True)
        logger.info("goal abandoned: #%d", goal_id)
        return goal

    def move_finished(self) -> int:
        """Move completed/abandoned goals into the archived list."""
        with self.store.update() as doc:
            finished = [g for g in doc["goals"] if g.get("status") != ACTIVE]
            doc["goals"] = [g for g in doc["goals"] if g.get("status") == ACTIVE]
            doc["archived"].extend(finished)
        logger.info("archived %d goals", len(finished))
        return len(finished)

    def remove(self, goal_id: int) -> Goal:
        with self.store.update() as doc:
            for i, raw in enumerate(doc["goals"]):
                if int(raw["id"]) == goal_id:
                    return Goal.from_dict(doc["goals"].pop(i))
        msg = f"goal #{goal_id} not found"
        raise KeyError(msg)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _book() -> GoalBook:
    return GoalBook(load_config().tool_dir("goals"))


def _progress_line(pct: int) -> str:
    return f"[{bar(pct, 100, width=20, fill='█', empty='░')}] {pct:3d}%"


def _deadline_styled(deadline: str | None) -> str:
    text = deadline_text(deadline)
    if "overdue" in text or text == "due today":
        return click.style(text, fg="red")
    return click.style(text, dim=True)


@tool_group("goals")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Track long-term goals with milestones."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(list_cmd)


@cli.command()
@click.argument("title")
@click.argument("deadline", required=False)
def add(title: str, deadline: str | None) -> None:
    """Add a goal with an optional YYYY-MM-DD deadline."""
    goal = _book().add(title, deadline)
    click.echo(f"{click.style('Goal added:', fg='green')} #{goal.id} {goal.title}")
    if goal.deadline:
        click.echo(f"Deadline: {goal.deadline} ({deadline_text(goal.deadline)})")


@cli.command("list")
@click.option("--all", "-a", "show_all", is_flag=True, help="Include completed and abandoned goals")
def list_cmd(show_all: bool) -> None:
    """List active goals with progress."""
    goals = [g for g in _book().all() if show_all or g.status == ACTIVE]
    if not goals:
        click.echo('No active goals. Add one with: goals add "Goal title" [YYYY-MM-DD]')
        return
    header("Goals")
    click.echo()
    for goal in goals:
        status = "" if goal.status == ACTIVE else click.style(f" ({goal.status})", dim=True)
        click.echo(f"{click.style(f'#{goal.id}', fg='cyan')} {click.style(goal.title, bold=True)}{status}")
        click.echo(f"    {_progress_line(goal.progress)}  {_deadline_styled(goal.deadline)}")
        if goal.milestones:
            click.secho(f"    Milestones: {goal.milestones_done}/{len(goal.milestones)}", dim=True)
        click.echo()


@cli.command()
@click.argument("goal_id", type=int)
def show(goal_id: int) -> None:
    """Show a goal in detail."""
    goal = _book().get(goal_id)
    header(f"Goal #{goal.id}: {goal.title}")
    click.echo()
    click.echo(f"Status:   {goal.status}")
    click.echo(f"Created:  {goal.created}")
    if goal.deadline:
        click.echo(f"Deadline: {goal.deadline} ({deadline_text(goal.deadline)})")
    click.echo(f"Progress: {_progress_line(goal.progress)}")
    if goal.milestones:
        click.echo()
        click.secho("Milestones:", fg="yellow")
        for ms in goal.milestones:
            mark = click.style("✓", fg="green") if ms.done else "○"
            click.echo(f"  {ms.id}. {mark} {ms.description}")
    if goal.notes:
        click.echo()
        click.secho("Notes:", fg="yellow")
        for note in goal.notes:
            click.echo(f"  {click.style(note.get('date', ''), dim=True)} {note.get('text', '')}")


@cli.command()
@click.argument("goal_id", type=int)
@click.argument("percent")
def progress(goal_id: int, percent: str) -> None:
    """Set progress (0-100) on an active goal."""
    goal = _book().set_progress(goal_id, percent)
    click.echo(f"{click.style('Progress updated:', fg='green')} {goal.title}")
    click.echo(_progress_line(goal.progress))
    if goal.progress == 100:
        click.echo()
        click.secho(f"Goal at 100%! Mark complete with: goals complete {goal.id}", fg="yellow")


@cli.command()
@click.argument("goal_id", type=int)
@click.argument("description", nargs=-1, required=True)
def milestone(goal_id: int, description: tuple[str, ...]) -> None:
    """Add a milestone to a goal."""
    goal, ms = _book().add_milestone(goal_id, " ".join(description))
    click.echo(f"{click.style('Milestone added', fg='green')} to #{goal.id}: {ms.id}. {ms.description}")


@cli.command()
@click.argument("goal_id", type=int)
@click.argument("milestone_id", type=int)
@click.option("--apply", is_flag=True, help="Set progress to the suggested value")
def check(goal_id: int, milestone_id: int, apply: bool) -> None:
    """Mark a milestone done and suggest a progress value."""
    book = _book()
    goal, ms = book.check_milestone(goal_id, milestone_id)
    click.echo(f"{click.style('✓ Milestone completed:', fg='green')} {ms.description}")
    suggested = goal.suggested_progress()
    click.echo(f"Milestones: {goal.milestones_done}/{len(goal.milestones)} completed")
    if apply and goal.status == ACTIVE:
        book.set_progress(goal.id, suggested)
        click.echo(f"Progress set to {suggested}%")
    else:
        click.secho(f"Suggested progress: {suggested}%", fg="yellow")
        click.echo(f"Update with: goals progress {goal.id} {suggested}")


@cli.command()
@click.argument("goal_id", type=int)
@click.argument("text", nargs=-1, required=True)
def note(goal_id: int, text: tuple[str, ...]) -> None:
    """Attach a dated note to a goal."""
    _book().add_note(goal_id, " ".join(text))
    click.secho(f"Note added to goal #{goal_id}", fg="green")


@cli.command()
@click.argument("goal_id", type=int)
def complete(goal_id: int) -> None:
    """Mark an active goal as achieved."""
    goal = _book().complete(goal_id)
    click.echo(f"{click.style('🎉 Goal achieved:', fg='green')} {goal.title}")
    click.echo(f"Completed at: {goal.completed_at}")


@cli.command()
@click.argument("goal_id", type=int)
def abandon(goal_id: int) -> None:
    """Give up on an active goal."""
    goal = _book().abandon(goal_id)
    click.echo(f"{click.style('Goal abandoned:', fg='yellow')} {goal.title}")


@cli.command()
@click.option("--move", is_flag=True, help="Move finished goals out of the active list")
def archive(move: bool) -> None:
    """Show completed and abandoned goals."""
    book = _book()
    if move:
        n = book.move_finished()
        click.echo(f"Archived {n} finished goal(s)")
        return
    finished = [g for g in book.all() + book.archived() if g.status != ACTIVE]
    if not finished:
        click.echo("No archived goals.")
        return
    header("Archived Goals")
    click.echo()
    completed = [g for g in finished if g.status == COMPLETED]
    abandoned = [g for g in finished if g.status == ABANDONED]
    if completed:
        click.secho(f"Completed ({len(completed)}):", fg="green")
        for g in completed:
            click.echo(f"  #{g.id} {g.title} - completed {g.completed_at}")
        click.echo()
    if abandoned:
        click.secho(f"Abandoned ({len(abandoned)}):", dim=True)
        for g in abandoned:
            click.echo(f"  #{g.id} {g.title} - abandoned {g.abandoned_at}")


@cli.command()
@click.argument("goal_id", type=int)
def remove(goal_id: int) -> None:
    """Delete a goal."""
    goal = _book().remove(goal_id)
    click.echo(f"{click.style('Removed', fg='red')} #{goal.id}: {goal.title}")


@cli.command()
def stats() -> None:
    """Goal statistics."""
    from rich.table import Table

    book = _book()
    goals = book.all() + book.archived()
    today = dates.today()
    week = today + timedelta(days=7)
    active = [g for g in goals if g.status == ACTIVE]
    completed = sum(1 for g in goals if g.status == COMPLETED)
    abandoned = sum(1 for g in goals if g.status == ABANDONED)

    table = Table(title="Goal Statistics", show_header=False)
    table.add_column("Metric", style="dim")
    table.add_column("Value", justify="right")
    table.add_row("Total goals created", str(len(goals)))
    table.add_row("Completed", str(completed))
    table.add_row("Active", str(len(active)))
    table.add_row("Abandoned", str(abandoned))
    if goals:
        table.add_row("Completion rate", f"{completed * 100 // len(goals)}%")
    if active:
        table.add_row("Average progress (active)", f"{sum(g.progress for g in active) // len(active)}%")
        with_deadline = [(g, dates.parse_date(g.deadline)) for g in active if g.deadline]
        table.add_row("Due within 7 days", str(sum(1 for _, d in with_deadline if today <= d <= week)))
        overdue = sum(1 for _, d in with_deadline if d < today)
        table.add_row("Overdue", f"[red]{overdue}[/red]" if overdue else "0")
    console().print(table)


cli.add_command(list_cmd, name="ls")


def main() -> None:
    setup_logging()
    cli(standalone_mode=True)
