"""habits: daily habit tracker with streaks, weekly targets and notes.

habits.json (version 2.0):
    {"version": "2.0",
     "habits": [{"name": "exercise", "weekly_target": 3, "created": "2026-03-01", "active": true}],
     "completions": {"exercise": ["2026-03-01", "2026-03-02"]},
     "notes": {"exercise": [{"date": "2026-03-02", "note": "30 min run", "timestamp": "..."}]},
     "settings": {}}

Version 1.0 files stored habits as plain strings and had no notes or
settings; they are upgraded the first time they are read.
"""

from __future__ import annotations

import copy
import json
import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date, timedelta
from pathlib import Path
from typing import Any

import click

from prodkit import dates
from prodkit.config import load_config
from prodkit.groups import tool_group
from prodkit.output import header, setup_logging
from prodkit.store import JsonStore, write_json

logger = logging.getLogger("prodkit.habits")

VERSION = "2.0"
DEFAULT_DOC: dict[str, Any] = {"version": VERSION, "habits": [], "completions": {}, "notes": {}, "settings": {}}
WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


@dataclass
class Habit:
    name: str
    weekly_target: int | None = None
    created: str = ""
    active: bool = True

    @classmethod
    def from_raw(cls, raw: Any) -> Habit:
        if isinstance(raw, str):
            return cls(name=raw)
        return cls(
            name=raw["name"],
            weekly_target=raw.get("weekly_target") or None,
            created=raw.get("created", ""),
            active=bool(raw.get("active", True)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "weekly_target": self.weekly_target, "created": self.created, "active": self.active}


def migrate(doc: dict[str, Any]) -> dict[str, Any]:
    """Upgrade a 1.0 document (string habits, no notes/settings) in place.

    A 1.0 file may carry no version key at all, and JsonStore fills in the
    current one, so string habits are converted whatever the tag says.
    """
    if doc.get("version") == VERSION and not any(isinstance(h, str) for h in doc.get("habits", [])):
        return doc
    doc["habits"] = [Habit.from_raw(h).to_dict() for h in doc.get("habits", [])]
    doc.setdefault("completions", {})
    doc.setdefault("notes", {})
    doc.setdefault("settings", {})
    doc["version"] = VERSION
    logger.info("migrated habits document to %s", VERSION)
    return doc


def current_streak(done: set[date], today: date) -> int:
    """Run ending today, or ending yesterday while today is still open."""
    if today in done:
        return dates.consecutive_run(done, today)
    return dates.consecutive_run(done, today - timedelta(days=1))


def week_count(done: set[date], today: date) -> int:
    """Completions from Monday of this week through today."""
    monday = today - timedelta(days=today.weekday())
    return sum(1 for d in done if monday <= d <= today)


def validate_weekly(value: int | None, *, allow_zero: bool = False) -> int | None:
    if value is None:
        return None
    low = 0 if allow_zero else 1
    if not low <= value <= 7:
        msg = f"weekly target must be between {low} and 7"
        raise ValueError(msg)
    return value or None


def merge_documents(existing: dict[str, Any], incoming: dict[str, Any]) -> dict[str, Any]:
    """Union habits by name, completions as sorted unique dates, notes unique by timestamp."""
    existing = migrate(copy.deepcopy(existing))
    incoming = migrate(copy.deepcopy(incoming))
    names = {h["name"] for h in existing["habits"]}
    habits = list(existing["habits"])
    habits += [h for h in incoming["habits"] if h["name"] not in names]

    completions: dict[str, list[str]] = {}
    for key in set(existing["completions"]) | set(incoming["completions"]):
        merged = set(existing["completions"].get(key, [])) | set(incoming["completions"].get(key, []))
        completions[key] = sorted(merged)

    notes: dict[str, list[dict[str, str]]] = {}
    for key in set(existing["notes"]) | set(incoming["notes"]):
        seen: dict[str, dict[str, str]] = {}
        for note in existing["notes"].get(key, []) + incoming["notes"].get(key, []):
            seen.setdefault(note.get("timestamp", ""), note)
        notes[key] = sorted(seen.values(), key=lambda n: n.get("timestamp", ""))

    settings = {**existing.get("settings", {}), **incoming.get("settings", {})}
    return {"version": VERSION, "habits": habits, "completions": completions, "notes": notes, "settings": settings}


class HabitTracker:
    """habits.json under the tool's data dir."""

    def __init__(self, data_dir: Path) -> None:
        self.store = JsonStore(data_dir / "habits.json", DEFAULT_DOC)

    def read(self) -> dict[str, Any]:
        raw = self.store.read()
        if raw.get("version") != VERSION or any(isinstance(h, str) for h in raw["habits"]):
            with self.store.update() as doc:
                migrate(doc)
                raw = copy.deepcopy(doc)
        return raw

    def habits(self) -> list[Habit]:
        return [Habit.from_raw(h) for h in self.read()["habits"]]

    def get(self, name: str) -> Habit:
        for habit in self.habits():
            if habit.name == name:
                return habit
        msg = f"habit '{name}' not found (add it first with: habits add \"{name}\")"
        raise KeyError(msg)

    def completions(self, name: str) -> set[date]:
        return {dates.parse_date(d) for d in self.read()["completions"].get(name, []) if dates.is_date(d)}

    def notes(self, name: str) -> list[dict[str, str]]:
        return list(self.read()["notes"].get(name, []))

    def _require(self, doc: dict[str, Any], name: str) -> int:
        for i, raw in enumerate(doc["habits"]):
            if Habit.from_raw(raw).name == name:
                return i
        msg = f"habit '{name}' not found (add it first with: habits add \"{name}\")"
        raise KeyError(msg)

    def add(self, name: str, weekly: int | None = None) -> Habit:
        name = name.strip()
        if not name:
            msg = "habit name is empty"
            raise ValueError(msg)
        habit = Habit(name=name, weekly_target=validate_weekly(weekly), created=dates.today_str())
        self.read()
        with self.store.update() as doc:
            if any(Habit.from_raw(h).name == name for h in doc["habits"]):
                msg = f"habit '{name}' already exists"
                raise FileExistsError(msg)
            doc["habits"].append(habit.to_dict())
        logger.info("habit added: %s", name)
        return habit

    def check(self, name: str, day: str | None = None, note: str = "", today: date | None = None) -> str:
        today = today or dates.today()
        day = day or today.strftime(dates.DATE_FMT)
        if dates.parse_date(day) > today:
            msg = f"cannot check a future date ({day})"
            raise ValueError(msg)
        self.read()
        with self.store.update() as doc:
            self._require(doc, name)
            done = set(doc["completions"].get(name, []))
            done.add(day)
            doc["completions"][name] = sorted(done)
            if note:
                doc["notes"].setdefault(name, []).append({"date": day, "note": note, "timestamp": dates.clock()})
        logger.info("habit checked: %s %s", name, day)
        return day

    def uncheck(self, name: str, day: str | None = None) -> str:
        day = day or dates.today_str()
        dates.parse_date(day)
        self.read()
        with self.store.update() as doc:
            self._require(doc, name)
            doc["completions"][name] = [d for d in doc["completions"].get(name, []) if d != day]
        return day

    def remove(self, name: str) -> None:
        self.read()
        with self.store.update() as doc:
            del doc["habits"][self._require(doc, name)]
            doc["completions"].pop(name, None)
            doc["notes"].pop(name, None)
        logger.info("habit removed: %s", name)

    def rename(self, old: str, new: str) -> None:
        new = new.strip()
        if not new:
            msg = "new name is empty"
            raise ValueError(msg)
        self.read()
        with self.store.update() as doc:
            i = self._require(doc, old)
            if any(Habit.from_raw(h).name == new for h in doc["habits"]):
                msg = f"habit '{new}' already exists"
                raise FileExistsError(msg)
            habit = Habit.from_raw(doc["habits"][i])
            habit.name = new
            doc["habits"][i] = habit.to_dict()
            for section in ("completions", "notes"):
                if old in doc[section]:
                    doc[section][new] = doc[section].pop(old)
        logger.info("habit renamed: %s -> %s", old, new)

    def set_weekly(self, name: str, weekly: int) -> Habit:
        target = validate_weekly(weekly, allow_zero=True)
        self.read()
        with self.store.update() as doc:
            i = self._require(doc, name)
            habit = Habit.from_raw(doc["habits"][i])
            habit.weekly_target = target
            doc["habits"][i] = habit.to_dict()
        return habit

    def export(self, path: Path) -> dict[str, int]:
        doc = self.read()
        write_json(path, doc)
        return {
            "habits": len(doc["habits"]),
            "completions": sum(len(v) for v in doc["completions"].values()),
            "notes": sum(len(v) for v in doc["notes"].values()),
        }

    def import_file(self, path: Path) -> int:
        try:
            incoming = json.loads(path.read_text())
        except json.JSONDecodeError as exc:
            msg = f"{path} is not valid JSON ({exc.msg})"
            raise ValueError(msg) from exc
        if not isinstance(incoming, dict) or not isinstance(incoming.get("habits"), list):
            msg = f"{path} is not a habits export"
            raise ValueError(msg)
        self.read()
        with self.store.update() as doc:
            merged = merge_documents(doc, incoming)
            doc.clear()
            doc.update(merged)
        logger.info("imported %s", path)
        return len(incoming["habits"])


def longest_streak(done: set[date]) -> int:
    return dates.longest_run(done)


def best_weekday(done: set[date]) -> tuple[str, int] | None:
    if not done:
        return None
    counts = Counter(d.weekday() for d in done)
    day, n = max(sorted(counts.items()), key=lambda kv: kv[1])
    return WEEKDAYS[day], n


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _tracker() -> HabitTracker:
    return HabitTracker(load_config().tool_dir("habits"))


def _empty_hint() -> None:
    click.echo("No habits tracked yet.")
    click.echo('Add one with: habits add "exercise"')


@tool_group("habits")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Daily habit tracker with streaks and weekly targets."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(list_cmd)


@cli.command()
@click.argument("name", nargs=-1, required=True)
@click.option("--weekly", "-w", type=int, default=None, help="Times per week (1-7)")
def add(name: tuple[str, ...], weekly: int | None) -> None:
    """Add a habit."""
    habit = _tracker().add(" ".join(name), weekly)
    click.echo(f"{click.style('Added habit:', fg='green')} {habit.name}")
    if habit.weekly_target:
        click.echo(f"{click.style('Weekly target:', fg='cyan')} {habit.weekly_target} times per week")


@cli.command()
@click.argument("name")
@click.argument("day", metavar="[DATE]", required=False)
@click.option("--note", "-n", default="", help="Note for this check-in")
def check(name: str, day: str | None, note: str) -> None:
    """Mark a habit done (today or DATE)."""
    done_day = _tracker().check(name, day, note)
    click.echo(f"{click.style('✓', fg='green')} Marked '{name}' done for {done_day}")
    if note:
        click.echo(f"{click.style('Note:', fg='cyan')} {note}")


@cli.command()
@click.argument("name")
@click.argument("day", metavar="[DATE]", required=False)
def uncheck(name: str, day: str | None) -> None:
    """Remove a completion (today or DATE)."""
    undone = _tracker().uncheck(name, day)
    click.echo(f"{click.style('✗', fg='yellow')} Unmarked '{name}' for {undone}")


@cli.command("list")
def list_cmd() -> None:
    """Today's habits with streaks and weekly progress."""
    tracker = _tracker()
    habits = tracker.habits()
    if not habits:
        _empty_hint()
        return
    today = dates.today()
    header(f"Today's Habits ({today.strftime(dates.DATE_FMT)})")
    click.echo()
    done_today = 0
    for habit in habits:
        done = tracker.completions(habit.name)
        streak = click.style(f"({current_streak(done, today)} day streak)", dim=True)
        weekly = ""
        if habit.weekly_target:
            weekly = " " + click.style(f"[{week_count(done, today)}/{habit.weekly_target} this week]", fg="cyan")
        if today in done:
            done_today += 1
            click.echo(f"  {click.style('[✓]', fg='green')} {habit.name} {streak}{weekly}")
        else:
            click.echo(f"  {click.style('[ ]', dim=True)} {habit.name} {streak}{weekly}")
    click.echo()
    click.echo(f"{click.style('Progress:', fg='cyan')} {done_today}/{len(habits)} completed")


@cli.command()
@click.argument("days", type=click.IntRange(1, 60), default=7)
def status(days: int) -> None:
    """Grid of the last DAYS days."""
    tracker = _tracker()
    habits = tracker.habits()
    if not habits:
        _empty_hint()
        return
    today = dates.today()
    span = dates.last_n_days(days, today)
    header(f"Habit Tracker (Last {days} days)")
    click.echo()
    click.echo(" " * 20 + "".join(f"{d.day:>3}" for d in span))
    click.echo(" " * 20 + "".join(f"{d.strftime('%a')[:2]:>3}" for d in span))
    click.echo()
    for habit in habits:
        done = tracker.completions(habit.name)
        label = habit.name if len(habit.name) <= 18 else habit.name[:17] + "…"
        cells = "".join(click.style(" ● ", fg="green") if d in done else click.style(" ○ ", dim=True) for d in span)
        streak = current_streak(done, today)
        tail = " " + click.style(str(streak), fg="yellow") if streak else ""
        click.echo(f"{label:<20}{cells}{tail}")
    click.echo()
    click.secho("● = done, ○ = missed, number = current streak", dim=True)


@cli.command()
@click.argument("name")
def streak(name: str) -> None:
    """Current and longest streak of one habit."""
    tracker = _tracker()
    tracker.get(name)
    done = tracker.completions(name)
    header(f"Streak: {name}")
    click.echo()
    click.echo(f"{click.style('Current streak:', fg='green')} {current_streak(done, dates.today())} days")
    click.echo(f"{click.style('Total completions:', fg='cyan')} {len(done)}")
    click.echo(f"{click.style('Longest streak:', fg='magenta')} {longest_streak(done)} days")


@cli.command()
@click.argument("name", required=False)
def stats(name: str | None) -> None:
    """Statistics for every habit, or just NAME."""
    tracker = _tracker()
    habits = [tracker.get(name)] if name else tracker.habits()
    header("Habit Statistics")
    click.echo()
    if not habits:
        click.echo("No habits tracked yet.")
        return
    today = dates.today()
    window = set(dates.last_n_days(30, today))
    for habit in habits:
        done = tracker.completions(habit.name)
        last_30 = len(done & window)
        click.secho(habit.name, bold=True)
        click.echo()
        click.echo(f"  {click.style('Total completions:', fg='green')}  {len(done)}")
        click.echo(f"  {click.style('Current streak:', fg='cyan')}     {current_streak(done, today)} days")
        click.echo(f"  {click.style('Longest streak:', fg='magenta')}     {longest_streak(done)} days")
        click.echo(f"  {click.style('Last 30 days:', fg='yellow')}       {last_30}/30 ({last_30 * 100 // 30}%)")
        best = best_weekday(done)
        if best:
            click.echo(f"  {click.style('Best day:', fg='blue')}           {best[0]} ({best[1]} completions)")
        if habit.weekly_target:
            click.echo(f"  {click.style('This week:', fg='cyan')}          {week_count(done, today)}/{habit.weekly_target}")
        n_notes = len(tracker.notes(habit.name))
        if n_notes:
            click.echo(f"  {click.style('Notes:', dim=True)}              {n_notes}")
        click.echo()


@cli.command()
@click.argument("name")
@click.argument("limit", type=int, default=10)
def notes(name: str, limit: int) -> None:
    """The last LIMIT check-in notes of a habit."""
    tracker = _tracker()
    tracker.get(name)
    header(f"Notes: {name}")
    click.echo()
    found = sorted(tracker.notes(name), key=lambda n: n.get("timestamp", ""), reverse=True)[:limit]
    if not found:
        click.echo("No notes recorded for this habit.")
        click.echo()
        click.echo("Add notes when checking in:")
        click.echo(f'  habits check "{name}" --note "Your note here"')
        return
    for n in found:
        click.echo(f"  {click.style(n.get('date', ''), fg='yellow')} - {n.get('note', '')}")


@cli.command()
@click.argument("name", nargs=-1, required=True)
def remove(name: tuple[str, ...]) -> None:
    """Remove a habit with its completions and notes."""
    habit = " ".join(name)
    _tracker().remove(habit)
    click.echo(f"{click.style('Removed habit:', fg='red')} {habit}")


@cli.command()
@click.argument("old")
@click.argument("new")
def rename(old: str, new: str) -> None:
    """Rename a habit, keeping its history."""
    _tracker().rename(old, new)
    click.echo(f"{click.style('Renamed:', fg='green')} '{old}' → '{new}'")


@cli.command()
@click.argument("name")
@click.option("--weekly", "-w", type=int, default=None, help="Weekly target (0 clears it)")
def edit(name: str, weekly: int | None) -> None:
    """Change a habit's weekly target."""
    tracker = _tracker()
    habit = tracker.get(name)
    if weekly is None:
        weekly = click.prompt("Weekly target", default=habit.weekly_target or 0, type=int)
    habit = tracker.set_weekly(name, weekly)
    target = f"{habit.weekly_target} times per week" if habit.weekly_target else "none"
    click.echo(f"{click.style('Habit updated.', fg='green')} Weekly target: {target}")


@cli.command()
@click.argument("path", type=click.Path(dir_okay=False), default="habits_export.json")
def export(path: str) -> None:
    """Write all habit data to a JSON file."""
    tracker = _tracker()
    if not tracker.habits():
        click.echo("No habits to export.")
        return
    counts = tracker.export(Path(path))
    click.echo(f"{click.style('Exported to:', fg='green')} {path}")
    click.echo()
    for label, key in (("Habits", "habits"), ("Completions", "completions"), ("Notes", "notes")):
        click.echo(f"  {click.style(label + ':', fg='cyan'):<22} {counts[key]}")


@cli.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def import_cmd(path: str, yes: bool) -> None:
    """Merge habit data from an exported JSON file."""
    if not yes and not click.confirm("This will MERGE with existing data. Continue?", default=False):
        return
    n = _tracker().import_file(Path(path))
    click.secho(f"Import complete ({n} habits in file).", fg="green")


cli.add_command(check, name="done")
cli.add_command(uncheck, name="undo")
cli.add_command(list_cmd, name="ls")
cli.add_command(remove, name="rm")
cli.add_command(status, name="grid")


def main() -> None:
    setup_logging()
    cli(standalone_mode=True)
