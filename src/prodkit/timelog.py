"""timelog: track time spent on projects.

timelog.csv (header date,project,minutes,description,start_time,end_time)
holds one row per finished session or manual entry. active.json exists only
while a timer runs.
"""

from __future__ import annotations

import csv
import io
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING

import click

from prodkit import dates
from prodkit.config import load_config
from prodkit.groups import tool_group
from prodkit.output import console, escape, header, setup_logging
from prodkit.store import JsonStore, append_line, read_lines

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger("prodkit.timelog")

CSV_HEADER = "date,project,minutes,description,start_time,end_time"
DAILY_ROWS = 7


@dataclass
class Entry:
    date: str
    project: str
    minutes: int
    description: str = ""
    start_time: str = ""
    end_time: str = ""

    def to_row(self) -> str:
        buf = io.StringIO()
        csv.writer(buf, lineterminator="").writerow(
            [self.date, self.project, self.minutes, self.description, self.start_time, self.end_time],
        )
        return buf.getvalue()


@dataclass
class ActiveTimer:
    project: str
    description: str
    start_time: str

    @property
    def started(self) -> datetime:
        return datetime.strptime(self.start_time, dates.CLOCK_FMT)

    def elapsed_seconds(self, now: datetime | None = None) -> int:
        return max(0, int(((now or datetime.now()) - self.started).total_seconds()))


def rounded_minutes(seconds: int) -> int:
    """Nearest whole minute, at least 1."""
    return max(1, (seconds + 30) // 60)


def parse_minutes(value: str) -> int:
    text = value.strip()
    if not text.isdigit() or int(text) <= 0:
        msg = f"minutes must be a positive number, got '{value}'"
        raise ValueError(msg)
    return int(text)


class TimeLog:
    """timelog.csv and active.json under the tool's data dir."""

    def __init__(self, data_dir: Path) -> None:
        self.path = data_dir / "timelog.csv"
        self.active_store = JsonStore(data_dir / "active.json", {})

    def entries(self) -> list[Entry]:
        lines = read_lines(self.path)
        out = []
        for row in csv.reader(lines[1:] if lines and lines[0].startswith("date,") else lines):
            if len(row) < 3 or not row[2].strip().isdigit():
                logger.debug("skipping malformed row: %r", row)
                continue
            row += [""] * (6 - len(row))
            out.append(Entry(row[0], row[1], int(row[2]), row[3], row[4], row[5]))
        return out

    def _append(self, entry: Entry) -> None:
        append_line(self.path, entry.to_row(), header=CSV_HEADER)
        logger.info("logged %d min on %s", entry.minutes, entry.project)

    def active(self) -> ActiveTimer | None:
        if not self.active_store.exists():
            return None
        doc = self.active_store.read()
        return ActiveTimer(doc["project"], doc.get("description", ""), doc["start_time"])

    def start(self, project: str, description: str = "", now: datetime | None = None) -> ActiveTimer:
        if not project.strip():
            msg = "project name is empty"
            raise ValueError(msg)
        running = self.active()
        if running is not None:
            msg = f"timer already running for: {running.project} (stop it first with: timelog stop)"
            raise ValueError(msg)
        timer = ActiveTimer(project.strip(), description, (now or datetime.now()).strftime(dates.CLOCK_FMT))
        self.active_store.write({
            "project": timer.project,
            "description": timer.description,
            "start_time": timer.start_time,
            "start_epoch": int(timer.started.timestamp()),
        })
        logger.info("timer started: %s", timer.project)
        return timer

    def stop(self, now: datetime | None = None) -> Entry | None:
        """Finish the running timer and log it. None when nothing runs."""
        timer = self.active()
        if timer is None:
            return None
        now = now or datetime.now()
        entry = Entry(
            date=now.strftime(dates.DATE_FMT),
            project=timer.project,
            minutes=rounded_minutes(timer.elapsed_seconds(now)),
            description=timer.description,
            start_time=timer.start_time,
            end_time=now.strftime(dates.CLOCK_FMT),
        )
        self._append(entry)
        self.active_store.path.unlink()
        return entry

    def cancel(self) -> ActiveTimer | None:
        timer = self.active()
        if timer is not None:
            self.active_store.path.unlink()
            logger.info("timer cancelled: %s", timer.project)
        return timer

    def log(self, project: str, minutes: int | str, description: str = "") -> Entry:
        if not project.strip():
            msg = "project name is empty"
            raise ValueError(msg)
        mins = parse_minutes(str(minutes))
        ts = dates.clock()
        entry = Entry(dates.today_str(), project.strip(), mins, description, ts, ts)
        self._append(entry)
        return entry

    def since(self, days: int, today: date | None = None) -> list[Entry]:
        cutoff = ((today or dates.today()) - timedelta(days=days)).strftime(dates.DATE_FMT)
        return [e for e in self.entries() if e.date >= cutoff]

    def on(self, day: str) -> list[Entry]:
        return [e for e in self.entries() if e.date == day]


def totals_by(entries: list[Entry], key: str) -> dict[str, int]:
    totals: dict[str, int] = defaultdict(int)
    for e in entries:
        totals[getattr(e, key)] += e.minutes
    return dict(totals)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _log() -> TimeLog:
    return TimeLog(load_config().tool_dir("timelog"))


def _show_timer(timer: ActiveTimer) -> None:
    header("Active Timer")
    click.echo()
    click.echo(f"{click.style('Project:', fg='green')} {timer.project}")
    if timer.description:
        click.echo(f"{click.style('Description:', fg='cyan')} {timer.description}")
    click.echo(f"{click.style('Started:', fg='cyan')} {timer.start_time}")
    click.echo(f"{click.style('Elapsed:', fg='yellow')} {dates.format_minutes(timer.elapsed_seconds() // 60)}")


@tool_group("timelog")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Track time spent on projects and activities."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(today)


@cli.command()
@click.argument("project")
@click.argument("description", nargs=-1)
def start(project: str, description: tuple[str, ...]) -> None:
    """Start timing a project."""
    timer = _log().start(project, " ".join(description))
    click.echo(f"{click.style('Started timer for:', fg='green')} {timer.project}")
    if timer.description:
        click.echo(f"{click.style('Description:', fg='cyan')} {timer.description}")
    click.echo(f"{click.style('Started at:', fg='cyan')} {timer.start_time}")


@cli.command()
def stop() -> None:
    """Stop the running timer and log the time."""
    entry = _log().stop()
    if entry is None:
        click.secho("No active timer to stop.", fg="yellow")
        return
    click.echo(f"{click.style('Stopped timer for:', fg='green')} {entry.project}")
    click.echo(f"{click.style('Duration:', fg='cyan')} {dates.format_minutes(entry.minutes)}")
    if entry.description:
        click.echo(f"{click.style('Description:', fg='cyan')} {entry.description}")


@cli.command()
def status() -> None:
    """Show the running timer."""
    timer = _log().active()
    if timer is None:
        click.secho("No active timer.", fg="blue")
        click.echo('Start one with: timelog start "project"')
        return
    _show_timer(timer)


@cli.command()
def cancel() -> None:
    """Discard the running timer without logging it."""
    timer = _log().cancel()
    if timer is None:
        click.secho("No active timer to cancel.", fg="yellow")
        return
    click.echo(f"{click.style('Cancelled timer for:', fg='yellow')} {timer.project}")


@cli.command()
@click.argument("project")
@click.argument("minutes")
@click.argument("description", nargs=-1)
def log(project: str, minutes: str, description: tuple[str, ...]) -> None:
    """Log MINUTES on PROJECT manually."""
    entry = _log().log(project, minutes, " ".join(description))
    click.echo(f"{click.style('Logged:', fg='green')} {dates.format_minutes(entry.minutes)} for {entry.project}")
    if entry.description:
        click.echo(f"{click.style('Description:', fg='cyan')} {entry.description}")


@cli.command()
@click.argument("days", type=int, required=False)
def report(days: int | None) -> None:
    """Totals per project and per day over the last DAYS days."""
    from rich.table import Table

    days = days or load_config().timelog.report_days
    tl = _log()
    header(f"Time Report (Last {days} days)")
    click.echo()
    if not tl.entries():
        click.echo("No time logged yet.")
        click.echo('Start tracking with: timelog start "project"')
        return
    entries = tl.since(days)
    by_project = totals_by(entries, "project")
    table = Table(title="Time by Project", title_justify="left")
    table.add_column("Project", style="green")
    table.add_column("Time", justify="right")
    for project in sorted(by_project):
        table.add_row(escape(project), dates.format_minutes(by_project[project]))
    table.add_section()
    table.add_row("TOTAL", dates.format_minutes(sum(by_project.values())), style="bold")
    out = console()
    out.print(table)
    out.print()
    out.print("[yellow]Daily Breakdown:[/yellow]")
    by_day = totals_by(entries, "date")
    for day in sorted(by_day, reverse=True)[:DAILY_ROWS]:
        out.print(f"  {day}: {dates.format_minutes(by_day[day])}")


@cli.command()
def today() -> None:
    """Today's entries and total."""
    tl = _log()
    day = dates.today_str()
    header(f"Today's Time ({day})")
    click.echo()
    entries = tl.on(day)
    if not entries:
        click.echo("No time logged today.")
    for e in entries:
        line = f"  {click.style(e.project, fg='green')} - {dates.format_minutes(e.minutes)}"
        click.echo(f"{line} - {e.description}" if e.description else line)
    if entries:
        click.echo()
        click.echo(f"{click.style('Total today:', fg='cyan')} {dates.format_minutes(sum(e.minutes for e in entries))}")
    timer = tl.active()
    if timer is not None:
        click.echo()
        _show_timer(timer)


@cli.command()
def projects() -> None:
    """All-time totals per project, largest first."""
    totals = totals_by(_log().entries(), "project")
    header("Projects")
    click.echo()
    if not totals:
        click.echo("No projects yet.")
        return
    for project, minutes in sorted(totals.items(), key=lambda kv: (-kv[1], kv[0])):
        click.echo(f"  {click.style(project, fg='green')} - {dates.format_minutes(minutes)} total")


cli.add_command(status, name="st")
cli.add_command(log, name="add")


def main() -> None:
    setup_logging()
    cli(standalone_mode=True)
