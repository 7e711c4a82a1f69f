"""wins: log daily wins and things you're grateful for."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import date, timedelta
from itertools import groupby
from typing import TYPE_CHECKING, Any

import click

from prodkit import dates
from prodkit.config import load_config
from prodkit.groups import tool_group
from prodkit.output import header, setup_logging
from prodkit.store import JsonStore

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger("prodkit.wins")

WIN = "win"
GRATITUDE = "gratitude"
_GRATITUDE_WORDS = ("grateful", "thankful", "appreciate", "glad")
_ICON = {WIN: "🏆", GRATITUDE: "✨"}
MILESTONE_EVERY = 10


def detect_type(text: str) -> str:
    """Gratitude when the text opens with a thankful word, otherwise a win."""
    first = text.strip().lower()
    return GRATITUDE if first.startswith(_GRATITUDE_WORDS) else WIN


@dataclass
class Entry:
    text: str
    type: str
    date: str
    timestamp: str

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Entry:
        return cls(
            text=d.get("text", ""),
            type=d.get("type", WIN),
            date=d.get("date", ""),
            timestamp=d.get("timestamp", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "type": self.type, "date": self.date, "timestamp": self.timestamp}

    @property
    def icon(self) -> str:
        return _ICON.get(self.type, _ICON[WIN])


class WinLog:
    """wins.json under the tool's data dir."""

    def __init__(self, data_dir: Path) -> None:
        self.store = JsonStore(data_dir / "wins.json", {"entries": []})

    def all(self) -> list[Entry]:
        return [Entry.from_dict(e) for e in self.store.read()["entries"]]

    def add(self, text: str, kind: str | None = None) -> tuple[Entry, int]:
        """Append an entry. Returns (entry, total entry count)."""
        text = text.strip()
        if not text:
            msg = "entry text is empty"
            raise ValueError(msg)
        entry = Entry(
            text=text,
            type=kind or detect_type(text),
            date=dates.today_str(),
            timestamp=dates.clock(),
        )
        with self.store.update() as doc:
            doc["entries"].append(entry.to_dict())
            total = len(doc["entries"])
        logger.info("%s logged", entry.type)
        return entry, total

    def on(self, day: str) -> list[Entry]:
        return [e for e in self.all() if e.date == day]

    def since(self, days: int, today: date | None = None) -> list[Entry]:
        today = today or dates.today()
        start = (today - timedelta(days=days - 1)).strftime(dates.DATE_FMT)
        return [e for e in self.all() if e.date >= start]

    def search(self, query: str) -> list[Entry]:
        q = query.lower()
        return [e for e in self.all() if q in e.text.lower()]

    def streaks(self, today: date | None = None) -> tuple[int, int]:
        """(current, longest) over days with at least one entry; current ends today."""
        today = today or dates.today()
        days = {dates.parse_date(e.date) for e in self.all() if dates.is_date(e.date)}
        return dates.consecutive_run(days, today), dates.longest_run(days)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _log() -> WinLog:
    return WinLog(load_config().tool_dir("wins"))


def _record(text: tuple[str, ...], kind: str | None) -> None:
    entry, total = _log().add(" ".join(text), kind)
    label = "Win" if entry.type == WIN else "Gratitude"
    click.echo(f"{click.style(f'{label} logged:', fg='green')} {entry.text}")
    if total % MILESTONE_EVERY == 0:
        click.echo()
        click.secho(f"Milestone: You've logged {total} entries! Keep celebrating the wins!", fg="yellow")


def _print_grouped(entries: list[Entry]) -> None:
    wins = [e for e in entries if e.type == WIN]
    grats = [e for e in entries if e.type == GRATITUDE]
    if wins:
        click.secho("Wins:", fg="yellow")
        for e in wins:
            click.echo(f"  {e.icon} {e.text}")
        click.echo()
    if grats:
        click.secho("Gratitude:", fg="magenta")
        for e in grats:
            click.echo(f"  {e.icon} {e.text}")
        click.echo()


@tool_group("wins", fallback="add")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Track daily wins and gratitude.

    \b
    wins shipped the release   same as: wins add shipped the release
    wins                       today's entries
    """
    if ctx.invoked_subcommand is None:
        ctx.invoke(today)


@cli.command()
@click.argument("text", nargs=-1, required=True)
def add(text: tuple[str, ...]) -> None:
    """Log an entry (gratitude if it starts with grateful/thankful/appreciate/glad)."""
    _record(text, None)


@cli.command()
@click.argument("text", nargs=-1, required=True)
def win(text: tuple[str, ...]) -> None:
    """Log a win."""
    _record(text, WIN)


@cli.command()
@click.argument("text", nargs=-1, required=True)
def grateful(text: tuple[str, ...]) -> None:
    """Log something you're grateful for."""
    _record(text, GRATITUDE)


@cli.command()
def today() -> None:
    """Today's wins and gratitude."""
    day = dates.today_str()
    header(f"Today's Wins & Gratitude ({day})")
    click.echo()
    entries = _log().on(day)
    if not entries:
        click.echo("No entries today yet.")
        click.echo()
        click.echo('Add your first win:  wins win "Completed a difficult task"')
        click.echo('Or some gratitude:   wins grateful "Had a great cup of coffee"')
        return
    _print_grouped(entries)


@cli.command()
def week() -> None:
    """Entries from the last 7 days."""
    header("This Week's Wins & Gratitude")
    click.echo()
    entries = _log().since(7)
    if not entries:
        click.echo("No entries this week yet. Start building your streak!")
        return
    for day, group in groupby(sorted(entries, key=lambda e: e.date, reverse=True), key=lambda e: e.date):
        click.secho(f"{day} ({dates.weekday_name(day)})", fg="cyan")
        for e in group:
            click.echo(f"  {e.icon} {e.text}")
        click.echo()
    n_wins = sum(1 for e in entries if e.type == WIN)
    click.echo(f"Week totals: {n_wins} wins, {len(entries) - n_wins} gratitude entries")


@cli.command()
def streak() -> None:
    """Current and longest streak of days with entries."""
    log = _log()
    current, longest = log.streaks()
    header("Your Streak")
    click.echo()
    if current:
        click.secho(f"Current streak: {current} day(s)", fg="green")
        click.echo("  " + "🔥" * min(current, 7) + ("..." if current > 7 else ""))
    else:
        click.secho("Current streak: 0 days", fg="yellow")
        click.echo("  Add an entry today to start your streak!")
    click.echo()
    entries = log.all()
    click.secho(f"Longest streak: {longest} day(s)", fg="cyan")
    click.secho(f"Total entries: {len(entries)} across {len({e.date for e in entries})} days", fg="cyan")


@cli.command("random")
def random_cmd() -> None:
    """A random past win for motivation."""
    entries = _log().all()
    if not entries:
        click.echo("No entries yet. Add some wins first!")
        return
    entry = random.choice(entries)
    header("Random Win for Motivation")
    click.echo()
    click.secho(f"{entry.icon} {entry.text}", fg="yellow")
    click.echo()
    click.secho(f"From: {entry.date}", dim=True)
    click.echo()
    click.secho("You've accomplished this before. You can do it again!", fg="cyan")


@cli.command()
def stats() -> None:
    """Totals and the last 7 days at a glance."""
    entries = _log().all()
    n_wins = sum(1 for e in entries if e.type == WIN)
    days = sorted({e.date for e in entries})
    header("Wins & Gratitude Statistics")
    click.echo()
    click.secho("Overview:", fg="yellow")
    click.echo(f"  Total entries: {len(entries)}")
    click.echo(f"  Wins logged: {n_wins}")
    click.echo(f"  Gratitude logged: {len(entries) - n_wins}")
    click.echo(f"  Days with entries: {len(days)}")
    click.echo(f"  First entry: {days[0] if days else 'N/A'}")
    if days:
        click.echo(f"  Average per day: {len(entries) / len(days):.1f} entries")
    click.echo()
    click.secho("Recent Activity (Last 7 days):", fg="yellow")
    click.echo()
    counts: dict[str, int] = {}
    for e in entries:
        counts[e.date] = counts.get(e.date, 0) + 1
    today_s = dates.today_str()
    for d in dates.last_n_days(7):
        key = d.strftime(dates.DATE_FMT)
        n = counts.get(key, 0)
        label = f"{d.strftime('%a'):<3}"
        if key == today_s:
            label = click.style(label, fg="green")
        click.echo(f"  {label} {'█' * min(n, 10)} ({n})")


@cli.command()
@click.argument("query", nargs=-1, required=True)
def search(query: tuple[str, ...]) -> None:
    """Case-insensitive search, grouped by date."""
    q = " ".join(query)
    header(f'Search Results: "{q}"')
    click.echo()
    found = _log().search(q)
    if not found:
        click.echo(f'No entries found matching "{q}"')
        return
    for day, group in groupby(sorted(found, key=lambda e: e.date), key=lambda e: e.date):
        click.echo(f"{day}:")
        for e in group:
            click.echo(f"  {e.icon} {e.text}")
        click.echo()
    click.secho(f"Found {len(found)} matching entries", fg="cyan")


def export_markdown(entries: list[Entry], days: int) -> str:
    lines = [f"# Wins & Gratitude (last {days} days)", "", f"Exported: {dates.stamp()}", ""]
    for day, group in groupby(sorted(entries, key=lambda e: e.date, reverse=True), key=lambda e: e.date):
        items = list(group)
        lines.append(f"## {day}")
        lines.append("")
        for kind, title in ((WIN, "Wins"), (GRATITUDE, "Gratitude")):
            picked = [e for e in items if e.type == kind]
            if picked:
                lines.append(f"**{title}:**")
                lines.extend(f"- {e.text}" for e in picked)
                lines.append("")
    return "\n".join(lines)


@cli.command()
@click.argument("days", type=int, default=30)
def export(days: int) -> None:
    """Print the last DAYS days as markdown."""
    click.echo(export_markdown(_log().since(days), days))


cli.add_command(random_cmd, name="motivate")


def main() -> None:
    setup_logging()
    cli(standalone_mode=True)
