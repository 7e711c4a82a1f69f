"""journal: daily markdown journal with prompts, moods and a writing streak.

entries/YYYY-MM-DD.md holds one entry per day. index.json tracks word
counts, moods and the streak:
    {"entries": [{"date": "2026-03-14", "word_count": 212, "time": "21:40"}],
     "moods": {"2026-03-14": 4},
     "streak": {"current": 3, "longest": 9, "last_entry": "2026-03-14"}}

A bare date as the first word reads that day: ``journal 2026-03-01``.
"""

from __future__ import annotations

import json
import logging
import random
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Any

import click

from prodkit import dates
from prodkit.config import load_config
from prodkit.groups import tool_group
from prodkit.output import header, open_editor, setup_logging
from prodkit.store import JsonStore, write_text

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger("prodkit.journal")

PROMPTS = (
    "What's on your mind right now?",
    "What are you grateful for today?",
    "What's one thing you learned recently?",
    "How are you feeling, and why?",
    "What's a challenge you're facing?",
    "What made you smile today?",
    "What would make today a great day?",
    "What's something you're looking forward to?",
    "Describe your ideal day.",
    "What's a goal you're working toward?",
    "What's something you'd like to change?",
    "Who had an impact on you today?",
    "What's weighing on your mind?",
    "What's a small win from today?",
    "What are you curious about?",
    "How did you take care of yourself today?",
    "What's something you're proud of?",
    "What would you tell your past self?",
    "What's a lesson life has taught you?",
    "What does success mean to you right now?",
    "What boundaries do you need to set?",
    "What are you avoiding, and why?",
    "How have you grown recently?",
    "What brings you peace?",
    "What's your intention for tomorrow?",
)

MOODS = {
    1: ("😔", "Low/Difficult"),
    2: ("😐", "Below Average"),
    3: ("🙂", "Neutral/Okay"),
    4: ("😊", "Good"),
    5: ("😄", "Great/Excellent"),
}

DEFAULT_INDEX: dict[str, Any] = {
    "entries": [],
    "moods": {},
    "streak": {"current": 0, "longest": 0, "last_entry": None},
}

_PREVIEW_SKIP = re.compile(r"^(#|\*|---)")


@dataclass
class IndexEntry:
    date: str
    word_count: int
    time: str


def new_entry_text(day: str, now: str, prompt: str) -> str:
    return f"""# Journal Entry - {day}

**Time:** {now}

---

## Prompt
*{prompt}*

## Entry


---

## Quick Thoughts


---

*Written with journal*
"""


def quick_entry_text(day: str, now: str) -> str:
    return f"# Journal Entry - {day}\n\n**Time:** {now}\n\n---\n\n## Quick Thoughts\n\n"


def advance_streak(streak: dict[str, Any], day: date) -> dict[str, Any]:
    """Same day: unchanged; day after last entry: +1; otherwise restart at 1."""
    last = streak.get("last_entry")
    today_str = day.strftime(dates.DATE_FMT)
    if last == today_str:
        return streak
    yesterday = (day - timedelta(days=1)).strftime(dates.DATE_FMT)
    current = int(streak.get("current", 0)) + 1 if last == yesterday else 1
    return {
        "current": current,
        "longest": max(int(streak.get("longest", 0)), current),
        "last_entry": today_str,
    }


def preview(text: str, width: int = 60) -> str:
    for line in text.splitlines():
        if line.strip() and not _PREVIEW_SKIP.match(line):
            return line[:width]
    return ""


def parse_mood(value: str | int) -> int:
    text = str(value).strip()
    if text not in {"1", "2", "3", "4", "5"}:
        msg = "invalid mood, enter a number from 1-5"
        raise ValueError(msg)
    return int(text)


def resolve_day(word: str | None, today: date | None = None) -> str:
    """'today', 'yesterday' or YYYY-MM-DD (validated)."""
    today = today or dates.today()
    if not word or word == "today":
        return today.strftime(dates.DATE_FMT)
    if word == "yesterday":
        return (today - timedelta(days=1)).strftime(dates.DATE_FMT)
    return dates.parse_date(word).strftime(dates.DATE_FMT)


class Journal:
    """entries/ and index.json under the tool's data dir."""

    def __init__(self, data_dir: Path) -> None:
        self.entries_dir = data_dir / "entries"
        self.entries_dir.mkdir(parents=True, exist_ok=True)
        self.index = JsonStore(data_dir / "index.json", DEFAULT_INDEX)

    def entry_path(self, day: str) -> Path:
        return self.entries_dir / f"{day}.md"

    def exists(self, day: str) -> bool:
        return self.entry_path(day).exists()

    def read(self, day: str) -> str:
        path = self.entry_path(day)
        if not path.exists():
            msg = f"no journal entry for {day}"
            raise KeyError(msg)
        return path.read_text()

    def word_count(self, day: str) -> int:
        return len(self.read(day).split()) if self.exists(day) else 0

    def ensure_entry(self, day: str, prompt: str | None = None) -> bool:
        """Create day's entry from the template; False when it already existed."""
        path = self.entry_path(day)
        if path.exists():
            return False
        write_text(path, new_entry_text(day, datetime.now().strftime("%H:%M"), prompt or random_prompt()))
        logger.debug("created %s", path)
        return True

    def add_thought(self, text: str, today: date | None = None) -> str:
        text = text.strip()
        if not text:
            msg = "thought is empty"
            raise ValueError(msg)
        day = (today or dates.today()).strftime(dates.DATE_FMT)
        now = datetime.now().strftime("%H:%M")
        path = self.entry_path(day)
        body = path.read_text() if path.exists() else quick_entry_text(day, now)
        if not body.endswith("\n"):
            body += "\n"
        write_text(path, body + f"- [{now}] {text}\n")
        self.record(day, today)
        return day

    def record(self, day: str, today: date | None = None) -> IndexEntry:
        """Store the entry's word count and advance the streak."""
        words = self.word_count(day)
        with self.index.update() as doc:
            for e in doc["entries"]:
                if e["date"] == day:
                    e["word_count"] = words
                    entry = IndexEntry(day, words, e.get("time", ""))
                    break
            else:
                entry = IndexEntry(day, words, datetime.now().strftime("%H:%M"))
                doc["entries"].append({"date": day, "word_count": words, "time": entry.time})
            doc["streak"] = advance_streak(doc["streak"], today or dates.today())
        logger.info("journal entry %s recorded (%d words)", day, words)
        return entry

    def entries(self) -> list[IndexEntry]:
        """Indexed entries, newest first."""
        raw = sorted(self.index.read()["entries"], key=lambda e: e["date"], reverse=True)
        return [IndexEntry(e["date"], int(e.get("word_count", 0)), e.get("time", "")) for e in raw]

    def moods(self) -> dict[str, int]:
        return {k: int(v) for k, v in self.index.read()["moods"].items()}

    def set_mood(self, mood: int | str, day: str | None = None) -> int:
        value = parse_mood(mood)
        with self.index.update() as doc:
            doc["moods"][day or dates.today_str()] = value
        return value

    def streak(self) -> dict[str, Any]:
        return dict(self.index.read()["streak"])

    def search(self, query: str, context: int = 1) -> list[tuple[str, list[str]]]:
        """(date, matching lines with context) per entry, oldest first."""
        q = query.lower()
        hits = []
        for path in sorted(self.entries_dir.glob("*.md")):
            lines = path.read_text().splitlines()
            matched = [i for i, line in enumerate(lines) if q in line.lower()]
            if not matched:
                continue
            keep = sorted({j for i in matched for j in range(i - context, i + context + 1) if 0 <= j < len(lines)})
            hits.append((path.stem, [lines[j] for j in keep][:6]))
        return hits

    def export_markdown(self, days: int) -> str:
        parts = ["# Personal Journal", "", f"Exported: {dates.stamp()}", "", "---", ""]
        for e in self.entries()[:days]:
            if self.exists(e.date):
                parts += [self.read(e.date).rstrip("\n"), "", "---", ""]
        return "\n".join(parts) + "\n"

    def export_json(self, days: int) -> str:
        moods = self.moods()
        items = [
            {"date": e.date, "mood": moods.get(e.date), "content": self.read(e.date)}
            for e in self.entries()[:days]
            if self.exists(e.date)
        ]
        return json.dumps({"exported": dates.stamp(), "entries": items}, indent=2, ensure_ascii=False) + "\n"


def random_prompt() -> str:
    return random.choice(PROMPTS)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _journal() -> Journal:
    return Journal(load_config().tool_dir("journal"))


def _mood_label(mood: int | None) -> str:
    return MOODS[mood][0] if mood in MOODS else ""


@tool_group("journal", fallback="read", fallback_when=dates.is_date)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Personal daily journal for reflection and thought capture."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(write)


@cli.command()
def write() -> None:
    """Write or edit today's entry in the editor."""
    cfg = load_config()
    journal = Journal(cfg.tool_dir("journal"))
    day = dates.today_str()
    header(f"Journal: {day}")
    click.echo()
    prompt = random_prompt()
    if journal.ensure_entry(day, prompt):
        click.echo(f"{click.style('Prompt:', fg='cyan')} {prompt}")
        click.echo()
    open_editor(journal.entry_path(day), cfg)
    entry = journal.record(day)
    click.echo(f"{click.style('Journal entry saved', fg='green')} ({entry.word_count} words)")
    current = journal.streak()["current"]
    if current > 1:
        click.secho(f"Current streak: {current} days", fg="magenta")


@cli.command()
@click.argument("text", nargs=-1, required=True)
def add(text: tuple[str, ...]) -> None:
    """Append a quick thought to today's entry."""
    thought = " ".join(text)
    _journal().add_thought(thought)
    click.echo(f"{click.style('Added:', fg='green')} {thought}")


@cli.command()
def prompt() -> None:
    """Show a random journaling prompt."""
    header("Journaling Prompt")
    click.echo()
    click.secho(random_prompt(), fg="cyan")
    click.echo()
    click.secho("Start writing with: journal write", dim=True)


@cli.command()
def prompts() -> None:
    """List every journaling prompt."""
    header("Journaling Prompts")
    click.echo()
    for i, p in enumerate(PROMPTS, 1):
        click.echo(f"  {click.style(f'{i}.', fg='yellow')} {p}")


@cli.command()
def today() -> None:
    """Show today's entry."""
    journal = _journal()
    day = dates.today_str()
    if not journal.exists(day):
        click.secho("No journal entry for today yet.", fg="yellow")
        click.echo()
        click.echo(f"Start writing with: {click.style('journal write', fg='cyan')}")
        click.echo("Or add a quick thought: " + click.style('journal add "your thought"', fg="cyan"))
        return
    click.echo(journal.read(day), nl=False)


@cli.command()
@click.argument("day", metavar="[DATE|today|yesterday]", required=False)
def read(day: str | None) -> None:
    """Show the entry of a day."""
    click.echo(_journal().read(resolve_day(day)), nl=False)


@cli.command("list")
@click.argument("count", type=click.IntRange(min=1), required=False)
def list_cmd(count: int | None) -> None:
    """Recent entries, newest first."""
    count = count or load_config().journal.list_count
    journal = _journal()
    entries = journal.entries()
    if not entries:
        click.echo("No journal entries yet.")
        click.echo()
        click.echo(f"Start your first entry with: {click.style('journal write', fg='cyan')}")
        return
    moods = journal.moods()
    header("Recent Journal Entries")
    click.echo()
    for e in entries[:count]:
        mood = _mood_label(moods.get(e.date))
        day_name = click.style(f"({dates.weekday_name(e.date)})", dim=True)
        click.echo(f"  {click.style(e.date, fg='green')} {day_name}{' ' + mood if mood else ''}")
        click.echo(f"    {click.style(f'{e.word_count} words', fg='cyan')} {click.style(f'written at {e.time}', dim=True)}")
        if journal.exists(e.date):
            text = preview(journal.read(e.date))
            if text:
                click.secho(f'    "{text}..."', dim=True)
        click.echo()


@cli.command()
@click.argument("query", nargs=-1, required=True)
def search(query: tuple[str, ...]) -> None:
    """Case-insensitive search over all entries."""
    q = " ".join(query)
    header(f'Search Results: "{q}"')
    click.echo()
    hits = _journal().search(q)
    if not hits:
        click.echo(f'No entries found matching "{q}"')
        return
    for day, lines in hits:
        click.echo(f"{click.style(day, fg='green')} {click.style(f'({dates.weekday_name(day)})', dim=True)}")
        for line in lines:
            click.echo(f"    {line}")
        click.echo()
    click.secho(f"Found in {len(hits)} entries", fg="cyan")


@cli.command()
@click.argument("value", metavar="[1-5]", required=False)
def mood(value: str | None) -> None:
    """Log today's mood from 1 (low) to 5 (great)."""
    if value is None:
        header("Log Today's Mood")
        click.echo()
        click.echo("Rate your mood from 1-5:")
        for n, (_, label) in MOODS.items():
            click.echo(f"  {n} - {label}")
        click.echo()
        value = click.prompt("Your mood (1-5)")
    logged = _journal().set_mood(value)
    emoji, label = MOODS[logged]
    click.echo(f"{click.style('Mood logged:', fg='green')} {emoji} {label}")


@cli.command()
def streak() -> None:
    """Current and longest journaling streak."""
    s = _journal().streak()
    current = int(s.get("current", 0))
    last = s.get("last_entry") or "never"
    header("Journaling Streak")
    click.echo()
    click.echo("  " + click.style("█" * min(current, 30), fg="green") + ("..." if current > 30 else ""))
    click.echo()
    click.echo(f"  {click.style('Current streak:', fg='cyan')} {current} day(s)")
    click.echo(f"  {click.style('Longest streak:', fg='cyan')} {s.get('longest', 0)} day(s)")
    click.echo(f"  {click.style('Last entry:', fg='cyan')} {last}")
    click.echo()
    if last != dates.today_str():
        click.secho("Don't break your streak! Write today's entry.", fg="yellow")
    else:
        click.secho("You've already journaled today.", fg="green")


@cli.command()
def stats() -> None:
    """Entry, word, streak and mood statistics."""
    journal = _journal()
    entries = journal.entries()
    total_words = sum(e.word_count for e in entries)
    s = journal.streak()
    header("Journal Statistics")
    click.echo()
    click.secho("Entries:", fg="cyan")
    click.echo(f"  Total entries: {len(entries)}")
    click.echo(f"  Total words: {total_words}")
    click.echo(f"  Average words per entry: {total_words // len(entries) if entries else 0}")
    click.echo()
    click.secho("Streaks:", fg="cyan")
    click.echo(f"  Current streak: {s.get('current', 0)} days")
    click.echo(f"  Longest streak: {s.get('longest', 0)} days")
    click.echo()
    moods = journal.moods()
    if moods:
        average = int(sum(moods.values()) / len(moods) * 10) / 10
        click.secho("Mood Tracking:", fg="cyan")
        click.echo(f"  Days logged: {len(moods)}")
        click.echo(f"  Average mood: {average} / 5")
        click.echo()
        click.echo("  Distribution:")
        values = list(moods.values())
        for m, (emoji, _) in MOODS.items():
            n = values.count(m)
            click.echo(f"    {emoji} {click.style('█' * n, fg='magenta')} ({n})")
        click.echo()
    week = [d.strftime(dates.DATE_FMT) for d in dates.last_n_days(7)]
    written = [d for d in week if journal.exists(d)]
    click.secho("This Week:", fg="cyan")
    click.echo(f"  Entries: {len(written)} / 7")
    click.echo(f"  Words: {sum(journal.word_count(d) for d in written)}")


@cli.command("random")
def random_cmd() -> None:
    """Read a random past entry."""
    journal = _journal()
    entries = [e for e in journal.entries() if journal.exists(e.date)]
    if not entries:
        click.echo("No past entries to read.")
        return
    picked = random.choice(entries)
    click.secho("Random entry from the past...", fg="magenta")
    click.echo()
    click.echo(journal.read(picked.date), nl=False)


@cli.command()
@click.argument("fmt", metavar="[md|json]", type=click.Choice(["md", "markdown", "json"]), default="md")
@click.argument("days", type=click.IntRange(min=1), default=30)
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write to a file instead of stdout")
def export(fmt: str, days: int, output: str | None) -> None:
    """Export the newest DAYS entries as markdown or JSON."""
    journal = _journal()
    text = journal.export_json(days) if fmt == "json" else journal.export_markdown(days)
    if output is None:
        click.echo(text, nl=False)
        return
    with click.open_file(output, "w") as f:
        f.write(text)
    click.echo(f"{click.style('Exported to:', fg='green')} {output}")


cli.add_command(write, name="w")
cli.add_command(write, name="edit")
cli.add_command(add, name="quick")
cli.add_command(today, name="t")
cli.add_command(read, name="view")
cli.add_command(list_cmd, name="ls")
cli.add_command(search, name="find")
cli.add_command(stats, name="statistics")


def main() -> None:
    setup_logging()
    cli(standalone_mode=True)
