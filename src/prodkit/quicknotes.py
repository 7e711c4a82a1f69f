"""quicknotes: timestamped one-line notes in a plain text file.

notes.txt holds one note per line: ``[2026-03-14 09:30:05] the note``.
Any unrecognised first word is taken as the start of a note, so
``quicknotes call the bank`` adds "call the bank".
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

import click

from prodkit import dates
from prodkit.config import load_config
from prodkit.groups import tool_group
from prodkit.output import header, open_editor, setup_logging
from prodkit.store import append_line, read_lines

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger("prodkit.quicknotes")

_LINE_RE = re.compile(r"^\[([^\]]+)\] ?(.*)$")


@dataclass
class Note:
    timestamp: str
    text: str

    @classmethod
    def parse(cls, line: str) -> Note:
        m = _LINE_RE.match(line)
        if not m:
            return cls(timestamp="", text=line)
        return cls(timestamp=m.group(1), text=m.group(2))

    def to_line(self) -> str:
        return f"[{self.timestamp}] {self.text}"


class NoteFile:
    """notes.txt under the tool's data dir."""

    def __init__(self, data_dir: Path) -> None:
        self.path = data_dir / "notes.txt"

    def all(self) -> list[Note]:
        return [Note.parse(line) for line in read_lines(self.path)]

    def add(self, text: str) -> Note:
        # Notes are single lines; fold piped multi-line input
        text = " ".join(text.split())
        if not text:
            msg = "note is empty"
            raise ValueError(msg)
        note = Note(timestamp=dates.clock(), text=text)
        append_line(self.path, note.to_line())
        logger.info("note added")
        return note

    def recent(self, count: int) -> list[Note]:
        notes = self.all()
        return notes[-count:] if count > 0 else []

    def search(self, query: str) -> list[Note]:
        q = query.lower()
        return [n for n in self.all() if q in n.text.lower() or q in n.timestamp.lower()]

    def on_day(self, day: str) -> list[Note]:
        return [n for n in self.all() if n.timestamp.startswith(day)]


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _notes() -> NoteFile:
    return NoteFile(load_config().tool_dir("quicknotes"))


def _show(notes: list[Note], *, time_only: bool = False) -> None:
    for note in notes:
        ts = note.timestamp.split(" ")[-1] if time_only else note.timestamp
        click.echo(f"{click.style(f'[{ts}]', fg='cyan')} {note.text}")


@tool_group("quicknotes", fallback="add")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Fast command-line note capture.

    \b
    quicknotes                  last 5 notes
    quicknotes buy more coffee  same as: quicknotes add buy more coffee
    echo "note" | quicknotes add
    """
    if ctx.invoked_subcommand is None:
        ctx.invoke(list_cmd, count=5)


@cli.command()
@click.argument("text", nargs=-1)
def add(text: tuple[str, ...]) -> None:
    """Add a note (reads stdin when no text is given and input is piped)."""
    body = " ".join(text)
    if not body:
        stdin = click.get_text_stream("stdin")
        if stdin.isatty():
            raise click.UsageError('Usage: quicknotes add "Your note here"')
        body = stdin.read()
    _notes().add(body)
    click.secho("Note added.", fg="green")


@cli.command("list")
@click.argument("count", type=int, default=10)
def list_cmd(count: int) -> None:
    """Show the last COUNT notes."""
    notes = _notes().recent(count)
    if not notes:
        click.echo('No notes yet. Add one with: quicknotes add "Your note"')
        return
    header(f"Last {count} Notes")
    click.echo()
    _show(notes)


@cli.command()
@click.argument("query", nargs=-1, required=True)
def search(query: tuple[str, ...]) -> None:
    """Case-insensitive search."""
    q = " ".join(query)
    header(f'Search Results: "{q}"')
    click.echo()
    found = _notes().search(q)
    if not found:
        click.echo(f'No notes found matching "{q}"')
        return
    _show(found)


@cli.command()
def today() -> None:
    """Notes written today."""
    day = dates.today_str()
    header(f"Today's Notes ({day})")
    click.echo()
    found = _notes().on_day(day)
    if not found:
        click.echo('No notes today. Add one with: quicknotes add "Your note"')
        return
    _show(found, time_only=True)


@cli.command()
def count() -> None:
    """Number of notes stored."""
    click.echo(str(len(_notes().all())))


@cli.command()
def edit() -> None:
    """Open the notes file in your editor."""
    cfg = load_config()
    notes = NoteFile(cfg.tool_dir("quicknotes"))
    notes.path.touch()
    open_editor(notes.path, cfg)


cli.add_command(list_cmd, name="ls")


def main() -> None:
    setup_logging()
    cli(standalone_mode=True)
