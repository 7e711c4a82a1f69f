"""context: named project contexts with notes, env vars and time spent.

contexts.json maps normalised names to records; current.txt holds the name
of the active context; history.log has one ``timestamp|action|context``
line per create/switch/archive/remove.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import click

from prodkit import dates
from prodkit.config import load_config
from prodkit.groups import tool_group
from prodkit.output import header, setup_logging
from prodkit.store import JsonStore, append_line, read_lines, write_text

logger = logging.getLogger("prodkit.context")

RECENT_NOTES = 3


def normalize(name: str) -> str:
    """'My Project' -> 'my-project'."""
    return name.strip().lower().replace(" ", "-")


@dataclass
class Context:
    name: str
    directory: str
    created: str = ""
    last_accessed: str = ""
    notes: list[dict[str, str]] = field(default_factory=list)
    env_vars: dict[str, str] = field(default_factory=dict)
    archived: bool = False
    total_time_minutes: int = 0

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Context:
        return cls(
            name=d["name"],
            directory=d.get("directory", ""),
            created=d.get("created", ""),
            last_accessed=d.get("last_accessed", ""),
            notes=list(d.get("notes", [])),
            env_vars=dict(d.get("env_vars", {})),
            archived=bool(d.get("archived", False)),
            total_time_minutes=int(d.get("total_time_minutes", 0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "directory": self.directory,
            "created": self.created,
            "last_accessed": self.last_accessed,
            "notes": self.notes,
            "env_vars": self.env_vars,
            "archived": self.archived,
            "total_time_minutes": self.total_time_minutes,
        }


def parse_env_pair(pair: str) -> tuple[str, str]:
    key, sep, value = pair.partition("=")
    if not sep or not key.strip():
        msg = f"expected KEY=value, got '{pair}'"
        raise ValueError(msg)
    return key.strip(), value


def _minutes_since(stamp: str, now: datetime) -> int:
    try:
        then = datetime.strptime(stamp, dates.CLOCK_FMT)
    except ValueError:
        return 0
    return max(0, int((now - then).total_seconds() // 60))


class ContextBook:
    """contexts.json, current.txt and history.log under the tool's data dir."""

    def __init__(self, data_dir: Path) -> None:
        self.store = JsonStore(data_dir / "contexts.json", {"contexts": {}})
        self.current_path = data_dir / "current.txt"
        self.history_path = data_dir / "history.log"

    def all(self) -> list[Context]:
        raw = self.store.read()["contexts"]
        return [Context.from_dict(raw[k]) for k in sorted(raw)]

    def exists(self, name: str) -> bool:
        return normalize(name) in self.store.read()["contexts"]

    def get(self, name: str) -> Context:
        key = normalize(name)
        raw = self.store.read()["contexts"].get(key)
        if raw is None:
            msg = f"context '{key}' not found"
            raise KeyError(msg)
        return Context.from_dict(raw)

    def current_name(self) -> str | None:
        if not self.current_path.exists():
            return None
        return self.current_path.read_text().strip() or None

    def current(self) -> Context:
        name = self.current_name()
        if name is None:
            msg = "no active context (switch to one first)"
            raise ValueError(msg)
        return self.get(name)

    def _log(self, action: str, name: str) -> None:
        append_line(self.history_path, f"{dates.clock()}|{action}|{name}")
        logger.info("%s %s", action, name)

    def history(self) -> list[tuple[str, str, str]]:
        out = []
        for line in read_lines(self.history_path):
            parts = line.split("|", 2)
            if len(parts) == 3:
                out.append((parts[0], parts[1], parts[2]))
        return out

    def create(self, name: str, directory: str | Path | None = None) -> Context:
        key = normalize(name)
        if not key:
            msg = "context name is empty"
            raise ValueError(msg)
        path = Path(directory).expanduser() if directory else Path.cwd()
        ts = dates.clock()
        with self.store.update() as doc:
            if key in doc["contexts"]:
                msg = f"context '{key}' already exists (use: context switch {key})"
                raise FileExistsError(msg)
            ctx = Context(name=key, directory=str(path.resolve()), created=ts, last_accessed=ts)
            doc["contexts"][key] = ctx.to_dict()
        self._log("create", key)
        return ctx

    def switch(self, name: str, *, unarchive: bool = False, now: datetime | None = None) -> Context:
        """Make name current, adding the time since the last switch to the previous context."""
        key = normalize(name)
        now = now or datetime.now()
        previous = self.current_name()
        with self.store.update() as doc:
            raw = doc["contexts"].get(key)
            if raw is None:
                msg = f"context '{key}' not found"
                raise KeyError(msg)
            ctx = Context.from_dict(raw)
            if ctx.archived:
                if not unarchive:
                    msg = f"context '{key}' is archived"
                    raise ValueError(msg)
                ctx.archived = False
            if previous == key:
                # Re-entering the current context keeps its running time
                ctx.total_time_minutes += _minutes_since(ctx.last_accessed, now)
            elif previous and previous in doc["contexts"]:
                prev = Context.from_dict(doc["contexts"][previous])
                prev.total_time_minutes += _minutes_since(prev.last_accessed, now)
                doc["contexts"][previous] = prev.to_dict()
            ctx.last_accessed = now.strftime(dates.CLOCK_FMT)
            doc["contexts"][key] = ctx.to_dict()
        write_text(self.current_path, key + "\n")
        self._log("switch", key)
        return ctx

    def _modify_current(self, fn: Any) -> Context:
        name = self.current().name
        with self.store.update() as doc:
            ctx = Context.from_dict(doc["contexts"][name])
            fn(ctx)
            doc["contexts"][name] = ctx.to_dict()
        return ctx

    def add_note(self, text: str) -> Context:
        if not text.strip():
            msg = "note is empty"
            raise ValueError(msg)
        return self._modify_current(lambda c: c.notes.append({"text": text.strip(), "timestamp": dates.clock()}))

    def set_env(self, pair: str) -> tuple[Context, str, str]:
        key, value = parse_env_pair(pair)

        def apply(c: Context) -> None:
            c.env_vars[key] = value

        return self._modify_current(apply), key, value

    def _clear_current_if(self, key: str) -> None:
        if self.current_name() == key:
            self.current_path.unlink(missing_ok=True)

    def archive(self, name: str) -> Context:
        key = normalize(name)
        with self.store.update() as doc:
            if key not in doc["contexts"]:
                msg = f"context '{key}' not found"
                raise KeyError(msg)
            ctx = Context.from_dict(doc["contexts"][key])
            ctx.archived = True
            doc["contexts"][key] = ctx.to_dict()
        self._clear_current_if(key)
        self._log("archive", key)
        return ctx

    def remove(self, name: str) -> Context:
        key = normalize(name)
        with self.store.update() as doc:
            if key not in doc["contexts"]:
                msg = f"context '{key}' not found"
                raise KeyError(msg)
            ctx = Context.from_dict(doc["contexts"].pop(key))
        self._clear_current_if(key)
        self._log("remove", key)
        return ctx

    def switches_on(self, day: str) -> int:
        return sum(1 for ts, action, _ in self.history() if action == "switch" and ts.startswith(day))


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _book() -> ContextBook:
    return ContextBook(load_config().tool_dir("context"))


def _names_a_context(word: str) -> bool:
    return _book().exists(word)


@tool_group("context", fallback="switch", fallback_when=_names_a_context)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Switch between project contexts.

    \b
    context webapp     same as: context switch webapp
    context            the current context
    """
    if ctx.invoked_subcommand is None:
        ctx.invoke(current)


@cli.command()
@click.argument("name")
@click.option("--dir", "-d", "directory", type=click.Path(file_okay=False), default=None,
              help="Project directory (default: current directory)")
@click.option("--switch/--no-switch", "switch_now", default=None, help="Switch to it right away")
@click.pass_context
def create(ctx: click.Context, name: str, directory: str | None, switch_now: bool | None) -> None:
    """Create a context for a project directory."""
    c = _book().create(name, directory)
    click.echo(f"{click.style('Created context:', fg='green')} {c.name}")
    click.echo(f"{click.style('Directory:', fg='cyan')} {c.directory}")
    if switch_now is None:
        switch_now = click.confirm("Switch to this context now?", default=True)
    if switch_now:
        ctx.invoke(switch, name=[c.name])


@cli.command()
@click.argument("name", nargs=-1, required=True)
def switch(name: tuple[str, ...]) -> None:
    """Make a context current and show where you left off."""
    book = _book()
    key = normalize(" ".join(name))
    target = book.get(key)
    unarchive = False
    if target.archived:
        click.secho(f"Context '{key}' is archived.", fg="yellow")
        if not click.confirm("Unarchive and switch to it?", default=False):
            return
        unarchive = True
    c = book.switch(key, unarchive=unarchive)
    click.echo(f"{click.style('Switched to:', fg='green')} {c.name}")
    click.echo(f"{click.style('Directory:', fg='cyan')} {c.directory}")
    if c.notes:
        click.echo()
        click.secho("Recent notes:", fg="yellow")
        for note in c.notes[-RECENT_NOTES:]:
            click.echo(f"  - {note.get('text', '')}")
    if c.env_vars:
        click.echo()
        click.secho("Environment variables:", fg="magenta")
        for k, v in c.env_vars.items():
            click.echo(f'  export {k}="{v}"')
        click.echo()
        click.secho("(Copy and run the above to set environment)", dim=True)
    click.echo()
    click.secho(f"To change directory: cd {c.directory}", dim=True)


@cli.command()
def current() -> None:
    """Show the current context."""
    book = _book()
    if book.current_name() is None:
        click.secho("No active context.", dim=True)
        click.echo('Switch to one with: context switch "project"')
        return
    c = book.current()
    header("Current Context")
    click.echo()
    click.echo(f"{click.style('Name:', fg='green')} {c.name}")
    click.echo(f"{click.style('Directory:', fg='cyan')} {c.directory}")
    click.echo(f"{click.style('Created:', fg='cyan')} {c.created}")
    click.echo(f"{click.style('Last accessed:', fg='cyan')} {c.last_accessed}")
    click.echo(f"{click.style('Time tracked:', fg='cyan')} {dates.format_minutes(c.total_time_minutes)}")
    if c.notes:
        click.echo()
        click.secho(f"Notes ({len(c.notes)}):", fg="yellow")
        for note in c.notes[-5:]:
            clock = note.get("timestamp", "").split(" ")[-1]
            click.echo(f"  [{clock}] {note.get('text', '')}")
    if c.env_vars:
        click.echo()
        click.secho(f"Environment ({len(c.env_vars)} vars):", fg="magenta")
        for k in sorted(c.env_vars):
            click.echo(f"  {k}")


@cli.command("list")
@click.option("--all", "-a", "show_all", is_flag=True, help="Include archived contexts")
def list_cmd(show_all: bool) -> None:
    """List contexts (* marks the current one)."""
    book = _book()
    contexts = book.all()
    if not contexts:
        click.echo("No contexts created yet.")
        click.echo('Create one with: context create "project-name" [--dir DIR]')
        return
    active_name = book.current_name()
    header("All Contexts" if show_all else "Contexts")
    click.echo()
    archived = 0
    for c in contexts:
        where = click.style(f"({c.directory})", dim=True)
        if c.name == active_name:
            click.echo(f"  {click.style(f'* {c.name}', fg='green')} {where}")
        elif c.archived:
            archived += 1
            if show_all:
                click.secho(f"    {c.name} (archived)", dim=True)
        else:
            click.echo(f"    {c.name} {where}")
    if not show_all:
        click.echo()
        click.echo(f"{click.style('Active:', fg='cyan')} {len(contexts) - archived}")
        if archived:
            click.secho(f"Archived: {archived} (use 'context list --all' to see)", dim=True)


@cli.command()
@click.argument("text", nargs=-1, required=True)
def note(text: tuple[str, ...]) -> None:
    """Add a note to the current context."""
    body = " ".join(text)
    c = _book().add_note(body)
    click.echo(f"{click.style(f'Note added to {c.name}:', fg='green')} {body}")


@cli.command()
@click.argument("name", required=False)
def notes(name: str | None) -> None:
    """Show the notes of a context (default: current)."""
    book = _book()
    c = book.get(name) if name else book.current()
    header(f"Notes: {c.name}")
    click.echo()
    if not c.notes:
        click.echo('No notes yet. Add one with: context note "your note"')
        return
    for n in c.notes:
        click.echo(f"  {click.style('[' + n.get('timestamp', '') + ']', fg='cyan')} {n.get('text', '')}")


@cli.command()
@click.argument("pair", metavar="KEY=VALUE")
def env(pair: str) -> None:
    """Store an environment variable on the current context."""
    c, key, value = _book().set_env(pair)
    click.echo(f"{click.style(f'Added to {c.name}:', fg='green')} {key}={value}")
    click.secho(f'Run: export {key}="{value}"', dim=True)


@cli.command()
def status() -> None:
    """Current context, recent activity and today's switches."""
    book = _book()
    header("Context Status")
    click.echo()
    name = book.current_name()
    if name:
        click.echo(f"{click.style('Current:', fg='green')} {name}")
    else:
        click.echo(f"{click.style('Current:', dim=True)} (none)")
    click.echo()
    click.secho("Recent Activity:", fg="yellow")
    history = book.history()
    if not history:
        click.echo("  No activity yet")
    for ts, action, ctx_name in history[-5:]:
        click.echo(f"  {click.style('[' + ts.split(' ')[-1] + ']', dim=True)} {action} → {ctx_name}")
    click.echo()
    contexts = book.all()
    active = sum(1 for c in contexts if not c.archived)
    click.echo(f"{click.style('Total contexts:', fg='cyan')} {len(contexts)} ({active} active)")
    click.echo(f"{click.style('Switches today:', fg='cyan')} {book.switches_on(dates.today_str())}")


@cli.command()
@click.argument("name")
def archive(name: str) -> None:
    """Archive a context (clears it if current)."""
    c = _book().archive(name)
    click.echo(f"{click.style('Archived:', fg='yellow')} {c.name}")


@cli.command()
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def remove(name: str, yes: bool) -> None:
    """Permanently delete a context."""
    book = _book()
    c = book.get(name)
    if not yes:
        click.secho(f"This will permanently delete context '{c.name}' with {len(c.notes)} notes.", fg="yellow")
        if not click.confirm("Are you sure?", default=False):
            click.echo("Cancelled.")
            return
    book.remove(c.name)
    click.echo(f"{click.style('Removed:', fg='red')} {c.name}")


cli.add_command(create, name="new")
cli.add_command(switch, name="use")
cli.add_command(list_cmd, name="ls")


def main() -> None:
    setup_logging()
    cli(standalone_mode=True)
