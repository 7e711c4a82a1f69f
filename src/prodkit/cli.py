"""prodkit CLI: every tool under one command.

Commands:
    prodkit init [--dir D]          write a commented prodkit.toml
    prodkit status                  config, data dir and record counts per tool
    prodkit <tool> <verb> [args]    e.g. prodkit tasks add "write report" -p high

Each tool is also installed on its own as pk-<tool>.
"""

from __future__ import annotations

import logging
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version
from pathlib import Path
from typing import TYPE_CHECKING

import click

from prodkit import (
    backup,
    checklist,
    contacts,
    context,
    focus,
    goals,
    habits,
    inbox,
    journal,
    quicknotes,
    scaffold,
    tasks,
    timelog,
    wins,
)
from prodkit.config import TOOLS, init_config, load_config
from prodkit.groups import CONTEXT_SETTINGS, ToolGroup
from prodkit.output import console, escape, setup_logging
from prodkit.store import StoreError

if TYPE_CHECKING:
    from collections.abc import Callable

    from prodkit.config import ProdkitConfig

logger = logging.getLogger("prodkit.cli")

TOOL_GROUPS: dict[str, click.Group] = {
    "backup": backup.cli,
    "checklist": checklist.cli,
    "context": context.cli,
    "contacts": contacts.cli,
    "timelog": timelog.cli,
    "habits": habits.cli,
    "goals": goals.cli,
    "focus": focus.cli,
    "quicknotes": quicknotes.cli,
    "journal": journal.cli,
    "scaffold": scaffold.cli,
    "inbox": inbox.cli,
    "wins": wins.cli,
    "tasks": tasks.cli,
}


def _count_backup(d: Path, cfg: ProdkitConfig) -> str:
    bm = backup.BackupManager(d, cfg.archive_dir)
    return f"{len(bm.sources())} sources, {len(bm.history())} backups"


def _count_tasks(d: Path, cfg: ProdkitConfig) -> str:
    items = tasks.TaskList(d).all()
    return f"{sum(1 for t in items if not t.completed)} pending / {len(items)}"


def _count_inbox(d: Path, cfg: ProdkitConfig) -> str:
    box = inbox.Inbox(d)
    return f"{len(box.active())} active / {len(box.all())}"


COUNTERS: dict[str, Callable[[Path, ProdkitConfig], str]] = {
    "backup": _count_backup,
    "checklist": lambda d, cfg: f"{len(checklist.ChecklistBook(d).slugs())} lists",
    "context": lambda d, cfg: f"{len(context.ContextBook(d).all())} contexts",
    "contacts": lambda d, cfg: f"{len(contacts.AddressBook(d).all())} contacts",
    "timelog": lambda d, cfg: f"{len(timelog.TimeLog(d).entries())} entries",
    "habits": lambda d, cfg: f"{len(habits.HabitTracker(d).habits())} habits",
    "goals": lambda d, cfg: f"{len(goals.GoalBook(d).all())} goals",
    "focus": lambda d, cfg: f"{len(focus.FocusManager(d).history())} sessions",
    "quicknotes": lambda d, cfg: f"{len(quicknotes.NoteFile(d).all())} notes",
    "journal": lambda d, cfg: f"{len(journal.Journal(d).entries())} entries",
    "scaffold": lambda d, cfg: f"{len(scaffold.Scaffolder(d).custom_names())} custom templates",
    "inbox": _count_inbox,
    "wins": lambda d, cfg: f"{len(wins.WinLog(d).all())} entries",
    "tasks": _count_tasks,
}


@click.group(cls=ToolGroup, context_settings=CONTEXT_SETTINGS)
@click.option("--verbose", "-v", is_flag=True, help="Log state changes (INFO)")
@click.option("--debug", is_flag=True, help="Log file locations too (DEBUG)")
@click.version_option(package_name="prodkit")
def cli(verbose: bool, debug: bool) -> None:
    """Personal productivity tools backed by local JSON files."""
    setup_logging("DEBUG" if debug else "INFO" if verbose else None)


@cli.command()
@click.option("--dir", "data_dir", default=None, help="Data directory to write into the config")
def init(data_dir: str | None) -> None:
    """Write a default prodkit.toml in the current directory."""
    try:
        path = init_config(Path.cwd(), data_dir)
    except FileExistsError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Created {path}")
    cfg = load_config()
    click.echo(f"Data directory: {cfg.data_dir}")


@cli.command()
def status() -> None:
    """Show config location, data directory and record counts per tool."""
    from rich.table import Table

    try:
        cfg = load_config()
    except (OSError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    try:
        ver = _pkg_version("prodkit")
    except PackageNotFoundError:
        ver = "unknown"

    table = Table(title="prodkit", show_header=True, header_style="bold")
    table.add_column("Tool", style="dim", no_wrap=True)
    table.add_column("Records", justify="right")
    table.add_row("Version", ver)
    table.add_row("Config", escape(str(cfg.config_path)) if cfg.config_path else "[dim](defaults)[/dim]")
    table.add_row("Data dir", escape(str(cfg.data_dir)))
    table.add_row("Log level", cfg.log_level)
    table.add_section()
    for tool in TOOLS:
        tool_dir = cfg.data_dir / tool
        if not tool_dir.is_dir():
            table.add_row(tool, "[dim]-[/dim]")
            continue
        try:
            table.add_row(tool, escape(COUNTERS[tool](tool_dir, cfg)))
        except StoreError as exc:
            logger.warning("cannot read %s data: %s", tool, exc)
            table.add_row(tool, "[red]unreadable[/red]")
    console().print(table)


for _name, _group in TOOL_GROUPS.items():
    cli.add_command(_group, name=_name)


def main() -> None:
    cli(standalone_mode=True)


if __name__ == "__main__":
    main()
