"""inbox: capture now, process later (GTD-style collection point).

An item is *active* while it is unprocessed and not deferred past today.
Processing an item marks it done, turns it into a task or a quick note,
defers it, or deletes it.

inbox.json:
    {"items": [{"id": 1, "content": "...", "created": "2026-03-14 09:30",
                "created_date": "2026-03-14", "priority": 1, "tags": [],
                "deferred_until": null, "processed": false,
                "processed_at": null, "source": "manual"}],
     "next_id": 2, "processed_count": 0}
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
from prodkit.output import console, header, setup_logging
from prodkit.quicknotes import NoteFile
from prodkit.store import JsonStore, allocate_id
from prodkit.tasks import TaskList

if TYPE_CHECKING:
    from pathlib import Path

    from prodkit.config import ProdkitConfig

logger = logging.getLogger("prodkit.inbox")

_PRIORITY_LABEL = {1: "high", 2: "medium", 3: "low"}
_PRIORITY_MARK = {1: ("!!!", "red"), 2: ("!! ", "yellow"), 3: ("!  ", "bright_black")}
# inbox priorities map onto task priorities when an item becomes a task
_TASK_PRIORITY = {1: "high", 2: "med", 3: "low"}


@dataclass
class InboxItem:
    id: int
    content: str
    created: str = ""
    created_date: str = ""
    priority: int | None = None
    tags: list[str] = field(default_factory=list)
    deferred_until: str | None = None
    processed: bool = False
    processed_at: str | None = None
    source: str = "manual"

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> InboxItem:
        return cls(
            id=int(d["id"]),
            content=d.get("content", ""),
            created=d.get("created", ""),
            created_date=d.get("created_date", ""),
            priority=d.get("priority"),
            tags=list(d.get("tags") or []),
            deferred_until=d.get("deferred_until"),
            processed=bool(d.get("processed", False)),
            processed_at=d.get("processed_at"),
            source=d.get("source", "manual"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "created": self.created,
            "created_date": self.created_date,
            "priority": self.priority,
            "tags": self.tags,
            "deferred_until": self.deferred_until,
            "processed": self.processed,
            "processed_at": self.processed_at,
            "source": self.source,
        }

    def is_active(self, today: str) -> bool:
        return not self.processed and (self.deferred_until is None or self.deferred_until <= today)

    def is_deferred(self, today: str) -> bool:
        return not self.processed and self.deferred_until is not None and self.deferred_until > today


def validate_priority(value: int | str) -> int:
    try:
        prio = int(value)
    except ValueError:
        prio = 0
    if prio not in _PRIORITY_LABEL:
        msg = "priority must be 1, 2, or 3"
        raise ValueError(msg)
    return prio


def parse_defer(value: str | None, today: date | None = None) -> str:
    """None -> tomorrow; '+N' -> N days out; else a YYYY-MM-DD date."""
    today = today or dates.today()
    if not value:
        return (today + timedelta(days=1)).strftime(dates.DATE_FMT)
    try:
        return dates.parse_relative(value, today).strftime(dates.DATE_FMT)
    except ValueError:
        msg = f"invalid date: {value} (use YYYY-MM-DD or +N, e.g. +3 for 3 days from now)"
        raise ValueError(msg) from None


class Inbox:
    """inbox.json under the tool's data dir."""

    def __init__(self, data_dir: Path) -> None:
        self.store = JsonStore(
            data_dir / "inbox.json", {"items": [], "next_id": 1, "processed_count": 0},
        )

    def all(self) -> list[InboxItem]:
        return [InboxItem.from_dict(i) for i in self.store.read()["items"]]

    def processed_count(self) -> int:
        return int(self.store.read().get("processed_count", 0))

    def get(self, item_id: int) -> InboxItem:
        for item in self.all():
            if item.id == item_id:
                return item
        msg = f"item #{item_id} not found"
        raise KeyError(msg)

    def add(self, content: str, priority: int | None = None, tags: list[str] | None = None) -> InboxItem:
        content = content.strip()
        if not content:
            msg = "item is empty"
            raise ValueError(msg)
        with self.store.update() as doc:
            item = InboxItem(
                id=allocate_id(doc),
                content=content,
                created=dates.stamp(),
                created_date=dates.today_str(),
                priority=validate_priority(priority) if priority is not None else None,
                tags=sorted(set(tags or [])),
            )
            doc["items"].append(item.to_dict())
        logger.info("captured item #%d", item.id)
        return item

    def active(self, today: str | None = None) -> list[InboxItem]:
        today = today or dates.today_str()
        items = [i for i in self.all() if i.is_active(today)]
        return sorted(items, key=lambda i: (i.priority or 4, i.created, i.id))

    def deferred(self, today: str | None = None) -> list[InboxItem]:
        today = today or dates.today_str()
        items = [i for i in self.all() if i.is_deferred(today)]
        return sorted(items, key=lambda i: (i.deferred_until or "", i.id))

    def _modify(self, item_id: int, **changes: Any) -> InboxItem:
        with self.store.update() as doc:
            for raw in doc["items"]:
                if int(raw["id"]) == item_id:
                    raw.update(changes)
                    return InboxItem.from_dict(raw)
        msg = f"item #{item_id} not found"
        raise KeyError(msg)

    def mark_done(self, item_id: int) -> tuple[InboxItem, bool]:
        """Mark processed. Returns (item, changed)."""
        with self.store.update() as doc:
            for raw in doc["items"]:
                if int(raw["id"]) != item_id:
                    continue
                if raw.get("processed"):
                    return InboxItem.from_dict(raw), False
                raw["processed"] = True
                raw["processed_at"] = dates.stamp()
                doc["processed_count"] = int(doc.get("processed_count", 0)) + 1
                item = InboxItem.from_dict(raw)
                break
            else:
                msg = f"item #{item_id} not found"
                raise KeyError(msg)
        logger.info("processed item #%d", item_id)
        return item, True

    def defer(self, item_id: int, until: str | None = None) -> InboxItem:
        return self._modify(item_id, deferred_until=parse_defer(until))

    def set_priority(self, item_id: int, priority: int | str) -> InboxItem:
        return self._modify(item_id, priority=validate_priority(priority))

    def tag(self, item_id: int, tags: list[str]) -> InboxItem:
        item = self.get(item_id)
        merged = sorted(set(item.tags) | {t.strip() for t in tags if t.strip()})
        return self._modify(item_id, tags=merged)

    def search(self, query: str) -> list[InboxItem]:
        q = query.lower()
        return [i for i in self.all() if q in i.content.lower() or any(q in t.lower() for t in i.tags)]

    def delete(self, item_id: int) -> InboxItem:
        with self.store.update() as doc:
            for i, raw in enumerate(doc["items"]):
                if int(raw["id"]) == item_id:
                    removed = InboxItem.from_dict(doc["items"].pop(i))
                    break
            else:
                msg = f"item #{item_id} not found"
                raise KeyError(msg)
        logger.info("deleted item #%d", item_id)
        return removed

    def clear_done(self) -> int:
        with self.store.update() as doc:
            before = len(doc["items"])
            doc["items"] = [i for i in doc["items"] if not i.get("processed")]
            return before - len(doc["items"])

    def to_task(self, item_id: int, tasks: TaskList) -> int:
        """Copy the item into the task list, then mark it done. Returns the task id."""
        item = self.get(item_id)
        task = tasks.add(item.content, priority=_TASK_PRIORITY.get(item.priority or 0))
        self.mark_done(item_id)
        return task.id

    def to_note(self, item_id: int, notes: NoteFile) -> None:
        item = self.get(item_id)
        notes.add(item.content)
        self.mark_done(item_id)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _inbox() -> Inbox:
    return Inbox(load_config().tool_dir("inbox"))


def _mark(priority: int | None) -> str:
    if priority not in _PRIORITY_MARK:
        return "   "
    sym, color = _PRIORITY_MARK[priority]  # type: ignore[index]
    return click.style(sym, fg=color)


def _line(item: InboxItem) -> str:
    tags = click.style(f" [{','.join(item.tags)}]", fg="cyan") if item.tags else ""
    return f"  {_mark(item.priority)} {click.style(f'#{item.id}', fg='cyan')} {item.content}{tags}"


@tool_group("inbox", fallback="add")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Capture and process incoming items.

    \b
    inbox call the dentist   same as: inbox add call the dentist
    inbox                    list active items
    """
    if ctx.invoked_subcommand is None:
        ctx.invoke(list_cmd)


@cli.command()
@click.argument("text", nargs=-1, required=True)
@click.option("--priority", "-p", type=int, help="1=high, 2=medium, 3=low")
@click.option("--tag", "-t", "tags", multiple=True, help="Tag (repeatable)")
def add(text: tuple[str, ...], priority: int | None, tags: tuple[str, ...]) -> None:
    """Quickly capture an item."""
    inbox = _inbox()
    item = inbox.add(" ".join(text), priority=priority, tags=list(tags))
    click.echo(f"{click.style('+', fg='green')} Captured #{item.id}: {item.content}")
    click.secho(f"Inbox: {len(inbox.active())} item(s) to process", dim=True)


@cli.command("list")
@click.option("--all", "-a", "show_all", is_flag=True, help="Show processed items too")
@click.option("--deferred", "-d", "show_deferred", is_flag=True, help="Show deferred items")
def list_cmd(show_all: bool, show_deferred: bool) -> None:
    """Show active inbox items."""
    inbox = _inbox()
    today = dates.today_str()
    items = inbox.all()
    active = inbox.active(today)
    deferred = inbox.deferred(today)
    processed = [i for i in items if i.processed]

    header("Inbox")
    click.echo()
    if not active and not show_all:
        click.secho("✓ Inbox zero! Nothing to process.", fg="green")
        if deferred:
            click.secho(f"  ({len(deferred)} item(s) deferred for later)", dim=True)
        return

    if active:
        click.secho(f"To Process ({len(active)}):", fg="yellow")
        click.echo()
        for item in active:
            click.echo(_line(item))
        click.echo()
    if (show_deferred or show_all) and deferred:
        click.secho(f"Deferred ({len(deferred)}):", fg="magenta")
        click.echo()
        for item in deferred:
            click.echo(f"  {click.style(f'#{item.id}', fg='cyan')} {item.content} "
                       + click.style(f"(until {item.deferred_until})", dim=True))
        click.echo()
    if show_all and processed:
        click.secho(f"Processed ({len(processed)}):", fg="green")
        click.echo()
        for item in processed:
            click.echo(f"  ✓ {click.style(f'#{item.id}', fg='cyan')} " + click.style(item.content, dim=True))
        click.echo()
    click.secho(f"Active: {len(active)} | Deferred: {len(deferred)} | Processed: {len(processed)}", dim=True)


def _process_one(inbox: Inbox, item: InboxItem, cfg: ProdkitConfig) -> bool:
    """Interactive handling of one item. Returns False when the user quits."""
    header(f"Processing Item #{item.id}")
    click.echo()
    click.secho(item.content, bold=True)
    click.echo()
    click.echo("  [d] Done    [t] Task    [n] Note    [f] Defer")
    click.echo("  [p] Priority    [s] Skip    [x] Delete    [q] Quit")
    choice = click.prompt("Choice", default="s", show_default=False).strip().lower()[:1]
    if choice == "d":
        inbox.mark_done(item.id)
        click.echo(f"{click.style('✓', fg='green')} Processed: {item.content}")
    elif choice == "t":
        task_id = inbox.to_task(item.id, TaskList(cfg.tool_dir("tasks")))
        click.echo(f"{click.style('✓', fg='green')} Added as task #{task_id}: {item.content}")
    elif choice == "n":
        inbox.to_note(item.id, NoteFile(cfg.tool_dir("quicknotes")))
        click.echo(f"{click.style('✓', fg='green')} Saved as note: {item.content}")
    elif choice == "f":
        until = click.prompt("Defer until (YYYY-MM-DD or +N days)", default="+1")
        deferred = inbox.defer(item.id, until)
        click.echo(f"Deferred until {deferred.deferred_until}: {item.content}")
    elif choice == "p":
        level = click.prompt("Priority (1=high, 2=medium, 3=low)")
        inbox.set_priority(item.id, level)
        click.echo(f"Set priority to {_PRIORITY_LABEL[validate_priority(level)]} for item #{item.id}")
    elif choice == "x":
        inbox.delete(item.id)
        click.echo(f"{click.style('✗', fg='red')} Deleted: {item.content}")
    elif choice == "q":
        return False
    else:
        click.secho("Skipped. Item remains in inbox.", dim=True)
    click.echo()
    return True


@cli.command()
@click.argument("item_id", type=int, required=False)
def process(item_id: int | None) -> None:
    """Interactively process one item, or walk through all active items."""
    cfg = load_config()
    inbox = Inbox(cfg.tool_dir("inbox"))
    if item_id is not None:
        item = inbox.get(item_id)
        if item.processed:
            click.echo(f"Item #{item_id} is already processed")
            return
        _process_one(inbox, item, cfg)
        return
    items = inbox.active()
    if not items:
        click.secho("✓ Inbox zero! Nothing to process.", fg="green")
        return
    for item in items:
        if not _process_one(inbox, item, cfg):
            break


@cli.command()
@click.argument("item_id", type=int)
def done(item_id: int) -> None:
    """Mark an item as processed."""
    item, changed = _inbox().mark_done(item_id)
    if not changed:
        click.echo(f"Item #{item_id} is already processed")
        return
    click.echo(f"{click.style('✓', fg='green')} Processed: {item.content}")


@cli.command()
@click.argument("item_id", type=int)
@click.argument("until", required=False)
def defer(item_id: int, until: str | None) -> None:
    """Defer until a date (YYYY-MM-DD or +N days; default tomorrow)."""
    item = _inbox().defer(item_id, until)
    click.echo(f"{click.style('⏰', fg='magenta')} Deferred until {item.deferred_until}: {item.content}")


@cli.command()
@click.argument("item_id", type=int)
@click.argument("level")
def priority(item_id: int, level: str) -> None:
    """Set priority (1=high, 2=medium, 3=low)."""
    item = _inbox().set_priority(item_id, level)
    click.echo(f"{_mark(item.priority)} Set priority to {_PRIORITY_LABEL[item.priority or 3]} for item #{item.id}")


@cli.command()
@click.argument("item_id", type=int)
@click.argument("tags")
def tag(item_id: int, tags: str) -> None:
    """Tag an item (comma separated)."""
    item = _inbox().tag(item_id, tags.split(","))
    click.secho(f"Tagged item #{item.id} with: {', '.join(item.tags)}", fg="cyan")


@cli.command()
@click.argument("query", nargs=-1, required=True)
def search(query: tuple[str, ...]) -> None:
    """Search items by content or tag."""
    q = " ".join(query)
    header(f'Search: "{q}"')
    click.echo()
    found = _inbox().search(q)
    if not found:
        click.echo(f'No items found matching "{q}"')
        return
    for item in found:
        if item.processed:
            click.echo(f"  ✓ #{item.id} " + click.style(item.content, dim=True))
        else:
            click.echo(f"  ○ {click.style(f'#{item.id}', fg='cyan')} {item.content}")


@cli.command()
@click.argument("item_id", type=int)
def delete(item_id: int) -> None:
    """Remove an item without processing it."""
    item = _inbox().delete(item_id)
    click.echo(f"{click.style('✗', fg='red')} Deleted: {item.content}")


@cli.command("to-task")
@click.argument("item_id", type=int)
def to_task(item_id: int) -> None:
    """Turn an item into a task and mark it processed."""
    cfg = load_config()
    inbox = Inbox(cfg.tool_dir("inbox"))
    task_id = inbox.to_task(item_id, TaskList(cfg.tool_dir("tasks")))
    click.echo(f"{click.style('✓', fg='green')} Added as task #{task_id}")


@cli.command("to-note")
@click.argument("item_id", type=int)
def to_note(item_id: int) -> None:
    """Save an item as a quick note and mark it processed."""
    cfg = load_config()
    inbox = Inbox(cfg.tool_dir("inbox"))
    inbox.to_note(item_id, NoteFile(cfg.tool_dir("quicknotes")))
    click.echo(f"{click.style('✓', fg='green')} Saved as note")


@cli.command()
def stats() -> None:
    """Inbox statistics."""
    from rich.table import Table

    inbox = _inbox()
    today = dates.today()
    today_s = today.strftime(dates.DATE_FMT)
    week_ago = (today - timedelta(days=7)).strftime(dates.DATE_FMT)
    items = inbox.all()
    pending = [i for i in items if not i.processed]
    active = inbox.active(today_s)

    table = Table(title="Inbox Statistics", show_header=False)
    table.add_column("Metric", style="dim")
    table.add_column("Value", justify="right")
    table.add_row("Active items", str(len(active)))
    table.add_row("Deferred items", str(len(inbox.deferred(today_s))))
    table.add_row("Processed items", str(len(items) - len(pending)))
    for level, label in _PRIORITY_LABEL.items():
        table.add_row(f"  {label} priority", str(sum(1 for i in pending if i.priority == level)))
    table.add_row("Total processed (all time)", str(inbox.processed_count()))
    table.add_row("Added today", str(sum(1 for i in pending if i.created_date == today_s)))
    table.add_row("This week", str(sum(1 for i in pending if i.created_date >= week_ago)))
    old = sum(1 for i in pending if i.created_date < week_ago)
    table.add_row("Older than 7d", f"[red]{old}[/red]" if old else "0")
    console().print(table)
    if not active:
        click.secho("✓ Congratulations! You've achieved inbox zero!", fg="green")


@cli.command("clear-done")
def clear_done() -> None:
    """Remove all processed items."""
    n = _inbox().clear_done()
    if not n:
        click.echo("No processed items to clear.")
        return
    click.secho(f"Cleared {n} processed item(s)", fg="green")


cli.add_command(list_cmd, name="ls")
cli.add_command(delete, name="rm")


def main() -> None:
    setup_logging()
    cli(standalone_mode=True)
