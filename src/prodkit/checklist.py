"""checklist: reusable checklists for repetitive workflows.

Unlike tasks (one-off) or habits (daily), a checklist is checked off and
reset again: code reviews, deployments, morning routines.

Each checklist is one file, lists/<slug>.json:
    {"name": "Code Review", "description": "...", "created": "...",
     "items": [{"text": "...", "checked": false}],
     "completion_count": 0, "last_completed": null}

history.json records every full completion across all lists.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import click

from prodkit import dates
from prodkit.config import load_config
from prodkit.groups import tool_group
from prodkit.output import bar, header, setup_logging
from prodkit.store import JsonStore, write_json

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger("prodkit.checklist")

HISTORY_LIMIT = 20

TEMPLATES: dict[str, tuple[str, list[str]]] = {
    "code-review": ("Standard code review checklist", [
        "Code compiles without errors",
        "All tests pass",
        "No hardcoded secrets or credentials",
        "Error handling is appropriate",
        "Code follows style guidelines",
        "No obvious security vulnerabilities",
        "Documentation updated if needed",
        "No unnecessary console.log/print statements",
        "Edge cases considered",
        "Performance impact reviewed",
    ]),
    "deployment": ("Pre-deployment verification checklist", [
        "All tests passing in CI",
        "Code reviewed and approved",
        "Database migrations ready",
        "Environment variables configured",
        "Rollback plan prepared",
        "Monitoring/alerts configured",
        "Stakeholders notified",
        "Deployment window confirmed",
        "Post-deployment verification steps ready",
    ]),
    "pr-checklist": ("Pull request submission checklist", [
        "Branch is up to date with base",
        "Self-reviewed the diff",
        "Tests added/updated",
        "Documentation updated",
        "Commit messages are clear",
        "PR description explains the why",
        "Screenshots added if UI changes",
        "Linked to issue/ticket",
    ]),
    "morning-routine": ("Daily morning startup routine", [
        "Check calendar for today",
        "Review priority tasks",
        "Check and process email",
        "Review Slack/Teams messages",
        "Update task status",
        "Identify top 3 priorities for today",
        "Block focus time if needed",
    ]),
    "project-setup": ("New project initialization checklist", [
        "Create repository",
        "Initialize with appropriate template",
        "Set up README",
        "Configure linting/formatting",
        "Set up CI/CD pipeline",
        "Configure environment variables",
        "Set up development environment docs",
        "Add .gitignore",
        "Configure issue templates",
        "Set up branch protection rules",
    ]),
    "meeting-prep": ("Meeting preparation checklist", [
        "Review meeting agenda",
        "Prepare talking points",
        "Gather relevant documents/data",
        "Test audio/video if remote",
        "Prepare questions to ask",
        "Block time for follow-up actions",
    ]),
}

_ITEM_RE = re.compile(r"^-\s*\[([ xX]?)\]\s*(.*)$")


def slugify(name: str) -> str:
    """'Code Review!' -> 'code-review'."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


@dataclass
class Item:
    text: str
    checked: bool = False


@dataclass
class Checklist:
    name: str
    description: str = ""
    created: str = ""
    items: list[Item] = field(default_factory=list)
    completion_count: int = 0
    last_completed: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Checklist:
        return cls(
            name=d.get("name", ""),
            description=d.get("description") or "",
            created=d.get("created", ""),
            items=[Item(text=i.get("text", ""), checked=bool(i.get("checked"))) for i in d.get("items", [])],
            completion_count=int(d.get("completion_count", 0)),
            last_completed=d.get("last_completed"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "created": self.created,
            "items": [{"text": i.text, "checked": i.checked} for i in self.items],
            "completion_count": self.completion_count,
            "last_completed": self.last_completed,
        }

    @property
    def checked_count(self) -> int:
        return sum(1 for i in self.items if i.checked)

    @property
    def complete(self) -> bool:
        return bool(self.items) and all(i.checked for i in self.items)

    @property
    def percent(self) -> int:
        return self.checked_count * 100 // len(self.items) if self.items else 0

    def status(self) -> str:
        if not self.items:
            return "empty"
        if self.complete:
            return "complete"
        if self.checked_count:
            return f"{self.checked_count}/{len(self.items)}"
        return f"{len(self.items)} items"

    def item(self, number: int) -> Item:
        if not 1 <= number <= len(self.items):
            msg = f"item #{number} not found"
            raise KeyError(msg)
        return self.items[number - 1]


def to_markdown(cl: Checklist) -> str:
    lines = [f"# {cl.name}", ""]
    if cl.description:
        lines += [cl.description, ""]
    lines += [f"- [{'x' if i.checked else ' '}] {i.text}" for i in cl.items]
    return "\n".join(lines) + "\n"


def from_markdown(text: str) -> Checklist:
    """Parse exported markdown: first '# ' heading, '- [ ]' items, rest is description."""
    name = ""
    items: list[Item] = []
    description: list[str] = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        if not name and line.startswith("#"):
            name = line.lstrip("#").strip()
            continue
        m = _ITEM_RE.match(line)
        if m:
            items.append(Item(text=m.group(2).strip(), checked=m.group(1).lower() == "x"))
        else:
            description.append(line)
    if not name:
        msg = "could not parse a checklist name (expected a '# Name' heading)"
        raise ValueError(msg)
    return Checklist(name=name, description=" ".join(description), items=items)


class ChecklistBook:
    """lists/<slug>.json plus history.json under the tool's data dir."""

    def __init__(self, data_dir: Path) -> None:
        self.lists_dir = data_dir / "lists"
        self.lists_dir.mkdir(parents=True, exist_ok=True)
        self.history = JsonStore(data_dir / "history.json", {"completions": []})

    def _path(self, slug: str) -> Path:
        return self.lists_dir / f"{slug}.json"

    def _store(self, path: Path) -> JsonStore:
        return JsonStore(path, {"name": "", "items": []})

    def slugs(self) -> list[str]:
        return sorted(p.stem for p in self.lists_dir.glob("*.json"))

    def all(self) -> list[Checklist]:
        return [self._load(self._path(s)) for s in self.slugs()]

    def _load(self, path: Path) -> Checklist:
        return Checklist.from_dict(self._store(path).read())

    def resolve(self, name: str) -> Path:
        """Exact slug first, then a unique substring match on slugs."""
        slug = slugify(name)
        path = self._path(slug)
        if slug and path.exists():
            return path
        matches = [s for s in self.slugs() if slug and slug in s]
        if len(matches) == 1:
            return self._path(matches[0])
        if len(matches) > 1:
            names = ", ".join(self._load(self._path(s)).name for s in matches)
            msg = f"'{name}' matches several checklists: {names}"
            raise ValueError(msg)
        msg = f"checklist '{name}' not found"
        raise KeyError(msg)

    def get(self, name: str) -> Checklist:
        return self._load(self.resolve(name))

    def save(self, cl: Checklist, *, overwrite: bool = False) -> Path:
        slug = slugify(cl.name)
        if not slug:
            msg = f"'{cl.name}' is not a usable checklist name"
            raise ValueError(msg)
        path = self._path(slug)
        if path.exists() and not overwrite:
            msg = f"checklist '{cl.name}' already exists"
            raise FileExistsError(msg)
        if not cl.created:
            cl.created = dates.clock()
        write_json(path, cl.to_dict())
        return path

    def create(self, name: str, description: str = "") -> Checklist:
        cl = Checklist(name=name.strip(), description=description)
        self.save(cl)
        logger.info("checklist created: %s", cl.name)
        return cl

    def _modify(self, name: str, fn: Any) -> Checklist:
        path = self.resolve(name)
        with self._store(path).update() as doc:
            cl = Checklist.from_dict(doc)
            fn(cl)
            doc.clear()
            doc.update(cl.to_dict())
        return cl

    def add_item(self, name: str, text: str) -> Checklist:
        if not text.strip():
            msg = "item text is empty"
            raise ValueError(msg)
        return self._modify(name, lambda cl: cl.items.append(Item(text=text.strip())))

    def remove_item(self, name: str, number: int) -> tuple[Checklist, Item]:
        removed: list[Item] = []

        def apply(cl: Checklist) -> None:
            removed.append(cl.item(number))
            del cl.items[number - 1]

        cl = self._modify(name, apply)
        return cl, removed[0]

    def _record_completion(self, cl: Checklist) -> None:
        ts = dates.clock()
        cl.completion_count += 1
        cl.last_completed = ts
        with self.history.update() as doc:
            doc["completions"].append({"checklist": slugify(cl.name), "name": cl.name, "completed_at": ts})
        logger.info("checklist completed: %s", cl.name)

    def toggle(self, name: str, number: int) -> tuple[Checklist, Item, bool]:
        """Toggle one item. Returns (checklist, item, completed_now)."""
        result: dict[str, Any] = {}

        def apply(cl: Checklist) -> None:
            item = cl.item(number)
            item.checked = not item.checked
            result["item"] = item
            result["completed"] = item.checked and cl.complete
            if result["completed"]:
                self._record_completion(cl)

        cl = self._modify(name, apply)
        return cl, result["item"], result["completed"]

    def set_checked(self, name: str, checked: list[bool]) -> tuple[Checklist, bool]:
        """Store item states from an interactive run; records a completion when all are set."""
        result: dict[str, bool] = {}

        def apply(cl: Checklist) -> None:
            was_complete = cl.complete
            for item, state in zip(cl.items, checked):
                item.checked = state
            result["completed"] = cl.complete and not was_complete
            if result["completed"]:
                self._record_completion(cl)

        cl = self._modify(name, apply)
        return cl, result["completed"]

    def reset(self, name: str) -> Checklist:
        def apply(cl: Checklist) -> None:
            for item in cl.items:
                item.checked = False

        return self._modify(name, apply)

    def copy(self, source: str, dest: str) -> tuple[Checklist, Checklist]:
        src = self.get(source)
        clone = Checklist(
            name=dest.strip(),
            description=src.description,
            items=[Item(text=i.text) for i in src.items],
        )
        self.save(clone)
        return src, clone

    def delete(self, name: str) -> Checklist:
        path = self.resolve(name)
        cl = self._load(path)
        path.unlink()
        path.with_name(path.name + ".lock").unlink(missing_ok=True)
        logger.info("checklist deleted: %s", cl.name)
        return cl

    def completions(self, name: str | None = None) -> list[dict[str, str]]:
        """Completions, newest first; restricted to one checklist when name is given."""
        entries = self.history.read()["completions"]
        if name is not None:
            cl = self.get(name)
            slug = slugify(cl.name)
            entries = [e for e in entries if e.get("checklist") in (slug, cl.name)]
        return list(reversed(entries))

    def import_markdown(self, text: str, name: str | None = None, *, overwrite: bool = False) -> Checklist:
        cl = from_markdown(text)
        if name:
            cl.name = name.strip()
        self.save(cl, overwrite=overwrite)
        logger.info("checklist imported: %s (%d items)", cl.name, len(cl.items))
        return cl

    def from_template(self, template: str, name: str | None = None) -> Checklist:
        if template not in TEMPLATES:
            msg = f"unknown template '{template}' (see: checklist templates)"
            raise KeyError(msg)
        description, items = TEMPLATES[template]
        cl = Checklist(name=(name or template).strip(), description=description, items=[Item(t) for t in items])
        self.save(cl)
        return cl


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _book() -> ChecklistBook:
    return ChecklistBook(load_config().tool_dir("checklist"))


def _print_items(cl: Checklist) -> None:
    for n, item in enumerate(cl.items, 1):
        if item.checked:
            click.echo(f"  {click.style(f'{n}. [x]', fg='green')} {click.style(item.text, dim=True)}")
        else:
            click.echo(f"  {click.style(f'{n}. [ ]', fg='yellow')} {item.text}")


def _announce_completion() -> None:
    click.echo()
    click.secho("All items checked!", fg="green", bold=True)


@tool_group("checklist")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Reusable checklists for repetitive workflows."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(list_cmd)


@cli.command()
@click.argument("name")
@click.option("--description", "-d", default="", help="One-line description")
def new(name: str, description: str) -> None:
    """Create an empty checklist."""
    cl = _book().create(name, description)
    click.echo(f"{click.style('Created checklist:', fg='green')} {cl.name}")
    if cl.description:
        click.secho(cl.description, dim=True)
    click.echo()
    click.echo(f'Add items with: checklist add "{cl.name}" "Item description"')


@cli.command()
@click.argument("name")
@click.argument("item", nargs=-1, required=True)
def add(name: str, item: tuple[str, ...]) -> None:
    """Append an item to a checklist."""
    text = " ".join(item)
    cl = _book().add_item(name, text)
    click.echo(f"{click.style(f'Added to {cl.name}:', fg='green')} {text} (item #{len(cl.items)})")


@cli.command()
@click.argument("name")
@click.argument("number", type=int)
def remove(name: str, number: int) -> None:
    """Remove item NUMBER (1-based)."""
    _, item = _book().remove_item(name, number)
    click.echo(f"{click.style('Removed:', fg='red')} {item.text}")


@cli.command()
@click.argument("name")
@click.argument("number", type=int)
def check(name: str, number: int) -> None:
    """Toggle item NUMBER."""
    _, item, completed = _book().toggle(name, number)
    if item.checked:
        click.echo(f"{click.style('[x]', fg='green')} {item.text}")
    else:
        click.echo(f"{click.style('[ ]', dim=True)} {item.text}")
    if completed:
        _announce_completion()


@cli.command()
@click.argument("name")
def show(name: str) -> None:
    """Show items and progress."""
    cl = _book().get(name)
    header(cl.name)
    if cl.description:
        click.secho(cl.description, dim=True)
    click.echo()
    if not cl.items:
        click.echo("No items in this checklist.")
        click.echo(f'Add items with: checklist add "{cl.name}" "Item"')
        return
    click.echo(
        f"{click.style('Progress:', fg='cyan')} [{bar(cl.percent, 100)}] "
        f"{cl.percent}% ({cl.checked_count}/{len(cl.items)})"
    )
    click.echo()
    _print_items(cl)
    if cl.completion_count:
        click.echo()
        click.secho(f"Completed {cl.completion_count} time(s)", dim=True)


@cli.command()
@click.argument("name")
def reset(name: str) -> None:
    """Uncheck every item."""
    cl = _book().reset(name)
    click.echo(f"{click.style('Reset:', fg='cyan')} {cl.name}")
    click.echo("All items unchecked.")


@cli.command("list")
def list_cmd() -> None:
    """All checklists with their status."""
    lists = _book().all()
    header("Your Checklists")
    click.echo()
    if not lists:
        click.echo("No checklists yet.")
        click.echo()
        click.echo('Create one with: checklist new "Checklist Name"')
        click.echo("Or use a template: checklist templates")
        return
    colours = {"complete": "green", "empty": None}
    for cl in lists:
        status = cl.status()
        colour = colours.get(status, "yellow" if "/" in status else None)
        click.echo(f"  {click.style(cl.name, fg='cyan')} {click.style(f'({status})', fg=colour, dim=colour is None)}")
        if cl.description:
            click.secho(f"    {cl.description}", dim=True)
    click.echo()
    click.secho(f"Total: {len(lists)} checklist(s)", dim=True)


@cli.command()
@click.argument("name")
def run(name: str) -> None:
    """Walk through unchecked items: Enter checks, s skips, q quits."""
    book = _book()
    cl = book.get(name)
    if not cl.items:
        click.echo("Checklist is empty.")
        return
    header(f"Running: {cl.name}")
    click.secho("Press Enter to check, 's' to skip, 'q' to quit", dim=True)
    click.echo()
    states = [i.checked for i in cl.items]
    for n, item in enumerate(cl.items, 1):
        if item.checked:
            click.echo(f"{click.style(f'{n}. [x]', fg='green')} {item.text} (already checked)")
            continue
        answer = click.prompt(
            f"{click.style(f'{n}. [ ]', fg='yellow')} {item.text}",
            default="", show_default=False, prompt_suffix=" ",
        ).strip().lower()
        if answer == "q":
            click.echo()
            click.echo("Stopped.")
            break
        if answer == "s":
            click.secho("  Skipped", dim=True)
            continue
        states[n - 1] = True
        click.secho("  Checked!", fg="green")
    cl, completed = book.set_checked(name, states)
    click.echo()
    if completed:
        click.secho("Checklist complete!", fg="green", bold=True)
    elif not cl.complete:
        click.secho(f"Progress: {cl.checked_count}/{len(cl.items)} checked", fg="cyan")


@cli.command()
@click.argument("source")
@click.argument("dest")
def copy(source: str, dest: str) -> None:
    """Clone a checklist with checks and counters reset."""
    src, clone = _book().copy(source, dest)
    click.echo(f"{click.style('Created:', fg='green')} {clone.name} (copied from {src.name})")


@cli.command()
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def delete(name: str, yes: bool) -> None:
    """Delete a checklist."""
    book = _book()
    cl = book.get(name)
    if not yes and not click.confirm(f"Delete '{cl.name}'?", default=False):
        click.echo("Cancelled.")
        return
    book.delete(name)
    click.echo(f"{click.style('Deleted:', fg='red')} {cl.name}")


@cli.command()
@click.argument("name", required=False)
def history(name: str | None) -> None:
    """Recent completions (of one checklist when NAME is given)."""
    book = _book()
    if name:
        cl = book.get(name)
        entries = book.completions(name)
        header(f"History: {cl.name}")
        click.echo()
        for e in entries[:HISTORY_LIMIT]:
            click.echo(f"  {e.get('completed_at', '')}")
        click.echo()
        click.secho(f"Total completions: {len(entries)}", dim=True)
        return
    header("Recent Completions")
    click.echo()
    entries = book.completions()
    if not entries:
        click.echo("No completions yet.")
    for e in entries[:HISTORY_LIMIT]:
        click.echo(f"  {e.get('completed_at', '')} - {e.get('name') or e.get('checklist', '')}")


@cli.command()
@click.argument("name")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Write to FILE")
def export(name: str, output: str | None) -> None:
    """Export a checklist as markdown."""
    text = to_markdown(_book().get(name))
    if output:
        with open(output, "w") as f:
            f.write(text)
        click.echo(f"{click.style('Exported to:', fg='green')} {output}")
    else:
        click.echo(text, nl=False)


@cli.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--name", default=None, help="Name to use instead of the file's heading")
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing checklist")
def import_cmd(path: str, name: str | None, force: bool) -> None:
    """Import a checklist from a markdown file."""
    with open(path) as f:
        text = f.read()
    book = _book()
    try:
        cl = book.import_markdown(text, name, overwrite=force)
    except FileExistsError:
        if not click.confirm("Checklist already exists. Overwrite?", default=False):
            click.echo("Cancelled.")
            return
        cl = book.import_markdown(text, name, overwrite=True)
    click.echo(f"{click.style('Imported:', fg='green')} {cl.name} ({len(cl.items)} items)")


@cli.command()
def templates() -> None:
    """List built-in templates."""
    header("Built-in Templates")
    click.echo()
    for name, (description, items) in TEMPLATES.items():
        click.secho(f"  {name}", fg="cyan")
        click.secho(f"    {description} ({len(items)} items)", dim=True)
        click.echo()
    click.echo("Use with: checklist use-template <template-name> [name]")


@cli.command("use-template")
@click.argument("template")
@click.argument("name", required=False)
def use_template(template: str, name: str | None) -> None:
    """Create a checklist from a built-in template."""
    cl = _book().from_template(template, name)
    click.echo(f"{click.style('Created from template:', fg='green')} {cl.name} ({len(cl.items)} items)")
    click.echo()
    click.echo(f'Run with: checklist run "{cl.name}"')


cli.add_command(new, name="create")
cli.add_command(list_cmd, name="ls")


def main() -> None:
    setup_logging()
    cli(standalone_mode=True)
