"""contacts: professional contacts, interactions and follow-up reminders."""

from __future__ import annotations

import csv
import io
import json
import logging
from collections import Counter
from dataclasses import asdict, dataclass, field, fields
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

import click

from prodkit import dates
from prodkit.config import load_config
from prodkit.groups import tool_group
from prodkit.output import console, edit_text, escape, header, setup_logging
from prodkit.store import JsonStore, allocate_id

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger("prodkit.contacts")

CSV_FIELDS = ("name", "email", "company", "role", "phone", "tags", "last_contact", "followup_date")
# Fields a user may change through `edit`
_EDITABLE = ("name", "email", "company", "role", "phone", "linkedin", "notes", "tags",
             "followup_date", "followup_reason", "last_contact")
_TEXT_FIELDS = ("name", "email", "company", "role", "phone", "linkedin", "notes", "followup_reason")


@dataclass
class Contact:
    id: int
    name: str
    email: str = ""
    company: str = ""
    role: str = ""
    phone: str = ""
    linkedin: str = ""
    notes: str = ""
    tags: list[str] = field(default_factory=list)
    interactions: list[dict[str, str]] = field(default_factory=list)
    followup_date: str | None = None
    followup_reason: str = ""
    created: str = ""
    last_contact: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Contact:
        known = {f.name for f in fields(cls)}
        data = {k: v for k, v in d.items() if k in known}
        data["id"] = int(d["id"])
        for key in ("email", "company", "role", "phone", "linkedin", "notes", "followup_reason"):
            data[key] = data.get(key) or ""
        data["tags"] = list(data.get("tags") or [])
        data["interactions"] = list(data.get("interactions") or [])
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def days_since_contact(self, today: date) -> int | None:
        if not self.last_contact:
            return None
        return dates.days_between(self.last_contact, today)

    def matches(self, query: str) -> bool:
        q = query.lower()
        hay = (self.name, self.email, self.company, self.role, self.notes, " ".join(self.tags))
        return any(q in h.lower() for h in hay)


def split_tags(text: str) -> list[str]:
    return [t.strip() for t in text.split(",") if t.strip()]


class AddressBook:
    """contacts.json under the tool's data dir."""

    def __init__(self, data_dir: Path) -> None:
        self.store = JsonStore(data_dir / "contacts.json", {"contacts": [], "next_id": 1})

    def all(self) -> list[Contact]:
        return [Contact.from_dict(c) for c in self.store.read()["contacts"]]

    @staticmethod
    def _match(raw: dict[str, Any], ref: str) -> bool:
        ref = ref.strip()
        if ref.isdigit() and int(raw["id"]) == int(ref):
            return True
        return str(raw.get("name", "")).strip().lower() == ref.lower()

    def find(self, ref: str) -> Contact:
        """Lookup by id or case-insensitive exact name."""
        for raw in self.store.read()["contacts"]:
            if self._match(raw, ref):
                return Contact.from_dict(raw)
        msg = f"contact '{ref}' not found"
        raise KeyError(msg)

    def add(self, name: str, **details: Any) -> Contact:
        name = name.strip()
        if not name:
            msg = "contact name is empty"
            raise ValueError(msg)
        with self.store.update() as doc:
            if any(str(c.get("name", "")).lower() == name.lower() for c in doc["contacts"]):
                msg = f"contact '{name}' already exists (use: contacts edit \"{name}\")"
                raise FileExistsError(msg)
            contact = Contact(id=allocate_id(doc), name=name, created=dates.clock(), **details)
            doc["contacts"].append(contact.to_dict())
        logger.info("contact added: #%d", contact.id)
        return contact

    def _modify(self, ref: str, fn: Any) -> Contact:
        with self.store.update() as doc:
            for i, raw in enumerate(doc["contacts"]):
                if self._match(raw, ref):
                    contact = Contact.from_dict(raw)
                    fn(contact)
                    doc["contacts"][i] = contact.to_dict()
                    return contact
        msg = f"contact '{ref}' not found"
        raise KeyError(msg)

    def log(self, ref: str, note: str, today: date | None = None) -> Contact:
        if not note.strip():
            msg = "interaction note is empty"
            raise ValueError(msg)
        day = (today or dates.today()).strftime(dates.DATE_FMT)

        def apply(c: Contact) -> None:
            c.interactions.append({"date": day, "note": note.strip()})
            c.last_contact = day

        return self._modify(ref, apply)

    def tag(self, ref: str, tags: list[str]) -> Contact:
        if not tags:
            msg = "no tags given"
            raise ValueError(msg)

        def apply(c: Contact) -> None:
            c.tags = sorted(set(c.tags) | set(tags))

        return self._modify(ref, apply)

    def set_followup(self, ref: str, when: str, reason: str = "") -> Contact:
        dates.parse_date(when)

        def apply(c: Contact) -> None:
            c.followup_date = when
            c.followup_reason = reason

        return self._modify(ref, apply)

    def clear_followup(self, ref: str) -> Contact:
        def apply(c: Contact) -> None:
            c.followup_date = None
            c.followup_reason = ""

        return self._modify(ref, apply)

    def replace_fields(self, ref: str, changes: dict[str, Any]) -> Contact:
        """Apply an edited subset of fields (id, created and interactions are kept)."""
        unknown = set(changes) - set(_EDITABLE)
        if unknown:
            msg = f"unknown field(s): {', '.join(sorted(unknown))}"
            raise ValueError(msg)
        for key in _TEXT_FIELDS:
            if key in changes and not isinstance(changes[key], str):
                msg = f"{key} must be a string"
                raise ValueError(msg)
        for key in ("followup_date", "last_contact"):
            if changes.get(key) is not None and not isinstance(changes[key], str):
                msg = f"{key} must be a YYYY-MM-DD string or null"
                raise ValueError(msg)
            if changes.get(key):
                dates.parse_date(changes[key])
        if "tags" in changes and not (
            isinstance(changes["tags"], list) and all(isinstance(t, str) for t in changes["tags"])
        ):
            msg = "tags must be a list of strings"
            raise ValueError(msg)
        changes = dict(changes)
        if "name" in changes:
            changes["name"] = changes["name"].strip()
            if not changes["name"]:
                msg = "contact name is empty"
                raise ValueError(msg)

        with self.store.update() as doc:
            index = next((i for i, raw in enumerate(doc["contacts"]) if self._match(raw, ref)), None)
            if index is None:
                msg = f"contact '{ref}' not found"
                raise KeyError(msg)
            name = changes.get("name")
            if name and any(
                i != index and str(c.get("name", "")).strip().lower() == name.lower()
                for i, c in enumerate(doc["contacts"])
            ):
                msg = f"contact '{name}' already exists"
                raise FileExistsError(msg)
            contact = Contact.from_dict(doc["contacts"][index])
            for key, value in changes.items():
                setattr(contact, key, value)
            doc["contacts"][index] = contact.to_dict()
        logger.info("contact edited: #%d", contact.id)
        return contact

    def remove(self, ref: str) -> Contact:
        with self.store.update() as doc:
            for i, raw in enumerate(doc["contacts"]):
                if self._match(raw, ref):
                    removed = Contact.from_dict(doc["contacts"].pop(i))
                    logger.info("contact removed: #%d", removed.id)
                    return removed
        msg = f"contact '{ref}' not found"
        raise KeyError(msg)

    def select(self, tag: str | None = None, company: str | None = None) -> list[Contact]:
        out = sorted(self.all(), key=lambda c: c.name.lower())
        if tag:
            out = [c for c in out if tag in c.tags]
        if company:
            out = [c for c in out if company.lower() in c.company.lower()]
        return out

    def search(self, query: str) -> list[Contact]:
        return [c for c in self.all() if c.matches(query)]

    def followups(self, today: date, upcoming_days: int) -> tuple[list[Contact], list[Contact], list[Contact]]:
        """(overdue, due today, upcoming within upcoming_days), each sorted by date."""
        today_s = today.strftime(dates.DATE_FMT)
        horizon = (today + timedelta(days=upcoming_days)).strftime(dates.DATE_FMT)
        pending = sorted((c for c in self.all() if c.followup_date), key=lambda c: c.followup_date or "")
        overdue = [c for c in pending if c.followup_date < today_s]  # type: ignore[operator]
        due_today = [c for c in pending if c.followup_date == today_s]
        upcoming = [c for c in pending if today_s < c.followup_date <= horizon]  # type: ignore[operator]
        return overdue, due_today, upcoming

    def stale(self, today: date, stale_days: int, limit: int = 5) -> list[Contact]:
        cutoff = (today - timedelta(days=stale_days)).strftime(dates.DATE_FMT)
        found = [c for c in self.all() if c.last_contact and c.last_contact < cutoff and not c.followup_date]
        return sorted(found, key=lambda c: c.last_contact or "")[:limit]


def export_csv(contacts: list[Contact]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    buf.write(",".join(CSV_FIELDS) + "\n")
    for c in contacts:
        writer.writerow([c.name, c.email, c.company, c.role, c.phone, ";".join(c.tags),
                         c.last_contact or "", c.followup_date or ""])
    return buf.getvalue()


def export_json(contacts: list[Contact]) -> str:
    return json.dumps([c.to_dict() for c in contacts], indent=2, ensure_ascii=False) + "\n"


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _book() -> AddressBook:
    return AddressBook(load_config().tool_dir("contacts"))


def _pretty_date(value: str | None) -> str:
    if not value:
        return "Never"
    try:
        return dates.parse_date(value[:10]).strftime("%b %d, %Y")
    except ValueError:
        return value


@tool_group("contacts")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Professional networking and relationship manager."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(due)


@cli.command()
@click.argument("name")
@click.argument("email", required=False, default="")
@click.argument("company", required=False, default="")
@click.argument("role", required=False, default="")
@click.option("--email", "email_opt", default=None)
@click.option("--company", "company_opt", default=None)
@click.option("--role", "role_opt", default=None)
@click.option("--phone", default="")
@click.option("--linkedin", default="")
@click.option("--notes", default="")
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable, or comma separated)")
def add(name: str, email: str, company: str, role: str, email_opt: str | None, company_opt: str | None,
        role_opt: str | None, phone: str, linkedin: str, notes: str, tags: tuple[str, ...]) -> None:
    """Add a contact: NAME [EMAIL] [COMPANY] [ROLE]."""
    contact = _book().add(
        name,
        email=email_opt if email_opt is not None else email,
        company=company_opt if company_opt is not None else company,
        role=role_opt if role_opt is not None else role,
        phone=phone,
        linkedin=linkedin,
        notes=notes,
        tags=sorted({t for raw in tags for t in split_tags(raw)}),
    )
    click.echo(f"{click.style('Added contact:', fg='green')} {contact.name}")
    for label, value in (("Email", contact.email), ("Company", contact.company), ("Role", contact.role)):
        if value:
            click.echo(f"  {click.style(label + ':', fg='cyan')} {value}")


@cli.command("list")
@click.option("--tag", "-t", default=None, help="Only contacts with this tag")
@click.option("--company", "-c", default=None, help="Company substring")
def list_cmd(tag: str | None, company: str | None) -> None:
    """List contacts sorted by name."""
    book = _book()
    if not book.all():
        click.echo("No contacts yet.")
        click.echo('Add one with: contacts add "John Doe" "john@example.com" "Acme Inc" "Engineer"')
        return
    stale_days = load_config().contacts.stale_days
    today = dates.today()
    shown = book.select(tag, company)
    header("Contacts")
    click.echo()
    for c in shown:
        line = "  " + click.style(c.name, fg="green")
        if c.role and c.company:
            line += click.style(f" - {c.role} at {c.company}", dim=True)
        elif c.company or c.role:
            line += click.style(f" - {c.company or c.role}", dim=True)
        if c.tags:
            line += click.style(f" [{','.join(c.tags)}]", fg="cyan")
        ago = c.days_since_contact(today)
        if ago is not None and ago > stale_days:
            line += click.style(f" ({ago}d ago)", fg="yellow")
        click.echo(line)
    click.echo()
    click.secho(f"Total: {len(shown)} contact(s)", dim=True)


@cli.command()
@click.argument("ref")
def show(ref: str) -> None:
    """Show a contact (by id or name)."""
    c = _book().find(ref)
    header(f"Contact: {c.name}")
    click.echo()
    for label, value in (("Email", c.email), ("Company", c.company), ("Role", c.role),
                         ("Phone", c.phone), ("LinkedIn", c.linkedin), ("Tags", ", ".join(c.tags))):
        if value:
            click.echo("  " + click.style(f"{label}:".ljust(10), fg="cyan") + f" {value}")
    click.echo()
    click.echo(f"  {click.style('Added:', dim=True)}        {_pretty_date(c.created)}")
    click.echo(f"  {click.style('Last contact:', dim=True)} {_pretty_date(c.last_contact)}")
    if c.followup_date:
        days = dates.days_between(dates.today(), c.followup_date)
        if days < 0:
            click.echo(f"  {click.style('Follow-up:', fg='red')}    {_pretty_date(c.followup_date)} ({-days} days overdue)")
        elif days == 0:
            click.echo(f"  {click.style('Follow-up:', fg='yellow')}    Today!")
        else:
            click.echo(f"  {click.style('Follow-up:', fg='green')}    {_pretty_date(c.followup_date)} (in {days} days)")
        if c.followup_reason:
            click.secho(f"                {c.followup_reason}", dim=True)
    if c.notes:
        click.echo()
        click.secho("  Notes:", fg="cyan")
        for line in c.notes.splitlines():
            click.echo(f"    {line}")
    if c.interactions:
        click.echo()
        click.secho("  Recent Interactions:", fg="cyan")
        for it in list(reversed(c.interactions))[:5]:
            click.echo(f"    {it.get('date', '')}: {it.get('note', '')}")


@cli.command()
@click.argument("ref")
def edit(ref: str) -> None:
    """Edit a contact as JSON in your editor."""
    cfg = load_config()
    book = AddressBook(cfg.tool_dir("contacts"))
    contact = book.find(ref)
    editable = {k: v for k, v in contact.to_dict().items() if k in _EDITABLE}
    text = edit_text(json.dumps(editable, indent=2, ensure_ascii=False) + "\n", cfg, extension=".json")
    if text is None:
        click.echo("No changes.")
        return
    try:
        changes = json.loads(text)
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"invalid JSON, changes not saved ({exc.msg})") from exc
    if not isinstance(changes, dict):
        raise click.ClickException("invalid JSON, changes not saved (expected an object)")
    book.replace_fields(str(contact.id), changes)
    click.secho("Contact updated.", fg="green")


@cli.command()
@click.argument("ref")
@click.argument("note", nargs=-1, required=True)
def log(ref: str, note: tuple[str, ...]) -> None:
    """Log an interaction dated today."""
    text = " ".join(note)
    c = _book().log(ref, text)
    click.secho(f"Logged interaction with {c.name}", fg="green")
    click.secho(f"  {text}", dim=True)


@cli.command()
@click.argument("ref")
@click.argument("tags")
def tag(ref: str, tags: str) -> None:
    """Add comma-separated TAGS to a contact."""
    c = _book().tag(ref, split_tags(tags))
    click.echo(f"{click.style(f'Updated tags for {c.name}:', fg='green')} {', '.join(c.tags)}")


@cli.command()
@click.argument("ref")
@click.argument("when", metavar="DATE")
@click.argument("reason", nargs=-1)
def followup(ref: str, when: str, reason: tuple[str, ...]) -> None:
    """Set a follow-up reminder (YYYY-MM-DD)."""
    text = " ".join(reason)
    c = _book().set_followup(ref, when, text)
    click.echo(f"{click.style(f'Set follow-up for {c.name}:', fg='green')} {_pretty_date(when)}")
    if text:
        click.secho(f"  Reason: {text}", dim=True)


@cli.command("clear-followup")
@click.argument("ref")
def clear_followup(ref: str) -> None:
    """Clear a contact's follow-up."""
    c = _book().clear_followup(ref)
    click.secho(f"Cleared follow-up for {c.name}", fg="green")


@cli.command()
def due() -> None:
    """Overdue, today's and upcoming follow-ups, plus stale contacts."""
    cfg = load_config().contacts
    book = _book()
    today = dates.today()
    overdue, due_today, upcoming = book.followups(today, cfg.upcoming_days)
    header("Follow-ups")
    click.echo()

    def reason(c: Contact) -> None:
        if c.followup_reason:
            click.secho(f"    {c.followup_reason}", dim=True)

    if overdue:
        click.secho("Overdue:", fg="red")
        for c in overdue:
            days = -dates.days_between(today, c.followup_date or "")
            click.echo(f"  {click.style(c.name, fg='red')} - {_pretty_date(c.followup_date)} ({days}d overdue)")
            reason(c)
        click.echo()
    if due_today:
        click.secho("Due Today:", fg="yellow")
        for c in due_today:
            click.echo(f"  {click.style(c.name, fg='yellow')}")
            reason(c)
        click.echo()
    if upcoming:
        click.secho(f"Upcoming (next {cfg.upcoming_days} days):", fg="green")
        for c in upcoming:
            days = dates.days_between(today, c.followup_date or "")
            click.echo(f"  {click.style(c.name, fg='green')} - {_pretty_date(c.followup_date)} (in {days}d)")
            reason(c)
        click.echo()
    stale = book.stale(today, cfg.stale_days)
    if stale:
        click.secho(f"Stale Contacts ({cfg.stale_days}+ days, no follow-up set):", fg="magenta")
        for c in stale:
            click.echo(f"  {click.style(c.name, dim=True)} - last contact {c.days_since_contact(today)}d ago")
    if not (overdue or due_today or upcoming or stale):
        click.echo("Nothing due. Set one with: contacts followup \"Name\" YYYY-MM-DD [reason]")


@cli.command()
@click.argument("query", nargs=-1, required=True)
def search(query: tuple[str, ...]) -> None:
    """Search name, email, company, role, notes and tags."""
    q = " ".join(query)
    header(f'Search Results: "{q}"')
    click.echo()
    found = _book().search(q)
    if not found:
        click.echo(f'No contacts found matching "{q}"')
        return
    for c in found:
        line = "  " + click.style(c.name, fg="green")
        if c.company:
            line += click.style(f" at {c.company}", dim=True)
        if c.role:
            line += click.style(f" ({c.role})", dim=True)
        click.echo(line)


@cli.command()
def stats() -> None:
    """Networking statistics."""
    from rich.table import Table

    contacts = _book().all()
    cutoff = (dates.today() - timedelta(days=30)).strftime(dates.DATE_FMT)
    table = Table(title="Networking Statistics", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Total contacts", str(len(contacts)))
    table.add_row("With follow-up set", str(sum(1 for c in contacts if c.followup_date)))
    table.add_row("Contacted (last 30d)", str(sum(1 for c in contacts if c.last_contact and c.last_contact >= cutoff)))
    table.add_row(
        "Interactions (last 30d)",
        str(sum(1 for c in contacts for it in c.interactions if it.get("date", "") >= cutoff)),
    )
    out = console()
    out.print(table)

    tags = Counter(t for c in contacts for t in c.tags)
    companies = Counter(c.company for c in contacts if c.company)
    for title, counts in (("Top Tags", tags), ("Top Companies", companies)):
        if counts:
            out.print(f"\n[cyan]{title}:[/cyan]")
            for name, n in counts.most_common(5):
                out.print(f"  {escape(name)}: {n}")


@cli.command()
@click.argument("fmt", type=click.Choice(["csv", "json"]), default="json", metavar="[csv|json]")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Write to FILE")
def export(fmt: str, output: str | None) -> None:
    """Export contacts as CSV or JSON."""
    contacts = _book().all()
    text = export_csv(contacts) if fmt == "csv" else export_json(contacts)
    if output:
        with open(output, "w") as f:
            f.write(text)
        click.echo(f"Exported {len(contacts)} contact(s) to {output}")
    else:
        click.echo(text, nl=False)


@cli.command()
@click.argument("ref")
def remove(ref: str) -> None:
    """Remove a contact."""
    c = _book().remove(ref)
    click.echo(f"{click.style('Removed contact:', fg='red')} {c.name}")


cli.add_command(list_cmd, name="ls")
cli.add_command(remove, name="rm")


def main() -> None:
    setup_logging()
    cli(standalone_mode=True)
