"""backup: tar.gz backups of chosen files and of the tools' own data.

sources.json  {"sources": [{"id", "path", "type": "file"|"directory", "added"}], "next_id": N}
history.json  {"backups": [{"id": epoch, "name", "timestamp", "path", "size", "type", "files"}]}

Archives go to <data_dir>/backup/archives (or [backup] archive_dir). Member
names are the absolute source paths without the leading "/", so `restore`
extracts to "/" unless --to names another directory.
"""

from __future__ import annotations

import logging
import tarfile
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import click

from prodkit import dates
from prodkit.config import ProdkitConfig, load_config
from prodkit.groups import tool_group
from prodkit.output import header, human_size, setup_logging
from prodkit.store import JsonStore, allocate_id

logger = logging.getLogger("prodkit.backup")

SOURCES = "sources"
SUITE = "suite"


@dataclass
class Source:
    id: int
    path: str
    type: str
    added: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Source:
        return cls(id=int(d["id"]), path=d["path"], type=d.get("type", "file"), added=d.get("added", ""))


@dataclass
class BackupRecord:
    id: int
    name: str
    timestamp: str
    path: str
    size: int
    type: str = SOURCES
    files: int = 0

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> BackupRecord:
        return cls(
            id=int(d["id"]),
            name=d["name"],
            timestamp=d.get("timestamp", ""),
            path=d["path"],
            size=int(d.get("size", 0)),
            type=d.get("type", SOURCES),
            files=int(d.get("files", 0)),
        )

    @property
    def exists(self) -> bool:
        return Path(self.path).is_file()


@dataclass
class PruneResult:
    removed: list[BackupRecord] = field(default_factory=list)
    freed: int = 0


def arcname(path: Path) -> str:
    return str(path).lstrip("/")


def default_name(prefix: str = "backup", now: datetime | None = None) -> str:
    return f"{prefix}-{(now or datetime.now()).strftime('%Y%m%d-%H%M%S')}"


def _check_name(name: str) -> str:
    if not name or "/" in name or name.startswith("."):
        msg = f"invalid backup name '{name}'"
        raise ValueError(msg)
    return name


def safe_members(tar: tarfile.TarFile, target: Path) -> list[tarfile.TarInfo]:
    """All members, refusing any whose path or link would land outside target."""
    root = target.resolve()
    members = tar.getmembers()
    for m in members:
        dest = (root / m.name).resolve()
        if dest != root and root not in dest.parents:
            msg = f"refusing to extract '{m.name}': it escapes {target}"
            raise ValueError(msg)
        if m.issym() or m.islnk():
            link = (dest.parent / m.linkname).resolve() if m.issym() else (root / m.linkname).resolve()
            if link != root and root not in link.parents:
                msg = f"refusing to extract link '{m.name}' -> '{m.linkname}'"
                raise ValueError(msg)
    return members


class BackupManager:
    """Sources, history and archives of the backup tool."""

    def __init__(self, data_dir: Path, archive_dir: Path | None = None) -> None:
        self.data_dir = data_dir
        self.sources_store = JsonStore(data_dir / "sources.json", {"sources": [], "next_id": 1})
        self.history_store = JsonStore(data_dir / "history.json", {"backups": []})
        self.archive_dir = archive_dir or data_dir / "archives"

    @classmethod
    def from_config(cls, cfg: ProdkitConfig) -> BackupManager:
        return cls(cfg.tool_dir("backup"), cfg.archive_dir)

    # -- sources -----------------------------------------------------------

    def sources(self) -> list[Source]:
        return [Source.from_dict(s) for s in self.sources_store.read()["sources"]]

    def add_source(self, path: str | Path) -> tuple[Source, bool]:
        """Register path. Returns (source, added); added is False for a duplicate."""
        resolved = Path(path).expanduser().absolute()
        if not resolved.exists():
            msg = f"path does not exist: {resolved}"
            raise FileNotFoundError(msg)
        with self.sources_store.update() as doc:
            for s in doc["sources"]:
                if s["path"] == str(resolved):
                    return Source.from_dict(s), False
            source = Source(
                id=allocate_id(doc),
                path=str(resolved),
                type="directory" if resolved.is_dir() else "file",
                added=dates.stamp(),
            )
            doc["sources"].append(asdict(source))
        logger.info("backup source added: %s", resolved)
        return source, True

    def remove_source(self, source_id: int) -> Source:
        with self.sources_store.update() as doc:
            for i, s in enumerate(doc["sources"]):
                if int(s["id"]) == source_id:
                    removed = Source.from_dict(doc["sources"].pop(i))
                    break
            else:
                msg = f"source #{source_id} not found"
                raise KeyError(msg)
        logger.info("backup source removed: %s", removed.path)
        return removed

    def check_sources(self) -> tuple[list[Path], list[Path]]:
        """(present, missing) source paths."""
        present, missing = [], []
        for s in self.sources():
            (present if Path(s.path).exists() else missing).append(Path(s.path))
        return present, missing

    def suite_dirs(self) -> list[Path]:
        """Every tool data directory except backup's own."""
        tools_root = self.data_dir.parent
        if not tools_root.is_dir():
            return []
        archive = self.archive_dir.resolve()
        return [
            p for p in sorted(tools_root.iterdir())
            if p.is_dir() and p.resolve() != self.data_dir.resolve() and p.resolve() != archive
        ]

    # -- archives ----------------------------------------------------------

    def _archive(self, name: str, paths: list[Path], kind: str) -> BackupRecord:
        _check_name(name)
        self.archive_dir.mkdir(parents=True, exist_ok=True)
        target = self.archive_dir / f"{name}.tar.gz"
        if target.exists():
            msg = f"archive already exists: {target}"
            raise FileExistsError(msg)
        count = 0

        def _count(info: tarfile.TarInfo) -> tarfile.TarInfo:
            nonlocal count
            if info.isfile():
                count += 1
            return info

        # Built under a tmp name so a failed run leaves no half-written archive
        tmp = target.with_name(target.name + ".tmp")
        try:
            with tarfile.open(tmp, "w:gz") as tar:
                for p in paths:
                    tar.add(p, arcname=arcname(p), filter=_count)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
        tmp.replace(target)
        with self.history_store.update() as doc:
            taken = {int(b["id"]) for b in doc["backups"]}
            bid = int(time.time())
            while bid in taken:
                bid += 1
            record = BackupRecord(
                id=bid,
                name=name,
                timestamp=dates.clock(),
                path=str(target),
                size=target.stat().st_size,
                type=kind,
                files=count,
            )
            doc["backups"].append(asdict(record))
        logger.info("backup %s written: %s (%d files, %d bytes)", name, target, count, record.size)
        return record

    def run(self, name: str | None = None) -> BackupRecord:
        if not self.sources():
            msg = "no backup sources configured (add one with: backup add PATH)"
            raise ValueError(msg)
        present, missing = self.check_sources()
        for p in missing:
            logger.warning("source missing, skipped: %s", p)
        if not present:
            msg = "no valid sources to backup (all sources are missing)"
            raise ValueError(msg)
        return self._archive(name or default_name(), present, SOURCES)

    def suite(self, name: str | None = None) -> BackupRecord:
        dirs = self.suite_dirs()
        if not dirs:
            msg = "no tool data found to backup"
            raise ValueError(msg)
        return self._archive(name or default_name(SUITE), dirs, SUITE)

    def history(self) -> list[BackupRecord]:
        """Newest first."""
        records = [BackupRecord.from_dict(b) for b in self.history_store.read()["backups"]]
        return sorted(records, key=lambda b: b.id, reverse=True)

    def get(self, backup_id: int) -> BackupRecord:
        for b in self.history():
            if b.id == backup_id:
                return b
        msg = f"backup #{backup_id} not found (use 'backup history' to see available backups)"
        raise KeyError(msg)

    def verify(self, backup_id: int) -> int:
        """Number of members in the archive; raises when missing or unreadable."""
        record = self.get(backup_id)
        if not record.exists:
            msg = f"backup file not found: {record.path}"
            raise FileNotFoundError(msg)
        try:
            with tarfile.open(record.path, "r:gz") as tar:
                return len(tar.getmembers())
        except (tarfile.TarError, EOFError, OSError) as exc:
            msg = f"backup #{backup_id} is not a readable archive ({exc})"
            raise ValueError(msg) from exc

    def restore(self, backup_id: int, target: Path = Path("/")) -> int:
        record = self.get(backup_id)
        if not record.exists:
            msg = f"backup file not found: {record.path}"
            raise FileNotFoundError(msg)
        target.mkdir(parents=True, exist_ok=True)
        with tarfile.open(record.path, "r:gz") as tar:
            members = safe_members(tar, target)
            tar.extractall(target, members=members, filter="data")
        logger.info("restored backup %s into %s", record.name, target)
        return len(members)

    def prune(self, days: int, now: float | None = None) -> PruneResult:
        cutoff = (now or time.time()) - days * 86400
        result = PruneResult()
        with self.history_store.update() as doc:
            kept = []
            for raw in doc["backups"]:
                record = BackupRecord.from_dict(raw)
                if record.id >= cutoff:
                    kept.append(raw)
                    continue
                if record.exists:
                    result.freed += record.size
                    Path(record.path).unlink()
                result.removed.append(record)
            doc["backups"] = kept
        if result.removed:
            logger.info("pruned %d backups older than %d days", len(result.removed), days)
        return result


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _manager() -> BackupManager:
    return BackupManager.from_config(load_config())


def _report(record: BackupRecord, label: str) -> None:
    click.secho(f"{label} created successfully!", fg="green")
    click.echo(f"  Location: {click.style(record.path, fg='cyan')}")
    click.echo(f"  Size: {click.style(human_size(record.size), fg='cyan')}")
    click.echo(f"  Files: {record.files}")
    click.echo(f"  ID: {record.id}")


@tool_group("backup")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Backups of files, directories and the tools' own data."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(list_cmd)
        click.echo()
        ctx.invoke(history)


@cli.command()
@click.argument("path", type=click.Path())
def add(path: str) -> None:
    """Add a file or directory to the backup list."""
    source, added = _manager().add_source(path)
    if not added:
        click.secho(f"Path already in backup list: {source.path}", fg="yellow")
        return
    click.echo(f"{click.style('Added to backup list:', fg='green')} {source.path} ({source.type})")


@cli.command()
@click.argument("source_id", metavar="ID", type=int)
def remove(source_id: int) -> None:
    """Remove a source from the backup list."""
    source = _manager().remove_source(source_id)
    click.echo(f"{click.style('Removed from backup list:', fg='green')} {source.path}")


@cli.command("list")
def list_cmd() -> None:
    """Configured backup sources."""
    sources = _manager().sources()
    header("Backup Sources")
    click.echo()
    if not sources:
        click.echo("No backup sources configured.")
        click.echo()
        click.echo("Add sources with: backup add <path>")
        click.echo("Or backup all tool data: backup suite")
        return
    click.secho(f"Configured sources ({len(sources)}):", fg="cyan")
    for s in sources:
        icon = "📁" if s.type == "directory" else "📄"
        missing = "" if Path(s.path).exists() else click.style(" (missing)", fg="red")
        click.echo(f"  [{s.id}] {icon} {s.path}{missing}")


@cli.command()
@click.argument("name", required=False)
def run(name: str | None) -> None:
    """Archive every source into NAME.tar.gz."""
    bm = _manager()
    name = name or default_name()
    header("Creating Backup")
    click.echo()
    click.echo(f"Backup name: {click.style(name, fg='cyan')}")
    click.echo()
    present, missing = bm.check_sources()
    for p in present:
        click.echo(f"  {click.style('✓', fg='green')} {p}")
    for p in missing:
        click.echo(f"  {click.style('✗', fg='red')} {p} (missing)")
    click.echo()
    record = bm.run(name)
    _report(record, "Backup")
    if missing:
        click.secho(f"  Warning: {len(missing)} source(s) were missing", fg="yellow")


@cli.command()
@click.argument("backup_id", metavar="ID", type=int)
@click.option("--to", "target", type=click.Path(file_okay=False), default="/", show_default=True,
              help="Directory to extract into")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def restore(backup_id: int, target: str, yes: bool) -> None:
    """Extract a backup archive (overwrites existing files)."""
    bm = _manager()
    record = bm.get(backup_id)
    header("Restore Backup")
    click.echo()
    click.echo(f"Backup: {click.style(record.name, fg='cyan')}")
    click.echo(f"File: {click.style(record.path, fg='cyan')}")
    click.echo(f"Into: {click.style(target, fg='cyan')}")
    click.echo()
    click.secho("Warning: This will overwrite existing files.", fg="yellow")
    if not yes and not click.confirm("Continue?", default=False):
        click.echo("Restore cancelled.")
        return
    n = bm.restore(backup_id, Path(target))
    click.secho(f"Restore completed successfully! ({n} entries)", fg="green")


@cli.command()
def history() -> None:
    """Backups, newest first."""
    records = _manager().history()
    header("Backup History")
    click.echo()
    if not records:
        click.echo("No backups yet. Create one with: backup run")
        return
    click.secho(f"Available backups ({len(records)}):", fg="cyan")
    click.echo()
    for b in records:
        missing = "" if b.exists else click.style(" (missing)", fg="red")
        kind = " [suite]" if b.type == SUITE else ""
        click.echo(f"  [{click.style(str(b.id), fg='cyan')}] {b.name}{kind}")
        click.echo(f"      {click.style(f'{b.timestamp} - {human_size(b.size)}', dim=True)}{missing}")


@cli.command()
@click.argument("days", type=click.IntRange(min=0), required=False)
def prune(days: int | None) -> None:
    """Delete backups older than DAYS days."""
    cfg = load_config()
    days = cfg.backup.prune_days if days is None else days
    header("Prune Backups")
    click.echo()
    click.echo(f"Removing backups older than {click.style(f'{days} days', fg='cyan')}...")
    click.echo()
    result = BackupManager.from_config(cfg).prune(days)
    if not result.removed:
        click.echo("No backups to prune.")
        return
    for b in result.removed:
        click.echo(f"  {click.style('✗', fg='red')} Removed: {b.name}")
    click.echo()
    click.secho(f"Removed {len(result.removed)} backup(s), freed {human_size(result.freed)}", fg="green")


@cli.command()
@click.argument("name", required=False)
def suite(name: str | None) -> None:
    """Archive the data of every other tool."""
    bm = _manager()
    header("Backup Productivity Suite")
    click.echo()
    dirs = bm.suite_dirs()
    for d in dirs:
        click.echo(f"  {click.style('✓', fg='green')} {d.name}")
    click.echo()
    click.echo(f"Found data in {click.style(str(len(dirs)), fg='cyan')} tools.")
    click.echo()
    _report(bm.suite(name), "Suite backup")


@cli.command()
@click.argument("backup_id", metavar="ID", type=int)
def verify(backup_id: int) -> None:
    """Check that a backup archive exists and can be read."""
    n = _manager().verify(backup_id)
    click.echo(f"{click.style('✓', fg='green')} Backup #{backup_id} is readable ({n} entries)")


cli.add_command(remove, name="rm")
cli.add_command(list_cmd, name="ls")
cli.add_command(run, name="create")
cli.add_command(prune, name="clean")


def main() -> None:
    setup_logging()
    cli(standalone_mode=True)
