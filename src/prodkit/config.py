"""ProdkitConfig: user config for the productivity tools.

Lookup order for the config file:

    $PRODKIT_CONFIG                     # explicit path
    ./prodkit.toml, ../prodkit.toml ... # nearest one walking upward from cwd
    ~/.config/prodkit/prodkit.toml

Data layout (one directory per tool):

    <data_dir>/
        backup/       sources.json, history.json, archives/
        checklist/    lists/<slug>.json, history.json
        contacts/     contacts.json
        ...

prodkit.toml example:

    [prodkit]
    data_dir = "~/.local/share/prodkit"   # or set PRODKIT_DATA_DIR
    log_level = "WARNING"
    editor = "nano"

    [backup]
    prune_days = 30
    # archive_dir = "/mnt/backups"

    [contacts]
    stale_days = 90
    upcoming_days = 14

    [focus]
    default_duration = 25
    show_notifications = true

    [timelog]
    report_days = 7

    [journal]
    list_count = 10
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

_CONFIG_FILENAME = "prodkit.toml"
_DEFAULT_DATA_DIR = "~/.local/share/prodkit"
_USER_CONFIG = "~/.config/prodkit/prodkit.toml"

TOOLS = (
    "backup", "checklist", "context", "contacts", "timelog", "habits", "goals",
    "focus", "quicknotes", "journal", "scaffold", "inbox", "wins", "tasks",
)


@dataclass
class BackupConfig:
    prune_days: int = 30
    archive_dir: Path | None = None   # default: <data_dir>/backup/archives


@dataclass
class ContactsConfig:
    stale_days: int = 90       # "(Nd ago)" marker and stale list in `due`
    upcoming_days: int = 14


@dataclass
class FocusConfig:
    default_duration: int = 25
    show_notifications: bool = True


@dataclass
class TimelogConfig:
    report_days: int = 7


@dataclass
class JournalConfig:
    list_count: int = 10


@dataclass
class ProdkitConfig:
    """Resolved configuration."""

    config_path: Path | None           # None when running on defaults
    data_dir: Path = field(default_factory=Path)
    log_level: str = "WARNING"
    editor: str = ""
    backup: BackupConfig = field(default_factory=BackupConfig)
    contacts: ContactsConfig = field(default_factory=ContactsConfig)
    focus: FocusConfig = field(default_factory=FocusConfig)
    timelog: TimelogConfig = field(default_factory=TimelogConfig)
    journal: JournalConfig = field(default_factory=JournalConfig)

    def tool_dir(self, tool: str) -> Path:
        """Return (and create) the data directory owned by one tool."""
        path = self.data_dir / tool
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def archive_dir(self) -> Path:
        return self.backup.archive_dir or self.data_dir / "backup" / "archives"


def _find_config(start: Path) -> Path | None:
    """Resolve the config file path following the lookup order."""
    explicit = os.environ.get("PRODKIT_CONFIG")
    if explicit:
        return Path(explicit).expanduser()
    for directory in (start, *start.parents):
        candidate = directory / _CONFIG_FILENAME
        if candidate.exists():
            return candidate
    user = Path(_USER_CONFIG).expanduser()
    return user if user.exists() else None


def load_config(start: Path | str | None = None) -> ProdkitConfig:
    """Load prodkit.toml (searching upward from start, default cwd)."""
    config_path = _find_config(Path(start) if start else Path.cwd())

    raw: dict[str, Any] = {}
    if config_path is not None and config_path.exists():
        with config_path.open("rb") as f:
            raw = tomllib.load(f)
    base = config_path.parent if config_path is not None else Path.cwd()

    main = raw.get("prodkit", {})
    bk_section = raw.get("backup", {})
    ct_section = raw.get("contacts", {})
    fc_section = raw.get("focus", {})
    tl_section = raw.get("timelog", {})
    jr_section = raw.get("journal", {})

    # Environment overrides the file for the data location and log level
    data_raw = os.environ.get("PRODKIT_DATA_DIR") or main.get("data_dir", _DEFAULT_DATA_DIR)
    data_dir = base / Path(data_raw).expanduser()
    log_level = os.environ.get("PRODKIT_LOG_LEVEL") or str(main.get("log_level", "WARNING"))

    archive_raw = bk_section.get("archive_dir")
    archive_dir = base / Path(archive_raw).expanduser() if archive_raw else None

    return ProdkitConfig(
        config_path=config_path if config_path is not None and config_path.exists() else None,
        data_dir=data_dir,
        log_level=log_level.upper(),
        editor=str(main.get("editor", "")),
        backup=BackupConfig(
            prune_days=int(bk_section.get("prune_days", 30)),
            archive_dir=archive_dir,
        ),
        contacts=ContactsConfig(
            stale_days=int(ct_section.get("stale_days", 90)),
            upcoming_days=int(ct_section.get("upcoming_days", 14)),
        ),
        focus=FocusConfig(
            default_duration=int(fc_section.get("default_duration", 25)),
            show_notifications=bool(fc_section.get("show_notifications", True)),
        ),
        timelog=TimelogConfig(
            report_days=int(tl_section.get("report_days", 7)),
        ),
        journal=JournalConfig(
            list_count=int(jr_section.get("list_count", 10)),
        ),
    )


def init_config(root: Path, data_dir: str | None = None) -> Path:
    """Write a default prodkit.toml at root. Raises if already exists."""
    config_path = root / _CONFIG_FILENAME
    if config_path.exists():
        msg = f"prodkit.toml already exists at {config_path}"
        raise FileExistsError(msg)

    data_line = f'data_dir = "{data_dir}"' if data_dir else f'# data_dir = "{_DEFAULT_DATA_DIR}"   # or set PRODKIT_DATA_DIR'
    content = f"""\
[prodkit]
{data_line}
# log_level = "WARNING"   # or set PRODKIT_LOG_LEVEL; -v / --debug on the command line
# editor = "nano"         # used when $EDITOR and $VISUAL are unset

# [backup]
# prune_days = 30         # default age for `backup prune`
# archive_dir = "/mnt/backups"

# [contacts]
# stale_days = 90         # flag contacts not reached for this many days
# upcoming_days = 14      # follow-up horizon for `contacts due`

# [focus]
# default_duration = 25
# show_notifications = true

# [timelog]
# report_days = 7

# [journal]
# list_count = 10
"""
    config_path.write_text(content)
    return config_path
