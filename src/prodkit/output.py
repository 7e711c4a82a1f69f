"""Terminal output helpers: rich console, bars, sizes, editor."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.markup import escape

if TYPE_CHECKING:
    from pathlib import Path

    from prodkit.config import ProdkitConfig

__all__ = ["bar", "console", "edit_text", "escape", "header", "human_size", "open_editor", "setup_logging"]


def console() -> Console:
    """A Console bound to the current stdout (so CliRunner captures it)."""
    return Console(highlight=False)


def header(title: str) -> None:
    click.secho(f"=== {title} ===", fg="blue", bold=True)


def bar(done: int, total: int, width: int = 20, fill: str = "#", empty: str = "-") -> str:
    """Fixed-width progress bar: bar(3, 4) -> '###############-----'."""
    if total <= 0:
        return empty * width
    filled = min(width, done * width // total)
    return fill * filled + empty * (width - filled)


def human_size(size: int) -> str:
    """Integer-divided size: 512 -> '512B', 2048 -> '2KB', 3*1024**2 -> '3MB'."""
    if size < 1024:
        return f"{size}B"
    if size < 1024 ** 2:
        return f"{size // 1024}KB"
    if size < 1024 ** 3:
        return f"{size // 1024 ** 2}MB"
    return f"{size // 1024 ** 3}GB"


def _editor(cfg: ProdkitConfig) -> str | None:
    return os.environ.get("VISUAL") or os.environ.get("EDITOR") or cfg.editor or None


def open_editor(path: Path, cfg: ProdkitConfig) -> None:
    """Open path in $VISUAL / $EDITOR, else the configured editor."""
    click.edit(filename=str(path), editor=_editor(cfg))


def edit_text(text: str, cfg: ProdkitConfig, extension: str = ".txt") -> str | None:
    """Edit text in a temp file; None when the user saved nothing new."""
    return click.edit(text, editor=_editor(cfg), extension=extension, require_save=True)


def setup_logging(level: str | None = None) -> None:
    """Configure stderr logging once. level defaults to the configured log_level."""
    if level is None:
        from prodkit.config import load_config

        try:
            level = load_config().log_level
        except (OSError, ValueError):
            # A broken config is reported by the command itself
            level = "WARNING"
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(name)s %(message)s",
    )
