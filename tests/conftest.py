"""Shared fixtures: every test gets its own data dir and no config file."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from click.testing import CliRunner

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    root = tmp_path / "data"
    monkeypatch.setenv("PRODKIT_DATA_DIR", str(root))
    monkeypatch.setenv("PRODKIT_CONFIG", str(tmp_path / "missing.toml"))
    monkeypatch.delenv("PRODKIT_LOG_LEVEL", raising=False)
    # Editor sessions exit immediately without touching the file
    monkeypatch.setenv("EDITOR", "true")
    monkeypatch.delenv("VISUAL", raising=False)
    return root


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()
