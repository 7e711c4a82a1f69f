from __future__ import annotations

import pytest

from prodkit.config import init_config, load_config


def test_defaults_use_env_data_dir(data_dir):
    cfg = load_config()
    assert cfg.config_path is None
    assert cfg.data_dir == data_dir
    assert cfg.contacts.stale_days == 90
    assert cfg.focus.default_duration == 25
    assert cfg.archive_dir == data_dir / "backup" / "archives"


def test_sections_are_read(tmp_path, monkeypatch):
    path = tmp_path / "prodkit.toml"
    path.write_text(
        '[prodkit]\nlog_level = "info"\neditor = "vi"\n\n'
        "[backup]\nprune_days = 7\narchive_dir = \"arch\"\n\n"
        "[focus]\ndefault_duration = 50\nshow_notifications = false\n\n"
        "[journal]\nlist_count = 3\n"
    )
    monkeypatch.setenv("PRODKIT_CONFIG", str(path))
    cfg = load_config()
    assert cfg.config_path == path
    assert cfg.log_level == "INFO"
    assert cfg.editor == "vi"
    assert cfg.backup.prune_days == 7
    assert cfg.archive_dir == tmp_path / "arch"
    assert cfg.focus.default_duration == 50
    assert cfg.focus.show_notifications is False
    assert cfg.journal.list_count == 3


def test_data_dir_relative_to_config(tmp_path, monkeypatch):
    path = tmp_path / "prodkit.toml"
    path.write_text('[prodkit]\ndata_dir = "store"\n')
    monkeypatch.setenv("PRODKIT_CONFIG", str(path))
    monkeypatch.delenv("PRODKIT_DATA_DIR")
    assert load_config().data_dir == tmp_path / "store"


def test_tool_dir_is_created(data_dir):
    path = load_config().tool_dir("tasks")
    assert path == data_dir / "tasks"
    assert path.is_dir()


def test_init_config_refuses_overwrite(tmp_path):
    path = init_config(tmp_path, "data")
    assert 'data_dir = "data"' in path.read_text()
    with pytest.raises(FileExistsError):
        init_config(tmp_path)
