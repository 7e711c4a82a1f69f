from __future__ import annotations

import io
import tarfile
import time
from datetime import datetime

import pytest

from prodkit import backup
from prodkit.backup import BackupManager, arcname, default_name, safe_members


@pytest.fixture
def bm(data_dir):
    return BackupManager(data_dir / "backup")


@pytest.fixture
def docs(tmp_path):
    root = tmp_path / "docs"
    (root / "sub").mkdir(parents=True)
    (root / "a.txt").write_text("alpha")
    (root / "sub" / "b.txt").write_text("beta")
    return root


def test_arcname_and_default_name(tmp_path):
    assert arcname(tmp_path / "x") == str(tmp_path / "x").lstrip("/")
    assert default_name(now=datetime(2026, 3, 14, 9, 30, 5)) == "backup-20260314-093005"
    assert default_name("suite", datetime(2026, 3, 14, 9, 30, 5)) == "suite-20260314-093005"


def test_add_source(bm, docs, tmp_path):
    source, added = bm.add_source(docs)
    assert added and source.type == "directory" and source.id == 1
    _, added = bm.add_source(docs)
    assert not added
    with pytest.raises(FileNotFoundError, match="path does not exist"):
        bm.add_source(tmp_path / "nope")
    bm.remove_source(1)
    assert bm.sources() == []
    with pytest.raises(KeyError, match="source #1 not found"):
        bm.remove_source(1)


def test_run_requires_sources(bm, docs):
    with pytest.raises(ValueError, match="no backup sources configured"):
        bm.run("x")
    bm.add_source(docs)
    docs_a = docs / "a.txt"
    bm.add_source(docs_a)
    record = bm.run("first")
    assert record.files == 3
    assert record.exists
    assert bm.verify(record.id) > 0
    with pytest.raises(FileExistsError):
        bm.run("first")


def test_failed_run_leaves_no_archive(bm, docs, monkeypatch):
    bm.add_source(docs)

    def broken_add(self, name, arcname=None, recursive=True, *, filter=None):
        raise PermissionError(f"cannot read {name}")

    with monkeypatch.context() as m:
        m.setattr(tarfile.TarFile, "add", broken_add)
        with pytest.raises(PermissionError):
            bm.run("nightly")
    assert list(bm.archive_dir.iterdir()) == []
    assert bm.history() == []

    record = bm.run("nightly")
    assert record.files == 2


def test_run_with_only_missing_sources(bm, tmp_path):
    gone = tmp_path / "gone.txt"
    gone.write_text("x")
    bm.add_source(gone)
    gone.unlink()
    with pytest.raises(ValueError, match="no valid sources"):
        bm.run("x")


def test_restore_into_directory(bm, docs, tmp_path):
    bm.add_source(docs)
    record = bm.run("snap")
    target = tmp_path / "restored"
    bm.restore(record.id, target)
    restored = target / arcname(docs)
    assert (restored / "a.txt").read_text() == "alpha"
    assert (restored / "sub" / "b.txt").read_text() == "beta"


def test_history_ids_unique_and_newest_first(bm, docs):
    bm.add_source(docs)
    first = bm.run("one")
    second = bm.run("two")
    assert second.id > first.id
    assert [b.name for b in bm.history()] == ["two", "one"]
    with pytest.raises(KeyError, match="backup #1 not found"):
        bm.get(1)


def test_prune(bm, docs):
    bm.add_source(docs)
    record = bm.run("old")
    assert bm.prune(30).removed == []
    result = bm.prune(1, now=time.time() + 3 * 86400)
    assert [b.name for b in result.removed] == ["old"]
    assert result.freed == record.size
    assert not record.exists
    assert bm.history() == []


def test_suite_archives_other_tools(bm, data_dir):
    (data_dir / "tasks").mkdir(parents=True)
    (data_dir / "tasks" / "tasks.json").write_text("{}")
    (data_dir / "wins").mkdir()
    (data_dir / "wins" / "wins.json").write_text("{}")
    assert [p.name for p in bm.suite_dirs()] == ["tasks", "wins"]
    record = bm.suite("s1")
    assert (record.type, record.files) == ("suite", 2)


def test_verify_unreadable(bm, docs):
    bm.add_source(docs)
    record = bm.run("snap")
    with open(record.path, "wb") as f:
        f.write(b"not a tarball")
    with pytest.raises(ValueError, match="not a readable archive"):
        bm.verify(record.id)


def test_safe_members_refuses_escape(tmp_path):
    archive = tmp_path / "evil.tar.gz"
    with tarfile.open(archive, "w:gz") as tar:
        info = tarfile.TarInfo("../escape.txt")
        data = b"boom"
        info.size = len(data)
        tar.addfile(info, io.BytesIO(data))
    with tarfile.open(archive, "r:gz") as tar, pytest.raises(ValueError, match="refusing to extract"):
        safe_members(tar, tmp_path / "target")


def test_safe_members_refuses_symlink_out(tmp_path):
    archive = tmp_path / "link.tar.gz"
    with tarfile.open(archive, "w:gz") as tar:
        info = tarfile.TarInfo("inside/link")
        info.type = tarfile.SYMTYPE
        info.linkname = "/etc/passwd"
        tar.addfile(info)
    with tarfile.open(archive, "r:gz") as tar, pytest.raises(ValueError, match="refusing to extract link"):
        safe_members(tar, tmp_path / "target")


def test_cli_flow(runner, docs, tmp_path):
    result = runner.invoke(backup.cli, ["add", str(docs)])
    assert result.exit_code == 0
    assert f"Added to backup list: {docs} (directory)" in result.output

    result = runner.invoke(backup.cli, ["add", str(docs)])
    assert "Path already in backup list" in result.output

    result = runner.invoke(backup.cli, ["run", "nightly"])
    assert "Backup created successfully!" in result.output
    assert "Files: 2" in result.output

    bid = backup.BackupManager.from_config(backup.load_config()).history()[0].id
    result = runner.invoke(backup.cli, ["verify", str(bid)])
    assert f"✓ Backup #{bid} is readable" in result.output

    target = tmp_path / "out"
    result = runner.invoke(backup.cli, ["restore", str(bid), "--to", str(target)], input="n\n")
    assert "Restore cancelled." in result.output
    result = runner.invoke(backup.cli, ["restore", str(bid), "--to", str(target), "--yes"])
    assert "Restore completed successfully!" in result.output

    result = runner.invoke(backup.cli, [])
    assert "Configured sources (1):" in result.output
    assert "nightly" in result.output

    result = runner.invoke(backup.cli, ["clean"])
    assert "No backups to prune." in result.output


def test_cli_errors(runner, tmp_path):
    result = runner.invoke(backup.cli, ["add", str(tmp_path / "missing")])
    assert result.exit_code == 1
    assert "path does not exist" in result.output
    result = runner.invoke(backup.cli, ["run"])
    assert result.exit_code == 1
    assert "no backup sources configured" in result.output
