from __future__ import annotations

import time

import pytest

from prodkit import daemon, focus
from prodkit.focus import (
    COMPLETED,
    DEFAULT_SITES,
    HISTORY_HEADER,
    STOPPED_EARLY,
    FocusManager,
    FocusTimer,
    HistoryRow,
    normalize_site,
    summarize,
)

T0 = 1_773_480_000.0


@pytest.fixture
def fm(data_dir):
    return FocusManager(data_dir / "focus")


@pytest.fixture(autouse=True)
def no_background(monkeypatch):
    spawned: list[tuple[str, list[str]]] = []

    def fake_start(module, args, pid_file, log_file):
        spawned.append((module, args))
        return 4242

    monkeypatch.setattr(daemon, "start_background", fake_start)
    monkeypatch.setattr(daemon, "stop_background", lambda pid_file: False)
    monkeypatch.setattr(focus.shutil, "which", lambda name: None)
    monkeypatch.setattr(focus.signal, "signal", lambda signum, handler: None)
    return spawned


@pytest.mark.parametrize("raw", ["https://www.reddit.com/r/python", "www.reddit.com", "reddit.com/"])
def test_normalize_site(raw):
    assert normalize_site(raw) == "reddit.com"


def test_normalize_site_rejects_empty():
    with pytest.raises(ValueError):
        normalize_site("https://")


def test_block_list_defaults_and_changes(fm):
    assert fm.sites() == DEFAULT_SITES
    assert fm.block("https://news.ycombinator.com/") == ("news.ycombinator.com", True)
    assert fm.block("news.ycombinator.com") == ("news.ycombinator.com", False)
    assert fm.unblock("www.reddit.com") == ("reddit.com", True)
    assert "reddit.com" not in fm.sites()


def test_start_writes_session_and_block_file(fm):
    session = fm.start(25, now=T0)
    assert session.end_time == int(T0) + 25 * 60
    assert fm.active(T0 + 60) == session
    assert fm.active(T0 + 25 * 60) is None
    text = fm.block_file.read_text()
    assert "127.0.0.1 reddit.com" in text
    assert "127.0.0.1 www.reddit.com" in text
    with pytest.raises(FileExistsError, match="already active"):
        fm.start(10, now=T0 + 60)


def test_start_rejects_non_positive(fm):
    with pytest.raises(ValueError):
        fm.start(0, now=T0)


def test_stop_early_logs_actual_minutes(fm):
    fm.start(25, now=T0)
    row = fm.stop(now=T0 + 10 * 60 + 5)
    assert (row.planned, row.actual, row.status) == (25, 10, STOPPED_EARLY)
    assert fm.session() is None
    assert not fm.block_file.exists()
    assert fm.history_path.read_text().splitlines()[0] == HISTORY_HEADER
    assert fm.stop(now=T0 + 700) is None


def test_expired_session_completes_capped(fm):
    fm.start(25, now=T0)
    row = fm.finish_expired(now=T0 + 40 * 60)
    assert (row.actual, row.status) == (25, COMPLETED)
    assert fm.finish_expired(now=T0 + 41 * 60) is None


def test_start_after_expiry_finalises_previous(fm):
    fm.start(5, now=T0)
    fm.start(5, now=T0 + 600)
    assert [r.status for r in fm.history()] == [COMPLETED]


def test_history_skips_bad_lines(fm):
    fm.history_path.parent.mkdir(parents=True, exist_ok=True)
    fm.history_path.write_text(HISTORY_HEADER + "\n2026-03-14,09:30,25,25,completed\ngarbage\n")
    rows = fm.history()
    assert rows == [HistoryRow("2026-03-14", "09:30", 25, 25, COMPLETED)]
    assert summarize(rows) == (1, 1, 25)


def test_timer_completes_expired_session(fm):
    now = time.time()
    session = fm.start(1, now=now - 120)
    assert FocusTimer(fm, session.session_id, notifications=False).run() == COMPLETED
    assert fm.session() is None
    assert fm.history()[0].actual == 1


def test_timer_exits_when_session_replaced(fm):
    fm.start(1, now=time.time())
    assert FocusTimer(fm, "other", notifications=False).run() is None
    assert fm.session() is not None


def test_timer_main_reads_argv(fm):
    session = fm.start(1, now=time.time() - 120)
    assert focus.timer_main([str(fm.data_dir), session.session_id]) == COMPLETED
    assert fm.session() is None
    with pytest.raises(SystemExit, match="usage: python -m prodkit.focus"):
        focus.timer_main([])


def test_cli_start_status_stop(runner, no_background):
    result = runner.invoke(focus.cli, ["25"])
    assert result.exit_code == 0
    assert "FOCUS MODE ACTIVATED" in result.output
    assert "Duration: 25 minutes" in result.output
    assert no_background[0][0] == "prodkit.focus"

    result = runner.invoke(focus.cli, ["start", "10"])
    assert "Focus mode is already active!" in result.output

    result = runner.invoke(focus.cli, [])
    assert "FOCUS MODE: ACTIVE" in result.output

    result = runner.invoke(focus.cli, ["stop"])
    assert "Session ended early: 0 of 25 minutes" in result.output

    result = runner.invoke(focus.cli, ["end"])
    assert "Focus mode is not active." in result.output

    result = runner.invoke(focus.cli, ["st"])
    assert "FOCUS MODE: INACTIVE" in result.output
    assert "Sessions: 1" in result.output


def test_cli_block_commands(runner):
    result = runner.invoke(focus.cli, ["block", "add", "https://www.news.com/today"])
    assert "Added to block list: news.com" in result.output
    result = runner.invoke(focus.cli, ["b", "add", "news.com"])
    assert "news.com is already in the block list" in result.output
    result = runner.invoke(focus.cli, ["block", "rm", "news.com"])
    assert "Removed from block list: news.com" in result.output
    result = runner.invoke(focus.cli, ["block"])
    assert "  - facebook.com" in result.output


def test_cli_stats_empty(runner):
    result = runner.invoke(focus.cli, ["stats"])
    assert "No focus sessions recorded yet." in result.output
