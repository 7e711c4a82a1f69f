from __future__ import annotations

from datetime import date, datetime

import pytest

from prodkit import timelog
from prodkit.timelog import CSV_HEADER, Entry, TimeLog, parse_minutes, rounded_minutes, totals_by


@pytest.fixture
def tl(data_dir):
    return TimeLog(data_dir / "timelog")


def test_rounded_minutes():
    assert rounded_minutes(0) == 1
    assert rounded_minutes(89) == 1
    assert rounded_minutes(90) == 2
    assert rounded_minutes(3600) == 60


def test_parse_minutes():
    assert parse_minutes(" 45 ") == 45
    for bad in ("0", "abc", "1.5"):
        with pytest.raises(ValueError, match="minutes must be a positive number"):
            parse_minutes(bad)


def test_start_stop_writes_csv_row(tl):
    tl.start("webapp", "auth flow", now=datetime(2026, 3, 14, 9, 0, 0))
    with pytest.raises(ValueError, match="timer already running for: webapp"):
        tl.start("other")
    entry = tl.stop(now=datetime(2026, 3, 14, 10, 30, 20))
    assert entry.minutes == 90
    assert tl.active() is None
    assert tl.stop() is None

    lines = tl.path.read_text().splitlines()
    assert lines[0] == CSV_HEADER
    assert lines[1] == "2026-03-14,webapp,90,auth flow,2026-03-14 09:00:00,2026-03-14 10:30:20"


def test_description_with_comma_is_quoted(tl):
    tl.log("docs", 15, "readme, changelog")
    assert tl.entries()[0].description == "readme, changelog"


def test_cancel(tl):
    assert tl.cancel() is None
    tl.start("webapp")
    assert tl.cancel().project == "webapp"
    assert tl.entries() == []


def test_malformed_rows_are_skipped(tl):
    tl.path.parent.mkdir(parents=True, exist_ok=True)
    tl.path.write_text(CSV_HEADER + "\n2026-03-14,a,30,,,\nbroken row\n2026-03-14,b,x,,,\n")
    assert [e.project for e in tl.entries()] == ["a"]


def test_since_and_totals(tl):
    tl.path.parent.mkdir(parents=True, exist_ok=True)
    tl.path.write_text(
        CSV_HEADER + "\n2026-03-01,a,30,,,\n2026-03-10,a,15,,,\n2026-03-12,b,60,,,\n",
    )
    recent = tl.since(7, today=date(2026, 3, 14))
    assert totals_by(recent, "project") == {"a": 15, "b": 60}
    assert totals_by([Entry("2026-03-01", "a", 5), Entry("2026-03-01", "b", 5)], "date") == {"2026-03-01": 10}


def test_cli_log_and_today(runner):
    result = runner.invoke(timelog.cli, ["log", "webapp", "45", "code", "review"])
    assert result.exit_code == 0
    assert "Logged: 45m for webapp" in result.output

    result = runner.invoke(timelog.cli, [])
    assert "webapp - 45m - code review" in result.output
    assert "Total today: 45m" in result.output

    result = runner.invoke(timelog.cli, ["projects"])
    assert "webapp - 45m total" in result.output


def test_cli_timer(runner):
    result = runner.invoke(timelog.cli, ["start", "webapp"])
    assert "Started timer for: webapp" in result.output
    result = runner.invoke(timelog.cli, ["start", "other"])
    assert result.exit_code == 1
    result = runner.invoke(timelog.cli, ["st"])
    assert "Project: webapp" in result.output
    result = runner.invoke(timelog.cli, ["stop"])
    assert "Duration: 1m" in result.output
    result = runner.invoke(timelog.cli, ["stop"])
    assert "No active timer to stop." in result.output


def test_cli_bad_minutes(runner):
    result = runner.invoke(timelog.cli, ["log", "webapp", "lots"])
    assert result.exit_code == 1
    assert "minutes must be a positive number" in result.output
