from __future__ import annotations

from datetime import date

import pytest

from prodkit import dates


def test_parse_date_rejects_bad_format():
    with pytest.raises(ValueError, match="YYYY-MM-DD"):
        dates.parse_date("2026/03/01")
    with pytest.raises(ValueError, match="YYYY-MM-DD"):
        dates.parse_date("2026-02-30")


def test_parse_relative():
    base = date(2026, 3, 14)
    assert dates.parse_relative("today", base) == base
    assert dates.parse_relative("tomorrow", base) == date(2026, 3, 15)
    assert dates.parse_relative("+3", base) == date(2026, 3, 17)
    assert dates.parse_relative("+10d", base) == date(2026, 3, 24)
    assert dates.parse_relative("2026-04-01", base) == date(2026, 4, 1)


def test_format_durations():
    assert dates.format_minutes(45) == "45m"
    assert dates.format_minutes(125) == "2h 5m"
    assert dates.format_seconds(5) == "5s"
    assert dates.format_seconds(65) == "1m 5s"
    assert dates.format_seconds(3723) == "1h 2m 3s"


def test_last_n_days_oldest_first():
    days = dates.last_n_days(3, date(2026, 3, 2))
    assert days == [date(2026, 2, 28), date(2026, 3, 1), date(2026, 3, 2)]


def test_runs():
    done = {date(2026, 3, d) for d in (1, 2, 3, 5, 6)}
    assert dates.consecutive_run(done, date(2026, 3, 3)) == 3
    assert dates.consecutive_run(done, date(2026, 3, 4)) == 0
    assert dates.longest_run(done) == 3
    assert dates.longest_run(set()) == 0


def test_days_between_accepts_timestamps():
    assert dates.days_between("2026-03-01 10:00", "2026-03-04") == 3
