from __future__ import annotations

import json
from datetime import date, timedelta

import pytest

from prodkit import dates, habits
from prodkit.habits import (
    HabitTracker,
    best_weekday,
    current_streak,
    merge_documents,
    migrate,
    validate_weekly,
    week_count,
)


@pytest.fixture
def tracker(data_dir):
    return HabitTracker(data_dir / "habits")


def _days(*items: str) -> set[date]:
    return {dates.parse_date(d) for d in items}


def test_current_streak_counts_from_yesterday_when_today_open():
    done = _days("2026-03-11", "2026-03-12", "2026-03-13")
    assert current_streak(done, date(2026, 3, 13)) == 3
    assert current_streak(done, date(2026, 3, 14)) == 3
    assert current_streak(done, date(2026, 3, 15)) == 0


def test_week_count_starts_monday():
    # 2026-03-16 is a Monday
    done = _days("2026-03-15", "2026-03-16", "2026-03-18", "2026-03-20")
    assert week_count(done, date(2026, 3, 18)) == 2


def test_validate_weekly():
    assert validate_weekly(None) is None
    assert validate_weekly(3) == 3
    assert validate_weekly(0, allow_zero=True) is None
    with pytest.raises(ValueError, match="between 1 and 7"):
        validate_weekly(0)
    with pytest.raises(ValueError, match="between 0 and 7"):
        validate_weekly(8, allow_zero=True)


def test_best_weekday():
    assert best_weekday(set()) is None
    assert best_weekday(_days("2026-03-16", "2026-03-23", "2026-03-17")) == ("Mon", 2)


def test_migrate_v1():
    doc = migrate({"habits": ["exercise"], "completions": {"exercise": ["2026-03-01"]}})
    assert doc["version"] == "2.0"
    assert doc["habits"][0]["name"] == "exercise"
    assert doc["notes"] == {}


def test_v1_file_is_upgraded_on_read(tracker):
    tracker.store.write({"habits": ["read"], "completions": {}})
    assert [h.name for h in tracker.habits()] == ["read"]
    assert json.loads(tracker.store.path.read_text())["version"] == "2.0"


def test_v1_file_without_version_key(tracker, tmp_path):
    tracker.store.path.write_text(json.dumps({"habits": ["exercise"], "completions": {"exercise": ["2026-03-01"]}}))
    assert tracker.read()["habits"][0]["name"] == "exercise"
    on_disk = json.loads(tracker.store.path.read_text())
    assert on_disk["habits"] == [{"name": "exercise", "weekly_target": None, "created": "", "active": True}]

    export = tmp_path / "export.json"
    export.write_text(json.dumps({"habits": ["read"], "completions": {"read": ["2026-03-02"]}}))
    assert tracker.import_file(export) == 1
    assert sorted(h.name for h in tracker.habits()) == ["exercise", "read"]


def test_migrate_converts_strings_under_a_v2_tag():
    doc = migrate({"version": "2.0", "habits": ["walk"], "completions": {}})
    assert doc["habits"][0]["name"] == "walk"


def test_check_rejects_future_dates(tracker):
    tracker.add("exercise")
    tomorrow = (date.today() + timedelta(days=1)).isoformat()
    with pytest.raises(ValueError, match="cannot check a future date"):
        tracker.check("exercise", tomorrow)
    with pytest.raises(KeyError) as exc:
        tracker.check("nap")
    assert exc.value.args[0].startswith("habit 'nap' not found")


def test_check_is_idempotent_and_keeps_notes(tracker):
    tracker.add("exercise", weekly=3)
    tracker.check("exercise", "2026-03-01", note="30 min run")
    tracker.check("exercise", "2026-03-01")
    assert tracker.completions("exercise") == _days("2026-03-01")
    assert tracker.notes("exercise")[0]["note"] == "30 min run"
    tracker.uncheck("exercise", "2026-03-01")
    assert tracker.completions("exercise") == set()


def test_rename_and_remove_carry_history(tracker):
    tracker.add("run")
    tracker.add("swim")
    tracker.check("run", "2026-03-01", note="easy")
    with pytest.raises(FileExistsError):
        tracker.rename("run", "swim")
    tracker.rename("run", "jog")
    assert tracker.completions("jog") == _days("2026-03-01")
    tracker.remove("jog")
    doc = tracker.read()
    assert "jog" not in doc["completions"]
    assert "jog" not in doc["notes"]


def test_merge_documents_unions():
    existing = {"version": "2.0", "habits": [{"name": "a"}], "completions": {"a": ["2026-03-02"]},
                "notes": {"a": [{"timestamp": "t1", "note": "x"}]}, "settings": {"k": 1}}
    incoming = {"habits": ["a", "b"], "completions": {"a": ["2026-03-01", "2026-03-02"], "b": ["2026-03-03"]},
                "notes": {"a": [{"timestamp": "t1", "note": "x"}, {"timestamp": "t2", "note": "y"}]},
                "settings": {"k": 2}}
    merged = merge_documents(existing, incoming)
    assert [h["name"] for h in merged["habits"]] == ["a", "b"]
    assert merged["completions"]["a"] == ["2026-03-01", "2026-03-02"]
    assert [n["timestamp"] for n in merged["notes"]["a"]] == ["t1", "t2"]
    assert merged["settings"] == {"k": 2}


def test_export_import(tracker, data_dir, tmp_path):
    tracker.add("exercise")
    tracker.check("exercise", "2026-03-01")
    out = tmp_path / "export.json"
    assert tracker.export(out) == {"habits": 1, "completions": 1, "notes": 0}

    other = HabitTracker(data_dir / "other")
    other.add("read")
    assert other.import_file(out) == 1
    assert sorted(h.name for h in other.habits()) == ["exercise", "read"]

    bad = tmp_path / "bad.json"
    bad.write_text("{nope")
    with pytest.raises(ValueError, match="not valid JSON"):
        other.import_file(bad)
    bad.write_text('{"tasks": []}')
    with pytest.raises(ValueError, match="not a habits export"):
        other.import_file(bad)


def test_cli_flow(runner, tmp_path):
    result = runner.invoke(habits.cli, [])
    assert "No habits tracked yet." in result.output

    result = runner.invoke(habits.cli, ["add", "exercise", "-w", "3"])
    assert result.exit_code == 0
    assert "Added habit: exercise" in result.output

    result = runner.invoke(habits.cli, ["done", "exercise", "-n", "5k"])
    assert f"✓ Marked 'exercise' done for {date.today().isoformat()}" in result.output

    result = runner.invoke(habits.cli, ["ls"])
    assert "[✓] exercise (1 day streak) [1/3 this week]" in result.output
    assert "Progress: 1/1 completed" in result.output

    result = runner.invoke(habits.cli, ["edit", "exercise", "--weekly", "0"])
    assert "Weekly target: none" in result.output

    result = runner.invoke(habits.cli, ["rename", "exercise", "gym"])
    assert "Renamed: 'exercise' → 'gym'" in result.output

    out = tmp_path / "h.json"
    result = runner.invoke(habits.cli, ["export", str(out)])
    assert "Exported to:" in result.output
    result = runner.invoke(habits.cli, ["import", str(out), "--yes"])
    assert "Import complete (1 habits in file)." in result.output


def test_cli_weekly_out_of_range(runner):
    result = runner.invoke(habits.cli, ["add", "run", "-w", "9"])
    assert result.exit_code == 1
    assert "weekly target must be between 1 and 7" in result.output
