from __future__ import annotations

from datetime import date, timedelta

import pytest

from prodkit import inbox
from prodkit.inbox import Inbox, parse_defer, validate_priority
from prodkit.quicknotes import NoteFile
from prodkit.tasks import TaskList


@pytest.fixture
def box(data_dir):
    return Inbox(data_dir / "inbox")


def test_active_sorted_by_priority(box):
    box.add("whenever")
    box.add("important", priority=1)
    box.add("meh", priority=3)
    assert [i.content for i in box.active()] == ["important", "meh", "whenever"]


def test_validate_priority():
    assert validate_priority("2") == 2
    for bad in (0, 4, "x"):
        with pytest.raises(ValueError, match="priority must be 1, 2, or 3"):
            validate_priority(bad)


def test_parse_defer():
    today = date(2026, 3, 14)
    assert parse_defer(None, today) == "2026-03-15"
    assert parse_defer("+3", today) == "2026-03-17"
    assert parse_defer("2026-04-01", today) == "2026-04-01"
    with pytest.raises(ValueError, match="invalid date: later"):
        parse_defer("later", today)


def test_deferred_items_leave_active(box):
    box.add("next week")
    box.defer(1, "+7")
    today = date.today().isoformat()
    assert box.active(today) == []
    assert [i.id for i in box.deferred(today)] == [1]
    future = (date.today() + timedelta(days=7)).isoformat()
    assert [i.id for i in box.active(future)] == [1]


def test_mark_done_counts_once(box):
    box.add("reply to email")
    _, changed = box.mark_done(1)
    assert changed
    _, changed = box.mark_done(1)
    assert not changed
    assert box.processed_count() == 1
    assert box.clear_done() == 1
    assert box.all() == []
    assert box.processed_count() == 1


def test_tag_and_search(box):
    box.add("book flights")
    box.tag(1, ["travel", " trip "])
    assert box.get(1).tags == ["travel", "trip"]
    assert [i.id for i in box.search("TRAVEL")] == [1]
    assert [i.id for i in box.search("flights")] == [1]
    assert box.search("hotel") == []


def test_to_task_and_to_note(box, data_dir):
    box.add("renew passport", priority=1)
    box.add("idea: standing desk")
    task_list = TaskList(data_dir / "tasks")
    notes = NoteFile(data_dir / "quicknotes")

    task_id = box.to_task(1, task_list)
    task = task_list.get(task_id)
    assert task.description == "renew passport"
    assert task.priority == "high"
    assert box.get(1).processed

    box.to_note(2, notes)
    assert notes.all()[-1].text == "idea: standing desk"
    assert box.get(2).processed


def test_cli_fallback_add(runner):
    result = runner.invoke(inbox.cli, ["call", "the", "dentist"])
    assert result.exit_code == 0
    assert "Captured #1: call the dentist" in result.output
    assert "Inbox: 1 item(s) to process" in result.output

    result = runner.invoke(inbox.cli, [])
    assert "#1 call the dentist" in result.output


def test_cli_inbox_zero(runner):
    result = runner.invoke(inbox.cli, ["list"])
    assert result.exit_code == 0
    assert "Inbox zero!" in result.output


def test_cli_done_defer_delete(runner):
    runner.invoke(inbox.cli, ["add", "one"])
    runner.invoke(inbox.cli, ["add", "two"])
    runner.invoke(inbox.cli, ["add", "three"])

    result = runner.invoke(inbox.cli, ["done", "1"])
    assert "✓ Processed: one" in result.output
    result = runner.invoke(inbox.cli, ["done", "1"])
    assert "Item #1 is already processed" in result.output

    result = runner.invoke(inbox.cli, ["defer", "2", "2099-01-01"])
    assert "Deferred until 2099-01-01: two" in result.output

    result = runner.invoke(inbox.cli, ["rm", "3"])
    assert "✗ Deleted: three" in result.output

    result = runner.invoke(inbox.cli, ["clear-done"])
    assert "Cleared 1 processed item(s)" in result.output
    result = runner.invoke(inbox.cli, ["clear-done"])
    assert "No processed items to clear." in result.output


def test_cli_to_task(runner):
    runner.invoke(inbox.cli, ["add", "fix", "the", "sink", "-p", "2"])
    result = runner.invoke(inbox.cli, ["to-task", "1"])
    assert result.exit_code == 0
    assert "✓ Added as task #1" in result.output


def test_cli_bad_priority(runner):
    runner.invoke(inbox.cli, ["add", "x"])
    result = runner.invoke(inbox.cli, ["priority", "1", "7"])
    assert result.exit_code == 1
    assert "priority must be 1, 2, or 3" in result.output
