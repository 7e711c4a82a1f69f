from __future__ import annotations

from datetime import date, timedelta

import pytest

from prodkit import tasks
from prodkit.tasks import TaskList, due_label, normalize_priority


@pytest.fixture
def task_list(data_dir):
    return TaskList(data_dir / "tasks")


def test_ids_are_never_reused(task_list):
    first = task_list.add("write report")
    second = task_list.add("call bank")
    task_list.remove(second.id)
    third = task_list.add("buy milk")
    assert (first.id, second.id, third.id) == (1, 2, 3)
    assert [t.id for t in task_list.all()] == [1, 3]


def test_priority_aliases():
    assert normalize_priority("h") == "high"
    assert normalize_priority("Medium") == "med"
    assert normalize_priority("l") == "low"
    with pytest.raises(ValueError, match="invalid priority 'urgent'"):
        normalize_priority("urgent")


def test_add_rejects_empty_description(task_list):
    with pytest.raises(ValueError, match="empty"):
        task_list.add("   ")


def test_relative_due_dates(task_list):
    task = task_list.add("pay rent", due="+3")
    assert task.due == (date.today() + timedelta(days=3)).isoformat()
    with pytest.raises(ValueError):
        task_list.add("bad", due="someday")


def test_complete_is_idempotent(task_list):
    task_list.add("stretch")
    task, changed = task_list.complete(1)
    assert changed and task.completed and task.completed_at
    _, changed = task_list.complete(1)
    assert not changed


def test_select_filters(task_list):
    today = date(2026, 3, 14)
    task_list.add("late", due="2026-03-01")
    task_list.add("now", priority="low", due="2026-03-14")
    task_list.add("urgent", priority="high")
    task_list.complete(1)

    assert [t.id for t in task_list.select(today=today)] == [2, 3]
    assert [t.id for t in task_list.select(include_done=True, overdue=True, today=today)] == []
    assert [t.id for t in task_list.select(due_today=True, today=today)] == [2]
    assert [t.id for t in task_list.select(by_priority=True, today=today)] == [3, 2]
    assert [t.id for t in task_list.select(high_only=True, today=today)] == [3]


def test_clear_completed(task_list):
    task_list.add("a")
    task_list.add("b")
    task_list.complete(2)
    assert task_list.clear_completed() == 1
    assert [t.description for t in task_list.all()] == ["a"]


def test_due_label():
    today = date(2026, 3, 14)
    assert due_label("2026-03-13", today) == "OVERDUE"
    assert due_label("2026-03-14", today) == "TODAY"
    assert due_label("2026-03-15", today) == "Tomorrow"
    assert due_label("2026-03-30", today) == "2026-03-30"


def test_cli_add_list_done(runner):
    result = runner.invoke(tasks.cli, ["add", "write", "report", "-p", "h"])
    assert result.exit_code == 0
    assert "Added task #1: write report" in result.output

    result = runner.invoke(tasks.cli, [])
    assert "[1] ○ write report (high)" in result.output
    assert "1 pending" in result.output

    result = runner.invoke(tasks.cli, ["done", "1"])
    assert "Completed #1: write report" in result.output
    result = runner.invoke(tasks.cli, ["done", "1"])
    assert result.exit_code == 0
    assert "Task #1 is already completed" in result.output


def test_cli_empty_list(runner):
    result = runner.invoke(tasks.cli, ["ls"])
    assert result.exit_code == 0
    assert "No pending tasks." in result.output


def test_cli_errors(runner):
    result = runner.invoke(tasks.cli, ["done", "9"])
    assert result.exit_code == 1
    assert "Error: task #9 not found" in result.output

    result = runner.invoke(tasks.cli, ["add", "x", "-p", "urgent"])
    assert result.exit_code == 1
    assert "invalid priority 'urgent'" in result.output

    result = runner.invoke(tasks.cli, ["add"])
    assert result.exit_code == 1
    assert "Missing argument" in result.output


def test_cli_priority_and_due(runner):
    runner.invoke(tasks.cli, ["add", "file taxes"])
    result = runner.invoke(tasks.cli, ["priority", "1", "low"])
    assert "Task #1 priority: low" in result.output
    result = runner.invoke(tasks.cli, ["priority", "1", "clear"])
    assert "Task #1 priority: none" in result.output
    result = runner.invoke(tasks.cli, ["due", "1", "2026-04-15"])
    assert "Task #1 due: 2026-04-15" in result.output
    result = runner.invoke(tasks.cli, ["rm", "1"])
    assert "Removed #1: file taxes" in result.output
