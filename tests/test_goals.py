from __future__ import annotations

from datetime import date

import pytest

from prodkit import goals
from prodkit.goals import ABANDONED, ACTIVE, COMPLETED, GoalBook, deadline_text, validate_percent


@pytest.fixture
def book(data_dir):
    return GoalBook(data_dir / "goals")


@pytest.mark.parametrize("value", ["101", "-1", "abc", "", "50.5"])
def test_validate_percent_rejects(value):
    with pytest.raises(ValueError, match="progress must be 0-100"):
        validate_percent(value)


def test_validate_percent_accepts_bounds():
    assert validate_percent("0") == 0
    assert validate_percent(100) == 100


def test_deadline_text():
    today = date(2026, 3, 14)
    assert deadline_text(None, today) == "no deadline"
    assert deadline_text("2026-03-10", today) == "4 days overdue"
    assert deadline_text("2026-03-14", today) == "due today"
    assert deadline_text("2026-03-15", today) == "1 day left"
    assert deadline_text("2026-03-24", today) == "10 days left"


def test_add_validates_deadline(book):
    with pytest.raises(ValueError, match="invalid date"):
        book.add("learn rust", "next year")
    goal = book.add("learn rust", "2026-12-31")
    assert (goal.id, goal.deadline, goal.status) == (1, "2026-12-31", ACTIVE)


def test_milestones_suggest_progress(book):
    book.add("run a marathon")
    book.add_milestone(1, "5k")
    book.add_milestone(1, "10k")
    book.add_milestone(1, "half")
    goal, ms = book.check_milestone(1, 2)
    assert ms.done and ms.completed_at
    assert goal.milestones_done == 1
    assert goal.suggested_progress() == 33
    with pytest.raises(KeyError):
        book.check_milestone(1, 9)


def test_status_is_terminal(book):
    book.add("a")
    book.add("b")
    done = book.complete(1)
    assert (done.status, done.progress) == (COMPLETED, 100)
    assert book.abandon(2).status == ABANDONED
    with pytest.raises(KeyError, match="active goal #1 not found"):
        book.set_progress(1, 10)
    with pytest.raises(KeyError):
        book.abandon(1)


def test_move_finished(book):
    book.add("keep")
    book.add("finish")
    book.complete(2)
    assert book.move_finished() == 1
    assert [g.id for g in book.all()] == [1]
    assert [g.id for g in book.archived()] == [2]


def test_failed_update_leaves_file_alone(book):
    book.add("write book")
    with pytest.raises(KeyError):
        book.check_milestone(1, 1)
    assert book.get(1).milestones == []


def test_cli_flow(runner):
    result = runner.invoke(goals.cli, ["add", "Ship v1", "2099-01-01"])
    assert result.exit_code == 0
    assert "Goal added: #1 Ship v1" in result.output

    result = runner.invoke(goals.cli, ["progress", "1", "150"])
    assert result.exit_code == 1
    assert "progress must be 0-100" in result.output

    result = runner.invoke(goals.cli, ["progress", "1", "100"])
    assert "goals complete 1" in result.output

    result = runner.invoke(goals.cli, ["milestone", "1", "write", "docs"])
    assert "to #1: 1. write docs" in result.output

    result = runner.invoke(goals.cli, ["complete", "1"])
    assert "Goal achieved: Ship v1" in result.output

    result = runner.invoke(goals.cli, ["list"])
    assert "No active goals." in result.output

    result = runner.invoke(goals.cli, ["archive"])
    assert "Completed (1):" in result.output
