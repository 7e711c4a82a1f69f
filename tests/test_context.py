from __future__ import annotations

from datetime import datetime

import pytest

from prodkit import context
from prodkit.context import ContextBook, normalize, parse_env_pair


@pytest.fixture
def book(data_dir, tmp_path):
    return ContextBook(data_dir / "context")


def test_normalize():
    assert normalize(" My Project ") == "my-project"


def test_parse_env_pair():
    assert parse_env_pair("API_URL=http://x?a=b") == ("API_URL", "http://x?a=b")
    with pytest.raises(ValueError, match="expected KEY=value"):
        parse_env_pair("novalue")


def test_create_refuses_duplicates(book, tmp_path):
    c = book.create("Web App", tmp_path)
    assert c.name == "web-app"
    assert c.directory == str(tmp_path.resolve())
    with pytest.raises(FileExistsError, match="already exists"):
        book.create("web app", tmp_path)


def test_switch_accumulates_time(book, tmp_path):
    book.create("alpha", tmp_path)
    book.create("beta", tmp_path)
    book.switch("alpha", now=datetime(2026, 3, 14, 9, 0, 0))
    book.switch("beta", now=datetime(2026, 3, 14, 9, 45, 0))
    assert book.get("alpha").total_time_minutes == 45
    assert book.current_name() == "beta"
    assert [a for _, a, _ in book.history()] == ["create", "create", "switch", "switch"]


def test_switching_to_current_context_keeps_time(book, tmp_path):
    book.create("alpha", tmp_path)
    book.create("beta", tmp_path)
    book.switch("alpha", now=datetime(2026, 3, 14, 9, 0, 0))
    book.switch("alpha", now=datetime(2026, 3, 14, 10, 0, 0))
    book.switch("beta", now=datetime(2026, 3, 14, 10, 30, 0))
    assert book.get("alpha").total_time_minutes == 90


def test_notes_and_env_need_current(book, tmp_path):
    with pytest.raises(ValueError, match="no active context"):
        book.add_note("hello")
    book.create("alpha", tmp_path)
    book.switch("alpha")
    book.add_note("left off in parser")
    c, key, value = book.set_env("DEBUG=1")
    assert (key, value) == ("DEBUG", "1")
    assert c.env_vars == {"DEBUG": "1"}
    assert book.current().notes[0]["text"] == "left off in parser"


def test_archive_clears_current(book, tmp_path):
    book.create("alpha", tmp_path)
    book.switch("alpha")
    book.archive("alpha")
    assert book.current_name() is None
    with pytest.raises(ValueError, match="archived"):
        book.switch("alpha")
    assert not book.switch("alpha", unarchive=True).archived


def test_remove(book, tmp_path):
    book.create("alpha", tmp_path)
    book.remove("alpha")
    assert not book.exists("alpha")
    with pytest.raises(KeyError, match="context 'alpha' not found"):
        book.remove("alpha")


def test_cli_create_and_fallback_switch(runner, tmp_path):
    result = runner.invoke(context.cli, ["create", "webapp", "--dir", str(tmp_path), "--no-switch"])
    assert result.exit_code == 0
    assert "Created context: webapp" in result.output

    result = runner.invoke(context.cli, ["webapp"])
    assert result.exit_code == 0
    assert "Switched to: webapp" in result.output

    result = runner.invoke(context.cli, ["note", "fix", "login"])
    assert "Note added to webapp: fix login" in result.output

    result = runner.invoke(context.cli, [])
    assert "Name: webapp" in result.output
    assert "Notes (1):" in result.output


def test_cli_unknown_context_is_not_switched(runner):
    result = runner.invoke(context.cli, ["nothing-here"])
    assert result.exit_code == 1


def test_cli_no_current(runner):
    result = runner.invoke(context.cli, [])
    assert "No active context." in result.output
