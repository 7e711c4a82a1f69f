from __future__ import annotations

import pytest

from prodkit import checklist
from prodkit.checklist import ChecklistBook, Checklist, Item, from_markdown, slugify, to_markdown


@pytest.fixture
def book(data_dir):
    b = ChecklistBook(data_dir / "checklist")
    b.create("Code Review", "before merging")
    b.add_item("code review", "tests pass")
    b.add_item("code review", "docs updated")
    return b


def test_slugify():
    assert slugify("Code Review!") == "code-review"
    assert slugify("  Morning  Routine ") == "morning-routine"


def test_resolve_by_substring(book):
    book.create("Deploy Prod")
    assert book.get("review").name == "Code Review"
    book.create("Deploy Staging")
    with pytest.raises(ValueError, match="matches several checklists"):
        book.get("deploy")
    with pytest.raises(KeyError, match="checklist 'nope' not found"):
        book.get("nope")


def test_duplicate_names_refused(book):
    with pytest.raises(FileExistsError):
        book.create("code review")


def test_toggle_records_completion_once(book):
    _, item, completed = book.toggle("code-review", 1)
    assert item.checked and not completed
    cl, _, completed = book.toggle("code-review", 2)
    assert completed
    assert cl.completion_count == 1
    assert [e["name"] for e in book.completions("code-review")] == ["Code Review"]
    cl = book.reset("code-review")
    assert cl.checked_count == 0
    assert cl.completion_count == 1


def test_toggle_unknown_item(book):
    with pytest.raises(KeyError, match="item #5 not found"):
        book.toggle("code-review", 5)


def test_copy_resets_checks(book):
    book.toggle("code-review", 1)
    _, clone = book.copy("code-review", "Review Copy")
    assert clone.checked_count == 0
    assert [i.text for i in clone.items] == ["tests pass", "docs updated"]


def test_markdown_export_import_round_trip(book, data_dir):
    book.toggle("code-review", 2)
    text = to_markdown(book.get("code-review"))
    assert text == "# Code Review\n\nbefore merging\n\n- [ ] tests pass\n- [x] docs updated\n"

    other = ChecklistBook(data_dir / "other")
    cl = other.import_markdown(text)
    assert cl.name == "Code Review"
    assert cl.description == "before merging"
    assert [(i.text, i.checked) for i in cl.items] == [("tests pass", False), ("docs updated", True)]
    with pytest.raises(FileExistsError):
        other.import_markdown(text)


def test_from_markdown_requires_heading():
    with pytest.raises(ValueError, match="could not parse a checklist name"):
        from_markdown("- [ ] orphan item\n")


def test_status_labels():
    assert Checklist("x").status() == "empty"
    cl = Checklist("x", items=[Item("a", True), Item("b")])
    assert cl.status() == "1/2"
    assert cl.percent == 50


def test_template(book):
    cl = book.from_template("deployment")
    assert cl.name == "deployment"
    assert len(cl.items) == 9
    with pytest.raises(KeyError, match="unknown template"):
        book.from_template("nope")


def test_cli_flow(runner, tmp_path):
    result = runner.invoke(checklist.cli, ["new", "Morning", "-d", "start the day"])
    assert result.exit_code == 0
    assert "Created checklist: Morning" in result.output

    result = runner.invoke(checklist.cli, ["add", "morning", "make", "coffee"])
    assert "Added to Morning: make coffee (item #1)" in result.output

    result = runner.invoke(checklist.cli, ["check", "morning", "1"])
    assert "[x] make coffee" in result.output
    assert "All items checked!" in result.output

    out = tmp_path / "morning.md"
    result = runner.invoke(checklist.cli, ["export", "morning", "-o", str(out)])
    assert "Exported to:" in result.output

    result = runner.invoke(checklist.cli, ["import", str(out)], input="y\n")
    assert result.exit_code == 0
    assert "Imported: Morning (1 items)" in result.output

    result = runner.invoke(checklist.cli, ["delete", "morning", "--yes"])
    assert "Deleted: Morning" in result.output


def test_cli_run_checks_items(runner):
    runner.invoke(checklist.cli, ["new", "Deploy"])
    runner.invoke(checklist.cli, ["add", "deploy", "backup db"])
    runner.invoke(checklist.cli, ["add", "deploy", "push"])
    result = runner.invoke(checklist.cli, ["run", "deploy"], input="\n\n")
    assert result.exit_code == 0
    assert "Checklist complete!" in result.output
