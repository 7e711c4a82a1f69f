from __future__ import annotations

import json
from datetime import date

import pytest

from prodkit import contacts
from prodkit.contacts import AddressBook, export_csv, split_tags


@pytest.fixture
def book(data_dir):
    b = AddressBook(data_dir / "contacts")
    b.add("Ada Lovelace", email="ada@example.com", company="Analytical Engines", role="Engineer", tags=["math"])
    b.add("Grace Hopper", company="Navy", tags=["cobol", "navy"])
    return b


def test_find_by_id_or_name(book):
    assert book.find("2").name == "Grace Hopper"
    assert book.find("ada lovelace").id == 1
    with pytest.raises(KeyError, match="contact 'Bob' not found"):
        book.find("Bob")


def test_duplicate_names_refused(book):
    with pytest.raises(FileExistsError, match="already exists"):
        book.add("ADA LOVELACE")


def test_search_is_case_insensitive(book):
    assert [c.name for c in book.search("ANALYTICAL")] == ["Ada Lovelace"]
    assert [c.name for c in book.search("Cobol")] == ["Grace Hopper"]
    assert book.search("nobody") == []


def test_log_sets_last_contact(book):
    c = book.log("Ada Lovelace", "coffee chat", today=date(2026, 3, 14))
    assert c.last_contact == "2026-03-14"
    assert c.interactions == [{"date": "2026-03-14", "note": "coffee chat"}]


def test_followups_buckets(book):
    book.add("Alan Turing")
    book.set_followup("1", "2026-03-10", "send paper")
    book.set_followup("2", "2026-03-14")
    book.set_followup("3", "2026-03-18")
    overdue, today, upcoming = book.followups(date(2026, 3, 14), 7)
    assert [c.id for c in overdue] == [1]
    assert [c.id for c in today] == [2]
    assert [c.id for c in upcoming] == [3]
    with pytest.raises(ValueError):
        book.set_followup("1", "soon")


def test_stale_skips_contacts_with_followups(book):
    book.log("1", "met", today=date(2026, 1, 1))
    book.log("2", "met", today=date(2026, 1, 1))
    book.set_followup("2", "2026-04-01")
    assert [c.id for c in book.stale(date(2026, 3, 14), 30)] == [1]


def test_replace_fields_validates(book):
    with pytest.raises(ValueError, match="unknown field"):
        book.replace_fields("1", {"id": 9})
    with pytest.raises(ValueError, match="tags must be a list"):
        book.replace_fields("1", {"tags": "a,b"})
    c = book.replace_fields("1", {"role": "Analyst"})
    assert c.role == "Analyst"
    assert c.id == 1


def test_replace_fields_rejects_bad_values(book):
    with pytest.raises(ValueError, match="email must be a string"):
        book.replace_fields("1", {"email": 5})
    with pytest.raises(ValueError, match="tags must be a list of strings"):
        book.replace_fields("1", {"tags": ["ok", 3]})
    with pytest.raises(ValueError, match="contact name is empty"):
        book.replace_fields("1", {"name": "  "})
    with pytest.raises(FileExistsError, match="already exists"):
        book.replace_fields("1", {"name": "grace hopper"})
    assert book.find("1").email == "ada@example.com"
    assert [c.name for c in book.search("ada")] == ["Ada Lovelace"]

    assert book.replace_fields("1", {"name": " Ada King "}).name == "Ada King"


def test_select_by_tag_and_company(book):
    assert [c.name for c in book.select(tag="navy")] == ["Grace Hopper"]
    assert [c.name for c in book.select(company="engines")] == ["Ada Lovelace"]


def test_export_csv(book):
    lines = export_csv(book.all()).splitlines()
    assert lines[0] == "name,email,company,role,phone,tags,last_contact,followup_date"
    assert lines[2].startswith('"Grace Hopper","","Navy"')
    assert '"cobol;navy"' in lines[2]


def test_split_tags():
    assert split_tags(" a, b,,c ") == ["a", "b", "c"]


def test_cli_add_show_remove(runner):
    result = runner.invoke(contacts.cli, ["add", "Jane Doe", "jane@example.com", "Acme", "CTO", "--tag", "vip,board"])
    assert result.exit_code == 0
    assert "Added contact: Jane Doe" in result.output
    assert "Email: jane@example.com" in result.output

    result = runner.invoke(contacts.cli, ["show", "jane doe"])
    assert "Contact: Jane Doe" in result.output
    assert "board, vip" in result.output

    result = runner.invoke(contacts.cli, ["add", "jane doe"])
    assert result.exit_code == 1
    assert "already exists" in result.output

    result = runner.invoke(contacts.cli, ["rm", "1"])
    assert "Removed contact: Jane Doe" in result.output


def test_cli_export_json(runner, tmp_path):
    runner.invoke(contacts.cli, ["add", "Jane Doe"])
    out = tmp_path / "contacts.json"
    result = runner.invoke(contacts.cli, ["export", "json", "-o", str(out)])
    assert "Exported 1 contact(s)" in result.output
    assert json.loads(out.read_text())[0]["name"] == "Jane Doe"


def test_cli_default_is_due(runner):
    result = runner.invoke(contacts.cli, [])
    assert result.exit_code == 0
    assert "Nothing due." in result.output
