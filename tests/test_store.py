from __future__ import annotations

import json

import pytest

from prodkit.store import JsonStore, StoreError, allocate_id, append_line, read_lines, write_json


def test_read_missing_returns_copy_of_default(tmp_path):
    default = {"items": [], "next_id": 1}
    store = JsonStore(tmp_path / "doc.json", default)
    doc = store.read()
    doc["items"].append(1)
    assert store.read() == {"items": [], "next_id": 1}
    assert not store.exists()


def test_update_writes_on_clean_exit(tmp_path):
    store = JsonStore(tmp_path / "doc.json", {"items": [], "next_id": 1})
    with store.update() as doc:
        doc["items"].append({"id": allocate_id(doc)})
    assert json.loads((tmp_path / "doc.json").read_text()) == {"items": [{"id": 1}], "next_id": 2}
    assert not (tmp_path / "doc.json.tmp").exists()


def test_update_discards_changes_on_error(tmp_path):
    store = JsonStore(tmp_path / "doc.json", {"items": []})
    store.write({"items": ["a"]})
    with pytest.raises(RuntimeError), store.update() as doc:
        doc["items"].append("b")
        raise RuntimeError("boom")
    assert store.read() == {"items": ["a"]}


def test_allocate_id_never_reuses():
    doc = {"next_id": 1}
    ids = [allocate_id(doc) for _ in range(3)]
    assert ids == [1, 2, 3]
    assert doc["next_id"] == 4


def test_missing_default_keys_are_filled(tmp_path):
    path = tmp_path / "doc.json"
    write_json(path, {"items": [1]})
    assert JsonStore(path, {"items": [], "next_id": 1}).read() == {"items": [1], "next_id": 1}


def test_corrupt_file_raises_store_error(tmp_path):
    path = tmp_path / "doc.json"
    path.write_text("{not json")
    with pytest.raises(StoreError, match="doc.json"):
        JsonStore(path, {}).read()
    assert path.read_text() == "{not json"


def test_non_object_document_is_rejected(tmp_path):
    path = tmp_path / "doc.json"
    path.write_text("[1, 2]")
    with pytest.raises(StoreError):
        JsonStore(path, {}).read()


def test_append_line_writes_header_once(tmp_path):
    path = tmp_path / "log.csv"
    append_line(path, "a,1", header="name,n")
    append_line(path, "b,2", header="name,n")
    assert read_lines(path) == ["name,n", "a,1", "b,2"]


def test_read_lines_missing_file(tmp_path):
    assert read_lines(tmp_path / "nope.txt") == []
