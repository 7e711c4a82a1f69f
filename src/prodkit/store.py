"""Read and write the tools' data files.

JsonStore is the document API used by every tool:
    store = JsonStore(cfg.tool_dir("tasks") / "tasks.json", {"tasks": [], "next_id": 1})
    doc = store.read()
    with store.update() as doc:
        tid = allocate_id(doc)
        doc["tasks"].append({"id": tid, ...})

Writes go to <file>.tmp under an exclusive flock and are renamed over the
target, so readers never see a half-written document. update() additionally
holds an exclusive flock on <file>.lock across the read-modify-write cycle;
concurrent invocations on one host serialise, nothing more.

Line-oriented logs (timelog CSV, focus history, quick notes) use
append_line()/read_lines(), which lock the file itself.
"""

from __future__ import annotations

import contextlib
import copy
import fcntl
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger("prodkit.store")


class StoreError(Exception):
    """A data file exists but cannot be parsed."""


class JsonStore:
    """One JSON document on disk with a default shape."""

    def __init__(self, path: Path | str, default: dict[str, Any]) -> None:
        self.path = Path(path)
        self.default = default
        self.path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def _lock_path(self) -> Path:
        return self.path.with_name(self.path.name + ".lock")

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> dict[str, Any]:
        """Load the document, or a fresh copy of the default when absent."""
        if not self.path.exists():
            return copy.deepcopy(self.default)
        try:
            with self.path.open() as f:
                fcntl.flock(f, fcntl.LOCK_SH)
                doc = json.load(f)
        except json.JSONDecodeError as exc:
            msg = f"{self.path} is not valid JSON ({exc.msg} at line {exc.lineno})"
            raise StoreError(msg) from exc
        if not isinstance(doc, dict):
            msg = f"{self.path} does not hold a JSON object"
            raise StoreError(msg)
        # Fill keys added after the file was first written
        for key, value in self.default.items():
            doc.setdefault(key, copy.deepcopy(value))
        return doc

    def write(self, doc: dict[str, Any]) -> None:
        """Atomically replace the document under exclusive flock."""
        write_json(self.path, doc)

    @contextlib.contextmanager
    def update(self) -> Iterator[dict[str, Any]]:
        """Read-modify-write under an exclusive lock; writes only on clean exit."""
        with self._lock_path.open("a") as lock:
            fcntl.flock(lock, fcntl.LOCK_EX)
            doc = self.read()
            yield doc
            self.write(doc)


def write_json(path: Path, data: Any) -> None:
    """Write JSON to a tmp file under flock, then rename into place."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    with tmp.open("w") as f:
        fcntl.flock(f, fcntl.LOCK_EX)
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write("\n")
    tmp.replace(path)
    logger.debug("wrote %s", path)


def write_text(path: Path, text: str) -> None:
    """Atomically replace a text file (tmp + rename)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    with tmp.open("w") as f:
        fcntl.flock(f, fcntl.LOCK_EX)
        f.write(text)
    tmp.replace(path)


def allocate_id(doc: dict[str, Any]) -> int:
    """Return the document's next id and advance the counter. Ids are never reused."""
    nid = int(doc.get("next_id", 1))
    doc["next_id"] = nid + 1
    return nid


def append_line(path: Path, line: str, header: str | None = None) -> None:
    """Append one line under exclusive flock, writing header first for new files."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a") as f:
        fcntl.flock(f, fcntl.LOCK_EX)
        if header is not None and f.tell() == 0:
            f.write(header.rstrip("\n") + "\n")
        f.write(line.rstrip("\n") + "\n")


def read_lines(path: Path) -> list[str]:
    """Return the non-empty lines of a text file ([] when missing)."""
    if not path.exists():
        return []
    with path.open() as f:
        fcntl.flock(f, fcntl.LOCK_SH)
        return [line.rstrip("\n") for line in f if line.strip()]
