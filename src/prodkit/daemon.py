"""Detached background process management (PID file in the tool's data dir).

Used by focus mode: `focus start` spawns `python -m prodkit.focus <data_dir>
<session_id>` in its own session so it outlives the terminal, and `focus stop`
terminates it.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger("prodkit.daemon")


def read_pid(pid_file: Path) -> int | None:
    if not pid_file.exists():
        return None
    try:
        return int(pid_file.read_text().strip())
    except ValueError:
        return None


def pid_running(pid_file: Path) -> bool:
    pid = read_pid(pid_file)
    if pid is None:
        return False
    try:
        os.kill(pid, 0)
        return True
    except (ProcessLookupError, PermissionError):
        return False


def start_background(module: str, args: list[str], pid_file: Path, log_file: Path) -> int:
    """Start `python -m module args...` detached from the terminal. Returns PID."""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    with log_file.open("a") as log:
        proc = subprocess.Popen(
            [sys.executable, "-m", module, *args],
            stdin=subprocess.DEVNULL,
            stdout=log,
            stderr=log,
            start_new_session=True,
        )
    pid_file.write_text(str(proc.pid))
    logger.info("started %s (pid %d)", module, proc.pid)
    return proc.pid


def stop_background(pid_file: Path) -> bool:
    """SIGTERM the process named in pid_file. Returns True if one was signalled."""
    pid = read_pid(pid_file)
    if pid is None:
        pid_file.unlink(missing_ok=True)
        return False
    try:
        os.kill(pid, signal.SIGTERM)
        stopped = True
        logger.info("stopped pid %d", pid)
    except ProcessLookupError:
        stopped = False
    pid_file.unlink(missing_ok=True)
    return stopped
