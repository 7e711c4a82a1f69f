"""focus: timed focus sessions with a generated site block list.

Files under <data_dir>/focus/:
    blocklist.json          {"blocked_sites": [...]}
    current_session.json    present while a session runs (epoch seconds)
    history.csv             date,time,planned,actual,status
    blocked_hosts.txt       hosts-format block list, present while a session runs
    timer.pid, timer.log    the detached completion timer

`focus start` spawns ``python -m prodkit.focus <focus_dir> <session_id>``,
which sleeps until the session's end time and, if the same session is still
current, completes it and sends a desktop notification.
"""

from __future__ import annotations

import logging
import re
import shutil
import signal
import subprocess
import sys
import time
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import click

from prodkit import daemon, dates
from prodkit.config import load_config
from prodkit.groups import ToolGroup, tool_group
from prodkit.output import bar, header, setup_logging
from prodkit.store import JsonStore, append_line, read_lines, write_text

logger = logging.getLogger("prodkit.focus")

DEFAULT_SITES = [
    "facebook.com", "twitter.com", "x.com", "instagram.com", "reddit.com",
    "youtube.com", "tiktok.com", "netflix.com", "twitch.tv",
]
HISTORY_HEADER = "date,time,planned,actual,status"
COMPLETED = "completed"
STOPPED_EARLY = "stopped_early"
STATUS_BAR_WIDTH = 30


@dataclass
class Session:
    session_id: str
    start_time: int
    end_time: int
    duration_minutes: int
    date: str
    status: str = "active"

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Session:
        return cls(
            session_id=str(d["session_id"]),
            start_time=int(d["start_time"]),
            end_time=int(d["end_time"]),
            duration_minutes=int(d["duration_minutes"]),
            date=d.get("date", ""),
            status=d.get("status", "active"),
        )

    def remaining(self, now: float) -> int:
        return max(0, int(self.end_time - now))

    def elapsed(self, now: float) -> int:
        return max(0, int(now - self.start_time))


@dataclass
class HistoryRow:
    date: str
    time: str
    planned: int
    actual: int
    status: str

    @classmethod
    def parse(cls, line: str) -> HistoryRow | None:
        parts = line.split(",")
        if len(parts) != 5 or not parts[2].isdigit() or not parts[3].isdigit():
            return None
        return cls(parts[0], parts[1], int(parts[2]), int(parts[3]), parts[4])

    def to_line(self) -> str:
        return f"{self.date},{self.time},{self.planned},{self.actual},{self.status}"


def normalize_site(site: str) -> str:
    """'https://www.example.com/path' -> 'example.com'."""
    site = re.sub(r"^https?://", "", site.strip())
    site = re.sub(r"^www\.", "", site)
    site = site.split("/", 1)[0]
    if not site:
        msg = "site is empty"
        raise ValueError(msg)
    return site


def notify(message: str, urgency: str = "normal") -> bool:
    """Desktop notification via notify-send; False when it is not installed."""
    exe = shutil.which("notify-send")
    if exe is None:
        logger.debug("notify-send not found, skipping notification")
        return False
    subprocess.run([exe, "-u", urgency, "Focus Mode", message], check=False)
    return True


class FocusManager:
    """Session state, history and block list of one focus data dir."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = data_dir
        self.blocklist_store = JsonStore(data_dir / "blocklist.json", {"blocked_sites": list(DEFAULT_SITES)})
        self.session_store = JsonStore(data_dir / "current_session.json", {})
        self.history_path = data_dir / "history.csv"
        self.block_file = data_dir / "blocked_hosts.txt"
        self.pid_file = data_dir / "timer.pid"
        self.log_file = data_dir / "timer.log"

    # -- block list --------------------------------------------------------

    def sites(self) -> list[str]:
        return list(self.blocklist_store.read()["blocked_sites"])

    def block(self, site: str) -> tuple[str, bool]:
        site = normalize_site(site)
        with self.blocklist_store.update() as doc:
            if site in doc["blocked_sites"]:
                return site, False
            doc["blocked_sites"].append(site)
        logger.info("blocked %s", site)
        return site, True

    def unblock(self, site: str) -> tuple[str, bool]:
        site = normalize_site(site)
        with self.blocklist_store.update() as doc:
            before = len(doc["blocked_sites"])
            doc["blocked_sites"] = [s for s in doc["blocked_sites"] if s != site]
            removed = len(doc["blocked_sites"]) < before
        return site, removed

    def write_block_file(self, now: datetime | None = None) -> Path:
        lines = ["# Focus Mode - Blocked Sites", f"# Generated at {(now or datetime.now()).strftime(dates.CLOCK_FMT)}", ""]
        for site in self.sites():
            lines += [f"127.0.0.1 {site}", f"127.0.0.1 www.{site}"]
        write_text(self.block_file, "\n".join(lines) + "\n")
        return self.block_file

    def clear_block_file(self) -> bool:
        if not self.block_file.exists():
            return False
        self.block_file.unlink()
        return True

    # -- sessions ----------------------------------------------------------

    def session(self) -> Session | None:
        if not self.session_store.exists():
            return None
        return Session.from_dict(self.session_store.read())

    def active(self, now: float | None = None) -> Session | None:
        """The running session, or None when there is none or it has expired."""
        session = self.session()
        if session is None or (now or time.time()) >= session.end_time:
            return None
        return session

    def start(self, minutes: int, now: float | None = None) -> Session:
        if minutes <= 0:
            msg = "duration must be a positive number of minutes"
            raise ValueError(msg)
        now = now or time.time()
        if self.active(now) is not None:
            msg = "focus mode is already active"
            raise FileExistsError(msg)
        self.finish_expired(now)
        started = datetime.fromtimestamp(now)
        session = Session(
            session_id=started.strftime("%Y%m%d%H%M%S"),
            start_time=int(now),
            end_time=int(now) + minutes * 60,
            duration_minutes=minutes,
            date=started.strftime(dates.DATE_FMT),
        )
        self.session_store.write(asdict(session))
        self.write_block_file(started)
        logger.info("focus session %s started (%d min)", session.session_id, minutes)
        return session

    def complete(self, status: str, now: float | None = None) -> HistoryRow | None:
        """Log the current session with status and remove it. None when nothing runs."""
        session = self.session()
        if session is None:
            return None
        now = now or time.time()
        actual = session.elapsed(now) // 60
        if status == COMPLETED:
            actual = min(actual, session.duration_minutes)
        finished = datetime.fromtimestamp(now)
        row = HistoryRow(
            date=finished.strftime(dates.DATE_FMT),
            time=finished.strftime("%H:%M"),
            planned=session.duration_minutes,
            actual=actual,
            status=status,
        )
        append_line(self.history_path, row.to_line(), header=HISTORY_HEADER)
        self.session_store.path.unlink(missing_ok=True)
        self.clear_block_file()
        logger.info("focus session %s %s (%d min)", session.session_id, status, actual)
        return row

    def finish_expired(self, now: float | None = None) -> HistoryRow | None:
        session = self.session()
        if session is None or (now or time.time()) < session.end_time:
            return None
        return self.complete(COMPLETED, now)

    def stop(self, now: float | None = None) -> HistoryRow | None:
        row = self.finish_expired(now) or self.complete(STOPPED_EARLY, now)
        daemon.stop_background(self.pid_file)
        return row

    def spawn_timer(self, session: Session) -> int:
        return daemon.start_background(
            "prodkit.focus", [str(self.data_dir), session.session_id], self.pid_file, self.log_file,
        )

    def history(self) -> list[HistoryRow]:
        rows = []
        for line in read_lines(self.history_path):
            if line == HISTORY_HEADER:
                continue
            row = HistoryRow.parse(line)
            if row is None:
                logger.debug("skipping malformed history line: %r", line)
                continue
            rows.append(row)
        return rows


def summarize(rows: list[HistoryRow]) -> tuple[int, int, int]:
    """(sessions, completed, minutes)."""
    return len(rows), sum(1 for r in rows if r.status == COMPLETED), sum(r.actual for r in rows)


class FocusTimer:
    """Detached process that completes a session when its time is up."""

    def __init__(self, manager: FocusManager, session_id: str, notifications: bool = True) -> None:
        self.manager = manager
        self.session_id = session_id
        self.notifications = notifications
        self._stop = False

    def run(self) -> str | None:
        signal.signal(signal.SIGTERM, self._on_sigterm)
        logger.info("timer waiting for session %s", self.session_id)
        try:
            while not self._stop:
                session = self.manager.session()
                if session is None or session.session_id != self.session_id:
                    logger.info("session %s is no longer current", self.session_id)
                    return None
                remaining = session.remaining(time.time())
                if remaining <= 0:
                    self.manager.complete(COMPLETED)
                    if self.notifications:
                        notify("Focus session complete! Great work!", "critical")
                    return COMPLETED
                self._sleep_interruptible(remaining)
            return None
        finally:
            self.manager.pid_file.unlink(missing_ok=True)

    def _sleep_interruptible(self, seconds: float) -> None:
        deadline = time.monotonic() + seconds
        while not self._stop and time.monotonic() < deadline:
            time.sleep(min(1.0, deadline - time.monotonic()))

    def _on_sigterm(self, *_: object) -> None:
        self._stop = True


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _focus() -> FocusManager:
    return FocusManager(load_config().tool_dir("focus"))


def _clock(epoch: int) -> str:
    return datetime.fromtimestamp(epoch).strftime("%H:%M")


@tool_group("focus", fallback="start", fallback_when=str.isdigit)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Focus sessions with a distraction block list."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(status)


@cli.command()
@click.argument("minutes", type=click.IntRange(min=1), required=False)
def start(minutes: int | None) -> None:
    """Start a focus session of MINUTES (default from config)."""
    cfg = load_config()
    fm = FocusManager(cfg.tool_dir("focus"))
    running = fm.active()
    if running is not None:
        click.secho("Focus mode is already active!", fg="yellow")
        click.echo(f"Time remaining: {click.style(dates.format_seconds(running.remaining(time.time())), fg='cyan')}")
        return
    minutes = minutes or cfg.focus.default_duration
    session = fm.start(minutes)
    fm.spawn_timer(session)

    click.echo()
    click.secho("FOCUS MODE ACTIVATED", fg="green", bold=True)
    click.echo()
    click.echo(f"{click.style('Duration:', fg='cyan')} {minutes} minutes")
    click.echo(f"{click.style('End time:', fg='cyan')} {_clock(session.end_time)}")
    click.echo()
    click.secho(f"Block list generated: {fm.block_file}", fg="cyan")
    click.secho(f"Blocking {len(fm.sites())} distracting sites", fg="yellow")
    click.echo("Use it with a browser extension that reads hosts files, or append it to /etc/hosts (sudo).")
    click.echo()
    click.secho("Tips for maximum focus:", dim=True)
    for tip in ("Put your phone in another room", "Close unnecessary browser tabs",
                "Disable desktop notifications", "Have water nearby"):
        click.echo(f"  - {tip}")
    click.echo()
    click.echo(f"Run {click.style('focus status', fg='cyan')} to check remaining time")
    click.echo(f"Run {click.style('focus stop', fg='cyan')} to end early")
    if cfg.focus.show_notifications:
        notify(f"Focus mode started for {minutes} minutes. Stay focused!", "low")


@cli.command()
def stop() -> None:
    """End the current session early."""
    cfg = load_config()
    fm = FocusManager(cfg.tool_dir("focus"))
    row = fm.stop()
    if row is None:
        click.secho("Focus mode is not active.", fg="yellow")
        return
    if row.status == COMPLETED:
        click.secho(f"Session completed: {row.actual} minutes focused", fg="green")
    else:
        click.secho(f"Session ended early: {row.actual} of {row.planned} minutes", fg="yellow")
    click.secho("Focus mode stopped. Block list cleared.", fg="yellow")
    if cfg.focus.show_notifications:
        notify("Focus mode ended", "low")


@cli.command()
def status() -> None:
    """Remaining time of the current session, or today's summary."""
    fm = _focus()
    now = time.time()
    finished = fm.finish_expired(now)
    if finished is not None:
        click.secho(f"Previous session completed: {finished.actual} minutes focused", fg="green")
        click.echo()
    session = fm.active(now)
    if session is not None:
        total = session.duration_minutes * 60
        elapsed = session.elapsed(now)
        pct = min(100, elapsed * 100 // total)
        click.secho("FOCUS MODE: ACTIVE", fg="green", bold=True)
        click.echo()
        click.echo(f"  Started: {_clock(session.start_time)}")
        click.echo(f"  Duration: {session.duration_minutes} minutes")
        click.echo(f"  Elapsed: {dates.format_seconds(elapsed)}")
        click.echo(f"  Remaining: {click.style(dates.format_seconds(session.remaining(now)), fg='cyan')}")
        click.echo()
        click.echo(f"  Progress: [{bar(elapsed, total, STATUS_BAR_WIDTH, '█', '░')}] {pct}%")
        return
    click.secho("FOCUS MODE: INACTIVE", bold=True)
    click.echo()
    click.echo("Start a focus session with: focus start [minutes]")
    today = [r for r in fm.history() if r.date == dates.today_str()]
    if today:
        sessions, _, minutes = summarize(today)
        click.echo()
        click.secho("Today's Focus:", fg="cyan")
        click.echo(f"  Sessions: {sessions}")
        click.echo(f"  Total focused time: {minutes}m")


@cli.group("block", cls=ToolGroup, invoke_without_command=True)
@click.pass_context
def block(ctx: click.Context) -> None:
    """Manage the block list."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(block_list)


@block.command("add")
@click.argument("site")
def block_add(site: str) -> None:
    """Add SITE (scheme, www. and path are stripped)."""
    name, added = _focus().block(site)
    if not added:
        click.secho(f"{name} is already in the block list", fg="yellow")
        return
    click.echo(f"{click.style('Added to block list:', fg='green')} {name}")


@block.command("remove")
@click.argument("site")
def block_remove(site: str) -> None:
    """Remove SITE from the block list."""
    name, removed = _focus().unblock(site)
    if not removed:
        click.secho(f"{name} is not in the block list", fg="yellow")
        return
    click.echo(f"{click.style('Removed from block list:', fg='red')} {name}")


@block.command("list")
def block_list() -> None:
    """List blocked sites."""
    click.secho("Blocked Sites:", fg="blue")
    click.echo()
    for site in _focus().sites():
        click.echo(f"  - {site}")


block.add_command(block_remove, name="rm")
block.add_command(block_list, name="ls")


@cli.command()
def stats() -> None:
    """Sessions and focused time: today, last 7 days, all time."""
    rows = _focus().history()
    header("Focus Mode Statistics")
    click.echo()
    if not rows:
        click.echo("No focus sessions recorded yet.")
        click.echo("Start your first session with: focus start")
        return
    today = dates.today_str()
    week = {d.strftime(dates.DATE_FMT) for d in dates.last_n_days(7)}

    sessions, completed, minutes = summarize([r for r in rows if r.date == today])
    click.secho(f"Today ({today}):", fg="cyan")
    click.echo(f"  Sessions: {sessions} ({completed} completed)")
    click.echo(f"  Focused time: {minutes} minutes")
    click.echo()

    sessions, completed, minutes = summarize([r for r in rows if r.date in week])
    click.secho("This Week:", fg="cyan")
    click.echo(f"  Sessions: {sessions} ({completed} completed)")
    click.echo(f"  Focused time: {minutes} minutes (~{minutes // 60} hours)")
    click.echo(f"  Average per day: {minutes // 7} minutes")
    click.echo()

    sessions, completed, minutes = summarize(rows)
    click.secho("All Time:", fg="cyan")
    click.echo(f"  Total sessions: {sessions}")
    click.echo(f"  Completed: {completed} ({completed * 100 // sessions}%)")
    click.echo(f"  Total focused time: {minutes // 60} hours {minutes % 60} minutes")
    click.echo()

    click.secho("Recent Sessions:", fg="cyan")
    for r in rows[-5:]:
        icon = click.style("✓", fg="green") if r.status == COMPLETED else click.style("○", fg="yellow")
        click.echo(f"  {icon} {r.date} {r.time} - {r.actual}m / {r.planned}m")


@cli.command("config")
def config_cmd() -> None:
    """Show focus settings and file locations."""
    cfg = load_config()
    fm = FocusManager(cfg.tool_dir("focus"))
    click.secho("Focus Mode Configuration:", fg="blue")
    click.echo()
    click.echo(f"  Default duration: {cfg.focus.default_duration} minutes")
    click.echo(f"  Show notifications: {str(cfg.focus.show_notifications).lower()}")
    click.echo(f"  notify-send: {'available' if shutil.which('notify-send') else 'not installed'}")
    click.echo(f"  Blocked sites: {len(fm.sites())}")
    click.echo()
    click.echo(f"  Config file: {cfg.config_path or '(defaults)'}")
    click.echo(f"  Block list: {fm.blocklist_store.path}")
    click.echo(f"  History: {fm.history_path}")
    click.echo(f"  Timer log: {fm.log_file}")


cli.add_command(start, name="s")
cli.add_command(stop, name="end")
cli.add_command(status, name="st")
cli.add_command(stats, name="statistics")
cli.add_command(config_cmd, name="cfg")
cli.add_command(block, name="b")


def main() -> None:
    setup_logging()
    cli(standalone_mode=True)


def timer_main(argv: list[str]) -> str | None:
    """Detached timer entry: ``python -m prodkit.focus DATA_DIR SESSION_ID``."""
    if len(argv) != 2:
        sys.exit("usage: python -m prodkit.focus DATA_DIR SESSION_ID")
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(message)s")
    show = load_config().focus.show_notifications
    return FocusTimer(FocusManager(Path(argv[0])), argv[1], notifications=show).run()


if __name__ == "__main__":
    timer_main(sys.argv[1:])
