"""Date helpers shared by the tools.

Stored formats:
    DATE_FMT   "2026-03-14"          (due dates, follow-ups, completions)
    STAMP_FMT  "2026-03-14 09:30"    (created / last-accessed stamps)
    CLOCK_FMT  "2026-03-14 09:30:05" (quick notes, journal)
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta

DATE_FMT = "%Y-%m-%d"
STAMP_FMT = "%Y-%m-%d %H:%M"
CLOCK_FMT = "%Y-%m-%d %H:%M:%S"

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_OFFSET_RE = re.compile(r"^\+(\d+)d?$")


def today() -> date:
    return date.today()


def today_str() -> str:
    return date.today().strftime(DATE_FMT)


def stamp() -> str:
    return datetime.now().strftime(STAMP_FMT)


def clock() -> str:
    return datetime.now().strftime(CLOCK_FMT)


def is_date(text: str) -> bool:
    return bool(_DATE_RE.match(text))


def parse_date(text: str) -> date:
    """Parse a strict YYYY-MM-DD date. Raises ValueError with a format hint."""
    if not _DATE_RE.match(text):
        msg = f"invalid date '{text}' (use YYYY-MM-DD)"
        raise ValueError(msg)
    try:
        return datetime.strptime(text, DATE_FMT).date()
    except ValueError:
        msg = f"invalid date '{text}' (use YYYY-MM-DD)"
        raise ValueError(msg) from None


def parse_relative(text: str, base: date | None = None) -> date:
    """Parse YYYY-MM-DD, 'today', 'tomorrow', or '+N' (days from base)."""
    base = base or today()
    word = text.strip().lower()
    if word == "today":
        return base
    if word == "tomorrow":
        return base + timedelta(days=1)
    m = _OFFSET_RE.match(word)
    if m:
        return base + timedelta(days=int(m.group(1)))
    return parse_date(text)


def days_between(start: str | date, end: str | date) -> int:
    """Whole days from start to end (negative when end is earlier)."""
    if isinstance(start, str):
        start = parse_date(start[:10])
    if isinstance(end, str):
        end = parse_date(end[:10])
    return (end - start).days


def format_minutes(minutes: int) -> str:
    """'2h 5m' or '45m'."""
    hours, mins = divmod(int(minutes), 60)
    if hours:
        return f"{hours}h {mins}m"
    return f"{mins}m"


def format_seconds(seconds: int) -> str:
    """'1h 2m 3s', '2m 3s' or '3s'."""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def weekday_name(d: str | date) -> str:
    if isinstance(d, str):
        d = parse_date(d[:10])
    return d.strftime("%A")


def last_n_days(n: int, end: date | None = None) -> list[date]:
    """The n dates ending at end (inclusive), oldest first."""
    end = end or today()
    return [end - timedelta(days=i) for i in range(n - 1, -1, -1)]


def consecutive_run(days: set[date], end: date) -> int:
    """Length of the run of consecutive dates in days that ends at end."""
    count = 0
    cursor = end
    while cursor in days:
        count += 1
        cursor -= timedelta(days=1)
    return count


def longest_run(days: set[date]) -> int:
    """Longest run of consecutive dates."""
    best = 0
    for d in days:
        if d - timedelta(days=1) in days:
            continue
        run = consecutive_run_forward(days, d)
        best = max(best, run)
    return best


def consecutive_run_forward(days: set[date], start: date) -> int:
    count = 0
    cursor = start
    while cursor in days:
        count += 1
        cursor += timedelta(days=1)
    return count
