"""Calendar helpers. Plain ``datetime.date`` arithmetic, no timezones."""

from __future__ import annotations

import calendar
import logging
import re
from datetime import date, datetime, timedelta
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")


def parse_iso_date(value) -> Optional[date]:
    """``YYYY-MM-DD`` (a trailing time part is ignored) -> date, else None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        logger.warning(f"⚠️ unparsable date {value!r}")
        return None


def parse_time(value) -> Optional[str]:
    """Normalize ``H:MM`` / ``HH:MM`` / ``HH:MM:SS`` to ``HH:MM``."""
    if value is None:
        return None
    m = _TIME_RE.match(str(value).strip())
    if not m:
        return None
    hours, minutes = int(m.group(1)), int(m.group(2))
    if hours > 23 or minutes > 59:
        return None
    return f"{hours:02d}:{minutes:02d}"


def time_to_minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def add_minutes(hhmm: str, minutes: int) -> Optional[str]:
    """Returns None when the result would cross midnight."""
    total = time_to_minutes(hhmm) + int(minutes)
    if total >= 24 * 60 or total < 0:
        return None
    return minutes_to_time(total)


def weekday_sun0(d: date) -> int:
    # date.weekday() is Monday=0; schedules use Sunday=0
    return (d.weekday() + 1) % 7


def month_bounds(month: int, year: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    step = timedelta(days=1)
    while current <= end:
        yield current
        current += step


def iter_months(start: date, end: date) -> Iterator[tuple[int, int]]:
    """(month, year) pairs touched by [start, end], ascending."""
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        yield month, year
        month += 1
        if month > 12:
            month, year = 1, year + 1
