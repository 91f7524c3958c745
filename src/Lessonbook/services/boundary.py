"""Input clamping for the service entry points; the core assumes valid periods."""

import logging
from datetime import date

from Lessonbook.config import year_range
from Lessonbook.core.dates import month_bounds

logger = logging.getLogger(__name__)


def _to_int(value, fallback):
    if isinstance(value, bool):
        return fallback
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        logger.warning(f"⚠️ {value!r} is not a number, using {fallback}")
        return fallback


def normalize_year(year, today: date) -> int:
    lo, hi = year_range()
    return min(max(_to_int(year, today.year), lo), hi)


def normalize_period(month, year, today: date) -> tuple[int, int]:
    """(month, year) clamped to 1..12 and the configured year range."""
    m = min(max(_to_int(month, today.month), 1), 12)
    return m, normalize_year(year, today)


def month_window(month: int, year: int) -> tuple[date, date]:
    return month_bounds(month, year)
