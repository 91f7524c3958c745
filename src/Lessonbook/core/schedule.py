"""Weekly schedule parsing and expansion into dated sessions."""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import Iterable, Optional

from Lessonbook.core.dates import add_minutes, iter_days, parse_time, time_to_minutes, weekday_sun0
from Lessonbook.core.models import ClassDefinition, ScheduleSlot, Session
from Lessonbook.core.overlap import clamped_window

logger = logging.getLogger(__name__)


def _parse_slot(entry, duration_minutes: int) -> Optional[ScheduleSlot]:
    if not isinstance(entry, dict):
        return None
    day = entry.get("day", entry.get("weekday"))
    if isinstance(day, bool):
        return None
    try:
        weekday = int(day)
    except (TypeError, ValueError):
        return None
    if weekday < 0 or weekday > 6:
        return None

    start = parse_time(entry.get("start_time", entry.get("start")))
    if start is None:
        return None

    raw_end = entry.get("end_time", entry.get("end"))
    if raw_end in (None, ""):
        # derived end must still land on the same day
        if add_minutes(start, duration_minutes) is None:
            return None
        return ScheduleSlot(weekday, start, None)
    end = parse_time(raw_end)
    if end is None or time_to_minutes(end) <= time_to_minutes(start):
        return None
    return ScheduleSlot(weekday, start, end)


def parse_schedule(raw, duration_minutes: int) -> tuple[ScheduleSlot, ...]:
    """Stored ``days_of_week`` value -> validated slots.

    ``raw`` is a JSON string or an already decoded list of
    ``{"day": 0..6, "start_time": "HH:MM", "end_time"?: "HH:MM"}``.
    Bad entries are dropped, a bad document gives an empty schedule.
    """
    if raw is None or raw == "":
        return ()
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("⚠️ schedule is not valid JSON, treating as empty")
            return ()
    if not isinstance(raw, list):
        logger.warning("⚠️ schedule is not a list, treating as empty")
        return ()

    slots = {}
    for entry in raw:
        slot = _parse_slot(entry, duration_minutes)
        if slot is None:
            logger.warning(f"⚠️ skipping malformed schedule entry {entry!r}")
            continue
        key = (slot.weekday, slot.start)
        if key in slots:
            logger.warning(f"⚠️ duplicate schedule slot {key}, keeping the first")
            continue
        slots[key] = slot
    return tuple(sorted(slots.values(), key=lambda s: (s.weekday, s.start)))


def schedule_to_json(slots: Iterable[ScheduleSlot]) -> str:
    payload = []
    for slot in slots:
        item = {"day": slot.weekday, "start_time": slot.start}
        if slot.end:
            item["end_time"] = slot.end
        payload.append(item)
    return json.dumps(payload)


def resolve_end(slot: ScheduleSlot, duration_minutes: int) -> str:
    if slot.end:
        return slot.end
    end = add_minutes(slot.start, duration_minutes)
    # parse_schedule never lets a derived end cross midnight
    return end if end is not None else "23:59"


def expand(slots: Iterable[ScheduleSlot], class_id: int,
           lifetime_start: date, lifetime_end: Optional[date],
           window_start: date, window_end: date,
           duration_minutes: int) -> list[Session]:
    slots = tuple(slots)
    if not slots:
        return []
    window = clamped_window(lifetime_start, lifetime_end, window_start, window_end)
    if window is None:
        return []

    by_weekday = {}
    for slot in slots:
        by_weekday.setdefault(slot.weekday, []).append(slot)

    sessions = []
    for day in iter_days(*window):
        for slot in by_weekday.get(weekday_sun0(day), ()):
            sessions.append(Session(class_id, day, slot.start, resolve_end(slot, duration_minutes)))
    sessions.sort(key=lambda s: (s.date, s.start))
    return sessions


def sessions_for_class(class_def: ClassDefinition, window_start: date, window_end: date) -> list[Session]:
    return expand(
        class_def.schedule, class_def.id,
        class_def.start_date, class_def.end_date,
        window_start, window_end,
        class_def.duration_minutes,
    )


def sessions_on_date(classes: Iterable[ClassDefinition], day: date, at_time: str) -> list[Session]:
    """Sessions running on ``day`` at wall-clock ``at_time`` (bounds inclusive).

    At most one session per class: the earliest matching slot.
    """
    at = time_to_minutes(at_time)
    result = []
    for class_def in classes:
        for session in sessions_for_class(class_def, day, day):
            if time_to_minutes(session.start) <= at <= time_to_minutes(session.end):
                result.append(session)
                break
    return result
