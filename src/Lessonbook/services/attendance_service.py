import logging
from dataclasses import replace
from datetime import date
from typing import Optional

from Lessonbook.core.aggregation import matrix_attendance_stats
from Lessonbook.core.attendance_matrix import AttendanceMatrix, build_matrix, participants_by_class
from Lessonbook.core.dates import parse_iso_date, parse_time, weekday_sun0
from Lessonbook.core.models import PersonKind
from Lessonbook.core.schedule import sessions_on_date
from Lessonbook.data.repos import (
    attendance_repo, classes_repo, enrollments_repo, students_repo, teachers_repo,
)
from Lessonbook.services._reads import run_reads
from Lessonbook.services.boundary import month_window, normalize_period

logger = logging.getLogger(__name__)


def get_monthly_attendance_matrix(month, year, class_ids=None, today: Optional[date] = None):
    """People x sessions for every active class running in the month."""
    today = today or date.today()
    month, year = normalize_period(month, year, today)
    window_start, window_end = month_window(month, year)
    ids = list(class_ids) if class_ids is not None else None

    data = run_reads(
        classes=lambda: classes_repo.read_classes(ids=ids, active_only=True),
        enrollments=lambda: enrollments_repo.read_enrollments(class_ids=ids),
        students=lambda: students_repo.read_students(),
        teachers=lambda: teachers_repo.read_teachers(),
        class_teachers=lambda: teachers_repo.read_class_teachers(class_ids=ids),
        facts=lambda: attendance_repo.read_attendance_facts(ids, window_start, window_end),
    )
    people = participants_by_class(
        data["enrollments"], data["students"], data["teachers"], data["class_teachers"],
    )
    return build_matrix(data["classes"], people, data["facts"], window_start, window_end)


def get_monthly_attendance_stats(month, year, kind=PersonKind.STUDENT, today: Optional[date] = None):
    matrix = get_monthly_attendance_matrix(month, year, today=today)
    return matrix_attendance_stats(matrix, PersonKind(kind))


def _day_and_time(day, at_time):
    parsed_day = parse_iso_date(day)
    if parsed_day is None:
        raise ValueError(f"invalid date {day!r}")
    at = parse_time(at_time)
    if at is None:
        raise ValueError(f"invalid time {at_time!r}")
    return parsed_day, at


def get_classes_in_session(day, at_time):
    """Sessions of active classes running on ``day`` at ``at_time``."""
    parsed_day, at = _day_and_time(day, at_time)
    return sessions_on_date(classes_repo.read_classes(active_only=True), parsed_day, at)


def get_session_attendance(day, at_time):
    """Roll call for the classes in session on ``day`` at ``at_time``.

    One column per class: the running session only, with its people and
    whatever has been marked for it.
    """
    parsed_day, at = _day_and_time(day, at_time)
    classes = classes_repo.read_classes(active_only=True)
    sessions = sessions_on_date(classes, parsed_day, at)
    if not sessions:
        return AttendanceMatrix(parsed_day, parsed_day)

    by_id = {c.id: c for c in classes}
    weekday = weekday_sun0(parsed_day)
    running = []
    for session in sessions:
        class_def = by_id[session.class_id]
        slots = tuple(s for s in class_def.schedule if s.weekday == weekday and s.start == session.start)
        running.append(replace(class_def, schedule=slots))
    ids = [c.id for c in running]
    times = sorted({s.start for s in sessions})

    data = run_reads(
        enrollments=lambda: enrollments_repo.read_enrollments(class_ids=ids),
        students=lambda: students_repo.read_students(),
        teachers=lambda: teachers_repo.read_teachers(),
        class_teachers=lambda: teachers_repo.read_class_teachers(class_ids=ids),
        facts=lambda: attendance_repo.read_attendance_facts(ids, parsed_day, parsed_day, session_times=times),
    )
    people = participants_by_class(
        data["enrollments"], data["students"], data["teachers"], data["class_teachers"],
    )
    return build_matrix(running, people, data["facts"], parsed_day, parsed_day)


def mark_attendance(class_id, person_id, person_kind, day, session_time, is_present, note=None):
    attendance_id = attendance_repo.upsert_attendance(
        class_id, person_id, person_kind, day, session_time, is_present, note,
    )
    logger.info(f"✅ attendance marked: class {class_id} {person_kind} {person_id} {day} {session_time}")
    return attendance_id


def unmark_attendance(class_id, person_id, person_kind, day, session_time):
    return attendance_repo.delete_attendance(class_id, person_id, person_kind, day, session_time) > 0
