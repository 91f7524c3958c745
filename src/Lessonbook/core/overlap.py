"""Interval overlap between an entity's [start, end] and a queried period.

An end of ``None`` means open-ended. This is the one temporal predicate the
attendance and tuition paths share.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from Lessonbook.core.models import ClassDefinition, Enrollment


def effective_end(*ends: Optional[date]) -> Optional[date]:
    """Earliest of the given ends; None only when every end is open."""
    known = [d for d in ends if d is not None]
    return min(known) if known else None


def overlaps(entity_start: date, entity_end: Optional[date],
             period_start: date, period_end: date) -> bool:
    return entity_start <= period_end and (entity_end is None or entity_end >= period_start)


def clamped_window(entity_start: date, entity_end: Optional[date],
                   period_start: date, period_end: date) -> Optional[tuple[date, date]]:
    if not overlaps(entity_start, entity_end, period_start, period_end):
        return None
    start = max(entity_start, period_start)
    end = period_end if entity_end is None else min(entity_end, period_end)
    if end < start:
        return None
    return start, end


def enrollment_end(enrollment: Enrollment, class_def: ClassDefinition) -> Optional[date]:
    return effective_end(enrollment.leave_date, class_def.end_date)


def enrollment_overlaps(enrollment: Enrollment, class_def: ClassDefinition,
                        period_start: date, period_end: date) -> bool:
    """Whether an enrollment is live at any point of the period.

    The enrollment ends at its leave date or when the class ends, whichever
    comes first. A class that ended before the enrollment date leaves the
    enrollment with no live days at all.
    """
    end = enrollment_end(enrollment, class_def)
    if end is not None and end < enrollment.enrollment_date:
        return False
    return overlaps(enrollment.enrollment_date, end, period_start, period_end)
