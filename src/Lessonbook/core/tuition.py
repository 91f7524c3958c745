"""Monthly tuition ledger: overlapping enrollments joined with payment facts."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from Lessonbook.core.dates import month_bounds
from Lessonbook.core.models import (
    ClassDefinition, Enrollment, EnrollmentStatus, PaymentFact, PaymentState,
    Student, TuitionLine,
)
from Lessonbook.core.overlap import enrollment_overlaps
from Lessonbook.core.text import normalize_phone, normalize_text, sort_key

logger = logging.getLogger(__name__)

LEARNING_STATUSES = ("all", "enrolled", "trial", "active", "inactive")
PAYMENT_STATUSES = ("all", "paid", "unpaid", "not_created")


@dataclass(frozen=True)
class TuitionFilters:
    class_id: Optional[int] = None
    student_query: str = ""
    subject: str = ""
    learning_status: str = "all"
    payment_status: str = "all"

    def __post_init__(self):
        if self.learning_status not in LEARNING_STATUSES:
            raise ValueError(f"invalid learning_status {self.learning_status!r}")
        if self.payment_status not in PAYMENT_STATUSES:
            raise ValueError(f"invalid payment_status {self.payment_status!r}")


@dataclass(frozen=True)
class StudentClassInMonth:
    class_id: int
    class_name: str
    monthly_fee: int
    enrollment_date: date
    leave_date: Optional[date]
    is_last_class: bool


def _matches_student(student: Student, query: str) -> bool:
    query = query.strip()
    if not query:
        return True
    if normalize_text(query) in normalize_text(student.full_name):
        return True
    q_phone = normalize_phone(query)
    s_phone = normalize_phone(student.phone)
    return bool(q_phone and s_phone and q_phone in s_phone)


def _matches_subject(class_def: ClassDefinition, subject: str) -> bool:
    subject = subject.strip()
    if not subject or subject == "all":
        return True
    return normalize_text(subject) in normalize_text(class_def.name)


def _matches_learning_status(status: EnrollmentStatus, wanted: str) -> bool:
    if wanted == "all":
        return True
    if wanted == "enrolled":
        return status.is_enrolled
    return status.value == wanted


def _matches_payment_status(line: TuitionLine, wanted: str) -> bool:
    return wanted == "all" or line.state.value == wanted


def _latest_per_pair(enrollments: Iterable[Enrollment]) -> list[Enrollment]:
    # one line per (student, class); a re-enrollment supersedes older rows
    latest = {}
    for e in enrollments:
        key = (e.student_id, e.class_id)
        current = latest.get(key)
        if current is None or (e.enrollment_date, e.id) > (current.enrollment_date, current.id):
            latest[key] = e
    return list(latest.values())


def reconcile(month: int, year: int,
              enrollments: Iterable[Enrollment],
              classes: Iterable[ClassDefinition],
              payment_facts: Iterable[PaymentFact],
              students: Iterable[Student],
              filters: Optional[TuitionFilters] = None) -> list[TuitionLine]:
    """One line per (student, class) enrollment overlapping the month.

    month and year must already be valid. Enrollments pointing at a missing
    or inactive student or class are skipped. No order is guaranteed, use
    ``sort_lines`` for presentation.
    """
    filters = filters or TuitionFilters()
    month_start, month_end = month_bounds(month, year)
    class_map = {c.id: c for c in classes}
    student_map = {s.id: s for s in students}
    payments = {}
    for p in payment_facts:
        if p.month == month and p.year == year:
            payments[(p.student_id, p.class_id)] = p

    live = []
    for e in enrollments:
        class_def = class_map.get(e.class_id)
        student = student_map.get(e.student_id)
        if class_def is None or student is None:
            continue
        if not class_def.is_active or not student.is_active:
            continue
        if filters.class_id is not None and e.class_id != filters.class_id:
            continue
        if not enrollment_overlaps(e, class_def, month_start, month_end):
            continue
        live.append(e)

    lines = []
    for e in _latest_per_pair(live):
        class_def = class_map[e.class_id]
        student = student_map[e.student_id]
        if not _matches_student(student, filters.student_query):
            continue
        if not _matches_subject(class_def, filters.subject):
            continue
        if not _matches_learning_status(e.status, filters.learning_status):
            continue
        line = TuitionLine(
            enrollment_id=e.id,
            student_id=e.student_id,
            student_name=student.full_name,
            student_phone=student.phone,
            class_id=e.class_id,
            class_name=class_def.name,
            month=month,
            year=year,
            enrollment_status=e.status,
            enrollment_date=e.enrollment_date,
            leave_date=e.leave_date,
            monthly_fee=class_def.monthly_fee,
            payment=payments.get((e.student_id, e.class_id)),
        )
        if not _matches_payment_status(line, filters.payment_status):
            continue
        lines.append(line)
    return lines


def reconcile_year(year: int, enrollments, classes, payment_facts, students,
                   filters: Optional[TuitionFilters] = None) -> list[TuitionLine]:
    enrollments = list(enrollments)
    classes = list(classes)
    payment_facts = list(payment_facts)
    students = list(students)
    lines = []
    for month in range(1, 13):
        lines.extend(reconcile(month, year, enrollments, classes, payment_facts, students, filters))
    return lines


def sort_lines(lines: Iterable[TuitionLine]) -> list[TuitionLine]:
    return sorted(lines, key=lambda l: (sort_key(l.class_name), sort_key(l.student_name), l.year, l.month))


def lines_missing_payment(lines: Iterable[TuitionLine]) -> list[TuitionLine]:
    """Active enrollments that have no payment record yet. Trials are never billed here."""
    return [
        l for l in lines
        if l.state is PaymentState.NOT_CREATED and l.enrollment_status is EnrollmentStatus.ACTIVE
    ]


def student_classes_in_month(student_id: int, month: int, year: int,
                             enrollments: Iterable[Enrollment],
                             classes: Iterable[ClassDefinition]) -> list[StudentClassInMonth]:
    month_start, month_end = month_bounds(month, year)
    class_map = {c.id: c for c in classes}
    hits = []
    for e in enrollments:
        if e.student_id != student_id:
            continue
        class_def = class_map.get(e.class_id)
        if class_def is None or not class_def.is_active:
            continue
        if enrollment_overlaps(e, class_def, month_start, month_end):
            hits.append((e, class_def))
    if not hits:
        return []
    last = max(e.enrollment_date for e, _ in hits)
    hits.sort(key=lambda pair: pair[0].enrollment_date, reverse=True)
    return [
        StudentClassInMonth(
            class_id=c.id,
            class_name=c.name,
            monthly_fee=c.monthly_fee,
            enrollment_date=e.enrollment_date,
            leave_date=e.leave_date,
            is_last_class=e.enrollment_date == last,
        )
        for e, c in hits
    ]
