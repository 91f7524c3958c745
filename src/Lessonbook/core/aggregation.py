"""Reductions over reconciled tuition lines and attendance matrices.

All of these are order independent: feeding the same lines in any order
gives the same result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from Lessonbook.core.attendance_matrix import AttendanceMatrix, ClassMatrix, MatrixCell, cell_key
from Lessonbook.core.dates import iter_months
from Lessonbook.core.models import (
    AttendanceFact, ClassDefinition, ClassTeacher, Enrollment, Expense,
    PaymentFact, PaymentState, PersonKind, Teacher, TuitionLine,
)
from Lessonbook.core.overlap import overlaps
from Lessonbook.core.text import sort_key


@dataclass(frozen=True)
class TuitionSummary:
    total_paid: int = 0
    total_unpaid: int = 0
    total_not_created: int = 0  # a count, not money


@dataclass(frozen=True)
class ClassRevenue:
    class_id: int
    class_name: str
    revenue: int = 0
    paid_count: int = 0
    unpaid_count: int = 0
    total_enrolled_count: int = 0


@dataclass(frozen=True)
class AttendanceStats:
    present: int = 0
    absent: int = 0
    pending: int = 0

    def __add__(self, other: "AttendanceStats") -> "AttendanceStats":
        return AttendanceStats(
            self.present + other.present,
            self.absent + other.absent,
            self.pending + other.pending,
        )


@dataclass(frozen=True)
class TeacherSalaryDetail:
    class_id: int
    class_name: str
    sessions: int
    salary_per_session: int
    total_salary: int


@dataclass(frozen=True)
class TeacherSalarySummary:
    teacher_id: int
    teacher_name: str
    phone: str
    total_sessions: int
    total_salary: int
    details: list[TeacherSalaryDetail] = field(default_factory=list)


@dataclass(frozen=True)
class MonthlyStats:
    month: int
    year: int
    new_students: int = 0
    left_students: int = 0
    revenue: int = 0
    expenses: int = 0

    @property
    def profit(self) -> int:
        return self.revenue - self.expenses

    @property
    def label(self) -> str:
        return f"{self.month}/{self.year}"


# -------------------- tuition --------------------

def summarize(lines: Iterable[TuitionLine]) -> TuitionSummary:
    paid = unpaid = not_created = 0
    for line in lines:
        state = line.state
        if state is PaymentState.PAID:
            paid += line.resolved_fee
        elif state is PaymentState.UNPAID:
            unpaid += line.resolved_fee
        else:
            not_created += 1
    return TuitionSummary(paid, unpaid, not_created)


def combine(a: TuitionSummary, b: TuitionSummary) -> TuitionSummary:
    return TuitionSummary(
        a.total_paid + b.total_paid,
        a.total_unpaid + b.total_unpaid,
        a.total_not_created + b.total_not_created,
    )


def class_revenue(lines: Iterable[TuitionLine],
                  window_start: Optional[date] = None,
                  window_end: Optional[date] = None,
                  classes: Iterable[ClassDefinition] = ()) -> list[ClassRevenue]:
    """Per-class revenue over currently enrolled (trial/active) lines.

    Classes given in ``classes`` that run during the window but have no lines
    are reported with zeros.
    """
    totals = {}

    for c in classes:
        if not c.is_active:
            continue
        if window_start is not None and window_end is not None:
            if not overlaps(c.start_date, c.end_date, window_start, window_end):
                continue
        totals.setdefault(c.id, [c.name, 0, 0, 0])

    for line in lines:
        if not line.enrollment_status.is_enrolled:
            continue
        entry = totals.setdefault(line.class_id, [line.class_name, 0, 0, 0])
        entry[3] += 1
        if line.state is PaymentState.PAID:
            entry[1] += line.resolved_fee
            entry[2] += 1

    result = [
        ClassRevenue(
            class_id=class_id,
            class_name=name,
            revenue=revenue,
            paid_count=paid,
            unpaid_count=enrolled - paid,
            total_enrolled_count=enrolled,
        )
        for class_id, (name, revenue, paid, enrolled) in totals.items()
    ]
    result.sort(key=lambda r: (sort_key(r.class_name), r.class_id))
    return result


# -------------------- attendance --------------------

def attendance_stats(cells: Iterable[MatrixCell], expected: int) -> AttendanceStats:
    present = absent = 0
    for cell in cells:
        if cell.is_present is True:
            present += 1
        elif cell.is_present is False:
            absent += 1
    return AttendanceStats(present, absent, max(expected - (present + absent), 0))


def class_attendance_stats(matrix: AttendanceMatrix, class_matrix: ClassMatrix,
                           kind: PersonKind = PersonKind.STUDENT) -> AttendanceStats:
    rows = [r for r in class_matrix.rows if r.kind is kind]
    store = matrix.cells_for(kind)
    cells = []
    for row in rows:
        for session in class_matrix.sessions:
            cell = store.get(cell_key(class_matrix.class_id, row.person_id, session))
            if cell is not None:
                cells.append(cell)
    return attendance_stats(cells, len(rows) * len(class_matrix.sessions))


def matrix_attendance_stats(matrix: AttendanceMatrix,
                            kind: PersonKind = PersonKind.STUDENT) -> AttendanceStats:
    total = AttendanceStats()
    for class_matrix in matrix.classes:
        total = total + class_attendance_stats(matrix, class_matrix, kind)
    return total


# -------------------- payroll --------------------

def teacher_salary(teachers: Iterable[Teacher],
                   class_teachers: Iterable[ClassTeacher],
                   classes: Iterable[ClassDefinition],
                   facts: Iterable[AttendanceFact],
                   window_start: date, window_end: date) -> list[TeacherSalarySummary]:
    """Salary per active teacher: distinct sessions marked present x class rate."""
    class_map = {c.id: c for c in classes}
    assigned = {}
    for ct in class_teachers:
        if ct.class_id in class_map:
            assigned.setdefault(ct.teacher_id, set()).add(ct.class_id)

    taught = {}
    for f in facts:
        if f.person_kind is not PersonKind.TEACHER or f.is_present is not True:
            continue
        if not (window_start <= f.date <= window_end):
            continue
        taught.setdefault((f.person_id, f.class_id), set()).add((f.date, f.session_time))

    summaries = []
    for teacher in teachers:
        if not teacher.is_active:
            continue
        details = []
        for class_id in assigned.get(teacher.id, ()):
            class_def = class_map[class_id]
            sessions = len(taught.get((teacher.id, class_id), ()))
            details.append(TeacherSalaryDetail(
                class_id=class_id,
                class_name=class_def.name,
                sessions=sessions,
                salary_per_session=class_def.salary_per_session,
                total_salary=sessions * class_def.salary_per_session,
            ))
        details.sort(key=lambda d: (sort_key(d.class_name), d.class_id))
        summaries.append(TeacherSalarySummary(
            teacher_id=teacher.id,
            teacher_name=teacher.full_name,
            phone=teacher.phone,
            total_sessions=sum(d.sessions for d in details),
            total_salary=sum(d.total_salary for d in details),
            details=details,
        ))
    summaries.sort(key=lambda s: (sort_key(s.teacher_name), s.teacher_id))
    return summaries


# -------------------- monthly overview --------------------

def monthly_stats(enrollments: Iterable[Enrollment],
                  payments: Iterable[PaymentFact],
                  expenses: Iterable[Expense],
                  classes: Iterable[ClassDefinition],
                  window_start: date, window_end: date) -> list[MonthlyStats]:
    """New/left students, paid revenue, expenses and profit per month, ascending."""
    buckets = {key: dict(new=0, left=0, revenue=0, expenses=0)
               for key in iter_months(window_start, window_end)}
    fees = {c.id: c.monthly_fee for c in classes}

    def bucket(d: date):
        if window_start <= d <= window_end:
            return buckets.get((d.month, d.year))
        return None

    for e in enrollments:
        b = bucket(e.enrollment_date)
        if b is not None:
            b["new"] += 1
        if e.leave_date is not None:
            b = bucket(e.leave_date)
            if b is not None:
                b["left"] += 1

    for p in payments:
        if not p.is_paid:
            continue
        b = buckets.get((p.month, p.year))
        if b is None:
            continue
        b["revenue"] += p.amount if p.amount is not None else fees.get(p.class_id, 0)

    for x in expenses:
        b = buckets.get((x.month, x.year))
        if b is not None:
            b["expenses"] += x.amount

    return [
        MonthlyStats(month, year, v["new"], v["left"], v["revenue"], v["expenses"])
        for (month, year), v in sorted(buckets.items(), key=lambda kv: (kv[0][1], kv[0][0]))
    ]
