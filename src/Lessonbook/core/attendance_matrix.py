"""Monthly attendance matrix: people x sessions per class, plus recorded cells."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Mapping, Optional, Sequence

from Lessonbook.core.models import (
    AttendanceFact, ClassDefinition, ClassTeacher, Enrollment, EnrollmentStatus,
    PersonKind, Session, Student, Teacher,
)
from Lessonbook.core.overlap import enrollment_overlaps
from Lessonbook.core.schedule import sessions_for_class
from Lessonbook.core.text import sort_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Participant:
    person_id: int
    kind: PersonKind
    name: str
    phone: str = ""
    enrollment: Optional[Enrollment] = None

    @property
    def status(self) -> Optional[EnrollmentStatus]:
        return self.enrollment.status if self.enrollment is not None else None


@dataclass(frozen=True)
class MatrixCell:
    is_present: Optional[bool]
    note: Optional[str] = None


@dataclass
class ClassMatrix:
    class_id: int
    class_name: str
    sessions: list[Session]
    rows: list[Participant]

    @property
    def students(self) -> list[Participant]:
        return [r for r in self.rows if r.kind is PersonKind.STUDENT]

    @property
    def teachers(self) -> list[Participant]:
        return [r for r in self.rows if r.kind is PersonKind.TEACHER]


@dataclass
class AttendanceMatrix:
    window_start: date
    window_end: date
    classes: list[ClassMatrix] = field(default_factory=list)
    cells: dict[str, MatrixCell] = field(default_factory=dict)
    teacher_cells: dict[str, MatrixCell] = field(default_factory=dict)

    def cells_for(self, kind: PersonKind) -> dict[str, MatrixCell]:
        return self.teacher_cells if kind is PersonKind.TEACHER else self.cells

    def cell(self, class_id, participant: Participant, session: Session) -> Optional[MatrixCell]:
        """Recorded cell or None when nothing has been marked yet."""
        return self.cells_for(participant.kind).get(cell_key(class_id, participant.person_id, session))


def cell_key(class_id, person_id, session: Session) -> str:
    return f"{class_id}||{person_id}||{session.id}"


def participants_by_class(enrollments: Iterable[Enrollment],
                          students: Iterable[Student],
                          teachers: Iterable[Teacher] = (),
                          class_teachers: Iterable[ClassTeacher] = ()) -> dict[int, list[Participant]]:
    """Joins enrollments and teacher assignments with their people.

    Enrollments or assignments pointing at a missing or inactive person are
    dropped here.
    """
    student_map = {s.id: s for s in students}
    teacher_map = {t.id: t for t in teachers}
    result: dict[int, list[Participant]] = {}

    for ct in class_teachers:
        teacher = teacher_map.get(ct.teacher_id)
        if teacher is None or not teacher.is_active:
            continue
        result.setdefault(ct.class_id, []).append(
            Participant(teacher.id, PersonKind.TEACHER, teacher.full_name, teacher.phone)
        )

    for e in enrollments:
        student = student_map.get(e.student_id)
        if student is None or not student.is_active:
            continue
        result.setdefault(e.class_id, []).append(
            Participant(student.id, PersonKind.STUDENT, student.full_name, student.phone, e)
        )
    return result


def _eligible_rows(class_def: ClassDefinition, candidates: Sequence[Participant],
                   window_start: date, window_end: date) -> list[Participant]:
    teachers, latest = {}, {}
    for p in candidates:
        if p.kind is PersonKind.TEACHER:
            teachers.setdefault(p.person_id, p)
            continue
        e = p.enrollment
        if e is None or not enrollment_overlaps(e, class_def, window_start, window_end):
            continue
        # same rule as the tuition ledger: the most recent enrollment wins
        current = latest.get(p.person_id)
        if current is None or (e.enrollment_date, e.id) > (current.enrollment.enrollment_date, current.enrollment.id):
            latest[p.person_id] = p
    students = [p for p in latest.values() if p.enrollment.status.is_enrolled]
    rows = sorted(teachers.values(), key=lambda p: sort_key(p.name))
    return rows + sorted(students, key=lambda p: sort_key(p.name))


def build_matrix(classes: Iterable[ClassDefinition],
                 people_by_class: Mapping[int, Sequence[Participant]],
                 facts: Iterable[AttendanceFact],
                 window_start: date, window_end: date) -> AttendanceMatrix:
    matrix = AttendanceMatrix(window_start, window_end)
    expected = {}

    for class_def in classes:
        sessions = sessions_for_class(class_def, window_start, window_end)
        if not sessions:
            logger.debug(f"class {class_def.id} has no sessions in window, skipped")
            continue
        rows = _eligible_rows(class_def, people_by_class.get(class_def.id, ()), window_start, window_end)
        if not any(r.kind is PersonKind.STUDENT for r in rows):
            logger.debug(f"class {class_def.id} has nobody enrolled in window, skipped")
            continue
        matrix.classes.append(ClassMatrix(class_def.id, class_def.name, sessions, rows))
        session_ids = {s.id for s in sessions}
        for row in rows:
            expected[(class_def.id, row.kind, row.person_id)] = session_ids

    for fact in facts:
        session_ids = expected.get((fact.class_id, fact.person_kind, fact.person_id))
        if not session_ids:
            continue
        session_id = f"{fact.date.isoformat()}@@{fact.session_time}"
        if session_id not in session_ids:
            continue
        key = f"{fact.class_id}||{fact.person_id}||{session_id}"
        matrix.cells_for(fact.person_kind)[key] = MatrixCell(fact.is_present, fact.note)
    return matrix


def class_cell_count(class_matrix: ClassMatrix) -> int:
    return len(class_matrix.rows) * len(class_matrix.sessions)


def expected_cell_count(matrix: AttendanceMatrix) -> int:
    return sum(class_cell_count(c) for c in matrix.classes)
