from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from Lessonbook.core.models import (  # noqa: E402
    ClassDefinition, Enrollment, EnrollmentStatus, PaymentFact, ScheduleSlot, Student,
)


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Fresh schema in a per-test database file."""
    monkeypatch.setenv("LESSONBOOK_DB_PATH", str(tmp_path / "lessonbook.db"))
    from Lessonbook.data.schema import create_tables

    create_tables()
    return tmp_path / "lessonbook.db"


def make_class(class_id=1, name="Math", start=date(2024, 1, 1), end=None,
               slots=((1, "17:00"),), fee=500_000, salary=100_000, duration=60, active=True):
    return ClassDefinition(
        id=class_id,
        name=name,
        start_date=start,
        end_date=end,
        duration_minutes=duration,
        schedule=tuple(ScheduleSlot(day, at) for day, at in slots),
        monthly_fee=fee,
        salary_per_session=salary,
        is_active=active,
    )


def make_enrollment(enrollment_id=1, student_id=1, class_id=1, start=date(2024, 1, 1),
                    leave=None, status=EnrollmentStatus.ACTIVE):
    return Enrollment(enrollment_id, student_id, class_id, start, leave, status)


def make_student(student_id=1, name="An Nguyen", phone="0901 234 567", active=True):
    return Student(student_id, name, phone, "", active)


def make_payment(payment_id=1, student_id=1, class_id=1, month=2, year=2024, amount=None, paid=True):
    return PaymentFact(payment_id, student_id, class_id, month, year, amount, paid,
                       "2024-02-05" if paid else None)
