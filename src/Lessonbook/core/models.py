"""Records shared by the reconciliation core.

Everything here is immutable and carries already-parsed values: dates are
``datetime.date``, session times are ``"HH:MM"`` strings. Parsing happens once
at the repository boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional


class EnrollmentStatus(str, Enum):
    TRIAL = "trial"
    ACTIVE = "active"
    INACTIVE = "inactive"

    @property
    def is_enrolled(self) -> bool:
        return self in (EnrollmentStatus.TRIAL, EnrollmentStatus.ACTIVE)


class PersonKind(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"


class PaymentState(str, Enum):
    NOT_CREATED = "not_created"
    UNPAID = "unpaid"
    PAID = "paid"


@dataclass(frozen=True)
class ScheduleSlot:
    """One recurring weekly entry. weekday: 0 = Sunday ... 6 = Saturday."""

    weekday: int
    start: str
    end: Optional[str] = None


@dataclass(frozen=True)
class ClassDefinition:
    id: int
    name: str
    start_date: date
    end_date: Optional[date]
    duration_minutes: int
    schedule: tuple[ScheduleSlot, ...] = ()
    monthly_fee: int = 0
    salary_per_session: int = 0
    is_active: bool = True


@dataclass(frozen=True)
class Student:
    id: int
    full_name: str
    phone: str = ""
    parent_phone: str = ""
    is_active: bool = True


@dataclass(frozen=True)
class Teacher:
    id: int
    full_name: str
    phone: str = ""
    is_active: bool = True


@dataclass(frozen=True)
class ClassTeacher:
    class_id: int
    teacher_id: int


@dataclass(frozen=True)
class Enrollment:
    id: int
    student_id: int
    class_id: int
    enrollment_date: date
    leave_date: Optional[date]
    status: EnrollmentStatus


@dataclass(frozen=True)
class Session:
    class_id: int
    date: date
    start: str
    end: str

    @property
    def id(self) -> str:
        return f"{self.date.isoformat()}@@{self.start}"


@dataclass(frozen=True)
class AttendanceFact:
    class_id: int
    person_id: int
    person_kind: PersonKind
    date: date
    session_time: str
    is_present: Optional[bool]
    note: Optional[str] = None


@dataclass(frozen=True)
class PaymentFact:
    id: int
    student_id: int
    class_id: int
    month: int
    year: int
    amount: Optional[int]
    is_paid: bool
    paid_at: Optional[str] = None


@dataclass(frozen=True)
class Expense:
    id: int
    amount: int
    reason: str
    expense_date: date
    month: int
    year: int


@dataclass(frozen=True)
class TuitionLine:
    enrollment_id: int
    student_id: int
    student_name: str
    student_phone: str
    class_id: int
    class_name: str
    month: int
    year: int
    enrollment_status: EnrollmentStatus
    enrollment_date: date
    leave_date: Optional[date]
    monthly_fee: int
    payment: Optional[PaymentFact] = field(default=None)

    @property
    def state(self) -> PaymentState:
        if self.payment is None:
            return PaymentState.NOT_CREATED
        return PaymentState.PAID if self.payment.is_paid else PaymentState.UNPAID

    @property
    def amount(self) -> Optional[int]:
        """Stored payment amount; None when unset or no payment exists."""
        return self.payment.amount if self.payment is not None else None

    @property
    def resolved_fee(self) -> int:
        if self.payment is not None and self.payment.amount is not None:
            return self.payment.amount
        return self.monthly_fee

    @property
    def key(self) -> tuple[int, int, int]:
        return (self.student_id, self.class_id, self.month)
