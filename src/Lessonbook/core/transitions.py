"""Enrollment lifecycle: trial <-> active <-> inactive.

Admins may set any status by hand. The only automated edge is
trial|inactive -> active, and only after the caller confirms a paid payment.
"""

from __future__ import annotations

from Lessonbook.core.models import EnrollmentStatus, PaymentState, TuitionLine

_PROMOTABLE = (EnrollmentStatus.TRIAL, EnrollmentStatus.INACTIVE)


def coerce_status(value) -> EnrollmentStatus:
    if isinstance(value, EnrollmentStatus):
        return value
    try:
        return EnrollmentStatus(str(value).strip().lower())
    except ValueError:
        raise ValueError(f"invalid enrollment status {value!r}") from None


def next_status_on_payment(current, is_paid: bool, confirmed: bool) -> EnrollmentStatus:
    """Status after a payment confirmation; unchanged unless it promotes."""
    current = coerce_status(current)
    if confirmed and is_paid and current in _PROMOTABLE:
        return EnrollmentStatus.ACTIVE
    return current


def needs_activation_prompt(line: TuitionLine) -> bool:
    return line.state is PaymentState.PAID and line.enrollment_status in _PROMOTABLE
