"""Tuition reads and the two tuition writes: payment records and activation."""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from Lessonbook.core.aggregation import summarize
from Lessonbook.core.models import EnrollmentStatus, TuitionLine
from Lessonbook.core.transitions import coerce_status, next_status_on_payment
from Lessonbook.core.tuition import (
    TuitionFilters, lines_missing_payment, reconcile, reconcile_year, sort_lines,
    student_classes_in_month,
)
from Lessonbook.data.repos import (
    classes_repo, enrollments_repo, payments_repo, students_repo,
)
from Lessonbook.errors import NotFoundError, PaymentConflictError
from Lessonbook.services._reads import run_reads
from Lessonbook.services.boundary import normalize_period, normalize_year

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentOutcome:
    payment_id: int
    enrollment_id: Optional[int]
    enrollment_status: Optional[EnrollmentStatus]
    needs_activation: bool


def _load(month, year, filters: Optional[TuitionFilters]):
    class_ids = None
    if filters is not None and filters.class_id is not None:
        class_ids = [filters.class_id]
    return run_reads(
        classes=lambda: classes_repo.read_classes(ids=class_ids),
        enrollments=lambda: enrollments_repo.read_enrollments(class_ids=class_ids),
        payments=lambda: payments_repo.read_payment_facts(class_ids=class_ids, month=month, year=year),
        students=lambda: students_repo.read_students(),
    )


def get_tuition_data(month, year, filters: Optional[TuitionFilters] = None, today: Optional[date] = None):
    """Reconciled, presentation-sorted tuition lines for one month."""
    today = today or date.today()
    month, year = normalize_period(month, year, today)
    data = _load(month, year, filters)
    lines = reconcile(month, year, data["enrollments"], data["classes"], data["payments"],
                      data["students"], filters)
    return sort_lines(lines)


def get_tuition_data_for_year(year, filters: Optional[TuitionFilters] = None, today: Optional[date] = None):
    today = today or date.today()
    year = normalize_year(year, today)
    data = _load(None, year, filters)
    lines = reconcile_year(year, data["enrollments"], data["classes"], data["payments"],
                           data["students"], filters)
    return sort_lines(lines)


def get_tuition_summary(month, year, filters: Optional[TuitionFilters] = None, today: Optional[date] = None):
    return summarize(get_tuition_data(month, year, filters, today))


def _activation_state(student_id, class_id, is_paid):
    enrollment = enrollments_repo.find_enrollment(student_id, class_id)
    if enrollment is None:
        return None, None, False
    promotable = next_status_on_payment(enrollment.status, is_paid, confirmed=True) != enrollment.status
    return enrollment.id, enrollment.status, promotable


def create_payment(student_id, class_id, month, year, amount=None, is_paid=True,
                   paid_at=None, today: Optional[date] = None) -> PaymentOutcome:
    """
    Create the payment record for one student/class/month.

    Raises PaymentConflictError when one already exists. Never changes the
    enrollment status; ``needs_activation`` tells the caller to ask.
    """
    today = today or date.today()
    month, year = normalize_period(month, year, today)
    if is_paid and paid_at is None:
        paid_at = today.isoformat()
    payment_id = payments_repo.create_payment_fact(
        student_id, class_id, month, year, amount=amount, is_paid=is_paid, paid_at=paid_at,
    )
    enrollment_id, status, promotable = _activation_state(student_id, class_id, is_paid)
    return PaymentOutcome(payment_id, enrollment_id, status, promotable)


def update_payment(payment_id, amount=payments_repo.UNSET, is_paid=None, today: Optional[date] = None):
    today = today or date.today()
    existing = payments_repo.get_payment_by_id(payment_id)
    if existing is None:
        raise NotFoundError(f"payment {payment_id} not found")
    paid_at = payments_repo.UNSET
    if is_paid and not existing.is_paid:
        paid_at = today.isoformat()
    return payments_repo.update_payment_fact(payment_id, amount=amount, is_paid=is_paid, paid_at=paid_at)


def toggle_payment(payment_id, today: Optional[date] = None):
    """Flip paid/unpaid; returns the updated PaymentFact."""
    existing = payments_repo.get_payment_by_id(payment_id)
    if existing is None:
        raise NotFoundError(f"payment {payment_id} not found")
    return update_payment(payment_id, is_paid=not existing.is_paid, today=today)


def sync_tuition_payment_status(month, year, today: Optional[date] = None):
    """Create unpaid records for active enrollments that have none this month.

    Returns the ids of the created records.
    """
    today = today or date.today()
    month, year = normalize_period(month, year, today)
    data = _load(month, year, None)
    lines = reconcile(month, year, data["enrollments"], data["classes"], data["payments"], data["students"])
    created = []
    for line in lines_missing_payment(lines):
        try:
            created.append(payments_repo.create_payment_fact(
                line.student_id, line.class_id, month, year, amount=line.monthly_fee, is_paid=False,
            ))
        except PaymentConflictError:
            # created concurrently; the existing record stands
            continue
    if created:
        logger.info(f"🔄 {len(created)} unpaid tuition record(s) created for {month}/{year}")
    return created


def confirm_payment_activation(enrollment_id, is_paid, confirmed) -> EnrollmentStatus:
    """Apply trial/inactive -> active after the caller confirmed a paid payment."""
    enrollment = enrollments_repo.get_enrollment_by_id(enrollment_id)
    if enrollment is None:
        raise NotFoundError(f"enrollment {enrollment_id} not found")
    current = coerce_status(enrollment.status)
    target = next_status_on_payment(current, is_paid, confirmed)
    if target != current:
        enrollments_repo.update_enrollment_status(enrollment_id, target)
    return target


def get_student_classes_in_month(student_id, month, year, today: Optional[date] = None):
    today = today or date.today()
    month, year = normalize_period(month, year, today)
    data = run_reads(
        enrollments=lambda: enrollments_repo.read_enrollments(student_ids=[student_id]),
        classes=lambda: classes_repo.read_classes(),
    )
    return student_classes_in_month(student_id, month, year, data["enrollments"], data["classes"])


def toggle_line_payment(line: TuitionLine, today: Optional[date] = None) -> PaymentOutcome:
    """Quick paid/unpaid switch from a ledger row.

    A line without a record gets a paid one at the class monthly fee;
    otherwise the existing record flips.
    """
    if line.payment is None:
        return create_payment(line.student_id, line.class_id, line.month, line.year,
                              amount=line.monthly_fee, is_paid=True, today=today)
    updated = toggle_payment(line.payment.id, today=today)
    status = line.enrollment_status
    promotable = next_status_on_payment(status, updated.is_paid, confirmed=True) != status
    return PaymentOutcome(updated.id, line.enrollment_id, status, promotable)


def bulk_update_payments(updates, today: Optional[date] = None):
    """Apply ``(payment_id, {"amount": ..., "is_paid": ...})`` pairs in order.

    Stops at the first missing payment; earlier updates stay applied.
    """
    results = []
    for payment_id, fields in updates:
        unknown = set(fields) - {"amount", "is_paid"}
        if unknown:
            raise ValueError(f"unsupported payment fields {sorted(unknown)}")
        results.append(update_payment(
            payment_id,
            amount=fields.get("amount", payments_repo.UNSET),
            is_paid=fields.get("is_paid"),
            today=today,
        ))
    if results:
        logger.info(f"🔄 {len(results)} payment record(s) updated")
    return results
