"""Dashboard figures: class revenue, monthly overview, teacher payroll."""

import logging
from datetime import date
from typing import Optional

from Lessonbook.core.aggregation import class_revenue, monthly_stats, teacher_salary
from Lessonbook.core.tuition import reconcile
from Lessonbook.data.repos import (
    attendance_repo, classes_repo, enrollments_repo, expenses_repo, payments_repo,
    students_repo, teachers_repo,
)
from Lessonbook.services._reads import run_reads
from Lessonbook.services.boundary import month_window, normalize_period, normalize_year

logger = logging.getLogger(__name__)


def _class_filter(class_ids):
    # an empty selection means every class, as the dashboard sends it
    if not class_ids:
        return None
    return list(class_ids)


def get_class_revenue(month, year, class_ids=None, today: Optional[date] = None):
    today = today or date.today()
    month, year = normalize_period(month, year, today)
    window_start, window_end = month_window(month, year)
    ids = _class_filter(class_ids)
    data = run_reads(
        classes=lambda: classes_repo.read_classes(ids=ids),
        enrollments=lambda: enrollments_repo.read_enrollments(class_ids=ids),
        payments=lambda: payments_repo.read_payment_facts(class_ids=ids, month=month, year=year),
        students=lambda: students_repo.read_students(),
    )
    lines = reconcile(month, year, data["enrollments"], data["classes"], data["payments"], data["students"])
    return class_revenue(lines, window_start, window_end, data["classes"])


def get_monthly_stats(year, class_ids=None, today: Optional[date] = None):
    """Twelve MonthlyStats rows, January first.

    A class selection narrows enrollments and revenue; expenses are not tied
    to a class and always count in full.
    """
    today = today or date.today()
    year = normalize_year(year, today)
    window_start, window_end = date(year, 1, 1), date(year, 12, 31)
    ids = _class_filter(class_ids)
    data = run_reads(
        classes=lambda: classes_repo.read_classes(ids=ids),
        enrollments=lambda: enrollments_repo.read_enrollments(class_ids=ids),
        payments=lambda: payments_repo.read_payment_facts(class_ids=ids, year=year),
        expenses=lambda: expenses_repo.read_expenses(year=year),
    )
    return monthly_stats(data["enrollments"], data["payments"], data["expenses"], data["classes"],
                         window_start, window_end)


def get_teacher_salaries(month, year, today: Optional[date] = None):
    today = today or date.today()
    month, year = normalize_period(month, year, today)
    window_start, window_end = month_window(month, year)
    data = run_reads(
        teachers=lambda: teachers_repo.read_teachers(),
        class_teachers=lambda: teachers_repo.read_class_teachers(),
        classes=lambda: classes_repo.read_classes(),
        facts=lambda: attendance_repo.read_attendance_facts(None, window_start, window_end),
    )
    return teacher_salary(data["teachers"], data["class_teachers"], data["classes"], data["facts"],
                          window_start, window_end)
