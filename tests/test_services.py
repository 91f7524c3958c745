from datetime import date

import pytest

from Lessonbook.core.models import EnrollmentStatus, PaymentState, PersonKind, ScheduleSlot
from Lessonbook.core.tuition import TuitionFilters
from Lessonbook.data.repos import (
    classes_repo, enrollments_repo, expenses_repo, payments_repo, students_repo, teachers_repo,
)
from Lessonbook.errors import NotFoundError, PaymentConflictError
from Lessonbook.services import attendance_service, reports_service, tuition_service
from Lessonbook.services.boundary import normalize_period

TODAY = date(2024, 2, 15)


@pytest.fixture
def academy(db):
    math = classes_repo.create_class(
        "Math", "2024-01-01", "2024-03-31",
        schedule=[ScheduleSlot(1, "18:00", "19:00"), ScheduleSlot(4, "18:00", "19:00")],
        monthly_fee=500_000, salary_per_session=100_000,
    )
    art = classes_repo.create_class("Art", "2024-01-01", schedule=[ScheduleSlot(6, "09:00")], monthly_fee=300_000)
    an = students_repo.insert_student("An", phone="0901 111 222")
    binh = students_repo.insert_student("Binh")
    lan = teachers_repo.insert_teacher("Lan")
    teachers_repo.assign_teacher_to_class(math, lan)
    enrollments = {
        "an_math": enrollments_repo.enroll_student(an, math, "2024-01-05", status="active"),
        "binh_math": enrollments_repo.enroll_student(binh, math, "2024-02-10"),
        "binh_art": enrollments_repo.enroll_student(binh, art, "2024-01-20", status="active"),
    }
    return dict(math=math, art=art, an=an, binh=binh, lan=lan, **enrollments)


@pytest.mark.parametrize("month, year, expected", [
    (0, 2024, (1, 2024)),
    (13, 2024, (12, 2024)),
    ("7", "2025", (7, 2025)),
    ("abc", None, (2, 2024)),
    (3, 1800, (3, 2000)),
    (3, 9999, (3, 2100)),
])
def test_normalize_period(month, year, expected):
    assert normalize_period(month, year, TODAY) == expected


def test_tuition_data_and_summary(academy):
    lines = tuition_service.get_tuition_data(2, 2024, today=TODAY)
    assert [(l.class_name, l.student_name) for l in lines] == [("Art", "Binh"), ("Math", "An"), ("Math", "Binh")]
    assert {l.state for l in lines} == {PaymentState.NOT_CREATED}

    filtered = tuition_service.get_tuition_data(2, 2024, TuitionFilters(class_id=academy["math"]), today=TODAY)
    assert [l.student_name for l in filtered] == ["An", "Binh"]

    summary = tuition_service.get_tuition_summary(2, 2024, today=TODAY)
    assert (summary.total_paid, summary.total_unpaid, summary.total_not_created) == (0, 0, 3)

    assert tuition_service.get_tuition_data(4, 2024, TuitionFilters(class_id=academy["math"]), today=TODAY) == []


def test_year_view(academy):
    lines = tuition_service.get_tuition_data_for_year(2024, TuitionFilters(class_id=academy["math"]), today=TODAY)
    assert sorted({(l.student_name, l.month) for l in lines}) == [
        ("An", 1), ("An", 2), ("An", 3), ("Binh", 2), ("Binh", 3),
    ]


def test_create_payment_and_confirm_activation(academy):
    outcome = tuition_service.create_payment(academy["binh"], academy["math"], 2, 2024, today=TODAY)
    assert outcome.needs_activation is True
    assert outcome.enrollment_id == academy["binh_math"]

    fact = payments_repo.get_payment_by_id(outcome.payment_id)
    assert fact.is_paid is True
    assert fact.paid_at == "2024-02-15"
    # creating the payment alone never changes the enrollment
    assert enrollments_repo.get_enrollment_by_id(academy["binh_math"]).status is EnrollmentStatus.TRIAL

    with pytest.raises(PaymentConflictError):
        tuition_service.create_payment(academy["binh"], academy["math"], 2, 2024, amount=1, today=TODAY)

    status = tuition_service.confirm_payment_activation(academy["binh_math"], is_paid=True, confirmed=True)
    assert status is EnrollmentStatus.ACTIVE
    again = tuition_service.confirm_payment_activation(academy["binh_math"], is_paid=True, confirmed=True)
    assert again is EnrollmentStatus.ACTIVE

    line = next(l for l in tuition_service.get_tuition_data(2, 2024, today=TODAY)
                if l.enrollment_id == academy["binh_math"])
    assert line.state is PaymentState.PAID
    assert line.resolved_fee == 500_000


def test_activation_requires_confirmation(academy):
    status = tuition_service.confirm_payment_activation(academy["binh_math"], is_paid=True, confirmed=False)
    assert status is EnrollmentStatus.TRIAL
    with pytest.raises(NotFoundError):
        tuition_service.confirm_payment_activation(9999, True, True)


def test_toggle_and_update_payment(academy):
    outcome = tuition_service.create_payment(academy["an"], academy["math"], 2, 2024, is_paid=False, today=TODAY)
    assert outcome.needs_activation is False

    toggled = tuition_service.toggle_payment(outcome.payment_id, today=TODAY)
    assert (toggled.is_paid, toggled.paid_at) == (True, "2024-02-15")
    toggled = tuition_service.toggle_payment(outcome.payment_id, today=TODAY)
    assert (toggled.is_paid, toggled.paid_at) == (False, None)

    updated = tuition_service.update_payment(outcome.payment_id, amount=450_000)
    assert updated.amount == 450_000
    with pytest.raises(NotFoundError):
        tuition_service.toggle_payment(9999)


def test_sync_creates_unpaid_records_for_active_enrollments_only(academy):
    created = tuition_service.sync_tuition_payment_status(2, 2024, today=TODAY)
    facts = payments_repo.read_payment_facts(month=2, year=2024)
    assert sorted(f.id for f in facts) == sorted(created)
    assert {(f.student_id, f.class_id) for f in facts} == {
        (academy["an"], academy["math"]), (academy["binh"], academy["art"]),
    }
    assert all(not f.is_paid for f in facts)
    assert tuition_service.sync_tuition_payment_status(2, 2024, today=TODAY) == []


def test_student_classes_in_month(academy):
    result = tuition_service.get_student_classes_in_month(academy["binh"], 2, 2024, today=TODAY)
    assert [(r.class_name, r.is_last_class) for r in result] == [("Math", True), ("Art", False)]


def test_monthly_attendance_matrix(academy):
    attendance_service.mark_attendance(academy["math"], academy["an"], "student", "2024-02-05", "18:00", True)
    attendance_service.mark_attendance(academy["math"], academy["lan"], "teacher", "2024-02-05", "18:00", True)
    attendance_service.mark_attendance(academy["math"], academy["binh"], "student", "2024-02-05", "18:00", False)

    matrix = attendance_service.get_monthly_attendance_matrix(2, 2024, today=TODAY)
    by_name = {c.class_name: c for c in matrix.classes}
    math = by_name["Math"]
    assert len(math.sessions) == 9
    assert [r.name for r in math.rows] == ["Lan", "An", "Binh"]
    assert len(by_name["Art"].sessions) == 4

    stats = attendance_service.get_monthly_attendance_stats(2, 2024, today=TODAY)
    assert (stats.present, stats.absent) == (1, 1)

    assert attendance_service.unmark_attendance(academy["math"], academy["an"], "student", "2024-02-05", "18:00")
    stats = attendance_service.get_monthly_attendance_stats(2, 2024, today=TODAY)
    assert stats.present == 0


def test_classes_in_session(academy):
    sessions = attendance_service.get_classes_in_session("2024-02-08", "18:30")
    assert [(s.class_id, s.start, s.end) for s in sessions] == [(academy["math"], "18:00", "19:00")]
    assert attendance_service.get_classes_in_session("2024-02-08", "20:00") == []
    with pytest.raises(ValueError):
        attendance_service.get_classes_in_session("2024-02-08", "late")


def test_reports(academy):
    tuition_service.create_payment(academy["an"], academy["math"], 2, 2024, amount=450_000, today=TODAY)
    expenses_repo.insert_expense(100_000, "rent", "2024-02-01")

    revenue = {r.class_name: r for r in reports_service.get_class_revenue(2, 2024, today=TODAY)}
    assert (revenue["Math"].revenue, revenue["Math"].paid_count, revenue["Math"].unpaid_count) == (450_000, 1, 1)
    assert revenue["Art"].total_enrolled_count == 1

    stats = reports_service.get_monthly_stats(2024, today=TODAY)
    assert len(stats) == 12
    feb = stats[1]
    assert (feb.new_students, feb.revenue, feb.expenses, feb.profit) == (1, 450_000, 100_000, 350_000)

    attendance_service.mark_attendance(academy["math"], academy["lan"], PersonKind.TEACHER, "2024-02-05", "18:00", True)
    attendance_service.mark_attendance(academy["math"], academy["lan"], PersonKind.TEACHER, "2024-02-08", "18:00", True)
    [lan] = reports_service.get_teacher_salaries(2, 2024, today=TODAY)
    assert (lan.teacher_name, lan.total_sessions, lan.total_salary) == ("Lan", 2, 200_000)


def test_session_attendance_for_one_class_meeting(academy):
    attendance_service.mark_attendance(academy["math"], academy["an"], "student", "2024-02-12", "18:00", True)
    attendance_service.mark_attendance(academy["math"], academy["binh"], "student", "2024-02-12", "18:00", False)
    # another time on the same day belongs to no session of this roll call
    attendance_service.mark_attendance(academy["math"], academy["an"], "student", "2024-02-12", "07:00", False)

    matrix = attendance_service.get_session_attendance("2024-02-12", "18:30")
    assert (matrix.window_start, matrix.window_end) == (date(2024, 2, 12), date(2024, 2, 12))
    [math] = matrix.classes
    assert math.class_id == academy["math"]
    assert [s.id for s in math.sessions] == ["2024-02-12@@18:00"]
    assert [r.name for r in math.rows] == ["Lan", "An", "Binh"]

    session = math.sessions[0]
    an, binh = math.students
    assert matrix.cell(math.class_id, an, session).is_present is True
    assert matrix.cell(math.class_id, binh, session).is_present is False
    assert matrix.cell(math.class_id, math.teachers[0], session) is None
    assert len(matrix.cells) == 2

    assert attendance_service.get_session_attendance("2024-02-12", "20:00").classes == []
    with pytest.raises(ValueError):
        attendance_service.get_session_attendance("12/02/2024", "18:30")


def test_toggle_line_payment_creates_then_flips(academy):
    line = next(l for l in tuition_service.get_tuition_data(2, 2024, today=TODAY)
                if l.enrollment_id == academy["binh_math"])
    assert line.payment is None

    outcome = tuition_service.toggle_line_payment(line, today=TODAY)
    assert (outcome.enrollment_id, outcome.needs_activation) == (academy["binh_math"], True)
    fact = payments_repo.get_payment_by_id(outcome.payment_id)
    assert (fact.amount, fact.is_paid, fact.paid_at) == (500_000, True, "2024-02-15")

    line = next(l for l in tuition_service.get_tuition_data(2, 2024, today=TODAY)
                if l.enrollment_id == academy["binh_math"])
    again = tuition_service.toggle_line_payment(line, today=TODAY)
    assert (again.payment_id, again.needs_activation) == (outcome.payment_id, False)
    assert payments_repo.get_payment_by_id(outcome.payment_id).is_paid is False


def test_bulk_update_payments(academy):
    first = payments_repo.create_payment_fact(academy["an"], academy["math"], 2, 2024)
    second = payments_repo.create_payment_fact(academy["binh"], academy["art"], 2, 2024)

    updated = tuition_service.bulk_update_payments(
        [(first, {"amount": 400_000, "is_paid": True}), (second, {"is_paid": True})], today=TODAY,
    )
    assert [(p.id, p.amount, p.is_paid, p.paid_at) for p in updated] == [
        (first, 400_000, True, "2024-02-15"), (second, None, True, "2024-02-15"),
    ]
    assert tuition_service.bulk_update_payments([]) == []
    with pytest.raises(ValueError):
        tuition_service.bulk_update_payments([(first, {"paid": True})])
    with pytest.raises(NotFoundError):
        tuition_service.bulk_update_payments([(9999, {"is_paid": False})])


def test_reports_narrowed_to_selected_classes(academy):
    tuition_service.create_payment(academy["an"], academy["math"], 2, 2024, amount=450_000, today=TODAY)
    tuition_service.create_payment(academy["binh"], academy["art"], 2, 2024, today=TODAY)

    revenue = reports_service.get_class_revenue(2, 2024, class_ids=[academy["math"]], today=TODAY)
    assert [r.class_name for r in revenue] == ["Math"]
    everything = reports_service.get_class_revenue(2, 2024, class_ids=[], today=TODAY)
    assert sorted(r.class_name for r in everything) == ["Art", "Math"]

    stats = reports_service.get_monthly_stats(2024, class_ids=[academy["art"]], today=TODAY)
    jan, feb = stats[0], stats[1]
    assert (jan.new_students, feb.new_students) == (1, 0)
    assert feb.revenue == 300_000
    overall = reports_service.get_monthly_stats(2024, today=TODAY)
    assert (overall[0].new_students, overall[1].revenue) == (2, 750_000)


def test_closing_a_class_drops_later_tuition_months(academy):
    assert len([l for l in tuition_service.get_tuition_data(3, 2024, today=TODAY)
                if l.class_id == academy["math"]]) == 2

    assert classes_repo.set_class_end_date(academy["math"], "2024-02-29") is True
    march = tuition_service.get_tuition_data(3, 2024, today=TODAY)
    assert [l.class_name for l in march] == ["Art"]
    feb = tuition_service.get_tuition_data(2, 2024, today=TODAY)
    assert sorted(l.class_name for l in feb) == ["Art", "Math", "Math"]

    with pytest.raises(ValueError):
        classes_repo.set_class_end_date(academy["math"], "2023-12-01")
    with pytest.raises(ValueError):
        classes_repo.set_class_end_date(academy["math"], "end of term")
