import random
from datetime import date, timedelta

from Lessonbook.core.dates import iter_days
from Lessonbook.core.overlap import clamped_window, effective_end, enrollment_overlaps, overlaps

from conftest import make_class, make_enrollment


def _brute_force(entity_start, entity_end, period_start, period_end):
    horizon = entity_end or period_end
    live = set(iter_days(entity_start, horizon)) if horizon >= entity_start else set()
    return bool(live & set(iter_days(period_start, period_end)))


def test_overlaps_agrees_with_day_by_day_intersection():
    rng = random.Random(20240201)
    base = date(2024, 1, 1)
    for _ in range(400):
        entity_start = base + timedelta(days=rng.randint(0, 90))
        entity_end = None if rng.random() < 0.3 else entity_start + timedelta(days=rng.randint(0, 60))
        period_start = base + timedelta(days=rng.randint(0, 90))
        period_end = period_start + timedelta(days=rng.randint(0, 40))
        expected = _brute_force(entity_start, entity_end, period_start, period_end)
        assert overlaps(entity_start, entity_end, period_start, period_end) is expected


def test_effective_end_treats_none_as_open():
    assert effective_end(None, None) is None
    assert effective_end(date(2024, 3, 1), None) == date(2024, 3, 1)
    assert effective_end(date(2024, 3, 1), date(2024, 2, 1)) == date(2024, 2, 1)


def test_clamped_window():
    assert clamped_window(date(2024, 1, 15), None, date(2024, 2, 1), date(2024, 2, 29)) == (
        date(2024, 2, 1), date(2024, 2, 29))
    assert clamped_window(date(2024, 2, 10), date(2024, 2, 20), date(2024, 2, 1), date(2024, 2, 29)) == (
        date(2024, 2, 10), date(2024, 2, 20))
    assert clamped_window(date(2024, 3, 1), None, date(2024, 2, 1), date(2024, 2, 29)) is None


def test_enrollment_limited_by_class_lifetime():
    class_def = make_class(start=date(2024, 1, 1), end=date(2024, 2, 20))
    enrollment = make_enrollment(start=date(2024, 2, 10))
    assert enrollment_overlaps(enrollment, class_def, date(2024, 2, 1), date(2024, 2, 29))
    assert not enrollment_overlaps(enrollment, class_def, date(2024, 3, 1), date(2024, 3, 31))


def test_enrollment_after_class_end_never_overlaps():
    class_def = make_class(start=date(2024, 1, 1), end=date(2024, 2, 5))
    enrollment = make_enrollment(start=date(2024, 2, 10))
    assert not enrollment_overlaps(enrollment, class_def, date(2024, 2, 1), date(2024, 2, 29))
    assert not enrollment_overlaps(enrollment, class_def, date(2024, 1, 1), date(2024, 12, 31))


def test_leave_date_before_period_excludes():
    class_def = make_class()
    enrollment = make_enrollment(start=date(2024, 1, 5), leave=date(2024, 1, 31))
    assert enrollment_overlaps(enrollment, class_def, date(2024, 1, 1), date(2024, 1, 31))
    assert not enrollment_overlaps(enrollment, class_def, date(2024, 2, 1), date(2024, 2, 29))
