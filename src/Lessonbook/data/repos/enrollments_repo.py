import logging
from Lessonbook.core.dates import parse_iso_date
from Lessonbook.core.models import Enrollment, EnrollmentStatus
from Lessonbook.core.transitions import coerce_status
from Lessonbook.data.db import placeholders, tx
from Lessonbook.errors import NotFoundError

logger = logging.getLogger(__name__)


def _row_to_enrollment(row):
	start = parse_iso_date(row["enrollment_date"])
	if start is None:
		logger.warning(f"⚠️ enrollment {row['id']} has no usable enrollment_date, skipped")
		return None
	leave = None
	if row["leave_date"]:
		leave = parse_iso_date(row["leave_date"])
		if leave is None:
			logger.warning(f"⚠️ enrollment {row['id']} has an unusable leave_date, skipped")
			return None
	try:
		status = EnrollmentStatus(row["status"])
	except ValueError:
		logger.warning(f"⚠️ enrollment {row['id']} has unknown status {row['status']!r}, skipped")
		return None
	return Enrollment(
		id=row["id"],
		student_id=row["student_id"],
		class_id=row["class_id"],
		enrollment_date=start,
		leave_date=leave,
		status=status,
	)


def enroll_student(student_id, class_id, enrollment_date, status=EnrollmentStatus.TRIAL, leave_date=None):
	"""Insert an enrollment and return its id. New enrollments start as trial."""
	status = coerce_status(status)
	start = parse_iso_date(enrollment_date)
	if start is None:
		raise ValueError(f"invalid enrollment_date {enrollment_date!r}")
	leave = None
	if leave_date is not None:
		leave = parse_iso_date(leave_date)
		if leave is None:
			raise ValueError(f"invalid leave_date {leave_date!r}")
		if leave < start:
			raise ValueError("leave_date must not be before enrollment_date")
	with tx() as conn:
		c = conn.cursor()
		c.execute(
			"""
			INSERT INTO enrollments (student_id, class_id, enrollment_date, leave_date, status)
			VALUES (?, ?, ?, ?, ?)
			""",
			(student_id, class_id, start.isoformat(), leave.isoformat() if leave else None, status.value),
		)
		enrollment_id = c.lastrowid
	logger.info(f"✅ student {student_id} enrolled in class {class_id} ({status.value})")
	return enrollment_id


def read_enrollments(class_ids=None, student_ids=None, statuses=None):
	query = "SELECT id, student_id, class_id, enrollment_date, leave_date, status FROM enrollments"
	conditions, params = [], []
	for column, values in (("class_id", class_ids), ("student_id", student_ids)):
		if values is None:
			continue
		values = list(values)
		if not values:
			return []
		conditions.append(f"{column} IN ({placeholders(values)})")
		params.extend(values)
	if statuses is not None:
		values = [coerce_status(s).value for s in statuses]
		if not values:
			return []
		conditions.append(f"status IN ({placeholders(values)})")
		params.extend(values)
	if conditions:
		query += " WHERE " + " AND ".join(conditions)
	query += " ORDER BY id"

	with tx() as conn:
		rows = conn.execute(query, tuple(params)).fetchall()
	result = []
	for row in rows:
		enrollment = _row_to_enrollment(row)
		if enrollment is not None:
			result.append(enrollment)
	return result


def get_enrollment_by_id(enrollment_id):
	with tx() as conn:
		row = conn.execute(
			"SELECT id, student_id, class_id, enrollment_date, leave_date, status FROM enrollments WHERE id=?",
			(enrollment_id,),
		).fetchone()
	return _row_to_enrollment(row) if row else None


def find_enrollment(student_id, class_id):
	"""Most recent enrollment of a student in a class, or None."""
	with tx() as conn:
		row = conn.execute(
			"""
			SELECT id, student_id, class_id, enrollment_date, leave_date, status
			FROM enrollments
			WHERE student_id=? AND class_id=?
			ORDER BY enrollment_date DESC, id DESC
			LIMIT 1
			""",
			(student_id, class_id),
		).fetchone()
	return _row_to_enrollment(row) if row else None


def update_enrollment_status(enrollment_id, status):
	status = coerce_status(status)
	with tx() as conn:
		c = conn.execute(
			"UPDATE enrollments SET status=?, updated_at=datetime('now','localtime') WHERE id=?",
			(status.value, enrollment_id),
		)
		if c.rowcount == 0:
			raise NotFoundError(f"enrollment {enrollment_id} not found")
	logger.info(f"🔄 enrollment {enrollment_id} -> {status.value}")


def set_leave_date(enrollment_id, leave_date, reason=None):
	"""Mark an enrollment as left. Passing None clears the leave date."""
	leave = None
	if leave_date is not None:
		leave = parse_iso_date(leave_date)
		if leave is None:
			raise ValueError(f"invalid leave_date {leave_date!r}")
	with tx() as conn:
		row = conn.execute("SELECT enrollment_date FROM enrollments WHERE id=?", (enrollment_id,)).fetchone()
		if not row:
			raise NotFoundError(f"enrollment {enrollment_id} not found")
		start = parse_iso_date(row["enrollment_date"])
		if leave is not None and start is not None and leave < start:
			raise ValueError("leave_date must not be before enrollment_date")
		conn.execute(
			"""
			UPDATE enrollments
			SET leave_date=?, leave_reason=?, updated_at=datetime('now','localtime')
			WHERE id=?
			""",
			(leave.isoformat() if leave else None, reason if leave else None, enrollment_id),
		)
	logger.info(f"✅ enrollment {enrollment_id} leave_date set to {leave}")
