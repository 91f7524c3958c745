import logging
from Lessonbook.core.dates import parse_iso_date, parse_time
from Lessonbook.core.models import AttendanceFact, PersonKind
from Lessonbook.data.db import placeholders, tx

logger = logging.getLogger(__name__)

_PERSON_COLUMN = {
	PersonKind.STUDENT: "student_id",
	PersonKind.TEACHER: "teacher_id",
}


def _person_kind(value):
	try:
		return PersonKind(value)
	except ValueError:
		raise ValueError(f"invalid person kind {value!r}") from None


def _validated_key(person_kind, attendance_date, session_time):
	kind = _person_kind(person_kind)
	day = parse_iso_date(attendance_date)
	if day is None:
		raise ValueError(f"invalid attendance date {attendance_date!r}")
	at = parse_time(session_time)
	if at is None:
		raise ValueError(f"invalid session time {session_time!r}")
	return kind, day, at


def _row_to_fact(row):
	day = parse_iso_date(row["attendance_date"])
	at = parse_time(row["session_time"])
	if day is None or at is None:
		logger.warning(f"⚠️ attendance {row['id']} has an unusable date or time, skipped")
		return None
	if row["student_id"] is not None:
		kind, person_id = PersonKind.STUDENT, row["student_id"]
	else:
		kind, person_id = PersonKind.TEACHER, row["teacher_id"]
	is_present = None if row["is_present"] is None else bool(row["is_present"])
	return AttendanceFact(
		class_id=row["class_id"],
		person_id=person_id,
		person_kind=kind,
		date=day,
		session_time=at,
		is_present=is_present,
		note=row["notes"],
	)


def read_attendance_facts(class_ids, date_from, date_to, session_times=None):
	"""Recorded marks for the classes in [date_from, date_to]. class_ids=None reads every class."""
	query = """
		SELECT id, class_id, student_id, teacher_id, attendance_date, session_time, is_present, notes
		FROM attendance
		WHERE attendance_date BETWEEN ? AND ?
	"""
	date_from, date_to = parse_iso_date(date_from), parse_iso_date(date_to)
	if date_from is None or date_to is None:
		raise ValueError("invalid attendance window")
	params = [date_from.isoformat(), date_to.isoformat()]
	if class_ids is not None:
		class_ids = list(class_ids)
		if not class_ids:
			return []
		query += f" AND class_id IN ({placeholders(class_ids)})"
		params.extend(class_ids)
	if session_times is not None:
		times = [t for t in (parse_time(s) for s in session_times) if t]
		if not times:
			return []
		query += f" AND session_time IN ({placeholders(times)})"
		params.extend(times)
	query += " ORDER BY attendance_date, session_time, id"

	with tx() as conn:
		rows = conn.execute(query, tuple(params)).fetchall()
	facts = []
	for row in rows:
		fact = _row_to_fact(row)
		if fact is not None:
			facts.append(fact)
	return facts


def upsert_attendance(class_id, person_id, person_kind, attendance_date, session_time,
					  is_present, note=None, marked_by="admin"):
	"""Record (or overwrite) one person's mark for one session."""
	kind, day, at = _validated_key(person_kind, attendance_date, session_time)
	if is_present is not None:
		is_present = 1 if is_present else 0
	column = _PERSON_COLUMN[kind]
	with tx() as conn:
		c = conn.cursor()
		c.execute(
			f"""
			SELECT id FROM attendance
			WHERE class_id=? AND {column}=? AND attendance_date=? AND session_time=?
			""",
			(class_id, person_id, day.isoformat(), at),
		)
		row = c.fetchone()
		if row:
			c.execute(
				"""
				UPDATE attendance
				SET is_present=?, notes=?, marked_by=?, updated_at=datetime('now','localtime')
				WHERE id=?
				""",
				(is_present, note, marked_by, row["id"]),
			)
			return row["id"]
		c.execute(
			f"""
			INSERT INTO attendance (class_id, {column}, attendance_date, session_time, is_present, notes, marked_by)
			VALUES (?, ?, ?, ?, ?, ?, ?)
			""",
			(class_id, person_id, day.isoformat(), at, is_present, note, marked_by),
		)
		return c.lastrowid


def delete_attendance(class_id, person_id, person_kind, attendance_date, session_time):
	"""Back to 'unrecorded'. Returns the number of rows removed."""
	kind, day, at = _validated_key(person_kind, attendance_date, session_time)
	column = _PERSON_COLUMN[kind]
	with tx() as conn:
		c = conn.execute(
			f"""
			DELETE FROM attendance
			WHERE class_id=? AND {column}=? AND attendance_date=? AND session_time=?
			""",
			(class_id, person_id, day.isoformat(), at),
		)
		return c.rowcount
