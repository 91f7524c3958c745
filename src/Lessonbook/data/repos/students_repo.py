import logging
from Lessonbook.core.models import Student
from Lessonbook.data.db import placeholders, tx

logger = logging.getLogger(__name__)


def _row_to_student(row):
	return Student(
		id=row["id"],
		full_name=row["full_name"],
		phone=row["phone"] or "",
		parent_phone=row["parent_phone"] or "",
		is_active=bool(row["is_active"]),
	)


def insert_student(full_name, phone="", parent_phone="", is_active=True):
	full_name = (full_name or "").strip()
	if not full_name:
		raise ValueError("student name is required")
	with tx() as conn:
		c = conn.cursor()
		c.execute(
			"""
			INSERT INTO students (full_name, phone, parent_phone, is_active)
			VALUES (?, ?, ?, ?)
			""",
			(full_name, phone or "", parent_phone or "", 1 if is_active else 0),
		)
		student_id = c.lastrowid
	logger.info(f"✅ student {student_id} created")
	return student_id


def read_students(ids=None, active_only=False):
	query = "SELECT id, full_name, phone, parent_phone, is_active FROM students"
	conditions, params = [], []
	if ids is not None:
		ids = list(ids)
		if not ids:
			return []
		conditions.append(f"id IN ({placeholders(ids)})")
		params.extend(ids)
	if active_only:
		conditions.append("is_active = 1")
	if conditions:
		query += " WHERE " + " AND ".join(conditions)
	query += " ORDER BY full_name COLLATE NOCASE, id"
	with tx() as conn:
		return [_row_to_student(r) for r in conn.execute(query, tuple(params)).fetchall()]


def get_student_by_id(student_id):
	found = read_students(ids=[student_id])
	return found[0] if found else None


def update_student_by_id(student_id, full_name, phone="", parent_phone=""):
	full_name = (full_name or "").strip()
	if not full_name:
		raise ValueError("student name is required")
	with tx() as conn:
		c = conn.execute(
			"""
			UPDATE students
			SET full_name=?, phone=?, parent_phone=?, updated_at=datetime('now','localtime')
			WHERE id=?
			""",
			(full_name, phone or "", parent_phone or "", student_id),
		)
		return c.rowcount > 0


def set_student_active(student_id, is_active):
	with tx() as conn:
		c = conn.execute(
			"UPDATE students SET is_active=?, updated_at=datetime('now','localtime') WHERE id=?",
			(1 if is_active else 0, student_id),
		)
		return c.rowcount > 0
