import sqlite3
import logging
from Lessonbook.core.models import ClassTeacher, Teacher
from Lessonbook.data.db import placeholders, tx

logger = logging.getLogger(__name__)


def insert_teacher(full_name, phone=None, notes=None, is_active=True):
	full_name = (full_name or "").strip()
	if not full_name:
		raise ValueError("teacher name is required")
	with tx() as conn:
		c = conn.cursor()
		c.execute(
			"INSERT INTO teachers (full_name, phone, notes, is_active) VALUES (?, ?, ?, ?)",
			(full_name, phone or None, notes, 1 if is_active else 0),
		)
		teacher_id = c.lastrowid
	logger.info(f"✅ teacher {teacher_id} created")
	return teacher_id


def read_teachers(ids=None, active_only=False):
	query = "SELECT id, full_name, phone, is_active FROM teachers"
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
		rows = conn.execute(query, tuple(params)).fetchall()
	return [
		Teacher(id=r["id"], full_name=r["full_name"], phone=r["phone"] or "", is_active=bool(r["is_active"]))
		for r in rows
	]


def set_teacher_active(teacher_id, is_active):
	with tx() as conn:
		c = conn.execute(
			"UPDATE teachers SET is_active=?, updated_at=datetime('now','localtime') WHERE id=?",
			(1 if is_active else 0, teacher_id),
		)
		return c.rowcount > 0


def assign_teacher_to_class(class_id, teacher_id):
	"""Returns False when the teacher is already assigned."""
	try:
		with tx() as conn:
			conn.execute(
				"INSERT INTO class_teachers (class_id, teacher_id) VALUES (?, ?)",
				(class_id, teacher_id),
			)
		return True
	except sqlite3.IntegrityError as e:
		logger.warning(f"⚠️ teacher {teacher_id} not assigned to class {class_id}: {e}")
		return False


def unassign_teacher_from_class(class_id, teacher_id):
	with tx() as conn:
		c = conn.execute(
			"DELETE FROM class_teachers WHERE class_id=? AND teacher_id=?",
			(class_id, teacher_id),
		)
		return c.rowcount > 0


def read_class_teachers(class_ids=None, teacher_ids=None):
	query = "SELECT class_id, teacher_id FROM class_teachers"
	conditions, params = [], []
	for column, values in (("class_id", class_ids), ("teacher_id", teacher_ids)):
		if values is None:
			continue
		values = list(values)
		if not values:
			return []
		conditions.append(f"{column} IN ({placeholders(values)})")
		params.extend(values)
	if conditions:
		query += " WHERE " + " AND ".join(conditions)
	query += " ORDER BY class_id, teacher_id"
	with tx() as conn:
		rows = conn.execute(query, tuple(params)).fetchall()
	return [ClassTeacher(class_id=r["class_id"], teacher_id=r["teacher_id"]) for r in rows]
