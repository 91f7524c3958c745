import json
import logging
from Lessonbook.core.dates import parse_iso_date
from Lessonbook.core.models import ClassDefinition, ScheduleSlot
from Lessonbook.core.schedule import parse_schedule, schedule_to_json
from Lessonbook.data.db import placeholders, tx
from Lessonbook.data.repos.settings_repo import get_default_duration_minutes

logger = logging.getLogger(__name__)

_COLUMNS = """
	id, name, days_of_week, duration_minutes, monthly_fee, salary_per_session,
	start_date, end_date, is_active
"""


def _row_to_class(row):
	"""sqlite row -> ClassDefinition; None when the lifetime start is unusable."""
	start = parse_iso_date(row["start_date"])
	if start is None:
		logger.warning(f"⚠️ class {row['id']} has no usable start_date, skipped")
		return None
	end = None
	if row["end_date"]:
		end = parse_iso_date(row["end_date"])
		if end is None:
			logger.warning(f"⚠️ class {row['id']} has an unusable end_date, skipped")
			return None
	duration = row["duration_minutes"] or get_default_duration_minutes()
	return ClassDefinition(
		id=row["id"],
		name=row["name"],
		start_date=start,
		end_date=end,
		duration_minutes=duration,
		schedule=parse_schedule(row["days_of_week"], duration),
		monthly_fee=row["monthly_fee"] or 0,
		salary_per_session=row["salary_per_session"] or 0,
		is_active=bool(row["is_active"]),
	)


def _schedule_payload(schedule):
	items = list(schedule or ())
	if items and all(isinstance(s, ScheduleSlot) for s in items):
		return schedule_to_json(items)
	# raw mappings are stored as given and validated on read
	return json.dumps(items)


def create_class(name, start_date, end_date=None, schedule=(), duration_minutes=None,
				 monthly_fee=0, salary_per_session=0, is_active=True):
	"""Insert a class and return its id."""
	name = (name or "").strip()
	if not name:
		raise ValueError("class name is required")
	start = parse_iso_date(start_date)
	if start is None:
		raise ValueError(f"invalid start_date {start_date!r}")
	end = parse_iso_date(end_date) if end_date else None
	if end_date and end is None:
		raise ValueError(f"invalid end_date {end_date!r}")
	if end is not None and end < start:
		raise ValueError("end_date must not be before start_date")
	if monthly_fee < 0 or salary_per_session < 0:
		raise ValueError("fees must be non-negative")
	if duration_minutes is None:
		duration_minutes = get_default_duration_minutes()
	if duration_minutes <= 0:
		raise ValueError("duration_minutes must be positive")

	with tx() as conn:
		c = conn.cursor()
		c.execute(
			"""
			INSERT INTO classes (name, days_of_week, duration_minutes, monthly_fee,
				salary_per_session, start_date, end_date, is_active)
			VALUES (?, ?, ?, ?, ?, ?, ?, ?)
			""",
			(name, _schedule_payload(schedule), duration_minutes, monthly_fee,
			 salary_per_session, start.isoformat(), end.isoformat() if end else None,
			 1 if is_active else 0),
		)
		class_id = c.lastrowid
	logger.info(f"✅ class {class_id} '{name}' created")
	return class_id


def read_classes(ids=None, active_only=False):
	"""ClassDefinitions with their schedule already parsed, ordered by name."""
	query = f"SELECT {_COLUMNS} FROM classes"
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
	query += " ORDER BY name COLLATE NOCASE, id"

	with tx() as conn:
		rows = conn.execute(query, tuple(params)).fetchall()
	result = []
	for row in rows:
		class_def = _row_to_class(row)
		if class_def is not None:
			result.append(class_def)
	return result


def get_class_by_id(class_id):
	found = read_classes(ids=[class_id])
	return found[0] if found else None


def update_class_schedule(class_id, schedule):
	with tx() as conn:
		c = conn.execute(
			"""
			UPDATE classes
			SET days_of_week=?, updated_at=datetime('now','localtime')
			WHERE id=?
			""",
			(_schedule_payload(schedule), class_id),
		)
		return c.rowcount > 0


def set_class_active(class_id, is_active):
	with tx() as conn:
		c = conn.execute(
			"UPDATE classes SET is_active=?, updated_at=datetime('now','localtime') WHERE id=?",
			(1 if is_active else 0, class_id),
		)
		return c.rowcount > 0


def set_class_end_date(class_id, end_date):
	"""Close (or reopen with None) a class lifetime."""
	end = None
	if end_date is not None:
		end = parse_iso_date(end_date)
		if end is None:
			raise ValueError(f"invalid end_date {end_date!r}")
	with tx() as conn:
		row = conn.execute("SELECT start_date FROM classes WHERE id=?", (class_id,)).fetchone()
		if not row:
			return False
		start = parse_iso_date(row["start_date"])
		if end is not None and start is not None and end < start:
			raise ValueError("end_date must not be before start_date")
		conn.execute(
			"UPDATE classes SET end_date=?, updated_at=datetime('now','localtime') WHERE id=?",
			(end.isoformat() if end else None, class_id),
		)
		return True
