import sqlite3
import logging
from Lessonbook.core.models import PaymentFact
from Lessonbook.data.db import placeholders, tx
from Lessonbook.errors import NotFoundError, PaymentConflictError

logger = logging.getLogger(__name__)

_COLUMNS = "id, student_id, class_id, month, year, amount, is_paid, paid_at"

UNSET = object()


def _row_to_payment(row):
	return PaymentFact(
		id=row["id"],
		student_id=row["student_id"],
		class_id=row["class_id"],
		month=row["month"],
		year=row["year"],
		amount=row["amount"],
		is_paid=bool(row["is_paid"]),
		paid_at=row["paid_at"],
	)


def _period(month, year):
	"""Coerce to ints so the key is stored, looked up and reported the same way."""
	try:
		month, year = int(month), int(year)
	except (TypeError, ValueError):
		raise ValueError(f"invalid period {month!r}/{year!r}") from None
	if not 1 <= month <= 12:
		raise ValueError(f"invalid month {month!r}")
	return month, year


def _check_amount(amount):
	if amount is not None and amount < 0:
		raise ValueError("amount must be non-negative")


def read_payment_facts(student_ids=None, class_ids=None, month=None, year=None):
	query = f"SELECT {_COLUMNS} FROM payment_status"
	conditions, params = [], []
	for column, values in (("student_id", student_ids), ("class_id", class_ids)):
		if values is None:
			continue
		values = list(values)
		if not values:
			return []
		conditions.append(f"{column} IN ({placeholders(values)})")
		params.extend(values)
	if month is not None:
		conditions.append("month = ?")
		params.append(month)
	if year is not None:
		conditions.append("year = ?")
		params.append(year)
	if conditions:
		query += " WHERE " + " AND ".join(conditions)
	query += " ORDER BY year, month, id"
	with tx() as conn:
		return [_row_to_payment(r) for r in conn.execute(query, tuple(params)).fetchall()]


def get_payment_by_id(payment_id):
	with tx() as conn:
		row = conn.execute(f"SELECT {_COLUMNS} FROM payment_status WHERE id=?", (payment_id,)).fetchone()
	return _row_to_payment(row) if row else None


def find_payment(student_id, class_id, month, year):
	with tx() as conn:
		row = conn.execute(
			f"""
			SELECT {_COLUMNS} FROM payment_status
			WHERE student_id=? AND class_id=? AND month=? AND year=?
			""",
			(student_id, class_id, month, year),
		).fetchone()
	return _row_to_payment(row) if row else None


def create_payment_fact(student_id, class_id, month, year, amount=None, is_paid=False, paid_at=None):
	"""
	Insert the payment record for (student, class, month, year) and return its id.
	An existing record for the key is never touched: PaymentConflictError.
	"""
	month, year = _period(month, year)
	_check_amount(amount)

	existing = find_payment(student_id, class_id, month, year)
	if existing is not None:
		logger.warning(f"⚠️ payment already exists for student {student_id} class {class_id} {month}/{year}")
		raise PaymentConflictError(student_id, class_id, month, year, existing.id)

	try:
		with tx() as conn:
			c = conn.cursor()
			c.execute(
				"""
				INSERT INTO payment_status (student_id, class_id, month, year, amount, is_paid, paid_at)
				VALUES (?, ?, ?, ?, ?, ?, ?)
				""",
				(student_id, class_id, month, year, amount, 1 if is_paid else 0, paid_at if is_paid else None),
			)
			payment_id = c.lastrowid
	except sqlite3.IntegrityError as e:
		# lost a race against another writer, or a FK failure
		existing = find_payment(student_id, class_id, month, year)
		if existing is None:
			raise
		logger.warning(f"⚠️ payment insert conflicted: {e}")
		raise PaymentConflictError(student_id, class_id, month, year, existing.id) from e

	logger.info(f"✅ payment {payment_id} created for student {student_id} class {class_id} {month}/{year}")
	return payment_id


def update_payment_fact(payment_id, amount=UNSET, is_paid=None, paid_at=UNSET):
	"""Update the given fields only. Marking unpaid clears paid_at."""
	sets, params = [], []
	if amount is not UNSET:
		_check_amount(amount)
		sets.append("amount=?")
		params.append(amount)
	if is_paid is not None:
		sets.append("is_paid=?")
		params.append(1 if is_paid else 0)
		if not is_paid:
			paid_at = None
	if paid_at is not UNSET:
		sets.append("paid_at=?")
		params.append(paid_at)
	if not sets:
		return get_payment_by_id(payment_id)
	sets.append("updated_at=datetime('now','localtime')")

	with tx() as conn:
		c = conn.execute(
			f"UPDATE payment_status SET {', '.join(sets)} WHERE id=?",
			(*params, payment_id),
		)
		if c.rowcount == 0:
			raise NotFoundError(f"payment {payment_id} not found")
	return get_payment_by_id(payment_id)


def delete_payment_fact(payment_id):
	with tx() as conn:
		c = conn.execute("DELETE FROM payment_status WHERE id=?", (payment_id,))
		return c.rowcount > 0
