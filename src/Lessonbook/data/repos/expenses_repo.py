import logging
from Lessonbook.core.dates import parse_iso_date
from Lessonbook.core.models import Expense
from Lessonbook.data.db import tx

logger = logging.getLogger(__name__)


def insert_expense(amount, reason, expense_date):
	"""Month and year are taken from the expense date."""
	if amount is None or amount < 0:
		raise ValueError("amount must be non-negative")
	reason = (reason or "").strip()
	if not reason:
		raise ValueError("reason is required")
	day = parse_iso_date(expense_date)
	if day is None:
		raise ValueError(f"invalid expense_date {expense_date!r}")
	with tx() as conn:
		c = conn.cursor()
		c.execute(
			"""
			INSERT INTO expenses (amount, reason, expense_date, month, year)
			VALUES (?, ?, ?, ?, ?)
			""",
			(amount, reason, day.isoformat(), day.month, day.year),
		)
		return c.lastrowid


def read_expenses(year=None, month=None):
	query = "SELECT id, amount, reason, expense_date, month, year FROM expenses"
	conditions, params = [], []
	if year is not None:
		conditions.append("year = ?")
		params.append(year)
	if month is not None:
		conditions.append("month = ?")
		params.append(month)
	if conditions:
		query += " WHERE " + " AND ".join(conditions)
	query += " ORDER BY expense_date, id"
	with tx() as conn:
		rows = conn.execute(query, tuple(params)).fetchall()
	result = []
	for r in rows:
		day = parse_iso_date(r["expense_date"])
		if day is None:
			logger.warning(f"⚠️ expense {r['id']} has an unusable date, skipped")
			continue
		result.append(Expense(r["id"], r["amount"], r["reason"], day, r["month"], r["year"]))
	return result


def delete_expense(expense_id):
	with tx() as conn:
		c = conn.execute("DELETE FROM expenses WHERE id=?", (expense_id,))
		return c.rowcount > 0
