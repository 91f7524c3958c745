import logging
from Lessonbook.data.db import tx

logger = logging.getLogger(__name__)


def migrate_payment_status_unique_constraint():
	"""
	Ensure payment_status has UNIQUE(student_id, class_id, month, year).
	Older databases created the table without it; rebuild and keep one row
	per key, preferring the paid one.
	"""
	with tx() as conn:
		c = conn.cursor()

		# 1) table exists?
		c.execute("SELECT sql FROM sqlite_master WHERE type='table' AND name='payment_status';")
		row = c.fetchone()
		if not row:
			return

		# 2) constraint already in place?
		ddl = (row[0] or "")
		ddl_norm = "".join(ddl.split()).lower()
		wanted = "unique(student_id,class_id,month,year)"
		if wanted in ddl_norm:
			logger.debug("payment_status UNIQUE key present; no migration needed")
			return

		logger.info("🔄 rebuilding payment_status with UNIQUE(student_id, class_id, month, year)...")

		# 3) keep the old table aside
		c.execute("ALTER TABLE payment_status RENAME TO payment_status_old;")

		# 4) new table with the key
		c.execute("""
			CREATE TABLE payment_status (
				id INTEGER PRIMARY KEY AUTOINCREMENT,
				student_id INTEGER NOT NULL,
				class_id   INTEGER NOT NULL,
				month      INTEGER NOT NULL CHECK (month BETWEEN 1 AND 12),
				year       INTEGER NOT NULL,
				is_paid    INTEGER NOT NULL DEFAULT 0,
				amount     INTEGER,
				paid_at    TEXT,
				created_at TEXT DEFAULT (datetime('now','localtime')),
				updated_at TEXT DEFAULT (datetime('now','localtime')),
				FOREIGN KEY(student_id) REFERENCES students(id) ON DELETE CASCADE ON UPDATE CASCADE,
				FOREIGN KEY(class_id)   REFERENCES classes(id)  ON DELETE CASCADE ON UPDATE CASCADE,
				UNIQUE(student_id, class_id, month, year)
			);
		""")

		# 5) copy: per key, the paid row (then the most recent id) wins
		c.execute("""
			INSERT INTO payment_status
				(id, student_id, class_id, month, year, is_paid, amount, paid_at, created_at, updated_at)
			SELECT id, student_id, class_id, month, year, is_paid, amount, paid_at, created_at, updated_at
			FROM (
				SELECT *,
					ROW_NUMBER() OVER (
						PARTITION BY student_id, class_id, month, year
						ORDER BY COALESCE(is_paid, 0) DESC, id DESC
					) AS rn
				FROM payment_status_old
			)
			WHERE rn = 1;
		""")
		dropped = c.execute("SELECT (SELECT COUNT(*) FROM payment_status_old) - (SELECT COUNT(*) FROM payment_status)").fetchone()[0]

		# 6) drop the backup
		c.execute("DROP TABLE payment_status_old;")
		c.execute("CREATE INDEX IF NOT EXISTS idx_payment_status_month ON payment_status(year, month);")

		logger.info(f"✅ payment_status migrated, {dropped} duplicate row(s) removed")
