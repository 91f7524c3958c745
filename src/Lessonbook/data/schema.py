import logging
from Lessonbook.data.db import tx
from Lessonbook.data.migrations import migrate_payment_status_unique_constraint

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = {
	"default_duration_minutes": "60",
	"currency_unit": "VND",
}


def create_tables():
	"""Create all tables with FKs, UNIQUE constraints, indexes, and audit columns."""
	with tx() as conn:
		c = conn.cursor()

		# Students table
		c.execute("""
			CREATE TABLE IF NOT EXISTS students (
				id INTEGER PRIMARY KEY AUTOINCREMENT,
				full_name TEXT NOT NULL,
				phone TEXT,
				parent_phone TEXT,
				is_active INTEGER NOT NULL DEFAULT 1,
				created_at TEXT DEFAULT (datetime('now','localtime')),
				updated_at TEXT DEFAULT (datetime('now','localtime'))
			);
		""")

		# Teachers table
		c.execute("""
			CREATE TABLE IF NOT EXISTS teachers (
				id INTEGER PRIMARY KEY AUTOINCREMENT,
				full_name TEXT NOT NULL,
				phone TEXT UNIQUE,
				notes TEXT,
				is_active INTEGER NOT NULL DEFAULT 1,
				created_at TEXT DEFAULT (datetime('now','localtime')),
				updated_at TEXT DEFAULT (datetime('now','localtime'))
			);
		""")

		# Classes table; days_of_week holds the weekly schedule as JSON
		c.execute("""
			CREATE TABLE IF NOT EXISTS classes (
				id INTEGER PRIMARY KEY AUTOINCREMENT,
				name TEXT NOT NULL,
				days_of_week TEXT NOT NULL DEFAULT '[]',
				duration_minutes INTEGER NOT NULL DEFAULT 60,
				max_student_count INTEGER,
				monthly_fee INTEGER NOT NULL DEFAULT 0,
				salary_per_session INTEGER NOT NULL DEFAULT 0,
				start_date TEXT NOT NULL,
				end_date TEXT,
				is_active INTEGER NOT NULL DEFAULT 1,
				created_at TEXT DEFAULT (datetime('now','localtime')),
				updated_at TEXT DEFAULT (datetime('now','localtime'))
			);
		""")

		# Teacher assignments
		c.execute("""
			CREATE TABLE IF NOT EXISTS class_teachers (
				id INTEGER PRIMARY KEY AUTOINCREMENT,
				class_id INTEGER NOT NULL,
				teacher_id INTEGER NOT NULL,
				created_at TEXT DEFAULT (datetime('now','localtime')),
				FOREIGN KEY(class_id) REFERENCES classes(id) ON DELETE CASCADE ON UPDATE CASCADE,
				FOREIGN KEY(teacher_id) REFERENCES teachers(id) ON DELETE CASCADE ON UPDATE CASCADE,
				UNIQUE(class_id, teacher_id)
			);
		""")

		# Enrollments
		c.execute("""
			CREATE TABLE IF NOT EXISTS enrollments (
				id INTEGER PRIMARY KEY AUTOINCREMENT,
				student_id INTEGER NOT NULL,
				class_id INTEGER NOT NULL,
				enrollment_date TEXT NOT NULL,
				leave_date TEXT,
				status TEXT NOT NULL DEFAULT 'trial'
					CHECK (status IN ('trial', 'active', 'inactive')),
				leave_reason TEXT,
				created_at TEXT DEFAULT (datetime('now','localtime')),
				updated_at TEXT DEFAULT (datetime('now','localtime')),
				FOREIGN KEY(student_id) REFERENCES students(id) ON DELETE CASCADE ON UPDATE CASCADE,
				FOREIGN KEY(class_id) REFERENCES classes(id) ON DELETE CASCADE ON UPDATE CASCADE,
				CHECK (leave_date IS NULL OR leave_date >= enrollment_date)
			);
		""")

		# Attendance: exactly one of student_id / teacher_id is set
		c.execute("""
			CREATE TABLE IF NOT EXISTS attendance (
				id INTEGER PRIMARY KEY AUTOINCREMENT,
				class_id INTEGER NOT NULL,
				student_id INTEGER,
				teacher_id INTEGER,
				attendance_date TEXT NOT NULL,
				session_time TEXT NOT NULL,
				is_present INTEGER,
				notes TEXT,
				marked_by TEXT NOT NULL DEFAULT 'admin',
				created_at TEXT DEFAULT (datetime('now','localtime')),
				updated_at TEXT DEFAULT (datetime('now','localtime')),
				FOREIGN KEY(class_id) REFERENCES classes(id) ON DELETE CASCADE ON UPDATE CASCADE,
				FOREIGN KEY(student_id) REFERENCES students(id) ON DELETE CASCADE ON UPDATE CASCADE,
				FOREIGN KEY(teacher_id) REFERENCES teachers(id) ON DELETE CASCADE ON UPDATE CASCADE,
				CHECK ((student_id IS NULL) != (teacher_id IS NULL))
			);
		""")

		# Payment status, one row per student/class/month
		c.execute("""
			CREATE TABLE IF NOT EXISTS payment_status (
				id INTEGER PRIMARY KEY AUTOINCREMENT,
				student_id INTEGER NOT NULL,
				class_id INTEGER NOT NULL,
				month INTEGER NOT NULL CHECK (month BETWEEN 1 AND 12),
				year INTEGER NOT NULL,
				is_paid INTEGER NOT NULL DEFAULT 0,
				amount INTEGER,
				paid_at TEXT,
				created_at TEXT DEFAULT (datetime('now','localtime')),
				updated_at TEXT DEFAULT (datetime('now','localtime')),
				FOREIGN KEY(student_id) REFERENCES students(id) ON DELETE CASCADE ON UPDATE CASCADE,
				FOREIGN KEY(class_id) REFERENCES classes(id) ON DELETE CASCADE ON UPDATE CASCADE,
				UNIQUE(student_id, class_id, month, year)
			);
		""")

		# Expenses
		c.execute("""
			CREATE TABLE IF NOT EXISTS expenses (
				id INTEGER PRIMARY KEY AUTOINCREMENT,
				amount INTEGER NOT NULL,
				reason TEXT NOT NULL,
				expense_date TEXT NOT NULL,
				month INTEGER NOT NULL CHECK (month BETWEEN 1 AND 12),
				year INTEGER NOT NULL,
				created_at TEXT DEFAULT (datetime('now','localtime')),
				updated_at TEXT DEFAULT (datetime('now','localtime'))
			);
		""")

		# Settings table
		c.execute("""
			CREATE TABLE IF NOT EXISTS settings (
				key TEXT PRIMARY KEY,
				value TEXT NOT NULL
			);
		""")

		# Indexes
		c.execute("CREATE INDEX IF NOT EXISTS idx_enrollments_class_id ON enrollments(class_id);")
		c.execute("CREATE INDEX IF NOT EXISTS idx_enrollments_student_id ON enrollments(student_id);")
		c.execute("CREATE INDEX IF NOT EXISTS idx_class_teachers_teacher_id ON class_teachers(teacher_id);")
		c.execute("CREATE INDEX IF NOT EXISTS idx_attendance_class_date ON attendance(class_id, attendance_date);")
		c.execute("CREATE INDEX IF NOT EXISTS idx_payment_status_month ON payment_status(year, month);")
		c.execute("CREATE INDEX IF NOT EXISTS idx_expenses_month ON expenses(year, month);")
		# one mark per person per session
		c.execute("""
			CREATE UNIQUE INDEX IF NOT EXISTS ux_attendance_student_session
			ON attendance(class_id, student_id, attendance_date, session_time)
			WHERE student_id IS NOT NULL;
		""")
		c.execute("""
			CREATE UNIQUE INDEX IF NOT EXISTS ux_attendance_teacher_session
			ON attendance(class_id, teacher_id, attendance_date, session_time)
			WHERE teacher_id IS NOT NULL;
		""")

		# Seed defaults only on a fresh database
		c.execute("SELECT COUNT(*) FROM settings")
		if c.fetchone()[0] == 0:
			c.executemany(
				"INSERT INTO settings (key, value) VALUES (?, ?)",
				list(DEFAULT_SETTINGS.items()),
			)
			logger.info("✅ default settings seeded")

	migrate_payment_status_unique_constraint()
