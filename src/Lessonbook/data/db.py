import sqlite3
from contextlib import contextmanager
from Lessonbook.paths import get_db_path


def get_connection():
    """New connection to the configured database file; callers close it."""
    conn = sqlite3.connect(get_db_path())
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA synchronous = NORMAL")
    return conn


@contextmanager
def tx():
    """One unit of work on its own connection.

    Commits when the block finishes, rolls back if it raises, and always
    closes the connection, so threads never share one.
    """
    conn = get_connection()
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def placeholders(values):
    """'?, ?, ?' for an IN (...) clause."""
    return ", ".join("?" for _ in values)
