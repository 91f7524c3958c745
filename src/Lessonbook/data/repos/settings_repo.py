import logging
from Lessonbook.data.db import tx

logger = logging.getLogger(__name__)


def set_setting(key, value):
	"""Insert or update a setting key/value pair."""
	with tx() as conn:
		conn.execute(
			"REPLACE INTO settings (key, value) VALUES (?, ?)",
			(key, str(value))
		)


def get_setting(key, default=None):
	"""Retrieve a setting value by key, or return default."""
	with tx() as conn:
		c = conn.cursor()
		c.execute("SELECT value FROM settings WHERE key = ?", (key,))
		row = c.fetchone()
		return row[0] if row else default


def get_setting_int(key, default):
	raw = get_setting(key, None)
	if raw is None:
		return default
	try:
		return int(str(raw).strip())
	except ValueError:
		logger.warning(f"⚠️ setting {key}={raw!r} is not an integer, using {default}")
		return default


def get_default_duration_minutes():
	return get_setting_int("default_duration_minutes", 60)
