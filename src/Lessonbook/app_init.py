import logging

from Lessonbook.config import load_env
from Lessonbook.data.repos.settings_repo import get_setting, set_setting
from Lessonbook.data.schema import DEFAULT_SETTINGS, create_tables
from Lessonbook.logging_setup import ensure_logging
from Lessonbook.paths import get_db_path

logger = logging.getLogger(__name__)


def initialize_database():
    # 1) environment first, the db path may come from .env
    load_env()
    ensure_logging()

    # 2) tables (and the payment_status migration)
    create_tables()

    # 3) settings added after the database was first created
    for key, value in DEFAULT_SETTINGS.items():
        if get_setting(key) is None:
            set_setting(key, value)
            logger.info(f"✅ setting {key} added with default {value!r}")

    db_path = get_db_path()
    logger.info(f"📦 database ready at {db_path}")
    return db_path
