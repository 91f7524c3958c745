import os
import logging
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_YEAR_MIN = 2000
DEFAULT_YEAR_MAX = 2100

_loaded = False


def load_env(path=None):
    """Load .env once; variables already in the environment are kept."""
    global _loaded
    if _loaded and path is None:
        return
    if path is not None:
        load_dotenv(path)
    else:
        load_dotenv()
    _loaded = True


def _env_int(name, default):
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"⚠️ {name}={raw!r} is not an integer, using {default}")
        return default


def year_range():
    load_env()
    lo = _env_int("LESSONBOOK_YEAR_MIN", DEFAULT_YEAR_MIN)
    hi = _env_int("LESSONBOOK_YEAR_MAX", DEFAULT_YEAR_MAX)
    if lo > hi:
        logger.warning(f"⚠️ year range {lo}..{hi} is inverted, using defaults")
        return DEFAULT_YEAR_MIN, DEFAULT_YEAR_MAX
    return lo, hi


def log_level():
    load_env()
    name = (os.getenv("LESSONBOOK_LOG_LEVEL") or "INFO").strip().upper()
    return getattr(logging, name, logging.INFO)
