from pathlib import Path
import platform, os

APP_NAME = "Lessonbook"


def get_app_data_dir() -> Path:
    sysname = platform.system()
    if sysname == "Windows":
        base = Path(os.getenv("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
        return base / APP_NAME
    elif sysname == "Darwin":  # macOS
        return Path.home() / "Library" / "Application Support" / APP_NAME
    else: # Linux / others
        base = Path(os.getenv("XDG_DATA_HOME", Path.home() / ".local" / "share"))
        return base / APP_NAME


def get_db_path() -> Path:
    """Database file, LESSONBOOK_DB_PATH wins over the app data dir."""
    override = (os.getenv("LESSONBOOK_DB_PATH") or "").strip()
    if override:
        path = Path(override)
    else:
        path = get_app_data_dir() / "lessonbook.db"
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def get_log_path() -> Path:
    override = (os.getenv("LESSONBOOK_LOG_FILE") or "").strip()
    if override:
        return Path(override)
    app_dir = get_app_data_dir()
    app_dir.mkdir(parents=True, exist_ok=True)
    return app_dir / "lessonbook.log"
