from Lessonbook.app_init import initialize_database
from Lessonbook.data.db import tx
from Lessonbook.data.repos import settings_repo


def test_initialize_database_restores_missing_settings(tmp_path, monkeypatch):
    db_file = tmp_path / "fresh.db"
    monkeypatch.setenv("LESSONBOOK_DB_PATH", str(db_file))
    monkeypatch.setenv("LESSONBOOK_LOG_FILE", str(tmp_path / "lessonbook.log"))

    assert initialize_database() == db_file
    with tx() as conn:
        conn.execute("DELETE FROM settings WHERE key='currency_unit'")
        conn.execute("UPDATE settings SET value='90' WHERE key='default_duration_minutes'")

    initialize_database()
    assert settings_repo.get_setting("currency_unit") == "VND"
    assert settings_repo.get_default_duration_minutes() == 90
