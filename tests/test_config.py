import logging

from Lessonbook import config, paths


def test_year_range_defaults(monkeypatch):
    monkeypatch.delenv("LESSONBOOK_YEAR_MIN", raising=False)
    monkeypatch.delenv("LESSONBOOK_YEAR_MAX", raising=False)
    assert config.year_range() == (2000, 2100)


def test_year_range_from_environment(monkeypatch):
    monkeypatch.setenv("LESSONBOOK_YEAR_MIN", "2020")
    monkeypatch.setenv("LESSONBOOK_YEAR_MAX", "2030")
    assert config.year_range() == (2020, 2030)


def test_bad_year_range_falls_back(monkeypatch, caplog):
    monkeypatch.setenv("LESSONBOOK_YEAR_MIN", "2030")
    monkeypatch.setenv("LESSONBOOK_YEAR_MAX", "soon")
    with caplog.at_level(logging.WARNING):
        assert config.year_range() == (2030, 2100)
    assert "not an integer" in caplog.text


def test_inverted_year_range_falls_back(monkeypatch):
    monkeypatch.setenv("LESSONBOOK_YEAR_MIN", "2100")
    monkeypatch.setenv("LESSONBOOK_YEAR_MAX", "2000")
    assert config.year_range() == (2000, 2100)


def test_log_level(monkeypatch):
    monkeypatch.setenv("LESSONBOOK_LOG_LEVEL", "debug")
    assert config.log_level() == logging.DEBUG
    monkeypatch.setenv("LESSONBOOK_LOG_LEVEL", "chatty")
    assert config.log_level() == logging.INFO


def test_db_path_override(monkeypatch, tmp_path):
    target = tmp_path / "nested" / "book.db"
    monkeypatch.setenv("LESSONBOOK_DB_PATH", str(target))
    assert paths.get_db_path() == target
    assert target.parent.is_dir()
