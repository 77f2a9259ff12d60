"""Tests for studylog.app."""

from studylog.app import App
from studylog.ledger import list_subjects
from studylog.snapshot import DEFAULT_SUBJECTS


def test_app_seeds_default_subjects(app):
    assert [s.name for s in list_subjects(app.conn)] == DEFAULT_SUBJECTS


def test_app_without_seed(tmp_data_dir):
    a = App(data_dir=tmp_data_dir)
    a.init_db(":memory:", seed=False)
    assert list_subjects(a.conn) == []
    a.close()


def test_app_db_path_from_settings(tmp_data_dir):
    (tmp_data_dir / "settings.toml").write_text('db_name = "mine.db"')
    a = App(data_dir=tmp_data_dir)
    assert a.db_path == tmp_data_dir / "mine.db"


def test_app_file_db_persists(tmp_data_dir):
    a = App(data_dir=tmp_data_dir)
    a.init_db()
    a.close()
    assert (tmp_data_dir / "studylog.db").exists()

    b = App(data_dir=tmp_data_dir)
    b.init_db()
    assert len(list_subjects(b.conn)) == len(DEFAULT_SUBJECTS)
    b.close()


def test_app_uses_env_data_dir(monkeypatch, tmp_path):
    monkeypatch.setenv("STUDYLOG_DIR", str(tmp_path))
    assert App().data_dir == tmp_path


def test_close_is_idempotent(tmp_data_dir):
    a = App(data_dir=tmp_data_dir)
    a.init_db(":memory:")
    a.close()
    a.close()
    assert a.conn is None
