"""Shared test fixtures."""

import pytest

from studylog.app import App
from studylog.db import init_db
from studylog.ledger import add_subject


@pytest.fixture
def tmp_data_dir(tmp_path):
    """Create a temporary studylog data directory."""
    data_dir = tmp_path / "data_dir"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def db_conn():
    """In-memory SQLite database with schema applied."""
    conn = init_db(":memory:")
    yield conn
    conn.close()


@pytest.fixture
def subject_id(db_conn):
    """One subject in the in-memory database."""
    return add_subject(db_conn, "Math")


@pytest.fixture
def app(tmp_data_dir):
    """App instance with tmp data_dir and in-memory DB (default subjects seeded)."""
    a = App(data_dir=tmp_data_dir)
    a.init_db(":memory:")
    yield a
    a.close()
