"""Tests for studylog.db."""

import sqlite3

import pytest

from studylog.db import init_db, transaction


def test_schema_creation():
    conn = init_db(":memory:")
    tables = [r[0] for r in conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name").fetchall()]
    assert "subjects" in tables
    assert "units" in tables
    assert "reviews" in tables
    conn.close()


def test_foreign_keys_enabled():
    conn = init_db(":memory:")
    fk = conn.execute("PRAGMA foreign_keys").fetchone()[0]
    assert fk == 1
    conn.close()


def test_idempotent_schema():
    conn = init_db(":memory:")
    # Running init again should not error
    from studylog.db import SCHEMA
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()


def test_file_db(tmp_path):
    db_path = tmp_path / "nested" / "test.db"
    conn = init_db(db_path)
    assert db_path.exists()
    wal = conn.execute("PRAGMA journal_mode").fetchone()[0]
    assert wal == "wal"
    conn.close()


def test_transaction_commits():
    conn = init_db(":memory:")
    with transaction(conn):
        conn.execute("INSERT INTO subjects (name, sort_order, created_at) VALUES ('A', 0, 'now')")
    assert not conn.in_transaction
    assert conn.execute("SELECT COUNT(*) FROM subjects").fetchone()[0] == 1
    conn.close()


def test_transaction_rolls_back_on_error():
    conn = init_db(":memory:")
    with pytest.raises(RuntimeError):
        with transaction(conn):
            conn.execute("INSERT INTO subjects (name, sort_order, created_at) VALUES ('A', 0, 'now')")
            raise RuntimeError("boom")
    assert conn.execute("SELECT COUNT(*) FROM subjects").fetchone()[0] == 0
    conn.close()


def test_review_number_must_be_positive():
    conn = init_db(":memory:")
    conn.execute("INSERT INTO subjects (id, name, sort_order, created_at) VALUES (1, 'A', 0, 'now')")
    conn.execute("INSERT INTO units (id, subject_id, unit_code, created_at) VALUES (1, 1, '1-1', 'now')")
    with pytest.raises(sqlite3.IntegrityError):
        conn.execute("INSERT INTO reviews (unit_id, review_no, done_date, created_at) "
                     "VALUES (1, 0, '2024-01-01', 'now')")
    conn.close()
