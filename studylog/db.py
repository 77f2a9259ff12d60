"""Database schema, initialization and transactions."""

import contextlib
import pathlib
import sqlite3
from typing import Iterator

SCHEMA = """
CREATE TABLE IF NOT EXISTS subjects (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    sort_order INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_subjects_sort ON subjects(sort_order);

CREATE TABLE IF NOT EXISTS units (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    subject_id INTEGER NOT NULL REFERENCES subjects(id),
    unit_code TEXT NOT NULL,
    title TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL,
    UNIQUE(subject_id, unit_code)
);
CREATE INDEX IF NOT EXISTS idx_units_subject ON units(subject_id);

CREATE TABLE IF NOT EXISTS reviews (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    unit_id INTEGER NOT NULL REFERENCES units(id),
    review_no INTEGER NOT NULL CHECK(review_no > 0),
    done_date TEXT NOT NULL,
    created_at TEXT NOT NULL,
    UNIQUE(unit_id, review_no),
    UNIQUE(unit_id, done_date)
);
CREATE INDEX IF NOT EXISTS idx_reviews_unit ON reviews(unit_id);
CREATE INDEX IF NOT EXISTS idx_reviews_date ON reviews(done_date);
"""


def init_db(db_path: pathlib.Path | str) -> sqlite3.Connection:
    db_path = pathlib.Path(db_path)
    if str(db_path) != ":memory:":
        db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path), timeout=5, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    if str(db_path) != ":memory:":
        conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.executescript(SCHEMA)
    conn.commit()
    return conn


@contextlib.contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run the block as one write transaction.

    Commits when the block finishes, rolls back if it raises. Transactions
    do not nest.
    """
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.rollback()
        raise
    conn.commit()
