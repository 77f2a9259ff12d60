"""App: central object that wires together data_dir, settings and db."""

import pathlib
import sqlite3

from studylog.config import get_data_dir, load_settings
from studylog.db import init_db
from studylog.snapshot import seed_default_subjects


class App:
    """Holds all shared state for a studylog session.

    Usage:
        app = App(data_dir="/path/to/studylog")
        app.init_db()                    # uses data_dir/studylog.db
        ...
        app.close()

    For testing:
        app = App(data_dir=tmp_path)
        app.init_db(":memory:")
    """

    def __init__(self, data_dir: pathlib.Path | str | None = None):
        if data_dir is None:
            data_dir = get_data_dir()
        self.data_dir = pathlib.Path(data_dir)
        self.settings = load_settings(self.data_dir)
        self.conn: sqlite3.Connection | None = None

    @property
    def db_path(self) -> pathlib.Path:
        return self.data_dir / self.settings.get("db_name", "studylog.db")

    def init_db(self, db_path: pathlib.Path | str | None = None,
                seed: bool = True) -> sqlite3.Connection:
        """Initialize (or connect to) the database.

        Args:
            db_path: Path to the SQLite database file, or ":memory:" for
                     in-memory databases (useful for testing). Defaults to
                     data_dir/<settings db_name>.
            seed:    Insert the default subjects into an empty database.
        """
        if db_path is None:
            db_path = self.db_path
        self.conn = init_db(db_path)
        if seed:
            seed_default_subjects(self.conn)
        return self.conn

    def close(self):
        """Close the database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
