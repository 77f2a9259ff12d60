"""Entity store: keyed storage for subjects, units and reviews.

Every entity kind is a table with an integer id, a fixed column list and
zero or more unique keys. The functions here never commit; callers wrap
writes in ``studylog.db.transaction``. ``sqlite3.IntegrityError`` is
translated into ``DuplicateKey`` (unique keys) or ``NotFound`` (missing
parent row).
"""

import sqlite3
from dataclasses import dataclass

from studylog.errors import DuplicateKey, NotFound
from studylog.models import Review, Subject, Unit


@dataclass(frozen=True)
class Kind:
    table: str
    model: type
    columns: tuple[str, ...]
    unique_keys: tuple[tuple[str, ...], ...] = ()
    parent: tuple[str, str] | None = None  # (fk column, parent kind)


KINDS: dict[str, Kind] = {
    "subjects": Kind("subjects", Subject, ("name", "sort_order", "created_at"),
                     unique_keys=(("name",),)),
    "units": Kind("units", Unit, ("subject_id", "unit_code", "title", "created_at"),
                  unique_keys=(("subject_id", "unit_code"),),
                  parent=("subject_id", "subjects")),
    "reviews": Kind("reviews", Review, ("unit_id", "review_no", "done_date", "created_at"),
                    unique_keys=(("unit_id", "review_no"), ("unit_id", "done_date")),
                    parent=("unit_id", "units")),
}

# Children before parents, so deletes never trip a foreign key.
DELETE_ORDER = ("reviews", "units", "subjects")


def _kind(kind: str) -> Kind:
    try:
        return KINDS[kind]
    except KeyError:
        raise ValueError(f"Unknown entity kind: {kind}") from None


def _to_model(k: Kind, row: sqlite3.Row):
    return k.model(**dict(row))


def _translate(k: Kind, obj, e: sqlite3.IntegrityError) -> Exception | None:
    msg = str(e)
    if "FOREIGN KEY" in msg and k.parent:
        fk, parent = k.parent
        return NotFound(f"{parent[:-1].capitalize()} {getattr(obj, fk)} not found")
    if not msg.startswith("UNIQUE"):
        return None
    for key in k.unique_keys:
        cols = ", ".join(f"{k.table}.{c}" for c in key)
        if msg.endswith(cols):
            return DuplicateKey(k.table, tuple(getattr(obj, c) for c in key))
    if msg.endswith(f"{k.table}.id"):
        return DuplicateKey(k.table, (obj.id,))
    return None


def insert(conn: sqlite3.Connection, kind: str, obj) -> int:
    """Insert a new record and return its id. Sets ``obj.id``."""
    k = _kind(kind)
    cols = list(k.columns)
    values = [getattr(obj, c) for c in cols]
    if obj.id is not None:
        cols.insert(0, "id")
        values.insert(0, obj.id)
    placeholders = ",".join("?" * len(cols))
    try:
        cur = conn.execute(
            f"INSERT INTO {k.table} ({', '.join(cols)}) VALUES ({placeholders})", values)
    except sqlite3.IntegrityError as e:
        err = _translate(k, obj, e)
        if err is None:
            raise
        raise err from e
    obj.id = cur.lastrowid
    return obj.id


def put(conn: sqlite3.Connection, kind: str, obj):
    """Insert or replace the record with ``obj.id``. Unique keys still apply."""
    k = _kind(kind)
    if obj.id is None:
        raise ValueError(f"put on {kind} requires an id")
    cols = ("id",) + k.columns
    placeholders = ",".join("?" * len(cols))
    updates = ", ".join(f"{c}=excluded.{c}" for c in k.columns)
    try:
        conn.execute(
            f"INSERT INTO {k.table} ({', '.join(cols)}) VALUES ({placeholders}) "
            f"ON CONFLICT(id) DO UPDATE SET {updates}",
            [getattr(obj, c) for c in cols])
    except sqlite3.IntegrityError as e:
        err = _translate(k, obj, e)
        if err is None:
            raise
        raise err from e


def get(conn: sqlite3.Connection, kind: str, record_id: int):
    k = _kind(kind)
    row = conn.execute(f"SELECT * FROM {k.table} WHERE id=?", (record_id,)).fetchone()
    return _to_model(k, row) if row else None


def get_all(conn: sqlite3.Connection, kind: str) -> list:
    k = _kind(kind)
    return [_to_model(k, r) for r in conn.execute(f"SELECT * FROM {k.table} ORDER BY id")]


def delete(conn: sqlite3.Connection, kind: str, record_id: int):
    k = _kind(kind)
    conn.execute(f"DELETE FROM {k.table} WHERE id=?", (record_id,))


def find_by_unique_key(conn: sqlite3.Connection, kind: str, key: dict):
    """Look up one record by a unique key, e.g. ``{"subject_id": 1, "unit_code": "1-1"}``."""
    k = _kind(kind)
    fields = tuple(key)
    if fields not in k.unique_keys:
        raise ValueError(f"{fields} is not a unique key of {kind}")
    where = " AND ".join(f"{f}=?" for f in fields)
    row = conn.execute(f"SELECT * FROM {k.table} WHERE {where}",
                       [key[f] for f in fields]).fetchone()
    return _to_model(k, row) if row else None


def find_by(conn: sqlite3.Connection, kind: str, field: str, value) -> list:
    """All records whose ``field`` equals ``value``, ordered by id."""
    k = _kind(kind)
    if field not in k.columns:
        raise ValueError(f"Unknown {kind} field: {field}")
    return [_to_model(k, r) for r in conn.execute(
        f"SELECT * FROM {k.table} WHERE {field}=? ORDER BY id", (value,))]


def clear(conn: sqlite3.Connection, kinds=DELETE_ORDER):
    for kind in DELETE_ORDER:
        if kind in kinds:
            conn.execute(f"DELETE FROM {_kind(kind).table}")
