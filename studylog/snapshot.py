"""Whole-store snapshots: export, overwrite import, wipe and seeding."""

import json
import pathlib
import sqlite3
from datetime import date

from studylog import store
from studylog.db import transaction
from studylog.errors import DuplicateKey, FormatError, NotFound
from studylog.models import Review, Subject, Unit, now_iso, today_iso

SCHEMA_VERSION = 1

DEFAULT_SUBJECTS = ["消費税法", "所得税法", "法人税法", "住民税", "国税徴収法"]

# Import order: parents before children.
SECTIONS = (("subjects", Subject), ("units", Unit), ("reviews", Review))


def export_snapshot(conn: sqlite3.Connection) -> dict:
    data = {"schemaVersion": SCHEMA_VERSION, "exportedAt": now_iso()}
    for kind, _model in SECTIONS:
        data[kind] = [obj.to_record() for obj in store.get_all(conn, kind)]
    return data


def import_overwrite(conn: sqlite3.Connection, data) -> dict:
    """Replace the whole store with ``data``, keeping every record's id.

    Either every record is imported or the store is left as it was.
    Returns per-kind record counts.
    """
    if not isinstance(data, dict) or not all(
            isinstance(data.get(kind), list) for kind, _ in SECTIONS):
        raise FormatError("Snapshot must contain subjects, units and reviews lists")

    counts = {}
    with transaction(conn):
        store.clear(conn)
        for kind, model in SECTIONS:
            for rec in data[kind]:
                try:
                    obj = model.from_record(rec)
                except (KeyError, TypeError, AttributeError) as e:
                    raise FormatError(f"Malformed {kind} record {rec!r}: {e}") from e
                try:
                    store.insert(conn, kind, obj)
                except (DuplicateKey, NotFound, sqlite3.Error, OverflowError) as e:
                    raise FormatError(f"Inconsistent {kind} record {rec!r}: {e}") from e
            counts[kind] = len(data[kind])
    return counts


def clear_all(conn: sqlite3.Connection):
    with transaction(conn):
        store.clear(conn)


def seed_default_subjects(conn: sqlite3.Connection) -> bool:
    """Insert the default subjects into an empty store. Returns True if seeded."""
    with transaction(conn):
        if store.get_all(conn, "subjects"):
            return False
        created_at = now_iso()
        for i, name in enumerate(DEFAULT_SUBJECTS):
            store.insert(conn, "subjects", Subject(name=name, sort_order=i, created_at=created_at))
    return True


def reset(conn: sqlite3.Connection):
    clear_all(conn)
    seed_default_subjects(conn)


def default_snapshot_name(today: date | None = None) -> str:
    return f"study-sync-{today_iso(today)}.json"


def write_snapshot(conn: sqlite3.Connection, path: pathlib.Path | str) -> dict:
    data = export_snapshot(conn)
    pathlib.Path(path).write_text(json.dumps(data, ensure_ascii=False, indent=2),
                                  encoding="utf-8")
    return data


def read_snapshot(path: pathlib.Path | str) -> dict:
    try:
        return json.loads(pathlib.Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise FormatError(f"Snapshot is not valid JSON: {e}") from e
