"""Bulk ingest: record today's reviews for many units from free-form text.

Input looks like ``1-1:Intro, 1-2 2-3=Summary``: entries separated by
commas (ASCII, full-width or ideographic) or whitespace, each an optional
``code:title`` pair.
"""

import re
import sqlite3
from dataclasses import dataclass
from datetime import date

from studylog.errors import DuplicateKey, ValidationError
from studylog.ledger import (get_next_review_no, get_or_create_unit, insert_review,
                             is_unit_code, set_title_if_allowed)
from studylog.models import today_iso

SEPARATORS = re.compile(r"[,，、\s]+")
TITLE_DELIMITERS = re.compile(r"[:：=]")


@dataclass
class Entry:
    code: str
    title: str | None = None


def parse_entries(text: str) -> list[Entry]:
    """Parse entries, keeping only the first occurrence of each code."""
    entries = []
    seen: set[str] = set()
    for token in SEPARATORS.split((text or "").strip()):
        token = token.strip()
        if not token:
            continue
        code, title = token, ""
        parts = TITLE_DELIMITERS.split(token)
        if len(parts) >= 2:
            code = parts[0].strip()
            title = ":".join(parts[1:]).strip()
        if code in seen:
            continue
        seen.add(code)
        entries.append(Entry(code=code, title=title or None))
    return entries


def record_entries(conn: sqlite3.Connection, subject_id: int, entries: list[Entry],
                   overwrite: bool = False, today: date | None = None) -> dict:
    """Record a review dated today for every entry. Returns stats dict.

    Entries with a malformed code, or a unit whose numbering has run out,
    are skipped and listed under "invalid".
    A unit already reviewed today is listed under "duplicate"; that is not
    an error here.
    """
    stats: dict[str, list[str]] = {"recorded": [], "duplicate": [], "invalid": []}
    done_date = today_iso(today)

    for entry in entries:
        if not is_unit_code(entry.code):
            stats["invalid"].append(entry.code)
            continue
        unit_id = get_or_create_unit(conn, subject_id, entry.code)
        if entry.title:
            set_title_if_allowed(conn, unit_id, entry.title, overwrite)
        try:
            insert_review(conn, unit_id, get_next_review_no(conn, unit_id), done_date)
        except DuplicateKey:
            stats["duplicate"].append(entry.code)
            continue
        except ValidationError:
            # Next review number past the INTEGER range
            stats["invalid"].append(entry.code)
            continue
        stats["recorded"].append(entry.code)
    return stats


def record_text(conn: sqlite3.Connection, subject_id: int, text: str,
                overwrite: bool = False, today: date | None = None) -> dict:
    entries = parse_entries(text)
    if not entries:
        raise ValidationError("Nothing to record")
    return record_entries(conn, subject_id, entries, overwrite=overwrite, today=today)
