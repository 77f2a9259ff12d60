"""Due and upcoming review listings across all subjects."""

import sqlite3
from dataclasses import dataclass
from datetime import date
from itertools import groupby

from studylog import store
from studylog.ledger import list_reviews_by_unit
from studylog.scheduling import UPCOMING_DAYS, is_due, is_upcoming, overdue_days, unit_status

MISSING_SUBJECT_ORDER = 999


@dataclass
class AgendaEntry:
    subject_id: int
    subject: str
    subject_order: int
    unit_id: int
    unit_code: str
    title: str
    last_no: int
    last_date: str
    next_due: str
    overdue: int = 0

    def to_record(self) -> dict:
        return {"subjectId": self.subject_id, "subject": self.subject,
                "subjectOrder": self.subject_order, "unitId": self.unit_id,
                "unitCode": self.unit_code, "title": self.title, "lastNo": self.last_no,
                "lastDate": self.last_date, "nextDue": self.next_due, "overdue": self.overdue}


def _entries(conn: sqlite3.Connection, today: date, keep) -> list[AgendaEntry]:
    subjects = {s.id: s for s in store.get_all(conn, "subjects")}
    entries = []
    for unit in store.get_all(conn, "units"):
        status = unit_status(list_reviews_by_unit(conn, unit.id))
        if not keep(status):
            continue
        subject = subjects.get(unit.subject_id)
        entries.append(AgendaEntry(
            subject_id=unit.subject_id,
            subject=subject.name if subject else "",
            subject_order=subject.sort_order if subject else MISSING_SUBJECT_ORDER,
            unit_id=unit.id,
            unit_code=unit.unit_code,
            title=unit.title or "",
            last_no=status.last_no,
            last_date=status.last_date,
            next_due=status.next_due,
            overdue=overdue_days(status, today),
        ))
    return entries


def due_units(conn: sqlite3.Connection, today: date | None = None) -> list[AgendaEntry]:
    """Units whose next review is today or earlier, most overdue first per subject."""
    today = today or date.today()
    entries = _entries(conn, today, lambda s: is_due(s, today))
    entries.sort(key=lambda e: (e.subject_order, -e.overdue, e.next_due, e.unit_code))
    return entries


def upcoming_units(conn: sqlite3.Connection, today: date | None = None,
                   days: int = UPCOMING_DAYS) -> list[AgendaEntry]:
    """Units due between today and ``days`` days from now, inclusive."""
    today = today or date.today()
    entries = _entries(conn, today, lambda s: is_upcoming(s, today, days))
    entries.sort(key=lambda e: (e.next_due, e.subject_order, e.unit_code))
    return entries


def group_by_due(entries: list[AgendaEntry]) -> list[tuple[str, list[AgendaEntry]]]:
    return [(due, list(group)) for due, group in groupby(entries, key=lambda e: e.next_due)]
