"""Subject, unit and review operations on top of the entity store."""

import re
import sqlite3
from datetime import date, datetime

from studylog import store
from studylog.db import transaction
from studylog.errors import DuplicateKey, NotFound, ValidationError
from studylog.models import Review, Subject, Unit, UnitStatus, now_iso
from studylog.scheduling import unit_status

UNIT_CODE_RE = re.compile(r"[0-9]+-[0-9]+")
DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
# Largest value an SQLite INTEGER column holds.
MAX_REVIEW_NO = 2**63 - 1


# ─── Validation ──────────────────────────────────────────────────────────────

def is_unit_code(code: str) -> bool:
    return bool(UNIT_CODE_RE.fullmatch(code or ""))


def validate_unit_code(code: str) -> str:
    code = (code or "").strip()
    if not is_unit_code(code):
        raise ValidationError(f"Unit code must look like 1-1 (digits-digits): {code!r}")
    return code


def validate_review_no(review_no) -> int:
    if isinstance(review_no, str) and review_no.strip().isascii() and review_no.strip().isdigit():
        review_no = int(review_no)
    elif isinstance(review_no, float) and review_no.is_integer():
        review_no = int(review_no)
    if (isinstance(review_no, bool) or not isinstance(review_no, int)
            or not 0 < review_no <= MAX_REVIEW_NO):
        raise ValidationError(f"Review number must be a positive integer: {review_no!r}")
    return review_no


def validate_date(done_date) -> str:
    if isinstance(done_date, datetime):
        return done_date.date().isoformat()
    if isinstance(done_date, date):
        return done_date.isoformat()
    if not done_date:
        raise ValidationError("Study date is required")
    done_date = str(done_date).strip()
    try:
        if not DATE_RE.fullmatch(done_date):
            raise ValueError(done_date)
        date.fromisoformat(done_date)
    except ValueError:
        raise ValidationError(f"Study date must be YYYY-MM-DD: {done_date!r}") from None
    return done_date


# ─── Subjects ────────────────────────────────────────────────────────────────

def list_subjects(conn: sqlite3.Connection) -> list[Subject]:
    subjects = store.get_all(conn, "subjects")
    subjects.sort(key=lambda s: (s.sort_order, s.name))
    return subjects


def get_subject(conn: sqlite3.Connection, subject_id: int) -> Subject | None:
    return store.get(conn, "subjects", subject_id)


def find_subject(conn: sqlite3.Connection, ref: str | int) -> Subject:
    """Resolve a subject by name, falling back to id. Raises NotFound."""
    if isinstance(ref, str):
        subject = store.find_by_unique_key(conn, "subjects", {"name": ref.strip()})
        if subject:
            return subject
        if not ref.strip().isdigit():
            raise NotFound(f"Subject not found: {ref}")
    subject = store.get(conn, "subjects", int(ref))
    if subject is None:
        raise NotFound(f"Subject not found: {ref}")
    return subject


def add_subject(conn: sqlite3.Connection, name: str) -> int:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Subject name is empty")
    with transaction(conn):
        top = conn.execute("SELECT MAX(sort_order) AS m FROM subjects").fetchone()["m"]
        subject = Subject(name=name, sort_order=0 if top is None else top + 1,
                          created_at=now_iso())
        return store.insert(conn, "subjects", subject)


def move_subject(conn: sqlite3.Connection, subject_id: int, direction: int) -> bool:
    """Swap a subject with its neighbour and renumber all sort orders 0..n-1.

    Returns False (and writes nothing) for an unknown id or a move past
    either end of the list.
    """
    if direction not in (-1, 1):
        raise ValidationError(f"Direction must be -1 or +1: {direction!r}")
    with transaction(conn):
        subjects = list_subjects(conn)
        idx = next((i for i, s in enumerate(subjects) if s.id == subject_id), None)
        if idx is None:
            return False
        j = idx + direction
        if not 0 <= j < len(subjects):
            return False
        subjects[idx], subjects[j] = subjects[j], subjects[idx]
        for i, s in enumerate(subjects):
            s.sort_order = i
            store.put(conn, "subjects", s)
    return True


# ─── Units ───────────────────────────────────────────────────────────────────

def list_units_by_subject(conn: sqlite3.Connection, subject_id: int) -> list[Unit]:
    units = store.find_by(conn, "units", "subject_id", subject_id)
    units.sort(key=lambda u: u.unit_code)
    return units


def get_unit(conn: sqlite3.Connection, unit_id: int) -> Unit | None:
    return store.get(conn, "units", unit_id)


def require_unit(conn: sqlite3.Connection, unit_id: int) -> Unit:
    unit = store.get(conn, "units", unit_id)
    if unit is None:
        raise NotFound(f"Unit not found: {unit_id}")
    return unit


def find_unit(conn: sqlite3.Connection, subject_id: int, code: str) -> Unit:
    unit = store.find_by_unique_key(
        conn, "units", {"subject_id": subject_id, "unit_code": (code or "").strip()})
    if unit is None:
        raise NotFound(f"Unit not found: {code}")
    return unit


def get_or_create_unit(conn: sqlite3.Connection, subject_id: int, code: str) -> int:
    code = validate_unit_code(code)
    with transaction(conn):
        found = store.find_by_unique_key(
            conn, "units", {"subject_id": subject_id, "unit_code": code})
        if found:
            return found.id
        unit = Unit(subject_id=subject_id, unit_code=code, title="", created_at=now_iso())
        return store.insert(conn, "units", unit)


def update_unit_title(conn: sqlite3.Connection, unit_id: int, title: str) -> bool:
    with transaction(conn):
        unit = store.get(conn, "units", unit_id)
        if unit is None:
            return False
        unit.title = title or ""
        store.put(conn, "units", unit)
    return True


def set_title_if_allowed(conn: sqlite3.Connection, unit_id: int, title: str | None,
                         overwrite: bool = False) -> bool:
    """Write ``title`` only if the unit has none yet, or ``overwrite`` is set."""
    title = (title or "").strip()
    if not title:
        return False
    unit = get_unit(conn, unit_id)
    if unit is None or (unit.title and not overwrite):
        return False
    return update_unit_title(conn, unit_id, title)


def delete_unit(conn: sqlite3.Connection, unit_id: int) -> bool:
    """Delete a unit together with all of its reviews."""
    with transaction(conn):
        if store.get(conn, "units", unit_id) is None:
            return False
        for review in store.find_by(conn, "reviews", "unit_id", unit_id):
            store.delete(conn, "reviews", review.id)
        store.delete(conn, "units", unit_id)
    return True


def compute_unit_status(conn: sqlite3.Connection, unit: Unit) -> UnitStatus:
    return unit_status(list_reviews_by_unit(conn, unit.id))


# ─── Reviews ─────────────────────────────────────────────────────────────────

def list_reviews_by_unit(conn: sqlite3.Connection, unit_id: int) -> list[Review]:
    reviews = store.find_by(conn, "reviews", "unit_id", unit_id)
    reviews.sort(key=lambda r: (r.review_no, r.done_date, r.id))
    return reviews


def get_next_review_no(conn: sqlite3.Connection, unit_id: int) -> int:
    reviews = store.find_by(conn, "reviews", "unit_id", unit_id)
    if not reviews:
        return 1
    return max(r.review_no for r in reviews) + 1


def insert_review(conn: sqlite3.Connection, unit_id: int, review_no: int,
                  done_date: str) -> int:
    review_no = validate_review_no(review_no)
    done_date = validate_date(done_date)
    review = Review(unit_id=unit_id, review_no=review_no, done_date=done_date,
                    created_at=now_iso())
    with transaction(conn):
        return store.insert(conn, "reviews", review)


def update_review(conn: sqlite3.Connection, review_id: int, unit_id: int,
                  review_no: int, done_date: str) -> bool:
    """Change a review's number and date.

    The new values are checked against every other review of the unit
    before writing. Returns False when the review is gone or belongs to a
    different unit.
    """
    review_no = validate_review_no(review_no)
    done_date = validate_date(done_date)
    with transaction(conn):
        review = store.get(conn, "reviews", review_id)
        if review is None or review.unit_id != unit_id:
            return False
        for other in store.find_by(conn, "reviews", "unit_id", unit_id):
            if other.id == review_id:
                continue
            if other.review_no == review_no:
                raise DuplicateKey("reviews", (unit_id, review_no),
                                   f"Review number {review_no} already exists")
            if other.done_date == done_date:
                raise DuplicateKey("reviews", (unit_id, done_date),
                                   f"A review dated {done_date} already exists")
        review.review_no = review_no
        review.done_date = done_date
        review.created_at = now_iso()
        store.put(conn, "reviews", review)
    return True


def delete_review(conn: sqlite3.Connection, review_id: int) -> bool:
    with transaction(conn):
        if store.get(conn, "reviews", review_id) is None:
            return False
        store.delete(conn, "reviews", review_id)
    return True


def renumber_reviews(conn: sqlite3.Connection, unit_id: int) -> int:
    """Renumber a unit's reviews 1..n in (done_date, id) order. Returns n."""
    with transaction(conn):
        reviews = store.find_by(conn, "reviews", "unit_id", unit_id)
        if not reviews:
            return 0
        ordered = sorted(reviews, key=lambda r: (r.done_date, r.id))
        # Park every row above the current maximum first; UNIQUE(unit_id,
        # review_no) is checked per statement.
        top = max(r.review_no for r in reviews)
        for i, r in enumerate(ordered, 1):
            r.review_no = top + i
            store.put(conn, "reviews", r)
        for i, r in enumerate(ordered, 1):
            r.review_no = i
            store.put(conn, "reviews", r)
    return len(ordered)


def record_review(conn: sqlite3.Connection, subject_id: int, code: str, done_date: str,
                  review_no: int | None = None, title: str | None = None,
                  overwrite: bool = False) -> tuple[int, int]:
    """Record one review for ``code``, creating the unit if needed.

    Uses ``review_no`` when given, else the next free number. A clash on
    number or date raises DuplicateKey. Returns (unit_id, review_no).
    """
    code = validate_unit_code(code)
    done_date = validate_date(done_date)
    if review_no is not None:
        review_no = validate_review_no(review_no)

    unit_id = get_or_create_unit(conn, subject_id, code)
    set_title_if_allowed(conn, unit_id, title, overwrite)

    if review_no is None:
        review_no = get_next_review_no(conn, unit_id)
    elif any(r.review_no == review_no for r in list_reviews_by_unit(conn, unit_id)):
        raise DuplicateKey("reviews", (unit_id, review_no),
                           f"Review number {review_no} already exists for {code}")
    insert_review(conn, unit_id, review_no, done_date)
    return unit_id, review_no
