"""Fixed-interval review scheduling.

A unit's next review is due a fixed number of days after its latest review,
depending only on how many reviews it has had:

    after review 1   ->  1 day
    after review 2   ->  7 days
    after review 3   -> 14 days
    after review 4+  -> 20 days
"""

from datetime import date, timedelta
from typing import Iterable

from studylog.models import Review, UnitStatus

UPCOMING_DAYS = 7


def interval_days(last_no: int) -> int:
    if last_no == 1:
        return 1
    if last_no == 2:
        return 7
    if last_no == 3:
        return 14
    return 20


def next_due(last_no: int, last_date: str) -> str:
    due = date.fromisoformat(last_date) + timedelta(days=interval_days(last_no))
    return due.isoformat()


def unit_status(reviews: Iterable[Review]) -> UnitStatus:
    """Status of a unit from its full review history.

    Among reviews sharing the highest number, the most recently inserted
    one (largest id) supplies the last review date.
    """
    reviews = list(reviews)
    if not reviews:
        return UnitStatus()
    last_no = max(r.review_no for r in reviews)
    latest = max((r for r in reviews if r.review_no == last_no), key=lambda r: r.id)
    return UnitStatus(last_no=last_no, last_date=latest.done_date,
                      next_due=next_due(last_no, latest.done_date))


def overdue_days(status: UnitStatus, today: date | None = None) -> int:
    if not status.last_no:
        return 0
    today = today or date.today()
    return max(0, (today - date.fromisoformat(status.next_due)).days)


def is_due(status: UnitStatus, today: date | None = None) -> bool:
    if not status.last_no:
        return False
    today = today or date.today()
    return date.fromisoformat(status.next_due) <= today


def is_upcoming(status: UnitStatus, today: date | None = None,
                days: int = UPCOMING_DAYS) -> bool:
    if not status.last_no:
        return False
    today = today or date.today()
    return today <= date.fromisoformat(status.next_due) <= today + timedelta(days=days)
