"""Shared data classes for subjects, units, reviews and unit status."""

from dataclasses import dataclass
from datetime import date, datetime, timezone


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def today_iso(today: date | None = None) -> str:
    return (today or date.today()).isoformat()


@dataclass
class Subject:
    name: str
    sort_order: int = 0
    created_at: str = ""
    id: int | None = None

    def to_record(self) -> dict:
        return {"id": self.id, "name": self.name, "sortOrder": self.sort_order,
                "createdAt": self.created_at}

    @classmethod
    def from_record(cls, rec: dict) -> "Subject":
        return cls(id=rec["id"], name=rec["name"], sort_order=rec["sortOrder"],
                   created_at=rec["createdAt"])


@dataclass
class Unit:
    subject_id: int
    unit_code: str
    title: str = ""
    created_at: str = ""
    id: int | None = None

    def to_record(self) -> dict:
        return {"id": self.id, "subjectId": self.subject_id, "unitCode": self.unit_code,
                "title": self.title, "createdAt": self.created_at}

    @classmethod
    def from_record(cls, rec: dict) -> "Unit":
        return cls(id=rec["id"], subject_id=rec["subjectId"], unit_code=rec["unitCode"],
                   title=rec.get("title") or "", created_at=rec["createdAt"])


@dataclass
class Review:
    unit_id: int
    review_no: int
    done_date: str
    created_at: str = ""
    id: int | None = None

    def to_record(self) -> dict:
        return {"id": self.id, "unitId": self.unit_id, "reviewNo": self.review_no,
                "doneDate": self.done_date, "createdAt": self.created_at}

    @classmethod
    def from_record(cls, rec: dict) -> "Review":
        return cls(id=rec["id"], unit_id=rec["unitId"], review_no=rec["reviewNo"],
                   done_date=rec["doneDate"], created_at=rec["createdAt"])


@dataclass
class UnitStatus:
    last_no: int = 0
    last_date: str = ""
    next_due: str = ""

    def to_record(self) -> dict:
        return {"lastNo": self.last_no, "lastDate": self.last_date, "nextDue": self.next_due}
