"""Tests for studylog.models dataclasses."""

import re
from datetime import date

from studylog.models import Review, Subject, Unit, UnitStatus, now_iso, today_iso


def test_subject_defaults():
    s = Subject(name="Tax")
    assert s.sort_order == 0
    assert s.id is None


def test_subject_record_uses_camel_case():
    s = Subject(id=1, name="Tax", sort_order=2, created_at="2024-01-01T00:00:00.000Z")
    assert s.to_record() == {"id": 1, "name": "Tax", "sortOrder": 2,
                             "createdAt": "2024-01-01T00:00:00.000Z"}
    assert Subject.from_record(s.to_record()) == s


def test_unit_record():
    u = Unit(id=3, subject_id=1, unit_code="1-2", title="Intro", created_at="t")
    assert u.to_record()["unitCode"] == "1-2"
    assert u.to_record()["subjectId"] == 1
    assert Unit.from_record(u.to_record()) == u


def test_unit_from_record_null_title():
    rec = {"id": 1, "subjectId": 1, "unitCode": "1-1", "title": None, "createdAt": "t"}
    assert Unit.from_record(rec).title == ""


def test_review_record():
    r = Review(id=5, unit_id=3, review_no=2, done_date="2024-01-02", created_at="t")
    assert r.to_record() == {"id": 5, "unitId": 3, "reviewNo": 2, "doneDate": "2024-01-02",
                             "createdAt": "t"}
    assert Review.from_record(r.to_record()) == r


def test_unit_status_defaults():
    assert UnitStatus().to_record() == {"lastNo": 0, "lastDate": "", "nextDue": ""}


def test_now_iso_format():
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", now_iso())


def test_today_iso():
    assert today_iso(date(2024, 2, 29)) == "2024-02-29"
    assert today_iso() == date.today().isoformat()
