"""Tests for studylog.ingest — free-text parsing and bulk recording."""

from datetime import date

import pytest

from studylog.errors import ValidationError
from studylog.ingest import Entry, parse_entries, record_entries, record_text
from studylog.ledger import (MAX_REVIEW_NO, find_unit, get_or_create_unit, insert_review,
                             list_reviews_by_unit, list_units_by_subject, update_unit_title)

TODAY = date(2024, 5, 1)


def test_parse_entries_first_occurrence_wins():
    assert parse_entries("1-1:入門, 1-1:別名, 2-3") == [
        Entry(code="1-1", title="入門"), Entry(code="2-3", title=None)]


def test_parse_entries_separators():
    text = "1-1，1-2、1-3 1-4\n1-5\t1-6"
    assert [e.code for e in parse_entries(text)] == ["1-1", "1-2", "1-3", "1-4", "1-5", "1-6"]


def test_parse_entries_title_delimiters():
    entries = parse_entries("1-1:A 1-2：B 1-3=C")
    assert [(e.code, e.title) for e in entries] == [("1-1", "A"), ("1-2", "B"), ("1-3", "C")]


def test_parse_entries_title_keeps_later_delimiters():
    assert parse_entries("1-1:a=b") == [Entry(code="1-1", title="a:b")]


def test_parse_entries_empty_title_is_none():
    assert parse_entries("1-1:") == [Entry(code="1-1", title=None)]


def test_parse_entries_keeps_malformed_codes():
    assert [e.code for e in parse_entries("x, 1-1")] == ["x", "1-1"]


@pytest.mark.parametrize("text", ["", "   ", " , 、 ", None])
def test_parse_entries_empty(text):
    assert parse_entries(text) == []


def test_record_entries(db_conn, subject_id):
    entries = parse_entries("1-1:Intro, 1-2, bad")
    stats = record_entries(db_conn, subject_id, entries, today=TODAY)
    assert stats == {"recorded": ["1-1", "1-2"], "duplicate": [], "invalid": ["bad"]}
    unit = find_unit(db_conn, subject_id, "1-1")
    assert unit.title == "Intro"
    reviews = list_reviews_by_unit(db_conn, unit.id)
    assert [(r.review_no, r.done_date) for r in reviews] == [(1, "2024-05-01")]


def test_record_entries_numbers_continue(db_conn, subject_id):
    uid = get_or_create_unit(db_conn, subject_id, "1-1")
    insert_review(db_conn, uid, 3, "2024-04-01")
    record_entries(db_conn, subject_id, [Entry("1-1")], today=TODAY)
    assert [r.review_no for r in list_reviews_by_unit(db_conn, uid)] == [3, 4]


def test_record_entries_same_day_is_duplicate(db_conn, subject_id):
    record_entries(db_conn, subject_id, [Entry("1-1")], today=TODAY)
    stats = record_entries(db_conn, subject_id, [Entry("1-1"), Entry("1-2")], today=TODAY)
    assert stats["recorded"] == ["1-2"]
    assert stats["duplicate"] == ["1-1"]
    uid = find_unit(db_conn, subject_id, "1-1").id
    assert len(list_reviews_by_unit(db_conn, uid)) == 1


def test_record_entries_exhausted_numbering_does_not_abort_batch(db_conn, subject_id):
    uid = get_or_create_unit(db_conn, subject_id, "1-1")
    insert_review(db_conn, uid, MAX_REVIEW_NO, "2024-04-01")
    stats = record_entries(db_conn, subject_id, [Entry("1-1"), Entry("1-2")], today=TODAY)
    assert stats == {"recorded": ["1-2"], "duplicate": [], "invalid": ["1-1"]}
    assert len(list_reviews_by_unit(db_conn, uid)) == 1


def test_record_entries_title_not_overwritten(db_conn, subject_id):
    uid = get_or_create_unit(db_conn, subject_id, "1-1")
    update_unit_title(db_conn, uid, "Old")
    record_entries(db_conn, subject_id, [Entry("1-1", "New")], today=TODAY)
    assert find_unit(db_conn, subject_id, "1-1").title == "Old"


def test_record_entries_title_overwritten_on_request(db_conn, subject_id):
    uid = get_or_create_unit(db_conn, subject_id, "1-1")
    update_unit_title(db_conn, uid, "Old")
    record_entries(db_conn, subject_id, [Entry("1-1", "New")], overwrite=True, today=TODAY)
    assert find_unit(db_conn, subject_id, "1-1").title == "New"


def test_record_text_requires_entries(db_conn, subject_id):
    with pytest.raises(ValidationError):
        record_text(db_conn, subject_id, " ,, ", today=TODAY)
    assert list_units_by_subject(db_conn, subject_id) == []


def test_record_text(db_conn, subject_id):
    stats = record_text(db_conn, subject_id, "2-1=Summary 2-2", today=TODAY)
    assert stats["recorded"] == ["2-1", "2-2"]
    assert find_unit(db_conn, subject_id, "2-1").title == "Summary"
