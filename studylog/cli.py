"""CLI: command-line interface for studylog."""

import argparse
import sys

from studylog import store
from studylog.agenda import due_units, group_by_due, upcoming_units
from studylog.app import App
from studylog.errors import StudylogError
from studylog.ingest import record_text
from studylog.ledger import (add_subject, compute_unit_status, delete_review, delete_unit,
                             find_subject, find_unit, list_reviews_by_unit,
                             list_subjects, list_units_by_subject, move_subject,
                             record_review, renumber_reviews, update_review)
from studylog.models import today_iso
from studylog.snapshot import (default_snapshot_name, import_overwrite, read_snapshot,
                               reset, write_snapshot)


def _overwrite(args, app: App) -> bool:
    return bool(args.overwrite or app.settings.get("overwrite_titles", False))


def cmd_subjects(args, app: App):
    for s in list_subjects(app.conn):
        print(f"{s.id:>4}  {s.name}")


def cmd_add_subject(args, app: App):
    add_subject(app.conn, args.name)
    print(f"Added subject: {args.name.strip()}")


def cmd_move_subject(args, app: App):
    subject = find_subject(app.conn, args.subject)
    direction = -1 if args.direction == "up" else 1
    if move_subject(app.conn, subject.id, direction):
        print(f"Moved {subject.name} {args.direction}")
    else:
        print(f"{subject.name} is already at the {'top' if direction < 0 else 'bottom'}")


def cmd_units(args, app: App):
    subject = find_subject(app.conn, args.subject)
    units = list_units_by_subject(app.conn, subject.id)
    if not units:
        print(f"No units in {subject.name}.")
        return
    print(f"{'Unit':<8} {'No':>3}  {'Last':<10}  {'Next':<10}  Title")
    for u in units:
        status = compute_unit_status(app.conn, u)
        print(f"{u.unit_code:<8} {status.last_no:>3}  {status.last_date:<10}  "
              f"{status.next_due:<10}  {u.title}")


def cmd_record(args, app: App):
    subject = find_subject(app.conn, args.subject)
    stats = record_text(app.conn, subject.id, " ".join(args.text),
                        overwrite=_overwrite(args, app))
    for code in stats["invalid"]:
        print(f"Warning: skipped '{code}' (bad unit code or review number)", file=sys.stderr)
    print(f"Recorded {len(stats['recorded'])} unit(s) for {today_iso()}"
          + (f", {len(stats['duplicate'])} already recorded today" if stats["duplicate"] else ""))


def cmd_add(args, app: App):
    subject = find_subject(app.conn, args.subject)
    done_date = args.date or today_iso()
    _unit_id, review_no = record_review(app.conn, subject.id, args.code, done_date,
                                        review_no=args.no, title=args.title,
                                        overwrite=_overwrite(args, app))
    print(f"Recorded {args.code.strip()} on {done_date} (review {review_no})")


def cmd_reviews(args, app: App):
    subject = find_subject(app.conn, args.subject)
    unit = find_unit(app.conn, subject.id, args.code)
    reviews = list_reviews_by_unit(app.conn, unit.id)
    if not reviews:
        print(f"No reviews for {unit.unit_code}.")
        return
    print(f"{'ID':>5}  {'No':>3}  Date")
    for r in reviews:
        print(f"{r.id:>5}  {r.review_no:>3}  {r.done_date}")


def cmd_edit_review(args, app: App):
    review = store.get(app.conn, "reviews", args.id)
    if review is None:
        print(f"No review with id {args.id}.")
        return
    review_no = args.no if args.no is not None else review.review_no
    done_date = args.date or review.done_date
    update_review(app.conn, review.id, review.unit_id, review_no, done_date)
    print(f"Updated review {review.id}: review {review_no} on {done_date}")


def cmd_delete_review(args, app: App):
    if delete_review(app.conn, args.id):
        print(f"Deleted review {args.id}")
    else:
        print(f"No review with id {args.id}.")


def cmd_delete_unit(args, app: App):
    subject = find_subject(app.conn, args.subject)
    unit = find_unit(app.conn, subject.id, args.code)
    delete_unit(app.conn, unit.id)
    print(f"Deleted {unit.unit_code} and its reviews")


def cmd_renumber(args, app: App):
    subject = find_subject(app.conn, args.subject)
    unit = find_unit(app.conn, subject.id, args.code)
    n = renumber_reviews(app.conn, unit.id)
    print(f"Renumbered {n} review(s) of {unit.unit_code}")


def cmd_due(args, app: App):
    entries = due_units(app.conn)
    if not entries:
        print("Nothing due.")
        return
    for e in entries:
        print(f"{e.subject:<10} {e.unit_code:<8} {e.last_no:>3}  {e.last_date}  "
              f"{e.next_due}  +{e.overdue}d  {e.title}")


def cmd_upcoming(args, app: App):
    entries = upcoming_units(app.conn)
    if not entries:
        print("Nothing due in the next 7 days.")
        return
    for due, group in group_by_due(entries):
        print(due)
        for e in group:
            print(f"  {e.subject:<10} {e.unit_code:<8} {e.last_no:>3}  {e.last_date}  {e.title}")


def cmd_export(args, app: App):
    path = args.file or default_snapshot_name()
    data = write_snapshot(app.conn, path)
    print(f"Exported {len(data['subjects'])} subjects, {len(data['units'])} units, "
          f"{len(data['reviews'])} reviews to {path}")


def cmd_import(args, app: App):
    counts = import_overwrite(app.conn, read_snapshot(args.file))
    print(f"Imported {counts['subjects']} subjects, {counts['units']} units, "
          f"{counts['reviews']} reviews")


def cmd_wipe(args, app: App):
    if not args.yes:
        print("Refusing to wipe without --yes", file=sys.stderr)
        sys.exit(1)
    reset(app.conn)
    print("All data erased; default subjects restored.")


def cmd_serve(args, app: App):
    from studylog.server import start_server

    settings = dict(app.settings)
    if args.port:
        settings["port"] = args.port
    start_server(app.conn, settings)


COMMANDS = {
    "subjects": cmd_subjects,
    "add-subject": cmd_add_subject,
    "move-subject": cmd_move_subject,
    "units": cmd_units,
    "record": cmd_record,
    "add": cmd_add,
    "reviews": cmd_reviews,
    "edit-review": cmd_edit_review,
    "delete-review": cmd_delete_review,
    "delete-unit": cmd_delete_unit,
    "renumber": cmd_renumber,
    "due": cmd_due,
    "upcoming": cmd_upcoming,
    "export": cmd_export,
    "import": cmd_import,
    "wipe": cmd_wipe,
    "serve": cmd_serve,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="studylog", description="Study review tracker")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("subjects", help="List subjects in display order")

    p = subparsers.add_parser("add-subject", help="Add a subject")
    p.add_argument("name")

    p = subparsers.add_parser("move-subject", help="Move a subject up or down")
    p.add_argument("subject", help="Subject name or id")
    p.add_argument("direction", choices=["up", "down"])

    p = subparsers.add_parser("units", help="List a subject's units with their status")
    p.add_argument("subject", help="Subject name or id")

    p = subparsers.add_parser("record", help="Record today's reviews, e.g. '1-1:Intro, 1-2'")
    p.add_argument("subject", help="Subject name or id")
    p.add_argument("text", nargs="+", help="Unit codes, optionally code:title")
    p.add_argument("--overwrite", action="store_true", help="Replace existing unit titles")

    p = subparsers.add_parser("add", help="Record one review with an explicit date/number")
    p.add_argument("subject", help="Subject name or id")
    p.add_argument("code", help="Unit code, e.g. 1-1")
    p.add_argument("--title", help="Unit title")
    p.add_argument("--date", help="Study date YYYY-MM-DD (default: today)")
    p.add_argument("--no", type=int, help="Review number (default: next)")
    p.add_argument("--overwrite", action="store_true", help="Replace an existing unit title")

    p = subparsers.add_parser("reviews", help="List a unit's reviews")
    p.add_argument("subject", help="Subject name or id")
    p.add_argument("code", help="Unit code")

    p = subparsers.add_parser("edit-review", help="Change a review's number and/or date")
    p.add_argument("id", type=int, help="Review id")
    p.add_argument("--no", type=int, help="New review number")
    p.add_argument("--date", help="New study date YYYY-MM-DD")

    p = subparsers.add_parser("delete-review", help="Delete one review")
    p.add_argument("id", type=int, help="Review id")

    p = subparsers.add_parser("delete-unit", help="Delete a unit and all of its reviews")
    p.add_argument("subject", help="Subject name or id")
    p.add_argument("code", help="Unit code")

    p = subparsers.add_parser("renumber", help="Renumber a unit's reviews 1..n by date")
    p.add_argument("subject", help="Subject name or id")
    p.add_argument("code", help="Unit code")

    subparsers.add_parser("due", help="Units due for review today or earlier")
    subparsers.add_parser("upcoming", help="Units due in the next 7 days")

    p = subparsers.add_parser("export", help="Export all data as JSON")
    p.add_argument("file", nargs="?", help="Output file (default: study-sync-<date>.json)")

    p = subparsers.add_parser("import", help="Replace all data with a JSON snapshot")
    p.add_argument("file")

    p = subparsers.add_parser("wipe", help="Erase all data and restore default subjects")
    p.add_argument("--yes", action="store_true", help="Confirm erasing everything")

    p = subparsers.add_parser("serve", help="Serve the JSON API on localhost")
    p.add_argument("--port", type=int, help="Server port (default: settings port)")

    return parser


def main():
    parser = build_parser()
    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    app = App()
    if not app.data_dir.exists():
        app.data_dir.mkdir(parents=True, exist_ok=True)
        print(f"Created data directory: {app.data_dir}")

    app.init_db()
    try:
        COMMANDS[args.command](args, app)
    except StudylogError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        app.close()
