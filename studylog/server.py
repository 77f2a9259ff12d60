"""JSON API server: exposes the studylog core to a browser or other client."""

import http.server
import json
import urllib.parse
from datetime import date

from studylog.agenda import due_units, upcoming_units
from studylog.errors import DuplicateKey, NotFound, StudylogError, ValidationError
from studylog.ingest import record_text
from studylog.ledger import (add_subject, compute_unit_status, delete_review, delete_unit,
                             find_subject, list_reviews_by_unit, list_subjects,
                             list_units_by_subject, move_subject, record_review,
                             renumber_reviews, require_unit, update_review,
                             update_unit_title, validate_date)
from studylog.snapshot import export_snapshot, import_overwrite, reset


def _status_for(e: StudylogError) -> int:
    if isinstance(e, NotFound):
        return 404
    if isinstance(e, DuplicateKey):
        return 409
    return 400


class ApiHandler(http.server.BaseHTTPRequestHandler):
    conn = None
    settings: dict = {}

    def log_message(self, format, *args):
        pass

    def _json_response(self, data, status=200):
        body = json.dumps(data, ensure_ascii=False).encode()
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _error(self, status, msg):
        self._json_response({"error": msg}, status)

    def _read_body(self) -> dict:
        try:
            length = int(self.headers.get("Content-Length", 0))
        except ValueError as e:
            raise ValidationError(f"Bad Content-Length: {e}") from e
        if not length:
            return {}
        try:
            data = json.loads(self.rfile.read(length))
        except (ValueError, UnicodeDecodeError) as e:
            raise ValidationError(f"Request body is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data

    def _parse_path(self):
        parsed = urllib.parse.urlparse(self.path)
        parts = [p for p in parsed.path.split("/") if p]
        return parts, urllib.parse.parse_qs(parsed.query)

    def _overwrite(self, body) -> bool:
        if "overwrite" in body:
            return bool(body["overwrite"])
        return bool(self.settings.get("overwrite_titles", False))

    def _today(self, qs) -> date | None:
        if "today" not in qs:
            return None
        return date.fromisoformat(validate_date(qs["today"][0]))

    def _dispatch(self, handler):
        parts, qs = self._parse_path()
        if len(parts) < 2 or parts[0] != "api":
            self._error(404, "Not found")
            return
        if len(parts) >= 3:
            try:
                parts[2] = int(parts[2])
            except ValueError:
                self._error(400, "Invalid id")
                return
        try:
            handler(parts[1:], qs)
        except StudylogError as e:
            self._error(_status_for(e), str(e))

    def do_GET(self):
        self._dispatch(self._handle_get)

    def do_POST(self):
        self._dispatch(self._handle_post)

    # ── GET ──────────────────────────────────────────────────────────

    def _handle_get(self, route, qs):
        if route == ["subjects"]:
            self._json_response([s.to_record() for s in list_subjects(self.conn)])

        elif len(route) == 3 and route[0] == "subjects" and route[2] == "units":
            subject = find_subject(self.conn, route[1])
            units = []
            for u in list_units_by_subject(self.conn, subject.id):
                rec = u.to_record()
                rec["status"] = compute_unit_status(self.conn, u).to_record()
                units.append(rec)
            self._json_response(units)

        elif len(route) == 3 and route[0] == "units" and route[2] == "reviews":
            unit = require_unit(self.conn, route[1])
            self._json_response([r.to_record() for r in list_reviews_by_unit(self.conn, unit.id)])

        elif route == ["due"]:
            entries = due_units(self.conn, self._today(qs))
            self._json_response([e.to_record() for e in entries])

        elif route == ["upcoming"]:
            entries = upcoming_units(self.conn, self._today(qs))
            self._json_response([e.to_record() for e in entries])

        elif route == ["export"]:
            self._json_response(export_snapshot(self.conn))

        else:
            self._error(404, "Not found")

    # ── POST ─────────────────────────────────────────────────────────

    def _handle_post(self, route, qs):
        body = self._read_body()

        if route == ["subjects"]:
            subject_id = add_subject(self.conn, body.get("name", ""))
            self._json_response({"id": subject_id}, 201)

        elif len(route) == 3 and route[0] == "subjects":
            subject = find_subject(self.conn, route[1])
            action = route[2]
            if action == "move":
                moved = move_subject(self.conn, subject.id, body.get("direction"))
                self._json_response({"moved": moved})
            elif action == "record":
                stats = record_text(self.conn, subject.id, body.get("text", ""),
                                    overwrite=self._overwrite(body),
                                    today=self._today(qs))
                self._json_response(stats)
            elif action == "reviews":
                unit_id, review_no = record_review(
                    self.conn, subject.id, body.get("code", ""), body.get("doneDate"),
                    review_no=body.get("reviewNo"), title=body.get("title"),
                    overwrite=self._overwrite(body))
                self._json_response({"unitId": unit_id, "reviewNo": review_no}, 201)
            else:
                self._error(404, "Not found")

        elif len(route) == 3 and route[0] == "units":
            unit_id, action = route[1], route[2]
            if action == "title":
                self._json_response({"updated": update_unit_title(
                    self.conn, unit_id, body.get("title", ""))})
            elif action == "delete":
                self._json_response({"deleted": delete_unit(self.conn, unit_id)})
            elif action == "renumber":
                self._json_response({"renumbered": renumber_reviews(self.conn, unit_id)})
            else:
                self._error(404, "Not found")

        elif len(route) == 2 and route[0] == "reviews":
            updated = update_review(self.conn, route[1], body.get("unitId"),
                                    body.get("reviewNo"), body.get("doneDate"))
            self._json_response({"updated": updated})

        elif len(route) == 3 and route[0] == "reviews" and route[2] == "delete":
            self._json_response({"deleted": delete_review(self.conn, route[1])})

        elif route == ["import"]:
            self._json_response(import_overwrite(self.conn, body))

        elif route == ["wipe"]:
            reset(self.conn)
            self._json_response({"ok": True})

        else:
            self._error(404, "Not found")


def start_server(conn, settings):
    port = settings.get("port", 8795)
    ApiHandler.conn = conn
    ApiHandler.settings = settings

    server = http.server.HTTPServer(("127.0.0.1", port), ApiHandler)
    server.allow_reuse_address = True
    print(f"studylog API running at http://127.0.0.1:{port}/api/")
    print("Press Ctrl+C to stop")

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nServer stopped.")
    finally:
        server.server_close()
