from __future__ import annotations

from flask import Flask, request, send_file

from ..common.http import current_actor, json_endpoint, ok, read_json
from ..common.validators import optional_str, require_int
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container
from .qr_codes import decode_image, render_png, session_payload


def register(app: Flask, container: Container) -> None:
    identity = container.identity_service
    attendance = container.attendance_service

    def _optional_semester(value):
        return require_int(value, "semester", minimum=1) if value not in (None, "") else None

    @app.route("/api/attendance/create", methods=["POST"], endpoint="attendance_create")
    @json_endpoint
    def attendance_create():
        actor = current_actor(identity)
        body = read_json()
        session = attendance.create_session(
            actor=actor,
            branch=body.get("branch"),
            semester=body.get("semester"),
            subject=body.get("subject"),
            session_date=body.get("session_date"),
            start_time=body.get("start_time"),
            end_time=body.get("end_time"),
            use_qr=bool(body.get("use_qr")),
            qr_minutes=body.get("qr_minutes"),
        )
        return ok(session=session.public_view(include_token=True))

    @app.route("/api/attendance/mark", methods=["POST"], endpoint="attendance_mark")
    @json_endpoint
    def attendance_mark():
        actor = current_actor(identity)
        body = read_json()
        record = attendance.mark(
            actor=actor,
            session_id=body.get("session_id"),
            method=body.get("method"),
            token=body.get("qr_token"),
            status=body.get("status"),
        )
        return ok(record=record)

    @app.route("/api/attendance/mark/scan", methods=["POST"], endpoint="attendance_mark_scan")
    @json_endpoint
    def attendance_mark_scan():
        """Mark by uploading a photo of the session's QR code."""
        actor = current_actor(identity)
        file = request.files.get("image")
        if not file or not file.filename:
            raise ValidationError("image required")

        payload = decode_image(file.stream)
        record = attendance.mark_from_scan(actor=actor, payload=payload)
        return ok(record=record)

    @app.route("/api/attendance/bulk-mark", methods=["POST"], endpoint="attendance_bulk_mark")
    @json_endpoint
    def attendance_bulk_mark():
        actor = current_actor(identity)
        body = read_json()
        records = attendance.bulk_mark(actor=actor, session_id=body.get("session_id"), marks=body.get("marks"))
        return ok(updated=list(records))

    @app.route("/api/attendance/sessions", methods=["GET"], endpoint="attendance_sessions")
    @json_endpoint
    def attendance_sessions():
        actor = current_actor(identity)
        sessions = attendance.list_sessions(
            actor=actor,
            branch=optional_str(request.args.get("branch")),
            semester=_optional_semester(request.args.get("semester")),
        )
        show_token = actor.role in {Role.FACULTY, Role.ADMIN}
        return ok(data=[s.public_view(include_token=show_token) for s in sessions])

    @app.route("/api/attendance/sessions/<int:session_id>/qr.png", methods=["GET"], endpoint="attendance_session_qr")
    @json_endpoint
    def attendance_session_qr(session_id: int):
        actor = current_actor(identity)
        session = attendance.session_for_qr(actor=actor, session_id=session_id)
        buf = render_png(session_payload(session))
        return send_file(buf, mimetype="image/png", download_name=f"session_{session_id}.png")

    @app.route("/api/attendance/summary", methods=["GET"], endpoint="attendance_summary")
    @json_endpoint
    def attendance_summary():
        actor = current_actor(identity)
        summary = attendance.student_summary(actor=actor, student_id=request.args.get("student_id"))
        return ok(data=summary)

    @app.route("/api/attendance/report", methods=["GET"], endpoint="attendance_report")
    @json_endpoint
    def attendance_report():
        actor = current_actor(identity)
        report = attendance.distribution(
            actor=actor,
            branch=optional_str(request.args.get("branch")),
            semester=_optional_semester(request.args.get("semester")),
        )
        return ok(data=report)
