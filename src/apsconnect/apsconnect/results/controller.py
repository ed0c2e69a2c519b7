from __future__ import annotations

from flask import Flask, Response, request

from ..common.http import current_actor, json_endpoint, ok, read_json
from ..common.validators import optional_str, require_int
from ..container import Container


def register(app: Flask, container: Container) -> None:
    identity = container.identity_service
    results = container.results_service

    def _optional_int(value, field_name):
        return require_int(value, field_name, minimum=1) if value not in (None, "") else None

    # -------- Exams --------
    @app.route("/api/exams/create", methods=["POST"], endpoint="exams_create")
    @json_endpoint
    def exams_create():
        actor = current_actor(identity)
        body = read_json()
        exam = results.create_exam(actor=actor, title=body.get("title"), exam_type=body.get("exam_type"))
        return ok(exam=exam)

    @app.route("/api/exams", methods=["GET"], endpoint="exams_list")
    @json_endpoint
    def exams_list():
        current_actor(identity)
        return ok(data=list(results.list_exams()))

    @app.route("/api/exams/timetable/create", methods=["POST"], endpoint="exams_timetable_create")
    @json_endpoint
    def exams_timetable_create():
        actor = current_actor(identity)
        body = read_json()
        entry = results.add_timetable_entry(
            actor=actor,
            exam_id=body.get("exam_id"),
            branch=body.get("branch"),
            semester=body.get("semester"),
            subject=body.get("subject"),
            exam_date=body.get("exam_date"),
            start_time=body.get("start_time"),
            end_time=body.get("end_time"),
        )
        return ok(entry=entry)

    @app.route("/api/exams/timetable", methods=["GET"], endpoint="exams_timetable")
    @json_endpoint
    def exams_timetable():
        actor = current_actor(identity)
        entries = results.timetable(
            actor=actor,
            branch=optional_str(request.args.get("branch")),
            semester=_optional_int(request.args.get("semester"), "semester"),
            exam_id=_optional_int(request.args.get("exam_id"), "exam_id"),
        )
        return ok(data=list(entries))

    # -------- Results --------
    @app.route("/api/results/upload", methods=["POST"], endpoint="results_upload")
    @json_endpoint
    def results_upload():
        actor = current_actor(identity)
        body = read_json()
        rows = results.upload(
            actor=actor,
            exam_id=body.get("exam_id"),
            subject=body.get("subject"),
            marks=body.get("marks"),
        )
        return ok(inserted=list(rows))

    @app.route("/api/results/publish", methods=["POST"], endpoint="results_publish")
    @json_endpoint
    def results_publish():
        actor = current_actor(identity)
        body = read_json()
        notification_id = results.publish(
            actor=actor,
            exam_id=body.get("exam_id"),
            subject=body.get("subject"),
            branch=body.get("branch"),
            semester=body.get("semester"),
        )
        return ok(notification_id=notification_id)

    @app.route("/api/results/student-summary", methods=["GET"], endpoint="results_student_summary")
    @json_endpoint
    def results_student_summary():
        actor = current_actor(identity)
        summary = results.student_summary(
            actor=actor,
            exam_id=request.args.get("exam_id"),
            student_id=request.args.get("student_id"),
        )
        return ok(data=summary)

    @app.route("/api/results/export", methods=["GET"], endpoint="results_export")
    @json_endpoint
    def results_export():
        actor = current_actor(identity)
        exam_id = request.args.get("exam_id")
        body = results.export_csv(actor=actor, exam_id=exam_id)
        return Response(
            body,
            mimetype="text/csv",
            headers={"Content-Disposition": f'attachment; filename="results_{int(exam_id)}.csv"'},
        )
