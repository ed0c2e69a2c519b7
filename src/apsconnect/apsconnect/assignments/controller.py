from __future__ import annotations

from flask import Flask

from ..common.http import current_actor, json_endpoint, ok, read_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    identity = container.identity_service
    assignments = container.assignment_service

    @app.route("/api/assignments/create", methods=["POST"], endpoint="assignments_create")
    @json_endpoint
    def assignments_create():
        actor = current_actor(identity)
        body = read_json()
        assignment = assignments.create(
            actor=actor,
            title=body.get("title"),
            description=body.get("description"),
            branch=body.get("branch"),
            semester=body.get("semester"),
            due_date=body.get("due_date"),
            file_url=body.get("file_url"),
        )
        return ok(assignment=assignment)

    @app.route("/api/assignments/create/submit", methods=["POST"], endpoint="assignments_submit")
    @json_endpoint
    def assignments_submit():
        actor = current_actor(identity)
        body = read_json()
        submission = assignments.submit(
            actor=actor,
            assignment_id=body.get("assignment_id"),
            file_url=body.get("file_url"),
        )
        return ok(submission=submission)

    @app.route("/api/assignments", methods=["GET"], endpoint="assignments_list")
    @json_endpoint
    def assignments_list():
        actor = current_actor(identity)
        return ok(data=list(assignments.list_for(actor=actor)))

    @app.route("/api/assignments/<int:assignment_id>/submissions", methods=["GET"], endpoint="assignments_submissions")
    @json_endpoint
    def assignments_submissions(assignment_id: int):
        actor = current_actor(identity)
        return ok(data=list(assignments.submissions(actor=actor, assignment_id=assignment_id)))
