from __future__ import annotations

from flask import Flask, request

from ..common.http import current_actor, json_endpoint, ok, read_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    identity = container.identity_service
    announcements = container.announcement_service

    @app.route("/api/announcements/create", methods=["POST"], endpoint="announcements_create")
    @json_endpoint
    def announcements_create():
        actor = current_actor(identity)
        body = read_json()
        announcement = announcements.create(
            actor=actor,
            title=body.get("title"),
            content=body.get("content"),
            branch=body.get("branch"),
            semester=body.get("semester"),
            file_url=body.get("file_url"),
        )
        return ok(announcement=announcement), 201

    @app.route("/api/announcements", methods=["GET"], endpoint="announcements_list")
    @json_endpoint
    def announcements_list():
        actor = current_actor(identity)
        data = announcements.list_for(
            actor=actor,
            branch=request.args.get("branch"),
            semester=request.args.get("semester"),
        )
        return ok(data=list(data))

    @app.route("/api/announcements/<int:announcement_id>", methods=["PUT"], endpoint="announcements_update")
    @json_endpoint
    def announcements_update(announcement_id: int):
        actor = current_actor(identity)
        body = read_json()
        announcement = announcements.update(
            actor=actor,
            announcement_id=announcement_id,
            title=body.get("title"),
            content=body.get("content"),
            file_url=body.get("file_url"),
        )
        return ok(announcement=announcement)

    @app.route("/api/announcements/<int:announcement_id>", methods=["DELETE"], endpoint="announcements_delete")
    @json_endpoint
    def announcements_delete(announcement_id: int):
        actor = current_actor(identity)
        announcements.delete(actor=actor, announcement_id=announcement_id)
        return ok()
