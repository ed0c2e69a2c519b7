from __future__ import annotations

from flask import Flask

from ..common.http import current_actor, json_endpoint, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    identity = container.identity_service
    notifications = container.notification_service

    @app.route("/api/notifications", methods=["GET"], endpoint="notifications_list")
    @json_endpoint
    def notifications_list():
        actor = current_actor(identity)
        return ok(data=list(notifications.list_for(actor)))

    @app.route("/api/notifications/<int:notification_id>/read", methods=["POST"], endpoint="notifications_read")
    @json_endpoint
    def notifications_read(notification_id: int):
        actor = current_actor(identity)
        notifications.mark_read(actor, notification_id)
        return ok()
