from __future__ import annotations

from flask import Flask

from ..common.http import current_actor, json_endpoint, ok, read_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    identity = container.identity_service
    approvals = container.approval_service

    @app.route("/api/approvals/pending", methods=["GET"], endpoint="approvals_pending")
    @json_endpoint
    def approvals_pending():
        actor = current_actor(identity)
        users = approvals.list_pending(actor=actor)
        return ok(data=[u.public_view() for u in users])

    @app.route("/api/approvals/<int:user_id>/<action>", methods=["POST"], endpoint="approvals_decide")
    @json_endpoint
    def approvals_decide(user_id: int, action: str):
        actor = current_actor(identity)
        parsed = approvals.parse_action(action)
        body = read_json()

        user = approvals.transition(
            actor=actor,
            target_user_id=user_id,
            action=parsed,
            remarks=body.get("remarks"),
        )
        return ok(user=user.public_view())
