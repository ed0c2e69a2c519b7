from __future__ import annotations

from flask import Flask, session

from ..common.http import current_actor, json_endpoint, ok, read_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    identity = container.identity_service

    @app.route("/api/auth/register", methods=["POST"], endpoint="auth_register")
    @json_endpoint
    def auth_register():
        body = read_json()
        user = identity.register(
            name=body.get("name", ""),
            email=body.get("email", ""),
            password=body.get("password", ""),
            role=body.get("role", "student"),
            branch=body.get("branch"),
            semester=body.get("semester"),
        )
        return ok(user=user.public_view()), 201

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    @json_endpoint
    def auth_login():
        body = read_json()
        user = identity.authenticate(body.get("email", ""), body.get("password", ""))

        session.clear()
        session["auth_id"] = user.auth_id
        session["role"] = user.role.value

        return ok(user=user.public_view(), token=identity.issue_token(user.auth_id))

    @app.route("/api/auth/logout", methods=["POST"], endpoint="auth_logout")
    @json_endpoint
    def auth_logout():
        session.clear()
        return ok()

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    @json_endpoint
    def auth_me():
        actor = current_actor(identity)
        return ok(user=identity.get_user(actor.user_id).public_view())
