from __future__ import annotations

from flask import Flask

from ..common.http import current_actor, json_endpoint, ok, read_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    identity = container.identity_service
    polls = container.poll_service

    @app.route("/api/polls/create", methods=["POST"], endpoint="polls_create")
    @json_endpoint
    def polls_create():
        actor = current_actor(identity)
        body = read_json()
        poll = polls.create(
            actor=actor,
            question=body.get("question"),
            options=body.get("options"),
            branch=body.get("branch"),
            semester=body.get("semester"),
        )
        return ok(poll=poll), 201

    @app.route("/api/polls", methods=["GET"], endpoint="polls_list")
    @json_endpoint
    def polls_list():
        actor = current_actor(identity)
        return ok(data=list(polls.list_for(actor=actor)))

    @app.route("/api/polls/<int:poll_id>", methods=["PUT"], endpoint="polls_update")
    @json_endpoint
    def polls_update(poll_id: int):
        actor = current_actor(identity)
        body = read_json()
        poll = polls.update(actor=actor, poll_id=poll_id, question=body.get("question"), options=body.get("options"))
        return ok(poll=poll)

    @app.route("/api/polls/<int:poll_id>", methods=["DELETE"], endpoint="polls_delete")
    @json_endpoint
    def polls_delete(poll_id: int):
        actor = current_actor(identity)
        polls.delete(actor=actor, poll_id=poll_id)
        return ok()

    @app.route("/api/polls/<int:poll_id>/close", methods=["POST"], endpoint="polls_close")
    @json_endpoint
    def polls_close(poll_id: int):
        actor = current_actor(identity)
        return ok(poll=polls.close(actor=actor, poll_id=poll_id))

    @app.route("/api/polls/<int:poll_id>/vote", methods=["POST"], endpoint="polls_vote")
    @json_endpoint
    def polls_vote(poll_id: int):
        actor = current_actor(identity)
        body = read_json()
        return ok(vote=polls.vote(actor=actor, poll_id=poll_id, option=body.get("option")))

    @app.route("/api/polls/<int:poll_id>/results", methods=["GET"], endpoint="polls_results")
    @json_endpoint
    def polls_results(poll_id: int):
        actor = current_actor(identity)
        return ok(data=polls.results(actor=actor, poll_id=poll_id))
