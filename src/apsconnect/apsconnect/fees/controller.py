from __future__ import annotations

from flask import Flask, request

from ..common.http import current_actor, json_endpoint, ok, read_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    identity = container.identity_service
    fees = container.fee_service

    @app.route("/api/fees/create", methods=["POST"], endpoint="fees_create")
    @json_endpoint
    def fees_create():
        actor = current_actor(identity)
        body = read_json()
        fee = fees.create_fee(
            actor=actor,
            student_id=body.get("student_id"),
            amount=body.get("amount"),
            due_date=body.get("due_date"),
        )
        return ok(fee=fee), 201

    @app.route("/api/fees/pay", methods=["POST"], endpoint="fees_pay")
    @json_endpoint
    def fees_pay():
        actor = current_actor(identity)
        body = read_json()
        fee = fees.pay(
            actor=actor,
            amount=body.get("amount"),
            screenshot_url=body.get("screenshot_url"),
            due_date=body.get("due_date"),
            fee_id=body.get("fee_id"),
        )
        return ok(fee=fee)

    @app.route("/api/fees/pay/verify", methods=["POST"], endpoint="fees_verify")
    @json_endpoint
    def fees_verify():
        actor = current_actor(identity)
        body = read_json()
        fee = fees.decide(
            actor=actor,
            fee_id=body.get("fee_id"),
            action=body.get("action"),
            remark=body.get("remark"),
        )
        return ok(fee=fee)

    @app.route("/api/fees", methods=["GET"], endpoint="fees_list")
    @json_endpoint
    def fees_list():
        actor = current_actor(identity)
        data = fees.list_fees(
            actor=actor,
            student_id=request.args.get("student_id"),
            status=request.args.get("status"),
        )
        return ok(data=list(data))

    @app.route("/api/fees/summary", methods=["GET"], endpoint="fees_summary")
    @json_endpoint
    def fees_summary():
        actor = current_actor(identity)
        return ok(data=fees.summary(actor=actor, student_id=request.args.get("student_id")))
