from __future__ import annotations

from flask import Flask

from ..common.http import current_actor, json_endpoint, ok, read_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    identity = container.identity_service
    library = container.library_service

    @app.route("/api/library/create", methods=["POST"], endpoint="library_create")
    @json_endpoint
    def library_create():
        actor = current_actor(identity)
        body = read_json()
        book = library.add_book(
            actor=actor,
            title=body.get("title"),
            author=body.get("author"),
            isbn=body.get("isbn"),
            total_copies=body.get("total_copies", 1),
        )
        return ok(book=book), 201

    @app.route("/api/library/catalog", methods=["GET"], endpoint="library_catalog")
    @json_endpoint
    def library_catalog():
        current_actor(identity)
        return ok(data=list(library.catalog()))

    @app.route("/api/library/active", methods=["GET"], endpoint="library_active")
    @json_endpoint
    def library_active():
        actor = current_actor(identity)
        return ok(data=list(library.active_loans(actor=actor)))

    @app.route("/api/library/issue", methods=["POST"], endpoint="library_issue")
    @json_endpoint
    def library_issue():
        actor = current_actor(identity)
        body = read_json()
        tx = library.issue(
            actor=actor,
            book_id=body.get("library_id", body.get("book_id")),
            due_date=body.get("due_date"),
            student_id=body.get("student_id"),
        )
        return ok(transaction=tx)

    @app.route("/api/library/return", methods=["POST"], endpoint="library_return")
    @json_endpoint
    def library_return():
        actor = current_actor(identity)
        body = read_json()
        tx = library.return_loan(
            actor=actor,
            transaction_id=body.get("transaction_id"),
            returned_on=body.get("returned_on"),
        )
        return ok(transaction=tx, fine=tx.fine_amount)
