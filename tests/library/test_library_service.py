from __future__ import annotations

import random
import threading
from datetime import timedelta

import pytest

from src.apsconnect.apsconnect.core.enums import LoanStatus, Role
from src.apsconnect.apsconnect.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)


@pytest.fixture
def library(container):
    return container.library_service


@pytest.fixture
def librarian(repos):
    return repos.users.add(role=Role.FACULTY).to_actor()


def _book(library, librarian, copies=1):
    return library.add_book(actor=librarian, title="Compilers", author="Aho", total_copies=copies)


def _due(fixed_now, days=14):
    return (fixed_now.date() + timedelta(days=days)).isoformat()


def test_add_book_starts_fully_available(library, librarian):
    book = _book(library, librarian, copies=3)
    assert (book.total_copies, book.available_copies) == (3, 3)


def test_add_book_staff_only(library, repos):
    student = repos.users.add(role=Role.STUDENT).to_actor()
    with pytest.raises(AuthorizationError):
        library.add_book(actor=student, title="Compilers")


def test_add_book_rejects_zero_copies(library, librarian):
    with pytest.raises(ValidationError):
        library.add_book(actor=librarian, title="Compilers", total_copies=0)


def test_issue_decrements_and_records_loan(library, librarian, repos, fixed_now):
    book = _book(library, librarian, copies=2)
    student = repos.users.add(role=Role.STUDENT).to_actor()

    tx = library.issue(actor=student, book_id=book.book_id, due_date=_due(fixed_now), now=fixed_now)

    assert tx.status == LoanStatus.ISSUED
    assert tx.student_id == student.user_id
    assert library.get_book(book.book_id).available_copies == 1


def test_issue_last_copy_then_conflict(library, librarian, repos, fixed_now):
    book = _book(library, librarian, copies=1)
    a = repos.users.add(role=Role.STUDENT).to_actor()
    b = repos.users.add(role=Role.STUDENT).to_actor()

    library.issue(actor=a, book_id=book.book_id, due_date=_due(fixed_now), now=fixed_now)
    with pytest.raises(ConflictError, match="No copies available"):
        library.issue(actor=b, book_id=book.book_id, due_date=_due(fixed_now), now=fixed_now)

    assert library.get_book(book.book_id).available_copies == 0


def test_concurrent_issue_of_last_copy(library, librarian, repos, fixed_now):
    book = _book(library, librarian, copies=1)
    students = [repos.users.add(role=Role.STUDENT).to_actor() for _ in range(2)]
    barrier = threading.Barrier(len(students))
    outcomes: list[str] = []
    lock = threading.Lock()

    def borrow(actor):
        barrier.wait()
        try:
            library.issue(actor=actor, book_id=book.book_id, due_date=_due(fixed_now), now=fixed_now)
            result = "ok"
        except ConflictError:
            result = "conflict"
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=borrow, args=(s,)) for s in students]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["conflict", "ok"]
    assert library.get_book(book.book_id).available_copies == 0
    assert len(repos.library.transactions) == 1


@pytest.mark.parametrize(
    "book_id, due_date, error",
    [
        (None, "2026-03-01", ValidationError),
        (1, None, ValidationError),
        (1, "2026-01-01", ValidationError),
        (1, "03/01/2026", ValidationError),
        (999, "2026-03-01", NotFoundError),
    ],
)
def test_issue_input_errors(library, librarian, repos, fixed_now, book_id, due_date, error):
    _book(library, librarian)
    student = repos.users.add(role=Role.STUDENT).to_actor()
    with pytest.raises(error):
        library.issue(actor=student, book_id=book_id, due_date=due_date, now=fixed_now)


def test_staff_can_issue_on_behalf_of_student(library, librarian, repos, fixed_now):
    book = _book(library, librarian)
    student = repos.users.add(role=Role.STUDENT)

    tx = library.issue(
        actor=librarian, book_id=book.book_id, due_date=_due(fixed_now), student_id=student.user_id, now=fixed_now
    )

    assert tx.student_id == student.user_id


def test_student_cannot_issue_for_someone_else(library, librarian, repos, fixed_now):
    book = _book(library, librarian)
    student = repos.users.add(role=Role.STUDENT).to_actor()
    classmate = repos.users.add(role=Role.STUDENT)

    with pytest.raises(AuthorizationError):
        library.issue(
            actor=student, book_id=book.book_id, due_date=_due(fixed_now), student_id=classmate.user_id, now=fixed_now
        )
    assert library.get_book(book.book_id).available_copies == 1


def test_return_on_time_restores_copy_without_fine(library, librarian, repos, fixed_now):
    book = _book(library, librarian)
    student = repos.users.add(role=Role.STUDENT).to_actor()
    tx = library.issue(actor=student, book_id=book.book_id, due_date=_due(fixed_now), now=fixed_now)

    closed = library.return_loan(actor=librarian, transaction_id=tx.transaction_id, now=fixed_now)

    assert closed.status == LoanStatus.RETURNED
    assert closed.fine_amount == 0
    assert library.get_book(book.book_id).available_copies == 1


def test_late_return_charges_fine(library, librarian, repos, fixed_now):
    book = _book(library, librarian)
    student = repos.users.add(role=Role.STUDENT).to_actor()
    tx = library.issue(actor=student, book_id=book.book_id, due_date=_due(fixed_now, days=7), now=fixed_now)

    closed = library.return_loan(
        actor=librarian,
        transaction_id=tx.transaction_id,
        now=fixed_now + timedelta(days=10),
    )

    assert closed.fine_amount == 15


def test_double_return_is_conflict_and_does_not_overcount(library, librarian, repos, fixed_now):
    book = _book(library, librarian, copies=2)
    student = repos.users.add(role=Role.STUDENT).to_actor()
    tx = library.issue(actor=student, book_id=book.book_id, due_date=_due(fixed_now), now=fixed_now)
    library.return_loan(actor=librarian, transaction_id=tx.transaction_id, now=fixed_now)

    with pytest.raises(ConflictError):
        library.return_loan(actor=librarian, transaction_id=tx.transaction_id, now=fixed_now)

    assert library.get_book(book.book_id).available_copies == 2


def test_return_requires_staff_and_known_loan(library, librarian, repos, fixed_now):
    student = repos.users.add(role=Role.STUDENT).to_actor()
    with pytest.raises(AuthorizationError):
        library.return_loan(actor=student, transaction_id=1)
    with pytest.raises(NotFoundError):
        library.return_loan(actor=librarian, transaction_id=404)


def test_active_loans_scoped_for_students(library, librarian, repos, fixed_now):
    book = _book(library, librarian, copies=3)
    a = repos.users.add(role=Role.STUDENT).to_actor()
    b = repos.users.add(role=Role.STUDENT).to_actor()
    library.issue(actor=a, book_id=book.book_id, due_date=_due(fixed_now), now=fixed_now)
    library.issue(actor=b, book_id=book.book_id, due_date=_due(fixed_now), now=fixed_now)

    assert [loan.student_id for loan in library.active_loans(actor=a)] == [a.user_id]
    assert len(library.active_loans(actor=librarian)) == 2


def test_random_issue_return_sequences_keep_copies_in_bounds(library, librarian, repos, fixed_now):
    rng = random.Random(20260202)
    book = _book(library, librarian, copies=3)
    students = [repos.users.add(role=Role.STUDENT).to_actor() for _ in range(5)]
    open_loans: list[int] = []

    for _ in range(200):
        if open_loans and rng.random() < 0.5:
            tx_id = rng.choice(open_loans)
            try:
                library.return_loan(actor=librarian, transaction_id=tx_id, now=fixed_now)
                open_loans.remove(tx_id)
            except ConflictError:
                pass
        else:
            try:
                tx = library.issue(
                    actor=rng.choice(students), book_id=book.book_id, due_date=_due(fixed_now), now=fixed_now
                )
                open_loans.append(tx.transaction_id)
            except ConflictError:
                assert len(open_loans) == 3

        current = library.get_book(book.book_id)
        assert 0 <= current.available_copies <= current.total_copies
        assert current.available_copies == current.total_copies - len(open_loans)
