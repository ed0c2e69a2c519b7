from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Sequence

from ..common.datetime_utils import now_local, parse_iso_date
from ..common.validators import optional_str, require_int, require_non_empty
from ..core.enums import LoanStatus, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.policy import Actor, require_role
from ..users.repository import UserRepository
from .calculator.base import FineCalculator
from .calculator.flat_rate_calculator import FlatRateFineCalculator
from .model import ActiveLoan, LibraryBook, LibraryTransaction
from .repository import LibraryRepository

logger = logging.getLogger(__name__)


class LibraryService:
    """Circulation desk.

    available_copies is only ever changed by the repository's conditional
    updates, so the service never reads-then-writes a copy count.
    """

    def __init__(
        self,
        library: LibraryRepository,
        users: UserRepository,
        *,
        fine_calculator: FineCalculator | None = None,
    ):
        self._library = library
        self._users = users
        self._fines = fine_calculator or FlatRateFineCalculator()

    # -------- Catalog --------
    def add_book(
        self,
        *,
        actor: Actor,
        title: Any,
        author: Any = None,
        isbn: Any = None,
        total_copies: Any = 1,
    ) -> LibraryBook:
        require_role(actor, Role.FACULTY, Role.ADMIN)
        title_s = require_non_empty(title, "title")
        copies = 1 if total_copies in (None, "") else require_int(total_copies, "total_copies", minimum=1)

        book_id = self._library.add_book(
            title=title_s,
            author=optional_str(author),
            isbn=optional_str(isbn),
            total_copies=copies,
        )
        logger.info("book id=%s added (%s copies) by user id=%s", book_id, copies, actor.user_id)
        return self.get_book(book_id)

    def get_book(self, book_id: int) -> LibraryBook:
        book = self._library.get_book(int(book_id))
        if not book:
            raise NotFoundError("book not found")
        return book

    def catalog(self) -> Sequence[LibraryBook]:
        return self._library.list_books()

    def active_loans(self, *, actor: Actor, today: date | None = None) -> Sequence[ActiveLoan]:
        today = today or now_local().date()
        student_id = actor.user_id if actor.role in {Role.STUDENT, Role.ALUMNI} else None
        return self._library.list_active_loans(student_id=student_id, today=today)

    # -------- Circulation --------
    def issue(
        self,
        *,
        actor: Actor,
        book_id: Any,
        due_date: Any,
        student_id: Any = None,
        now: datetime | None = None,
    ) -> LibraryTransaction:
        if book_id in (None, "") or not due_date:
            raise ValidationError("Missing fields")

        now = now or now_local()
        due = parse_iso_date(due_date, "due_date")
        if due < now.date():
            raise ValidationError("due_date cannot be in the past")

        borrower_id = self._borrower(actor, student_id)
        book = self.get_book(require_int(book_id, "book_id"))

        tx = self._library.issue_copy(
            book_id=book.book_id,
            student_id=borrower_id,
            due_date=due,
            issued_at=now,
        )
        if tx is None:
            logger.info("issue refused: no copies left of book id=%s (user id=%s)", book.book_id, borrower_id)
            raise ConflictError("No copies available")
        return tx

    def return_loan(
        self,
        *,
        actor: Actor,
        transaction_id: Any,
        returned_on: Any = None,
        now: datetime | None = None,
    ) -> LibraryTransaction:
        require_role(actor, Role.FACULTY, Role.ADMIN)
        if transaction_id in (None, ""):
            raise ValidationError("transaction_id required")

        tx = self._library.get_transaction(require_int(transaction_id, "transaction_id"))
        if not tx:
            raise NotFoundError("transaction not found")
        if tx.status != LoanStatus.ISSUED:
            raise ConflictError("Book already returned")

        now = now or now_local()
        returned_day = parse_iso_date(returned_on, "returned_on") if returned_on else now.date()
        fine = self._fines.fine_for(due_date=tx.due_date, returned_on=returned_day)

        closed = self._library.return_copy(
            transaction_id=tx.transaction_id,
            returned_at=now,
            fine_amount=fine,
        )
        if closed is None:
            # Lost a race with another return of the same loan.
            logger.info("return refused: transaction id=%s already closed", tx.transaction_id)
            raise ConflictError("Book already returned")
        return closed

    def _borrower(self, actor: Actor, student_id: Any) -> int:
        if student_id in (None, ""):
            return actor.user_id

        target = require_int(student_id, "student_id")
        if target == actor.user_id:
            return target
        if actor.role not in {Role.FACULTY, Role.ADMIN}:
            raise AuthorizationError("forbidden: cannot issue books for another user")
        student = self._users.get_by_id(target)
        if not student or student.role != Role.STUDENT:
            raise NotFoundError("student not found")
        return target

