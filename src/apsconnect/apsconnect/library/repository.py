from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import ActiveLoan, LibraryBook, LibraryTransaction


class LibraryRepository(Protocol):
    def add_book(self, *, title: str, author: Optional[str], isbn: Optional[str], total_copies: int) -> int:
        raise NotImplementedError

    def get_book(self, book_id: int) -> Optional[LibraryBook]:
        raise NotImplementedError

    def list_books(self) -> Sequence[LibraryBook]:
        raise NotImplementedError

    def issue_copy(
        self,
        *,
        book_id: int,
        student_id: int,
        due_date: date,
        issued_at: datetime,
    ) -> Optional[LibraryTransaction]:
        """Atomically take one copy and record the loan.

        Returns None (and changes nothing) when no copy is available.
        """

        raise NotImplementedError

    def get_transaction(self, transaction_id: int) -> Optional[LibraryTransaction]:
        raise NotImplementedError

    def return_copy(
        self,
        *,
        transaction_id: int,
        returned_at: datetime,
        fine_amount: float,
    ) -> Optional[LibraryTransaction]:
        """Atomically close an issued loan and give the copy back.

        Returns None (and changes nothing) when the loan is not issued.
        """

        raise NotImplementedError

    def list_active_loans(self, *, student_id: Optional[int] = None, today: date) -> Sequence[ActiveLoan]:
        raise NotImplementedError
