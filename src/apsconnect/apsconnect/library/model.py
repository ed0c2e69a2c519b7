from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import LoanStatus


@dataclass(frozen=True)
class LibraryBook:
    """Catalog row. Invariant: 0 <= available_copies <= total_copies."""

    book_id: int
    title: str
    author: Optional[str]
    isbn: Optional[str]
    total_copies: int
    available_copies: int


@dataclass(frozen=True)
class LibraryTransaction:
    transaction_id: int
    book_id: int
    student_id: int
    due_date: date
    issued_at: datetime
    status: LoanStatus
    returned_at: Optional[datetime] = None
    fine_amount: float = 0.0


@dataclass(frozen=True)
class ActiveLoan:
    """Read-model for the circulation desk (joined with book/student)."""

    transaction_id: int
    book_id: int
    title: str
    student_id: int
    student_name: str
    due_date: date
    issued_at: datetime
    days_overdue: int
