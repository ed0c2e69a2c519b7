from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import LoanStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ActiveLoan, LibraryBook, LibraryTransaction
from .repository import LibraryRepository

_TX_COLUMNS = "id, book_id, student_id, due_date, issued_at, status, returned_at, fine_amount"


def _row_to_book(r: dict) -> LibraryBook:
    return LibraryBook(
        book_id=int(r["id"]),
        title=r["title"],
        author=r.get("author"),
        isbn=r.get("isbn"),
        total_copies=int(r["total_copies"]),
        available_copies=int(r["available_copies"]),
    )


def _row_to_tx(r: dict) -> LibraryTransaction:
    return LibraryTransaction(
        transaction_id=int(r["id"]),
        book_id=int(r["book_id"]),
        student_id=int(r["student_id"]),
        due_date=r["due_date"],
        issued_at=r["issued_at"],
        status=LoanStatus(r["status"]),
        returned_at=r.get("returned_at"),
        fine_amount=float(r.get("fine_amount") or 0),
    )


class MySQLLibraryRepository(LibraryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def add_book(self, *, title: str, author: Optional[str], isbn: Optional[str], total_copies: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO library_books(title, author, isbn, total_copies, available_copies)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (title, author, isbn, int(total_copies), int(total_copies)),
            )
            return int(cur.lastrowid)

    def get_book(self, book_id: int) -> Optional[LibraryBook]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id, title, author, isbn, total_copies, available_copies FROM library_books WHERE id=%s",
                (int(book_id),),
            )
            r = fetchone(cur)
            return _row_to_book(r) if r else None

    def list_books(self) -> Sequence[LibraryBook]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id, title, author, isbn, total_copies, available_copies FROM library_books ORDER BY title"
            )
            return [_row_to_book(r) for r in fetchall(cur)]

    def issue_copy(
        self,
        *,
        book_id: int,
        student_id: int,
        due_date: date,
        issued_at: datetime,
    ) -> Optional[LibraryTransaction]:
        with db_cursor(self._conn_factory) as (_, cur):
            # Conditional decrement: concurrent issues of the last copy cannot both succeed.
            cur.execute(
                """
                UPDATE library_books
                SET available_copies = available_copies - 1
                WHERE id=%s AND available_copies > 0
                """,
                (int(book_id),),
            )
            if cur.rowcount == 0:
                return None

            cur.execute(
                """
                INSERT INTO library_transactions(book_id, student_id, due_date, issued_at, status, fine_amount)
                VALUES(%s,%s,%s,%s,%s,0)
                """,
                (int(book_id), int(student_id), due_date, issued_at, LoanStatus.ISSUED.value),
            )
            tx_id = int(cur.lastrowid)

            cur.execute(f"SELECT {_TX_COLUMNS} FROM library_transactions WHERE id=%s", (tx_id,))
            return _row_to_tx(fetchone(cur))

    def get_transaction(self, transaction_id: int) -> Optional[LibraryTransaction]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_TX_COLUMNS} FROM library_transactions WHERE id=%s", (int(transaction_id),))
            r = fetchone(cur)
            return _row_to_tx(r) if r else None

    def return_copy(
        self,
        *,
        transaction_id: int,
        returned_at: datetime,
        fine_amount: float,
    ) -> Optional[LibraryTransaction]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE library_transactions
                SET status=%s, returned_at=%s, fine_amount=%s
                WHERE id=%s AND status=%s
                """,
                (
                    LoanStatus.RETURNED.value,
                    returned_at,
                    fine_amount,
                    int(transaction_id),
                    LoanStatus.ISSUED.value,
                ),
            )
            if cur.rowcount == 0:
                return None

            cur.execute(f"SELECT {_TX_COLUMNS} FROM library_transactions WHERE id=%s", (int(transaction_id),))
            tx = _row_to_tx(fetchone(cur))

            cur.execute(
                """
                UPDATE library_books
                SET available_copies = available_copies + 1
                WHERE id=%s AND available_copies < total_copies
                """,
                (tx.book_id,),
            )
            if cur.rowcount == 0:
                # Raising rolls back the status change above.
                raise ConflictError("copy count already at total copies")
            return tx

    def list_active_loans(self, *, student_id: Optional[int] = None, today: date) -> Sequence[ActiveLoan]:
        clauses = ["t.status=%s"]
        params: list[object] = [LoanStatus.ISSUED.value]
        if student_id is not None:
            clauses.append("t.student_id=%s")
            params.append(int(student_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT t.id, t.book_id, b.title, t.student_id, u.name AS student_name,
                       t.due_date, t.issued_at
                FROM library_transactions t
                JOIN library_books b ON b.id = t.book_id
                JOIN users u ON u.id = t.student_id
                WHERE {where}
                ORDER BY t.due_date ASC
                """,
                tuple(params),
            )
            return [
                ActiveLoan(
                    transaction_id=int(r["id"]),
                    book_id=int(r["book_id"]),
                    title=r["title"],
                    student_id=int(r["student_id"]),
                    student_name=r["student_name"],
                    due_date=r["due_date"],
                    issued_at=r["issued_at"],
                    days_overdue=max(0, (today - r["due_date"]).days),
                )
                for r in fetchall(cur)
            ]
