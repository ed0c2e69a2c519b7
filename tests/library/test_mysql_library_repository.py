"""SQL path of issue/return against a scripted cursor (no database)."""
from datetime import date, datetime

import pytest

from src.apsconnect.apsconnect.core.enums import LoanStatus
from src.apsconnect.apsconnect.core.exceptions import ConflictError
from src.apsconnect.apsconnect.library.mysql_library_repository import MySQLLibraryRepository

ISSUED_AT = datetime(2026, 2, 2, 9, 0)
DUE = date(2026, 2, 10)


def _tx_row(status="issued"):
    return {
        "id": 7,
        "book_id": 3,
        "student_id": 11,
        "due_date": DUE,
        "issued_at": ISSUED_AT,
        "status": status,
        "returned_at": None,
        "fine_amount": 0,
    }


class ScriptedCursor:
    """Each execute() pops the next (rowcount, lastrowid, row) step."""

    def __init__(self, steps):
        self._steps = list(steps)
        self.statements = []
        self.rowcount = -1
        self.lastrowid = None
        self._row = None

    def execute(self, sql, params=None):
        self.statements.append(" ".join(sql.split()))
        self.rowcount, self.lastrowid, self._row = self._steps.pop(0)

    def fetchone(self):
        return self._row

    def close(self):
        pass


class ScriptedConnection:
    def __init__(self, steps):
        self.cur = ScriptedCursor(steps)
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary=True):
        return self.cur

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class ScriptedFactory:
    def __init__(self, steps):
        self.conn = ScriptedConnection(steps)

    def connect(self):
        return self.conn


def test_issue_stops_when_no_copy_was_decremented():
    factory = ScriptedFactory([(0, None, None)])

    tx = MySQLLibraryRepository(factory).issue_copy(book_id=3, student_id=11, due_date=DUE, issued_at=ISSUED_AT)

    assert tx is None
    assert len(factory.conn.cur.statements) == 1
    assert "available_copies > 0" in factory.conn.cur.statements[0]
    assert factory.conn.committed and factory.conn.closed


def test_issue_inserts_after_decrement_in_one_transaction():
    factory = ScriptedFactory([(1, None, None), (1, 7, None), (1, None, _tx_row())])

    tx = MySQLLibraryRepository(factory).issue_copy(book_id=3, student_id=11, due_date=DUE, issued_at=ISSUED_AT)

    assert tx.transaction_id == 7
    assert tx.status == LoanStatus.ISSUED
    statements = factory.conn.cur.statements
    assert statements[0].startswith("UPDATE library_books")
    assert statements[1].startswith("INSERT INTO library_transactions")
    assert factory.conn.committed and not factory.conn.rolled_back


def test_return_of_closed_loan_changes_nothing():
    factory = ScriptedFactory([(0, None, None)])

    tx = MySQLLibraryRepository(factory).return_copy(transaction_id=7, returned_at=ISSUED_AT, fine_amount=0)

    assert tx is None
    assert len(factory.conn.cur.statements) == 1
    assert "status=%s" in factory.conn.cur.statements[0]


def test_return_rolls_back_when_copies_already_full():
    factory = ScriptedFactory([(1, None, None), (1, None, _tx_row("returned")), (0, None, None)])

    with pytest.raises(ConflictError):
        MySQLLibraryRepository(factory).return_copy(transaction_id=7, returned_at=ISSUED_AT, fine_amount=0)

    assert "available_copies < total_copies" in factory.conn.cur.statements[-1]
    assert factory.conn.rolled_back
    assert not factory.conn.committed
    assert factory.conn.closed
