from __future__ import annotations

from datetime import date
from typing import Collection, Optional, Sequence

from ..core.enums import FeeStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Fee
from .repository import FeeRepository

_FEE_COLUMNS = "id, student_id, amount, due_date, status, payment_screenshot, verified, remark, created_at"


def _row_to_fee(r: dict) -> Fee:
    return Fee(
        fee_id=int(r["id"]),
        student_id=int(r["student_id"]),
        amount=float(r["amount"]),
        due_date=r.get("due_date"),
        status=FeeStatus(r["status"]),
        payment_screenshot=r.get("payment_screenshot"),
        verified=bool(r.get("verified")),
        remark=r.get("remark"),
        created_at=r.get("created_at"),
    )


class MySQLFeeRepository(FeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert_fee(
        self,
        *,
        student_id: int,
        amount: float,
        due_date: Optional[date],
        status: FeeStatus,
        payment_screenshot: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO fees(student_id, amount, due_date, status, payment_screenshot, verified)
                VALUES(%s,%s,%s,%s,%s,0)
                """,
                (int(student_id), amount, due_date, status.value, payment_screenshot),
            )
            return int(cur.lastrowid)

    def get_fee(self, fee_id: int) -> Optional[Fee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_FEE_COLUMNS} FROM fees WHERE id=%s", (int(fee_id),))
            r = fetchone(cur)
            return _row_to_fee(r) if r else None

    def transition(
        self,
        *,
        fee_id: int,
        from_statuses: Collection[FeeStatus],
        to_status: FeeStatus,
        verified: bool,
        remark: Optional[str] = None,
        payment_screenshot: Optional[str] = None,
    ) -> bool:
        if not from_statuses:
            return False

        placeholders = ",".join(["%s"] * len(from_statuses))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE fees
                SET status=%s,
                    verified=%s,
                    remark=COALESCE(%s, remark),
                    payment_screenshot=COALESCE(%s, payment_screenshot)
                WHERE id=%s AND status IN ({placeholders})
                """,
                tuple(
                    [to_status.value, 1 if verified else 0, remark, payment_screenshot, int(fee_id)]
                    + [s.value for s in from_statuses]
                ),
            )
            return cur.rowcount > 0

    def list_fees(
        self,
        *,
        student_id: Optional[int] = None,
        status: Optional[FeeStatus] = None,
        branch: Optional[str] = None,
        semester: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[Fee]:
        clauses = []
        params: list[object] = []
        if student_id is not None:
            clauses.append("student_id=%s")
            params.append(int(student_id))
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if branch is not None or semester is not None:
            # branch/semester live on the student row
            sub = []
            if branch is not None:
                sub.append("branch=%s")
                params.append(branch)
            if semester is not None:
                sub.append("semester=%s")
                params.append(int(semester))
            clauses.append(f"student_id IN (SELECT id FROM users WHERE {' AND '.join(sub)})")

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_FEE_COLUMNS} FROM fees {where} ORDER BY created_at DESC, id DESC LIMIT %s",
                tuple(params),
            )
            return [_row_to_fee(r) for r in fetchall(cur)]
