from __future__ import annotations

import json
from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, optional_int
from .model import Poll, PollVote
from .repository import PollRepository

_POLL_COLUMNS = "id, faculty_id, question, options, branch, semester, active, created_at"


def _row_to_poll(r: dict) -> Poll:
    options = r["options"]
    if isinstance(options, (bytes, bytearray)):
        options = options.decode("utf-8")
    return Poll(
        poll_id=int(r["id"]),
        faculty_id=int(r["faculty_id"]),
        question=r["question"],
        options=list(json.loads(options) if isinstance(options, str) else options),
        branch=r.get("branch"),
        semester=optional_int(r.get("semester")),
        active=bool(r["active"]),
        created_at=r.get("created_at"),
    )


class MySQLPollRepository(PollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_poll(
        self,
        *,
        faculty_id: int,
        question: str,
        options: list[str],
        branch: Optional[str],
        semester: Optional[int],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO polls(faculty_id, question, options, branch, semester, active)
                VALUES(%s,%s,%s,%s,%s,1)
                """,
                (int(faculty_id), question, json.dumps(options), branch, optional_int(semester)),
            )
            return int(cur.lastrowid)

    def get_poll(self, poll_id: int) -> Optional[Poll]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_POLL_COLUMNS} FROM polls WHERE id=%s", (int(poll_id),))
            r = fetchone(cur)
            return _row_to_poll(r) if r else None

    def update_poll(self, *, poll_id: int, question: str, options: list[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE polls SET question=%s, options=%s WHERE id=%s",
                (question, json.dumps(options), int(poll_id)),
            )
            return cur.rowcount > 0

    def set_active(self, *, poll_id: int, active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE polls SET active=%s WHERE id=%s", (1 if active else 0, int(poll_id)))
            return cur.rowcount > 0

    def delete_poll(self, poll_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM polls WHERE id=%s", (int(poll_id),))
            return cur.rowcount > 0

    def list_polls(
        self,
        *,
        faculty_id: Optional[int] = None,
        branch: Optional[str] = None,
        semester: Optional[int] = None,
        audience: bool = False,
    ) -> Sequence[Poll]:
        clauses = []
        params: list[object] = []
        if faculty_id is not None:
            clauses.append("faculty_id=%s")
            params.append(int(faculty_id))
        if audience:
            clauses.append("(branch IS NULL OR branch=%s)")
            params.append(branch)
            clauses.append("(semester IS NULL OR semester=%s)")
            params.append(optional_int(semester))
        else:
            if branch is not None:
                clauses.append("branch=%s")
                params.append(branch)
            if semester is not None:
                clauses.append("semester=%s")
                params.append(int(semester))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_POLL_COLUMNS} FROM polls {where} ORDER BY created_at DESC, id DESC", tuple(params))
            return [_row_to_poll(r) for r in fetchall(cur)]

    def upsert_vote(self, *, poll_id: int, student_id: int, option: str, voted_at: datetime) -> PollVote:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO poll_votes(poll_id, student_id, `option`, voted_at)
                VALUES(%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    `option`=VALUES(`option`),
                    voted_at=VALUES(voted_at)
                """,
                (int(poll_id), int(student_id), option, voted_at),
            )
            cur.execute(
                "SELECT poll_id, student_id, `option`, voted_at FROM poll_votes WHERE poll_id=%s AND student_id=%s",
                (int(poll_id), int(student_id)),
            )
            r = fetchone(cur)
            return PollVote(
                poll_id=int(r["poll_id"]),
                student_id=int(r["student_id"]),
                option=r["option"],
                voted_at=r["voted_at"],
            )

    def count_votes(self, poll_id: int) -> dict[str, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT `option`, COUNT(*) AS votes FROM poll_votes WHERE poll_id=%s GROUP BY `option`",
                (int(poll_id),),
            )
            return {r["option"]: int(r["votes"]) for r in fetchall(cur)}
