from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Assignment, Submission
from .repository import AssignmentRepository

_ASSIGNMENT_COLUMNS = "id, title, description, branch, semester, due_date, file_url, faculty_id, created_at"
_SUBMISSION_COLUMNS = "id, assignment_id, student_id, file_url, submitted_at"


def _row_to_assignment(r: dict) -> Assignment:
    return Assignment(
        assignment_id=int(r["id"]),
        title=r["title"],
        description=r.get("description"),
        branch=r["branch"],
        semester=int(r["semester"]),
        due_date=r["due_date"],
        file_url=r.get("file_url"),
        faculty_id=int(r["faculty_id"]),
        created_at=r.get("created_at"),
    )


def _row_to_submission(r: dict) -> Submission:
    return Submission(
        submission_id=int(r["id"]),
        assignment_id=int(r["assignment_id"]),
        student_id=int(r["student_id"]),
        file_url=r["file_url"],
        submitted_at=r["submitted_at"],
    )


class MySQLAssignmentRepository(AssignmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_assignment(
        self,
        *,
        title: str,
        description: Optional[str],
        branch: str,
        semester: int,
        due_date: date,
        file_url: Optional[str],
        faculty_id: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO assignments(title, description, branch, semester, due_date, file_url, faculty_id)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (title, description, branch, int(semester), due_date, file_url, int(faculty_id)),
            )
            return int(cur.lastrowid)

    def get_assignment(self, assignment_id: int) -> Optional[Assignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_ASSIGNMENT_COLUMNS} FROM assignments WHERE id=%s", (int(assignment_id),))
            r = fetchone(cur)
            return _row_to_assignment(r) if r else None

    def list_assignments(
        self,
        *,
        branch: Optional[str] = None,
        semester: Optional[int] = None,
        faculty_id: Optional[int] = None,
    ) -> Sequence[Assignment]:
        clauses = []
        params: list[object] = []
        if branch is not None:
            clauses.append("branch=%s")
            params.append(branch)
        if semester is not None:
            clauses.append("semester=%s")
            params.append(int(semester))
        if faculty_id is not None:
            clauses.append("faculty_id=%s")
            params.append(int(faculty_id))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_ASSIGNMENT_COLUMNS} FROM assignments {where} ORDER BY due_date ASC, id ASC",
                tuple(params),
            )
            return [_row_to_assignment(r) for r in fetchall(cur)]

    def upsert_submission(
        self,
        *,
        assignment_id: int,
        student_id: int,
        file_url: str,
        submitted_at: datetime,
    ) -> Submission:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO assignment_submissions(assignment_id, student_id, file_url, submitted_at)
                VALUES(%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    file_url=VALUES(file_url),
                    submitted_at=VALUES(submitted_at)
                """,
                (int(assignment_id), int(student_id), file_url, submitted_at),
            )
            cur.execute(
                f"""
                SELECT {_SUBMISSION_COLUMNS}
                FROM assignment_submissions
                WHERE assignment_id=%s AND student_id=%s
                """,
                (int(assignment_id), int(student_id)),
            )
            return _row_to_submission(fetchone(cur))

    def list_submissions(self, assignment_id: int) -> Sequence[Submission]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SUBMISSION_COLUMNS} FROM assignment_submissions WHERE assignment_id=%s ORDER BY student_id",
                (int(assignment_id),),
            )
            return [_row_to_submission(r) for r in fetchall(cur)]
