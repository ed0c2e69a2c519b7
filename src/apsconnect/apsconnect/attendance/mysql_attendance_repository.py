from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time, optional_int
from .model import AttendanceRecord, AttendanceSession, StudentRecordRow, StudentScopeRow
from .repository import AttendanceRepository

_ATTENDED = (AttendanceStatus.PRESENT.value, AttendanceStatus.LATE.value)

_SESSION_COLUMNS = """
    id, branch, semester, subject, faculty_id, session_date,
    start_time, end_time, qr_token, qr_expires_at
"""


def _row_to_session(r: dict) -> AttendanceSession:
    return AttendanceSession(
        session_id=int(r["id"]),
        branch=r["branch"],
        semester=int(r["semester"]),
        subject=r["subject"],
        faculty_id=int(r["faculty_id"]),
        session_date=r["session_date"],
        start_time=normalize_mysql_time(r.get("start_time")),
        end_time=normalize_mysql_time(r.get("end_time")),
        qr_token=r.get("qr_token"),
        qr_expires_at=r.get("qr_expires_at"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_session(
        self,
        *,
        branch: str,
        semester: int,
        subject: str,
        faculty_id: int,
        session_date: date,
        start_time: Optional[time],
        end_time: Optional[time],
        qr_token: Optional[str],
        qr_expires_at: Optional[datetime],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_sessions(
                    branch, semester, subject, faculty_id, session_date,
                    start_time, end_time, qr_token, qr_expires_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    branch,
                    int(semester),
                    subject,
                    int(faculty_id),
                    session_date,
                    start_time,
                    end_time,
                    qr_token,
                    qr_expires_at,
                ),
            )
            return int(cur.lastrowid)

    def get_session(self, session_id: int) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SESSION_COLUMNS} FROM attendance_sessions WHERE id=%s",
                (int(session_id),),
            )
            r = fetchone(cur)
            return _row_to_session(r) if r else None

    def list_sessions(
        self,
        *,
        branch: Optional[str] = None,
        semester: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[AttendanceSession]:
        clauses = ["1=1"]
        params: list[object] = []

        if branch is not None:
            clauses.append("branch=%s")
            params.append(branch)
        if semester is not None:
            clauses.append("semester=%s")
            params.append(int(semester))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM attendance_sessions
                WHERE {where}
                ORDER BY session_date DESC, id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_row_to_session(r) for r in fetchall(cur)]

    def upsert_records(
        self,
        *,
        session_id: int,
        marks: Sequence[tuple[int, AttendanceStatus]],
        marked_by: int,
        marked_at: datetime,
    ) -> Sequence[AttendanceRecord]:
        if not marks:
            return []

        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO attendance_records(session_id, student_id, status, marked_by, marked_at)
                VALUES(%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status),
                    marked_by=VALUES(marked_by),
                    marked_at=VALUES(marked_at)
                """,
                [
                    (int(session_id), int(student_id), status.value, int(marked_by), marked_at)
                    for student_id, status in marks
                ],
            )

            student_ids = [int(student_id) for student_id, _ in marks]
            placeholders = ",".join(["%s"] * len(student_ids))
            cur.execute(
                f"""
                SELECT id, session_id, student_id, status, marked_by, marked_at
                FROM attendance_records
                WHERE session_id=%s AND student_id IN ({placeholders})
                ORDER BY student_id
                """,
                tuple([int(session_id)] + student_ids),
            )
            return [
                AttendanceRecord(
                    record_id=int(r["id"]),
                    session_id=int(r["session_id"]),
                    student_id=int(r["student_id"]),
                    status=AttendanceStatus(r["status"]),
                    marked_by=int(r["marked_by"]),
                    marked_at=r["marked_at"],
                )
                for r in fetchall(cur)
            ]

    def get_student_counts(self, *, student_id: int, branch: str, semester: int) -> tuple[int, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    (SELECT COUNT(*) FROM attendance_sessions s
                      WHERE s.branch=%s AND s.semester=%s) AS total_sessions,
                    (SELECT COUNT(*) FROM attendance_records r
                      JOIN attendance_sessions s ON s.id = r.session_id
                      WHERE r.student_id=%s AND s.branch=%s AND s.semester=%s
                        AND r.status IN (%s,%s)) AS attended
                """,
                (branch, int(semester), int(student_id), branch, int(semester), *_ATTENDED),
            )
            r = fetchone(cur) or {}
            return int(r.get("attended") or 0), int(r.get("total_sessions") or 0)

    def list_student_records(self, *, student_id: int) -> Sequence[StudentRecordRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT s.subject, s.session_date, r.status
                FROM attendance_records r
                JOIN attendance_sessions s ON s.id = r.session_id
                WHERE r.student_id=%s
                ORDER BY s.session_date DESC
                """,
                (int(student_id),),
            )
            return [
                StudentRecordRow(
                    subject=r["subject"],
                    session_date=r["session_date"],
                    status=AttendanceStatus(r["status"]),
                )
                for r in fetchall(cur)
            ]

    def scope_summary(
        self,
        *,
        branch: Optional[str] = None,
        semester: Optional[int] = None,
    ) -> Sequence[StudentScopeRow]:
        clauses = ["u.role='student'"]
        params: list[object] = [*_ATTENDED]

        if branch is not None:
            clauses.append("u.branch=%s")
            params.append(branch)
        if semester is not None:
            clauses.append("u.semester=%s")
            params.append(int(semester))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT u.id AS student_id, u.name, u.branch, u.semester,
                       (SELECT COUNT(*) FROM attendance_sessions s
                         WHERE s.branch = u.branch AND s.semester = u.semester) AS total_sessions,
                       (SELECT COUNT(*) FROM attendance_records r
                         JOIN attendance_sessions s ON s.id = r.session_id
                         WHERE r.student_id = u.id
                           AND s.branch = u.branch AND s.semester = u.semester
                           AND r.status IN (%s,%s)) AS attended
                FROM users u
                WHERE {where}
                ORDER BY u.name
                """,
                tuple(params),
            )
            return [
                StudentScopeRow(
                    student_id=int(r["student_id"]),
                    name=r["name"],
                    branch=r.get("branch"),
                    semester=optional_int(r.get("semester")),
                    attended=int(r.get("attended") or 0),
                    total_sessions=int(r.get("total_sessions") or 0),
                )
                for r in fetchall(cur)
            ]
