from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import Exam, ResultEntry, ResultRow, TimetableEntry
from .repository import ResultsRepository

_RESULT_COLUMNS = "id, exam_id, student_id, subject, marks, max_marks, grade, updated_at"
_TIMETABLE_COLUMNS = "id, exam_id, branch, semester, subject, exam_date, start_time, end_time"


def _row_to_exam(r: dict) -> Exam:
    return Exam(
        exam_id=int(r["id"]),
        title=r["title"],
        exam_type=r["exam_type"],
        created_by=int(r["created_by"]),
        created_at=r.get("created_at"),
    )


def _row_to_entry(r: dict) -> TimetableEntry:
    return TimetableEntry(
        entry_id=int(r["id"]),
        exam_id=int(r["exam_id"]),
        branch=r["branch"],
        semester=int(r["semester"]),
        subject=r["subject"],
        exam_date=r["exam_date"],
        start_time=normalize_mysql_time(r.get("start_time")),
        end_time=normalize_mysql_time(r.get("end_time")),
    )


def _row_to_result(r: dict) -> ResultRow:
    return ResultRow(
        result_id=int(r["id"]),
        exam_id=int(r["exam_id"]),
        student_id=int(r["student_id"]),
        subject=r["subject"],
        marks=float(r["marks"]),
        max_marks=float(r["max_marks"]),
        grade=r.get("grade"),
        updated_at=r.get("updated_at"),
    )


class MySQLResultsRepository(ResultsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_exam(self, *, title: str, exam_type: str, created_by: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO exams(title, exam_type, created_by) VALUES(%s,%s,%s)",
                (title, exam_type, int(created_by)),
            )
            return int(cur.lastrowid)

    def get_exam(self, exam_id: int) -> Optional[Exam]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id, title, exam_type, created_by, created_at FROM exams WHERE id=%s",
                (int(exam_id),),
            )
            r = fetchone(cur)
            return _row_to_exam(r) if r else None

    def list_exams(self) -> Sequence[Exam]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id, title, exam_type, created_by, created_at FROM exams ORDER BY id DESC")
            return [_row_to_exam(r) for r in fetchall(cur)]

    def add_timetable_entry(
        self,
        *,
        exam_id: int,
        branch: str,
        semester: int,
        subject: str,
        exam_date: date,
        start_time: Optional[time],
        end_time: Optional[time],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO exam_timetable(exam_id, branch, semester, subject, exam_date, start_time, end_time)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (int(exam_id), branch, int(semester), subject, exam_date, start_time, end_time),
            )
            return int(cur.lastrowid)

    def get_timetable_entry(self, entry_id: int) -> Optional[TimetableEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_TIMETABLE_COLUMNS} FROM exam_timetable WHERE id=%s", (int(entry_id),))
            r = fetchone(cur)
            return _row_to_entry(r) if r else None

    def list_timetable(
        self,
        *,
        branch: Optional[str] = None,
        semester: Optional[int] = None,
        exam_id: Optional[int] = None,
    ) -> Sequence[TimetableEntry]:
        clauses = []
        params: list[object] = []
        if branch is not None:
            clauses.append("branch=%s")
            params.append(branch)
        if semester is not None:
            clauses.append("semester=%s")
            params.append(int(semester))
        if exam_id is not None:
            clauses.append("exam_id=%s")
            params.append(int(exam_id))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_TIMETABLE_COLUMNS} FROM exam_timetable {where} ORDER BY exam_date, start_time",
                tuple(params),
            )
            return [_row_to_entry(r) for r in fetchall(cur)]

    def upsert_results(
        self,
        *,
        exam_id: int,
        subject: str,
        entries: Sequence[ResultEntry],
        updated_at: datetime,
    ) -> Sequence[ResultRow]:
        if not entries:
            return []

        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO results(exam_id, student_id, subject, marks, max_marks, grade, updated_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    marks=VALUES(marks),
                    max_marks=VALUES(max_marks),
                    grade=VALUES(grade),
                    updated_at=VALUES(updated_at)
                """,
                [
                    (int(exam_id), int(e.student_id), subject, e.marks, e.max_marks, e.grade, updated_at)
                    for e in entries
                ],
            )

            student_ids = [int(e.student_id) for e in entries]
            placeholders = ",".join(["%s"] * len(student_ids))
            cur.execute(
                f"""
                SELECT {_RESULT_COLUMNS}
                FROM results
                WHERE exam_id=%s AND subject=%s AND student_id IN ({placeholders})
                ORDER BY student_id
                """,
                tuple([int(exam_id), subject] + student_ids),
            )
            return [_row_to_result(r) for r in fetchall(cur)]

    def list_results(self, *, exam_id: int, student_id: Optional[int] = None) -> Sequence[ResultRow]:
        sql = f"SELECT {_RESULT_COLUMNS} FROM results WHERE exam_id=%s"
        params: list[object] = [int(exam_id)]
        if student_id is not None:
            sql += " AND student_id=%s"
            params.append(int(student_id))
        sql += " ORDER BY student_id, subject"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_result(r) for r in fetchall(cur)]
