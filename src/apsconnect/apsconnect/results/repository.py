from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional, Protocol, Sequence

from .model import Exam, ResultEntry, ResultRow, TimetableEntry


class ResultsRepository(Protocol):
    def create_exam(self, *, title: str, exam_type: str, created_by: int) -> int:
        raise NotImplementedError

    def get_exam(self, exam_id: int) -> Optional[Exam]:
        raise NotImplementedError

    def list_exams(self) -> Sequence[Exam]:
        raise NotImplementedError

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
        raise NotImplementedError

    def get_timetable_entry(self, entry_id: int) -> Optional[TimetableEntry]:
        raise NotImplementedError

    def list_timetable(
        self,
        *,
        branch: Optional[str] = None,
        semester: Optional[int] = None,
        exam_id: Optional[int] = None,
    ) -> Sequence[TimetableEntry]:
        raise NotImplementedError

    def upsert_results(
        self,
        *,
        exam_id: int,
        subject: str,
        entries: Sequence[ResultEntry],
        updated_at: datetime,
    ) -> Sequence[ResultRow]:
        """Insert or overwrite rows keyed (exam_id, student_id, subject)."""

        raise NotImplementedError

    def list_results(self, *, exam_id: int, student_id: Optional[int] = None) -> Sequence[ResultRow]:
        raise NotImplementedError
