from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, AttendanceSession, StudentRecordRow, StudentScopeRow


class AttendanceRepository(Protocol):
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
        raise NotImplementedError

    def get_session(self, session_id: int) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def list_sessions(
        self,
        *,
        branch: Optional[str] = None,
        semester: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[AttendanceSession]:
        raise NotImplementedError

    def upsert_records(
        self,
        *,
        session_id: int,
        marks: Sequence[tuple[int, AttendanceStatus]],
        marked_by: int,
        marked_at: datetime,
    ) -> Sequence[AttendanceRecord]:
        """Insert-or-update keyed on (session_id, student_id), one transaction.

        Returns the stored rows for the given students.
        """

        raise NotImplementedError

    def get_student_counts(self, *, student_id: int, branch: str, semester: int) -> tuple[int, int]:
        """Return (attended, total_sessions) for the student's scope."""

        raise NotImplementedError

    def list_student_records(self, *, student_id: int) -> Sequence[StudentRecordRow]:
        raise NotImplementedError

    def scope_summary(
        self,
        *,
        branch: Optional[str] = None,
        semester: Optional[int] = None,
    ) -> Sequence[StudentScopeRow]:
        raise NotImplementedError
