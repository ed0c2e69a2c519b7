from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import Assignment, Submission


class AssignmentRepository(Protocol):
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
        raise NotImplementedError

    def get_assignment(self, assignment_id: int) -> Optional[Assignment]:
        raise NotImplementedError

    def list_assignments(
        self,
        *,
        branch: Optional[str] = None,
        semester: Optional[int] = None,
        faculty_id: Optional[int] = None,
    ) -> Sequence[Assignment]:
        raise NotImplementedError

    def upsert_submission(
        self,
        *,
        assignment_id: int,
        student_id: int,
        file_url: str,
        submitted_at: datetime,
    ) -> Submission:
        """One submission per (assignment, student); resubmitting overwrites it."""

        raise NotImplementedError

    def list_submissions(self, assignment_id: int) -> Sequence[Submission]:
        raise NotImplementedError
