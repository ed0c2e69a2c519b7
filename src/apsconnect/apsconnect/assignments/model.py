from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class Assignment:
    assignment_id: int
    title: str
    description: Optional[str]
    branch: str
    semester: int
    due_date: date
    file_url: Optional[str]
    faculty_id: int
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Submission:
    submission_id: int
    assignment_id: int
    student_id: int
    file_url: str
    submitted_at: datetime
