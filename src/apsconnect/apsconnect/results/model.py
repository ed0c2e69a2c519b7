from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import List, Optional


@dataclass(frozen=True)
class Exam:
    exam_id: int
    title: str
    exam_type: str
    created_by: int
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class TimetableEntry:
    entry_id: int
    exam_id: int
    branch: str
    semester: int
    subject: str
    exam_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None


@dataclass(frozen=True)
class ResultEntry:
    """One validated mark to be written for (exam, subject)."""

    student_id: int
    marks: float
    max_marks: float
    grade: Optional[str] = None


@dataclass(frozen=True)
class ResultRow:
    result_id: int
    exam_id: int
    student_id: int
    subject: str
    marks: float
    max_marks: float
    grade: Optional[str]
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class SubjectOutcome:
    subject: str
    marks: float
    max_marks: float
    grade: Optional[str]
    percent: Optional[float]
    passed: bool


@dataclass(frozen=True)
class ResultSummary:
    student_id: int
    exam_id: int
    total: float
    total_max: float
    percent: Optional[float]
    passed: bool
    subjects: List[SubjectOutcome] = field(default_factory=list)
