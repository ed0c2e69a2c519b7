from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Optional

from ..core.enums import AttendanceStatus, ComplianceBand


@dataclass(frozen=True)
class AttendanceSession:
    """Domain entity: one class meeting students are marked against.

    Immutable after creation. When ``qr_token`` is set ``qr_expires_at`` is
    set too.
    """

    session_id: int
    branch: str
    semester: int
    subject: str
    faculty_id: int
    session_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    qr_token: Optional[str] = None
    qr_expires_at: Optional[datetime] = None

    @property
    def uses_qr(self) -> bool:
        return self.qr_token is not None

    def public_view(self, *, include_token: bool = False) -> dict:
        out = {
            "id": self.session_id,
            "branch": self.branch,
            "semester": self.semester,
            "subject": self.subject,
            "faculty_id": self.faculty_id,
            "session_date": self.session_date,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "uses_qr": self.uses_qr,
            "qr_expires_at": self.qr_expires_at,
        }
        if include_token:
            out["qr_token"] = self.qr_token
        return out


@dataclass(frozen=True)
class AttendanceRecord:
    """One row per (session_id, student_id); re-marking overwrites it."""

    record_id: int
    session_id: int
    student_id: int
    status: AttendanceStatus
    marked_by: int
    marked_at: datetime


@dataclass(frozen=True)
class StudentRecordRow:
    """Read-model: a student's record joined with its session subject."""

    subject: str
    session_date: date
    status: AttendanceStatus


@dataclass(frozen=True)
class StudentScopeRow:
    """Read-model for scope-wide reports."""

    student_id: int
    name: str
    branch: Optional[str]
    semester: Optional[int]
    attended: int
    total_sessions: int


@dataclass(frozen=True)
class SubjectAttendance:
    subject: str
    attended: int
    total: int
    percent: float


@dataclass(frozen=True)
class AttendanceSummary:
    student_id: int
    attended: int
    total_sessions: int
    percent: Optional[float]
    band: Optional[ComplianceBand]
    by_subject: list[SubjectAttendance] = field(default_factory=list)
