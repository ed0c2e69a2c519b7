from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta
from typing import Any, Callable, Optional, Sequence

from ..common.datetime_utils import now_local, parse_iso_date, parse_optional_time
from ..common.validators import optional_str, require_int
from ..core.constants import ATTENDANCE_AT_RISK_PERCENT, ATTENDANCE_COMPLIANT_PERCENT, DEFAULT_QR_MINUTES
from ..core.enums import AttendanceStatus, ComplianceBand, MarkMethod, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.policy import Actor, require_role, require_scope
from ..users.repository import UserRepository
from .factory import MarkingStrategyFactory
from .model import AttendanceRecord, AttendanceSession, AttendanceSummary, SubjectAttendance
from .qr_codes import parse_payload
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

ATTENDED_STATUSES = {AttendanceStatus.PRESENT, AttendanceStatus.LATE}


def classify(percent: Optional[float]) -> Optional[ComplianceBand]:
    """Map a percentage onto the reporting buckets (presentation only)."""
    if percent is None:
        return None
    if percent >= ATTENDANCE_COMPLIANT_PERCENT:
        return ComplianceBand.COMPLIANT
    if percent >= ATTENDANCE_AT_RISK_PERCENT:
        return ComplianceBand.AT_RISK
    return ComplianceBand.SHORTAGE


def percentage(part: int, whole: int) -> Optional[float]:
    if whole <= 0:
        return None
    return round(part / whole * 100, 2)


def parse_status(value: Any) -> Optional[AttendanceStatus]:
    if value is None or value == "":
        return None
    try:
        return AttendanceStatus(str(value).lower())
    except ValueError:
        raise ValidationError("status must be present, absent or late")


def parse_method(value: Any) -> MarkMethod:
    try:
        return MarkMethod(str(value or MarkMethod.MANUAL.value).lower())
    except ValueError:
        raise ValidationError("method must be manual or qr")


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        *,
        strategy_factory: MarkingStrategyFactory | None = None,
        qr_default_minutes: int = DEFAULT_QR_MINUTES,
        token_factory: Callable[[], str] | None = None,
    ):
        self._attendance = attendance
        self._users = users
        self._factory = strategy_factory or MarkingStrategyFactory()
        self._qr_default_minutes = int(qr_default_minutes)
        self._token_factory = token_factory or (lambda: secrets.token_urlsafe(16))

    # -------- Sessions --------
    def create_session(
        self,
        *,
        actor: Actor,
        branch: Any,
        semester: Any,
        subject: Any,
        session_date: Any,
        start_time: Any = None,
        end_time: Any = None,
        use_qr: bool = False,
        qr_minutes: Any = None,
        now: datetime | None = None,
    ) -> AttendanceSession:
        require_role(actor, Role.FACULTY, Role.ADMIN)

        branch_s = optional_str(branch)
        subject_s = optional_str(subject)
        if not branch_s or semester in (None, "") or not subject_s or not session_date:
            raise ValidationError("Missing required fields")

        semester_i = require_int(semester, "semester", minimum=1)
        day = parse_iso_date(session_date, "session_date")
        start = parse_optional_time(start_time, "start_time")
        end = parse_optional_time(end_time, "end_time")
        if start and end and end < start:
            raise ValidationError("end_time must be after start_time")

        qr_token = None
        qr_expires_at = None
        if use_qr:
            minutes = self._qr_default_minutes
            if qr_minutes not in (None, ""):
                minutes = require_int(qr_minutes, "qr_minutes", minimum=1)
            now = now or now_local()
            qr_token = self._token_factory()
            qr_expires_at = now + timedelta(minutes=minutes)

        session_id = self._attendance.create_session(
            branch=branch_s,
            semester=semester_i,
            subject=subject_s,
            faculty_id=actor.user_id,
            session_date=day,
            start_time=start,
            end_time=end,
            qr_token=qr_token,
            qr_expires_at=qr_expires_at,
        )
        logger.info("attendance session id=%s created by user id=%s (qr=%s)", session_id, actor.user_id, bool(qr_token))
        return self.get_session(session_id)

    def get_session(self, session_id: int) -> AttendanceSession:
        session = self._attendance.get_session(int(session_id))
        if not session:
            raise NotFoundError("session not found")
        return session

    def list_sessions(
        self,
        *,
        actor: Actor,
        branch: Optional[str] = None,
        semester: Optional[int] = None,
    ) -> Sequence[AttendanceSession]:
        if actor.role in {Role.STUDENT, Role.ALUMNI}:
            branch, semester = actor.branch, actor.semester
        return self._attendance.list_sessions(branch=branch, semester=semester)

    def session_for_qr(self, *, actor: Actor, session_id: int) -> AttendanceSession:
        require_role(actor, Role.FACULTY, Role.ADMIN)
        session = self.get_session(session_id)
        if actor.role == Role.FACULTY and session.faculty_id != actor.user_id:
            require_scope(actor, session.branch, session.semester)
        return session

    # -------- Marking --------
    def mark(
        self,
        *,
        actor: Actor,
        session_id: Any,
        method: Any = None,
        token: Optional[str] = None,
        status: Any = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        if session_id in (None, ""):
            raise ValidationError("session_id required")
        mark_method = parse_method(method)
        requested = parse_status(status)
        now = now or now_local()

        session = self.get_session(require_int(session_id, "session_id"))
        strategy = self._factory.for_method(mark_method)
        decision = strategy.decide(session=session, actor=actor, token=token, requested=requested, now=now)

        records = self._attendance.upsert_records(
            session_id=session.session_id,
            marks=[(actor.user_id, decision.status)],
            marked_by=actor.user_id,
            marked_at=now,
        )
        if not records:
            raise NotFoundError("attendance record not found")
        return records[0]

    def mark_from_scan(self, *, actor: Actor, payload: str, now: datetime | None = None) -> AttendanceRecord:
        session_id, token = parse_payload(payload)
        return self.mark(actor=actor, session_id=session_id, method=MarkMethod.QR.value, token=token, now=now)

    def bulk_mark(
        self,
        *,
        actor: Actor,
        session_id: Any,
        marks: Any,
        now: datetime | None = None,
    ) -> Sequence[AttendanceRecord]:
        require_role(actor, Role.FACULTY, Role.ADMIN)
        if session_id in (None, ""):
            raise ValidationError("session_id required")

        session = self.get_session(require_int(session_id, "session_id"))
        require_scope(actor, session.branch, session.semester)

        if not isinstance(marks, list) or not marks:
            raise ValidationError("no marks")

        # One row per student; a later entry for the same student wins.
        by_student: dict[int, AttendanceStatus] = {}
        for m in marks:
            if not isinstance(m, dict):
                raise ValidationError("each mark needs student_id and status")
            student_id = require_int(m.get("student_id"), "student_id")
            st = parse_status(m.get("status"))
            if st is None:
                raise ValidationError("status required")
            by_student[student_id] = st

        return self._attendance.upsert_records(
            session_id=session.session_id,
            marks=list(by_student.items()),
            marked_by=actor.user_id,
            marked_at=now or now_local(),
        )

    # -------- Aggregation --------
    def student_summary(self, *, actor: Actor, student_id: Any = None) -> AttendanceSummary:
        target_id = actor.user_id if student_id in (None, "") else require_int(student_id, "student_id")

        student = self._users.get_by_id(target_id)
        if not student:
            raise NotFoundError("student not found")

        if target_id != actor.user_id:
            if actor.role not in {Role.FACULTY, Role.ADMIN}:
                raise AuthorizationError("forbidden")
            require_scope(actor, student.branch, student.semester)

        attended, total = 0, 0
        if student.branch is not None and student.semester is not None:
            attended, total = self._attendance.get_student_counts(
                student_id=target_id, branch=student.branch, semester=student.semester
            )

        grouped: dict[str, list[int]] = {}
        for row in self._attendance.list_student_records(student_id=target_id):
            bucket = grouped.setdefault(row.subject, [0, 0])
            bucket[1] += 1
            if row.status in ATTENDED_STATUSES:
                bucket[0] += 1

        by_subject = [
            SubjectAttendance(subject=subject, attended=p, total=t, percent=percentage(p, t) or 0.0)
            for subject, (p, t) in sorted(grouped.items())
        ]

        pct = percentage(attended, total)
        return AttendanceSummary(
            student_id=target_id,
            attended=attended,
            total_sessions=total,
            percent=pct,
            band=classify(pct),
            by_subject=by_subject,
        )

    def distribution(
        self,
        *,
        actor: Actor,
        branch: Optional[str] = None,
        semester: Optional[int] = None,
    ) -> dict:
        require_role(actor, Role.FACULTY, Role.ADMIN)
        if actor.role == Role.FACULTY:
            branch = branch if branch is not None else actor.branch
            semester = semester if semester is not None else actor.semester
            require_scope(actor, branch, semester)

        counts = {band.value: 0 for band in ComplianceBand}
        students = []
        for row in self._attendance.scope_summary(branch=branch, semester=semester):
            pct = percentage(row.attended, row.total_sessions)
            band = classify(pct)
            if band is not None:
                counts[band.value] += 1
            students.append(
                {
                    "student_id": row.student_id,
                    "name": row.name,
                    "branch": row.branch,
                    "semester": row.semester,
                    "attended": row.attended,
                    "total_sessions": row.total_sessions,
                    "percent": pct,
                    "band": band.value if band else None,
                }
            )

        return {"buckets": counts, "students": students}
