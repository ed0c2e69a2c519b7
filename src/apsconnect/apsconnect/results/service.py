from __future__ import annotations

import csv
import io
import logging
from datetime import datetime
from typing import Any, Optional, Sequence

from ..common.datetime_utils import now_local, parse_iso_date, parse_optional_time
from ..common.validators import optional_str, require_int, require_non_empty
from ..core.constants import DEFAULT_MAX_MARKS, RESULT_PASS_PERCENT
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.policy import Actor, require_role, require_scope
from ..notifications.model import BroadcastTarget
from ..notifications.service import NotificationService
from ..users.repository import UserRepository
from .model import Exam, ResultEntry, ResultRow, ResultSummary, SubjectOutcome, TimetableEntry
from .repository import ResultsRepository

logger = logging.getLogger(__name__)

EXPORT_HEADER = ["exam_id", "student_id", "subject", "marks", "max_marks", "grade", "updated_at"]


def _number(value: Any, field_name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")


def _percent(part: float, whole: float) -> Optional[float]:
    if whole <= 0:
        return None
    return round(part / whole * 100, 2)


class ResultsService:
    def __init__(
        self,
        results: ResultsRepository,
        users: UserRepository,
        notifications: NotificationService,
        *,
        pass_percent: float = RESULT_PASS_PERCENT,
    ):
        self._results = results
        self._users = users
        self._notifications = notifications
        self._pass_percent = float(pass_percent)

    # -------- Exams --------
    def create_exam(self, *, actor: Actor, title: Any, exam_type: Any) -> Exam:
        require_role(actor, Role.FACULTY, Role.ADMIN)
        if not optional_str(title) or not optional_str(exam_type):
            raise ValidationError("Missing fields")

        exam_id = self._results.create_exam(
            title=optional_str(title),
            exam_type=optional_str(exam_type),
            created_by=actor.user_id,
        )
        return self.get_exam(exam_id)

    def get_exam(self, exam_id: Any) -> Exam:
        exam = self._results.get_exam(require_int(exam_id, "exam_id"))
        if not exam:
            raise NotFoundError("exam not found")
        return exam

    def list_exams(self) -> Sequence[Exam]:
        return self._results.list_exams()

    def add_timetable_entry(
        self,
        *,
        actor: Actor,
        exam_id: Any,
        branch: Any,
        semester: Any,
        subject: Any,
        exam_date: Any,
        start_time: Any = None,
        end_time: Any = None,
    ) -> TimetableEntry:
        require_role(actor, Role.FACULTY, Role.ADMIN)
        if exam_id in (None, "") or not optional_str(branch) or semester in (None, "") or not optional_str(subject) or not exam_date:
            raise ValidationError("Missing fields")

        exam = self.get_exam(exam_id)
        start = parse_optional_time(start_time, "start_time")
        end = parse_optional_time(end_time, "end_time")
        if start and end and end < start:
            raise ValidationError("end_time must be after start_time")

        entry_id = self._results.add_timetable_entry(
            exam_id=exam.exam_id,
            branch=optional_str(branch),
            semester=require_int(semester, "semester", minimum=1),
            subject=optional_str(subject),
            exam_date=parse_iso_date(exam_date, "exam_date"),
            start_time=start,
            end_time=end,
        )
        entry = self._results.get_timetable_entry(entry_id)
        if not entry:
            raise NotFoundError("timetable entry not found")
        return entry

    def timetable(
        self,
        *,
        actor: Actor,
        branch: Optional[str] = None,
        semester: Optional[int] = None,
        exam_id: Optional[int] = None,
    ) -> Sequence[TimetableEntry]:
        if actor.role in {Role.STUDENT, Role.ALUMNI}:
            branch, semester = actor.branch, actor.semester
        return self._results.list_timetable(branch=branch, semester=semester, exam_id=exam_id)

    # -------- Marks --------
    def upload(
        self,
        *,
        actor: Actor,
        exam_id: Any,
        subject: Any,
        marks: Any,
        now: datetime | None = None,
    ) -> Sequence[ResultRow]:
        require_role(actor, Role.FACULTY, Role.ADMIN)
        subject_s = optional_str(subject)
        if exam_id in (None, "") or not subject_s or not isinstance(marks, list):
            raise ValidationError("Invalid payload")

        exam = self.get_exam(exam_id)

        # Keyed like the table: a later entry for the same student wins.
        entries: dict[int, ResultEntry] = {}
        for m in marks:
            if not isinstance(m, dict):
                raise ValidationError("each entry needs student_id and marks")
            student_id = require_int(m.get("student_id"), "student_id")
            max_marks = DEFAULT_MAX_MARKS if m.get("max_marks") in (None, "") else _number(m.get("max_marks"), "max_marks")
            if max_marks <= 0:
                raise ValidationError("max_marks must be positive")
            value = _number(m.get("marks"), "marks")
            if value < 0 or value > max_marks:
                raise ValidationError(f"marks for student {student_id} must be between 0 and {max_marks:g}")
            entries[student_id] = ResultEntry(
                student_id=student_id,
                marks=value,
                max_marks=max_marks,
                grade=optional_str(m.get("grade")),
            )

        rows = self._results.upsert_results(
            exam_id=exam.exam_id,
            subject=subject_s,
            entries=list(entries.values()),
            updated_at=now or now_local(),
        )
        logger.info("results upserted: exam id=%s subject=%s rows=%s", exam.exam_id, subject_s, len(rows))
        return rows

    def student_summary(self, *, actor: Actor, exam_id: Any, student_id: Any = None) -> ResultSummary:
        if exam_id in (None, ""):
            raise ValidationError("exam_id required")
        exam = self.get_exam(exam_id)

        target_id = actor.user_id if student_id in (None, "") else require_int(student_id, "student_id")
        if target_id != actor.user_id:
            if actor.role not in {Role.FACULTY, Role.ADMIN}:
                raise AuthorizationError("forbidden")
            student = self._users.get_by_id(target_id)
            if not student:
                raise NotFoundError("student not found")
            require_scope(actor, student.branch, student.semester)

        rows = self._results.list_results(exam_id=exam.exam_id, student_id=target_id)

        subjects = []
        for r in rows:
            pct = _percent(r.marks, r.max_marks)
            subjects.append(
                SubjectOutcome(
                    subject=r.subject,
                    marks=r.marks,
                    max_marks=r.max_marks,
                    grade=r.grade,
                    percent=pct,
                    passed=pct is not None and pct >= self._pass_percent,
                )
            )

        total = sum(r.marks for r in rows)
        total_max = sum(r.max_marks for r in rows)
        return ResultSummary(
            student_id=target_id,
            exam_id=exam.exam_id,
            total=total,
            total_max=total_max,
            percent=_percent(total, total_max),
            passed=bool(subjects) and all(s.passed for s in subjects),
            subjects=subjects,
        )

    def export_csv(self, *, actor: Actor, exam_id: Any) -> str:
        require_role(actor, Role.ADMIN)
        if exam_id in (None, ""):
            raise ValidationError("exam_id required")
        exam = self.get_exam(exam_id)

        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\n")
        writer.writerow(EXPORT_HEADER)
        for r in self._results.list_results(exam_id=exam.exam_id):
            writer.writerow(
                [
                    r.exam_id,
                    r.student_id,
                    r.subject,
                    f"{r.marks:g}",
                    f"{r.max_marks:g}",
                    r.grade or "",
                    r.updated_at.isoformat() if r.updated_at else "",
                ]
            )
        return buf.getvalue()

    def publish(self, *, actor: Actor, exam_id: Any, subject: Any, branch: Any, semester: Any) -> Optional[int]:
        """Announce results to the students of one branch+semester."""
        require_role(actor, Role.FACULTY, Role.ADMIN)
        subject_s = require_non_empty(subject, "subject")
        branch_s = require_non_empty(branch, "branch")
        if exam_id in (None, "") or semester in (None, ""):
            raise ValidationError("Missing fields")
        semester_i = require_int(semester, "semester", minimum=1)
        self.get_exam(exam_id)

        return self._notifications.notify(
            BroadcastTarget(role_target=Role.STUDENT, branch=branch_s, semester=semester_i),
            f"Results published: {subject_s}",
            f"Results for {subject_s} ({branch_s} Sem {semester_i}) are now available.",
            sender_id=actor.user_id,
        )
