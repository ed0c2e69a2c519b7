from __future__ import annotations

from datetime import timedelta

import pytest

from src.apsconnect.apsconnect.core.enums import AttendanceStatus, ComplianceBand, Role
from src.apsconnect.apsconnect.core.exceptions import AuthorizationError, NotFoundError, ValidationError


@pytest.fixture
def people(repos):
    faculty = repos.users.add(role=Role.FACULTY)
    student = repos.users.add(role=Role.STUDENT)
    other_branch = repos.users.add(role=Role.STUDENT, branch="ECE")
    return faculty.to_actor(), student.to_actor(), other_branch.to_actor()


def _qr_session(container, faculty, fixed_now, minutes=10):
    return container.attendance_service.create_session(
        actor=faculty,
        branch="CSE",
        semester=3,
        subject="DBMS",
        session_date="2026-02-02",
        use_qr=True,
        qr_minutes=minutes,
        now=fixed_now,
    )


def test_create_session_requires_staff(container, people, fixed_now):
    _, student, _ = people
    with pytest.raises(AuthorizationError):
        _qr_session(container, student, fixed_now)


def test_create_session_missing_fields(container, people):
    faculty, _, _ = people
    with pytest.raises(ValidationError, match="Missing required fields"):
        container.attendance_service.create_session(
            actor=faculty, branch="CSE", semester=3, subject="", session_date="2026-02-02"
        )


def test_qr_session_gets_token_and_expiry(container, people, fixed_now):
    faculty, _, _ = people
    session = _qr_session(container, faculty, fixed_now, minutes=10)

    assert session.qr_token
    assert session.qr_expires_at == fixed_now + timedelta(minutes=10)


def test_qr_default_window_is_used_when_not_given(container, people, fixed_now):
    faculty, _, _ = people
    session = container.attendance_service.create_session(
        actor=faculty, branch="CSE", semester=3, subject="OS", session_date="2026-02-02", use_qr=True, now=fixed_now
    )
    assert session.qr_expires_at == fixed_now + timedelta(minutes=15)


def test_qr_mark_is_idempotent_and_expires(container, repos, people, fixed_now):
    faculty, student, _ = people
    session = _qr_session(container, faculty, fixed_now, minutes=10)
    svc = container.attendance_service

    first = svc.mark(actor=student, session_id=session.session_id, method="qr", token=session.qr_token,
                     now=fixed_now + timedelta(minutes=5))
    second = svc.mark(actor=student, session_id=session.session_id, method="qr", token=session.qr_token,
                      now=fixed_now + timedelta(minutes=6))

    assert first.status == AttendanceStatus.PRESENT
    assert second.record_id == first.record_id
    assert len(repos.attendance.records) == 1

    with pytest.raises(AuthorizationError, match="qr expired"):
        svc.mark(actor=student, session_id=session.session_id, method="qr", token=session.qr_token,
                 now=fixed_now + timedelta(minutes=11))
    assert len(repos.attendance.records) == 1


def test_qr_mark_rejects_wrong_token_and_other_scope(container, repos, people, fixed_now):
    faculty, student, other_branch = people
    session = _qr_session(container, faculty, fixed_now)
    svc = container.attendance_service

    with pytest.raises(AuthorizationError, match="invalid qr token"):
        svc.mark(actor=student, session_id=session.session_id, method="qr", token="guess", now=fixed_now)
    with pytest.raises(AuthorizationError, match="not allowed"):
        svc.mark(actor=other_branch, session_id=session.session_id, method="qr", token=session.qr_token,
                 now=fixed_now)

    assert repos.attendance.records == {}


def test_mark_from_scan_uses_payload(container, repos, people, fixed_now):
    faculty, student, _ = people
    session = _qr_session(container, faculty, fixed_now)

    record = container.attendance_service.mark_from_scan(
        actor=student, payload=f"{session.session_id}:{session.qr_token}", now=fixed_now
    )

    assert record.student_id == student.user_id
    assert record.status == AttendanceStatus.PRESENT


def test_manual_mark_defaults_and_overwrites(container, people, fixed_now):
    faculty, student, _ = people
    session = _qr_session(container, faculty, fixed_now)
    svc = container.attendance_service

    assert svc.mark(actor=student, session_id=session.session_id, now=fixed_now).status == AttendanceStatus.PRESENT
    record = svc.mark(actor=student, session_id=session.session_id, method="manual", status="late", now=fixed_now)
    assert record.status == AttendanceStatus.LATE


@pytest.mark.parametrize(
    "kwargs, error",
    [
        ({"session_id": None}, ValidationError),
        ({"session_id": 1, "method": "carrier-pigeon"}, ValidationError),
        ({"session_id": 1, "status": "asleep"}, ValidationError),
        ({"session_id": 999}, NotFoundError),
    ],
)
def test_mark_input_errors(container, people, fixed_now, kwargs, error):
    faculty, student, _ = people
    _qr_session(container, faculty, fixed_now)
    with pytest.raises(error):
        container.attendance_service.mark(actor=student, now=fixed_now, **kwargs)


def test_bulk_mark_upserts_last_entry_wins(container, repos, people, fixed_now):
    faculty, student, _ = people
    session = _qr_session(container, faculty, fixed_now)

    rows = container.attendance_service.bulk_mark(
        actor=faculty,
        session_id=session.session_id,
        marks=[
            {"student_id": student.user_id, "status": "absent"},
            {"student_id": student.user_id, "status": "late"},
        ],
        now=fixed_now,
    )

    assert len(rows) == 1
    assert rows[0].status == AttendanceStatus.LATE
    assert rows[0].marked_by == faculty.user_id


def test_bulk_mark_rejects_out_of_scope_faculty(container, repos, people, fixed_now):
    faculty, student, _ = people
    session = _qr_session(container, faculty, fixed_now)
    outsider = repos.users.add(role=Role.FACULTY, branch="ME").to_actor()

    with pytest.raises(AuthorizationError):
        container.attendance_service.bulk_mark(
            actor=outsider,
            session_id=session.session_id,
            marks=[{"student_id": student.user_id, "status": "present"}],
        )
    assert repos.attendance.records == {}


def test_bulk_mark_needs_marks(container, people, fixed_now):
    faculty, _, _ = people
    session = _qr_session(container, faculty, fixed_now)
    with pytest.raises(ValidationError, match="no marks"):
        container.attendance_service.bulk_mark(actor=faculty, session_id=session.session_id, marks=[])


def test_summary_counts_late_as_attended(container, people, fixed_now):
    faculty, student, _ = people
    svc = container.attendance_service
    statuses = ["present", "present", "late", "absent"]
    subjects = ["DBMS", "DBMS", "OS", "OS"]

    for subject, status in zip(subjects, statuses):
        s = svc.create_session(
            actor=faculty, branch="CSE", semester=3, subject=subject, session_date="2026-02-02", now=fixed_now
        )
        svc.bulk_mark(actor=faculty, session_id=s.session_id, marks=[{"student_id": student.user_id, "status": status}])

    summary = svc.student_summary(actor=student)

    assert (summary.attended, summary.total_sessions) == (3, 4)
    assert summary.percent == 75.0
    assert summary.band == ComplianceBand.COMPLIANT
    by_subject = {s.subject: (s.attended, s.total) for s in summary.by_subject}
    assert by_subject == {"DBMS": (2, 2), "OS": (1, 2)}


def test_summary_with_no_sessions_has_no_percent(container, people):
    _, student, _ = people
    summary = container.attendance_service.student_summary(actor=student)

    assert summary.total_sessions == 0
    assert summary.percent is None
    assert summary.band is None


def test_student_cannot_read_another_summary(container, repos, people):
    _, student, _ = people
    classmate = repos.users.add(role=Role.STUDENT)
    with pytest.raises(AuthorizationError):
        container.attendance_service.student_summary(actor=student, student_id=classmate.user_id)


def test_distribution_buckets_scope(container, repos, people, fixed_now):
    faculty, student, _ = people
    weak = repos.users.add(role=Role.STUDENT)
    svc = container.attendance_service

    for i in range(4):
        s = svc.create_session(
            actor=faculty, branch="CSE", semester=3, subject="DBMS", session_date="2026-02-02", now=fixed_now
        )
        svc.bulk_mark(
            actor=faculty,
            session_id=s.session_id,
            marks=[
                {"student_id": student.user_id, "status": "present"},
                {"student_id": weak.user_id, "status": "present" if i == 0 else "absent"},
            ],
        )

    report = svc.distribution(actor=faculty)

    assert report["buckets"] == {"compliant": 1, "at_risk": 0, "shortage": 1}
    assert {row["student_id"] for row in report["students"]} == {student.user_id, weak.user_id}


def test_distribution_other_scope_forbidden_for_faculty(container, people):
    faculty, _, _ = people
    with pytest.raises(AuthorizationError):
        container.attendance_service.distribution(actor=faculty, branch="ECE", semester=3)
