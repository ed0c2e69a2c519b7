from datetime import date, datetime, timedelta

import pytest

from src.apsconnect.apsconnect.attendance.factory import MarkingStrategyFactory
from src.apsconnect.apsconnect.attendance.model import AttendanceSession
from src.apsconnect.apsconnect.attendance.strategies.manual_strategy import ManualMarking
from src.apsconnect.apsconnect.attendance.strategies.qr_strategy import QrMarking
from src.apsconnect.apsconnect.core.enums import AttendanceStatus, MarkMethod, Role, UserStatus
from src.apsconnect.apsconnect.core.exceptions import AuthorizationError
from src.apsconnect.apsconnect.core.policy import Actor

NOW = datetime(2025, 1, 1, 9, 0, 0)


def _session(**overrides):
    values = dict(
        session_id=1,
        branch="CSE",
        semester=3,
        subject="DBMS",
        faculty_id=9,
        session_date=date(2025, 1, 1),
        qr_token="tok-123",
        qr_expires_at=NOW + timedelta(minutes=15),
    )
    values.update(overrides)
    return AttendanceSession(**values)


def _student(branch="CSE", semester=3):
    return Actor(user_id=5, role=Role.STUDENT, status=UserStatus.APPROVED, branch=branch, semester=semester)


def test_factory_picks_strategy_for_method():
    factory = MarkingStrategyFactory()

    assert isinstance(factory.for_method(MarkMethod.QR), QrMarking)
    assert isinstance(factory.for_method(MarkMethod.MANUAL), ManualMarking)


def test_manual_uses_requested_status_or_present():
    strategy = ManualMarking()

    late = strategy.decide(session=_session(), actor=_student(), token=None, requested=AttendanceStatus.LATE, now=NOW)
    default = strategy.decide(session=_session(), actor=_student(), token=None, requested=None, now=NOW)

    assert late.status == AttendanceStatus.LATE
    assert default.status == AttendanceStatus.PRESENT


def test_qr_valid_scan_is_always_present():
    decision = QrMarking().decide(
        session=_session(), actor=_student(), token="tok-123", requested=AttendanceStatus.ABSENT, now=NOW
    )
    assert decision.status == AttendanceStatus.PRESENT


@pytest.mark.parametrize(
    "session, token, actor, message",
    [
        (_session(), "wrong", _student(), "invalid qr token"),
        (_session(qr_token=None, qr_expires_at=None), "tok-123", _student(), "invalid qr token"),
        (_session(qr_expires_at=NOW - timedelta(seconds=1)), "tok-123", _student(), "qr expired"),
        (_session(), "tok-123", _student(branch="ECE"), "not allowed"),
        (_session(), "tok-123", _student(semester=5), "not allowed"),
    ],
)
def test_qr_rejections(session, token, actor, message):
    with pytest.raises(AuthorizationError, match=message):
        QrMarking().decide(session=session, actor=actor, token=token, requested=None, now=NOW)


def test_qr_accepts_scan_exactly_at_expiry():
    session = _session(qr_expires_at=NOW)
    decision = QrMarking().decide(session=session, actor=_student(), token="tok-123", requested=None, now=NOW)
    assert decision.status == AttendanceStatus.PRESENT
