from datetime import date, datetime

import pytest

from src.apsconnect.apsconnect.attendance.model import AttendanceSession
from src.apsconnect.apsconnect.attendance.qr_codes import parse_payload, render_png, session_payload
from src.apsconnect.apsconnect.core.exceptions import ValidationError


def test_payload_carries_session_id_and_token():
    session = AttendanceSession(
        session_id=42,
        branch="CSE",
        semester=3,
        subject="OS",
        faculty_id=1,
        session_date=date(2026, 2, 2),
        qr_token="abc:def",
        qr_expires_at=datetime(2026, 2, 2, 9, 15),
    )

    payload = session_payload(session)

    assert payload == "42:abc:def"
    assert parse_payload(payload) == (42, "abc:def")


def test_session_without_token_has_no_payload():
    session = AttendanceSession(
        session_id=1, branch="CSE", semester=3, subject="OS", faculty_id=1, session_date=date(2026, 2, 2)
    )
    with pytest.raises(ValidationError):
        session_payload(session)


@pytest.mark.parametrize("payload", ["", "no-separator", "x:token", "12:"])
def test_unrecognised_payloads(payload):
    with pytest.raises(ValidationError):
        parse_payload(payload)


def test_render_png_returns_png_bytes():
    buf = render_png("7:token")
    assert buf.read(8) == b"\x89PNG\r\n\x1a\n"
