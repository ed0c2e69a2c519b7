from __future__ import annotations

import hmac
from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from ...core.exceptions import AuthorizationError
from ...core.policy import Actor
from ..model import AttendanceSession
from .base import MarkingStrategy, StatusDecision


class QrMarking(MarkingStrategy):
    """Scan of the session's shared code.

    The token is a fixed string for the session's lifetime; it is checked
    against expiry and the student's branch/semester, never rotated.
    """

    def decide(
        self,
        *,
        session: AttendanceSession,
        actor: Actor,
        token: Optional[str],
        requested: Optional[AttendanceStatus],
        now: datetime,
    ) -> StatusDecision:
        if not session.qr_token or not token or not hmac.compare_digest(session.qr_token.encode(), str(token).encode()):
            raise AuthorizationError("invalid qr token")
        if session.qr_expires_at is None or now > session.qr_expires_at:
            raise AuthorizationError("qr expired")
        if session.branch != actor.branch or session.semester != actor.semester:
            raise AuthorizationError("not allowed")
        return StatusDecision(status=AttendanceStatus.PRESENT)
