from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from ...core.policy import Actor
from ..model import AttendanceSession
from .base import MarkingStrategy, StatusDecision


class ManualMarking(MarkingStrategy):
    """No validation beyond the session existing."""

    def decide(
        self,
        *,
        session: AttendanceSession,
        actor: Actor,
        token: Optional[str],
        requested: Optional[AttendanceStatus],
        now: datetime,
    ) -> StatusDecision:
        return StatusDecision(status=requested or AttendanceStatus.PRESENT)
