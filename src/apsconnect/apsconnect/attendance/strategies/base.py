from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from ...core.policy import Actor
from ..model import AttendanceSession


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus


class MarkingStrategy(ABC):
    """Strategy Pattern: how a self-marking request is validated."""

    @abstractmethod
    def decide(
        self,
        *,
        session: AttendanceSession,
        actor: Actor,
        token: Optional[str],
        requested: Optional[AttendanceStatus],
        now: datetime,
    ) -> StatusDecision:
        """Return the status to record, or raise to reject the mark."""

        raise NotImplementedError
