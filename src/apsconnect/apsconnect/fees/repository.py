from __future__ import annotations

from datetime import date
from typing import Collection, Optional, Protocol, Sequence

from ..core.enums import FeeStatus
from .model import Fee


class FeeRepository(Protocol):
    def insert_fee(
        self,
        *,
        student_id: int,
        amount: float,
        due_date: Optional[date],
        status: FeeStatus,
        payment_screenshot: Optional[str],
    ) -> int:
        raise NotImplementedError

    def get_fee(self, fee_id: int) -> Optional[Fee]:
        raise NotImplementedError

    def transition(
        self,
        *,
        fee_id: int,
        from_statuses: Collection[FeeStatus],
        to_status: FeeStatus,
        verified: bool,
        remark: Optional[str] = None,
        payment_screenshot: Optional[str] = None,
    ) -> bool:
        """Conditionally move a fee; False when its current status is not in from_statuses."""

        raise NotImplementedError

    def list_fees(
        self,
        *,
        student_id: Optional[int] = None,
        status: Optional[FeeStatus] = None,
        branch: Optional[str] = None,
        semester: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[Fee]:
        raise NotImplementedError
