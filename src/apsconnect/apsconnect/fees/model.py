from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Optional

from ..core.enums import FeeStatus


@dataclass(frozen=True)
class Fee:
    fee_id: int
    student_id: int
    amount: float
    due_date: Optional[date]
    status: FeeStatus
    payment_screenshot: Optional[str] = None
    verified: bool = False
    remark: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class FeeSummary:
    """Totals per status; ``paid_total`` includes verified payments."""

    paid_total: float
    pending_total: float
    rejected_total: float
    counts: Dict[str, int] = field(default_factory=dict)
