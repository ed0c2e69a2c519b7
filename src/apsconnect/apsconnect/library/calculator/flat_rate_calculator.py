from __future__ import annotations

from datetime import date

from ...core.constants import LIBRARY_FINE_PER_DAY
from .base import FineCalculator


class FlatRateFineCalculator(FineCalculator):
    """Fixed amount per day past the due date; nothing when on time."""

    def __init__(self, per_day: float = LIBRARY_FINE_PER_DAY):
        self._per_day = float(per_day)

    def fine_for(self, *, due_date: date, returned_on: date) -> float:
        days_overdue = max(0, (returned_on - due_date).days)
        return round(days_overdue * self._per_day, 2)
