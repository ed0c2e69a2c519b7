from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date


class FineCalculator(ABC):
    """Strategy: compute the fine owed when a loan is returned."""

    @abstractmethod
    def fine_for(self, *, due_date: date, returned_on: date) -> float:
        raise NotImplementedError
