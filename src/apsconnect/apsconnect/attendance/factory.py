from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import MarkMethod
from .strategies.base import MarkingStrategy
from .strategies.manual_strategy import ManualMarking
from .strategies.qr_strategy import QrMarking


@dataclass
class MarkingStrategyFactory:
    """Factory Pattern: choose the marking strategy for a method."""

    def for_method(self, method: MarkMethod) -> MarkingStrategy:
        if method == MarkMethod.QR:
            return QrMarking()
        return ManualMarking()
