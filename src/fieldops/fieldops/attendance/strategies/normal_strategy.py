from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ...core.enums import ArrivalStatus, DepartureStatus
from ..model import WorkWindow
from .base import ArrivalDecision, AttendanceStrategy, DepartureDecision


class NormalStrategy(AttendanceStrategy):
    """On-time check-in, normal check-out."""

    def decide_checkin(self, *, now: datetime, today: date, window: Optional[WorkWindow]) -> ArrivalDecision:
        return ArrivalDecision(status=ArrivalStatus.ON_TIME)

    def decide_checkout(self, *, now: datetime, today: date, window: Optional[WorkWindow]) -> DepartureDecision:
        return DepartureDecision(status=DepartureStatus.ON_TIME)
