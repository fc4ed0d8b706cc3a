from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ...core.enums import ArrivalStatus, DepartureStatus
from ..model import WorkWindow
from .base import ArrivalDecision, AttendanceStrategy, DepartureDecision


class LateStrategy(AttendanceStrategy):
    """Late check-in."""

    def decide_checkin(self, *, now: datetime, today: date, window: Optional[WorkWindow]) -> ArrivalDecision:
        minutes = 0
        if window:
            minutes = int((now - datetime.combine(today, window.start_time)).total_seconds() // 60)
        return ArrivalDecision(status=ArrivalStatus.LATE, note=f"Late by {minutes} min" if minutes > 0 else None)

    def decide_checkout(self, *, now: datetime, today: date, window: Optional[WorkWindow]) -> DepartureDecision:
        return DepartureDecision(status=DepartureStatus.ON_TIME)
