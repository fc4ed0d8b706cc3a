from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from .model import WorkWindow
from .strategies.base import AttendanceStrategy
from .strategies.early_strategy import EarlyLeaveStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_checkin(self, *, now: datetime, today: date, window: Optional[WorkWindow]) -> AttendanceStrategy:
        if not window:
            return NormalStrategy()

        start = datetime.combine(today, window.start_time)
        if now <= start + timedelta(minutes=window.grace_minutes):
            return NormalStrategy()
        return LateStrategy()

    def for_checkout(self, *, now: datetime, today: date, window: Optional[WorkWindow]) -> AttendanceStrategy:
        if not window:
            return NormalStrategy()

        end = datetime.combine(today, window.end_time)
        if now < end:
            return EarlyLeaveStrategy()
        return NormalStrategy()
