from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ...core.enums import ArrivalStatus, DepartureStatus
from ..model import WorkWindow


@dataclass(frozen=True)
class ArrivalDecision:
    status: ArrivalStatus
    note: Optional[str] = None


@dataclass(frozen=True)
class DepartureDecision:
    status: DepartureStatus
    note: Optional[str] = None


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide arrival/departure status."""

    @abstractmethod
    def decide_checkin(self, *, now: datetime, today: date, window: Optional[WorkWindow]) -> ArrivalDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_checkout(self, *, now: datetime, today: date, window: Optional[WorkWindow]) -> DepartureDecision:
        raise NotImplementedError
