from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Protocol, Union

from ..core.enums import ArrivalStatus, DepartureStatus, Sensitivity

FLAG_THRESHOLDS = {
    Sensitivity.HIGH: 2,
    Sensitivity.MEDIUM: 3,
    Sensitivity.LOW: 5,
}


class AttendanceLog(Protocol):
    worker_id: int
    arrival_status: ArrivalStatus
    departure_status: Optional[DepartureStatus]


@dataclass(frozen=True)
class AttendanceFlag:
    worker_id: int
    late_days: int
    early_leave_days: int


@dataclass(frozen=True)
class AttendanceAnalysis:
    late_count: int
    early_count: int
    flagged: tuple[AttendanceFlag, ...]


def coerce_sensitivity(value: Union[Sensitivity, str, None]) -> Sensitivity:
    if value is None:
        return Sensitivity.MEDIUM
    try:
        return Sensitivity(value)
    except ValueError:
        return Sensitivity.MEDIUM


class AttendanceAnalyzer:
    """Detect workers with repeated late arrivals or early departures."""

    @staticmethod
    def threshold(sensitivity: Union[Sensitivity, str, None] = Sensitivity.MEDIUM) -> int:
        return FLAG_THRESHOLDS[coerce_sensitivity(sensitivity)]

    @staticmethod
    def analyze(
        logs: Iterable[AttendanceLog],
        sensitivity: Union[Sensitivity, str, None] = Sensitivity.MEDIUM,
    ) -> AttendanceAnalysis:
        late_count = 0
        early_count = 0
        # Insertion order keeps flagged workers in first-seen order.
        grouped: dict[int, list[int]] = {}

        for log in logs:
            counts = grouped.setdefault(log.worker_id, [0, 0])
            if log.arrival_status == ArrivalStatus.LATE:
                late_count += 1
                counts[0] += 1
            if log.departure_status == DepartureStatus.LEFT_EARLY:
                early_count += 1
                counts[1] += 1

        threshold = AttendanceAnalyzer.threshold(sensitivity)
        flagged = tuple(
            AttendanceFlag(worker_id=worker_id, late_days=late, early_leave_days=early)
            for worker_id, (late, early) in grouped.items()
            if late >= threshold or early >= threshold
        )
        return AttendanceAnalysis(late_count=late_count, early_count=early_count, flagged=flagged)
