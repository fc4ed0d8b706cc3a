from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Optional

from ..core.enums import ArrivalStatus, DepartureStatus, ReviewStatus


@dataclass(frozen=True)
class WorkWindow:
    """Expected working hours used to judge arrivals and departures."""

    start_time: time
    end_time: time
    grace_minutes: int = 0


@dataclass(frozen=True)
class GeoFix:
    """A single GPS fix taken at check-in or check-out."""

    lat: float
    lng: float
    accuracy: Optional[float] = None
    timestamp: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "lat": self.lat,
            "lng": self.lng,
            "accuracy": self.accuracy,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }

    @classmethod
    def from_dict(cls, raw: Optional[dict]) -> Optional["GeoFix"]:
        if not raw:
            return None
        ts = raw.get("timestamp")
        return cls(
            lat=float(raw["lat"]),
            lng=float(raw["lng"]),
            accuracy=float(raw["accuracy"]) if raw.get("accuracy") is not None else None,
            timestamp=datetime.fromisoformat(ts) if ts else None,
        )


@dataclass(frozen=True)
class TrackPoint:
    lat: float
    lng: float
    timestamp: datetime


@dataclass(frozen=True)
class AttendanceSession:
    """Domain entity: one continuous attendance interval on a project."""

    session_id: int
    worker_id: int
    project_id: int
    work_date: date
    check_in_time: datetime
    check_out_time: Optional[datetime] = None
    check_in_fix: Optional[GeoFix] = None
    check_out_fix: Optional[GeoFix] = None
    location_track: tuple[TrackPoint, ...] = ()
    auto_logged: bool = False
    arrival_status: ArrivalStatus = ArrivalStatus.ON_TIME
    departure_status: Optional[DepartureStatus] = None
    review_status: ReviewStatus = ReviewStatus.PENDING
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    completed_task_ids: tuple[int, ...] = ()
    session_notes: Optional[str] = None
    check_in_selfie: Optional[str] = None
    check_out_selfie: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.check_out_time is None

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "worker_id": self.worker_id,
            "project_id": self.project_id,
            "work_date": self.work_date.isoformat(),
            "check_in_time": self.check_in_time.isoformat(),
            "check_out_time": self.check_out_time.isoformat() if self.check_out_time else None,
            "check_in_fix": self.check_in_fix.to_dict() if self.check_in_fix else None,
            "check_out_fix": self.check_out_fix.to_dict() if self.check_out_fix else None,
            "location_track": [
                {"lat": p.lat, "lng": p.lng, "timestamp": p.timestamp.isoformat()} for p in self.location_track
            ],
            "auto_logged": self.auto_logged,
            "arrival_status": self.arrival_status.value,
            "departure_status": self.departure_status.value if self.departure_status else None,
            "review_status": self.review_status.value,
            "reviewed_by": self.reviewed_by,
            "reviewed_at": self.reviewed_at.isoformat() if self.reviewed_at else None,
            "review_notes": self.review_notes,
            "completed_task_ids": list(self.completed_task_ids),
            "session_notes": self.session_notes,
            "check_in_selfie": self.check_in_selfie,
            "check_out_selfie": self.check_out_selfie,
        }


@dataclass(frozen=True)
class NewSession:
    """Values for a session about to be opened."""

    worker_id: int
    project_id: int
    work_date: date
    check_in_time: datetime
    check_in_fix: GeoFix
    arrival_status: ArrivalStatus
    auto_logged: bool = False
    check_in_selfie: Optional[str] = None


@dataclass(frozen=True)
class SessionClosure:
    """Values written when a session is checked out."""

    check_out_time: datetime
    departure_status: DepartureStatus
    check_out_fix: Optional[GeoFix] = None
    check_out_selfie: Optional[str] = None
    completed_task_ids: tuple[int, ...] = field(default_factory=tuple)
    session_notes: Optional[str] = None
