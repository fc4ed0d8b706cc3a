from __future__ import annotations

from datetime import date, datetime
from typing import ContextManager, Optional, Protocol, Sequence

from ..core.enums import ReviewStatus
from .model import AttendanceSession, NewSession, SessionClosure, TrackPoint


class SessionTransaction(Protocol):
    """Reads and writes that run inside one per-worker atomic unit.

    Everything done through this object is serialized against any other
    transaction for the same worker.
    """

    def list_open_for_worker(self, work_date: date) -> Sequence[AttendanceSession]:
        raise NotImplementedError

    def create(self, new: NewSession) -> AttendanceSession:
        raise NotImplementedError


class AttendanceSessionRepository(Protocol):
    def worker_transaction(self, worker_id: int) -> ContextManager[SessionTransaction]:
        raise NotImplementedError

    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def find_latest_open(self, *, worker_id: int, project_id: int, work_date: date) -> Optional[AttendanceSession]:
        """Most recent open session for worker+project+day, by check-in time."""

        raise NotImplementedError

    def find_latest_for_day(self, *, worker_id: int, project_id: int, work_date: date) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def list_open_for_worker(self, *, worker_id: int, work_date: date) -> Sequence[AttendanceSession]:
        raise NotImplementedError

    def close(self, session_id: int, closure: SessionClosure) -> Optional[AttendanceSession]:
        """Close a still-open session. Returns None if it was already closed."""

        raise NotImplementedError

    def append_track(self, session_id: int, points: Sequence[TrackPoint]) -> int:
        raise NotImplementedError

    def update_review(
        self,
        *,
        session_id: int,
        status: ReviewStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        notes: Optional[str] = None,
    ) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def list_by_review_status(self, status: ReviewStatus, *, limit: int) -> Sequence[AttendanceSession]:
        raise NotImplementedError

    def list_for_project(
        self,
        *,
        project_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceSession]:
        """Sessions of a project in chronological order (work date, then check-in)."""
        raise NotImplementedError
