from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from typing import Iterator, Optional, Sequence

from ..core.enums import ReviewStatus
from .model import AttendanceSession, NewSession, SessionClosure, TrackPoint
from .repository import AttendanceSessionRepository


class _MemoryTransaction:
    def __init__(self, repo: "InMemorySessionRepository", worker_id: int):
        self._repo = repo
        self._worker_id = worker_id

    def list_open_for_worker(self, work_date: date) -> Sequence[AttendanceSession]:
        return self._repo.list_open_for_worker(worker_id=self._worker_id, work_date=work_date)

    def create(self, new: NewSession) -> AttendanceSession:
        return self._repo._insert(new)


class InMemorySessionRepository(AttendanceSessionRepository):
    """Process-local store used by the ``memory`` backend and by tests.

    A per-worker lock is held for the whole ``worker_transaction`` block, which
    gives start-session the same scan-then-insert atomicity the MySQL
    repository gets from ``SELECT ... FOR UPDATE``.
    """

    def __init__(self):
        self._sessions: dict[int, AttendanceSession] = {}
        self._id = 0
        self._guard = threading.Lock()
        self._worker_locks: dict[int, threading.Lock] = {}

    def _lock_for(self, worker_id: int) -> threading.Lock:
        with self._guard:
            return self._worker_locks.setdefault(worker_id, threading.Lock())

    @contextmanager
    def worker_transaction(self, worker_id: int) -> Iterator[_MemoryTransaction]:
        with self._lock_for(worker_id):
            yield _MemoryTransaction(self, worker_id)

    def _insert(self, new: NewSession) -> AttendanceSession:
        with self._guard:
            self._id += 1
            session = AttendanceSession(
                session_id=self._id,
                worker_id=new.worker_id,
                project_id=new.project_id,
                work_date=new.work_date,
                check_in_time=new.check_in_time,
                check_in_fix=new.check_in_fix,
                auto_logged=new.auto_logged,
                arrival_status=new.arrival_status,
                check_in_selfie=new.check_in_selfie,
            )
            self._sessions[session.session_id] = session
            return session

    def all(self) -> list[AttendanceSession]:
        with self._guard:
            return sorted(self._sessions.values(), key=lambda s: s.session_id)

    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        return self._sessions.get(int(session_id))

    def _for_day(self, worker_id: int, project_id: int, work_date: date) -> list[AttendanceSession]:
        items = [
            s
            for s in self.all()
            if s.worker_id == worker_id and s.project_id == project_id and s.work_date == work_date
        ]
        items.sort(key=lambda s: s.check_in_time, reverse=True)
        return items

    def find_latest_open(self, *, worker_id: int, project_id: int, work_date: date) -> Optional[AttendanceSession]:
        for s in self._for_day(worker_id, project_id, work_date):
            if s.is_open:
                return s
        return None

    def find_latest_for_day(self, *, worker_id: int, project_id: int, work_date: date) -> Optional[AttendanceSession]:
        items = self._for_day(worker_id, project_id, work_date)
        return items[0] if items else None

    def list_open_for_worker(self, *, worker_id: int, work_date: date) -> Sequence[AttendanceSession]:
        return [s for s in self.all() if s.worker_id == worker_id and s.work_date == work_date and s.is_open]

    def close(self, session_id: int, closure: SessionClosure) -> Optional[AttendanceSession]:
        with self._guard:
            current = self._sessions.get(int(session_id))
            if not current or not current.is_open:
                return None
            updated = replace(
                current,
                check_out_time=closure.check_out_time,
                check_out_fix=closure.check_out_fix,
                departure_status=closure.departure_status,
                check_out_selfie=closure.check_out_selfie,
                completed_task_ids=tuple(closure.completed_task_ids),
                session_notes=closure.session_notes,
            )
            self._sessions[updated.session_id] = updated
            return updated

    def append_track(self, session_id: int, points: Sequence[TrackPoint]) -> int:
        with self._guard:
            current = self._sessions.get(int(session_id))
            if not current:
                return 0
            self._sessions[current.session_id] = replace(
                current, location_track=current.location_track + tuple(points)
            )
            return len(points)

    def update_review(
        self,
        *,
        session_id: int,
        status: ReviewStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        notes: Optional[str] = None,
    ) -> Optional[AttendanceSession]:
        with self._guard:
            current = self._sessions.get(int(session_id))
            if not current:
                return None
            updated = replace(
                current,
                review_status=status,
                reviewed_by=reviewed_by,
                reviewed_at=reviewed_at,
                review_notes=notes,
            )
            self._sessions[updated.session_id] = updated
            return updated

    def list_by_review_status(self, status: ReviewStatus, *, limit: int) -> Sequence[AttendanceSession]:
        items = [s for s in self.all() if s.review_status == status and not s.is_open]
        items.sort(key=lambda s: s.check_in_time, reverse=True)
        return items[:limit]

    def list_for_project(
        self,
        *,
        project_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceSession]:
        items = [
            s
            for s in self.all()
            if s.project_id == project_id
            and (start_date is None or s.work_date >= start_date)
            and (end_date is None or s.work_date <= end_date)
        ]
        items.sort(key=lambda s: (s.work_date, s.check_in_time, s.session_id))
        return items
