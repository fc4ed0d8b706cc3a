from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from ..common.datetime_utils import now_local
from ..common.side_effects import best_effort
from ..common.validators import optional_text, require_coordinates, require_id_list, require_positive_id
from ..core.enums import Audience
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..core.result import as_result
from ..notifications.audit import AuditLog
from ..notifications.notifier import Notifier
from ..projects.repository import ProjectRepository
from ..tasks.model import TaskBatchResult
from ..tasks.service import TaskLifecycleCoordinator
from .factory import AttendanceStrategyFactory
from .model import AttendanceSession, GeoFix, NewSession, SessionClosure, TrackPoint, WorkWindow
from .repository import AttendanceSessionRepository

logger = logging.getLogger(__name__)

GpsInput = Union[GeoFix, Mapping[str, Any]]
TrackInput = Union[TrackPoint, Mapping[str, Any]]


@dataclass(frozen=True)
class CheckoutResult:
    session: AttendanceSession
    tasks: TaskBatchResult

    def to_dict(self) -> dict:
        return {"session": self.session.to_dict(), "tasks": self.tasks.to_dict()}


class AttendanceSessionManager:
    """Check-in/check-out state machine.

    Owns the rule that a worker holds at most one open session per day across
    all projects. The scan for open sessions and the insert of a new one run
    inside ``worker_transaction`` so two concurrent check-ins for the same
    worker cannot both pass the scan.
    """

    def __init__(
        self,
        sessions: AttendanceSessionRepository,
        projects: ProjectRepository,
        coordinator: TaskLifecycleCoordinator,
        *,
        notifier: Optional[Notifier] = None,
        audit: Optional[AuditLog] = None,
        strategy_factory: Optional[AttendanceStrategyFactory] = None,
        work_window: Optional[WorkWindow] = None,
    ):
        self._sessions = sessions
        self._projects = projects
        self._coordinator = coordinator
        self._notifier = notifier
        self._audit = audit
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._window = work_window

    def _project_label(self, project_id: int) -> str:
        project = self._projects.get_by_id(project_id)
        if project:
            return f"'{project.name}' (#{project_id})"
        return f"#{project_id}"

    @staticmethod
    def _to_fix(gps: Optional[GpsInput], now: datetime, *, required: bool) -> Optional[GeoFix]:
        if gps is None:
            if required:
                raise ValidationError("GPS location is required", field="gps")
            return None
        if isinstance(gps, GeoFix):
            lat, lng, accuracy = gps.lat, gps.lng, gps.accuracy
        elif isinstance(gps, Mapping):
            lat, lng, accuracy = gps.get("lat"), gps.get("lng"), gps.get("accuracy")
        else:
            raise ValidationError("GPS location must be an object with lat/lng", field="gps")
        lat, lng = require_coordinates(lat, lng, "gps")
        if accuracy is not None:
            try:
                accuracy = float(accuracy)
            except (TypeError, ValueError):
                raise ValidationError("GPS accuracy must be numeric", field="gps")
        # The fix is stamped with the server time of the check-in/out.
        return GeoFix(lat=lat, lng=lng, accuracy=accuracy, timestamp=now)

    @staticmethod
    def _to_track_point(raw: TrackInput, now: datetime) -> TrackPoint:
        if isinstance(raw, TrackPoint):
            lat, lng = require_coordinates(raw.lat, raw.lng, "points")
            return TrackPoint(lat=lat, lng=lng, timestamp=raw.timestamp)
        if not isinstance(raw, Mapping):
            raise ValidationError("Each location point must be an object with lat/lng", field="points")

        lat, lng = require_coordinates(raw.get("lat"), raw.get("lng"), "points")
        ts = raw.get("timestamp")
        if ts is None:
            stamp = now
        elif isinstance(ts, datetime):
            stamp = ts
        else:
            try:
                stamp = datetime.fromisoformat(str(ts))
            except ValueError:
                raise ValidationError("Track point timestamp must be ISO-8601", field="points")
        return TrackPoint(lat=lat, lng=lng, timestamp=stamp)

    @as_result
    def start_session(
        self,
        worker_id: int,
        project_id: int,
        gps: Optional[GpsInput],
        auto_logged: bool = False,
        selfie_ref: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
    ) -> AttendanceSession:
        now = now or now_local()
        today = now.date()
        worker_id = require_positive_id(worker_id, "worker_id")
        project_id = require_positive_id(project_id, "project_id")
        fix = self._to_fix(gps, now, required=True)
        selfie_ref = optional_text(selfie_ref, "selfie_ref")

        if not self._projects.get_by_id(project_id):
            raise NotFoundError(f"Project {project_id} not found")

        strategy = self._factory.for_checkin(now=now, today=today, window=self._window)
        decision = strategy.decide_checkin(now=now, today=today, window=self._window)

        with self._sessions.worker_transaction(worker_id) as tx:
            open_sessions = tx.list_open_for_worker(today)
            for other in open_sessions:
                if other.project_id != project_id:
                    raise ConflictError(
                        f"Already checked in elsewhere: project {self._project_label(other.project_id)}. "
                        "Check out there first.",
                        blocking_project_id=other.project_id,
                    )
            if open_sessions:
                logger.info("worker %s already checked in to project %s", worker_id, project_id)
                return open_sessions[0]

            session = tx.create(
                NewSession(
                    worker_id=worker_id,
                    project_id=project_id,
                    work_date=today,
                    check_in_time=now,
                    check_in_fix=fix,
                    arrival_status=decision.status,
                    auto_logged=bool(auto_logged),
                    check_in_selfie=selfie_ref,
                )
            )

        logger.info(
            "worker %s checked in to project %s (session %s, %s)",
            worker_id,
            project_id,
            session.session_id,
            decision.status.value,
        )
        details = f"Worker {worker_id} checked in to project {self._project_label(project_id)}"
        if decision.note:
            details = f"{details} ({decision.note})"
        self._announce(worker_id, "CHECK_IN", details, session.session_id)
        return session

    @as_result
    def checkout_session(
        self,
        worker_id: int,
        project_id: int,
        gps: Optional[GpsInput] = None,
        selfie_ref: Optional[str] = None,
        completed_task_ids: Iterable[int] = (),
        notes: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
    ) -> CheckoutResult:
        now = now or now_local()
        today = now.date()
        worker_id = require_positive_id(worker_id, "worker_id")
        project_id = require_positive_id(project_id, "project_id")
        task_ids = require_id_list(completed_task_ids, "completed_task_ids")
        fix = self._to_fix(gps, now, required=False)
        selfie_ref = optional_text(selfie_ref, "selfie_ref")
        notes = optional_text(notes, "notes")

        session = self._sessions.find_latest_open(worker_id=worker_id, project_id=project_id, work_date=today)
        if not session:
            raise NotFoundError("No active check-in found for this project today to check out.")
        if now <= session.check_in_time:
            raise ValidationError("Check-out time must be after check-in time", field="check_out_time")

        strategy = self._factory.for_checkout(now=now, today=today, window=self._window)
        decision = strategy.decide_checkout(now=now, today=today, window=self._window)

        closed = self._sessions.close(
            session.session_id,
            SessionClosure(
                check_out_time=now,
                departure_status=decision.status,
                check_out_fix=fix,
                check_out_selfie=selfie_ref,
                completed_task_ids=task_ids,
                session_notes=notes,
            ),
        )
        if closed is None:
            raise ConflictError("This session was already checked out", blocking_project_id=project_id)

        batch = self._coordinator.apply_session_closure(closed)

        logger.info(
            "worker %s checked out of project %s (session %s, tasks ok=%s failed=%s)",
            worker_id,
            project_id,
            closed.session_id,
            batch.succeeded,
            batch.failed,
        )
        self._announce(
            worker_id,
            "CHECK_OUT",
            f"Worker {worker_id} checked out of project {self._project_label(project_id)}; "
            f"{len(task_ids)} task(s) reported done",
            closed.session_id,
        )
        return CheckoutResult(session=closed, tasks=batch)

    @as_result
    def append_location_track(
        self,
        session_id: int,
        points: Sequence[TrackInput],
        *,
        now: Optional[datetime] = None,
    ) -> int:
        now = now or now_local()
        session_id = require_positive_id(session_id, "session_id")
        if not isinstance(points, (list, tuple)):
            raise ValidationError("Location points must be a list", field="points")
        if not points:
            raise ValidationError("At least one location point is required", field="points")
        track = [self._to_track_point(p, now) for p in points]

        session = self._sessions.get_by_id(session_id)
        if not session:
            raise NotFoundError(f"Session {session_id} not found")
        if not session.is_open:
            raise ConflictError("Cannot add location points to a closed session")

        return self._sessions.append_track(session_id, track)

    def get_today_session(
        self, worker_id: int, project_id: int, *, today: Optional[date] = None
    ) -> Optional[AttendanceSession]:
        today = today or now_local().date()
        return self._sessions.find_latest_for_day(worker_id=int(worker_id), project_id=int(project_id), work_date=today)

    def get_active_session(self, worker_id: int, *, today: Optional[date] = None) -> Optional[AttendanceSession]:
        today = today or now_local().date()
        open_sessions = self._sessions.list_open_for_worker(worker_id=int(worker_id), work_date=today)
        return open_sessions[0] if open_sessions else None

    def _announce(self, actor_id: int, action: str, message: str, session_id: int) -> None:
        notifier, audit = self._notifier, self._audit
        if notifier:
            best_effort(
                f"notify {action}",
                lambda: notifier.notify(Audience.SUPERVISORS_AND_ADMINS, message, worker_id=actor_id),
            )
        if audit:
            best_effort(
                f"audit {action}",
                lambda: audit.record(
                    actor_id=actor_id,
                    action=action,
                    details=message,
                    target_type="attendance_session",
                    target_id=session_id,
                ),
            )
