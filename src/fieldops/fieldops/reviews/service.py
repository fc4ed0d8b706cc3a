from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence, Union

from ..attendance.model import AttendanceSession
from ..attendance.repository import AttendanceSessionRepository
from ..common.datetime_utils import now_local
from ..common.side_effects import best_effort
from ..common.validators import optional_text, require_max_length, require_min_length, require_positive_id
from ..core.constants import (
    DEFAULT_PENDING_REVIEW_LIMIT,
    MAX_REVIEW_NOTES,
    MIN_TASK_REJECTION_NOTES,
    REJECTION_PLACEHOLDER_NOTES,
    TASK_APPROVAL_DEFAULT_NOTES,
)
from ..core.enums import REVIEWER_ROLES, Audience, ReviewStatus, TaskStatus
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.result import as_result
from ..notifications.audit import AuditLog
from ..notifications.notifier import Notifier
from ..tasks.model import Task
from ..tasks.repository import TaskRepository
from ..users.service import RoleResolver

logger = logging.getLogger(__name__)

SESSION_DECISIONS = frozenset({ReviewStatus.APPROVED, ReviewStatus.REJECTED})
TASK_DECISIONS = frozenset({TaskStatus.VERIFIED, TaskStatus.REJECTED})
# Re-reviewing overwrites the previous decision.
REVIEWABLE_TASK_STATUSES = frozenset(
    {TaskStatus.NEEDS_REVIEW, TaskStatus.COMPLETED, TaskStatus.VERIFIED, TaskStatus.REJECTED}
)


def _coerce(enum_cls, value, allowed, field: str):
    try:
        status = enum_cls(value)
    except (TypeError, ValueError):
        status = None
    if status not in allowed:
        choices = ", ".join(sorted(s.value for s in allowed))
        raise ValidationError(f"{field} must be one of: {choices}", field=field)
    return status


class ReviewWorkflow:
    """Supervisor/admin decisions on closed sessions and on reported tasks.

    Only the latest decision is kept; the audit log is the only trace of
    earlier ones.
    """

    def __init__(
        self,
        sessions: AttendanceSessionRepository,
        tasks: TaskRepository,
        roles: RoleResolver,
        *,
        notifier: Optional[Notifier] = None,
        audit: Optional[AuditLog] = None,
    ):
        self._sessions = sessions
        self._tasks = tasks
        self._roles = roles
        self._notifier = notifier
        self._audit = audit

    def _require_reviewer(self, reviewer_id: int) -> None:
        role = self._roles.resolve_role(reviewer_id)
        if role not in REVIEWER_ROLES:
            raise AuthorizationError("Only supervisors or admins can review")

    @as_result
    def review_session(
        self,
        session_id: int,
        reviewer_id: int,
        status: Union[ReviewStatus, str],
        notes: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
    ) -> AttendanceSession:
        now = now or now_local()
        session_id = require_positive_id(session_id, "session_id")
        reviewer_id = require_positive_id(reviewer_id, "reviewer_id")
        decision = _coerce(ReviewStatus, status, SESSION_DECISIONS, "status")
        notes = require_max_length(optional_text(notes, "notes"), "notes", MAX_REVIEW_NOTES)

        self._require_reviewer(reviewer_id)

        session = self._sessions.get_by_id(session_id)
        if not session:
            raise NotFoundError(f"Session {session_id} not found")
        if session.is_open:
            raise ConflictError("Only checked-out sessions can be reviewed")

        if decision == ReviewStatus.REJECTED and not notes:
            notes = REJECTION_PLACEHOLDER_NOTES

        updated = self._sessions.update_review(
            session_id=session_id,
            status=decision,
            reviewed_by=reviewer_id,
            reviewed_at=now,
            notes=notes,
        )
        if updated is None:
            raise NotFoundError(f"Session {session_id} not found")

        logger.info("session %s %s by %s", session_id, decision.value, reviewer_id)
        self._announce(
            reviewer_id,
            "SESSION_REVIEWED",
            f"Attendance session {session_id} {decision.value}" + (f": {notes}" if notes else ""),
            target_type="attendance_session",
            target_id=session_id,
            worker_id=session.worker_id,
        )
        return updated

    @as_result
    def review_task(
        self,
        task_id: int,
        reviewer_id: int,
        status: Union[TaskStatus, str],
        notes: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
    ) -> Task:
        now = now or now_local()
        task_id = require_positive_id(task_id, "task_id")
        reviewer_id = require_positive_id(reviewer_id, "reviewer_id")
        decision = _coerce(TaskStatus, status, TASK_DECISIONS, "status")
        if decision == TaskStatus.REJECTED:
            # Shown to the worker, so it has to say something.
            notes = require_min_length(notes, "notes", MIN_TASK_REJECTION_NOTES)
        notes = require_max_length(optional_text(notes, "notes"), "notes", MAX_REVIEW_NOTES)

        self._require_reviewer(reviewer_id)

        task = self._tasks.get_by_id(task_id)
        if not task:
            raise NotFoundError(f"Task {task_id} not found")
        if task.status not in REVIEWABLE_TASK_STATUSES:
            raise ConflictError(f"Task cannot be reviewed while {task.status.value}")

        if decision == TaskStatus.VERIFIED and not notes:
            notes = task.supervisor_review_notes or TASK_APPROVAL_DEFAULT_NOTES

        updated = self._tasks.update_review(
            task_id,
            status=decision,
            notes=notes,
            reviewed_by=reviewer_id,
            reviewed_at=now,
        )
        if updated is None:
            raise NotFoundError(f"Task {task_id} not found")

        logger.info("task %s %s by %s", task_id, decision.value, reviewer_id)
        self._announce(
            reviewer_id,
            "TASK_REVIEWED",
            f"Task {task_id} {decision.value}: {notes}",
            target_type="task",
            target_id=task_id,
            worker_id=task.assigned_worker_id,
        )
        return updated

    def list_pending_sessions(self, reviewer_id: int, *, limit: int = DEFAULT_PENDING_REVIEW_LIMIT) -> Sequence[AttendanceSession]:
        """Closed sessions waiting for a decision. Empty for non-reviewers."""
        if self._roles.resolve_role(int(reviewer_id)) not in REVIEWER_ROLES:
            return []
        return self._sessions.list_by_review_status(ReviewStatus.PENDING, limit=int(limit))

    def _announce(
        self,
        actor_id: int,
        action: str,
        message: str,
        *,
        target_type: str,
        target_id: int,
        worker_id: Optional[int],
    ) -> None:
        notifier, audit = self._notifier, self._audit
        if notifier and worker_id is not None:
            best_effort(f"notify {action}", lambda: notifier.notify(Audience.WORKER, message, worker_id=worker_id))
        if audit:
            best_effort(
                f"audit {action}",
                lambda: audit.record(
                    actor_id=actor_id, action=action, details=message, target_type=target_type, target_id=target_id
                ),
            )
