from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..attendance.model import AttendanceSession
from ..common.datetime_utils import elapsed_seconds, now_local
from ..common.side_effects import best_effort
from ..common.validators import optional_text, require_positive_id
from ..core.enums import TaskStatus
from ..core.exceptions import AuthorizationError, ConflictError, DomainError, NotFoundError
from ..core.result import as_result
from ..notifications.audit import AuditLog
from .model import Task, TaskBatchResult, TaskProgress, TaskUpdateOutcome
from .repository import TaskRepository

logger = logging.getLogger(__name__)

# Worker-driven moves. Closure to needs-review and supervisor review are
# handled separately.
WORKER_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.IN_PROGRESS}),
    TaskStatus.PAUSED: frozenset({TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.PAUSED, TaskStatus.COMPLETED}),
}


class TaskLifecycleCoordinator:
    """Drive task status from session closure and worker start/pause/complete actions."""

    def __init__(self, tasks: TaskRepository, *, audit: Optional[AuditLog] = None):
        self._tasks = tasks
        self._audit = audit

    def apply_session_closure(self, session: AttendanceSession) -> TaskBatchResult:
        """Move every task reported at checkout to needs-review.

        Best-effort per task: a failing task is reported in the batch result
        and never undoes the checkout or the other tasks.
        """
        if session.check_out_time is None:
            raise ValueError("apply_session_closure needs a closed session")

        outcomes = tuple(self._close_one(session, task_id) for task_id in session.completed_task_ids)
        batch = TaskBatchResult(outcomes=outcomes)
        if batch.failed:
            logger.warning(
                "session %s: %s of %s task updates failed",
                session.session_id,
                batch.failed,
                len(outcomes),
            )
        return batch

    def _close_one(self, session: AttendanceSession, task_id: int) -> TaskUpdateOutcome:
        try:
            updated, added = self._apply_closure(session, task_id)
        except DomainError as e:
            logger.info("task %s skipped at checkout of session %s: %s", task_id, session.session_id, e.message)
            return TaskUpdateOutcome(task_id=task_id, success=False, error_kind=e.kind, error_message=e.message)
        except Exception as e:
            logger.exception("task %s update failed at checkout of session %s", task_id, session.session_id)
            return TaskUpdateOutcome(task_id=task_id, success=False, error_kind="storage", error_message=str(e))

        return TaskUpdateOutcome(task_id=task_id, success=True, status=updated.status, added_seconds=added)

    def _apply_closure(self, session: AttendanceSession, task_id: int) -> tuple[Task, int]:
        task = self._tasks.get_by_id(task_id)
        if not task:
            raise NotFoundError(f"Task {task_id} not found")
        if task.project_id != session.project_id:
            raise ConflictError(
                f"Task {task_id} belongs to project {task.project_id}, not {session.project_id}",
                blocking_project_id=task.project_id,
            )

        checkout = session.check_out_time
        start_time, end_time, added = task.start_time, task.end_time, 0
        if task.status == TaskStatus.IN_PROGRESS and task.start_time is not None:
            # Clamped at 0 when the recorded start is after the checkout.
            added = elapsed_seconds(task.start_time, checkout)
            start_time, end_time = None, checkout

        progress = TaskProgress(
            status=TaskStatus.NEEDS_REVIEW,
            start_time=start_time,
            end_time=end_time,
            add_elapsed_seconds=added,
            employee_notes=task.employee_notes or session.session_notes,
            submitted_media_ref=task.submitted_media_ref or session.check_out_selfie,
        )
        updated = self._tasks.update_progress(task_id, progress, expected_status=task.status, updated_at=checkout)
        if updated is None:
            raise ConflictError(f"Task {task_id} changed while the checkout was processed")
        return updated, added

    def _require_worker_task(self, task_id: int, worker_id: int, target: TaskStatus) -> Task:
        task = self._tasks.get_by_id(task_id)
        if not task:
            raise NotFoundError(f"Task {task_id} not found")
        if task.assigned_worker_id != worker_id:
            raise AuthorizationError("You are not assigned to this task")
        if target not in WORKER_TRANSITIONS.get(task.status, frozenset()):
            raise ConflictError(f"Task cannot move from {task.status.value} to {target.value}")
        return task

    @as_result
    def start_task(self, task_id: int, worker_id: int, *, now: Optional[datetime] = None) -> Task:
        """Start a pending task or resume a paused one."""
        now = now or now_local()
        task_id = require_positive_id(task_id, "task_id")
        worker_id = require_positive_id(worker_id, "worker_id")

        task = self._require_worker_task(task_id, worker_id, TaskStatus.IN_PROGRESS)
        progress = TaskProgress(
            status=TaskStatus.IN_PROGRESS,
            start_time=now,
            end_time=task.end_time,
            employee_notes=task.employee_notes,
            submitted_media_ref=task.submitted_media_ref,
        )
        updated = self._tasks.update_progress(task_id, progress, expected_status=task.status, updated_at=now)
        if updated is None:
            raise ConflictError("Task changed while it was being started")

        self._record(worker_id, "TASK_STARTED", f"Task {task_id} moved from {task.status.value} to in-progress", task_id)
        return updated

    @as_result
    def pause_task(self, task_id: int, worker_id: int, *, now: Optional[datetime] = None) -> Task:
        now = now or now_local()
        task_id = require_positive_id(task_id, "task_id")
        worker_id = require_positive_id(worker_id, "worker_id")

        task = self._require_worker_task(task_id, worker_id, TaskStatus.PAUSED)
        added = elapsed_seconds(task.start_time, now) if task.start_time else 0
        progress = TaskProgress(
            status=TaskStatus.PAUSED,
            start_time=None,
            end_time=task.end_time,
            add_elapsed_seconds=added,
            employee_notes=task.employee_notes,
            submitted_media_ref=task.submitted_media_ref,
        )
        updated = self._tasks.update_progress(task_id, progress, expected_status=TaskStatus.IN_PROGRESS, updated_at=now)
        if updated is None:
            raise ConflictError("Task changed while it was being paused")

        self._record(worker_id, "TASK_PAUSED", f"Task {task_id} paused after {added}s", task_id)
        return updated

    @as_result
    def complete_task(
        self,
        task_id: int,
        worker_id: int,
        notes: Optional[str] = None,
        media_ref: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
    ) -> Task:
        """Finish a task outside of a checkout. It still goes through supervisor review."""
        now = now or now_local()
        task_id = require_positive_id(task_id, "task_id")
        worker_id = require_positive_id(worker_id, "worker_id")
        notes = optional_text(notes, "notes")
        media_ref = optional_text(media_ref, "media_ref")

        task = self._require_worker_task(task_id, worker_id, TaskStatus.COMPLETED)
        added = 0
        if task.status == TaskStatus.IN_PROGRESS and task.start_time is not None:
            added = elapsed_seconds(task.start_time, now)
        progress = TaskProgress(
            status=TaskStatus.COMPLETED,
            start_time=None,
            end_time=now,
            add_elapsed_seconds=added,
            employee_notes=notes or task.employee_notes,
            submitted_media_ref=media_ref or task.submitted_media_ref,
        )
        updated = self._tasks.update_progress(task_id, progress, expected_status=task.status, updated_at=now)
        if updated is None:
            raise ConflictError("Task changed while it was being completed")

        self._record(worker_id, "TASK_COMPLETED", f"Task {task_id} completed from {task.status.value}", task_id)
        return updated

    def _record(self, actor_id: int, action: str, details: str, task_id: int) -> None:
        if not self._audit:
            return
        audit = self._audit
        best_effort(
            f"audit {action}",
            lambda: audit.record(actor_id=actor_id, action=action, details=details, target_type="task", target_id=task_id),
        )
