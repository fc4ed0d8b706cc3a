from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import TaskStatus


@dataclass(frozen=True)
class Task:
    """Domain entity: a unit of work on one project."""

    task_id: int
    project_id: int
    name: str
    status: TaskStatus = TaskStatus.PENDING
    assigned_worker_id: Optional[int] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    elapsed_seconds: int = 0
    employee_notes: Optional[str] = None
    submitted_media_ref: Optional[str] = None
    supervisor_review_notes: Optional[str] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "task_id": self.task_id,
            "project_id": self.project_id,
            "name": self.name,
            "status": self.status.value,
            "assigned_worker_id": self.assigned_worker_id,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "elapsed_seconds": self.elapsed_seconds,
            "employee_notes": self.employee_notes,
            "submitted_media_ref": self.submitted_media_ref,
            "supervisor_review_notes": self.supervisor_review_notes,
            "reviewed_by": self.reviewed_by,
            "reviewed_at": self.reviewed_at.isoformat() if self.reviewed_at else None,
        }


@dataclass(frozen=True)
class TaskProgress:
    """A status change plus the time bookkeeping that goes with it."""

    status: TaskStatus
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    add_elapsed_seconds: int = 0
    employee_notes: Optional[str] = None
    submitted_media_ref: Optional[str] = None


@dataclass(frozen=True)
class TaskUpdateOutcome:
    """Per-task result inside a checkout batch."""

    task_id: int
    success: bool
    status: Optional[TaskStatus] = None
    added_seconds: int = 0
    error_kind: Optional[str] = None
    error_message: Optional[str] = None

    def to_dict(self) -> dict:
        out = {"task_id": self.task_id, "success": self.success}
        if self.success:
            out["status"] = self.status.value if self.status else None
            out["added_seconds"] = self.added_seconds
        else:
            out["error"] = {"kind": self.error_kind, "message": self.error_message}
        return out


@dataclass(frozen=True)
class TaskBatchResult:
    outcomes: tuple[TaskUpdateOutcome, ...] = ()

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.success)

    @property
    def errors(self) -> list[TaskUpdateOutcome]:
        return [o for o in self.outcomes if not o.success]

    def to_dict(self) -> dict:
        return {
            "succeeded": self.succeeded,
            "failed": self.failed,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }
