from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import TaskStatus
from .model import Task, TaskProgress


class TaskRepository(Protocol):
    def get_by_id(self, task_id: int) -> Optional[Task]:
        raise NotImplementedError

    def list_for_project(self, project_id: int) -> Sequence[Task]:
        raise NotImplementedError

    def update_progress(
        self,
        task_id: int,
        progress: TaskProgress,
        *,
        expected_status: TaskStatus,
        updated_at: datetime,
    ) -> Optional[Task]:
        """Apply progress only if the task is still in ``expected_status``.

        ``add_elapsed_seconds`` is added to the stored value, never assigned.
        Returns None when the guard does not match.
        """

        raise NotImplementedError

    def update_review(
        self,
        task_id: int,
        *,
        status: TaskStatus,
        notes: Optional[str],
        reviewed_by: int,
        reviewed_at: datetime,
    ) -> Optional[Task]:
        raise NotImplementedError
