from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..core.enums import TaskStatus
from .model import Task, TaskProgress
from .repository import TaskRepository


class InMemoryTaskRepository(TaskRepository):
    def __init__(self, tasks: Iterable[Task] = ()):
        self._tasks: dict[int, Task] = {t.task_id: t for t in tasks}
        self._lock = threading.Lock()

    def add(self, task: Task) -> Task:
        with self._lock:
            self._tasks[task.task_id] = task
        return task

    def get_by_id(self, task_id: int) -> Optional[Task]:
        return self._tasks.get(int(task_id))

    def list_for_project(self, project_id: int) -> Sequence[Task]:
        return [t for t in sorted(self._tasks.values(), key=lambda t: t.task_id) if t.project_id == int(project_id)]

    def update_progress(
        self,
        task_id: int,
        progress: TaskProgress,
        *,
        expected_status: TaskStatus,
        updated_at: datetime,
    ) -> Optional[Task]:
        with self._lock:
            current = self._tasks.get(int(task_id))
            if not current or current.status != expected_status:
                return None
            updated = replace(
                current,
                status=progress.status,
                start_time=progress.start_time,
                end_time=progress.end_time,
                elapsed_seconds=current.elapsed_seconds + max(progress.add_elapsed_seconds, 0),
                employee_notes=progress.employee_notes,
                submitted_media_ref=progress.submitted_media_ref,
            )
            self._tasks[updated.task_id] = updated
            return updated

    def update_review(
        self,
        task_id: int,
        *,
        status: TaskStatus,
        notes: Optional[str],
        reviewed_by: int,
        reviewed_at: datetime,
    ) -> Optional[Task]:
        with self._lock:
            current = self._tasks.get(int(task_id))
            if not current:
                return None
            updated = replace(
                current,
                status=status,
                supervisor_review_notes=notes,
                reviewed_by=reviewed_by,
                reviewed_at=reviewed_at,
            )
            self._tasks[updated.task_id] = updated
            return updated
