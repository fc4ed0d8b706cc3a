from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import TaskStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Task, TaskProgress
from .repository import TaskRepository

_COLUMNS = """
    task_id, project_id, assigned_worker_id, task_name, status, start_time, end_time,
    elapsed_seconds, employee_notes, submitted_media_ref, supervisor_review_notes,
    reviewed_by, reviewed_at
"""


def _row_to_task(r: dict) -> Task:
    return Task(
        task_id=int(r["task_id"]),
        project_id=int(r["project_id"]),
        name=r["task_name"],
        status=TaskStatus(r["status"]),
        assigned_worker_id=int(r["assigned_worker_id"]) if r.get("assigned_worker_id") is not None else None,
        start_time=r.get("start_time"),
        end_time=r.get("end_time"),
        elapsed_seconds=int(r.get("elapsed_seconds") or 0),
        employee_notes=r.get("employee_notes"),
        submitted_media_ref=r.get("submitted_media_ref"),
        supervisor_review_notes=r.get("supervisor_review_notes"),
        reviewed_by=int(r["reviewed_by"]) if r.get("reviewed_by") is not None else None,
        reviewed_at=r.get("reviewed_at"),
    )


class MySQLTaskRepository(TaskRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get(self, cur, task_id: int) -> Optional[Task]:
        cur.execute(f"SELECT {_COLUMNS} FROM tasks WHERE task_id=%s", (task_id,))
        r = fetchone(cur)
        return _row_to_task(r) if r else None

    def get_by_id(self, task_id: int) -> Optional[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._get(cur, int(task_id))

    def list_for_project(self, project_id: int) -> Sequence[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM tasks WHERE project_id=%s ORDER BY task_id ASC",
                (int(project_id),),
            )
            return [_row_to_task(r) for r in fetchall(cur)]

    def update_progress(
        self,
        task_id: int,
        progress: TaskProgress,
        *,
        expected_status: TaskStatus,
        updated_at: datetime,
    ) -> Optional[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE tasks
                SET status=%s, start_time=%s, end_time=%s,
                    elapsed_seconds=elapsed_seconds + %s,
                    employee_notes=%s, submitted_media_ref=%s, updated_at=%s
                WHERE task_id=%s AND status=%s
                """,
                (
                    progress.status.value,
                    progress.start_time,
                    progress.end_time,
                    max(int(progress.add_elapsed_seconds), 0),
                    progress.employee_notes,
                    progress.submitted_media_ref,
                    updated_at,
                    int(task_id),
                    expected_status.value,
                ),
            )
            if cur.rowcount <= 0:
                return None
            return self._get(cur, int(task_id))

    def update_review(
        self,
        task_id: int,
        *,
        status: TaskStatus,
        notes: Optional[str],
        reviewed_by: int,
        reviewed_at: datetime,
    ) -> Optional[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE tasks
                SET status=%s, supervisor_review_notes=%s, reviewed_by=%s, reviewed_at=%s, updated_at=%s
                WHERE task_id=%s
                """,
                (status.value, notes, int(reviewed_by), reviewed_at, reviewed_at, int(task_id)),
            )
            return self._get(cur, int(task_id))
