from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .analytics.service import InsightsService
from .attendance.factory import AttendanceStrategyFactory
from .attendance.memory_session_repository import InMemorySessionRepository
from .attendance.model import WorkWindow
from .attendance.mysql_session_repository import MySQLSessionRepository
from .attendance.repository import AttendanceSessionRepository
from .attendance.service import AttendanceSessionManager
from .core.enums import Sensitivity
from .database.connection import DBConfig, DatabaseConnection
from .notifications.audit import AuditLog, InMemoryAuditLog, MySQLAuditLog
from .notifications.notifier import LogNotifier
from .payroll.memory_payroll_repository import InMemoryPayrollRepository
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.repository import PayrollRepository
from .projects.memory_project_repository import InMemoryProjectRepository
from .projects.mysql_project_repository import MySQLProjectRepository
from .projects.repository import ProjectRepository
from .reviews.service import ReviewWorkflow
from .tasks.memory_task_repository import InMemoryTaskRepository
from .tasks.mysql_task_repository import MySQLTaskRepository
from .tasks.repository import TaskRepository
from .tasks.service import TaskLifecycleCoordinator
from .users.memory_user_repository import InMemoryUserRepository
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import RoleDirectory

BACKENDS = ("mysql", "memory")


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    projects_repo: ProjectRepository
    sessions_repo: AttendanceSessionRepository
    tasks_repo: TaskRepository
    payroll_repo: PayrollRepository
    audit_log: AuditLog

    session_manager: AttendanceSessionManager
    task_coordinator: TaskLifecycleCoordinator
    review_workflow: ReviewWorkflow
    insights_service: InsightsService


def build_container(
    *,
    db_config: Optional[dict] = None,
    backend: str = "mysql",
    work_window: Optional[WorkWindow] = None,
    sensitivity: str = Sensitivity.MEDIUM.value,
) -> Container:
    backend = (backend or "mysql").lower()
    if backend not in BACKENDS:
        raise ValueError(f"Unknown DB_BACKEND {backend!r}; expected one of {', '.join(BACKENDS)}")

    conn: Optional[DatabaseConnection] = None
    if backend == "mysql":
        if not db_config:
            raise ValueError("DB_CONFIG is required for the mysql backend")
        conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
        users_repo = MySQLUserRepository(conn)
        projects_repo = MySQLProjectRepository(conn)
        sessions_repo = MySQLSessionRepository(conn)
        tasks_repo = MySQLTaskRepository(conn)
        payroll_repo = MySQLPayrollRepository(conn)
        audit_log = MySQLAuditLog(conn)
    else:
        users_repo = InMemoryUserRepository()
        projects_repo = InMemoryProjectRepository()
        sessions_repo = InMemorySessionRepository()
        tasks_repo = InMemoryTaskRepository()
        payroll_repo = InMemoryPayrollRepository()
        audit_log = InMemoryAuditLog()

    notifier = LogNotifier(users_repo)
    task_coordinator = TaskLifecycleCoordinator(tasks_repo, audit=audit_log)
    session_manager = AttendanceSessionManager(
        sessions_repo,
        projects_repo,
        task_coordinator,
        notifier=notifier,
        audit=audit_log,
        strategy_factory=AttendanceStrategyFactory(),
        work_window=work_window,
    )
    review_workflow = ReviewWorkflow(
        sessions_repo,
        tasks_repo,
        RoleDirectory(users_repo),
        notifier=notifier,
        audit=audit_log,
    )
    insights_service = InsightsService(
        sessions_repo,
        projects_repo,
        tasks_repo,
        payroll_repo,
        sensitivity=sensitivity,
    )

    return Container(
        conn=conn,
        users_repo=users_repo,
        projects_repo=projects_repo,
        sessions_repo=sessions_repo,
        tasks_repo=tasks_repo,
        payroll_repo=payroll_repo,
        audit_log=audit_log,
        session_manager=session_manager,
        task_coordinator=task_coordinator,
        review_workflow=review_workflow,
        insights_service=insights_service,
    )
