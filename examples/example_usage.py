"""Example: drive the service layer directly (no Flask) on the memory backend.

Controllers are a thin layer; the business rules live in the services.
"""

from datetime import date, datetime

from src.fieldops.fieldops.container import build_container
from src.fieldops.fieldops.core.enums import Role
from src.fieldops.fieldops.projects.model import Project
from src.fieldops.fieldops.tasks.model import Task
from src.fieldops.fieldops.users.model import User


def main():
    container = build_container(backend="memory")
    container.users_repo.add(User(user_id=1, full_name="Sam Supervisor", role=Role.SUPERVISOR))
    container.users_repo.add(User(user_id=2, full_name="Wendy Worker", role=Role.WORKER))
    container.projects_repo.add(Project(project_id=1, name="North Substation", due_date=date(2030, 1, 1)))
    container.tasks_repo.add(Task(task_id=1, project_id=1, name="Inspect transformer bay", assigned_worker_id=2))

    manager = container.session_manager
    gps = {"lat": 10.77, "lng": 106.70, "accuracy": 8.0}
    print(manager.start_session(2, 1, gps, now=datetime(2030, 1, 1, 8, 55)))
    print(container.task_coordinator.start_task(1, 2, now=datetime(2030, 1, 1, 9, 0)))
    checkout = manager.checkout_session(2, 1, gps, completed_task_ids=[1], now=datetime(2030, 1, 1, 17, 5))
    print(checkout.unwrap().to_dict())

    session_id = checkout.unwrap().session.session_id
    print(container.review_workflow.review_session(session_id, 1, "approved"))
    print(container.insights_service.project_insights(1, today=date(2029, 12, 28)).unwrap().to_dict())


if __name__ == "__main__":
    main()
