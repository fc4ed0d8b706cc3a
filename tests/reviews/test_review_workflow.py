from __future__ import annotations

from datetime import date, datetime

import pytest

from src.fieldops.fieldops.attendance.memory_session_repository import InMemorySessionRepository
from src.fieldops.fieldops.attendance.model import GeoFix, NewSession, SessionClosure
from src.fieldops.fieldops.core.constants import REJECTION_PLACEHOLDER_NOTES, TASK_APPROVAL_DEFAULT_NOTES
from src.fieldops.fieldops.core.enums import ArrivalStatus, DepartureStatus, ReviewStatus, Role, TaskStatus
from src.fieldops.fieldops.notifications.audit import InMemoryAuditLog
from src.fieldops.fieldops.reviews.service import ReviewWorkflow
from src.fieldops.fieldops.tasks.memory_task_repository import InMemoryTaskRepository
from src.fieldops.fieldops.tasks.model import Task
from src.fieldops.fieldops.users.memory_user_repository import InMemoryUserRepository
from src.fieldops.fieldops.users.model import User
from src.fieldops.fieldops.users.service import RoleDirectory

SUPERVISOR, ADMIN, WORKER, FORMER_ADMIN = 1, 2, 7, 9
NOW = datetime(2026, 3, 3, 10, 0, 0)


class RecordingNotifier:
    def __init__(self):
        self.messages = []

    def notify(self, audience, message, *, worker_id=None):
        self.messages.append((audience, message, worker_id))


def open_session(sessions, *, close=True):
    session = sessions._insert(
        NewSession(
            worker_id=WORKER,
            project_id=1,
            work_date=date(2026, 3, 2),
            check_in_time=datetime(2026, 3, 2, 8, 0, 0),
            check_in_fix=GeoFix(lat=1.0, lng=2.0),
            arrival_status=ArrivalStatus.ON_TIME,
        )
    )
    if close:
        session = sessions.close(
            session.session_id,
            SessionClosure(check_out_time=datetime(2026, 3, 2, 17, 0, 0), departure_status=DepartureStatus.ON_TIME),
        )
    return session


@pytest.fixture
def env():
    users = InMemoryUserRepository(
        [
            User(user_id=SUPERVISOR, full_name="Sam", role=Role.SUPERVISOR),
            User(user_id=ADMIN, full_name="Adam", role=Role.ADMIN),
            User(user_id=WORKER, full_name="Wendy", role=Role.WORKER),
            User(user_id=FORMER_ADMIN, full_name="Ada", role=Role.ADMIN, is_active=False),
        ]
    )
    sessions = InMemorySessionRepository()
    tasks = InMemoryTaskRepository(
        [
            Task(task_id=1, project_id=1, name="Dig", status=TaskStatus.NEEDS_REVIEW, assigned_worker_id=WORKER),
            Task(task_id=2, project_id=1, name="Fill", status=TaskStatus.IN_PROGRESS, assigned_worker_id=WORKER),
        ]
    )
    notifier = RecordingNotifier()
    audit = InMemoryAuditLog()
    workflow = ReviewWorkflow(sessions, tasks, RoleDirectory(users), notifier=notifier, audit=audit)
    return workflow, sessions, tasks, notifier, audit


def test_rejecting_session_without_notes_uses_placeholder(env):
    workflow, sessions, _, notifier, _ = env
    session = open_session(sessions)

    result = workflow.review_session(session.session_id, SUPERVISOR, "rejected", now=NOW)

    assert result.success
    assert result.data.review_status == ReviewStatus.REJECTED
    assert result.data.review_notes == REJECTION_PLACEHOLDER_NOTES
    assert result.data.reviewed_by == SUPERVISOR
    assert result.data.reviewed_at == NOW
    assert notifier.messages[0][2] == WORKER


def test_approving_session_keeps_given_notes(env):
    workflow, sessions, _, _, audit = env
    session = open_session(sessions)

    result = workflow.review_session(session.session_id, SUPERVISOR, ReviewStatus.APPROVED, "  looks good ", now=NOW)

    assert result.data.review_status == ReviewStatus.APPROVED
    assert result.data.review_notes == "looks good"
    assert audit.entries[0].action == "SESSION_REVIEWED"


@pytest.mark.parametrize("reviewer", [WORKER, FORMER_ADMIN, 404])
def test_only_active_supervisors_and_admins_review(env, reviewer):
    workflow, sessions, _, _, _ = env
    session = open_session(sessions)

    result = workflow.review_session(session.session_id, reviewer, "approved", now=NOW)

    assert result.error.kind == "authorization"
    assert sessions.get_by_id(session.session_id).review_status == ReviewStatus.PENDING


def test_open_session_cannot_be_reviewed(env):
    workflow, sessions, _, _, _ = env
    session = open_session(sessions, close=False)

    result = workflow.review_session(session.session_id, SUPERVISOR, "approved", now=NOW)

    assert result.error.kind == "conflict"


def test_invalid_session_decision_is_rejected(env):
    workflow, sessions, _, _, _ = env
    session = open_session(sessions)

    result = workflow.review_session(session.session_id, SUPERVISOR, "pending", now=NOW)

    assert result.error.kind == "validation"
    assert result.error.field == "status"


def test_task_rejection_requires_meaningful_notes(env):
    workflow, _, tasks, _, _ = env

    short = workflow.review_task(1, SUPERVISOR, "rejected", "no", now=NOW)
    ok = workflow.review_task(1, SUPERVISOR, "rejected", "Photo does not show the fence", now=NOW)

    assert short.error.kind == "validation"
    assert short.error.field == "notes"
    assert ok.success
    assert tasks.get_by_id(1).status == TaskStatus.REJECTED
    assert tasks.get_by_id(1).supervisor_review_notes == "Photo does not show the fence"


def test_task_verification_defaults_notes(env):
    workflow, _, tasks, _, _ = env

    result = workflow.review_task(1, SUPERVISOR, "verified", now=NOW)

    assert result.data.status == TaskStatus.VERIFIED
    assert result.data.supervisor_review_notes == TASK_APPROVAL_DEFAULT_NOTES
    assert result.data.reviewed_by == SUPERVISOR


def test_task_in_progress_cannot_be_reviewed(env):
    workflow, _, _, _, _ = env

    result = workflow.review_task(2, SUPERVISOR, "verified", now=NOW)

    assert result.error.kind == "conflict"


def test_pending_sessions_list_is_empty_for_workers(env):
    workflow, sessions, _, _, _ = env
    closed = open_session(sessions)
    open_session(sessions, close=False)

    assert workflow.list_pending_sessions(WORKER) == []
    assert [s.session_id for s in workflow.list_pending_sessions(SUPERVISOR)] == [closed.session_id]


def test_session_re_review_keeps_only_the_latest_decision(env):
    workflow, sessions, _, _, audit = env
    session = open_session(sessions)
    workflow.review_session(session.session_id, SUPERVISOR, "approved", "fine", now=NOW)

    later = datetime(2026, 3, 4, 9, 0, 0)
    result = workflow.review_session(session.session_id, SUPERVISOR, "rejected", "GPS outside site", now=later)

    stored = sessions.get_by_id(session.session_id)
    assert result.success
    assert stored.review_status == ReviewStatus.REJECTED
    assert stored.review_notes == "GPS outside site"
    assert stored.reviewed_by == SUPERVISOR
    assert stored.reviewed_at == later
    assert not hasattr(stored, "review_history")
    assert [e.action for e in audit.entries] == ["SESSION_REVIEWED", "SESSION_REVIEWED"]


def test_task_re_review_keeps_only_the_latest_decision(env):
    workflow, _, tasks, _, _ = env
    workflow.review_task(1, SUPERVISOR, "verified", "Good photos", now=NOW)

    later = datetime(2026, 3, 4, 9, 0, 0)
    result = workflow.review_task(1, ADMIN, "rejected", "Wrong fence section", now=later)

    stored = tasks.get_by_id(1)
    assert result.success
    assert stored.status == TaskStatus.REJECTED
    assert stored.supervisor_review_notes == "Wrong fence section"
    assert stored.reviewed_by == ADMIN
    assert stored.reviewed_at == later
    assert not hasattr(stored, "review_history")


@pytest.mark.parametrize("notes", [12345, ["too", "short"]])
def test_non_text_review_notes_are_validation_errors(env, notes):
    workflow, sessions, _, _, _ = env
    session = open_session(sessions)

    on_session = workflow.review_session(session.session_id, SUPERVISOR, "approved", notes, now=NOW)
    on_task = workflow.review_task(1, SUPERVISOR, "rejected", notes, now=NOW)

    assert on_session.error.field == "notes"
    assert on_task.error.field == "notes"
