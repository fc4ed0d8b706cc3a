from __future__ import annotations

import threading
from datetime import date, datetime, time

import pytest

from src.fieldops.fieldops.attendance.memory_session_repository import InMemorySessionRepository
from src.fieldops.fieldops.attendance.model import WorkWindow
from src.fieldops.fieldops.attendance.service import AttendanceSessionManager
from src.fieldops.fieldops.core.enums import ArrivalStatus, DepartureStatus, TaskStatus
from src.fieldops.fieldops.core.exceptions import DownstreamError
from src.fieldops.fieldops.notifications.audit import InMemoryAuditLog
from src.fieldops.fieldops.projects.memory_project_repository import InMemoryProjectRepository
from src.fieldops.fieldops.projects.model import Project
from src.fieldops.fieldops.tasks.memory_task_repository import InMemoryTaskRepository
from src.fieldops.fieldops.tasks.model import Task
from src.fieldops.fieldops.tasks.service import TaskLifecycleCoordinator

GPS = {"lat": 10.77, "lng": 106.70, "accuracy": 5.0}
DAY = date(2026, 3, 2)


def at(hour: int, minute: int = 0) -> datetime:
    return datetime.combine(DAY, time(hour, minute))


class RecordingNotifier:
    def __init__(self):
        self.messages = []

    def notify(self, audience, message, *, worker_id=None):
        self.messages.append((audience, message, worker_id))


class BrokenNotifier:
    def notify(self, audience, message, *, worker_id=None):
        raise DownstreamError("push gateway down")


class BrokenAudit:
    def record(self, **kwargs):
        raise RuntimeError("audit table locked")


def make_manager(*, notifier=None, audit=None, window=None, tasks=()):
    sessions = InMemorySessionRepository()
    projects = InMemoryProjectRepository(
        [Project(project_id=1, name="A"), Project(project_id=2, name="B")]
    )
    task_repo = InMemoryTaskRepository(tasks)
    coordinator = TaskLifecycleCoordinator(task_repo)
    manager = AttendanceSessionManager(
        sessions,
        projects,
        coordinator,
        notifier=notifier,
        audit=audit,
        work_window=window,
    )
    return manager, sessions, task_repo


def test_start_session_opens_session_with_server_stamped_fix():
    manager, sessions, _ = make_manager()

    result = manager.start_session(7, 1, GPS, selfie_ref="selfies/7.jpg", now=at(8, 55))

    assert result.success
    session = result.data
    assert session.is_open
    assert session.work_date == DAY
    assert session.check_in_fix.timestamp == at(8, 55)
    assert session.check_in_selfie == "selfies/7.jpg"
    assert sessions.all() == [session]


def test_second_project_conflicts_and_names_the_open_project():
    manager, _, _ = make_manager()
    assert manager.start_session(7, 1, GPS, now=at(8)).success

    result = manager.start_session(7, 2, GPS, now=at(9))

    assert not result.success
    assert result.error.kind == "conflict"
    assert result.error.blocking_project_id == 1
    assert "'A'" in result.error.message


def test_switch_project_after_checkout_succeeds():
    manager, sessions, _ = make_manager()
    manager.start_session(7, 1, GPS, now=at(8))
    assert not manager.start_session(7, 2, GPS, now=at(9)).success

    assert manager.checkout_session(7, 1, GPS, now=at(12)).success
    second = manager.start_session(7, 2, GPS, now=at(13))

    assert second.success
    assert second.data.project_id == 2
    assert [s.project_id for s in sessions.all() if s.is_open] == [2]


def test_start_same_project_twice_returns_existing_session():
    manager, sessions, _ = make_manager()
    first = manager.start_session(7, 1, GPS, now=at(8)).data

    again = manager.start_session(7, 1, GPS, now=at(8, 30))

    assert again.success
    assert again.data.session_id == first.session_id
    assert len(sessions.all()) == 1


def test_concurrent_starts_for_one_worker_open_a_single_session():
    manager, sessions, _ = make_manager()
    barrier = threading.Barrier(8)
    results = []
    lock = threading.Lock()

    def worker(project_id):
        barrier.wait()
        r = manager.start_session(7, project_id, GPS, now=at(8))
        with lock:
            results.append(r)

    threads = [threading.Thread(target=worker, args=(1 + i % 2,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    open_sessions = [s for s in sessions.all() if s.is_open]
    assert len(open_sessions) == 1
    winner = open_sessions[0].project_id
    for r in results:
        if r.data is not None and r.data.project_id == winner:
            assert r.success
        else:
            assert r.error.kind == "conflict"
            assert r.error.blocking_project_id == winner


def test_start_requires_gps_and_known_project():
    manager, _, _ = make_manager()

    missing_gps = manager.start_session(7, 1, None, now=at(8))
    bad_lat = manager.start_session(7, 1, {"lat": 120, "lng": 10}, now=at(8))
    unknown = manager.start_session(7, 99, GPS, now=at(8))

    assert missing_gps.error.kind == "validation"
    assert missing_gps.error.field == "gps"
    assert bad_lat.error.kind == "validation"
    assert unknown.error.kind == "not_found"


def test_checkout_without_open_session_is_not_found():
    manager, _, _ = make_manager()

    result = manager.checkout_session(7, 1, GPS, now=at(17))

    assert not result.success
    assert result.error.kind == "not_found"


def test_checkout_must_be_after_check_in():
    manager, sessions, _ = make_manager()
    manager.start_session(7, 1, GPS, now=at(8))

    result = manager.checkout_session(7, 1, GPS, now=at(8))

    assert result.error.kind == "validation"
    assert result.error.field == "check_out_time"
    assert sessions.all()[0].is_open


def test_checkout_closes_session_and_reviews_reported_tasks():
    tasks = [
        Task(task_id=10, project_id=1, name="Dig", assigned_worker_id=7),
        Task(task_id=11, project_id=1, name="Fill", assigned_worker_id=7),
    ]
    manager, _, task_repo = make_manager(tasks=tasks)
    manager.start_session(7, 1, GPS, now=at(8))

    result = manager.checkout_session(7, 1, GPS, completed_task_ids=[10, 11, 10], notes=" all done ", now=at(16))

    assert result.success
    closed = result.data.session
    assert closed.check_out_time == at(16)
    assert closed.completed_task_ids == (10, 11)
    assert closed.session_notes == "all done"
    assert result.data.tasks.succeeded == 2
    assert task_repo.get_by_id(10).status == TaskStatus.NEEDS_REVIEW
    assert task_repo.get_by_id(11).employee_notes == "all done"


def test_work_window_marks_late_arrival_and_early_departure():
    window = WorkWindow(start_time=time(9, 0), end_time=time(17, 0), grace_minutes=5)
    manager, _, _ = make_manager(window=window)

    session = manager.start_session(7, 1, GPS, now=at(9, 20)).data
    closed = manager.checkout_session(7, 1, now=at(15)).data.session

    assert session.arrival_status == ArrivalStatus.LATE
    assert closed.departure_status == DepartureStatus.LEFT_EARLY


def test_no_work_window_means_on_time():
    manager, _, _ = make_manager()

    session = manager.start_session(7, 1, GPS, now=at(11)).data
    closed = manager.checkout_session(7, 1, now=at(12)).data.session

    assert session.arrival_status == ArrivalStatus.ON_TIME
    assert closed.departure_status == DepartureStatus.ON_TIME


def test_failing_notifier_and_audit_do_not_fail_the_operation():
    manager, sessions, _ = make_manager(notifier=BrokenNotifier(), audit=BrokenAudit())

    started = manager.start_session(7, 1, GPS, now=at(8))
    closed = manager.checkout_session(7, 1, GPS, now=at(9))

    assert started.success
    assert closed.success
    assert not sessions.all()[0].is_open


def test_check_in_and_out_are_announced_and_audited():
    notifier = RecordingNotifier()
    audit = InMemoryAuditLog()
    manager, _, _ = make_manager(notifier=notifier, audit=audit)

    manager.start_session(7, 1, GPS, now=at(8))
    manager.checkout_session(7, 1, GPS, now=at(9))

    assert [e.action for e in audit.entries] == ["CHECK_IN", "CHECK_OUT"]
    assert len(notifier.messages) == 2
    assert all(worker_id == 7 for _, _, worker_id in notifier.messages)


def test_append_track_only_on_open_sessions():
    manager, sessions, _ = make_manager()
    session = manager.start_session(7, 1, GPS, now=at(8)).data

    added = manager.append_location_track(
        session.session_id,
        [{"lat": 10.0, "lng": 106.0, "timestamp": "2026-03-02T08:30:00"}, {"lat": 10.1, "lng": 106.1}],
        now=at(8, 45),
    )
    assert added.success
    assert added.data == 2
    track = sessions.get_by_id(session.session_id).location_track
    assert track[0].timestamp == at(8, 30)
    assert track[1].timestamp == at(8, 45)

    manager.checkout_session(7, 1, now=at(9))
    closed = manager.append_location_track(session.session_id, [{"lat": 1, "lng": 1}], now=at(9, 5))
    assert closed.error.kind == "conflict"


@pytest.mark.parametrize("points", [[], [{"lat": "x", "lng": 1}]])
def test_append_track_rejects_bad_points(points):
    manager, _, _ = make_manager()
    session = manager.start_session(7, 1, GPS, now=at(8)).data

    result = manager.append_location_track(session.session_id, points, now=at(8, 10))

    assert result.error.kind == "validation"
    assert result.error.field == "points"


def test_read_helpers_return_today_and_active_sessions():
    manager, _, _ = make_manager()
    assert manager.get_active_session(7, today=DAY) is None

    session = manager.start_session(7, 1, GPS, now=at(8)).data

    assert manager.get_active_session(7, today=DAY) == session
    assert manager.get_today_session(7, 1, today=DAY) == session
    assert manager.get_today_session(7, 2, today=DAY) is None


@pytest.mark.parametrize("gps", ["10.7,106.7", [10.7, 106.7], 42, {"lat": 1, "lng": 2, "accuracy": "close"}])
def test_malformed_gps_is_a_validation_error(gps):
    manager, sessions, _ = make_manager()

    result = manager.start_session(7, 1, gps, now=at(8))

    assert not result.success
    assert result.error.kind == "validation"
    assert result.error.field == "gps"
    assert sessions.all() == []


@pytest.mark.parametrize("points", [["bad"], [[10.0, 106.0]], "10,106", {"lat": 1, "lng": 2}])
def test_malformed_track_points_are_validation_errors(points):
    manager, sessions, _ = make_manager()
    session = manager.start_session(7, 1, GPS, now=at(8)).data

    result = manager.append_location_track(session.session_id, points, now=at(8, 10))

    assert result.error.kind == "validation"
    assert result.error.field == "points"
    assert sessions.get_by_id(session.session_id).location_track == ()


def test_non_text_selfie_and_notes_are_validation_errors():
    manager, sessions, _ = make_manager()

    bad_selfie = manager.start_session(7, 1, GPS, selfie_ref=5, now=at(8))
    assert bad_selfie.error.field == "selfie_ref"
    assert sessions.all() == []

    manager.start_session(7, 1, GPS, now=at(8))
    bad_notes = manager.checkout_session(7, 1, GPS, notes=5, now=at(9))

    assert bad_notes.error.kind == "validation"
    assert bad_notes.error.field == "notes"
    assert sessions.all()[0].is_open


@pytest.mark.parametrize("task_ids", ["12", b"12", 12, [0], ["x"]])
def test_malformed_completed_task_ids_leave_session_and_tasks_alone(task_ids):
    tasks = [Task(task_id=i, project_id=1, name=f"t{i}", assigned_worker_id=7) for i in (1, 2, 12)]
    manager, sessions, task_repo = make_manager(tasks=tasks)
    manager.start_session(7, 1, GPS, now=at(8))

    result = manager.checkout_session(7, 1, GPS, completed_task_ids=task_ids, now=at(9))

    assert result.error.kind == "validation"
    assert result.error.field == "completed_task_ids"
    assert sessions.all()[0].is_open
    assert all(task_repo.get_by_id(i).status == TaskStatus.PENDING for i in (1, 2, 12))


def test_completed_task_ids_accept_any_list_of_ids():
    tasks = [Task(task_id=12, project_id=1, name="t12", assigned_worker_id=7)]
    manager, _, task_repo = make_manager(tasks=tasks)
    manager.start_session(7, 1, GPS, now=at(8))

    result = manager.checkout_session(7, 1, GPS, completed_task_ids=("12",), now=at(9))

    assert result.data.session.completed_task_ids == (12,)
    assert task_repo.get_by_id(12).status == TaskStatus.NEEDS_REVIEW
