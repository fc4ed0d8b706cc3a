from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from src.fieldops.fieldops.core.enums import Role
from src.fieldops.fieldops.main import create_app
from src.fieldops.fieldops.projects.model import Project
from src.fieldops.fieldops.tasks.model import Task
from src.fieldops.fieldops.users.model import User

SUPERVISOR, WORKER = 1, 7
GPS = {"lat": 10.77, "lng": 106.70, "accuracy": 4.0}


class SteppingClock:
    def __init__(self, start: datetime):
        self._now = start

    def __call__(self) -> datetime:
        self._now += timedelta(minutes=1)
        return self._now


@pytest.fixture
def client(monkeypatch):
    clock = SteppingClock(datetime(2026, 3, 2, 8, 0))
    for module in ("attendance.service", "tasks.service", "reviews.service"):
        monkeypatch.setattr(f"src.fieldops.fieldops.{module}.now_local", clock)

    app = create_app("config.testing")
    container = app.extensions["fieldops"]
    container.users_repo.add(User(user_id=SUPERVISOR, full_name="Sam", role=Role.SUPERVISOR))
    container.users_repo.add(User(user_id=WORKER, full_name="Wendy", role=Role.WORKER))
    container.projects_repo.add(Project(project_id=1, name="A"))
    container.projects_repo.add(Project(project_id=2, name="B"))
    container.tasks_repo.add(Task(task_id=1, project_id=1, name="Dig", assigned_worker_id=WORKER))
    return app.test_client()


def as_user(user_id):
    return {"X-User-Id": str(user_id)}


def test_requests_without_caller_identity_are_refused(client):
    resp = client.get("/api/attendance/active")

    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_check_in_conflict_then_switch_after_check_out(client):
    first = client.post("/api/attendance/check-in", json={"project_id": 1, "gps": GPS}, headers=as_user(WORKER))
    assert first.status_code == 200
    assert first.get_json()["data"]["project_id"] == 1

    conflict = client.post("/api/attendance/check-in", json={"project_id": 2, "gps": GPS}, headers=as_user(WORKER))
    assert conflict.status_code == 409
    assert conflict.get_json()["error"]["blocking_project_id"] == 1

    out = client.post(
        "/api/attendance/check-out",
        json={"project_id": 1, "completed_task_ids": [1], "notes": "done"},
        headers=as_user(WORKER),
    )
    assert out.status_code == 200
    assert out.get_json()["data"]["tasks"]["succeeded"] == 1

    second = client.post("/api/attendance/check-in", json={"project_id": 2, "gps": GPS}, headers=as_user(WORKER))
    assert second.status_code == 200
    active = client.get("/api/attendance/active", headers=as_user(WORKER)).get_json()
    assert active["data"]["project_id"] == 2


def test_validation_errors_map_to_400(client):
    resp = client.post("/api/attendance/check-in", json={"project_id": 1}, headers=as_user(WORKER))

    assert resp.status_code == 400
    assert resp.get_json()["error"]["field"] == "gps"
    assert client.get("/api/attendance/today", headers=as_user(WORKER)).status_code == 400


def test_review_flow_over_http(client):
    client.post("/api/attendance/check-in", json={"project_id": 1, "gps": GPS}, headers=as_user(WORKER))
    out = client.post(
        "/api/attendance/check-out", json={"project_id": 1, "completed_task_ids": [1]}, headers=as_user(WORKER)
    )
    session_id = out.get_json()["data"]["session"]["session_id"]

    assert client.get("/api/reviews/sessions/pending", headers=as_user(WORKER)).get_json()["data"] == []
    pending = client.get("/api/reviews/sessions/pending", headers=as_user(SUPERVISOR)).get_json()["data"]
    assert [s["session_id"] for s in pending] == [session_id]

    forbidden = client.post(f"/api/reviews/sessions/{session_id}", json={"status": "approved"}, headers=as_user(WORKER))
    assert forbidden.status_code == 403

    rejected = client.post(f"/api/reviews/sessions/{session_id}", json={"status": "rejected"}, headers=as_user(SUPERVISOR))
    assert rejected.get_json()["data"]["review_notes"] == "Rejected without specific notes."

    verified = client.post("/api/reviews/tasks/1", json={"status": "verified"}, headers=as_user(SUPERVISOR))
    assert verified.get_json()["data"]["status"] == "verified"


def test_task_start_and_pause_endpoints(client):
    started = client.post("/api/tasks/1/start", headers=as_user(WORKER))
    paused = client.post("/api/tasks/1/pause", headers=as_user(WORKER))
    again = client.post("/api/tasks/1/pause", headers=as_user(WORKER))

    assert started.get_json()["data"]["status"] == "in-progress"
    assert paused.get_json()["data"]["elapsed_seconds"] == 60
    assert again.status_code == 409


def test_project_insights_endpoint(client):
    resp = client.get("/api/projects/1/insights?sensitivity=high", headers=as_user(SUPERVISOR))
    missing = client.get("/api/projects/99/insights", headers=as_user(SUPERVISOR))
    bad_date = client.get("/api/projects/1/insights?start=03-02-2026", headers=as_user(SUPERVISOR))

    assert resp.status_code == 200
    assert resp.get_json()["data"]["risk"]["risk_level"] == "on-track"
    assert missing.status_code == 404
    assert bad_date.status_code == 400


def test_task_complete_endpoint(client):
    client.post("/api/tasks/1/start", headers=as_user(WORKER))
    done = client.post("/api/tasks/1/complete", json={"notes": "all dug"}, headers=as_user(WORKER))
    again = client.post("/api/tasks/1/complete", headers=as_user(WORKER))

    assert done.status_code == 200
    assert done.get_json()["data"]["status"] == "completed"
    assert done.get_json()["data"]["elapsed_seconds"] == 60
    assert again.status_code == 409


def test_malformed_payload_shapes_are_400_not_500(client):
    bad_gps = client.post(
        "/api/attendance/check-in", json={"project_id": 1, "gps": "10.77,106.70"}, headers=as_user(WORKER)
    )
    client.post("/api/attendance/check-in", json={"project_id": 1, "gps": GPS}, headers=as_user(WORKER))
    bad_ids = client.post(
        "/api/attendance/check-out", json={"project_id": 1, "completed_task_ids": "1"}, headers=as_user(WORKER)
    )
    bad_notes = client.post(
        "/api/attendance/check-out", json={"project_id": 1, "notes": {"text": "done"}}, headers=as_user(WORKER)
    )

    assert bad_gps.status_code == 400
    assert bad_gps.get_json()["error"]["field"] == "gps"
    assert bad_ids.status_code == 400
    assert bad_ids.get_json()["error"]["field"] == "completed_task_ids"
    assert bad_notes.status_code == 400
    assert client.get("/api/attendance/active", headers=as_user(WORKER)).get_json()["data"]["project_id"] == 1
