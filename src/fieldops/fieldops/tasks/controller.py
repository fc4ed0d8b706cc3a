from __future__ import annotations

from flask import Flask, g

from ..common.http import actor_required, json_body, result_response, server_error
from ..container import Container


def register(app: Flask, container: Container) -> None:
    coordinator = container.task_coordinator

    @app.route("/api/tasks/<int:task_id>/start", methods=["POST"], endpoint="start_task")
    @actor_required
    def start_task(task_id: int):
        try:
            result = coordinator.start_task(task_id, g.actor_id)
        except Exception:
            return server_error("starting the task")
        return result_response(result)

    @app.route("/api/tasks/<int:task_id>/pause", methods=["POST"], endpoint="pause_task")
    @actor_required
    def pause_task(task_id: int):
        try:
            result = coordinator.pause_task(task_id, g.actor_id)
        except Exception:
            return server_error("pausing the task")
        return result_response(result)

    @app.route("/api/tasks/<int:task_id>/complete", methods=["POST"], endpoint="complete_task")
    @actor_required
    def complete_task(task_id: int):
        body = json_body()
        try:
            result = coordinator.complete_task(task_id, g.actor_id, body.get("notes"), body.get("media_ref"))
        except Exception:
            return server_error("completing the task")
        return result_response(result)
