from __future__ import annotations

from flask import Flask, g, request

from ..common.http import actor_required, data_response, json_body, result_response, server_error
from ..core.constants import DEFAULT_PENDING_REVIEW_LIMIT
from ..container import Container


def register(app: Flask, container: Container) -> None:
    reviews = container.review_workflow

    @app.route("/api/reviews/sessions/pending", methods=["GET"], endpoint="pending_sessions")
    @actor_required
    def pending_sessions():
        limit = request.args.get("limit", default=DEFAULT_PENDING_REVIEW_LIMIT, type=int)
        return data_response(reviews.list_pending_sessions(g.actor_id, limit=max(limit, 1)))

    @app.route("/api/reviews/sessions/<int:session_id>", methods=["POST"], endpoint="review_session")
    @actor_required
    def review_session(session_id: int):
        body = json_body()
        try:
            result = reviews.review_session(session_id, g.actor_id, body.get("status"), body.get("notes"))
        except Exception:
            return server_error("reviewing the session")
        return result_response(result)

    @app.route("/api/reviews/tasks/<int:task_id>", methods=["POST"], endpoint="review_task")
    @actor_required
    def review_task(task_id: int):
        body = json_body()
        try:
            result = reviews.review_task(task_id, g.actor_id, body.get("status"), body.get("notes"))
        except Exception:
            return server_error("reviewing the task")
        return result_response(result)
