from __future__ import annotations

from flask import Flask, g, request

from ..common.http import actor_required, data_response, json_body, missing_param, result_response, server_error
from ..container import Container


def register(app: Flask, container: Container) -> None:
    manager = container.session_manager

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="check_in")
    @actor_required
    def check_in():
        body = json_body()
        try:
            result = manager.start_session(
                g.actor_id,
                body.get("project_id"),
                body.get("gps"),
                auto_logged=bool(body.get("auto_logged", False)),
                selfie_ref=body.get("selfie_ref"),
            )
        except Exception:
            return server_error("checking in")
        return result_response(result)

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="check_out")
    @actor_required
    def check_out():
        body = json_body()
        try:
            result = manager.checkout_session(
                g.actor_id,
                body.get("project_id"),
                body.get("gps"),
                selfie_ref=body.get("selfie_ref"),
                completed_task_ids=body.get("completed_task_ids"),
                notes=body.get("notes"),
            )
        except Exception:
            return server_error("checking out")
        return result_response(result)

    @app.route("/api/attendance/sessions/<int:session_id>/track", methods=["POST"], endpoint="append_track")
    @actor_required
    def append_track(session_id: int):
        try:
            result = manager.append_location_track(session_id, json_body().get("points") or [])
        except Exception:
            return server_error("saving location points")
        return result_response(result)

    @app.route("/api/attendance/today", methods=["GET"], endpoint="today_session")
    @actor_required
    def today_session():
        project_id = request.args.get("project_id", type=int)
        if not project_id:
            return missing_param("project_id")
        return data_response(manager.get_today_session(g.actor_id, project_id))

    @app.route("/api/attendance/active", methods=["GET"], endpoint="active_session")
    @actor_required
    def active_session():
        return data_response(manager.get_active_session(g.actor_id))
