from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import actor_required, result_response, server_error
from ..core.constants import DEFAULT_FORECAST_PERIODS
from ..core.exceptions import ValidationError
from ..core.result import OperationResult
from ..container import Container


def register(app: Flask, container: Container) -> None:
    insights = container.insights_service

    def _date_arg(name: str):
        raw = (request.args.get(name) or "").strip()
        if not raw:
            return None
        try:
            return parse_iso_date(raw)
        except ValueError:
            raise ValidationError(f"{name} must be YYYY-MM-DD", field=name)

    @app.route("/api/projects/<int:project_id>/insights", methods=["GET"], endpoint="project_insights")
    @actor_required
    def project_insights(project_id: int):
        try:
            start_date, end_date = _date_arg("start"), _date_arg("end")
        except ValidationError as e:
            return result_response(OperationResult.fail(e))

        try:
            result = insights.project_insights(
                project_id,
                start_date=start_date,
                end_date=end_date,
                sensitivity=request.args.get("sensitivity"),
                periods=request.args.get("periods", default=DEFAULT_FORECAST_PERIODS, type=int),
            )
        except Exception:
            return server_error("computing project insights")
        return result_response(result)
