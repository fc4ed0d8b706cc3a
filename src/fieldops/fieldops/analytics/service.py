from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from ..attendance.repository import AttendanceSessionRepository
from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_FORECAST_PERIODS
from ..core.enums import Sensitivity
from ..core.exceptions import NotFoundError
from ..core.result import as_result
from ..payroll.repository import PayrollRepository
from ..projects.repository import ProjectRepository
from ..tasks.repository import TaskRepository
from .attendance_analyzer import AttendanceAnalysis, AttendanceAnalyzer, coerce_sensitivity
from .payroll_forecaster import PayrollForecaster
from .recommendation_engine import Recommendation, RecommendationEngine
from .task_risk_predictor import RiskPrediction, TaskRiskPredictor


@dataclass(frozen=True)
class ProjectInsights:
    attendance: AttendanceAnalysis
    risk: RiskPrediction
    payroll_forecast: float
    recommendations: list[Recommendation]

    def to_dict(self) -> dict:
        return {
            "attendance": {
                "late_count": self.attendance.late_count,
                "early_count": self.attendance.early_count,
                "flagged": [
                    {"worker_id": f.worker_id, "late_days": f.late_days, "early_leave_days": f.early_leave_days}
                    for f in self.attendance.flagged
                ],
            },
            "risk": {
                "project_id": self.risk.project_id,
                "risk_level": self.risk.risk_level.value,
                "reason": self.risk.reason,
            },
            "payroll_forecast": self.payroll_forecast,
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


class InsightsService:
    """Load a project's history and run the heuristics over it on demand.

    Nothing is cached; every call reads the current history.
    """

    def __init__(
        self,
        sessions: AttendanceSessionRepository,
        projects: ProjectRepository,
        tasks: TaskRepository,
        payroll: PayrollRepository,
        *,
        sensitivity: Union[Sensitivity, str] = Sensitivity.MEDIUM,
    ):
        self._sessions = sessions
        self._projects = projects
        self._tasks = tasks
        self._payroll = payroll
        self._sensitivity = coerce_sensitivity(sensitivity)

    @as_result
    def project_insights(
        self,
        project_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        today: Optional[date] = None,
        sensitivity: Union[Sensitivity, str, None] = None,
        periods: int = DEFAULT_FORECAST_PERIODS,
    ) -> ProjectInsights:
        project = self._projects.get_by_id(int(project_id))
        if not project:
            raise NotFoundError(f"Project {project_id} not found")

        today = today or now_local().date()
        level = coerce_sensitivity(sensitivity) if sensitivity else self._sensitivity
        logs = self._sessions.list_for_project(project_id=project.project_id, start_date=start_date, end_date=end_date)
        tasks = self._tasks.list_for_project(project.project_id)
        records = self._payroll.list_for_project(project.project_id)

        return ProjectInsights(
            attendance=AttendanceAnalyzer.analyze(logs, level),
            risk=TaskRiskPredictor.predict(project, tasks, today, level),
            payroll_forecast=PayrollForecaster.forecast(records, periods),
            recommendations=RecommendationEngine.generate(logs, project, tasks, records, today, level, periods),
        )
