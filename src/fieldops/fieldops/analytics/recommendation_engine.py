from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional, Union

from ..core.constants import DEFAULT_FORECAST_PERIODS
from ..core.enums import RecommendationCategory, RiskLevel, Sensitivity
from ..payroll.model import PayrollRecord
from ..projects.model import Project
from ..tasks.model import Task
from .attendance_analyzer import AttendanceAnalyzer, AttendanceLog
from .payroll_forecaster import PayrollForecaster
from .task_risk_predictor import TaskRiskPredictor

ATTENDANCE_CONFIDENCE = 0.7
TASK_CONFIDENCE = 0.8
PAYROLL_CONFIDENCE = 0.6


@dataclass(frozen=True)
class Recommendation:
    message: str
    category: RecommendationCategory
    confidence: float

    def to_dict(self) -> dict:
        return {"message": self.message, "category": self.category.value, "confidence": self.confidence}


class RecommendationEngine:
    """Turn analyzer signals into a short, fixed-order list of suggestions."""

    @staticmethod
    def generate(
        attendance_logs: Iterable[AttendanceLog],
        project: Project,
        tasks: Iterable[Task],
        payroll_records: Iterable[PayrollRecord],
        today: Optional[Union[date, datetime]] = None,
        sensitivity: Union[Sensitivity, str, None] = Sensitivity.MEDIUM,
        periods: int = DEFAULT_FORECAST_PERIODS,
    ) -> list[Recommendation]:
        recs: list[Recommendation] = []

        attendance = AttendanceAnalyzer.analyze(attendance_logs, sensitivity)
        if attendance.flagged:
            recs.append(
                Recommendation(
                    message=f"{len(attendance.flagged)} workers late {attendance.flagged[0].late_days} times",
                    category=RecommendationCategory.ATTENDANCE,
                    confidence=ATTENDANCE_CONFIDENCE,
                )
            )

        risk = TaskRiskPredictor.predict(project, tasks, today, sensitivity)
        if risk.risk_level == RiskLevel.AT_RISK:
            recs.append(
                Recommendation(
                    message=f"Project {project.name} may miss deadline",
                    category=RecommendationCategory.TASK,
                    confidence=TASK_CONFIDENCE,
                )
            )

        forecast = PayrollForecaster.forecast(payroll_records, periods)
        if forecast > 0:
            recs.append(
                Recommendation(
                    message=f"Upcoming payroll expected around {forecast:.2f}",
                    category=RecommendationCategory.PAYROLL,
                    confidence=PAYROLL_CONFIDENCE,
                )
            )

        return recs
