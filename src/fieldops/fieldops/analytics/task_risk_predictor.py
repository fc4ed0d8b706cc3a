from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional, Union

from ..common.datetime_utils import days_until, now_local
from ..core.constants import AT_RISK_DAYS_LEFT, DEFAULT_DAYS_LEFT_WITHOUT_DUE_DATE
from ..core.enums import DONE_TASK_STATUSES, RiskLevel, Sensitivity
from ..projects.model import Project
from ..tasks.model import Task
from .attendance_analyzer import coerce_sensitivity

INCOMPLETE_THRESHOLDS = {
    Sensitivity.HIGH: 0.2,
    Sensitivity.MEDIUM: 0.3,
    Sensitivity.LOW: 0.5,
}


@dataclass(frozen=True)
class RiskPrediction:
    project_id: int
    risk_level: RiskLevel
    reason: str


class TaskRiskPredictor:
    """Heuristic: many open tasks close to the due date means at risk."""

    @staticmethod
    def predict(
        project: Project,
        tasks: Iterable[Task],
        today: Optional[Union[date, datetime]] = None,
        sensitivity: Union[Sensitivity, str, None] = Sensitivity.MEDIUM,
    ) -> RiskPrediction:
        today = today or now_local()
        tasks = list(tasks)
        total = len(tasks)
        incomplete = sum(1 for t in tasks if t.status not in DONE_TASK_STATUSES)
        pct_incomplete = 0.0 if total == 0 else incomplete / total

        if project.due_date is not None:
            days_left = days_until(project.due_date, today)
        else:
            days_left = DEFAULT_DAYS_LEFT_WITHOUT_DUE_DATE

        threshold = INCOMPLETE_THRESHOLDS[coerce_sensitivity(sensitivity)]
        if pct_incomplete > threshold and days_left < AT_RISK_DAYS_LEFT:
            return RiskPrediction(
                project_id=project.project_id,
                risk_level=RiskLevel.AT_RISK,
                reason="High incomplete tasks near deadline",
            )
        return RiskPrediction(project_id=project.project_id, risk_level=RiskLevel.ON_TRACK, reason="Sufficient progress")
