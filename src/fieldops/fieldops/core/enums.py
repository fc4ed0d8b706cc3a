from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used to gate review actions."""

    WORKER = "worker"
    SUPERVISOR = "supervisor"
    ADMIN = "admin"


REVIEWER_ROLES = frozenset({Role.SUPERVISOR, Role.ADMIN})


class ReviewStatus(str, Enum):
    """Supervisor decision on an attendance session."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    PAUSED = "paused"
    NEEDS_REVIEW = "needs-review"
    COMPLETED = "completed"
    VERIFIED = "verified"
    REJECTED = "rejected"


DONE_TASK_STATUSES = frozenset({TaskStatus.COMPLETED, TaskStatus.VERIFIED})


class ArrivalStatus(str, Enum):
    ON_TIME = "on-time"
    LATE = "late"


class DepartureStatus(str, Enum):
    ON_TIME = "on-time"
    LEFT_EARLY = "left-early"


class PayrollStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Sensitivity(str, Enum):
    """Coarse knob selecting the threshold used by a heuristic."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RiskLevel(str, Enum):
    ON_TRACK = "on-track"
    AT_RISK = "at-risk"


class RecommendationCategory(str, Enum):
    ATTENDANCE = "attendance"
    TASK = "task"
    PAYROLL = "payroll"


class Audience(str, Enum):
    """Who a notification is addressed to."""

    SUPERVISORS_AND_ADMINS = "supervisors_and_admins"
    WORKER = "worker"
