"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

DEFAULT_WORKDAY_START = time(9, 0)
DEFAULT_WORKDAY_END = time(17, 0)
DEFAULT_LATE_GRACE_MINUTES = 5

DEFAULT_DAYS_LEFT_WITHOUT_DUE_DATE = 30
AT_RISK_DAYS_LEFT = 7
DEFAULT_FORECAST_PERIODS = 3

REJECTION_PLACEHOLDER_NOTES = "Rejected without specific notes."
TASK_APPROVAL_DEFAULT_NOTES = "Approved by supervisor."
MIN_TASK_REJECTION_NOTES = 5
MAX_REVIEW_NOTES = 500

DEFAULT_PENDING_REVIEW_LIMIT = 200
