from __future__ import annotations

import math
from datetime import date, datetime, time


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_hhmm(value: str) -> time:
    """Parse HH:MM string into time."""
    return datetime.strptime(value.strip(), "%H:%M").time()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def elapsed_seconds(start: datetime, end: datetime) -> int:
    """Whole seconds from start to end, clamped at 0 when end precedes start."""
    return max(int((end - start).total_seconds()), 0)


def _as_datetime(value: date) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def days_until(target: date, today: date) -> int:
    """Days left until target, rounded up. Dates count from midnight."""
    delta = _as_datetime(target) - _as_datetime(today)
    return math.ceil(delta.total_seconds() / 86400)
