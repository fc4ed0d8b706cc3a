from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from ..core.enums import PayrollStatus


@dataclass(frozen=True)
class PayrollRecord:
    """A generated payroll line for one worker and pay period (history only)."""

    record_id: int
    worker_id: int
    project_id: int
    pay_period_start: date
    pay_period_end: date
    net_pay: float
    payroll_status: PayrollStatus = PayrollStatus.PENDING
