from __future__ import annotations

from typing import Iterable

from ..core.constants import DEFAULT_FORECAST_PERIODS
from ..core.enums import PayrollStatus
from ..payroll.model import PayrollRecord


class PayrollForecaster:
    """Forecast the next payroll as the mean net pay of recent approved periods."""

    @staticmethod
    def forecast(records: Iterable[PayrollRecord], periods: int = DEFAULT_FORECAST_PERIODS) -> float:
        approved = sorted(
            (r for r in records if r.payroll_status == PayrollStatus.APPROVED),
            key=lambda r: r.pay_period_end,
            reverse=True,
        )[: max(int(periods), 0)]
        if not approved:
            return 0.0
        total = sum(float(r.net_pay) for r in approved)
        return round(total / len(approved), 2)
