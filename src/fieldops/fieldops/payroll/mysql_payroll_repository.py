from __future__ import annotations

from typing import Sequence

from ..core.enums import PayrollStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import PayrollRecord
from .repository import PayrollRepository


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_project(self, project_id: int) -> Sequence[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT record_id, worker_id, project_id, pay_period_start, pay_period_end, net_pay, payroll_status
                FROM payroll_records
                WHERE project_id=%s
                ORDER BY pay_period_end DESC
                """,
                (int(project_id),),
            )
            return [
                PayrollRecord(
                    record_id=int(r["record_id"]),
                    worker_id=int(r["worker_id"]),
                    project_id=int(r["project_id"]),
                    pay_period_start=r["pay_period_start"],
                    pay_period_end=r["pay_period_end"],
                    net_pay=float(r["net_pay"]),
                    payroll_status=PayrollStatus(r["payroll_status"]),
                )
                for r in fetchall(cur)
            ]
