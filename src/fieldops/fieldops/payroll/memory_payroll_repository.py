from __future__ import annotations

from typing import Iterable, Sequence

from .model import PayrollRecord
from .repository import PayrollRepository


class InMemoryPayrollRepository(PayrollRepository):
    def __init__(self, records: Iterable[PayrollRecord] = ()):
        self._records: list[PayrollRecord] = list(records)

    def add(self, record: PayrollRecord) -> PayrollRecord:
        self._records.append(record)
        return record

    def list_for_project(self, project_id: int) -> Sequence[PayrollRecord]:
        return [r for r in self._records if r.project_id == int(project_id)]
