from __future__ import annotations

from typing import Protocol, Sequence

from .model import PayrollRecord


class PayrollRepository(Protocol):
    def list_for_project(self, project_id: int) -> Sequence[PayrollRecord]:
        raise NotImplementedError
