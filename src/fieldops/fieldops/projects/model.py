from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class Project:
    project_id: int
    name: str
    due_date: Optional[date] = None
