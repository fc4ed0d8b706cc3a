from __future__ import annotations

from typing import Optional, Protocol

from .model import Project


class ProjectRepository(Protocol):
    """Project lookups. Project CRUD is owned by another service."""

    def get_by_id(self, project_id: int) -> Optional[Project]:
        raise NotImplementedError
