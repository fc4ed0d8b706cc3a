from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: a user as seen by the attendance core (read-only)."""

    user_id: int
    full_name: str
    role: Role
    email: Optional[str] = None
    is_active: bool = True
