from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Read-only user lookups; user management lives outside this service."""

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def list_by_roles(self, roles: Iterable[Role]) -> Sequence[User]:
        raise NotImplementedError
