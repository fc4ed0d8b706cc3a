from __future__ import annotations

from typing import Optional, Protocol

from ..core.enums import Role
from .repository import UserRepository


class RoleResolver(Protocol):
    def resolve_role(self, user_id: int) -> Optional[Role]:
        raise NotImplementedError


class RoleDirectory(RoleResolver):
    """Resolve a user's role from the user store. Inactive users have none."""

    def __init__(self, users: UserRepository):
        self._users = users

    def resolve_role(self, user_id: int) -> Optional[Role]:
        user = self._users.get_by_id(int(user_id))
        if not user or not user.is_active:
            return None
        return user.role
