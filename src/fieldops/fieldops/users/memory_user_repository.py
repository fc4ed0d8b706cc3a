from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..core.enums import Role
from .model import User
from .repository import UserRepository


class InMemoryUserRepository(UserRepository):
    def __init__(self, users: Iterable[User] = ()):
        self._users: dict[int, User] = {u.user_id: u for u in users}

    def add(self, user: User) -> User:
        self._users[user.user_id] = user
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._users.get(int(user_id))

    def list_by_roles(self, roles: Iterable[Role]) -> Sequence[User]:
        wanted = set(roles)
        return [u for u in sorted(self._users.values(), key=lambda u: u.user_id) if u.is_active and u.role in wanted]
