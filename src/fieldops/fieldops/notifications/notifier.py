from __future__ import annotations

import logging
from typing import Optional, Protocol

from ..core.enums import Audience, Role
from ..core.exceptions import DownstreamError
from ..users.repository import UserRepository

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Fire-and-forget notification dispatch."""

    def notify(self, audience: Audience, message: str, *, worker_id: Optional[int] = None) -> None:
        raise NotImplementedError


class LogNotifier(Notifier):
    """Resolve recipients from the user store and hand messages to the log.

    Delivery transport (push, email) is provided by another service; this
    implementation records what would be sent.
    """

    def __init__(self, users: UserRepository):
        self._users = users

    def notify(self, audience: Audience, message: str, *, worker_id: Optional[int] = None) -> None:
        try:
            if audience == Audience.WORKER:
                recipients = [worker_id] if worker_id is not None else []
            else:
                recipients = [u.user_id for u in self._users.list_by_roles((Role.SUPERVISOR, Role.ADMIN))]
        except Exception as e:
            raise DownstreamError(f"Could not resolve recipients for {audience.value}: {e}") from e

        for user_id in recipients:
            logger.info("notify user=%s audience=%s: %s", user_id, audience.value, message)
