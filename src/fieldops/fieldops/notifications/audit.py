from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from ..common.datetime_utils import now_local
from ..core.exceptions import DownstreamError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditEntry:
    actor_id: int
    action: str
    details: str
    target_type: Optional[str]
    target_id: Optional[int]
    created_at: datetime


class AuditLog(Protocol):
    """Side-channel, human-readable record of mutating actions."""

    def record(
        self,
        *,
        actor_id: int,
        action: str,
        details: str,
        target_type: Optional[str] = None,
        target_id: Optional[int] = None,
    ) -> None:
        raise NotImplementedError


class MySQLAuditLog(AuditLog):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def record(
        self,
        *,
        actor_id: int,
        action: str,
        details: str,
        target_type: Optional[str] = None,
        target_id: Optional[int] = None,
    ) -> None:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO audit_logs(actor_id, action, details, target_type, target_id, created_at)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (int(actor_id), action, details, target_type, target_id, now_local()),
                )
        except Exception as e:
            raise DownstreamError(f"Audit write for {action} failed: {e}") from e


class InMemoryAuditLog(AuditLog):
    def __init__(self):
        self.entries: list[AuditEntry] = []

    def record(
        self,
        *,
        actor_id: int,
        action: str,
        details: str,
        target_type: Optional[str] = None,
        target_id: Optional[int] = None,
    ) -> None:
        self.entries.append(
            AuditEntry(
                actor_id=int(actor_id),
                action=action,
                details=details,
                target_type=target_type,
                target_id=target_id,
                created_at=now_local(),
            )
        )
        logger.debug("audit %s by %s: %s", action, actor_id, details)
