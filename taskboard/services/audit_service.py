"""
Audit sink

`record()` is fire-and-forget: the write happens in a background task on
its own session, so an audit failure can never roll back or fail the
operation being audited. Failures are logged and dropped.
"""

import asyncio
import logging
from typing import Protocol

from sqlalchemy.ext.asyncio import async_sessionmaker

from taskboard.constants.audit import AuditAction
from taskboard.database import AsyncSessionLocal
from taskboard.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


class AuditSink(Protocol):
    def record(
        self,
        tenant_id: str | None,
        actor_user_id: str | None,
        action: AuditAction,
        entity_type: str,
        entity_id: str | None = None,
        source_ip: str | None = None,
    ) -> None: ...


class DatabaseAuditSink:
    """Writes audit_logs rows using a separate session per event."""

    def __init__(self, session_factory: async_sessionmaker = AsyncSessionLocal):
        self.session_factory = session_factory
        self._pending: set[asyncio.Task] = set()

    def record(
        self,
        tenant_id: str | None,
        actor_user_id: str | None,
        action: AuditAction,
        entity_type: str,
        entity_id: str | None = None,
        source_ip: str | None = None,
    ) -> None:
        entry = {
            "tenant_id": tenant_id,
            "user_id": actor_user_id,
            "action": AuditAction(action).value,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "ip_address": source_ip,
        }
        task = asyncio.create_task(self._write(entry))
        # Hold a reference until done so the task is not garbage collected
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write(self, entry: dict) -> None:
        try:
            async with self.session_factory() as session:
                session.add(AuditLog(**entry))
                await session.commit()
        except Exception as e:
            logger.error(f"Failed to write audit log {entry['action']}: {str(e)}")

    async def drain(self) -> None:
        """Wait for in-flight writes; used at shutdown and in tests."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


audit_sink = DatabaseAuditSink()


def get_audit_sink() -> AuditSink:
    return audit_sink
