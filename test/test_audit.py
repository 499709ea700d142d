"""
Audit sink tests
"""

import logging

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from taskboard.constants.audit import AuditAction
from taskboard.database import Base
from taskboard.models import AuditLog
from taskboard.services.audit_service import DatabaseAuditSink


@pytest.fixture
async def audit_session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'audit.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


async def test_record_writes_row_in_background(audit_session_factory):
    sink = DatabaseAuditSink(session_factory=audit_session_factory)

    sink.record("tenant-1", "user-1", AuditAction.CREATE_PROJECT, "project", "project-1", "203.0.113.5")
    await sink.drain()

    async with audit_session_factory() as session:
        rows = (await session.execute(select(AuditLog))).scalars().all()

    assert len(rows) == 1
    row = rows[0]
    assert (row.tenant_id, row.user_id, row.action) == ("tenant-1", "user-1", "CREATE_PROJECT")
    assert (row.entity_type, row.entity_id, row.ip_address) == ("project", "project-1", "203.0.113.5")
    assert row.created_at is not None


async def test_platform_events_have_no_tenant(audit_session_factory):
    sink = DatabaseAuditSink(session_factory=audit_session_factory)

    sink.record(None, "root", AuditAction.LOGIN, "user", "root")
    await sink.drain()

    async with audit_session_factory() as session:
        row = (await session.execute(select(AuditLog))).scalars().one()
    assert row.tenant_id is None


async def test_write_failure_is_logged_not_raised(caplog):
    def broken_factory():
        raise RuntimeError("audit database unreachable")

    sink = DatabaseAuditSink(session_factory=broken_factory)

    with caplog.at_level(logging.ERROR, logger="taskboard.services.audit_service"):
        sink.record("tenant-1", "user-1", AuditAction.DELETE_TASK, "task", "task-1")
        await sink.drain()

    assert "Failed to write audit log DELETE_TASK" in caplog.text


async def test_unknown_action_rejected_at_record_time(audit_session_factory):
    sink = DatabaseAuditSink(session_factory=audit_session_factory)
    with pytest.raises(ValueError):
        sink.record("tenant-1", "user-1", "EXPLODE", "task")
