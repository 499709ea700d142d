"""
Pytest configuration and fixtures for Taskboard tests
"""

import os
import sys
from collections.abc import AsyncGenerator

# Settings are read at import time; configure them before importing taskboard
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-taskboard")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_JSON", "false")

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))  # noqa: PTH100, PTH118, PTH120

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from taskboard.database import Base, get_db  # noqa: E402
from taskboard.services.audit_service import get_audit_sink  # noqa: E402
from utils.fixtures import seed_project, seed_tenant, seed_user  # noqa: E402
from utils.mocks import RecordingAuditSink  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# One shared in-memory connection so every session sees the same database
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    poolclass=StaticPool,
    connect_args={"check_same_thread": False},
)

TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

from main import app  # noqa: E402


@pytest.fixture(scope="function")
async def setup_test_database():
    """Create a fresh schema for each test function that needs it."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(scope="function")
async def test_db(setup_test_database) -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionLocal() as session:
        yield session


@pytest.fixture
def audit() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest.fixture
async def client(setup_test_database, audit) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with the test database and a recording audit sink."""

    async def override_get_db():
        async with TestSessionLocal() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_audit_sink] = lambda: audit

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Seeded tenants ─────────────────────────────────────────────────────────────


@pytest.fixture
async def acme(test_db):
    """Tenant 'acme' with a tenant_admin and a regular user."""
    tenant = await seed_tenant(test_db, name="Acme Corp", subdomain="acme")
    admin = await seed_user(test_db, tenant, email="admin@acme.com", role="tenant_admin", full_name="Acme Admin")
    member = await seed_user(test_db, tenant, email="member@acme.com", role="user", full_name="Acme Member")
    return tenant, admin, member


@pytest.fixture
async def globex(test_db):
    """Tenant 'globex' with a tenant_admin and a regular user."""
    tenant = await seed_tenant(test_db, name="Globex", subdomain="globex")
    admin = await seed_user(test_db, tenant, email="admin@globex.com", role="tenant_admin", full_name="Globex Admin")
    member = await seed_user(test_db, tenant, email="member@globex.com", role="user", full_name="Globex Member")
    return tenant, admin, member


@pytest.fixture
async def super_admin(test_db):
    return await seed_user(test_db, None, email="root@platform.com", role="super_admin", full_name="Platform Root")


@pytest.fixture
async def acme_project(test_db, acme):
    tenant, admin, _ = acme
    return await seed_project(test_db, tenant, admin, name="Acme Launch")
