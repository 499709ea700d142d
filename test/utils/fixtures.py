"""
Seed helpers for service and route tests
"""

from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.auth import hash_password
from taskboard.constants.roles import Role
from taskboard.models import Project, Task, Tenant, TenantStatus, User
from taskboard.utils.principal import principal_for_user

DEFAULT_PASSWORD = "correct-horse-battery"


async def seed_tenant(
    db: AsyncSession,
    name: str = "Acme Corp",
    subdomain: str = "acme",
    status: TenantStatus = TenantStatus.active,
    max_users: int = 5,
    max_projects: int = 3,
) -> Tenant:
    tenant = Tenant(name=name, subdomain=subdomain, status=status, max_users=max_users, max_projects=max_projects)
    db.add(tenant)
    await db.commit()
    await db.refresh(tenant)
    return tenant


async def seed_user(
    db: AsyncSession,
    tenant: Tenant | None,
    email: str,
    role: str = "user",
    full_name: str = "Test User",
    password: str = DEFAULT_PASSWORD,
    is_active: bool = True,
) -> User:
    user = User(
        tenant_id=tenant.id if tenant else None,
        email=email,
        password_hash=hash_password(password),
        full_name=full_name,
        role=Role(role),
        is_active=is_active,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def seed_project(db: AsyncSession, tenant: Tenant, creator: User | None, name: str = "Project") -> Project:
    project = Project(tenant_id=tenant.id, name=name, created_by=creator.id if creator else None)
    db.add(project)
    await db.commit()
    await db.refresh(project)
    return project


async def seed_task(db: AsyncSession, project: Project, creator: User | None, title: str = "Task", **fields) -> Task:
    task = Task(
        project_id=project.id,
        tenant_id=project.tenant_id,
        title=title,
        created_by=creator.id if creator else None,
        **fields,
    )
    db.add(task)
    await db.commit()
    await db.refresh(task)
    return task


def principal_of(user: User):
    return principal_for_user(user)


def auth_headers(user: User) -> dict:
    from taskboard.auth import session_issuer

    token = session_issuer.mint(principal_for_user(user)).token
    return {"Authorization": f"Bearer {token}"}
