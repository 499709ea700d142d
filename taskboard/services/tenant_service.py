"""
Tenant Service

Tenant Registry operations: self-registration, details with usage stats,
partial updates and listings. All functions accept an injected AsyncSession.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.auth import hash_password
from taskboard.config import settings
from taskboard.constants.audit import AuditAction
from taskboard.constants.roles import Role
from taskboard.exceptions import DatabaseError, DuplicateSubdomainError, ValidationError
from taskboard.models.project import Project
from taskboard.models.task import Task
from taskboard.models.tenant import SubscriptionPlan, Tenant, TenantStatus
from taskboard.models.user import User
from taskboard.permissions_config.permissions import Action, EntityKind
from taskboard.services.audit_service import AuditSink
from taskboard.services.authorization_service import Target, enforce
from taskboard.services.hierarchy_service import ResourceHierarchy
from taskboard.services.identity_service import normalize_email
from taskboard.utils.pagination import PageRequest, get_total_count
from taskboard.utils.principal import Principal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TenantStats:
    total_users: int
    total_projects: int
    total_tasks: int


@dataclass(frozen=True)
class TenantListing:
    tenant: Tenant
    total_users: int
    total_projects: int


async def _subdomain_taken(subdomain: str, db: AsyncSession, lock: bool = False) -> bool:
    query = select(Tenant.id).where(Tenant.subdomain == subdomain)
    if lock:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.first() is not None


async def _registration_lost_race(subdomain: str, db: AsyncSession) -> bool:
    """After a failed registration, report whether a concurrent one has since claimed the subdomain."""
    try:
        return await _subdomain_taken(subdomain, db)
    except SQLAlchemyError:
        return False


async def register_tenant(
    name: str,
    subdomain: str,
    admin_email: str,
    admin_password: str,
    admin_full_name: str,
    db: AsyncSession,
    audit: AuditSink,
    source_ip: str | None = None,
) -> tuple[Tenant, User]:
    """
    Create a tenant and its first tenant_admin in one transaction.

    Subdomain uniqueness is checked up front, re-checked inside the
    transaction, and finally guaranteed by the unique constraint: of two
    concurrent registrations for one subdomain exactly one commits.
    """
    subdomain = subdomain.strip().lower()

    if await _subdomain_taken(subdomain, db):
        raise DuplicateSubdomainError()

    try:
        if await _subdomain_taken(subdomain, db, lock=True):
            raise DuplicateSubdomainError()

        tenant = Tenant(
            name=name,
            subdomain=subdomain,
            status=TenantStatus.active,
            subscription_plan=SubscriptionPlan(settings.default_subscription_plan),
            max_users=settings.default_max_users,
            max_projects=settings.default_max_projects,
        )
        db.add(tenant)
        await db.flush()

        admin = User(
            tenant_id=tenant.id,
            email=normalize_email(admin_email),
            password_hash=hash_password(admin_password),
            full_name=admin_full_name,
            role=Role.tenant_admin,
            is_active=True,
        )
        db.add(admin)
        await db.commit()
    except DuplicateSubdomainError:
        await db.rollback()
        raise
    except IntegrityError as e:
        await db.rollback()
        logger.info(f"Registration for subdomain {subdomain} lost a uniqueness race: {e.orig}")
        raise DuplicateSubdomainError() from e
    except SQLAlchemyError as e:
        await db.rollback()
        if await _registration_lost_race(subdomain, db):
            logger.info(f"Registration for subdomain {subdomain} lost a lock race: {str(e)}")
            raise DuplicateSubdomainError() from e
        logger.error(f"Tenant registration failed for subdomain {subdomain}: {str(e)}")
        raise DatabaseError(operation="register_tenant") from e

    audit.record(tenant.id, admin.id, AuditAction.REGISTER_TENANT, "tenant", tenant.id, source_ip)
    logger.info(f"Tenant registered: id={tenant.id} subdomain={tenant.subdomain}")
    return tenant, admin


async def get_tenant_stats(tenant_id: str, db: AsyncSession) -> TenantStats:
    return TenantStats(
        total_users=await get_total_count(db, User, [User.tenant_id == tenant_id]),
        total_projects=await get_total_count(db, Project, [Project.tenant_id == tenant_id]),
        total_tasks=await get_total_count(db, Task, [Task.tenant_id == tenant_id]),
    )


async def get_tenant_details(tenant_id: str, principal: Principal, db: AsyncSession) -> tuple[Tenant, TenantStats]:
    """Return a tenant and its usage; members may only read their own tenant."""
    enforce(principal, Action.TENANT_READ, Target(kind=EntityKind.tenant, tenant_id=tenant_id, resource_id=tenant_id))
    tenant = await ResourceHierarchy(db).get_tenant(tenant_id)
    return tenant, await get_tenant_stats(tenant.id, db)


async def update_tenant(
    tenant_id: str,
    updates: dict,
    principal: Principal,
    db: AsyncSession,
    audit: AuditSink,
    source_ip: str | None = None,
) -> Tenant:
    """
    Apply a partial update to a Tenant.

    tenant_admin may only rename its own tenant; status, plan and quota
    changes are reserved for super_admin.
    """
    if not updates:
        raise ValidationError("No fields provided to update")

    enforce(
        principal,
        Action.TENANT_UPDATE,
        Target(kind=EntityKind.tenant, tenant_id=tenant_id, resource_id=tenant_id, fields=frozenset(updates)),
    )
    tenant = await ResourceHierarchy(db).get_tenant(tenant_id)

    for field, value in updates.items():
        setattr(tenant, field, value)
    await db.commit()
    await db.refresh(tenant)

    audit.record(tenant.id, principal.user_id, AuditAction.UPDATE_TENANT, "tenant", tenant.id, source_ip)
    logger.info(f"Tenant updated: id={tenant.id} fields={sorted(updates)}")
    return tenant


async def list_tenants(
    principal: Principal,
    db: AsyncSession,
    page: PageRequest,
    status: TenantStatus | None = None,
    subscription_plan: SubscriptionPlan | None = None,
) -> tuple[list[TenantListing], int]:
    """Return (tenants with user/project counts, total). Non-super principals see only their own tenant."""
    scope = enforce(principal, Action.TENANT_LIST, Target(kind=EntityKind.tenant))

    filters = []
    if scope.tenant_id is not None:
        filters.append(Tenant.id == scope.tenant_id)
    if status is not None:
        filters.append(Tenant.status == status)
    if subscription_plan is not None:
        filters.append(Tenant.subscription_plan == subscription_plan)

    total = await get_total_count(db, Tenant, filters)

    user_count = select(func.count(User.id)).where(User.tenant_id == Tenant.id).correlate(Tenant).scalar_subquery()
    project_count = (
        select(func.count(Project.id)).where(Project.tenant_id == Tenant.id).correlate(Tenant).scalar_subquery()
    )
    result = await db.execute(
        select(Tenant, user_count, project_count)
        .where(*filters)
        .order_by(Tenant.created_at.desc(), Tenant.id)
        .offset(page.offset)
        .limit(page.limit)
    )
    listings = [
        TenantListing(tenant=tenant, total_users=users or 0, total_projects=projects or 0)
        for tenant, users, projects in result.all()
    ]
    return listings, total
