"""
User Service

Tenant membership management. Creation goes through the authorization
engine and then the Quota Enforcer; updates and deletes resolve the target
user first so a foreign user id is indistinguishable from a missing one.
"""

import logging

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.auth import hash_password
from taskboard.constants.audit import AuditAction
from taskboard.constants.roles import TENANT_ROLES, Role
from taskboard.exceptions import DuplicateResourceError, ValidationError
from taskboard.models.project import Project
from taskboard.models.task import Task
from taskboard.models.user import User
from taskboard.permissions_config.permissions import Action, EntityKind
from taskboard.services.audit_service import AuditSink
from taskboard.services.authorization_service import Target, enforce
from taskboard.services.hierarchy_service import ResourceHierarchy
from taskboard.services.identity_service import normalize_email
from taskboard.services.quota_service import QuotaEnforcer, ResourceKind
from taskboard.utils.pagination import PageRequest, get_total_count
from taskboard.utils.principal import Principal

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def _duplicate_email() -> DuplicateResourceError:
    return DuplicateResourceError("User", "email", message="Email already exists in this tenant")


async def create_user(
    tenant_id: str,
    email: str,
    password: str,
    full_name: str,
    principal: Principal,
    db: AsyncSession,
    audit: AuditSink,
    role: Role = Role.user,
    source_ip: str | None = None,
) -> User:
    """Add a user to a tenant (tenant_admin of that tenant, or super_admin)."""
    enforce(principal, Action.USER_CREATE, Target(kind=EntityKind.user, tenant_id=tenant_id))

    role = Role(role)
    if role not in TENANT_ROLES:
        raise ValidationError("Role must be tenant_admin or user", field="role")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field="password")

    await ResourceHierarchy(db).get_tenant(tenant_id)
    email = normalize_email(email)

    existing = await db.execute(select(User.id).where(User.tenant_id == tenant_id, User.email == email))
    if existing.first() is not None:
        raise _duplicate_email()

    await QuotaEnforcer(db).enforce_quota(tenant_id, ResourceKind.user)

    user = User(
        tenant_id=tenant_id,
        email=email,
        password_hash=hash_password(password),
        full_name=full_name,
        role=role,
        is_active=True,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise _duplicate_email() from e
    await db.refresh(user)

    audit.record(tenant_id, principal.user_id, AuditAction.CREATE_USER, "user", user.id, source_ip)
    logger.info(f"User created: id={user.id} tenant={tenant_id} role={role.value}")
    return user


async def list_users(
    tenant_id: str,
    principal: Principal,
    db: AsyncSession,
    page: PageRequest,
    search: str | None = None,
    role: Role | None = None,
) -> tuple[list[User], int]:
    """Return (users, total) for one tenant, newest first."""
    scope = enforce(
        principal,
        Action.USER_LIST,
        Target(kind=EntityKind.user, tenant_id=tenant_id, requested_tenant_id=tenant_id),
    )

    filters = [User.tenant_id == scope.tenant_id]
    if search:
        pattern = f"%{search.strip().lower()}%"
        filters.append(or_(func.lower(User.email).like(pattern), func.lower(User.full_name).like(pattern)))
    if role is not None:
        filters.append(User.role == role)

    total = await get_total_count(db, User, filters)
    result = await db.execute(
        select(User).where(*filters).order_by(User.created_at.desc(), User.id).offset(page.offset).limit(page.limit)
    )
    return list(result.scalars().all()), total


async def update_user(
    user_id: str,
    updates: dict,
    principal: Principal,
    db: AsyncSession,
    audit: AuditSink,
    source_ip: str | None = None,
) -> User:
    """
    Apply a partial update to a user.

    Self-service is limited to full_name; role and is_active changes need a
    tenant_admin of the same tenant.
    """
    if not updates:
        raise ValidationError("No fields provided to update")
    if "role" in updates and Role(updates["role"]) not in TENANT_ROLES:
        raise ValidationError("Role must be tenant_admin or user", field="role")

    user = await ResourceHierarchy(db).get_user(user_id)
    enforce(
        principal,
        Action.USER_UPDATE,
        Target(kind=EntityKind.user, tenant_id=user.tenant_id, resource_id=user.id, fields=frozenset(updates)),
        conceal_existence=True,
    )
    if "role" in updates and user.tenant_id is None:
        raise ValidationError("Platform accounts cannot be given a tenant role", field="role")

    for field, value in updates.items():
        setattr(user, field, value)
    await db.commit()
    await db.refresh(user)

    audit.record(user.tenant_id, principal.user_id, AuditAction.UPDATE_USER, "user", user.id, source_ip)
    logger.info(f"User updated: id={user.id} fields={sorted(updates)}")
    return user


async def delete_user(
    user_id: str,
    principal: Principal,
    db: AsyncSession,
    audit: AuditSink,
    source_ip: str | None = None,
) -> None:
    """Delete a user; their task assignments and creator references are cleared."""
    user = await ResourceHierarchy(db).get_user(user_id)
    enforce(
        principal,
        Action.USER_DELETE,
        Target(kind=EntityKind.user, tenant_id=user.tenant_id, resource_id=user.id),
        conceal_existence=True,
    )

    tenant_id = user.tenant_id
    await db.execute(update(Task).where(Task.assigned_to == user.id).values(assigned_to=None))
    await db.execute(update(Task).where(Task.created_by == user.id).values(created_by=None))
    await db.execute(update(Project).where(Project.created_by == user.id).values(created_by=None))
    await db.delete(user)
    await db.commit()

    audit.record(tenant_id, principal.user_id, AuditAction.DELETE_USER, "user", user_id, source_ip)
    logger.info(f"User deleted: id={user_id} tenant={tenant_id}")
