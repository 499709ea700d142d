"""
Project Service

Projects are created inside one tenant (super_admin names the tenant
explicitly) under the tenant's max_projects quota. Updates and deletes
are limited to the tenant_admin or the project's creator.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from taskboard.constants.audit import AuditAction
from taskboard.exceptions import ValidationError
from taskboard.models.project import Project, ProjectStatus
from taskboard.models.task import Task
from taskboard.models.tenant import Tenant
from taskboard.models.user import User
from taskboard.permissions_config.permissions import Action, EntityKind
from taskboard.services.audit_service import AuditSink
from taskboard.services.authorization_service import Target, enforce
from taskboard.services.hierarchy_service import ResourceHierarchy
from taskboard.services.quota_service import QuotaEnforcer, ResourceKind
from taskboard.utils.pagination import PageRequest, get_total_count
from taskboard.utils.principal import Principal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectListing:
    project: Project
    tenant_name: str
    creator_id: str | None
    creator_name: str | None
    task_count: int


async def create_project(
    name: str,
    principal: Principal,
    db: AsyncSession,
    audit: AuditSink,
    description: str | None = None,
    status: ProjectStatus = ProjectStatus.active,
    tenant_id: str | None = None,
    source_ip: str | None = None,
) -> Project:
    """
    Create a project in the caller's tenant.

    `tenant_id` is only honoured (and required) for super_admin; other
    principals always create in their own tenant.
    """
    if principal.is_super_admin:
        if not tenant_id:
            raise ValidationError("tenantId is required when creating a project as super_admin", field="tenant_id")
        target_tenant_id = tenant_id
    else:
        target_tenant_id = principal.tenant_id

    enforce(principal, Action.PROJECT_CREATE, Target(kind=EntityKind.project, tenant_id=target_tenant_id))
    await ResourceHierarchy(db).get_tenant(target_tenant_id)
    await QuotaEnforcer(db).enforce_quota(target_tenant_id, ResourceKind.project)

    project = Project(
        tenant_id=target_tenant_id,
        name=name,
        description=description,
        status=status,
        created_by=principal.user_id,
    )
    db.add(project)
    await db.commit()
    await db.refresh(project)

    audit.record(target_tenant_id, principal.user_id, AuditAction.CREATE_PROJECT, "project", project.id, source_ip)
    logger.info(f"Project created: id={project.id} tenant={target_tenant_id}")
    return project


async def list_projects(
    principal: Principal,
    db: AsyncSession,
    page: PageRequest,
    status: ProjectStatus | None = None,
    search: str | None = None,
    tenant_id: str | None = None,
) -> tuple[list[ProjectListing], int]:
    """Return (projects, total); the tenant_id filter only applies to super_admin."""
    scope = enforce(
        principal,
        Action.PROJECT_LIST,
        Target(kind=EntityKind.project, requested_tenant_id=tenant_id),
    )

    filters = []
    if scope.tenant_id is not None:
        filters.append(Project.tenant_id == scope.tenant_id)
    if status is not None:
        filters.append(Project.status == status)
    if search:
        filters.append(func.lower(Project.name).like(f"%{search.strip().lower()}%"))

    total = await get_total_count(db, Project, filters)

    creator = aliased(User)
    task_count = select(func.count(Task.id)).where(Task.project_id == Project.id).correlate(Project).scalar_subquery()
    result = await db.execute(
        select(Project, Tenant.name, creator.id, creator.full_name, task_count)
        .join(Tenant, Tenant.id == Project.tenant_id)
        .outerjoin(creator, creator.id == Project.created_by)
        .where(*filters)
        .order_by(Project.created_at.desc(), Project.id)
        .offset(page.offset)
        .limit(page.limit)
    )
    listings = [
        ProjectListing(
            project=project,
            tenant_name=tenant_name,
            creator_id=creator_id,
            creator_name=creator_name,
            task_count=tasks or 0,
        )
        for project, tenant_name, creator_id, creator_name, tasks in result.all()
    ]
    return listings, total


def _mutation_target(project: Project, fields: frozenset[str] = frozenset()) -> Target:
    return Target(
        kind=EntityKind.project,
        tenant_id=project.tenant_id,
        resource_id=project.id,
        created_by=project.created_by,
        fields=fields,
    )


async def update_project(
    project_id: str,
    updates: dict,
    principal: Principal,
    db: AsyncSession,
    audit: AuditSink,
    source_ip: str | None = None,
) -> Project:
    if not updates:
        raise ValidationError("No fields provided to update")

    project = await ResourceHierarchy(db).get_project(project_id)
    enforce(principal, Action.PROJECT_UPDATE, _mutation_target(project, frozenset(updates)), conceal_existence=True)

    for field, value in updates.items():
        setattr(project, field, value)
    await db.commit()
    await db.refresh(project)

    audit.record(project.tenant_id, principal.user_id, AuditAction.UPDATE_PROJECT, "project", project.id, source_ip)
    logger.info(f"Project updated: id={project.id} fields={sorted(updates)}")
    return project


async def delete_project(
    project_id: str,
    principal: Principal,
    db: AsyncSession,
    audit: AuditSink,
    source_ip: str | None = None,
) -> None:
    """Delete a project together with all of its tasks."""
    project = await ResourceHierarchy(db).get_project(project_id)
    enforce(principal, Action.PROJECT_DELETE, _mutation_target(project), conceal_existence=True)

    tenant_id = project.tenant_id
    await db.execute(delete(Task).where(Task.project_id == project.id))
    await db.delete(project)
    await db.commit()

    audit.record(tenant_id, principal.user_id, AuditAction.DELETE_PROJECT, "project", project_id, source_ip)
    logger.info(f"Project deleted: id={project_id} tenant={tenant_id}")
