"""
Task Service

A task's tenant is always copied from its parent project, never taken from
input. Assignees must resolve within the project's tenant, which is what
lets a super_admin (who has no tenant) assign work inside any tenant.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from taskboard.constants.audit import AuditAction
from taskboard.exceptions import ResourceNotFoundError, ValidationError
from taskboard.models.project import Project
from taskboard.models.task import Task, TaskPriority, TaskStatus
from taskboard.models.user import User
from taskboard.permissions_config.permissions import Action, EntityKind
from taskboard.services.audit_service import AuditSink
from taskboard.services.authorization_service import Target, enforce
from taskboard.services.hierarchy_service import ResourceHierarchy
from taskboard.utils.pagination import PageRequest, get_total_count
from taskboard.utils.principal import Principal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskListing:
    task: Task
    assignee_name: str | None


async def _task_target(
    hierarchy: ResourceHierarchy,
    project: Project,
    task: Task | None = None,
    fields: frozenset[str] = frozenset(),
    assignee_id: str | None = None,
) -> Target:
    return Target(
        kind=EntityKind.task,
        tenant_id=project.tenant_id,
        project_id=project.id,
        resource_id=task.id if task else None,
        created_by=task.created_by if task else None,
        fields=fields,
        assignee_id=assignee_id,
        assignee_tenant_id=await hierarchy.resolve_assignee_tenant(assignee_id),
    )


async def _load_project_task(hierarchy: ResourceHierarchy, project_id: str, task_id: str) -> tuple[Project, Task]:
    task = await hierarchy.get_task(task_id)
    if task.project_id != project_id:
        raise ResourceNotFoundError("Task", task_id)
    project = await hierarchy.get_project(project_id)
    return project, task


async def create_task(
    project_id: str,
    title: str,
    principal: Principal,
    db: AsyncSession,
    audit: AuditSink,
    description: str | None = None,
    priority: TaskPriority = TaskPriority.medium,
    assigned_to: str | None = None,
    due_date=None,
    source_ip: str | None = None,
) -> Task:
    hierarchy = ResourceHierarchy(db)
    project = await hierarchy.get_project(project_id)
    enforce(
        principal,
        Action.TASK_CREATE,
        await _task_target(hierarchy, project, assignee_id=assigned_to),
        conceal_existence=True,
    )

    task = Task(
        project_id=project.id,
        tenant_id=project.tenant_id,
        title=title,
        description=description,
        status=TaskStatus.todo,
        priority=priority or TaskPriority.medium,
        assigned_to=assigned_to,
        created_by=principal.user_id,
        due_date=due_date,
    )
    db.add(task)
    await db.commit()
    await db.refresh(task)

    audit.record(task.tenant_id, principal.user_id, AuditAction.CREATE_TASK, "task", task.id, source_ip)
    logger.info(f"Task created: id={task.id} project={project.id} tenant={task.tenant_id}")
    return task


async def list_tasks(
    project_id: str,
    principal: Principal,
    db: AsyncSession,
    page: PageRequest,
    status: TaskStatus | None = None,
    priority: TaskPriority | None = None,
) -> tuple[list[TaskListing], int]:
    """Return (tasks with assignee names, total) for one project, newest first."""
    hierarchy = ResourceHierarchy(db)
    project = await hierarchy.get_project(project_id)
    scope = enforce(
        principal,
        Action.TASK_LIST,
        Target(kind=EntityKind.task, tenant_id=project.tenant_id, project_id=project.id),
        conceal_existence=True,
    )

    filters = [Task.project_id == project.id]
    if scope.tenant_id is not None:
        filters.append(Task.tenant_id == scope.tenant_id)
    if status is not None:
        filters.append(Task.status == status)
    if priority is not None:
        filters.append(Task.priority == priority)

    total = await get_total_count(db, Task, filters)

    assignee = aliased(User)
    result = await db.execute(
        select(Task, assignee.full_name)
        .outerjoin(assignee, assignee.id == Task.assigned_to)
        .where(*filters)
        .order_by(Task.created_at.desc(), Task.id)
        .offset(page.offset)
        .limit(page.limit)
    )
    return [TaskListing(task=task, assignee_name=name) for task, name in result.all()], total


async def update_task_status(
    task_id: str,
    status: TaskStatus,
    principal: Principal,
    db: AsyncSession,
    audit: AuditSink,
    source_ip: str | None = None,
) -> Task:
    """Quick status change; open to any member of the task's tenant."""
    status = TaskStatus(status)
    hierarchy = ResourceHierarchy(db)
    task = await hierarchy.get_task(task_id)
    project = await hierarchy.get_project(task.project_id)
    enforce(
        principal,
        Action.TASK_UPDATE_STATUS,
        await _task_target(hierarchy, project, task, fields=frozenset({"status"})),
        conceal_existence=True,
    )

    task.status = status
    await db.commit()
    await db.refresh(task)

    audit.record(task.tenant_id, principal.user_id, AuditAction.UPDATE_TASK_STATUS, "task", task.id, source_ip)
    logger.info(f"Task status updated: id={task.id} status={status.value}")
    return task


async def update_task(
    project_id: str,
    task_id: str,
    updates: dict,
    principal: Principal,
    db: AsyncSession,
    audit: AuditSink,
    source_ip: str | None = None,
) -> Task:
    if not updates:
        raise ValidationError("No fields provided to update")

    hierarchy = ResourceHierarchy(db)
    project, task = await _load_project_task(hierarchy, project_id, task_id)
    enforce(
        principal,
        Action.TASK_UPDATE,
        await _task_target(hierarchy, project, task, frozenset(updates), assignee_id=updates.get("assigned_to")),
        conceal_existence=True,
    )

    for field, value in updates.items():
        setattr(task, field, value)
    await db.commit()
    await db.refresh(task)

    audit.record(task.tenant_id, principal.user_id, AuditAction.UPDATE_TASK, "task", task.id, source_ip)
    logger.info(f"Task updated: id={task.id} fields={sorted(updates)}")
    return task


async def delete_task(
    project_id: str,
    task_id: str,
    principal: Principal,
    db: AsyncSession,
    audit: AuditSink,
    source_ip: str | None = None,
) -> None:
    hierarchy = ResourceHierarchy(db)
    project, task = await _load_project_task(hierarchy, project_id, task_id)
    enforce(principal, Action.TASK_DELETE, await _task_target(hierarchy, project, task), conceal_existence=True)

    tenant_id = task.tenant_id
    await db.delete(task)
    await db.commit()

    audit.record(tenant_id, principal.user_id, AuditAction.DELETE_TASK, "task", task_id, source_ip)
    logger.info(f"Task deleted: id={task_id} project={project_id}")
