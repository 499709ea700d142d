"""
Project Routes

POST   /api/projects                                   -> create project
GET    /api/projects                                   -> list projects
PUT    /api/projects/{project_id}                      -> update project
DELETE /api/projects/{project_id}                      -> delete project (and its tasks)
POST   /api/projects/{project_id}/tasks                -> create task
GET    /api/projects/{project_id}/tasks                -> list tasks
PUT    /api/projects/{project_id}/tasks/{task_id}      -> update task
DELETE /api/projects/{project_id}/tasks/{task_id}      -> delete task
"""

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.auth import get_current_principal
from taskboard.database import get_db
from taskboard.middleware.logging import get_client_ip
from taskboard.models.project import ProjectStatus
from taskboard.models.task import TaskPriority, TaskStatus
from taskboard.schemas.common import MessageResponse
from taskboard.schemas.project import (
    CreatorSummary,
    ProjectCreate,
    ProjectListItem,
    ProjectListResponse,
    ProjectResponse,
    ProjectUpdate,
)
from taskboard.schemas.task import (
    AssigneeSummary,
    TaskCreate,
    TaskListItem,
    TaskListResponse,
    TaskResponse,
    TaskUpdate,
)
from taskboard.services import project_service, task_service
from taskboard.services.audit_service import AuditSink, get_audit_sink
from taskboard.utils.pagination import MAX_PAGE_SIZE, page_request, pagination_meta
from taskboard.utils.principal import Principal

router = APIRouter(tags=["Projects"])


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project_route(
    payload: ProjectCreate,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
):
    """Create a project; super_admin must name the target tenant with tenantId."""
    return await project_service.create_project(
        payload.name,
        principal,
        db,
        audit,
        description=payload.description,
        status=payload.status,
        tenant_id=payload.tenant_id,
        source_ip=get_client_ip(request),
    )


@router.get("", response_model=ProjectListResponse)
async def list_projects_route(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
    status_filter: ProjectStatus | None = Query(None, alias="status"),
    search: str | None = Query(None, max_length=200),
    tenant_id: str | None = Query(None, alias="tenantId"),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    request = page_request(page, limit)
    listings, total = await project_service.list_projects(
        principal, db, request, status=status_filter, search=search, tenant_id=tenant_id
    )
    projects = [
        ProjectListItem(
            id=item.project.id,
            tenant_id=item.project.tenant_id,
            tenant_name=item.tenant_name,
            name=item.project.name,
            description=item.project.description,
            status=item.project.status,
            created_by=CreatorSummary(id=item.creator_id, full_name=item.creator_name) if item.creator_id else None,
            task_count=item.task_count,
            created_at=item.project.created_at,
        )
        for item in listings
    ]
    return ProjectListResponse(projects=projects, pagination=pagination_meta(request, total))


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project_route(
    project_id: str,
    payload: ProjectUpdate,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
):
    return await project_service.update_project(
        project_id,
        payload.model_dump(exclude_unset=True),
        principal,
        db,
        audit,
        source_ip=get_client_ip(request),
    )


@router.delete("/{project_id}", response_model=MessageResponse)
async def delete_project_route(
    project_id: str,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
):
    await project_service.delete_project(project_id, principal, db, audit, source_ip=get_client_ip(request))
    return MessageResponse(message="Project deleted successfully")


# ── Tasks within a project ─────────────────────────────────────────────────────


@router.post("/{project_id}/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task_route(
    project_id: str,
    payload: TaskCreate,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
):
    return await task_service.create_task(
        project_id,
        payload.title,
        principal,
        db,
        audit,
        description=payload.description,
        priority=payload.priority,
        assigned_to=payload.assigned_to,
        due_date=payload.due_date,
        source_ip=get_client_ip(request),
    )


@router.get("/{project_id}/tasks", response_model=TaskListResponse)
async def list_tasks_route(
    project_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
    status_filter: TaskStatus | None = Query(None, alias="status"),
    priority: TaskPriority | None = Query(None),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    request = page_request(page, limit)
    listings, total = await task_service.list_tasks(
        project_id, principal, db, request, status=status_filter, priority=priority
    )
    tasks = [
        TaskListItem(
            id=item.task.id,
            title=item.task.title,
            description=item.task.description,
            status=item.task.status,
            priority=item.task.priority,
            due_date=item.task.due_date,
            assigned_to=(
                AssigneeSummary(id=item.task.assigned_to, full_name=item.assignee_name)
                if item.task.assigned_to
                else None
            ),
            created_at=item.task.created_at,
        )
        for item in listings
    ]
    return TaskListResponse(tasks=tasks, pagination=pagination_meta(request, total))


@router.put("/{project_id}/tasks/{task_id}", response_model=TaskResponse)
async def update_task_route(
    project_id: str,
    task_id: str,
    payload: TaskUpdate,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
):
    return await task_service.update_task(
        project_id,
        task_id,
        payload.model_dump(exclude_unset=True),
        principal,
        db,
        audit,
        source_ip=get_client_ip(request),
    )


@router.delete("/{project_id}/tasks/{task_id}", response_model=MessageResponse)
async def delete_task_route(
    project_id: str,
    task_id: str,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
):
    await task_service.delete_task(project_id, task_id, principal, db, audit, source_ip=get_client_ip(request))
    return MessageResponse(message="Task deleted successfully")
