from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.auth import get_current_principal
from taskboard.database import get_db
from taskboard.middleware.logging import get_client_ip
from taskboard.schemas.task import TaskResponse, TaskStatusUpdate
from taskboard.services import task_service
from taskboard.services.audit_service import AuditSink, get_audit_sink
from taskboard.utils.principal import Principal

router = APIRouter(tags=["Tasks"])


@router.patch("/{task_id}/status", response_model=TaskResponse)
async def update_task_status_route(
    task_id: str,
    payload: TaskStatusUpdate,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
):
    """Move a task between todo, in_progress and completed."""
    return await task_service.update_task_status(
        task_id, payload.status, principal, db, audit, source_ip=get_client_ip(request)
    )
