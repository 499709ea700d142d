from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.auth import get_current_principal
from taskboard.database import get_db
from taskboard.middleware.logging import get_client_ip
from taskboard.schemas.common import MessageResponse
from taskboard.schemas.user import UserResponse, UserUpdate
from taskboard.services import user_service
from taskboard.services.audit_service import AuditSink, get_audit_sink
from taskboard.utils.principal import Principal

router = APIRouter(tags=["Users"])


@router.put("/{user_id}", response_model=UserResponse)
async def update_user_route(
    user_id: str,
    payload: UserUpdate,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
):
    """Users may change their own full name; tenant admins may change role and active flag."""
    return await user_service.update_user(
        user_id,
        payload.model_dump(exclude_unset=True),
        principal,
        db,
        audit,
        source_ip=get_client_ip(request),
    )


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user_route(
    user_id: str,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
):
    await user_service.delete_user(user_id, principal, db, audit, source_ip=get_client_ip(request))
    return MessageResponse(message="User deleted successfully")
