"""
Tenant Routes

GET  /api/tenants                    -> list tenants (super_admin: all; others: own)
GET  /api/tenants/{tenant_id}        -> tenant details with usage stats
PUT  /api/tenants/{tenant_id}        -> update tenant
POST /api/tenants/{tenant_id}/users  -> add user to tenant
GET  /api/tenants/{tenant_id}/users  -> list tenant users
"""

import logging

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.auth import get_current_principal
from taskboard.constants.roles import Role
from taskboard.database import get_db
from taskboard.middleware.logging import get_client_ip
from taskboard.models.tenant import SubscriptionPlan, TenantStatus
from taskboard.schemas.tenant import (
    TenantDetailsResponse,
    TenantListItem,
    TenantListResponse,
    TenantResponse,
    TenantStatsResponse,
    TenantUpdate,
)
from taskboard.schemas.user import UserCreate, UserListResponse, UserResponse
from taskboard.services import tenant_service, user_service
from taskboard.services.audit_service import AuditSink, get_audit_sink
from taskboard.utils.pagination import MAX_PAGE_SIZE, page_request, pagination_meta
from taskboard.utils.principal import Principal

router = APIRouter(tags=["Tenants"])
logger = logging.getLogger(__name__)


@router.get("", response_model=TenantListResponse)
async def list_tenants_route(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    status_filter: TenantStatus | None = Query(None, alias="status"),
    subscription_plan: SubscriptionPlan | None = Query(None, alias="subscriptionPlan"),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    request = page_request(page, limit, default_limit=10)
    listings, total = await tenant_service.list_tenants(
        principal, db, request, status=status_filter, subscription_plan=subscription_plan
    )
    tenants = [
        TenantListItem(
            **TenantResponse.model_validate(item.tenant).model_dump(),
            total_users=item.total_users,
            total_projects=item.total_projects,
        )
        for item in listings
    ]
    return TenantListResponse(tenants=tenants, pagination=pagination_meta(request, total))


@router.get("/{tenant_id}", response_model=TenantDetailsResponse)
async def get_tenant_route(
    tenant_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    tenant, stats = await tenant_service.get_tenant_details(tenant_id, principal, db)
    return TenantDetailsResponse(
        **TenantResponse.model_validate(tenant).model_dump(),
        stats=TenantStatsResponse(
            total_users=stats.total_users,
            total_projects=stats.total_projects,
            total_tasks=stats.total_tasks,
        ),
    )


@router.put("/{tenant_id}", response_model=TenantResponse)
async def update_tenant_route(
    tenant_id: str,
    payload: TenantUpdate,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
):
    """tenant_admin may rename its tenant; status, plan and quotas are super_admin only."""
    tenant = await tenant_service.update_tenant(
        tenant_id,
        payload.model_dump(exclude_unset=True),
        principal,
        db,
        audit,
        source_ip=get_client_ip(request),
    )
    return tenant


@router.post("/{tenant_id}/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def add_user_route(
    tenant_id: str,
    payload: UserCreate,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
):
    return await user_service.create_user(
        tenant_id,
        email=payload.email,
        password=payload.password,
        full_name=payload.full_name,
        principal=principal,
        db=db,
        audit=audit,
        role=payload.role,
        source_ip=get_client_ip(request),
    )


@router.get("/{tenant_id}/users", response_model=UserListResponse)
async def list_users_route(
    tenant_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=MAX_PAGE_SIZE),
    search: str | None = Query(None, max_length=200),
    role: Role | None = Query(None),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    request = page_request(page, limit, default_limit=50)
    users, total = await user_service.list_users(tenant_id, principal, db, request, search=search, role=role)
    return UserListResponse(
        users=[UserResponse.model_validate(user) for user in users],
        pagination=pagination_meta(request, total),
    )
