import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.auth import SessionIssuer, get_current_principal, get_session_issuer
from taskboard.constants.audit import AuditAction
from taskboard.database import get_db
from taskboard.middleware.logging import get_client_ip
from taskboard.schemas.auth import (
    LoginRequest,
    MeResponse,
    PrincipalUser,
    RegistrationResponse,
    TenantRegistration,
    TokenResponse,
)
from taskboard.schemas.common import MessageResponse
from taskboard.schemas.tenant import TenantSummary
from taskboard.services.audit_service import AuditSink, get_audit_sink
from taskboard.services.hierarchy_service import ResourceHierarchy
from taskboard.services.identity_service import IdentityResolver
from taskboard.services.tenant_service import register_tenant
from taskboard.utils.principal import Principal

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.post("/register-tenant", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
async def register_tenant_route(
    payload: TenantRegistration,
    request: Request,
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
):
    """Create a tenant and its first tenant_admin atomically."""
    tenant, admin = await register_tenant(
        name=payload.tenant_name,
        subdomain=payload.subdomain,
        admin_email=payload.admin_email,
        admin_password=payload.admin_password,
        admin_full_name=payload.admin_full_name,
        db=db,
        audit=audit,
        source_ip=get_client_ip(request),
    )
    return RegistrationResponse(
        tenant_id=tenant.id,
        subdomain=tenant.subdomain,
        admin_user=PrincipalUser.model_validate(admin),
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    issuer: SessionIssuer = Depends(get_session_issuer),
    audit: AuditSink = Depends(get_audit_sink),
):
    """
    Exchange credentials for a session token.

    The tenant handle comes from the body, else the X-Tenant-Slug header or
    the request subdomain. Without one, only a super_admin can log in.
    """
    handle = payload.tenant_subdomain or getattr(request.state, "tenant_handle", None)
    result = await IdentityResolver(db, issuer, audit).login(
        email=payload.email,
        secret=payload.password,
        tenant_handle=handle,
        source_ip=get_client_ip(request),
    )
    return TokenResponse(
        token=result.session.token,
        expires_in=result.session.expires_in,
        expires_at=result.session.expires_at,
        user=PrincipalUser.model_validate(result.user),
    )


@router.get("/me", response_model=MeResponse)
async def read_current_principal(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    hierarchy = ResourceHierarchy(db)
    user = await hierarchy.get_user(principal.user_id)
    tenant = await hierarchy.get_tenant(principal.tenant_id) if principal.tenant_id else None
    return MeResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=user.role,
        tenant_id=user.tenant_id,
        is_active=user.is_active,
        tenant=TenantSummary.model_validate(tenant) if tenant else None,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    principal: Principal = Depends(get_current_principal),
    audit: AuditSink = Depends(get_audit_sink),
):
    """Sessions are stateless; the client discards its token."""
    audit.record(
        principal.tenant_id, principal.user_id, AuditAction.LOGOUT, "user", principal.user_id, get_client_ip(request)
    )
    return MessageResponse(message="Logged out successfully")
