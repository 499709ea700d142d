"""
Identity Resolver

Resolves `(email, secret, tenant_handle?)` to exactly one principal.

Every failure surfaces as an AuthenticationError subclass that renders the
same public message; the subclass only tells the server log which check
failed. The secret is always verified, against a dummy hash when no
candidate was found, so the miss and mismatch paths cost the same.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.auth import IssuedSession, SessionIssuer, get_dummy_hash, verify_password
from taskboard.constants.audit import AuditAction
from taskboard.constants.roles import Role
from taskboard.exceptions import (
    AuthenticationError,
    InvalidCredentialsError,
    TenantInactiveError,
    TenantNotFoundError,
    TenantRequiredError,
)
from taskboard.models.tenant import Tenant, TenantStatus
from taskboard.models.user import User
from taskboard.services.audit_service import AuditSink
from taskboard.utils.principal import Principal, principal_for_user

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def normalize_handle(handle: str | None) -> str | None:
    if handle is None:
        return None
    handle = handle.strip().lower()
    return handle or None


@dataclass(frozen=True)
class LoginResult:
    user: User
    tenant: Tenant | None
    principal: Principal
    session: IssuedSession


class IdentityResolver:
    def __init__(self, db: AsyncSession, issuer: SessionIssuer, audit: AuditSink):
        self.db = db
        self.issuer = issuer
        self.audit = audit

    def _burn_dummy_verify(self, secret: str) -> None:
        verify_password(secret, get_dummy_hash())

    async def _find_super_admin(self, email: str) -> User | None:
        result = await self.db.execute(
            select(User).where(User.email == email, User.tenant_id.is_(None), User.role == Role.super_admin)
        )
        return result.scalars().first()

    async def _find_tenant(self, handle: str) -> Tenant | None:
        result = await self.db.execute(select(Tenant).where(Tenant.subdomain == handle))
        return result.scalars().first()

    async def _find_tenant_user(self, email: str, tenant_id: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email, User.tenant_id == tenant_id))
        return result.scalars().first()

    async def resolve(self, email: str, secret: str, tenant_handle: str | None = None) -> tuple[User, Tenant | None]:
        """Return the matching user (and tenant) or raise an AuthenticationError."""
        email = normalize_email(email)
        tenant_handle = normalize_handle(tenant_handle)
        tenant = None

        if tenant_handle is None:
            # Without a tenant handle only a platform super_admin can match
            user = await self._find_super_admin(email)
            if user is None:
                self._burn_dummy_verify(secret)
                raise TenantRequiredError()
        else:
            tenant = await self._find_tenant(tenant_handle)
            if tenant is None:
                self._burn_dummy_verify(secret)
                raise TenantNotFoundError()
            if tenant.status != TenantStatus.active:
                self._burn_dummy_verify(secret)
                raise TenantInactiveError()
            user = await self._find_tenant_user(email, tenant.id)
            if user is None:
                self._burn_dummy_verify(secret)
                raise InvalidCredentialsError()

        if not verify_password(secret, user.password_hash):
            raise InvalidCredentialsError()
        if not user.is_active:
            raise InvalidCredentialsError(reason="user inactive")
        return user, tenant

    async def login(
        self,
        email: str,
        secret: str,
        tenant_handle: str | None = None,
        source_ip: str | None = None,
    ) -> LoginResult:
        try:
            user, tenant = await self.resolve(email, secret, tenant_handle)
        except AuthenticationError as e:
            logger.warning(f"Login failed for handle={tenant_handle!r}: {e.reason}")
            raise

        principal = principal_for_user(user)
        session = self.issuer.mint(principal)
        self.audit.record(principal.tenant_id, principal.user_id, AuditAction.LOGIN, "user", principal.user_id, source_ip)
        logger.info(f"User {user.id} logged in (role={principal.role.value}, tenant={principal.tenant_id})")
        return LoginResult(user=user, tenant=tenant, principal=principal, session=session)
