"""
Quota Enforcer

Compares a tenant's current User/Project counts against the limits on its
Tenant row before a create. The tenant row is the quota source of truth.

With `lock_tenant_row` the tenant row is read with SELECT ... FOR UPDATE,
which serializes concurrent creators of the same tenant on PostgreSQL
until the creating transaction commits. SQLite does not render FOR UPDATE,
so there the check stays best-effort and may overshoot by the width of
the race window.
"""

import logging
from enum import Enum

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.config import settings
from taskboard.exceptions import QuotaExceededError, ResourceNotFoundError
from taskboard.models.project import Project
from taskboard.models.tenant import Tenant
from taskboard.models.user import User
from taskboard.services.authorization_service import Allow, Decision, Deny, DenyReason, Scope
from taskboard.utils.pagination import get_total_count

logger = logging.getLogger(__name__)


class ResourceKind(str, Enum):
    user = "user"
    project = "project"


class QuotaEnforcer:
    def __init__(self, db: AsyncSession, lock_tenant_row: bool | None = None):
        self.db = db
        self.lock_tenant_row = settings.quota_lock_tenant_row if lock_tenant_row is None else lock_tenant_row

    async def _load_tenant(self, tenant_id: str) -> Tenant:
        query = select(Tenant).where(Tenant.id == tenant_id)
        if self.lock_tenant_row:
            query = query.with_for_update()
        result = await self.db.execute(query)
        tenant = result.scalars().first()
        if tenant is None:
            raise ResourceNotFoundError("Tenant", tenant_id)
        return tenant

    async def usage(self, tenant_id: str, kind: ResourceKind) -> int:
        model = User if kind == ResourceKind.user else Project
        return await get_total_count(self.db, model, [model.tenant_id == tenant_id])

    @staticmethod
    def limit_for(tenant: Tenant, kind: ResourceKind) -> int:
        return tenant.max_users if kind == ResourceKind.user else tenant.max_projects

    async def check_quota(self, tenant_id: str, kind: ResourceKind) -> Decision:
        """Allow when another `kind` fits under the tenant's limit (count >= limit denies)."""
        tenant = await self._load_tenant(tenant_id)
        limit = self.limit_for(tenant, kind)
        count = await self.usage(tenant_id, kind)
        if count >= limit:
            return Deny(
                reason=DenyReason.QUOTA_EXCEEDED,
                message=f"Subscription limit reached: {count}/{limit} {kind.value}s",
            )
        return Allow(Scope(tenant_id=tenant_id))

    async def enforce_quota(self, tenant_id: str, kind: ResourceKind) -> None:
        """Raise QuotaExceededError when the create would exceed the limit."""
        decision = await self.check_quota(tenant_id, kind)
        if isinstance(decision, Deny):
            tenant = await self.db.get(Tenant, tenant_id)
            limit = self.limit_for(tenant, kind)
            logger.warning(f"Quota exceeded for tenant {tenant_id}: {kind.value} limit {limit}")
            raise QuotaExceededError(kind.value, limit)
