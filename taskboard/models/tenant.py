"""
Tenant model.

Each Tenant represents an isolated organisation (customer account) and is
the source of truth for its subscription quotas. Users and Projects carry
a tenant_id FK; Tasks carry a denormalized copy of their project's tenant_id.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, Index, Integer, String, UniqueConstraint

from taskboard.database import Base


def generate_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TenantStatus(str, enum.Enum):
    active = "active"
    suspended = "suspended"
    deleted = "deleted"


class SubscriptionPlan(str, enum.Enum):
    free = "free"
    pro = "pro"
    enterprise = "enterprise"


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(200), nullable=False)
    subdomain = Column(String(100), nullable=False)  # routing handle, e.g. "acme"
    status = Column(Enum(TenantStatus, native_enum=False, length=20), nullable=False, default=TenantStatus.active)
    subscription_plan = Column(
        Enum(SubscriptionPlan, native_enum=False, length=20), nullable=False, default=SubscriptionPlan.free
    )
    max_users = Column(Integer, nullable=False, default=5)
    max_projects = Column(Integer, nullable=False, default=3)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("subdomain", name="uq_tenants_subdomain"),
        Index("idx_tenant_subdomain", "subdomain"),
        Index("idx_tenant_status", "status"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == TenantStatus.active
