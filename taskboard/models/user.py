from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Enum, ForeignKey, Index, String, UniqueConstraint

from taskboard.constants.roles import Role
from taskboard.database import Base
from taskboard.models.tenant import generate_id, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    # NULL only for super_admin accounts
    tenant_id = Column(String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=True)
    email = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(200), nullable=False)
    role = Column(Enum(Role, native_enum=False, length=20), nullable=False, default=Role.user)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Email is unique within a tenant, not globally
    __table_args__ = (
        UniqueConstraint("tenant_id", "email", name="uq_users_tenant_email"),
        CheckConstraint(
            "(role = 'super_admin' AND tenant_id IS NULL) OR (role <> 'super_admin' AND tenant_id IS NOT NULL)",
            name="ck_users_role_tenant",
        ),
        Index("idx_user_tenant_role", "tenant_id", "role"),
        Index("idx_user_email", "email"),
    )
