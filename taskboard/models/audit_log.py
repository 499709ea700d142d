from sqlalchemy import Column, DateTime, Index, String

from taskboard.database import Base
from taskboard.models.tenant import generate_id, utcnow


class AuditLog(Base):
    __tablename__ = "audit_logs"

    # No FKs: audit rows must outlive the users and entities they describe
    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(String(36), nullable=True)
    user_id = Column(String(36), nullable=True)
    action = Column(String(50), nullable=False)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(36), nullable=True)
    ip_address = Column(String(45), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_audit_tenant_created", "tenant_id", "created_at"),
        Index("idx_audit_user_action", "user_id", "action"),
    )
