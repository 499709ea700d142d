import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, String, Text

from taskboard.database import Base
from taskboard.models.tenant import generate_id, utcnow


class ProjectStatus(str, enum.Enum):
    active = "active"
    completed = "completed"
    archived = "archived"


class Project(Base):
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=generate_id)
    # Immutable after creation
    tenant_id = Column(String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(Enum(ProjectStatus, native_enum=False, length=20), nullable=False, default=ProjectStatus.active)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_project_tenant", "tenant_id"),
        Index("idx_project_tenant_status", "tenant_id", "status"),
    )
