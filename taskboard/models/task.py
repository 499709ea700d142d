import enum

from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Index, String, Text

from taskboard.database import Base
from taskboard.models.tenant import generate_id, utcnow


class TaskStatus(str, enum.Enum):
    todo = "todo"
    in_progress = "in_progress"
    completed = "completed"


class TaskPriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=generate_id)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    # Denormalized copy of the project's tenant_id; always written from the project row
    tenant_id = Column(String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(Enum(TaskStatus, native_enum=False, length=20), nullable=False, default=TaskStatus.todo)
    priority = Column(Enum(TaskPriority, native_enum=False, length=20), nullable=False, default=TaskPriority.medium)
    assigned_to = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    due_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_task_project", "project_id"),
        Index("idx_task_tenant_project", "tenant_id", "project_id"),
        Index("idx_task_assignee", "assigned_to"),
    )
