from datetime import date, datetime

from pydantic import Field, model_validator

from taskboard.models.task import TaskPriority, TaskStatus
from taskboard.schemas.common import APIModel, reject_nulls
from taskboard.utils.pagination import PaginationMeta


class TaskCreate(APIModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    priority: TaskPriority = TaskPriority.medium
    assigned_to: str | None = None
    due_date: date | None = None


class TaskUpdate(APIModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assigned_to: str | None = None
    due_date: date | None = None

    @model_validator(mode="after")
    def no_explicit_nulls(self):
        reject_nulls(self.model_dump(exclude_unset=True), ("title", "status", "priority"))
        return self


class TaskStatusUpdate(APIModel):
    status: TaskStatus


class TaskResponse(APIModel):
    id: str
    project_id: str
    tenant_id: str
    title: str
    description: str | None
    status: TaskStatus
    priority: TaskPriority
    assigned_to: str | None
    created_by: str | None
    due_date: date | None
    created_at: datetime
    updated_at: datetime


class AssigneeSummary(APIModel):
    id: str
    full_name: str


class TaskListItem(APIModel):
    id: str
    title: str
    description: str | None
    status: TaskStatus
    priority: TaskPriority
    due_date: date | None
    assigned_to: AssigneeSummary | None
    created_at: datetime


class TaskListResponse(APIModel):
    tasks: list[TaskListItem]
    pagination: PaginationMeta
