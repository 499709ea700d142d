from datetime import datetime

from pydantic import Field, model_validator

from taskboard.models.project import ProjectStatus
from taskboard.schemas.common import APIModel, reject_nulls
from taskboard.utils.pagination import PaginationMeta


class ProjectCreate(APIModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    status: ProjectStatus = ProjectStatus.active
    # Only honoured for super_admin
    tenant_id: str | None = None


class ProjectUpdate(APIModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    status: ProjectStatus | None = None

    @model_validator(mode="after")
    def no_explicit_nulls(self):
        reject_nulls(self.model_dump(exclude_unset=True), ("name", "status"))
        return self


class ProjectResponse(APIModel):
    id: str
    tenant_id: str
    name: str
    description: str | None
    status: ProjectStatus
    created_by: str | None
    created_at: datetime
    updated_at: datetime


class CreatorSummary(APIModel):
    id: str
    full_name: str


class ProjectListItem(APIModel):
    id: str
    tenant_id: str
    tenant_name: str
    name: str
    description: str | None
    status: ProjectStatus
    created_by: CreatorSummary | None
    task_count: int
    created_at: datetime


class ProjectListResponse(APIModel):
    projects: list[ProjectListItem]
    pagination: PaginationMeta
