from datetime import datetime

from pydantic import Field, model_validator

from taskboard.models.tenant import SubscriptionPlan, TenantStatus
from taskboard.schemas.common import APIModel, reject_nulls
from taskboard.utils.pagination import PaginationMeta


class TenantSummary(APIModel):
    id: str
    name: str
    subdomain: str
    status: TenantStatus
    subscription_plan: SubscriptionPlan
    max_users: int
    max_projects: int


class TenantResponse(TenantSummary):
    created_at: datetime
    updated_at: datetime


class TenantStatsResponse(APIModel):
    total_users: int
    total_projects: int
    total_tasks: int


class TenantDetailsResponse(TenantResponse):
    stats: TenantStatsResponse


class TenantUpdate(APIModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    status: TenantStatus | None = None
    subscription_plan: SubscriptionPlan | None = None
    max_users: int | None = Field(None, ge=1)
    max_projects: int | None = Field(None, ge=1)

    @model_validator(mode="after")
    def no_explicit_nulls(self):
        reject_nulls(self.model_dump(exclude_unset=True), tuple(type(self).model_fields))
        return self


class TenantListItem(TenantResponse):
    total_users: int
    total_projects: int


class TenantListResponse(APIModel):
    tenants: list[TenantListItem]
    pagination: PaginationMeta
