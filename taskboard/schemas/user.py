from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, EmailStr, Field, model_validator

from taskboard.constants.roles import TENANT_ROLES, Role
from taskboard.schemas.common import APIModel, reject_nulls
from taskboard.utils.pagination import PaginationMeta


def tenant_role_only(role: Role) -> Role:
    if role not in TENANT_ROLES:
        raise ValueError("role must be tenant_admin or user")
    return role


TenantRole = Annotated[Role, AfterValidator(tenant_role_only)]


class UserCreate(APIModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    full_name: str = Field(..., min_length=1, max_length=200)
    role: TenantRole = Role.user


class UserUpdate(APIModel):
    full_name: str | None = Field(None, min_length=1, max_length=200)
    role: TenantRole | None = None
    is_active: bool | None = None

    @model_validator(mode="after")
    def no_explicit_nulls(self):
        reject_nulls(self.model_dump(exclude_unset=True), ("full_name", "role", "is_active"))
        return self


class UserResponse(APIModel):
    id: str
    tenant_id: str | None
    email: str
    full_name: str
    role: Role
    is_active: bool
    created_at: datetime


class UserListResponse(APIModel):
    users: list[UserResponse]
    pagination: PaginationMeta
