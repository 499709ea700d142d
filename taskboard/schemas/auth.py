from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from taskboard.constants.roles import Role
from taskboard.schemas.common import APIModel
from taskboard.schemas.tenant import TenantSummary

SUBDOMAIN_PATTERN = r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$"


class TenantRegistration(APIModel):
    tenant_name: str = Field(..., min_length=1, max_length=200)
    subdomain: str = Field(..., min_length=1, max_length=63, pattern=SUBDOMAIN_PATTERN)
    admin_email: EmailStr
    admin_password: str = Field(..., min_length=8, max_length=128)
    admin_full_name: str = Field(..., min_length=1, max_length=200)

    @field_validator("subdomain", mode="before")
    @classmethod
    def normalize_subdomain(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class LoginRequest(APIModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    # Falls back to the X-Tenant-Slug header or the request subdomain
    tenant_subdomain: str | None = None


class PrincipalUser(APIModel):
    id: str
    email: str
    full_name: str
    role: Role
    tenant_id: str | None = None


class RegistrationResponse(APIModel):
    tenant_id: str
    subdomain: str
    admin_user: PrincipalUser


class TokenResponse(APIModel):
    token: str
    token_type: str = "bearer"
    expires_in: int
    expires_at: datetime
    user: PrincipalUser


class MeResponse(PrincipalUser):
    is_active: bool
    tenant: TenantSummary | None = None

