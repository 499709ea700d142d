"""
Principal types

A principal is the resolved identity attached to an authenticated request.
super_admin is modelled as its own principal kind rather than as a User
whose tenant happens to be missing, so code that needs a tenant id can
only get one from a TenantPrincipal.
"""

from dataclasses import dataclass, field

from taskboard.constants.roles import TENANT_ROLES, Role


@dataclass(frozen=True)
class PlatformPrincipal:
    """Platform-wide super_admin; never bound to a tenant."""

    user_id: str
    role: Role = field(default=Role.super_admin, init=False)
    tenant_id: None = field(default=None, init=False)

    @property
    def is_super_admin(self) -> bool:
        return True


@dataclass(frozen=True)
class TenantPrincipal:
    """tenant_admin or user, bound to exactly one tenant."""

    user_id: str
    tenant_id: str
    role: Role

    def __post_init__(self):
        if self.role not in TENANT_ROLES:
            raise ValueError(f"Role {self.role!r} cannot be bound to a tenant")
        if not self.tenant_id:
            raise ValueError("Tenant principal requires a tenant_id")

    @property
    def is_super_admin(self) -> bool:
        return False

    @property
    def is_tenant_admin(self) -> bool:
        return self.role == Role.tenant_admin


Principal = PlatformPrincipal | TenantPrincipal


def principal_from_claims(user_id: str | None, tenant_id: str | None, role: str | None) -> Principal:
    """
    Build a principal from the `{user_id, tenant_id_or_none, role}` triple.

    Raises ValueError when the triple is inconsistent (unknown role,
    super_admin with a tenant, tenant role without one).
    """
    if not user_id or not role:
        raise ValueError("Principal claims require user_id and role")
    role_enum = Role(role)
    if role_enum == Role.super_admin:
        if tenant_id is not None:
            raise ValueError("super_admin cannot be bound to a tenant")
        return PlatformPrincipal(user_id=user_id)
    return TenantPrincipal(user_id=user_id, tenant_id=tenant_id, role=role_enum)


def principal_for_user(user) -> Principal:
    """Build the principal for a loaded User row."""
    return principal_from_claims(str(user.id), user.tenant_id, Role(user.role).value)
