"""
Role Constants for Taskboard

The three roles are mutually exclusive. `super_admin` is a platform-level
capability that never belongs to a tenant; the other two are always bound
to exactly one tenant.
"""

from enum import Enum


class Role(str, Enum):
    """Enumeration of role names in the system."""

    super_admin = "super_admin"
    tenant_admin = "tenant_admin"
    user = "user"


# Roles that are always bound to exactly one tenant
TENANT_ROLES = frozenset({Role.tenant_admin, Role.user})

# Default role for users added to a tenant
DEFAULT_ROLE = Role.user


def is_tenant_role(role: Role | str) -> bool:
    """Return True if the role must carry a tenant reference."""
    return Role(role) in TENANT_ROLES
