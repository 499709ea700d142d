"""Constants package for Taskboard."""

from .audit import AuditAction
from .roles import DEFAULT_ROLE, TENANT_ROLES, Role, is_tenant_role

__all__ = [
    # Role constants
    "Role",
    "DEFAULT_ROLE",
    "TENANT_ROLES",
    "is_tenant_role",
    # Audit constants
    "AuditAction",
]
