"""
Authorization Engine

`authorize(principal, action, target)` decides every operation from one
ordered rule table (first match wins). It is a pure function of its
arguments: callers materialize the target's tenant, creator and assignee
from storage first (see hierarchy_service), then ask for a decision.

Rule order:
  1. super_admin
  2. cross-tenant
  3. listing scope
  4. tenant record
  5. user record
  6. project / task
  7. default deny
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from taskboard.constants.roles import Role
from taskboard.exceptions import AuthorizationError, ResourceNotFoundError
from taskboard.permissions_config.permissions import (
    ASSIGNEE_ACTIONS,
    CREATOR_OR_ADMIN_ACTIONS,
    LIST_ACTIONS,
    SELF_USER_FIELDS,
    TENANT_ADMIN_TENANT_FIELDS,
    Action,
    EntityKind,
    entity_for,
)
from taskboard.utils.principal import Principal

logger = logging.getLogger(__name__)


class DenyReason(str, Enum):
    CROSS_TENANT_ACCESS = "CROSS_TENANT_ACCESS"
    SELF_ESCALATION_DENIED = "SELF_ESCALATION_DENIED"
    SELF_DELETION_DENIED = "SELF_DELETION_DENIED"
    FIELD_NOT_PERMITTED = "FIELD_NOT_PERMITTED"
    NOT_CREATOR_OR_ADMIN = "NOT_CREATOR_OR_ADMIN"
    ASSIGNEE_WRONG_TENANT = "ASSIGNEE_WRONG_TENANT"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"


@dataclass(frozen=True)
class Scope:
    """Tenant (and optionally project) boundary to apply to the query."""

    tenant_id: str | None = None
    project_id: str | None = None

    @property
    def unscoped(self) -> bool:
        return self.tenant_id is None


@dataclass(frozen=True)
class Allow:
    scope: Scope
    allowed: bool = field(default=True, init=False)


@dataclass(frozen=True)
class Deny:
    reason: DenyReason
    message: str
    allowed: bool = field(default=False, init=False)


Decision = Allow | Deny


@dataclass(frozen=True)
class Target:
    """
    Descriptor of the resource an action touches.

    tenant_id           owning tenant of the resource (None for platform-wide listings)
    resource_id         id of the resource itself (user id for user actions)
    created_by          original creator for projects/tasks
    fields              names of the fields being written
    requested_tenant_id client-supplied tenant filter on listings
    project_id          parent project for task actions
    assignee_id         assignee being written on a task
    assignee_tenant_id  tenant the assignee resolved in, None when it did not resolve
    """

    kind: EntityKind
    tenant_id: str | None = None
    resource_id: str | None = None
    created_by: str | None = None
    fields: frozenset[str] = frozenset()
    requested_tenant_id: str | None = None
    project_id: str | None = None
    assignee_id: str | None = None
    assignee_tenant_id: str | None = None


Rule = Callable[[Principal, Action, Target], Decision | None]


def _deny(reason: DenyReason, message: str) -> Deny:
    return Deny(reason=reason, message=message)


def _resource_scope(target: Target) -> Scope:
    return Scope(tenant_id=target.tenant_id, project_id=target.project_id)


def _assignee_check(action: Action, target: Target) -> Deny | None:
    if action not in ASSIGNEE_ACTIONS or target.assignee_id is None:
        return None
    if target.assignee_tenant_id is None or target.assignee_tenant_id != target.tenant_id:
        return _deny(DenyReason.ASSIGNEE_WRONG_TENANT, "Assigned user does not belong to this tenant")
    return None


def _self_service_check(principal: Principal, action: Action, target: Target) -> Deny | None:
    if target.resource_id is None or target.resource_id != principal.user_id:
        return None
    if action == Action.USER_DELETE:
        return _deny(DenyReason.SELF_DELETION_DENIED, "You cannot delete yourself")
    if action == Action.USER_UPDATE and not target.fields <= SELF_USER_FIELDS:
        return _deny(DenyReason.SELF_ESCALATION_DENIED, "You can only update your full name")
    return None


# ── Rules ──────────────────────────────────────────────────────────────────────


def super_admin_rule(principal: Principal, action: Action, target: Target) -> Decision | None:
    if not principal.is_super_admin:
        return None
    if action in LIST_ACTIONS:
        # Unscoped unless a specific tenant was asked for
        tenant_id = target.requested_tenant_id or target.tenant_id
        return Allow(Scope(tenant_id=tenant_id, project_id=target.project_id))
    if entity_for(action) == EntityKind.user:
        denied = _self_service_check(principal, action, target)
        if denied:
            return denied
    return _assignee_check(action, target) or Allow(_resource_scope(target))


def cross_tenant_rule(principal: Principal, action: Action, target: Target) -> Decision | None:
    # Non-list targets with no tenant (platform accounts) are foreign to every tenant
    if target.tenant_id is None and action in LIST_ACTIONS:
        return None
    if target.tenant_id != principal.tenant_id:
        return _deny(DenyReason.CROSS_TENANT_ACCESS, "Resource belongs to another tenant")
    return None


def listing_rule(principal: Principal, action: Action, target: Target) -> Decision | None:
    if action not in LIST_ACTIONS:
        return None
    # Client-supplied tenant filters are ignored, not rejected
    return Allow(Scope(tenant_id=principal.tenant_id, project_id=target.project_id))


def tenant_record_rule(principal: Principal, action: Action, target: Target) -> Decision | None:
    if action == Action.TENANT_READ:
        return Allow(Scope(tenant_id=principal.tenant_id))
    if action != Action.TENANT_UPDATE:
        return None
    if principal.role == Role.tenant_admin and target.fields <= TENANT_ADMIN_TENANT_FIELDS:
        return Allow(Scope(tenant_id=principal.tenant_id))
    return _deny(DenyReason.FIELD_NOT_PERMITTED, "You are not allowed to update these fields")


def user_record_rule(principal: Principal, action: Action, target: Target) -> Decision | None:
    if action not in (Action.USER_CREATE, Action.USER_UPDATE, Action.USER_DELETE):
        return None
    denied = _self_service_check(principal, action, target)
    if denied:
        return denied
    if action == Action.USER_UPDATE and target.resource_id == principal.user_id:
        return Allow(Scope(tenant_id=principal.tenant_id))
    if principal.role == Role.tenant_admin:
        return Allow(Scope(tenant_id=principal.tenant_id))
    return _deny(DenyReason.NOT_CREATOR_OR_ADMIN, "Only a tenant admin can manage other users")


def project_task_rule(principal: Principal, action: Action, target: Target) -> Decision | None:
    if entity_for(action) not in (EntityKind.project, EntityKind.task):
        return None
    if action in CREATOR_OR_ADMIN_ACTIONS:
        is_creator = target.created_by is not None and target.created_by == principal.user_id
        if principal.role != Role.tenant_admin and not is_creator:
            return _deny(DenyReason.NOT_CREATOR_OR_ADMIN, "Only the creator or a tenant admin can modify this resource")
    return _assignee_check(action, target) or Allow(Scope(tenant_id=principal.tenant_id, project_id=target.project_id))


def default_deny_rule(principal: Principal, action: Action, target: Target) -> Decision | None:
    return _deny(DenyReason.NOT_CREATOR_OR_ADMIN, "Action not permitted for this role")


RULES: tuple[Rule, ...] = (
    super_admin_rule,
    cross_tenant_rule,
    listing_rule,
    tenant_record_rule,
    user_record_rule,
    project_task_rule,
    default_deny_rule,
)


def authorize(principal: Principal, action: Action, target: Target) -> Decision:
    """Evaluate the rule table; the first rule returning a decision wins."""
    for rule in RULES:
        decision = rule(principal, action, target)
        if decision is not None:
            return decision
    # default_deny_rule always answers
    raise AssertionError("authorization rule table is not exhaustive")


def enforce(principal: Principal, action: Action, target: Target, *, conceal_existence: bool = False) -> Scope:
    """
    Authorize or raise.

    With conceal_existence, a cross-tenant denial on a resource looked up
    by id is reported as not-found, so probing foreign ids reveals nothing
    a probe for a missing id would not.
    """
    decision = authorize(principal, action, target)
    if isinstance(decision, Allow):
        return decision.scope

    logger.warning(
        f"Authorization denied: action={action.value} reason={decision.reason.value} "
        f"principal={principal.user_id} target={target.kind.value}:{target.resource_id}"
    )
    if conceal_existence and decision.reason == DenyReason.CROSS_TENANT_ACCESS:
        # Task creates and listings are addressed by their parent project
        if target.kind == EntityKind.task and target.resource_id is None:
            raise ResourceNotFoundError("Project", target.project_id)
        raise ResourceNotFoundError(target.kind.value.capitalize(), target.resource_id)
    raise AuthorizationError(decision.reason, decision.message)
