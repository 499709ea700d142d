"""
Action and field tables consumed by the authorization engine.

Keeping these as data means Project and Task rules (and every route that
touches them) read from one place instead of re-deriving role checks.
"""

from enum import Enum


class EntityKind(str, Enum):
    tenant = "tenant"
    user = "user"
    project = "project"
    task = "task"


class Action(str, Enum):
    TENANT_READ = "tenant.read"
    TENANT_UPDATE = "tenant.update"
    TENANT_LIST = "tenant.list"
    USER_CREATE = "user.create"
    USER_LIST = "user.list"
    USER_UPDATE = "user.update"
    USER_DELETE = "user.delete"
    PROJECT_CREATE = "project.create"
    PROJECT_LIST = "project.list"
    PROJECT_UPDATE = "project.update"
    PROJECT_DELETE = "project.delete"
    TASK_CREATE = "task.create"
    TASK_LIST = "task.list"
    TASK_UPDATE = "task.update"
    TASK_UPDATE_STATUS = "task.update_status"
    TASK_DELETE = "task.delete"


ACTION_ENTITY: dict[Action, EntityKind] = {
    Action.TENANT_READ: EntityKind.tenant,
    Action.TENANT_UPDATE: EntityKind.tenant,
    Action.TENANT_LIST: EntityKind.tenant,
    Action.USER_CREATE: EntityKind.user,
    Action.USER_LIST: EntityKind.user,
    Action.USER_UPDATE: EntityKind.user,
    Action.USER_DELETE: EntityKind.user,
    Action.PROJECT_CREATE: EntityKind.project,
    Action.PROJECT_LIST: EntityKind.project,
    Action.PROJECT_UPDATE: EntityKind.project,
    Action.PROJECT_DELETE: EntityKind.project,
    Action.TASK_CREATE: EntityKind.task,
    Action.TASK_LIST: EntityKind.task,
    Action.TASK_UPDATE: EntityKind.task,
    Action.TASK_UPDATE_STATUS: EntityKind.task,
    Action.TASK_DELETE: EntityKind.task,
}

LIST_ACTIONS = frozenset({Action.TENANT_LIST, Action.USER_LIST, Action.PROJECT_LIST, Action.TASK_LIST})

# Project/Task writes restricted to the tenant_admin or the original creator
CREATOR_OR_ADMIN_ACTIONS = frozenset(
    {Action.PROJECT_UPDATE, Action.PROJECT_DELETE, Action.TASK_UPDATE, Action.TASK_DELETE}
)

# Task writes that may set an assignee
ASSIGNEE_ACTIONS = frozenset({Action.TASK_CREATE, Action.TASK_UPDATE})

# Tenant record fields
TENANT_FIELDS = frozenset({"name", "status", "subscription_plan", "max_users", "max_projects"})
TENANT_RESTRICTED_FIELDS = frozenset({"status", "subscription_plan", "max_users", "max_projects"})
TENANT_ADMIN_TENANT_FIELDS = TENANT_FIELDS - TENANT_RESTRICTED_FIELDS

# User record fields
USER_FIELDS = frozenset({"full_name", "role", "is_active"})
SELF_USER_FIELDS = frozenset({"full_name"})


def entity_for(action: Action) -> EntityKind:
    return ACTION_ENTITY[action]
