"""
Resource Hierarchy

Ownership lookups over Tenant -> {User, Project} and Project -> Task, used
to materialize a target's tenant before authorization. Every lookup fails
closed: a missing row raises ResourceNotFoundError, never a decision.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.exceptions import DataIntegrityError, ResourceNotFoundError
from taskboard.models.project import Project
from taskboard.models.task import Task
from taskboard.models.tenant import Tenant
from taskboard.models.user import User

logger = logging.getLogger(__name__)


class ResourceHierarchy:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_tenant(self, tenant_id: str) -> Tenant:
        tenant = await self.db.get(Tenant, tenant_id)
        if tenant is None:
            raise ResourceNotFoundError("Tenant", tenant_id)
        return tenant

    async def get_user(self, user_id: str) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise ResourceNotFoundError("User", user_id)
        return user

    async def get_project(self, project_id: str) -> Project:
        project = await self.db.get(Project, project_id)
        if project is None:
            raise ResourceNotFoundError("Project", project_id)
        return project

    async def get_task(self, task_id: str) -> Task:
        """Load a task and verify its denormalized tenant matches its project's."""
        task = await self.db.get(Task, task_id)
        if task is None:
            raise ResourceNotFoundError("Task", task_id)
        project = await self.get_project(task.project_id)
        if task.tenant_id != project.tenant_id:
            logger.error(
                f"Task {task.id} tenant {task.tenant_id} disagrees with project {project.id} tenant {project.tenant_id}"
            )
            raise DataIntegrityError("Task tenant does not match its project")
        return task

    async def tenant_of_project(self, project_id: str) -> str:
        project = await self.get_project(project_id)
        return project.tenant_id

    async def project_of_task(self, task_id: str) -> str:
        task = await self.get_task(task_id)
        return task.project_id

    async def tenant_of_task(self, task_id: str) -> str:
        """Resolved through the project, never trusted from the task row alone."""
        task = await self.get_task(task_id)
        return await self.tenant_of_project(task.project_id)

    async def tenant_of_user(self, user_id: str) -> str | None:
        user = await self.get_user(user_id)
        return user.tenant_id

    async def resolve_assignee_tenant(self, assignee_id: str | None) -> str | None:
        """Tenant the assignee belongs to, or None when the assignee does not exist."""
        if assignee_id is None:
            return None
        user = await self.db.get(User, assignee_id)
        if user is None:
            return None
        return user.tenant_id
