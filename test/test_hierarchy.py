"""
Resource hierarchy lookups
"""

import pytest
from sqlalchemy import update

from taskboard.exceptions import DataIntegrityError, ResourceNotFoundError
from taskboard.models import Task
from taskboard.services.hierarchy_service import ResourceHierarchy
from utils.fixtures import seed_task


@pytest.mark.asyncio
async def test_tenant_of_project(test_db, acme, acme_project):
    tenant, _, _ = acme
    assert await ResourceHierarchy(test_db).tenant_of_project(acme_project.id) == tenant.id


@pytest.mark.asyncio
async def test_task_resolves_through_project(test_db, acme, acme_project):
    tenant, admin, _ = acme
    task = await seed_task(test_db, acme_project, admin)
    hierarchy = ResourceHierarchy(test_db)

    assert await hierarchy.project_of_task(task.id) == acme_project.id
    assert await hierarchy.tenant_of_task(task.id) == tenant.id


@pytest.mark.asyncio
async def test_task_with_mismatched_tenant_is_integrity_error(test_db, acme, globex, acme_project):
    _, admin, _ = acme
    other_tenant, _, _ = globex
    task = await seed_task(test_db, acme_project, admin)
    task_id = task.id
    await test_db.execute(update(Task).where(Task.id == task_id).values(tenant_id=other_tenant.id))
    await test_db.commit()

    with pytest.raises(DataIntegrityError):
        await ResourceHierarchy(test_db).tenant_of_task(task_id)


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["get_tenant", "get_user", "get_project", "get_task", "tenant_of_project"])
async def test_missing_rows_fail_closed(test_db, method):
    with pytest.raises(ResourceNotFoundError):
        await getattr(ResourceHierarchy(test_db), method)("does-not-exist")


@pytest.mark.asyncio
async def test_resolve_assignee_tenant(test_db, acme, super_admin):
    tenant, _, member = acme
    hierarchy = ResourceHierarchy(test_db)

    assert await hierarchy.resolve_assignee_tenant(member.id) == tenant.id
    assert await hierarchy.resolve_assignee_tenant(super_admin.id) is None
    assert await hierarchy.resolve_assignee_tenant("ghost") is None
    assert await hierarchy.resolve_assignee_tenant(None) is None
