"""
Tenant service tests: details, updates and listings
"""

import pytest

from taskboard.constants.audit import AuditAction
from taskboard.exceptions import AuthorizationError, ResourceNotFoundError, ValidationError
from taskboard.models import SubscriptionPlan, TenantStatus
from taskboard.services.authorization_service import DenyReason
from taskboard.services.tenant_service import get_tenant_details, list_tenants, update_tenant
from taskboard.utils.pagination import PageRequest
from utils.fixtures import principal_of, seed_project, seed_task, seed_tenant


class TestTenantDetails:
    async def test_member_reads_own_tenant_with_stats(self, test_db, acme, acme_project):
        tenant, admin, member = acme
        await seed_task(test_db, acme_project, admin)

        loaded, stats = await get_tenant_details(tenant.id, principal_of(member), test_db)

        assert loaded.id == tenant.id
        assert (stats.total_users, stats.total_projects, stats.total_tasks) == (2, 1, 1)

    async def test_foreign_tenant_forbidden(self, test_db, acme, globex):
        _, admin, _ = acme
        with pytest.raises(AuthorizationError) as exc_info:
            await get_tenant_details(globex[0].id, principal_of(admin), test_db)
        assert exc_info.value.reason == DenyReason.CROSS_TENANT_ACCESS

    async def test_unknown_tenant_looks_foreign_to_members(self, test_db, acme):
        _, admin, _ = acme
        with pytest.raises(AuthorizationError):
            await get_tenant_details("no-such-tenant", principal_of(admin), test_db)

    async def test_super_admin_gets_not_found_for_unknown_tenant(self, test_db, super_admin):
        with pytest.raises(ResourceNotFoundError):
            await get_tenant_details("no-such-tenant", principal_of(super_admin), test_db)


class TestUpdateTenant:
    async def test_tenant_admin_renames_own_tenant(self, test_db, acme, audit):
        tenant, admin, _ = acme
        updated = await update_tenant(tenant.id, {"name": "Acme Worldwide"}, principal_of(admin), test_db, audit)

        assert updated.name == "Acme Worldwide"
        assert audit.actions() == [AuditAction.UPDATE_TENANT]

    @pytest.mark.parametrize(
        "updates",
        [
            {"max_projects": 100},
            {"status": TenantStatus.suspended},
            {"subscription_plan": SubscriptionPlan.enterprise},
            {"name": "Acme", "max_users": 50},
        ],
    )
    async def test_tenant_admin_cannot_change_plan_fields(self, test_db, acme, audit, updates):
        tenant, admin, _ = acme
        with pytest.raises(AuthorizationError) as exc_info:
            await update_tenant(tenant.id, updates, principal_of(admin), test_db, audit)

        assert exc_info.value.reason == DenyReason.FIELD_NOT_PERMITTED
        await test_db.refresh(tenant)
        assert tenant.max_projects == 3
        assert tenant.name == "Acme Corp"
        assert audit.events == []

    async def test_member_cannot_rename(self, test_db, acme, audit):
        tenant, _, member = acme
        with pytest.raises(AuthorizationError):
            await update_tenant(tenant.id, {"name": "Mine now"}, principal_of(member), test_db, audit)

    async def test_super_admin_changes_quota(self, test_db, acme, super_admin, audit):
        tenant, _, _ = acme
        updated = await update_tenant(
            tenant.id,
            {"max_projects": 10, "subscription_plan": SubscriptionPlan.pro},
            principal_of(super_admin),
            test_db,
            audit,
        )
        assert updated.max_projects == 10
        assert updated.subscription_plan == SubscriptionPlan.pro

    async def test_empty_update_rejected_before_authorization(self, test_db, acme, globex, audit):
        _, admin, _ = acme
        with pytest.raises(ValidationError):
            await update_tenant(globex[0].id, {}, principal_of(admin), test_db, audit)


class TestListTenants:
    async def test_super_admin_sees_all_with_counts(self, test_db, acme, globex, super_admin, acme_project):
        listings, total = await list_tenants(principal_of(super_admin), test_db, PageRequest(page=1, limit=10))

        assert total == 2
        by_subdomain = {listing.tenant.subdomain: listing for listing in listings}
        assert by_subdomain["acme"].total_users == 2
        assert by_subdomain["acme"].total_projects == 1
        assert by_subdomain["globex"].total_projects == 0

    async def test_member_sees_only_own_tenant(self, test_db, acme, globex):
        _, _, member = acme
        listings, total = await list_tenants(principal_of(member), test_db, PageRequest(page=1, limit=10))

        assert total == 1
        assert [listing.tenant.id for listing in listings] == [acme[0].id]

    async def test_filters(self, test_db, acme, super_admin):
        await seed_tenant(test_db, name="Dormant", subdomain="dormant", status=TenantStatus.suspended)
        principal = principal_of(super_admin)

        listings, total = await list_tenants(principal, test_db, PageRequest(1, 10), status=TenantStatus.suspended)
        assert total == 1
        assert listings[0].tenant.subdomain == "dormant"

        _, total = await list_tenants(principal, test_db, PageRequest(1, 10), subscription_plan=SubscriptionPlan.pro)
        assert total == 0

    async def test_pagination(self, test_db, super_admin):
        for index in range(3):
            tenant = await seed_tenant(test_db, name=f"T{index}", subdomain=f"t{index}")
            await seed_project(test_db, tenant, None)

        listings, total = await list_tenants(principal_of(super_admin), test_db, PageRequest(page=2, limit=2))
        assert total == 3
        assert len(listings) == 1
