"""
Route tests for /api/auth
"""

from taskboard.constants.audit import AuditAction
from taskboard.models import TenantStatus
from utils.fixtures import DEFAULT_PASSWORD, auth_headers

REGISTRATION = {
    "tenantName": "Initech",
    "subdomain": "Initech",
    "adminEmail": "bill@initech.com",
    "adminPassword": "tps-reports-2024",
    "adminFullName": "Bill Lumbergh",
}


class TestRegisterTenant:
    async def test_register_then_login(self, client, audit):
        response = await client.post("/api/auth/register-tenant", json=REGISTRATION)

        assert response.status_code == 201
        body = response.json()
        assert body["subdomain"] == "initech"
        assert body["adminUser"]["role"] == "tenant_admin"
        assert body["adminUser"]["tenantId"] == body["tenantId"]
        assert "passwordHash" not in body["adminUser"]

        login = await client.post(
            "/api/auth/login",
            json={"email": "bill@initech.com", "password": "tps-reports-2024", "tenantSubdomain": "initech"},
        )
        assert login.status_code == 200
        assert audit.actions() == [AuditAction.REGISTER_TENANT, AuditAction.LOGIN]

    async def test_duplicate_subdomain(self, client):
        assert (await client.post("/api/auth/register-tenant", json=REGISTRATION)).status_code == 201

        response = await client.post("/api/auth/register-tenant", json={**REGISTRATION, "adminEmail": "x@initech.com"})

        assert response.status_code == 409
        assert response.json()["error"]["error_code"] == "DUPLICATE_SUBDOMAIN"

    async def test_invalid_payload(self, client):
        response = await client.post(
            "/api/auth/register-tenant", json={**REGISTRATION, "subdomain": "not a handle!", "adminPassword": "short"}
        )

        assert response.status_code == 422
        fields = {error["field"] for error in response.json()["error"]["details"]["validation_errors"]}
        assert fields == {"subdomain", "adminPassword"}


class TestLogin:
    async def test_tenant_user_login(self, client, acme):
        tenant, admin, _ = acme
        response = await client.post(
            "/api/auth/login",
            json={"email": "admin@acme.com", "password": DEFAULT_PASSWORD, "tenantSubdomain": "acme"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["tokenType"] == "bearer"
        assert body["expiresIn"] > 0
        assert body["user"] == {
            "id": admin.id,
            "email": "admin@acme.com",
            "fullName": "Acme Admin",
            "role": "tenant_admin",
            "tenantId": tenant.id,
        }

    async def test_handle_from_header(self, client, acme):
        response = await client.post(
            "/api/auth/login",
            json={"email": "member@acme.com", "password": DEFAULT_PASSWORD},
            headers={"X-Tenant-Slug": "acme"},
        )
        assert response.status_code == 200

    async def test_tenant_user_without_handle_rejected(self, client, acme):
        response = await client.post("/api/auth/login", json={"email": "admin@acme.com", "password": DEFAULT_PASSWORD})

        assert response.status_code == 401
        assert response.json()["error"]["error_code"] == "AUTHENTICATION_FAILED"

    async def test_super_admin_without_handle(self, client, super_admin):
        response = await client.post(
            "/api/auth/login", json={"email": "root@platform.com", "password": DEFAULT_PASSWORD}
        )
        assert response.status_code == 200
        assert response.json()["user"]["tenantId"] is None

    async def test_failures_are_indistinguishable(self, client, acme):
        attempts = [
            {"email": "admin@acme.com", "password": "wrong-password", "tenantSubdomain": "acme"},
            {"email": "ghost@acme.com", "password": DEFAULT_PASSWORD, "tenantSubdomain": "acme"},
            {"email": "admin@acme.com", "password": DEFAULT_PASSWORD, "tenantSubdomain": "nope"},
        ]
        bodies = []
        for attempt in attempts:
            response = await client.post("/api/auth/login", json=attempt)
            assert response.status_code == 401
            error = response.json()["error"]
            bodies.append((error["error_code"], error["message"]))
        assert len(set(bodies)) == 1

    async def test_suspended_tenant_cannot_log_in(self, client, test_db, acme):
        tenant, _, _ = acme
        tenant.status = TenantStatus.suspended
        await test_db.commit()

        response = await client.post(
            "/api/auth/login",
            json={"email": "admin@acme.com", "password": DEFAULT_PASSWORD, "tenantSubdomain": "acme"},
        )
        assert response.status_code == 401


class TestSession:
    async def test_me(self, client, acme):
        tenant, _, member = acme
        response = await client.get("/api/auth/me", headers=auth_headers(member))

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == member.id
        assert body["isActive"] is True
        assert body["tenant"]["subdomain"] == "acme"
        assert body["tenant"]["maxProjects"] == 3

    async def test_me_super_admin_has_no_tenant(self, client, super_admin):
        response = await client.get("/api/auth/me", headers=auth_headers(super_admin))
        assert response.status_code == 200
        assert response.json()["tenant"] is None

    async def test_missing_token(self, client):
        response = await client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    async def test_garbage_token(self, client):
        response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    async def test_session_revoked_when_user_deactivated(self, client, test_db, acme):
        _, _, member = acme
        headers = auth_headers(member)
        member.is_active = False
        await test_db.commit()

        response = await client.get("/api/auth/me", headers=headers)
        assert response.status_code == 401

    async def test_session_revoked_when_tenant_suspended(self, client, test_db, acme):
        tenant, _, member = acme
        headers = auth_headers(member)
        tenant.status = TenantStatus.suspended
        await test_db.commit()

        response = await client.get("/api/auth/me", headers=headers)
        assert response.status_code == 401

    async def test_logout_is_audited(self, client, acme, audit):
        tenant, _, member = acme
        response = await client.post("/api/auth/logout", headers=auth_headers(member))

        assert response.status_code == 200
        assert audit.events[-1]["action"] == AuditAction.LOGOUT
        assert audit.events[-1]["tenant_id"] == tenant.id
