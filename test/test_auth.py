"""
Session issuer, secret verifier and principal tests
"""

from datetime import timedelta

import pytest
from jose import jwt

from taskboard.auth import SessionIssuer, get_dummy_hash, hash_password, verify_password
from taskboard.constants.roles import Role
from taskboard.exceptions import SessionExpiredError, SessionMalformedError
from taskboard.utils.principal import PlatformPrincipal, TenantPrincipal, principal_from_claims

SECRET = "unit-test-secret"


@pytest.fixture
def issuer() -> SessionIssuer:
    return SessionIssuer(secret_key=SECRET, algorithm="HS256", expire_minutes=60)


class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("s3cret-pass")
        assert hashed != "s3cret-pass"
        assert verify_password("s3cret-pass", hashed)
        assert not verify_password("wrong-pass", hashed)

    def test_malformed_hash_never_matches(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False

    def test_dummy_hash_is_cached(self):
        assert get_dummy_hash() is get_dummy_hash()


class TestPrincipalClaims:
    def test_super_admin_claims(self):
        principal = principal_from_claims("u1", None, "super_admin")
        assert isinstance(principal, PlatformPrincipal)
        assert principal.tenant_id is None
        assert principal.is_super_admin

    def test_tenant_claims(self):
        principal = principal_from_claims("u1", "t1", "tenant_admin")
        assert isinstance(principal, TenantPrincipal)
        assert principal.is_tenant_admin
        assert not principal.is_super_admin

    @pytest.mark.parametrize(
        "user_id,tenant_id,role",
        [
            ("u1", "t1", "super_admin"),
            ("u1", None, "tenant_admin"),
            ("u1", None, "user"),
            ("u1", "t1", "owner"),
            (None, "t1", "user"),
            ("u1", "t1", None),
        ],
    )
    def test_inconsistent_claims_rejected(self, user_id, tenant_id, role):
        with pytest.raises(ValueError):
            principal_from_claims(user_id, tenant_id, role)

    def test_tenant_principal_rejects_platform_role(self):
        with pytest.raises(ValueError):
            TenantPrincipal(user_id="u1", tenant_id="t1", role=Role.super_admin)


class TestSessionIssuer:
    def test_round_trip_tenant_principal(self, issuer):
        principal = TenantPrincipal(user_id="u1", tenant_id="t1", role=Role.user)
        session = issuer.mint(principal)
        assert session.expires_in == 3600
        assert issuer.validate(session.token) == principal

    def test_round_trip_platform_principal(self, issuer):
        principal = PlatformPrincipal(user_id="root")
        assert issuer.validate(issuer.mint(principal).token) == principal

    def test_token_carries_only_identity_claims(self, issuer):
        session = issuer.mint(TenantPrincipal(user_id="u1", tenant_id="t1", role=Role.tenant_admin))
        claims = jwt.decode(session.token, SECRET, algorithms=["HS256"])
        assert set(claims) == {"sub", "tid", "role", "iat", "exp"}
        assert claims["tid"] == "t1"
        assert claims["role"] == "tenant_admin"

    def test_expired_token(self, issuer):
        session = issuer.mint(PlatformPrincipal(user_id="root"), expires_delta=timedelta(seconds=-10))
        with pytest.raises(SessionExpiredError):
            issuer.validate(session.token)

    def test_wrong_signature(self, issuer):
        other = SessionIssuer(secret_key="another-secret")
        token = other.mint(PlatformPrincipal(user_id="root")).token
        with pytest.raises(SessionMalformedError):
            issuer.validate(token)

    def test_garbage_token(self, issuer):
        with pytest.raises(SessionMalformedError):
            issuer.validate("not.a.token")

    def test_inconsistent_claims_are_malformed(self, issuer):
        token = jwt.encode({"sub": "u1", "tid": "t1", "role": "super_admin"}, SECRET, algorithm="HS256")
        with pytest.raises(SessionMalformedError):
            issuer.validate(token)

    def test_session_errors_are_authentication_failures(self):
        assert SessionMalformedError().status_code == 401
        assert SessionExpiredError().error_code.value == "AUTHENTICATION_FAILED"
