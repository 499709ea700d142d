import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.config import settings
from taskboard.database import get_db
from taskboard.exceptions import (
    DataIntegrityError,
    SessionExpiredError,
    SessionMalformedError,
    TenantInactiveError,
)
from taskboard.models.tenant import Tenant, TenantStatus
from taskboard.models.user import User
from taskboard.utils.principal import Principal, TenantPrincipal, principal_from_claims

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds)

# Bearer token extraction; missing tokens are reported by get_current_principal
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Constant-time comparison; malformed stored hashes never match."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        logger.error("Stored password hash could not be parsed")
        return False


@lru_cache(maxsize=1)
def get_dummy_hash() -> str:
    """Hash verified when no account matched, so both login paths cost the same."""
    return hash_password("taskboard-dummy-password")


# ============================================================================
# Session Issuer / Validator
# ============================================================================


@dataclass(frozen=True)
class IssuedSession:
    token: str
    expires_at: datetime
    expires_in: int


class SessionIssuer:
    """
    Mints and validates signed session tokens.

    A token carries exactly `{sub: user_id, tid: tenant_id | None, role}`
    and an expiry instant; nothing else is read back from it.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60 * 24):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def mint(self, principal: Principal, expires_delta: timedelta | None = None) -> IssuedSession:
        expires_delta = expires_delta or timedelta(minutes=self.expire_minutes)
        now = datetime.now(timezone.utc)
        expire = now + expires_delta
        claims = {
            "sub": principal.user_id,
            "tid": principal.tenant_id,
            "role": principal.role.value,
            "iat": now,
            "exp": expire,
        }
        token = jwt.encode(claims, self.secret_key, algorithm=self.algorithm)
        return IssuedSession(token=token, expires_at=expire, expires_in=int(expires_delta.total_seconds()))

    def validate(self, token: str) -> Principal:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError as e:
            raise SessionExpiredError() from e
        except JWTError as e:
            logger.warning(f"Session token rejected: {e}")
            raise SessionMalformedError("token signature or format invalid") from e

        try:
            return principal_from_claims(payload.get("sub"), payload.get("tid"), payload.get("role"))
        except ValueError as e:
            logger.warning(f"Session token carries inconsistent claims: {e}")
            raise SessionMalformedError("token claims inconsistent") from e


session_issuer = SessionIssuer(
    secret_key=settings.secret_key,
    algorithm=settings.algorithm,
    expire_minutes=settings.access_token_expire_minutes,
)


def get_session_issuer() -> SessionIssuer:
    return session_issuer


# ============================================================================
# Request principal
# ============================================================================


async def get_current_principal(
    request: Request,
    token: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
    issuer: SessionIssuer = Depends(get_session_issuer),
) -> Principal:
    """
    Resolve the principal for this request.

    The token is re-checked against current state on every request: a
    deactivated or deleted user, a changed role, or a tenant that is no
    longer active all invalidate sessions minted earlier.
    """
    if not token:
        raise SessionMalformedError("missing bearer token")

    principal = issuer.validate(token)

    user = await db.get(User, principal.user_id)
    if user is None or not user.is_active:
        logger.warning(f"Session for unknown or inactive user {principal.user_id}")
        raise SessionMalformedError("user unknown or inactive")
    if user.role != principal.role or user.tenant_id != principal.tenant_id:
        logger.warning(f"Session claims for user {principal.user_id} no longer match stored role/tenant")
        raise SessionMalformedError("claims no longer match user record")

    if isinstance(principal, TenantPrincipal):
        tenant = await db.get(Tenant, principal.tenant_id)
        if tenant is None:
            logger.error(f"User {user.id} references missing tenant {principal.tenant_id}")
            raise DataIntegrityError("User references a tenant that does not exist")
        if tenant.status != TenantStatus.active:
            logger.warning(f"Session rejected for tenant {tenant.id} with status {tenant.status.value}")
            raise TenantInactiveError()

    request.state.principal = principal
    return principal
