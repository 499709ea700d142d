"""
Custom Exception Classes for Taskboard

Every failure the tenant core can produce has a stable machine-readable
`ErrorCode` plus a human message. Internal detail (raw driver errors,
which lookup failed during login) is never placed in `details`; it is
logged server-side only.
"""

from enum import Enum
from typing import Any

from fastapi import status


class ErrorCode(str, Enum):
    """Machine-readable error codes returned in every error response."""

    # Authentication
    AUTH_FAILED = "AUTHENTICATION_FAILED"

    # Authorization (one code per deny reason)
    CROSS_TENANT_ACCESS = "CROSS_TENANT_ACCESS"
    SELF_ESCALATION_DENIED = "SELF_ESCALATION_DENIED"
    SELF_DELETION_DENIED = "SELF_DELETION_DENIED"
    FIELD_NOT_PERMITTED = "FIELD_NOT_PERMITTED"
    NOT_CREATOR_OR_ADMIN = "NOT_CREATOR_OR_ADMIN"
    ASSIGNEE_WRONG_TENANT = "ASSIGNEE_WRONG_TENANT"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"

    # Resource state
    RESOURCE_NOT_FOUND = "NOT_FOUND"
    DUPLICATE_SUBDOMAIN = "DUPLICATE_SUBDOMAIN"
    DUPLICATE_RESOURCE = "DUPLICATE_RESOURCE"
    VALIDATION_FAILED = "VALIDATION_FAILED"

    # Infrastructure
    INFRASTRUCTURE_FAILURE = "INFRASTRUCTURE_FAILURE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class TrackerError(Exception):
    """Base exception class for all Taskboard exceptions"""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
        error_code: ErrorCode | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        if error_code is not None:
            self.error_code = error_code
        super().__init__(self.message)


# ============================================================================
# Authentication Exceptions
# ============================================================================


class AuthenticationError(TrackerError):
    """Raised when a caller cannot be authenticated.

    Subclasses exist so the server log can say *why* a login failed, but
    they all render the same public message so callers cannot probe which
    tenants or emails exist.
    """

    error_code = ErrorCode.AUTH_FAILED
    public_message = "Invalid credentials"

    def __init__(self, reason: str = "authentication failed"):
        self.reason = reason
        super().__init__(message=self.public_message, status_code=status.HTTP_401_UNAUTHORIZED)


class InvalidCredentialsError(AuthenticationError):
    def __init__(self, reason: str = "invalid credentials"):
        super().__init__(reason=reason)


class TenantRequiredError(AuthenticationError):
    """Login without a tenant handle for an account that is not a super_admin."""

    public_message = "Invalid credentials or tenant subdomain required"

    def __init__(self):
        super().__init__(reason="tenant handle required")


class TenantNotFoundError(AuthenticationError):
    def __init__(self):
        super().__init__(reason="tenant not found")


class TenantInactiveError(AuthenticationError):
    def __init__(self):
        super().__init__(reason="tenant not active")


class SessionExpiredError(AuthenticationError):
    public_message = "Session has expired"

    def __init__(self):
        super().__init__(reason="session expired")


class SessionMalformedError(AuthenticationError):
    public_message = "Could not validate credentials"

    def __init__(self, reason: str = "session malformed"):
        super().__init__(reason=reason)


# ============================================================================
# Authorization & Quota Exceptions
# ============================================================================


class AuthorizationError(TrackerError):
    """Raised when the authorization engine denies an operation."""

    def __init__(self, reason, message: str | None = None):
        # reason is a DenyReason; its value doubles as the error code
        self.reason = reason
        super().__init__(
            message=message or "You do not have permission to perform this action",
            status_code=status.HTTP_403_FORBIDDEN,
            details={"reason": reason.value},
            error_code=ErrorCode(reason.value),
        )


class QuotaExceededError(TrackerError):
    """Raised when a create would exceed the tenant's subscription quota"""

    error_code = ErrorCode.QUOTA_EXCEEDED

    def __init__(self, resource_kind: str, limit: int):
        super().__init__(
            message=f"Subscription limit reached for {resource_kind}s",
            status_code=status.HTTP_403_FORBIDDEN,
            details={"resource_kind": resource_kind, "limit": limit},
        )


# ============================================================================
# Resource Exceptions
# ============================================================================


class ResourceNotFoundError(TrackerError):
    """Raised when a resource does not exist or is outside the caller's tenant"""

    error_code = ErrorCode.RESOURCE_NOT_FOUND

    def __init__(self, resource_type: str, resource_id: Any | None = None):
        message = f"{resource_type} not found"
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource_type": resource_type},
        )
        self.resource_id = resource_id


class ValidationError(TrackerError):
    """Raised when input validation fails"""

    error_code = ErrorCode.VALIDATION_FAILED

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class DuplicateResourceError(TrackerError):
    """Raised when attempting to create a duplicate resource"""

    error_code = ErrorCode.DUPLICATE_RESOURCE

    def __init__(self, resource_type: str, field: str, message: str | None = None):
        super().__init__(
            message=message or f"{resource_type} with this {field} already exists",
            status_code=status.HTTP_409_CONFLICT,
            details={"resource_type": resource_type, "field": field},
        )


class DuplicateSubdomainError(DuplicateResourceError):
    """Raised when a tenant registration reuses an existing routing handle"""

    error_code = ErrorCode.DUPLICATE_SUBDOMAIN

    def __init__(self):
        super().__init__(resource_type="Tenant", field="subdomain", message="Subdomain already exists")


# ============================================================================
# Infrastructure Exceptions
# ============================================================================


class DatabaseError(TrackerError):
    """Raised when storage fails or times out. Callers may retry with backoff."""

    error_code = ErrorCode.INFRASTRUCTURE_FAILURE

    def __init__(self, message: str = "A storage error occurred, please retry", operation: str | None = None):
        details: dict[str, Any] = {"retryable": True}
        if operation:
            details["operation"] = operation
        super().__init__(message=message, status_code=status.HTTP_503_SERVICE_UNAVAILABLE, details=details)


class DataIntegrityError(TrackerError):
    """Raised when stored rows violate an ownership invariant (e.g. orphaned tenant reference)."""

    def __init__(self, message: str = "Stored data is inconsistent"):
        super().__init__(message=message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
