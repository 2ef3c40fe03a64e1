"""Custom exception hierarchy.

API exceptions carry an error code and HTTP status and are rendered by the
handlers in ``appfit.middleware.error_handler``. Persistence exceptions are
domain errors raised by usage stores; the quota layer decides how they
degrade.
"""

from typing import Any, Optional


class BaseAPIException(Exception):
    """Base class for exceptions rendered as JSON error responses."""

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}


# ============================================================================
# Authentication
# ============================================================================


class MissingTokenError(BaseAPIException):
    status_code = 401
    error_code = "MISSING_TOKEN"

    def __init__(self, message: str = "Authorization header is required"):
        super().__init__(message)


class InvalidTokenError(BaseAPIException):
    status_code = 401
    error_code = "INVALID_TOKEN"

    def __init__(self, message: str = "Invalid authentication token"):
        super().__init__(message)


class InvalidApiKeyError(BaseAPIException):
    status_code = 401
    error_code = "INVALID_API_KEY"

    def __init__(self, message: str = "Invalid or missing API key"):
        super().__init__(message)


# ============================================================================
# Quota
# ============================================================================


class InvalidIdentityError(BaseAPIException):
    """No usable identity to track usage against."""

    status_code = 400
    error_code = "INVALID_IDENTITY"

    def __init__(self, message: str = "A valid identity is required"):
        super().__init__(message)


class UsageLimitExceededError(BaseAPIException):
    """Daily message quota already used up."""

    status_code = 429
    error_code = "USAGE_LIMIT_EXCEEDED"

    def __init__(self, current: int, limit: int):
        super().__init__(
            f"Daily message limit reached ({current}/{limit}). Try again tomorrow.",
            details={"current": current, "limit": limit, "remaining": 0},
        )
        self.current = current
        self.limit = limit


class QuotaUnavailableError(BaseAPIException):
    """Quota store failed and the deployment is configured to fail closed."""

    status_code = 503
    error_code = "QUOTA_UNAVAILABLE"

    def __init__(self, message: str = "Message quota is temporarily unavailable"):
        super().__init__(message)


# ============================================================================
# Database
# ============================================================================


class DatabaseError(BaseAPIException):
    status_code = 500
    error_code = "DATABASE_ERROR"

    def __init__(self, message: str = "Database operation failed"):
        super().__init__(message)


# ============================================================================
# Persistence (usage stores)
# ============================================================================


class PersistenceError(Exception):
    """A usage store could not complete an operation."""

    def __init__(self, message: str, identity: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.identity = identity


class StorageReadError(PersistenceError):
    """Loading a usage record failed."""


class StorageWriteError(PersistenceError):
    """Persisting a usage record failed."""
