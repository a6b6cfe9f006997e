"""
Custom Exceptions - Financial Clinic Survey Service
finclinic/core/exceptions.py

Error taxonomy for survey bookkeeping, scoring and remote calls:

  Transient/Network  -> TransientApiError   (retried with backoff)
  Authentication     -> AuthenticationError, PermissionDeniedError
                        (never retried, stored credentials are cleared)
  Validation         -> ValidationError, ProfileRequiredError
  Local storage      -> LocalStoreError
"""

from typing import Optional


class SurveyError(Exception):
    """Base exception for the survey core."""

    pass


class ValidationError(SurveyError):
    """Caller-input error that blocks the operation."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


class ProfileRequiredError(ValidationError):
    """Authenticated submission attempted without a profile."""

    def __init__(self, message: str = "Please complete your profile before submitting the survey."):
        super().__init__(message, field="profile")


class LocalStoreError(SurveyError):
    """Local key-value backend failure."""

    def __init__(self, message: str = "Local store operation failed"):
        self.message = message
        super().__init__(message)


class ApiError(SurveyError):
    """Failure talking to the remote scoring/submission service."""

    code = "API_ERROR"
    retryable = False

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        status: Optional[int] = None,
        url: Optional[str] = None,
    ):
        self.detail = detail
        self.status = status
        self.url = url
        super().__init__(f"{self.code}: {detail}" + (f" (HTTP {status})" if status else ""))


class TransientApiError(ApiError):
    """Timeout, connection failure, rate limit or 5xx."""

    code = "TRANSIENT_ERROR"
    retryable = True


class AuthenticationError(ApiError):
    """HTTP 401, or an operation that requires an authenticated identity."""

    code = "AUTH_ERROR"

    def __init__(self, detail: str = "Authentication required. Please log in again.", **kwargs):
        super().__init__(detail, **kwargs)


class PermissionDeniedError(ApiError):
    """HTTP 403."""

    code = "PERMISSION_ERROR"

    def __init__(self, detail: str = "Access denied. You do not have permission for this action.", **kwargs):
        super().__init__(detail, **kwargs)


class ConflictError(ApiError):
    """HTTP 409, e.g. a profile that already exists."""

    code = "CONFLICT"


USER_FACING_RETRY_MESSAGE = (
    "Unable to reach the Financial Clinic service. Please check your connection and try again."
)
