"""
Core Package - Financial Clinic Survey Service
finclinic/core/__init__.py

Core infrastructure: dependencies, exceptions, logging.
Dependencies are imported from finclinic.core.dependencies directly, since
they pull in the whole service layer.
"""

from finclinic.core.exceptions import (
    ApiError,
    AuthenticationError,
    ConflictError,
    LocalStoreError,
    PermissionDeniedError,
    ProfileRequiredError,
    SurveyError,
    TransientApiError,
    ValidationError,
)

__all__ = [
    "ApiError",
    "AuthenticationError",
    "ConflictError",
    "LocalStoreError",
    "PermissionDeniedError",
    "ProfileRequiredError",
    "SurveyError",
    "TransientApiError",
    "ValidationError",
]
