"""
Error Responses - Financial Clinic Survey Service
finclinic/routers/errors.py

Shared error schema, helpers and exception handlers for every router.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import Request, status
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from finclinic.core.exceptions import (
    ApiError,
    AuthenticationError,
    LocalStoreError,
    PermissionDeniedError,
    SurveyError,
    TransientApiError,
    USER_FACING_RETRY_MESSAGE,
    ValidationError,
)



#  Schemas


class ErrorResponse(BaseModel):
    error_code: str
    message: str
    details: Optional[dict] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))



#  Validation Error Messages


DEFAULT_MESSAGES = {
    "missing": "Field '{field}' is required",
    "string_too_short": "Field '{field}' is too short",
    "string_too_long": "Field '{field}' is too long",
    "string_pattern_mismatch": "Field '{field}' has invalid format",
    "less_than_equal": "Field '{field}' exceeds maximum allowed value",
    "greater_than_equal": "Field '{field}' is below minimum allowed value",
    "int_type": "Field '{field}' must be an integer",
    "int_parsing": "Field '{field}' must be a valid integer",
    "int_from_float": "Field '{field}' must be a whole number",
    "bool_parsing": "Field '{field}' must be true or false",
    "dict_type": "Field '{field}' must be an object",
    "json_invalid": "Malformed JSON request body",
}


def get_validation_message(field: str, error_type: str) -> str:
    for key, template in DEFAULT_MESSAGES.items():
        if key in error_type:
            return template.format(field=field)
    return f"Invalid value for field '{field}'"


def error_content(error_code: str, message: str, details: Optional[dict] = None) -> dict:
    return ErrorResponse(error_code=error_code, message=message, details=details).model_dump(mode="json")


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if not errors:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=error_content("VALIDATION_ERROR", "Request validation failed"),
        )
    err = errors[0]
    error_type = err.get("type", "")
    loc = err.get("loc", [])
    if "json_invalid" in error_type:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_content("INVALID_REQUEST", "Malformed JSON request body"),
        )
    field = ".".join(str(l) for l in loc if l != "body")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_content(
            "VALIDATION_ERROR",
            get_validation_message(field, error_type),
            {"field": field, "type": error_type} if field else None,
        ),
    )


async def survey_exception_handler(request: Request, exc: SurveyError):
    """Map the survey error taxonomy onto HTTP statuses."""
    if isinstance(exc, ValidationError):
        status_code, code, message = status.HTTP_422_UNPROCESSABLE_ENTITY, "VALIDATION_ERROR", exc.message
        details = {"field": exc.field} if exc.field else None
    elif isinstance(exc, AuthenticationError):
        status_code, code, message, details = status.HTTP_401_UNAUTHORIZED, exc.code, exc.detail, None
    elif isinstance(exc, PermissionDeniedError):
        status_code, code, message, details = status.HTTP_403_FORBIDDEN, exc.code, exc.detail, None
    elif isinstance(exc, TransientApiError):
        status_code, code, message, details = (
            status.HTTP_503_SERVICE_UNAVAILABLE, exc.code, USER_FACING_RETRY_MESSAGE, None,
        )
    elif isinstance(exc, ApiError):
        status_code, code, message = status.HTTP_502_BAD_GATEWAY, exc.code, exc.detail
        details = {"upstream_status": exc.status} if exc.status else None
    elif isinstance(exc, LocalStoreError):
        status_code, code, message, details = (
            status.HTTP_503_SERVICE_UNAVAILABLE, "LOCAL_STORE_ERROR", exc.message, None,
        )
    else:
        status_code, code, message, details = status.HTTP_500_INTERNAL_SERVER_ERROR, "SURVEY_ERROR", str(exc), None

    return JSONResponse(status_code=status_code, content=error_content(code, message, details))



#  Exception Helpers


def raise_error(status_code: int, error_code: str, message: str):
    raise HTTPException(
        status_code=status_code,
        detail=ErrorResponse(error_code=error_code, message=message).model_dump(mode="json"),
    )

def raise_session_not_found():
    raise_error(status.HTTP_404_NOT_FOUND, "SESSION_NOT_FOUND", "No active survey session with this id")
