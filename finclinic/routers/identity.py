"""
Identity Router - Financial Clinic Survey Service
finclinic/routers/identity.py

Inspect and manage the credentials a device holds. Token values are never
returned, only which kinds are present.
"""

import structlog
from fastapi import APIRouter, Depends

from finclinic.core.dependencies import DeviceServices, get_device_services
from finclinic.models.api import CredentialUpdate, IdentityResponse
from finclinic.services.credentials import (
    ADMIN_SESSION_KEY,
    FULL_SESSION_KEY,
    SIMPLE_SESSION_KEY,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Identity"])


def identity_response(services: DeviceServices) -> IdentityResponse:
    return IdentityResponse(
        mode=services.identity.current_mode(),
        authenticated_for_survey=services.identity.is_authenticated_for_survey_purposes(),
        credentials_present=services.credentials.present(),
    )


@router.get(
    "/identity",
    response_model=IdentityResponse,
    summary="Current identity mode",
)
async def get_identity(services: DeviceServices = Depends(get_device_services)) -> IdentityResponse:
    return identity_response(services)


@router.put(
    "/identity/credentials",
    response_model=IdentityResponse,
    summary="Store credentials",
    description="Stores the given tokens for the device. Omitted tokens are left untouched.",
)
async def set_credentials(
    update: CredentialUpdate,
    services: DeviceServices = Depends(get_device_services),
) -> IdentityResponse:
    tokens = {
        SIMPLE_SESSION_KEY: update.simple_session,
        FULL_SESSION_KEY: update.full_session,
        ADMIN_SESSION_KEY: update.admin_session,
    }
    for key, value in tokens.items():
        if value:
            services.credentials.set(key, value)

    response = identity_response(services)
    logger.info("credentials_updated", mode=response.mode.value)
    return response


@router.delete(
    "/identity/credentials",
    response_model=IdentityResponse,
    summary="Sign out",
    description="Clears every stored credential for the device.",
)
async def clear_credentials(services: DeviceServices = Depends(get_device_services)) -> IdentityResponse:
    services.credentials.clear_all()
    logger.info("credentials_cleared")
    return identity_response(services)
