"""
Profile Repository - Financial Clinic Survey Service
finclinic/repositories/profile_repository.py

The demographic profile is cached locally for every identity and pushed to
the remote service when the caller is authenticated.
"""

from typing import Any, Dict, Optional

import structlog

from finclinic.core.exceptions import (
    ApiError,
    AuthenticationError,
    ConflictError,
    PermissionDeniedError,
)
from finclinic.models.profile import SurveyProfile
from finclinic.repositories.base import BaseRepository
from finclinic.services.local_store import PROFILE_KEY

logger = structlog.get_logger(__name__)


class ProfileRepository(BaseRepository):
    """Repository for the survey profile."""

    def get_local(self) -> Optional[SurveyProfile]:
        """
        Retrieve the cached profile.

        Returns:
            SurveyProfile, or None when absent or unreadable
        """
        return self.store.get(PROFILE_KEY, SurveyProfile)

    def save_local(self, profile: SurveyProfile) -> None:
        self.store.set(PROFILE_KEY, profile)

    def clear_local(self) -> None:
        self.store.delete(PROFILE_KEY)

    async def save(self, profile: SurveyProfile) -> SurveyProfile:
        """
        Cache the profile locally, then push it upstream when authenticated.

        Remote errors propagate; the local copy is kept either way.
        """
        self.save_local(profile)
        if self.authenticated:
            await self.push_remote(profile)
        return profile

    async def push_remote(self, profile: SurveyProfile) -> Dict[str, Any]:
        """
        Create the remote profile, falling back to update when it already
        exists (409) or the create fails for any non-auth reason.
        Fields are sent as-is; nothing is merged with the remote copy.
        """
        try:
            return await self.api.create_profile(profile)
        except (AuthenticationError, PermissionDeniedError):
            raise
        except ConflictError:
            logger.info("profile_exists_updating")
        except ApiError as e:
            logger.warning("profile_create_failed_updating", error=str(e))
        return await self.api.update_profile(profile)
