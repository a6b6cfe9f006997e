"""
Guest Data Migration - Financial Clinic Survey Service
finclinic/services/migration.py

Moves a guest's locally cached profile and history to the authenticated
account, item by item. Per-item failures are logged and counted in the
MigrationReport; only authentication failures abort the batch.

There is no guard against running twice: a second run with the same local
data re-submits every record.
"""
from typing import List, Optional

import structlog
from pydantic import BaseModel, Field

from finclinic.config import Settings, settings as default_settings
from finclinic.core.exceptions import (
    ApiError,
    AuthenticationError,
    PermissionDeniedError,
)
from finclinic.models.enumerations import MigrationPolicy
from finclinic.repositories.history_repository import HistoryRepository
from finclinic.repositories.profile_repository import ProfileRepository
from finclinic.services.api_client import SurveyApiClient

logger = structlog.get_logger(__name__)


class MigrationReport(BaseModel):
    """Outcome of one migration run."""

    had_guest_data: bool = False
    profile_found: bool = False
    profile_migrated: bool = False
    records_found: int = 0
    records_migrated: int = 0
    failed_record_ids: List[str] = Field(default_factory=list)
    caches_cleared: bool = False
    policy: MigrationPolicy = MigrationPolicy.CLEAR_ALWAYS

    @property
    def fully_succeeded(self) -> bool:
        profile_ok = self.profile_migrated or not self.profile_found
        return profile_ok and not self.failed_record_ids


class MigrationCoordinator:
    def __init__(
        self,
        api: SurveyApiClient,
        profiles: ProfileRepository,
        history: HistoryRepository,
        policy: Optional[MigrationPolicy] = None,
        config: Settings = default_settings,
    ):
        self.api = api
        self.profiles = profiles
        self.history = history
        self.policy = policy or MigrationPolicy(config.MIGRATION_CLEAR_POLICY)

    async def migrate_guest_data(self) -> MigrationReport:
        """
        Upload guest profile and history to the signed-in account.

        Raises:
            AuthenticationError: caller is not authenticated for survey purposes,
                or the remote rejected the credentials mid-batch.
        """
        if not self.api.identity.is_authenticated_for_survey_purposes():
            raise AuthenticationError("User must be authenticated to migrate guest data")

        profile = self.profiles.get_local()
        # Oldest first so remote creation order matches the original order.
        records = list(reversed(self.history.get_local()))

        report = MigrationReport(
            had_guest_data=bool(profile or records),
            profile_found=profile is not None,
            records_found=len(records),
            policy=self.policy,
        )
        if not report.had_guest_data:
            logger.info("migration_noop")
            return report

        logger.info("migration_started", profile=report.profile_found, records=report.records_found)

        if profile is not None:
            try:
                await self.profiles.push_remote(profile)
                report.profile_migrated = True
            except (AuthenticationError, PermissionDeniedError):
                raise
            except ApiError as e:
                logger.warning("migration_profile_failed", error=str(e))

        for record in records:
            if not record.responses:
                logger.warning("migration_record_skipped", record_id=record.id, reason="no_responses")
                report.failed_record_ids.append(record.id)
                continue
            try:
                await self.api.submit(record.responses)
                report.records_migrated += 1
            except (AuthenticationError, PermissionDeniedError):
                raise
            except ApiError as e:
                logger.warning("migration_record_failed", record_id=record.id, error=str(e))
                report.failed_record_ids.append(record.id)

        if self.policy == MigrationPolicy.CLEAR_ALWAYS or report.fully_succeeded:
            self.history.clear_local()
            self.profiles.clear_local()
            report.caches_cleared = True

        logger.info(
            "migration_finished",
            profile_migrated=report.profile_migrated,
            records_migrated=report.records_migrated,
            records_failed=len(report.failed_record_ids),
            caches_cleared=report.caches_cleared,
            policy=self.policy.value,
        )
        return report
