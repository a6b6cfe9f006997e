"""
Survey Submission - Financial Clinic Survey Service
finclinic/services/submission.py

Submits a completed questionnaire and turns the outcome into a ScoreRecord.
The remote service is authoritative for scoring; the local pipeline is used
when the preview endpoint cannot be reached.
"""
from typing import Dict, List, Mapping, Optional, Tuple
from uuid import uuid4

import structlog

from finclinic.core.exceptions import (
    ApiError,
    AuthenticationError,
    PermissionDeniedError,
    ProfileRequiredError,
    TransientApiError,
    USER_FACING_RETRY_MESSAGE,
)
from finclinic.models.api import RemotePreview, RemoteSubmission
from finclinic.models.enumerations import Pillar
from finclinic.models.profile import SurveyProfile
from finclinic.models.score import PillarScore, ScoreRecord, ScoreResult
from finclinic.repositories.history_repository import HistoryRepository
from finclinic.repositories.profile_repository import ProfileRepository
from finclinic.scoring.advice import generate_advice
from finclinic.scoring.pillar_calculator import (
    compute_score,
    interpretation_band,
    overall_interpretation,
    validate_responses,
)
from finclinic.scoring.questions import QUESTIONS_BY_ID
from finclinic.services.api_client import SurveyApiClient
from finclinic.services.background import BackgroundTasks
from finclinic.services.session_store import SessionStore

logger = structlog.get_logger(__name__)

SOURCE_REMOTE = "remote"
SOURCE_LOCAL = "local"


def _points_by_pillar(responses: Mapping[str, int]) -> Dict[Pillar, int]:
    points: Dict[Pillar, int] = {}
    for question_id, value in responses.items():
        pillar = QUESTIONS_BY_ID[question_id].pillar
        points[pillar] = points.get(pillar, 0) + value
    return points


def result_from_remote(preview: RemotePreview, responses: Mapping[str, int]) -> ScoreResult:
    """Remote preview -> ScoreResult. Points come from the answers themselves."""
    points = _points_by_pillar(responses)
    pillar_scores = [
        PillarScore(
            pillar=Pillar(p.factor),
            score=p.score,
            points=points.get(Pillar(p.factor), 0),
            max_points=p.max_score,
            percentage=p.percentage,
            interpretation=interpretation_band(p.score),
        )
        for p in preview.pillar_scores
    ]
    return ScoreResult(
        total_score=preview.total_score,
        max_possible_score=preview.max_possible_score,
        pillar_scores=pillar_scores,
        interpretation=overall_interpretation(preview.total_score),
    )


class SubmissionService:
    def __init__(
        self,
        api: SurveyApiClient,
        profiles: ProfileRepository,
        history: HistoryRepository,
        sessions: SessionStore,
        background: BackgroundTasks,
    ):
        self.api = api
        self.profiles = profiles
        self.history = history
        self.sessions = sessions
        self.background = background

    async def preview(
        self,
        responses: Mapping[str, int],
        profile: Optional[SurveyProfile] = None,
    ) -> Tuple[ScoreResult, str]:
        """Remote preview, or the local pipeline when the remote cannot provide one."""
        has_children = profile.has_children if profile else False
        validate_responses(responses, has_children)

        try:
            remote = await self.api.preview(responses, profile)
            return result_from_remote(remote, responses), SOURCE_REMOTE
        except (AuthenticationError, PermissionDeniedError):
            raise
        except ApiError as e:
            logger.warning("remote_preview_unavailable", error=str(e), fallback=SOURCE_LOCAL)
        except ValueError as e:
            logger.warning("remote_preview_malformed", error=str(e), fallback=SOURCE_LOCAL)
        return compute_score(responses, has_children), SOURCE_LOCAL

    async def submit(
        self,
        responses: Mapping[str, int],
        profile: Optional[SurveyProfile] = None,
    ) -> ScoreRecord:
        """
        Submit answers and build the ScoreRecord.

        Raises:
            ValidationError: invalid answers
            ProfileRequiredError: authenticated caller without a profile
            TransientApiError: remote unreachable after retries
        """
        profile = profile or self.profiles.get_local()
        has_children = profile.has_children if profile else False
        validate_responses(responses, has_children)

        authenticated = self.api.identity.is_authenticated_for_survey_purposes()
        if authenticated and profile is None:
            raise ProfileRequiredError()

        try:
            if authenticated:
                remote = await self.api.submit(responses)
            else:
                remote = await self.api.submit_guest(responses)
        except TransientApiError as e:
            logger.error("submission_failed", error=str(e), authenticated=authenticated)
            raise TransientApiError(USER_FACING_RETRY_MESSAGE, status=e.status, url=e.url) from e

        result, source = await self.preview(responses, profile)
        record = self._build_record(remote, result, responses, profile)

        self.history.append_record(record)

        active = self.sessions.resume_session()
        if active is not None:
            self.background.spawn(
                self.sessions.complete_session(active.session_id),
                name=f"session_complete:{active.session_id}",
            )

        logger.info(
            "survey_submitted",
            record_id=record.id,
            total_score=record.total_score,
            max_possible_score=record.max_possible_score,
            score_source=source,
            authenticated=authenticated,
        )
        return record

    def _build_record(
        self,
        remote: RemoteSubmission,
        result: ScoreResult,
        responses: Mapping[str, int],
        profile: Optional[SurveyProfile],
    ) -> ScoreRecord:
        advice: List[str] = [r.description for r in remote.recommendations if r.description]
        if not advice:
            advice = generate_advice(result.pillar_scores, result.total_score)

        remote_id = remote.survey_response.id
        extra = {"created_at": remote.survey_response.created_at} if remote.survey_response.created_at else {}
        return ScoreRecord(
            id=str(remote_id) if remote_id is not None else uuid4().hex,
            profile_snapshot=profile,
            responses=dict(responses),
            total_score=result.total_score,
            max_possible_score=result.max_possible_score,
            pillar_scores=result.pillar_scores,
            advice=advice,
            survey_response_id=remote_id if isinstance(remote_id, int) else None,
            **extra,
        )
