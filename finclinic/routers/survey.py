"""
Survey Router - Financial Clinic Survey Service
finclinic/routers/survey.py

Questionnaire, in-progress sessions, scoring, submission, history,
guest migration and the survey profile. Every route is scoped to the
device named in the X-Device-Id header.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from finclinic.core.dependencies import DeviceServices, get_device_services
from finclinic.models.api import (
    HistoryResponse,
    MessageResponse,
    PillarDescription,
    QuestionListResponse,
    QuestionResponse,
    ScorePreviewResponse,
    ScoreRequest,
    SessionStartRequest,
    SessionStartResponse,
    SessionUpdateRequest,
    SubmissionRequest,
)
from finclinic.models.profile import SurveyProfile
from finclinic.models.score import ScoreRecord
from finclinic.models.session import SurveySession
from finclinic.routers.errors import ErrorResponse, raise_session_not_found
from finclinic.scoring.advice import generate_advice
from finclinic.scoring.pillar_calculator import compute_score, describe_pillar
from finclinic.scoring.questions import max_possible_score, questions_for
from finclinic.services.migration import MigrationReport

router = APIRouter(prefix="/api/v1")

ERROR_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Authentication required"},
    422: {"model": ErrorResponse, "description": "Invalid answers or missing profile"},
    503: {"model": ErrorResponse, "description": "Remote service unreachable"},
}



#  Questionnaire and scoring


@router.get(
    "/questions",
    response_model=QuestionListResponse,
    tags=["Questionnaire"],
    summary="Questions shown to a respondent",
)
async def list_questions(
    has_children: bool = Query(False, description="Include the children-planning question"),
) -> QuestionListResponse:
    items = [
        QuestionResponse(
            id=q.id,
            number=q.number,
            text=q.text,
            pillar=q.pillar.value,
            conditional=q.conditional,
        )
        for q in questions_for(has_children)
    ]
    return QuestionListResponse(
        items=items,
        total=len(items),
        max_possible_score=max_possible_score(has_children),
    )


@router.post(
    "/scoring/preview",
    response_model=ScorePreviewResponse,
    responses={422: ERROR_RESPONSES[422]},
    tags=["Scoring"],
    summary="Score answers locally",
    description="Runs the local scoring pipeline. No data is stored and no remote call is made.",
)
async def preview_score(request: ScoreRequest) -> ScorePreviewResponse:
    result = compute_score(request.responses, request.has_children)
    return ScorePreviewResponse(
        result=result,
        advice=generate_advice(result.pillar_scores, result.total_score),
        descriptions=[
            PillarDescription(pillar=p.pillar.value, description=describe_pillar(p.pillar, p.score))
            for p in result.pillar_scores
        ],
    )



#  Sessions


@router.post(
    "/sessions",
    response_model=SessionStartResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Sessions"],
    summary="Start or resume a survey session",
    description="Returns the active session id if one is in progress, otherwise starts a new one.",
)
async def start_session(
    request: SessionStartRequest,
    services: DeviceServices = Depends(get_device_services),
) -> SessionStartResponse:
    has_children = request.has_children
    if has_children is None:
        profile = services.profiles.get_local()
        has_children = profile.has_children if profile else False

    session_id = await services.sessions.start_session(
        request.total_steps,
        email=request.email,
        phone_number=request.phone_number,
        has_children=has_children,
    )
    return SessionStartResponse(session_id=session_id)


@router.get(
    "/sessions/current",
    response_model=Optional[SurveySession],
    tags=["Sessions"],
    summary="Resume the in-progress session",
    description="Reads the local mirror only. Returns null when there is nothing to resume.",
)
async def current_session(services: DeviceServices = Depends(get_device_services)) -> Optional[SurveySession]:
    return services.sessions.resume_session()


@router.patch(
    "/sessions/{session_id}",
    response_model=SurveySession,
    responses={404: {"model": ErrorResponse}, 422: ERROR_RESPONSES[422]},
    tags=["Sessions"],
    summary="Save progress",
)
async def update_session(
    session_id: str,
    request: SessionUpdateRequest,
    services: DeviceServices = Depends(get_device_services),
) -> SurveySession:
    session = services.sessions.update_session(session_id, request.current_step, request.responses)
    if session is None:
        raise_session_not_found()
    return session


@router.post(
    "/sessions/{session_id}/complete",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Sessions"],
    summary="Complete a session",
)
async def complete_session(
    session_id: str,
    services: DeviceServices = Depends(get_device_services),
) -> MessageResponse:
    if not await services.sessions.complete_session(session_id):
        raise_session_not_found()
    return MessageResponse(message="Survey session completed")



#  Submission and history


@router.post(
    "/submissions",
    response_model=ScoreRecord,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    tags=["Submissions"],
    summary="Submit a completed survey",
)
async def submit_survey(
    request: SubmissionRequest,
    services: DeviceServices = Depends(get_device_services),
) -> ScoreRecord:
    return await services.submissions.submit(request.responses, request.profile)


@router.get(
    "/history",
    response_model=HistoryResponse,
    tags=["Submissions"],
    summary="Past results, newest first",
)
async def get_history(services: DeviceServices = Depends(get_device_services)) -> HistoryResponse:
    records, source = await services.history.get_history()
    return HistoryResponse(items=records, total=len(records), source=source)


@router.post(
    "/migration",
    response_model=MigrationReport,
    responses={401: ERROR_RESPONSES[401]},
    tags=["Submissions"],
    summary="Move guest data to the signed-in account",
)
async def migrate_guest_data(services: DeviceServices = Depends(get_device_services)) -> MigrationReport:
    return await services.migration.migrate_guest_data()



#  Profile


@router.get(
    "/profile",
    response_model=Optional[SurveyProfile],
    tags=["Profile"],
    summary="Stored survey profile",
)
async def get_profile(services: DeviceServices = Depends(get_device_services)) -> Optional[SurveyProfile]:
    return services.profiles.get_local()


@router.put(
    "/profile",
    response_model=SurveyProfile,
    responses={401: ERROR_RESPONSES[401], 503: ERROR_RESPONSES[503]},
    tags=["Profile"],
    summary="Save the survey profile",
    description="Cached on the device; also pushed to the remote service when signed in.",
)
async def save_profile(
    profile: SurveyProfile,
    services: DeviceServices = Depends(get_device_services),
) -> SurveyProfile:
    return await services.profiles.save(profile)
