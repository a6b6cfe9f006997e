"""
Request/response bodies for the HTTP surface and the remote service payloads.

Remote payloads are parsed leniently (unknown fields ignored, most fields
optional) since the remote schema is not versioned.
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from finclinic.models.enumerations import IdentityMode
from finclinic.models.profile import SurveyProfile
from finclinic.models.score import ScoreRecord, ScoreResult


# ---------------------------------------------------------------------------
# Remote service payloads
# ---------------------------------------------------------------------------

class RemotePillarScore(BaseModel):
    model_config = ConfigDict(extra="ignore")

    factor: str
    name: Optional[str] = None
    score: float = 0
    max_score: int = 0
    percentage: float = 0


class RemotePreview(BaseModel):
    model_config = ConfigDict(extra="ignore")

    total_score: float = 0
    max_possible_score: int = 75
    pillar_scores: List[RemotePillarScore] = Field(default_factory=list)


class RemoteRecommendation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    description: Optional[str] = None
    title: Optional[str] = None


class RemoteSurveyResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[Union[int, str]] = None
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None


class RemoteSubmission(BaseModel):
    model_config = ConfigDict(extra="ignore")

    survey_response: RemoteSurveyResponse = Field(default_factory=RemoteSurveyResponse)
    recommendations: List[RemoteRecommendation] = Field(default_factory=list)
    score_breakdown: Dict[str, Any] = Field(default_factory=dict)


class RemoteSession(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    session_id: str
    current_step: int = 0
    total_steps: int = 0
    started_at: Optional[datetime] = None


class RemoteHistoryItem(BaseModel):
    """One entry of the remote history list. Pillar breakdown is optional."""

    model_config = ConfigDict(extra="ignore")

    id: Any = None
    user_id: Optional[int] = None
    responses: Any = None
    overall_score: float = 0
    max_possible_score: Optional[int] = None
    pillar_scores: Optional[List[RemotePillarScore]] = None
    created_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# HTTP surface
# ---------------------------------------------------------------------------

class IdentityResponse(BaseModel):
    mode: IdentityMode
    authenticated_for_survey: bool
    credentials_present: Dict[str, bool]


class CredentialUpdate(BaseModel):
    """Tokens to store for the device. Omitted tokens are left untouched."""

    simple_session: Optional[str] = None
    full_session: Optional[str] = None
    admin_session: Optional[str] = None


class ScoreRequest(BaseModel):
    responses: Dict[str, int]
    has_children: bool = False


class SessionStartRequest(BaseModel):
    total_steps: int = Field(..., ge=1, le=100)
    email: Optional[str] = None
    phone_number: Optional[str] = None
    has_children: Optional[bool] = Field(
        default=None,
        description="Include the children-planning question (defaults to the stored profile)"
    )


class SessionStartResponse(BaseModel):
    session_id: str


class SessionUpdateRequest(BaseModel):
    current_step: int = Field(..., ge=0)
    responses: Dict[str, int] = Field(default_factory=dict)


class SubmissionRequest(BaseModel):
    responses: Dict[str, int]
    profile: Optional[SurveyProfile] = None


class HistoryResponse(BaseModel):
    items: List[ScoreRecord]
    total: int
    source: str = Field(..., description="'remote' or 'local'")


class MessageResponse(BaseModel):
    message: str


class QuestionResponse(BaseModel):
    id: str
    number: int
    text: str
    pillar: str
    conditional: bool


class QuestionListResponse(BaseModel):
    items: List[QuestionResponse]
    total: int
    max_possible_score: int


class PillarDescription(BaseModel):
    pillar: str
    description: str


class ScorePreviewResponse(BaseModel):
    result: ScoreResult
    advice: List[str]
    descriptions: List[PillarDescription]
