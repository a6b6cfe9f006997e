from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import uuid4

from finclinic.models.enumerations import InterpretationBand, Pillar
from finclinic.models.profile import SurveyProfile


class PillarScore(BaseModel):
    """
    Score for one pillar.
    """

    model_config = ConfigDict(frozen=True)

    pillar: Pillar = Field(..., description="One of the seven pillars")

    score: float = Field(
        ...,
        ge=0,
        le=5,
        description="Mean of the pillar's answered values (1-5 scale, 0 if unanswered)"
    )

    points: float = Field(
        default=0,
        ge=0,
        description="Contribution to the total score"
    )

    max_points: int = Field(..., ge=0, description="Point budget of the pillar")

    percentage: float = Field(..., ge=0, le=100)

    interpretation: InterpretationBand

    approximated: bool = Field(
        default=False,
        description="Synthesised from a single overall value, not a real breakdown"
    )


class ScoreResult(BaseModel):
    """
    Output of the scoring pipeline.
    """

    model_config = ConfigDict(frozen=True)

    total_score: float = Field(..., ge=0)

    max_possible_score: int = Field(..., description="75, or 80 with the children question")

    pillar_scores: List[PillarScore]

    interpretation: InterpretationBand

    @model_validator(mode="after")
    def validate_budgets(self):
        """Pillar budgets must add up to the overall maximum."""
        if self.pillar_scores and sum(p.max_points for p in self.pillar_scores) != self.max_possible_score:
            raise ValueError("pillar max_points must sum to max_possible_score")
        return self


class ScoreRecord(BaseModel):
    """
    Immutable, completed assessment result.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(default_factory=lambda: uuid4().hex)

    profile_snapshot: Optional[SurveyProfile] = None

    responses: Dict[str, int] = Field(default_factory=dict)

    total_score: float = Field(default=0, ge=0)

    max_possible_score: int = 75

    pillar_scores: List[PillarScore] = Field(default_factory=list)

    advice: List[str] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    survey_response_id: Optional[int] = Field(
        default=None,
        description="Identifier assigned by the remote service, when submitted there"
    )

    @field_validator("responses", mode="before")
    @classmethod
    def coerce_response_list(cls, value):
        """Accept the legacy [{questionId, value}, ...] shape."""
        if isinstance(value, list):
            out = {}
            for item in value:
                if not isinstance(item, dict):
                    continue
                qid = item.get("questionId") or item.get("question_id")
                if qid is not None and item.get("value") is not None:
                    out[str(qid)] = int(item["value"])
            return out
        return value

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        """Naive timestamps (older entries, some remote rows) are UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def interpretation(self) -> InterpretationBand:
        from finclinic.scoring.pillar_calculator import overall_interpretation
        return overall_interpretation(self.total_score)
