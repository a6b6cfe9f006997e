from pydantic import BaseModel, ConfigDict, Field, model_validator
from datetime import datetime, timezone
from typing import Dict, Optional
from uuid import uuid4

from finclinic.models.enumerations import SessionStatus
from finclinic.scoring.questions import CONDITIONAL_QUESTION_ID


LOCAL_ID_PREFIX = "local-"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SurveySession(BaseModel):
    """
    In-progress assessment attempt, mirrored in the local store.
    """

    model_config = ConfigDict(extra="ignore")

    session_id: str = Field(
        default_factory=lambda: f"{LOCAL_ID_PREFIX}{uuid4().hex}",
        description="Local identifier, replaced by the remote one once created upstream"
    )

    local_id: Optional[str] = Field(
        default=None,
        description="Original local identifier, kept as an alias after the remote swap"
    )

    has_children: bool = Field(
        default=False,
        description="Whether the children-planning question is part of this session"
    )

    current_step: int = Field(default=0, ge=0)

    total_steps: int = Field(..., ge=0)

    responses: Dict[str, int] = Field(default_factory=dict)

    started_at: datetime = Field(default_factory=_utcnow)

    last_activity_at: datetime = Field(default_factory=_utcnow)

    status: SessionStatus = SessionStatus.IN_PROGRESS

    email: Optional[str] = None

    phone_number: Optional[str] = None

    remote_synced: bool = Field(
        default=False,
        description="True once the remote backend acknowledged the session"
    )

    @model_validator(mode="after")
    def validate_step_bounds(self):
        """Ensure 0 <= current_step <= total_steps."""
        if self.current_step > self.total_steps:
            raise ValueError("current_step must be <= total_steps")
        return self

    @model_validator(mode="after")
    def validate_conditional_question(self):
        """The children-planning answer only belongs to sessions with children."""
        if not self.has_children and CONDITIONAL_QUESTION_ID in self.responses:
            raise ValueError(f"{CONDITIONAL_QUESTION_ID} requires has_children")
        return self

    def matches(self, session_id: str) -> bool:
        """True for the current id or the local id it replaced."""
        return session_id in (self.session_id, self.local_id)

    def apply_update(self, step: int, responses_delta: Dict[str, int]) -> "SurveySession":
        """
        Return a copy with responses merged (last write wins per key) and the
        step advanced to max(current, step). The step never regresses, so
        out-of-order UI updates cannot move progress backwards.
        """
        merged = {**self.responses, **responses_delta}
        bounded = min(max(step, 0), self.total_steps)
        return self.model_copy(
            update={
                "responses": merged,
                "current_step": max(self.current_step, bounded),
                "last_activity_at": _utcnow(),
            }
        )

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.IN_PROGRESS
