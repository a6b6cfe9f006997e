"""
Session Store - Financial Clinic Survey Service
finclinic/services/session_store.py

Write-through cache for the in-progress survey session:

  - the local mirror is written first, synchronously, and is authoritative
    for resume
  - the remote copy is created and synced in the background and may lag by
    any number of updates; remote failures are logged, never surfaced
  - once the remote create succeeds the mirror carries the remote id, and
    the original local id stays valid as an alias
"""
from typing import Mapping, Optional

import structlog

from finclinic.core.exceptions import ApiError, ValidationError
from finclinic.models.enumerations import SessionStatus
from finclinic.models.session import LOCAL_ID_PREFIX, SurveySession
from finclinic.scoring.questions import (
    CONDITIONAL_QUESTION_ID,
    MAX_ANSWER,
    MIN_ANSWER,
    QUESTIONS_BY_ID,
)
from finclinic.services.api_client import SurveyApiClient
from finclinic.services.background import BackgroundTasks
from finclinic.services.local_store import SESSION_KEY, LocalStore

logger = structlog.get_logger(__name__)


def is_local_id(session_id: str) -> bool:
    return session_id.startswith(LOCAL_ID_PREFIX)


def validate_delta(responses_delta: Mapping[str, int], has_children: bool = False) -> None:
    """Partial answers: known question ids, integer values within 1..5."""
    for question_id, value in responses_delta.items():
        if question_id not in QUESTIONS_BY_ID:
            raise ValidationError(f"Unknown question '{question_id}'", field=question_id)
        if question_id == CONDITIONAL_QUESTION_ID and not has_children:
            raise ValidationError(
                f"'{question_id}' is only asked when the respondent has children",
                field=question_id,
            )
        if isinstance(value, bool) or not isinstance(value, int) or not MIN_ANSWER <= value <= MAX_ANSWER:
            raise ValidationError(
                f"Answer to '{question_id}' must be an integer between {MIN_ANSWER} and {MAX_ANSWER}",
                field=question_id,
            )


class SessionStore:
    def __init__(self, store: LocalStore, api: SurveyApiClient, background: BackgroundTasks):
        self.store = store
        self.api = api
        self.background = background

    # ------------------------------------------------------------------
    # Local mirror
    # ------------------------------------------------------------------

    def _load(self) -> Optional[SurveySession]:
        session = self.store.get(SESSION_KEY, SurveySession)
        if session is None and self.store.get_raw(SESSION_KEY):
            logger.warning("corrupt_session_removed")
            self.store.delete(SESSION_KEY)
        return session

    def _save(self, session: SurveySession) -> None:
        self.store.set(SESSION_KEY, session)

    def resume_session(self) -> Optional[SurveySession]:
        """Local mirror only, no network. Corrupt or missing entries give None."""
        session = self._load()
        if session is None or not session.is_active:
            return None
        return session

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start_session(
        self,
        total_steps: int,
        email: Optional[str] = None,
        phone_number: Optional[str] = None,
        has_children: bool = False,
    ) -> str:
        """
        Create (or reuse) the active session and return its local identifier.

        Returns as soon as the mirror is written. An in-progress local session
        is reused so repeated starts do not create duplicates upstream. When
        authenticated, the remote create runs in the background and swaps the
        remote id into the mirror on success.
        """
        existing = self.resume_session()
        if existing is not None:
            logger.info("session_reused", session_id=existing.session_id)
            return existing.session_id

        session = SurveySession(
            total_steps=total_steps,
            email=email,
            phone_number=phone_number,
            has_children=has_children,
        )
        self._save(session)
        logger.info("session_started", session_id=session.session_id, total_steps=total_steps)

        if self.api.identity.is_authenticated_for_survey_purposes():
            self.background.spawn(
                self._create_remote(session),
                name=f"session_start:{session.session_id}",
            )
        return session.session_id

    async def _create_remote(self, session: SurveySession) -> None:
        try:
            remote = await self.api.start_session(
                total_steps=session.total_steps,
                email=session.email,
                phone_number=session.phone_number,
            )
        except ApiError as e:
            logger.warning("remote_start_failed", session_id=session.session_id, error=str(e))
            return

        current = self._load()
        if current is None or current.session_id != session.session_id or not current.is_active:
            # Completed or replaced while the create was in flight.
            logger.info("remote_session_orphaned", local_id=session.session_id, session_id=remote.session_id)
            await self._delete_remote(remote.session_id)
            return

        synced = current.model_copy(update={
            "session_id": remote.session_id,
            "local_id": session.session_id,
            "remote_synced": True,
        })
        self._save(synced)
        logger.info("session_synced", local_id=session.session_id, session_id=remote.session_id)

        # Progress saved before the create finished.
        if synced.current_step or synced.responses:
            await self._push_update(synced)

    def update_session(self, session_id: str, step: int, responses_delta: Mapping[str, int]) -> Optional[SurveySession]:
        """
        Merge answers and advance the step locally, then sync in the background.

        Unknown session ids are a logged no-op (returns None).
        """
        session = self._load()
        validate_delta(responses_delta, session.has_children if session else False)

        if session is None or not session.matches(session_id):
            logger.warning("session_update_ignored", session_id=session_id, reason="unknown_session")
            return None

        updated = session.apply_update(step, dict(responses_delta))
        self._save(updated)
        logger.debug(
            "session_updated",
            session_id=updated.session_id,
            current_step=updated.current_step,
            answered=len(updated.responses),
        )

        if updated.remote_synced and self.api.identity.is_authenticated_for_survey_purposes():
            self.background.spawn(
                self._push_update(updated),
                name=f"session_update:{updated.session_id}",
            )
        return updated

    async def _push_update(self, session: SurveySession) -> None:
        try:
            await self.api.update_session(session.session_id, session.current_step, session.responses)
        except ApiError as e:
            logger.warning("remote_update_failed", session_id=session.session_id, error=str(e))

    async def _delete_remote(self, session_id: str) -> None:
        try:
            await self.api.complete_session(session_id)
        except ApiError as e:
            logger.warning("remote_complete_failed", session_id=session_id, error=str(e))

    async def complete_session(self, session_id: str) -> bool:
        """
        Mark completed, notify the remote, and clear the local mirror.

        A mirror holding a different session is left alone (returns False).
        An absent or unreadable mirror counts as already cleared.
        """
        session = self._load()
        if session is not None and not session.matches(session_id):
            logger.warning("session_complete_ignored", session_id=session_id, reason="unknown_session")
            return False

        remote_id = session.session_id if session is not None else session_id
        if session is not None:
            self._save(session.model_copy(update={"status": SessionStatus.COMPLETED}))

        try:
            # Local ids were never created upstream.
            if self.api.identity.is_authenticated_for_survey_purposes() and not is_local_id(remote_id):
                await self._delete_remote(remote_id)
        finally:
            self.store.delete(SESSION_KEY)
            logger.info("session_completed", session_id=remote_id)
        return True
