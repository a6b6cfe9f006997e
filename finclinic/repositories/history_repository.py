"""
History Repository - Financial Clinic Survey Service
finclinic/repositories/history_repository.py

Completed assessment results (ScoreRecord):

  authenticated -> remote history, mapped into ScoreRecord shape; falls back
                   to the local cache when the remote call fails
  guest         -> local cache only
"""

from decimal import Decimal
from typing import List, Tuple
from uuid import uuid4

import structlog

from finclinic.config import Settings, settings as default_settings
from finclinic.core.exceptions import ApiError
from finclinic.models.api import RemoteHistoryItem, RemotePillarScore
from finclinic.models.enumerations import Pillar
from finclinic.models.score import PillarScore, ScoreRecord
from finclinic.repositories.base import BaseRepository
from finclinic.scoring.pillar_calculator import interpretation_band
from finclinic.scoring.questions import PILLAR_ORDER, POINTS_PER_QUESTION, pillar_budgets
from finclinic.scoring.utils import clamp, percentage, to_decimal
from finclinic.services.api_client import SurveyApiClient
from finclinic.services.local_store import HISTORY_KEY, LocalStore

logger = structlog.get_logger(__name__)

HISTORICAL_ADVICE = "Historical survey data - detailed recommendations available after new assessment"

SOURCE_REMOTE = "remote"
SOURCE_LOCAL = "local"


def _pillar_from_remote(remote: RemotePillarScore) -> PillarScore:
    score = float(clamp(to_decimal(remote.score, places=2), Decimal(0), Decimal(5)))
    return PillarScore(
        pillar=Pillar(remote.factor),
        score=score,
        points=round(score * remote.max_score / POINTS_PER_QUESTION, 2),
        max_points=remote.max_score,
        percentage=float(clamp(to_decimal(remote.percentage), Decimal(0), Decimal(100))),
        interpretation=interpretation_band(score),
    )


def approximate_pillars(overall_score: float, has_children: bool = False) -> List[PillarScore]:
    """
    Synthesise a breakdown from a single overall value: every pillar gets the
    average answer (overall / question count). Flagged as approximated.
    """
    budgets = pillar_budgets(has_children)
    question_count = sum(budgets.values()) / POINTS_PER_QUESTION
    average = clamp(to_decimal(overall_score / question_count, places=2), Decimal(0), Decimal(5))
    return [
        PillarScore(
            pillar=pillar,
            score=float(average),
            points=round(float(average) * budgets[pillar] / POINTS_PER_QUESTION, 2),
            max_points=budgets[pillar],
            percentage=float(percentage(average)),
            interpretation=interpretation_band(float(average)),
            approximated=True,
        )
        for pillar in PILLAR_ORDER
    ]


def map_remote_item(item: RemoteHistoryItem) -> ScoreRecord:
    """Remote history entry -> ScoreRecord."""
    max_possible = item.max_possible_score or 75
    if item.pillar_scores:
        pillars = [_pillar_from_remote(p) for p in item.pillar_scores]
        advice = []
    else:
        pillars = approximate_pillars(item.overall_score, has_children=max_possible > 75)
        advice = [HISTORICAL_ADVICE]

    return ScoreRecord(
        id=str(item.id) if item.id is not None else uuid4().hex,
        responses=item.responses or {},
        total_score=max(item.overall_score, 0),
        max_possible_score=max_possible,
        pillar_scores=pillars,
        advice=advice,
        created_at=item.created_at or BaseRepository._now(),
        survey_response_id=item.id if isinstance(item.id, int) else None,
    )


class HistoryRepository(BaseRepository):
    """Repository for completed assessment results."""

    def __init__(self, store: LocalStore, api: SurveyApiClient, config: Settings = default_settings):
        super().__init__(store, api)
        self.config = config

    async def get_history(self) -> Tuple[List[ScoreRecord], str]:
        """
        Newest-first records and where they came from ("remote" or "local").

        Remote errors never propagate; the local cache is returned instead.
        """
        if self.authenticated:
            try:
                items = await self.api.history(skip=0, limit=self.config.HISTORY_PAGE_LIMIT)
            except ApiError as e:
                logger.warning("remote_history_failed", error=str(e), fallback=SOURCE_LOCAL)
            else:
                records = []
                for item in items:
                    try:
                        records.append(map_remote_item(item))
                    except ValueError as e:
                        logger.warning("remote_history_item_skipped", item_id=item.id, error=str(e))
                return self._newest_first(records), SOURCE_REMOTE

        return self.get_local(), SOURCE_LOCAL

    def get_local(self) -> List[ScoreRecord]:
        return self._newest_first(self._read_list(HISTORY_KEY, ScoreRecord))

    def append_record(self, record: ScoreRecord) -> bool:
        """Persist locally when not authenticated. Returns whether it was stored."""
        if self.authenticated:
            return False
        records = self._read_list(HISTORY_KEY, ScoreRecord)
        records.append(record)
        self.store.set_json(HISTORY_KEY, [r.model_dump(mode="json") for r in records])
        logger.info("history_record_stored", record_id=record.id, count=len(records))
        return True

    def clear_local(self) -> None:
        self.store.delete(HISTORY_KEY)

    @staticmethod
    def _newest_first(records: List[ScoreRecord]) -> List[ScoreRecord]:
        return sorted(records, key=lambda r: r.created_at, reverse=True)
