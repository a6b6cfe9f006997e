# tests/test_history_repository.py
"""
History retrieval: guest cache, remote mapping and fallback.
"""

from datetime import datetime, timezone

from finclinic.models.enumerations import InterpretationBand, Pillar
from finclinic.models.score import ScoreRecord
from finclinic.repositories.history_repository import (
    HISTORICAL_ADVICE,
    SOURCE_LOCAL,
    SOURCE_REMOTE,
    approximate_pillars,
)
from finclinic.services.local_store import HISTORY_KEY

from conftest import answers

HISTORY = "/surveys/history"


def record(record_id: str, month: int, total: float = 45) -> ScoreRecord:
    return ScoreRecord(
        id=record_id,
        responses=answers(3),
        total_score=total,
        created_at=datetime(2024, month, 1, tzinfo=timezone.utc),
    )


class TestGuestHistory:

    async def test_local_newest_first(self, history, remote):
        for record_id, month in (("a", 1), ("c", 3), ("b", 2)):
            assert history.append_record(record(record_id, month))

        records, source = await history.get_history()

        assert source == SOURCE_LOCAL
        assert [r.id for r in records] == ["c", "b", "a"]
        assert remote.requests == []

    async def test_empty_history(self, history):
        records, source = await history.get_history()
        assert records == []
        assert source == SOURCE_LOCAL

    def test_corrupt_entries_skipped(self, history, store):
        store.set_json(HISTORY_KEY, [
            record("good", 1).model_dump(mode="json"),
            "junk",
            {"total_score": -5},
        ])

        assert [r.id for r in history.get_local()] == ["good"]

    def test_non_list_payload_ignored(self, history, store):
        store.set_json(HISTORY_KEY, {"not": "a list"})
        assert history.get_local() == []

    def test_legacy_entries_readable(self, history, store):
        store.set_json(HISTORY_KEY, [{
            "id": "old",
            "responses": [{"questionId": "q1_income_stability", "value": 4}],
            "total_score": 30,
            "created_at": "2023-06-01T09:00:00",
        }])

        old = history.get_local()[0]
        assert old.responses == {"q1_income_stability": 4}
        assert old.created_at.tzinfo is not None
        assert old.interpretation == InterpretationBand.NEEDS_IMPROVEMENT


class TestAuthenticatedHistory:

    async def test_remote_items_mapped(self, history, remote, sign_in):
        sign_in()
        remote.on("GET", HISTORY, [
            {"id": 1, "overall_score": 45, "created_at": "2024-01-01T00:00:00Z"},
            {
                "id": 2,
                "overall_score": 62,
                "max_possible_score": 80,
                "created_at": "2024-03-01T00:00:00Z",
                "pillar_scores": [
                    {"factor": "income_stream", "score": 4.5, "max_score": 10, "percentage": 90},
                ],
            },
        ])

        records, source = await history.get_history()

        assert source == SOURCE_REMOTE
        assert [r.id for r in records] == ["2", "1"]

        detailed, approximated = records
        assert detailed.survey_response_id == 2
        assert detailed.max_possible_score == 80
        assert detailed.pillar_scores[0].pillar == Pillar.INCOME_STREAM
        assert detailed.pillar_scores[0].points == 9
        assert not detailed.pillar_scores[0].approximated
        assert detailed.advice == []

        assert all(p.approximated for p in approximated.pillar_scores)
        assert all(p.score == 3.0 for p in approximated.pillar_scores)
        assert approximated.advice == [HISTORICAL_ADVICE]

    async def test_unknown_pillar_item_skipped(self, history, remote, sign_in):
        sign_in()
        remote.on("GET", HISTORY, [
            {"id": 1, "overall_score": 45, "pillar_scores": [{"factor": "lifestyle", "score": 3}]},
            {"id": 2, "overall_score": 50},
        ])

        records, _ = await history.get_history()
        assert [r.id for r in records] == ["2"]

    async def test_remote_failure_falls_back_to_local(self, history, remote, store, sign_in):
        store.set_json(HISTORY_KEY, [record("cached", 1).model_dump(mode="json")])
        sign_in()
        remote.on("GET", HISTORY, 503)

        records, source = await history.get_history()

        assert source == SOURCE_LOCAL
        assert [r.id for r in records] == ["cached"]
        assert remote.count("GET", HISTORY) == 4

    def test_authenticated_records_not_cached(self, history, sign_in):
        sign_in()
        assert not history.append_record(record("x", 1))
        assert history.get_local() == []


class TestApproximation:

    def test_average_answer_per_pillar(self):
        pillars = approximate_pillars(60)

        assert len(pillars) == 7
        assert {p.score for p in pillars} == {4.0}
        assert sum(p.points for p in pillars) == 60
        assert all(p.interpretation == InterpretationBand.EXCELLENT for p in pillars)

    def test_children_variant_budget(self):
        pillars = approximate_pillars(48, has_children=True)

        assert sum(p.max_points for p in pillars) == 80
        assert {p.score for p in pillars} == {3.0}

    def test_clamped_to_scale(self):
        assert {p.score for p in approximate_pillars(500)} == {5.0}
