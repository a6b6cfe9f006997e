# tests/test_session_store.py
"""
In-progress session lifecycle: local mirror first, remote sync best-effort.
"""

import asyncio

import httpx
import pytest

from finclinic.core.exceptions import ValidationError
from finclinic.models.session import SurveySession
from finclinic.services.local_store import SESSION_KEY

START = "/surveys/incomplete/start"


def remote_session(session_id: str = "remote-abc", total_steps: int = 15) -> dict:
    return {"id": 9, "session_id": session_id, "current_step": 0, "total_steps": total_steps}


class TestGuestSessions:

    async def test_round_trip(self, sessions, remote):
        session_id = await sessions.start_session(15)
        sessions.update_session(session_id, 5, {"q1_income_stability": 3, "q2_income_sources": 4})
        sessions.update_session(session_id, 3, {"q3_living_expenses": 5})

        resumed = sessions.resume_session()

        assert resumed.session_id == session_id
        assert resumed.current_step == 5
        assert resumed.responses == {
            "q1_income_stability": 3,
            "q2_income_sources": 4,
            "q3_living_expenses": 5,
        }
        assert remote.requests == []

    async def test_start_reuses_active_session(self, sessions):
        first = await sessions.start_session(15)
        second = await sessions.start_session(16)

        assert first == second
        assert sessions.resume_session().total_steps == 15

    async def test_update_unknown_session_is_noop(self, sessions):
        session_id = await sessions.start_session(15)

        assert sessions.update_session("local-other", 4, {"q1_income_stability": 2}) is None

        assert sessions.resume_session().session_id == session_id
        assert sessions.resume_session().responses == {}

    async def test_invalid_delta_rejected(self, sessions):
        session_id = await sessions.start_session(15)

        with pytest.raises(ValidationError):
            sessions.update_session(session_id, 1, {"q1_income_stability": 7})
        with pytest.raises(ValidationError):
            sessions.update_session(session_id, 1, {"q42": 3})

        assert sessions.resume_session().current_step == 0

    async def test_children_question_needs_children_session(self, sessions):
        session_id = await sessions.start_session(15)

        with pytest.raises(ValidationError):
            sessions.update_session(session_id, 15, {"q16_children_planning": 4})

        assert sessions.resume_session().responses == {}

    async def test_children_question_accepted_with_children(self, sessions):
        session_id = await sessions.start_session(16, has_children=True)

        updated = sessions.update_session(session_id, 16, {"q16_children_planning": 4})

        assert updated.responses == {"q16_children_planning": 4}
        assert sessions.resume_session().has_children

    async def test_complete_clears_local_mirror(self, sessions, store, remote):
        session_id = await sessions.start_session(15)

        await sessions.complete_session(session_id)

        assert sessions.resume_session() is None
        assert store.get_raw(SESSION_KEY) is None
        assert remote.requests == []

    def test_resume_without_session(self, sessions):
        assert sessions.resume_session() is None

    def test_corrupt_mirror_removed(self, sessions, store):
        store.set_raw(SESSION_KEY, "{not json")

        assert sessions.resume_session() is None
        assert store.get_raw(SESSION_KEY) is None

    def test_resume_tolerates_extra_fields(self, sessions, store):
        data = SurveySession(total_steps=15, current_step=2).model_dump(mode="json")
        data["schema"] = "old"
        store.set_json(SESSION_KEY, data)

        assert sessions.resume_session().current_step == 2


class TestAuthenticatedSessions:

    async def test_remote_id_replaces_local_id(self, sessions, remote, background, sign_in):
        sign_in()
        remote.on("POST", START, remote_session())

        session_id = await sessions.start_session(15, email="user@example.com")
        await background.drain()

        assert session_id.startswith("local-")
        resumed = sessions.resume_session()
        assert resumed.session_id == "remote-abc"
        assert resumed.local_id == session_id
        assert resumed.remote_synced
        assert remote.body(remote.calls("POST", START)[0])["email"] == "user@example.com"

    async def test_local_id_still_accepted_after_swap(self, sessions, remote, background, sign_in):
        sign_in()
        remote.on("POST", START, remote_session())
        remote.on("PUT", "/surveys/incomplete/remote-abc", {"ok": True})

        session_id = await sessions.start_session(15)
        await background.drain()
        updated = sessions.update_session(session_id, 1, {"q1_income_stability": 5})
        await background.drain()

        assert updated.session_id == "remote-abc"
        assert remote.count("PUT", "/surveys/incomplete/remote-abc") == 1

    async def test_start_returns_before_remote_answers(self, sessions, remote, background, sign_in):
        sign_in()
        release = asyncio.Event()

        async def slow_start(request):
            await release.wait()
            return httpx.Response(200, json=remote_session())

        remote.on("POST", START, slow_start)

        session_id = await asyncio.wait_for(sessions.start_session(15), timeout=0.5)
        assert background.pending == 1

        assert session_id.startswith("local-")
        assert sessions.resume_session().session_id == session_id
        assert sessions.update_session(session_id, 2, {"q1_income_stability": 3}) is not None

        release.set()
        await background.drain()
        assert sessions.resume_session().session_id == "remote-abc"

    async def test_malformed_start_response_keeps_local_session(self, sessions, remote, background, sign_in):
        sign_in()
        remote.on("POST", START, {"id": 9})

        session_id = await sessions.start_session(15)
        await background.drain()

        resumed = sessions.resume_session()
        assert resumed.session_id == session_id
        assert not resumed.remote_synced
        assert remote.count("POST", START) == 1

    async def test_completed_before_remote_create_finishes(self, sessions, remote, background, sign_in):
        sign_in()
        remote.on("POST", START, remote_session())
        remote.on("DELETE", "/surveys/incomplete/remote-abc", {"message": "deleted"})

        session_id = await sessions.start_session(15)
        await sessions.complete_session(session_id)
        await background.drain()

        assert sessions.resume_session() is None
        assert remote.count("DELETE", "/surveys/incomplete/remote-abc") == 1

    async def test_updates_pushed_in_background(self, sessions, remote, background, sign_in):
        sign_in()
        remote.on("POST", START, remote_session())
        remote.on("PUT", "/surveys/incomplete/remote-abc", {"ok": True})

        session_id = await sessions.start_session(15)
        sessions.update_session(session_id, 2, {"q1_income_stability": 4})
        await background.drain()

        push = remote.calls("PUT", "/surveys/incomplete/remote-abc")
        assert len(push) == 1
        assert remote.body(push[0]) == {"current_step": 2, "responses": {"q1_income_stability": 4}}

    async def test_remote_start_failure_keeps_local_session(self, sessions, remote, background, sign_in):
        sign_in()
        remote.on("POST", START, 500)

        session_id = await sessions.start_session(15)
        sessions.update_session(session_id, 1, {"q1_income_stability": 4})
        await background.drain()

        assert session_id.startswith("local-")
        assert not sessions.resume_session().remote_synced
        assert remote.count("PUT", f"/surveys/incomplete/{session_id}") == 0

    async def test_remote_update_failure_not_surfaced(self, sessions, remote, background, sign_in):
        sign_in()
        remote.on("POST", START, remote_session())
        remote.on("PUT", "/surveys/incomplete/remote-abc", 500)

        session_id = await sessions.start_session(15)
        updated = sessions.update_session(session_id, 3, {"q1_income_stability": 4})
        await background.drain()

        assert updated.current_step == 3
        assert sessions.resume_session().current_step == 3

    async def test_offline_resume(self, sessions, remote, background, sign_in):
        sign_in()
        remote.on("POST", START, remote_session())
        remote.on("PUT", "/surveys/incomplete/remote-abc", 503)

        session_id = await sessions.start_session(15)
        sessions.update_session(session_id, 4, {"q4_budget_tracking": 2})
        await background.drain()
        before = len(remote.requests)

        resumed = sessions.resume_session()

        assert resumed.responses == {"q4_budget_tracking": 2}
        assert len(remote.requests) == before

    async def test_complete_notifies_remote(self, sessions, remote, background, sign_in):
        sign_in()
        remote.on("POST", START, remote_session())
        remote.on("DELETE", "/surveys/incomplete/remote-abc", {"message": "deleted"})

        session_id = await sessions.start_session(15)
        await background.drain()
        assert await sessions.complete_session(session_id)

        assert remote.count("DELETE", "/surveys/incomplete/remote-abc") == 1
        assert sessions.resume_session() is None

    async def test_complete_clears_even_when_remote_fails(self, sessions, remote, background, sign_in):
        sign_in()
        remote.on("POST", START, remote_session())
        remote.on("DELETE", "/surveys/incomplete/remote-abc", 500)

        session_id = await sessions.start_session(15)
        await background.drain()
        await sessions.complete_session("remote-abc")

        assert sessions.resume_session() is None

    async def test_complete_other_id_leaves_live_session(self, sessions, remote, background, sign_in):
        sign_in()
        remote.on("POST", START, remote_session())

        session_id = await sessions.start_session(15)
        await background.drain()
        sessions.update_session(session_id, 4, {"q1_income_stability": 3})
        await background.drain()

        assert not await sessions.complete_session("some-stale-id")

        assert sessions.resume_session().responses == {"q1_income_stability": 3}
        assert remote.count("DELETE", "/surveys/incomplete/some-stale-id") == 0


class TestBackgroundTasks:

    async def test_failures_are_contained(self, background):
        async def boom():
            raise RuntimeError("boom")

        background.spawn(boom(), name="boom")
        await background.drain()

        assert background.pending == 0

    async def test_skipped_when_shutting_down(self, background):
        from finclinic.shutdown import set_shutdown

        async def work():
            return None

        set_shutdown()
        assert background.spawn(work(), name="late") is None
