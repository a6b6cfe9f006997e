# tests/conftest.py

"""
Pytest Fixtures - Shared test configuration for services and APIs

The remote service is faked with httpx.MockTransport (FakeRemote); the
device's local storage is an in-memory store. Retry delays are zero.
"""

import json
from typing import Any, Callable, Dict, List, Tuple, Union

import httpx
import pytest
from fastapi.testclient import TestClient

from finclinic.config import Settings, get_settings
from finclinic.core.dependencies import get_http_client
from finclinic.repositories.history_repository import HistoryRepository
from finclinic.repositories.profile_repository import ProfileRepository
from finclinic.scoring.questions import QUESTIONS, questions_for
from finclinic.services.api_client import SurveyApiClient, build_http_client
from finclinic.services.background import BackgroundTasks
from finclinic.services.cache import reset_local_store
from finclinic.services.credentials import SIMPLE_SESSION_KEY, StoreCredentialProvider
from finclinic.services.local_store import MemoryStore
from finclinic.services.migration import MigrationCoordinator
from finclinic.services.session_store import SessionStore
from finclinic.services.submission import SubmissionService
from finclinic.shutdown import clear_shutdown


# =============================================================================
# REMOTE SERVICE FAKE
# =============================================================================

Reply = Union[httpx.Response, int, dict, list, Exception, Callable[[httpx.Request], httpx.Response]]


class FakeRemote:
    """
    Scripted remote service. Each route holds a queue of replies; the last
    reply repeats once the queue is exhausted. Unscripted routes return 404.
    """

    PREFIX = "/api/v1"

    def __init__(self):
        self.routes: Dict[Tuple[str, str], List[Reply]] = {}
        self.requests: List[httpx.Request] = []

    def on(self, method: str, path: str, *replies: Reply) -> "FakeRemote":
        self.routes[(method.upper(), path)] = list(replies)
        return self

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method.upper() and self._path(r) == path
        ]

    def count(self, method: str, path: str) -> int:
        return len(self.calls(method, path))

    def body(self, request: httpx.Request) -> Any:
        return json.loads(request.content) if request.content else None

    def _path(self, request: httpx.Request) -> str:
        path = request.url.path
        return path[len(self.PREFIX):] if path.startswith(self.PREFIX) else path

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, self._path(request)))
        if not queue:
            return httpx.Response(404, json={"detail": "Not Found"})
        reply = queue.pop(0) if len(queue) > 1 else queue[0]

        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            return reply
        if isinstance(reply, int):
            return httpx.Response(reply, json={"detail": f"HTTP {reply}"})
        if callable(reply):
            return reply(request)
        return httpx.Response(200, json=reply)


# =============================================================================
# SETTINGS / STORE / CREDENTIALS
# =============================================================================

@pytest.fixture(autouse=True)
def _fresh_process_state():
    """Clear shutdown flag and store singleton between tests."""
    clear_shutdown()
    reset_local_store()
    yield
    reset_local_store()


@pytest.fixture
def test_settings():
    """Settings with zero retry delays."""
    return Settings(
        _env_file=None,
        API_BASE_URL="http://remote.test/api/v1",
        RETRY_MAX_ATTEMPTS=4,
        RETRY_BASE_DELAY_SECONDS=0,
        RETRY_MAX_DELAY_SECONDS=0,
        LOCAL_STORE_BACKEND="memory",
    )


@pytest.fixture
def store():
    return MemoryStore().namespaced("device:test-device")


@pytest.fixture
def credentials(store):
    return StoreCredentialProvider(store)


@pytest.fixture
def sign_in(credentials):
    """Store a simple-session token (authenticated for survey purposes)."""
    def _sign_in(key: str = SIMPLE_SESSION_KEY, token: str = "simple-token"):
        credentials.set(key, token)
    return _sign_in


# =============================================================================
# REMOTE CLIENT AND SERVICES
# =============================================================================

@pytest.fixture
def remote():
    return FakeRemote()


@pytest.fixture
def http_client(remote, test_settings):
    return build_http_client(test_settings, transport=httpx.MockTransport(remote.handler))


@pytest.fixture
def api(http_client, credentials, test_settings):
    return SurveyApiClient(http_client, credentials, test_settings)


@pytest.fixture
def background():
    return BackgroundTasks()


@pytest.fixture
def sessions(store, api, background):
    return SessionStore(store, api, background)


@pytest.fixture
def history(store, api, test_settings):
    return HistoryRepository(store, api, test_settings)


@pytest.fixture
def profiles(store, api):
    return ProfileRepository(store, api)


@pytest.fixture
def migration(api, profiles, history, test_settings):
    return MigrationCoordinator(api, profiles, history, config=test_settings)


@pytest.fixture
def submissions(api, profiles, history, sessions, background):
    return SubmissionService(api, profiles, history, sessions, background)


# =============================================================================
# FASTAPI TEST CLIENT FIXTURE
# =============================================================================

@pytest.fixture
def client(remote, test_settings):
    """TestClient with the remote faked and zero retry delays."""
    from finclinic.main import app

    mock_http = build_http_client(test_settings, transport=httpx.MockTransport(remote.handler))
    app.dependency_overrides[get_http_client] = lambda: mock_http
    app.dependency_overrides[get_settings] = lambda: test_settings
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def device_headers():
    return {"X-Device-Id": "device-123"}


# =============================================================================
# ANSWER FIXTURES
# =============================================================================

def answers(value: int = 3, has_children: bool = False) -> Dict[str, int]:
    return {q.id: value for q in questions_for(has_children)}


@pytest.fixture
def all_threes():
    """Fifteen answers of 3 (no children)."""
    return answers(3)


@pytest.fixture
def all_threes_with_children():
    """Sixteen answers of 3 (children question included)."""
    return answers(3, has_children=True)


@pytest.fixture
def question_ids():
    return [q.id for q in QUESTIONS]


# =============================================================================
# REMOTE PAYLOAD FIXTURES
# =============================================================================

@pytest.fixture
def submission_payload():
    return {
        "survey_response": {"id": 101, "user_id": 7, "created_at": "2024-05-01T10:00:00Z"},
        "recommendations": [],
        "score_breakdown": {"overall_score": 45},
    }


def preview_payload(result) -> dict:
    """Remote preview body mirroring a local ScoreResult."""
    return {
        "total_score": result.total_score,
        "max_possible_score": result.max_possible_score,
        "pillar_scores": [
            {
                "factor": p.pillar.value,
                "name": p.pillar.value.replace("_", " ").title(),
                "score": p.score,
                "max_score": p.max_points,
                "percentage": p.percentage,
            }
            for p in result.pillar_scores
        ],
    }
