"""
Remote Survey API Client - Financial Clinic Survey Service
finclinic/services/api_client.py

Async client for the remote scoring / submission service.

Retry policy:
  - timeouts, connection errors, 408, 429 and 5xx are retried with
    exponential backoff and jitter (tenacity), up to RETRY_MAX_ATTEMPTS
  - 401 / 403 are never retried; stored credentials are cleared
  - 409 surfaces as ConflictError, any other 4xx as ApiError
  - a 2xx body of the wrong shape surfaces as ApiError (not retried)
"""
import logging
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError as PydanticValidationError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from finclinic.config import Settings, settings as default_settings
from finclinic.core.exceptions import (
    ApiError,
    AuthenticationError,
    ConflictError,
    PermissionDeniedError,
    TransientApiError,
)
from finclinic.models.api import (
    RemoteHistoryItem,
    RemotePreview,
    RemoteSession,
    RemoteSubmission,
)
from finclinic.models.profile import SurveyProfile
from finclinic.services.credentials import CredentialProvider
from finclinic.services.identity import IdentityResolver

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}

T = TypeVar("T", bound=BaseModel)


def build_http_client(
    config: Settings = default_settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Shared AsyncClient bound to the remote base URL."""
    return httpx.AsyncClient(
        base_url=config.API_BASE_URL.rstrip("/") + "/",
        timeout=config.REQUEST_TIMEOUT_SECONDS,
        headers={"Content-Type": "application/json"},
        transport=transport,
    )


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("message") or body)
    return str(body)


class SurveyApiClient:
    """One device's view of the remote service (its own credentials)."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        credentials: CredentialProvider,
        config: Settings = default_settings,
    ):
        self.http = http
        self.credentials = credentials
        self.identity = IdentityResolver(credentials)
        self.config = config

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.config.RETRY_MAX_ATTEMPTS),
            wait=wait_random_exponential(
                multiplier=self.config.RETRY_BASE_DELAY_SECONDS,
                max=self.config.RETRY_MAX_DELAY_SECONDS,
            ),
            retry=retry_if_exception_type(TransientApiError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send with retries. Returns the decoded JSON body (None when empty)."""
        async for attempt in self._retrying():
            with attempt:
                return await self._send(method, path, json=json, params=params)

    async def _send(self, method: str, path: str, json: Any = None, params: Optional[Dict[str, Any]] = None) -> Any:
        headers = {}
        token = self.identity.bearer_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        url = path.lstrip("/")
        try:
            response = await self.http.request(method, url, json=json, params=params, headers=headers)
        except httpx.TimeoutException as e:
            raise TransientApiError(f"Request timed out: {e}", url=path)
        except httpx.TransportError as e:
            raise TransientApiError(f"Network error: {e}", url=path)

        status = response.status_code
        if status < 400:
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError:
                raise ApiError("Invalid JSON in response", status=status, url=path)

        detail = _error_detail(response)
        if status == 401:
            self.credentials.clear_all()
            logger.warning(f"{method} {path} -> 401, stored credentials cleared")
            raise AuthenticationError(status=status, url=path)
        if status == 403:
            self.credentials.clear_all()
            logger.warning(f"{method} {path} -> 403, stored credentials cleared")
            raise PermissionDeniedError(status=status, url=path)
        if status == 409:
            raise ConflictError(detail, status=status, url=path)
        if status in RETRYABLE_STATUS_CODES:
            raise TransientApiError(detail, status=status, url=path)
        raise ApiError(detail, status=status, url=path)

    @staticmethod
    def _parse(model: Type[T], data: Any, path: str) -> T:
        """Validate a 2xx body; a body of the wrong shape is an ApiError."""
        try:
            return model.model_validate(data or {})
        except PydanticValidationError as e:
            logger.warning(f"Malformed {model.__name__} from {path}: {e.error_count()} error(s)")
            raise ApiError(f"Malformed response: {e.error_count()} invalid field(s)", url=path) from e

    # ------------------------------------------------------------------
    # Scoring and submission
    # ------------------------------------------------------------------

    async def preview(self, responses: Mapping[str, int], profile: Optional[SurveyProfile] = None) -> RemotePreview:
        payload = {
            "responses": dict(responses),
            "profile": {"children": profile.children} if profile else None,
        }
        data = await self.request("POST", "/surveys/calculate-preview", json=payload)
        return self._parse(RemotePreview, data, "/surveys/calculate-preview")

    async def submit(self, responses: Mapping[str, int]) -> RemoteSubmission:
        data = await self.request("POST", "/surveys/submit", json={"responses": dict(responses)})
        return self._parse(RemoteSubmission, data, "/surveys/submit")

    async def submit_guest(self, responses: Mapping[str, int]) -> RemoteSubmission:
        data = await self.request("POST", "/surveys/submit-guest", json={"responses": dict(responses)})
        return self._parse(RemoteSubmission, data, "/surveys/submit-guest")

    async def history(self, skip: int = 0, limit: int = 50) -> List[RemoteHistoryItem]:
        data = await self.request("GET", "/surveys/history", params={"skip": skip, "limit": limit})
        if isinstance(data, dict):
            data = data.get("items", [])
        items = []
        for raw in data or []:
            try:
                items.append(RemoteHistoryItem.model_validate(raw))
            except PydanticValidationError as e:
                logger.warning(f"Skipping unreadable history item: {e.error_count()} error(s)")
        return items

    # ------------------------------------------------------------------
    # Incomplete sessions
    # ------------------------------------------------------------------

    async def start_session(
        self,
        total_steps: int,
        current_step: int = 0,
        responses: Optional[Mapping[str, int]] = None,
        email: Optional[str] = None,
        phone_number: Optional[str] = None,
    ) -> RemoteSession:
        payload = {
            "current_step": current_step,
            "total_steps": total_steps,
            "responses": dict(responses or {}),
        }
        if email:
            payload["email"] = email
        if phone_number:
            payload["phone_number"] = phone_number
        data = await self.request("POST", "/surveys/incomplete/start", json=payload)
        return self._parse(RemoteSession, data, "/surveys/incomplete/start")

    async def update_session(self, session_id: str, current_step: int, responses: Mapping[str, int]) -> None:
        await self.request(
            "PUT",
            f"/surveys/incomplete/{session_id}",
            json={"current_step": current_step, "responses": dict(responses)},
        )

    async def complete_session(self, session_id: str) -> None:
        await self.request("DELETE", f"/surveys/incomplete/{session_id}")

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    async def create_profile(self, profile: SurveyProfile) -> Dict[str, Any]:
        return await self.request("POST", "/customers/profile", json=profile.to_payload()) or {}

    async def update_profile(self, profile: SurveyProfile) -> Dict[str, Any]:
        return await self.request("PUT", "/customers/profile", json=profile.to_payload()) or {}
