"""
Dependencies - Financial Clinic Survey Service
finclinic/core/dependencies.py

FastAPI dependency injection. Process-wide singletons (HTTP client,
background runner) are cached; the survey services are assembled per
request for the device named in the X-Device-Id header.
"""

from dataclasses import dataclass
from functools import lru_cache

import httpx
from fastapi import Depends, Header

from finclinic.config import Settings, get_settings
from finclinic.repositories.history_repository import HistoryRepository
from finclinic.repositories.profile_repository import ProfileRepository
from finclinic.services.api_client import SurveyApiClient, build_http_client
from finclinic.services.background import BackgroundTasks
from finclinic.services.cache import get_device_store
from finclinic.services.credentials import StoreCredentialProvider
from finclinic.services.identity import IdentityResolver
from finclinic.services.local_store import LocalStore
from finclinic.services.migration import MigrationCoordinator
from finclinic.services.session_store import SessionStore
from finclinic.services.submission import SubmissionService


@lru_cache()
def get_background_tasks() -> BackgroundTasks:
    """Get cached BackgroundTasks runner."""
    return BackgroundTasks()


@lru_cache()
def get_http_client() -> httpx.AsyncClient:
    """Get cached AsyncClient for the remote service."""
    return build_http_client(get_settings())


@dataclass
class DeviceServices:
    """Everything one device's requests need, sharing one store and credentials."""

    store: LocalStore
    credentials: StoreCredentialProvider
    identity: IdentityResolver
    api: SurveyApiClient
    sessions: SessionStore
    history: HistoryRepository
    profiles: ProfileRepository
    migration: MigrationCoordinator
    submissions: SubmissionService


def build_device_services(
    store: LocalStore,
    http: httpx.AsyncClient,
    background: BackgroundTasks,
    settings: Settings,
) -> DeviceServices:
    credentials = StoreCredentialProvider(store)
    api = SurveyApiClient(http, credentials, settings)
    sessions = SessionStore(store, api, background)
    history = HistoryRepository(store, api, settings)
    profiles = ProfileRepository(store, api)
    return DeviceServices(
        store=store,
        credentials=credentials,
        identity=api.identity,
        api=api,
        sessions=sessions,
        history=history,
        profiles=profiles,
        migration=MigrationCoordinator(api, profiles, history, config=settings),
        submissions=SubmissionService(api, profiles, history, sessions, background),
    )


def get_device_id(
    x_device_id: str = Header(
        ...,
        alias="X-Device-Id",
        min_length=1,
        max_length=128,
        pattern=r"^[A-Za-z0-9_.:-]+$",
    ),
) -> str:
    return x_device_id


def get_device_services(
    device_id: str = Depends(get_device_id),
    http: httpx.AsyncClient = Depends(get_http_client),
    background: BackgroundTasks = Depends(get_background_tasks),
    settings: Settings = Depends(get_settings),
) -> DeviceServices:
    """Survey services scoped to the calling device."""
    return build_device_services(get_device_store(device_id), http, background, settings)
