"""
Services module for the Financial Clinic survey core.
"""

from finclinic.services.cache import get_device_store, get_local_store, reset_local_store
from finclinic.services.local_store import LocalStore, MemoryStore, RedisStore
from finclinic.services.credentials import (
    CredentialProvider,
    InMemoryCredentialProvider,
    StoreCredentialProvider,
)
from finclinic.services.identity import IdentityResolver
from finclinic.services.background import BackgroundTasks
from finclinic.services.api_client import SurveyApiClient, build_http_client

__all__ = [
    "get_device_store",
    "get_local_store",
    "reset_local_store",
    "LocalStore",
    "MemoryStore",
    "RedisStore",
    "CredentialProvider",
    "InMemoryCredentialProvider",
    "StoreCredentialProvider",
    "IdentityResolver",
    "BackgroundTasks",
    "SurveyApiClient",
    "build_http_client",
]
