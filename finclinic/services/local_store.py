"""
Local Key-Value Store - Financial Clinic Survey Service
finclinic/services/local_store.py

Plain key-value storage standing in for a device's local storage. Values are
JSON strings with no schema versioning, so readers tolerate missing, extra or
corrupt entries instead of raising.

Backends:
    MemoryStore  - process-local dict (tests, development)
    RedisStore   - Redis, one namespace per device
"""
import json
import logging
from typing import Any, Dict, Iterator, Optional, Type, TypeVar

import redis
from pydantic import BaseModel, ValidationError as PydanticValidationError

from finclinic.core.exceptions import LocalStoreError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

# Well-known keys
SESSION_KEY = "incomplete_survey_session"
HISTORY_KEY = "survey-history"
PROFILE_KEY = "customer-profile"


class LocalStore:
    """Base class: raw string operations plus JSON / pydantic helpers."""

    def get_raw(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_raw(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def keys(self) -> Iterator[str]:
        raise NotImplementedError

    def get(self, key: str, model: Type[T]) -> Optional[T]:
        """Get stored item and deserialize to Pydantic model (None if absent or unreadable)."""
        data = self.get_raw(key)
        if not data:
            return None
        try:
            return model.model_validate_json(data)
        except PydanticValidationError as e:
            logger.warning(f"Unreadable {model.__name__} under '{key}': {e.error_count()} error(s)")
            return None

    def set(self, key: str, value: BaseModel) -> None:
        """Store Pydantic model as JSON."""
        self.set_raw(key, value.model_dump_json())

    def get_json(self, key: str, default: Any = None) -> Any:
        data = self.get_raw(key)
        if not data:
            return default
        try:
            return json.loads(data)
        except json.JSONDecodeError:
            logger.warning(f"Corrupt JSON under '{key}', ignoring")
            return default

    def set_json(self, key: str, value: Any) -> None:
        self.set_raw(key, json.dumps(value, default=str))


class MemoryStore(LocalStore):
    """In-memory store. Namespaces share one dict when created via namespaced()."""

    def __init__(self, data: Optional[Dict[str, str]] = None, namespace: str = ""):
        self._data: Dict[str, str] = {} if data is None else data
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}{key}"

    def get_raw(self, key: str) -> Optional[str]:
        return self._data.get(self._key(key))

    def set_raw(self, key: str, value: str) -> None:
        self._data[self._key(key)] = value

    def delete(self, key: str) -> None:
        self._data.pop(self._key(key), None)

    def keys(self) -> Iterator[str]:
        prefix = self.namespace
        for key in list(self._data):
            if key.startswith(prefix):
                yield key[len(prefix):]

    def namespaced(self, namespace: str) -> "MemoryStore":
        return MemoryStore(self._data, namespace=f"{namespace}:")


class RedisStore(LocalStore):
    """Redis-backed store; every key is prefixed with the device namespace."""

    def __init__(self, url: str, namespace: str = "", client: Optional[redis.Redis] = None):
        self.client = client or redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=5,
        )
        self.url = url
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}{key}"

    def get_raw(self, key: str) -> Optional[str]:
        try:
            return self.client.get(self._key(key))
        except redis.RedisError as e:
            raise LocalStoreError(f"Redis read failed for '{key}': {e}")

    def set_raw(self, key: str, value: str) -> None:
        try:
            self.client.set(self._key(key), value)
        except redis.RedisError as e:
            raise LocalStoreError(f"Redis write failed for '{key}': {e}")

    def delete(self, key: str) -> None:
        try:
            self.client.delete(self._key(key))
        except redis.RedisError as e:
            raise LocalStoreError(f"Redis delete failed for '{key}': {e}")

    def keys(self) -> Iterator[str]:
        prefix = self.namespace
        for key in self.client.scan_iter(match=f"{prefix}*"):
            yield key[len(prefix):]

    def namespaced(self, namespace: str) -> "RedisStore":
        return RedisStore(self.url, namespace=f"{namespace}:", client=self.client)
