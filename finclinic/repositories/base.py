"""
Base Repository - Financial Clinic Survey Service
finclinic/repositories/base.py

Base repository class holding the device's local store and remote client.
"""

from datetime import datetime, timezone
from typing import Any, List, Optional, Type, TypeVar

import structlog
from pydantic import BaseModel, ValidationError as PydanticValidationError

from finclinic.services.api_client import SurveyApiClient
from finclinic.services.local_store import LocalStore

logger = structlog.get_logger(__name__)

T = TypeVar("T", bound=BaseModel)


class BaseRepository:
    """Base repository over a device's local store with remote access."""

    def __init__(self, store: LocalStore, api: SurveyApiClient):
        self.store = store
        self.api = api

    @property
    def authenticated(self) -> bool:
        return self.api.identity.is_authenticated_for_survey_purposes()

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    def _read_list(self, key: str, model: Type[T]) -> List[T]:
        """Read a JSON array, skipping entries that do not validate."""
        raw = self.store.get_json(key, default=[])
        if not isinstance(raw, list):
            logger.warning("local_list_unreadable", key=key, found=type(raw).__name__)
            return []

        items: List[T] = []
        for index, entry in enumerate(raw):
            item = self._validate(model, entry)
            if item is None:
                logger.warning("local_entry_skipped", key=key, index=index)
                continue
            items.append(item)
        return items

    @staticmethod
    def _validate(model: Type[T], data: Any) -> Optional[T]:
        try:
            return model.model_validate(data)
        except PydanticValidationError:
            return None
