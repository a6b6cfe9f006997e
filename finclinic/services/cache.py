"""
Local Store Singleton - Financial Clinic Survey Service
finclinic/services/cache.py

Provides the process-wide root store and per-device namespaces.
Gracefully falls back to memory when Redis is unavailable.
"""
import logging
from typing import Optional

import redis

from finclinic.config import settings
from finclinic.services.local_store import LocalStore, MemoryStore, RedisStore

logger = logging.getLogger(__name__)

# Singleton instance
_store: Optional[LocalStore] = None


def get_local_store() -> LocalStore:
    """
    Get or create the root local store.

    Returns:
        RedisStore if configured and reachable, MemoryStore otherwise.

    Note:
        Falls back to MemoryStore if Redis is unavailable, allowing the
        service to keep working (sessions then live only as long as the process).
    """
    global _store
    if _store is None:
        if settings.LOCAL_STORE_BACKEND == "redis":
            try:
                store = RedisStore(settings.REDIS_URL)
                store.client.ping()  # Test connection
                _store = store
            except (redis.RedisError, ConnectionError) as e:
                logger.warning(f"Redis unavailable ({e}), using in-memory local store")
                _store = MemoryStore()
        else:
            _store = MemoryStore()
    return _store


def get_device_store(device_id: str) -> LocalStore:
    """Namespaced view of the root store for one device."""
    return get_local_store().namespaced(f"device:{device_id}")


def reset_local_store() -> None:
    """
    Reset the store singleton.

    Useful for testing or when Redis connection needs to be re-established.
    """
    global _store
    _store = None
