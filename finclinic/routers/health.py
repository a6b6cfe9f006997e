"""
Health Check Router - Financial Clinic Survey Service
finclinic/routers/health.py

Returns health status of the local store and the background runner.
"""
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from typing import Dict, Optional
from datetime import datetime, timezone
import time

import redis

from finclinic.config import settings
from finclinic.core.dependencies import get_background_tasks
from finclinic.core.exceptions import LocalStoreError
from finclinic.services.background import BackgroundTasks
from finclinic.services.cache import get_local_store
from finclinic.services.local_store import RedisStore

router = APIRouter(tags=["Health"])



#  Schemas


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str
    dependencies: Dict[str, str]
    background_tasks: int = 0


class StoreTestResponse(BaseModel):
    backend: str
    write_success: bool
    read_success: bool
    delete_success: bool
    value_match: bool
    latency_ms: Optional[float] = None
    error: Optional[str] = None



#  Dependency Health Checks


async def check_local_store() -> str:
    """Check the local store backend."""
    store = get_local_store()
    if not isinstance(store, RedisStore):
        if settings.LOCAL_STORE_BACKEND == "redis":
            return "degraded: redis unavailable, using memory"
        return "healthy (memory)"
    try:
        store.client.ping()
        return f"healthy (redis: {store.url})"
    except redis.RedisError as e:
        error_msg = str(e)[:100] + "..." if len(str(e)) > 100 else str(e)
        return f"unhealthy: {error_msg}"



#  Main Health Check Route


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={
        200: {"description": "All dependencies healthy"},
        503: {"description": "One or more dependencies unhealthy"},
    },
    summary="Health check",
    description="Check health of the local store.",
)
async def health_check(background: BackgroundTasks = Depends(get_background_tasks)):
    """Check health of all dependencies."""
    dependencies = {
        "local_store": await check_local_store(),
    }

    all_healthy = all(v.startswith("healthy") for v in dependencies.values())

    response = HealthResponse(
        status="healthy" if all_healthy else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=settings.APP_VERSION,
        dependencies=dependencies,
        background_tasks=background.pending,
    )

    if all_healthy:
        return response
    else:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(mode="json"),
        )



#  Local Store Testing Endpoint


@router.get(
    "/health/store/test",
    response_model=StoreTestResponse,
    summary="Test local store operations",
    description="Performs write/read/delete test to verify the local store works.",
)
async def store_test() -> StoreTestResponse:
    """Test local store operations (write, read, delete)."""
    store = get_local_store().namespaced("health")
    backend = "redis" if isinstance(store, RedisStore) else "memory"
    test_key = "store:test"
    test_value = "store_test_123"

    try:
        start_time = time.time()

        store.set_raw(test_key, test_value)
        write_success = True

        cached = store.get_raw(test_key)
        read_success = cached is not None
        value_match = cached == test_value

        store.delete(test_key)
        delete_success = store.get_raw(test_key) is None

        latency_ms = (time.time() - start_time) * 1000

        return StoreTestResponse(
            backend=backend,
            write_success=write_success,
            read_success=read_success,
            delete_success=delete_success,
            value_match=value_match,
            latency_ms=round(latency_ms, 2),
        )
    except LocalStoreError as e:
        return StoreTestResponse(
            backend=backend,
            write_success=False,
            read_success=False,
            delete_success=False,
            value_match=False,
            error=str(e),
        )
