from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
import structlog

load_dotenv()

# IMPORT ROUTERS
from finclinic.config import settings
from finclinic.core.dependencies import get_background_tasks, get_http_client
from finclinic.core.exceptions import SurveyError
from finclinic.core.logging import configure_logging
from finclinic.routers.errors import survey_exception_handler, validation_exception_handler
from finclinic.routers.health import router as health_router
from finclinic.routers.identity import router as identity_router
from finclinic.routers.survey import router as survey_router
from finclinic.shutdown import clear_shutdown, set_shutdown

logger = structlog.get_logger(__name__)

# SHUTDOWN DRAIN LIMIT (seconds) for outstanding background syncs
BACKGROUND_DRAIN_TIMEOUT = 10.0


# SWAGGER UI: tag display order
_OPENAPI_TAGS = [
    {"name": "Root"},
    {"name": "Health"},
    {"name": "Identity"},
    {"name": "Questionnaire"},
    {"name": "Scoring"},
    {"name": "Sessions"},
    {"name": "Submissions"},
    {"name": "Profile"},
]

# FASTAPI APPLICATION CONFIGURATION
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    openapi_tags=_OPENAPI_TAGS,
)

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

# REGISTER EXCEPTION HANDLERS
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(SurveyError, survey_exception_handler)

# REGISTER ROUTERS (order matches _OPENAPI_TAGS / Swagger UI display order)
app.include_router(health_router)           # Health
app.include_router(identity_router)         # Identity
app.include_router(survey_router)           # Questionnaire / Scoring / Sessions / Submissions / Profile


# ROOT ENDPOINT
@app.get("/", tags=["Root"], summary="Root endpoint")
async def root():
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc"
        },
        "status": "running"
    }


# STARTUP EVENT
@app.on_event("startup")
async def startup_event():
    configure_logging(settings)
    clear_shutdown()
    logger.info(
        "service_starting",
        env=settings.APP_ENV,
        local_store=settings.LOCAL_STORE_BACKEND,
        remote=settings.API_BASE_URL,
    )


# SHUTDOWN EVENT
@app.on_event("shutdown")
async def shutdown_event():
    set_shutdown()
    background = get_background_tasks()
    logger.info("service_stopping", pending_background_tasks=background.pending)
    await background.drain(timeout=BACKGROUND_DRAIN_TIMEOUT)
    await get_http_client().aclose()
    get_http_client.cache_clear()


# RUN WITH UVICORN
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "finclinic.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
