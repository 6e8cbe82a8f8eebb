"""
AI Booth Image Service - Main Application

FastAPI application with:
- API versioning (/api/v1/)
- Legacy root routes (POST /, GET /status) for existing booth clients
- Structured logging with structlog
- Prometheus metrics
- Global exception handling
"""

import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles

from aibooth.core.config import settings
from aibooth.core.logging import setup_logging, get_logger
from aibooth.core.exceptions import register_exception_handlers
from aibooth.core.metrics import set_app_info, http_requests_total, http_request_duration_seconds
from aibooth.api.v1 import api_v1_router
from aibooth.api.v1.jobs import submit_job, SubmitJobResponse
from aibooth.api.v1.status import get_job_status
from aibooth.modules.sessions.models import StatusResult


# =============================================================================
# Initialize Logging
# =============================================================================
setup_logging(
    log_level=settings.LOG_LEVEL,
    json_format=settings.LOG_FORMAT_JSON
)
logger = get_logger(__name__)


# =============================================================================
# Lifespan Handler
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler - startup and shutdown."""
    logger.info(
        "application_starting",
        app_name=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT
    )

    if not settings.EACHLABS_API_KEY:
        logger.error("eachlabs_api_key_missing")
        raise RuntimeError("EACHLABS_API_KEY not set")

    if not settings.github_configured:
        logger.warning(
            "github_not_configured",
            message="GITHUB_TOKEN, GITHUB_USER or GITHUB_REPO missing: skipping result upload"
        )

    set_app_info(
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT
    )

    logger.info(
        "application_ready",
        poll_interval_seconds=settings.POLL_INTERVAL_SECONDS,
        poll_timeout_seconds=settings.POLL_TIMEOUT_SECONDS,
        storage_backend=settings.STORAGE_BACKEND
    )

    yield

    logger.info("application_shutdown_complete")


# =============================================================================
# Create FastAPI Application
# =============================================================================
app = FastAPI(
    title=settings.APP_NAME,
    description="""
    Booth photo transformation service.

    - **Submit**: photo + prompt, resized to 512x512 and edited by Eachlabs
      `openai-image-edit`; the request stays open until the result is ready
    - **Status**: poll whether a result exists for a job id
    - **Snapshot**: every result is committed to a GitHub results file

    All endpoints are versioned under `/api/v1/`.
    """,
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)


# =============================================================================
# Middleware
# =============================================================================

# CORS
cors_origins = settings.CORS_ORIGINS.split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials="*" not in cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_timing(request: Request, call_next):
    """Track request timing for metrics."""
    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    http_request_duration_seconds.labels(
        method=request.method,
        endpoint=request.url.path
    ).observe(duration)

    http_requests_total.labels(
        method=request.method,
        endpoint=request.url.path,
        status=response.status_code
    ).inc()

    response.headers["X-Process-Time"] = str(duration)

    return response


# =============================================================================
# Register Exception Handlers
# =============================================================================
register_exception_handlers(app)


# =============================================================================
# Include API Routers
# =============================================================================
app.include_router(api_v1_router)

# Legacy route compatibility for booth clients built against the root paths
app.add_api_route(
    "/",
    submit_job,
    methods=["POST"],
    response_model=SubmitJobResponse,
    tags=["jobs-legacy"],
    deprecated=True
)
app.add_api_route(
    "/status",
    get_job_status,
    methods=["GET"],
    response_model=StatusResult,
    response_model_exclude_none=True,
    tags=["status-legacy"],
    deprecated=True
)


# =============================================================================
# Static Files
# =============================================================================

# Serve uploads when running with LocalStorage
if settings.STORAGE_BACKEND.lower() == "local":
    os.makedirs(settings.LOCAL_STORAGE_PATH, exist_ok=True)
if os.path.exists(settings.LOCAL_STORAGE_PATH):
    app.mount("/static/storage", StaticFiles(directory=settings.LOCAL_STORAGE_PATH), name="storage")


# =============================================================================
# Root Endpoints
# =============================================================================

@app.get("/", tags=["root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "docs": "/api/docs",
        "api_v1": "/api/v1",
        "metrics": "/api/v1/metrics"
    }


@app.get("/health", tags=["health"], response_class=PlainTextResponse)
async def health():
    """Liveness probe."""
    return "OK"


# =============================================================================
# Development Server
# =============================================================================
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "aibooth.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
