"""
API v1 Router Module - Booth Service

All v1 endpoints are prefixed with /api/v1/

- POST /api/v1/jobs         - Submit a photo + prompt, wait for the result
- POST /api/v1/jobs/upload  - Same, multipart upload
- GET  /api/v1/status?id=   - Has a result been recorded for id
- GET  /api/v1/metrics      - Prometheus metrics
"""

from fastapi import APIRouter

from aibooth.api.v1.jobs import router as jobs_router
from aibooth.api.v1.status import router as status_router
from aibooth.api.v1.metrics import router as metrics_router

# Main v1 router
api_v1_router = APIRouter(prefix="/api/v1")

api_v1_router.include_router(jobs_router, prefix="/jobs", tags=["jobs"])
api_v1_router.include_router(status_router, prefix="/status", tags=["status"])
api_v1_router.include_router(metrics_router, tags=["metrics"])
