"""
Status Endpoint - Job Completion Polling

GET /api/v1/status?id=... - Whether a result has been recorded for id
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from aibooth.api.dependencies import get_status_service
from aibooth.modules.sessions.models import StatusResult
from aibooth.pipeline.status import StatusQueryService

router = APIRouter()


@router.get("", response_model=StatusResult, response_model_exclude_none=True)
async def get_job_status(
    id: Optional[str] = Query(None, description="Job identifier supplied at submit time"),
    status_service: StatusQueryService = Depends(get_status_service)
):
    """
    Get the completion state of a job.

    Returns {"received": false} while a job is running, after it failed, and
    for identifiers never submitted; {"received": true, "image": url} once it
    succeeded.
    """
    return status_service.get_status(id)
