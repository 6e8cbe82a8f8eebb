"""
Jobs Endpoint - Booth Image Transformation

POST /api/v1/jobs        - JSON body {id, prompt, photo}
POST /api/v1/jobs/upload - multipart file upload

Both hold the connection open until the prediction finishes or fails.
"""

import base64
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel, Field

from aibooth.api.dependencies import get_orchestrator
from aibooth.pipeline.orchestrator import JobOrchestrator

router = APIRouter()


# =============================================================================
# Request/Response Schemas
# =============================================================================

class SubmitJobRequest(BaseModel):
    """Submit request. Fields are optional here so the orchestrator reports missing ones."""
    id: Optional[str] = Field(default=None, description="Caller-chosen job identifier used for /status")
    prompt: Optional[str] = Field(default=None, description="Edit instruction for the image model")
    photo: Optional[str] = Field(default=None, description="Base64 image or data URL")


class SubmitJobResponse(BaseModel):
    success: bool = True
    image: str


# =============================================================================
# Endpoints
# =============================================================================

@router.post("", response_model=SubmitJobResponse)
async def submit_job(
    request: SubmitJobRequest,
    orchestrator: JobOrchestrator = Depends(get_orchestrator)
):
    """
    Transform a booth photo with the prompt and return the result URL.

    Flow:
    1. Validate prompt and photo
    2. Resize to 512x512 PNG and upload
    3. Submit to Eachlabs and poll (3s cadence, 3 min ceiling)
    4. Record the result for /status and publish the snapshot
    """
    outcome = await orchestrator.run(
        identifier=request.id,
        prompt=request.prompt,
        photo=request.photo
    )
    return SubmitJobResponse(success=True, image=outcome.image_url)


@router.post("/upload", response_model=SubmitJobResponse)
async def submit_uploaded_job(
    file: UploadFile = File(...),
    prompt: Optional[str] = Form(None),
    id: Optional[str] = Form(None),
    orchestrator: JobOrchestrator = Depends(get_orchestrator)
):
    """
    Submit a photo via file upload.

    Alternative to the base64 endpoint for direct file uploads.
    """
    file_content = await file.read()
    photo = base64.b64encode(file_content).decode("utf-8")

    return await submit_job(
        request=SubmitJobRequest(id=id, prompt=prompt, photo=photo),
        orchestrator=orchestrator
    )
