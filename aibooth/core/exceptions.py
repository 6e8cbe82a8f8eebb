"""
Global Exception Handling

Error taxonomy for the booth pipeline and the FastAPI handlers that turn
every failure into the same structured JSON body.
"""

import traceback
from typing import Optional, Dict, Any
from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from aibooth.core.logging import get_logger, job_id_var, stage_var

logger = get_logger(__name__)


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


# =============================================================================
# Custom Exceptions
# =============================================================================

class BoothBaseException(Exception):
    """Base exception for the booth service."""

    def __init__(
        self,
        message: str,
        code: int = 500,
        job_id: Optional[str] = None,
        stage: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.job_id = job_id or job_id_var.get()
        self.stage = stage or stage_var.get()
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(BoothBaseException):
    """Raised when caller input is missing or malformed."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, code=400, **kwargs)


class UpstreamIOError(BoothBaseException):
    """Raised when decoding, normalizing or uploading the source image fails."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, code=502, **kwargs)


class SubmissionError(BoothBaseException):
    """Raised when the predictor rejects a job at submit time."""

    def __init__(
        self,
        message: str,
        response: Any = None,
        http_status: Optional[int] = None,
        **kwargs
    ):
        super().__init__(message, code=502, **kwargs)
        self.details["service"] = "eachlabs"
        self.details["http_status"] = http_status
        self.details["response"] = response


class PredictionFailedError(BoothBaseException):
    """Raised when the predictor reports an error terminal state."""

    def __init__(self, message: str, payload: Any = None, **kwargs):
        super().__init__(message, code=502, **kwargs)
        self.details["service"] = "eachlabs"
        self.details["payload"] = payload


class PollTimeoutError(BoothBaseException):
    """Raised when polling exhausts its attempts without a terminal state."""

    def __init__(self, message: str, attempts: int, **kwargs):
        super().__init__(message, code=504, **kwargs)
        self.details["attempts"] = attempts


class PublishError(BoothBaseException):
    """Raised when a result snapshot cannot be committed."""

    def __init__(self, message: str, http_status: Optional[int] = None, **kwargs):
        super().__init__(message, code=502, **kwargs)
        self.details["service"] = "github"
        self.details["http_status"] = http_status


# =============================================================================
# Exception Handlers
# =============================================================================

def build_error_content(exc: BoothBaseException) -> Dict[str, Any]:
    """Render a booth exception as the uniform error body."""
    return {
        "error": exc.message,
        "job_id": exc.job_id,
        "code": exc.code,
        "stage": exc.stage,
        "details": exc.details,
        "timestamp": _utc_timestamp()
    }


def register_exception_handlers(app: FastAPI):
    """Register custom exception handlers with FastAPI app."""

    @app.exception_handler(BoothBaseException)
    async def booth_exception_handler(request: Request, exc: BoothBaseException):
        log = logger.warning if exc.code < 500 else logger.error
        log(
            "booth_exception",
            error=exc.message,
            error_type=type(exc).__name__,
            code=exc.code,
            job_id=exc.job_id,
            stage=exc.stage,
            path=str(request.url.path)
        )

        return JSONResponse(status_code=exc.code, content=build_error_content(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning("request_validation_failed", path=str(request.url.path), errors=exc.errors())

        return JSONResponse(
            status_code=422,
            content={
                "error": "Invalid request body",
                "job_id": None,
                "code": 422,
                "stage": "validation",
                "details": {"errors": jsonable_encoder(exc.errors())},
                "timestamp": _utc_timestamp()
            }
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.error(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=str(request.url.path),
            traceback=traceback.format_exc()
        )

        return JSONResponse(
            status_code=500,
            content={
                "error": str(exc) or "Internal server error",
                "job_id": job_id_var.get(),
                "code": 500,
                "stage": None,
                "details": {},
                "timestamp": _utc_timestamp()
            }
        )
