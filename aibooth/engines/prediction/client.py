"""
Eachlabs Prediction Client

Submits one image-edit prediction and fetches its status. Submission is
never retried here; repeated status checks are the poller's job.
"""

from typing import Any, Dict, Optional

import httpx

from aibooth.core.config import settings
from aibooth.core.exceptions import SubmissionError
from aibooth.core.logging import get_logger
from aibooth.core.metrics import record_eachlabs_call
from aibooth.engines.prediction.schemas import (
    PredictionInput,
    PredictionRequest,
    UNREACHABLE_STATUS,
)

logger = get_logger(__name__)


class PredictionClient:
    """Thin async client for the Eachlabs /v1/prediction API."""

    def __init__(
        self,
        api_key: str,
        api_url: str = "https://api.eachlabs.ai",
        model: str = "openai-image-edit",
        version: str = "0.0.1",
        background: str = "auto",
        image_size: str = "auto",
        quality: str = "auto",
        number_of_images: int = 1,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.model = model
        self.version = version
        self.background = background
        self.image_size = image_size
        self.quality = quality
        self.number_of_images = number_of_images
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "PredictionClient":
        return cls(
            api_key=settings.EACHLABS_API_KEY or "",
            api_url=settings.EACHLABS_API_URL,
            model=settings.EACHLABS_MODEL,
            version=settings.EACHLABS_MODEL_VERSION,
            background=settings.EACHLABS_BACKGROUND,
            image_size=settings.EACHLABS_IMAGE_SIZE,
            quality=settings.EACHLABS_QUALITY,
            number_of_images=settings.EACHLABS_NUMBER_OF_IMAGES,
            timeout=settings.EACHLABS_REQUEST_TIMEOUT_SECONDS
        )

    @property
    def prediction_url(self) -> str:
        return f"{self.api_url}/v1/prediction/"

    def build_request(self, prompt: str, image_url: str) -> PredictionRequest:
        return PredictionRequest(
            model=self.model,
            version=self.version,
            input=PredictionInput(
                image_url_1=image_url,
                prompt=prompt,
                background=self.background,
                image_size=self.image_size,
                quality=self.quality,
                number_of_images=self.number_of_images
            )
        )

    async def submit(self, prompt: str, image_url: str) -> str:
        """
        Start a prediction and return its predictionID.

        Raises:
            SubmissionError: non-2xx response, undecodable body, missing
                predictionID, or the request could not be sent
        """
        body = self.build_request(prompt, image_url).model_dump()
        logger.info("prediction_submitting", model=self.model, input=body["input"])

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.prediction_url,
                    json=body,
                    headers={"X-API-Key": self.api_key}
                )
        except httpx.HTTPError as e:
            record_eachlabs_call("submit", status="error", http_status=0)
            raise SubmissionError(f"Eachlabs error: {e}", response=None)

        try:
            data = response.json()
        except ValueError:
            data = None

        token = data.get("predictionID") if isinstance(data, dict) else None
        if response.is_error or not token:
            record_eachlabs_call("submit", status="error", http_status=response.status_code)
            raise SubmissionError(
                f"Eachlabs error: {response.text}",
                response=data if data is not None else response.text,
                http_status=response.status_code
            )

        record_eachlabs_call("submit", status="success", http_status=response.status_code)
        logger.info("prediction_submitted", prediction_id=token)
        return token

    async def get_status(self, prediction_id: str) -> Dict[str, Any]:
        """
        Fetch the current prediction payload.

        A failed request is reported as status "unreachable" rather than
        raised, so the poller spends one attempt on it and moves on.
        """
        url = f"{self.prediction_url}{prediction_id}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, headers={"X-API-Key": self.api_key})
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            record_eachlabs_call("status", status="error", http_status=0)
            logger.warning("prediction_status_unavailable", prediction_id=prediction_id, error=str(e))
            return {"status": UNREACHABLE_STATUS, "error": str(e)}

        record_eachlabs_call(
            "status",
            status="error" if response.is_error else "success",
            http_status=response.status_code
        )
        if not isinstance(payload, dict):
            return {"status": UNREACHABLE_STATUS, "error": "unexpected payload", "body": payload}
        return payload
