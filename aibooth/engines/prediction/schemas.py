from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class PredictionStatus(str, Enum):
    """Terminal statuses reported by Eachlabs. Anything else is pending."""
    SUCCESS = "success"
    ERROR = "error"


# Reported by PredictionClient.get_status when the status request itself failed
UNREACHABLE_STATUS = "unreachable"


class PredictionInput(BaseModel):
    """Model input block for openai-image-edit."""
    image_url_1: str
    prompt: str
    background: str = "auto"
    image_size: str = "auto"
    quality: str = "auto"
    number_of_images: int = Field(default=1, ge=1)


class PredictionRequest(BaseModel):
    """Body of POST /v1/prediction/."""
    model: str
    version: str
    input: PredictionInput


def extract_output(payload: Dict[str, Any]) -> Optional[str]:
    """First element when the output is a list, the output itself otherwise."""
    output = payload.get("output")
    if isinstance(output, (list, tuple)):
        return output[0] if output else None
    return output
