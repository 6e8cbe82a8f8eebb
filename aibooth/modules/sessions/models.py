"""
Booth Job Models

A JobSubmission is what goes to the predictor; a JobOutcome is what a
successful job leaves behind in the session store and in the published
snapshot.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class JobSubmission(BaseModel):
    """Validated input for one prediction."""
    model_config = ConfigDict(frozen=True)

    identifier: Optional[str] = None
    prompt: str = Field(..., min_length=1)
    image_url: str = Field(..., min_length=1)


class JobOutcome(BaseModel):
    """Immutable result of a job that reached predictor success."""
    model_config = ConfigDict(frozen=True)

    identifier: Optional[str] = None
    prompt: str
    image_url: str
    completed_at: datetime = Field(default_factory=utc_now)

    @property
    def timestamp(self) -> str:
        """ISO-8601 UTC with millisecond precision and a Z suffix."""
        completed = self.completed_at.astimezone(timezone.utc)
        return completed.strftime("%Y-%m-%dT%H:%M:%S.") + f"{completed.microsecond // 1000:03d}Z"

    def to_snapshot(self) -> Dict[str, Any]:
        """Payload committed to the results file."""
        return {
            "id": self.identifier,
            "prompt": self.prompt,
            "image": self.image_url,
            "timestamp": self.timestamp,
        }


class StatusResult(BaseModel):
    """Answer to a status query. received=False covers unknown, pending and failed."""
    received: bool
    image: Optional[str] = None
