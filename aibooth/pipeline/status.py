"""
Status Query Service

Read path over the session store. An identifier without a record answers
received=False whether the job is unknown, still running, or failed.
"""

from typing import Optional

from aibooth.core.exceptions import ValidationError
from aibooth.modules.sessions.models import StatusResult
from aibooth.modules.sessions.store import SessionStore


class StatusQueryService:

    def __init__(self, session_store: SessionStore):
        self.session_store = session_store

    def get_status(self, identifier: Optional[str]) -> StatusResult:
        if not identifier:
            raise ValidationError("Missing id")

        outcome = self.session_store.get(identifier)
        if outcome is None:
            return StatusResult(received=False)
        return StatusResult(received=True, image=outcome.image_url)
