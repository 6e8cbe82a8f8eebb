"""Session state for completed booth jobs."""

from aibooth.modules.sessions.models import JobSubmission, JobOutcome, StatusResult
from aibooth.modules.sessions.store import SessionStore, InMemorySessionStore

__all__ = [
    "JobSubmission",
    "JobOutcome",
    "StatusResult",
    "SessionStore",
    "InMemorySessionStore",
]
