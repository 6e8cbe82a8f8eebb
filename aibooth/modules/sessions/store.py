"""
Session Store

Process-local mapping from caller-supplied job identifier to JobOutcome.
Entries appear only when a job succeeds and are replaced, never mutated.
"""

import threading
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Optional

from aibooth.core.logging import get_logger
from aibooth.core.metrics import session_store_entries
from aibooth.modules.sessions.models import JobOutcome

logger = get_logger(__name__)


class SessionStore(ABC):
    """Interface for session state lookups."""

    @abstractmethod
    def insert(self, identifier: str, outcome: JobOutcome) -> None:
        """Store the outcome for identifier, replacing any previous one."""
        pass

    @abstractmethod
    def get(self, identifier: str) -> Optional[JobOutcome]:
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass


class InMemorySessionStore(SessionStore):
    """
    Thread-safe in-memory store.

    With max_entries > 0 the oldest insertions are evicted once the limit is
    exceeded; 0 keeps every entry for the lifetime of the process.
    """

    def __init__(self, max_entries: int = 0):
        self.max_entries = max_entries
        self._records: "OrderedDict[str, JobOutcome]" = OrderedDict()
        self._lock = threading.Lock()

    def insert(self, identifier: str, outcome: JobOutcome) -> None:
        with self._lock:
            if identifier in self._records:
                logger.info("session_record_replaced", job_id=identifier)
                del self._records[identifier]
            self._records[identifier] = outcome

            while self.max_entries and len(self._records) > self.max_entries:
                evicted, _ = self._records.popitem(last=False)
                logger.info("session_record_evicted", evicted_job_id=evicted)

            session_store_entries.set(len(self._records))

    def get(self, identifier: str) -> Optional[JobOutcome]:
        with self._lock:
            return self._records.get(identifier)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
