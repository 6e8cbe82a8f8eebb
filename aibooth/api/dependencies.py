"""
FastAPI Dependencies for the Booth Service

Provides dependency injection for:
- Session Store (singleton, process lifetime)
- Prediction Client and Result Poller (singletons)
- Snapshot Publisher (singleton, GitHub or no-op)
- Storage (factory singleton)
- Job Orchestrator and Status Query Service (per-request, built from the above)

Tests swap any of these through app.dependency_overrides.
"""

from fastapi import Depends

from aibooth.core.config import settings
from aibooth.core.publisher import ISnapshotPublisher, create_publisher
from aibooth.core.storage import IStorage, get_storage
from aibooth.engines.prediction.client import PredictionClient
from aibooth.engines.prediction.poller import ResultPoller
from aibooth.modules.sessions.store import SessionStore, InMemorySessionStore
from aibooth.pipeline.orchestrator import JobOrchestrator
from aibooth.pipeline.status import StatusQueryService


# =============================================================================
# Global Singletons - session state must outlive any single request
# =============================================================================

_session_store = InMemorySessionStore(max_entries=settings.SESSION_MAX_ENTRIES)
_prediction_client = PredictionClient.from_settings()
_result_poller = ResultPoller(
    check_status=_prediction_client.get_status,
    interval_seconds=settings.POLL_INTERVAL_SECONDS,
    timeout_seconds=settings.POLL_TIMEOUT_SECONDS
)
_publisher = create_publisher()


def get_session_store() -> SessionStore:
    """Returns the process-wide session store."""
    return _session_store


def get_prediction_client() -> PredictionClient:
    """Returns singleton Eachlabs client."""
    return _prediction_client


def get_result_poller() -> ResultPoller:
    """Returns singleton result poller bound to the Eachlabs client."""
    return _result_poller


def get_publisher() -> ISnapshotPublisher:
    """Returns the snapshot publisher chosen from settings."""
    return _publisher


# =============================================================================
# Services
# =============================================================================

def get_orchestrator(
    storage: IStorage = Depends(get_storage),
    prediction_client: PredictionClient = Depends(get_prediction_client),
    poller: ResultPoller = Depends(get_result_poller),
    session_store: SessionStore = Depends(get_session_store),
    publisher: ISnapshotPublisher = Depends(get_publisher),
) -> JobOrchestrator:
    """Returns a JobOrchestrator wired to the singleton collaborators."""
    return JobOrchestrator(
        storage=storage,
        prediction_client=prediction_client,
        poller=poller,
        session_store=session_store,
        publisher=publisher,
        image_size=settings.IMAGE_SIZE,
        upload_folder=settings.CLOUDINARY_FOLDER,
        results_path=settings.GITHUB_RESULTS_PATH,
        max_image_size_bytes=settings.MAX_IMAGE_SIZE_BYTES
    )


def get_status_service(
    session_store: SessionStore = Depends(get_session_store),
) -> StatusQueryService:
    """Returns the read-only status service."""
    return StatusQueryService(session_store)
