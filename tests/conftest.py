import io
import base64
from typing import AsyncGenerator, List
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from PIL import Image

from aibooth.main import app
from aibooth.api import dependencies
from aibooth.core.storage import IStorage, get_storage
from aibooth.engines.prediction.poller import ResultPoller
from aibooth.modules.sessions.store import InMemorySessionStore


RESULT_URL = "http://x/final.png"
SOURCE_URL = "http://cdn.test/ai-booth/source.png"


class FakeStorage(IStorage):
    """Records uploads and hands back a fixed public URL."""

    def __init__(self, url: str = SOURCE_URL):
        self.url = url
        self.uploads: List[dict] = []

    async def upload(self, file_data, filename, folder="uploads", content_type="image/png"):
        self.uploads.append({
            "data": file_data,
            "filename": filename,
            "folder": folder,
            "content_type": content_type,
        })
        return self.url


class ScriptedPredictor:
    """
    Stand-in for PredictionClient.

    get_status returns the scripted payloads in order and keeps repeating
    the last one.
    """

    def __init__(self, token: str = "tok1", statuses=None):
        self.token = token
        self.statuses = list(statuses or [{"status": "success", "output": [RESULT_URL]}])
        self.submit_calls = []
        self.status_calls = []

    async def submit(self, prompt: str, image_url: str) -> str:
        self.submit_calls.append((prompt, image_url))
        return self.token

    async def get_status(self, token: str) -> dict:
        self.status_calls.append(token)
        if len(self.statuses) > 1:
            return self.statuses.pop(0)
        return self.statuses[0]


class SleepRecorder:
    """Async sleep replacement that returns immediately and counts calls."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float):
        self.calls.append(seconds)


def encode_image(size=(640, 480), fmt="PNG", mode="RGB", color=(200, 120, 40)) -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def image_bytes() -> bytes:
    return encode_image()


@pytest.fixture
def photo_base64(image_bytes) -> str:
    return base64.b64encode(image_bytes).decode("utf-8")


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def predictor() -> ScriptedPredictor:
    return ScriptedPredictor()


@pytest.fixture
def fake_sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def poller(predictor, fake_sleep) -> ResultPoller:
    return ResultPoller(
        check_status=predictor.get_status,
        interval_seconds=3.0,
        timeout_seconds=180.0,
        sleep=fake_sleep
    )


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def publisher():
    publisher = MagicMock()
    publisher.enabled = True
    publisher.publish = AsyncMock()
    return publisher


@pytest_asyncio.fixture
async def client(storage, predictor, poller, session_store, publisher) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[dependencies.get_prediction_client] = lambda: predictor
    app.dependency_overrides[dependencies.get_result_poller] = lambda: poller
    app.dependency_overrides[dependencies.get_session_store] = lambda: session_store
    app.dependency_overrides[dependencies.get_publisher] = lambda: publisher

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_predictor():
    """Factory for predictors with a custom status script."""
    return ScriptedPredictor


@pytest.fixture
def make_sleep():
    return SleepRecorder
