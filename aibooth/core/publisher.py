"""
Result Snapshot Publishing

Commits the JSON snapshot of a completed job to a GitHub repository through
the contents API. The repository file is the durable record of the latest
result; the in-memory session store is only a cache of it.
"""

import json
import base64
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from aibooth.core.config import settings
from aibooth.core.exceptions import PublishError
from aibooth.core.logging import get_logger

logger = get_logger(__name__)


class ISnapshotPublisher(ABC):
    """Interface for committing a JSON payload to a remote content store."""

    enabled = True

    @abstractmethod
    async def publish(self, path: str, payload: Dict[str, Any], commit_message: str) -> None:
        pass


class GitHubSnapshotPublisher(ISnapshotPublisher):
    """Create-or-update a file via PUT /repos/{owner}/{repo}/contents/{path}."""

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.token = token
        self.owner = owner
        self.repo = repo
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _contents_url(self, path: str) -> str:
        return f"{self.api_url}/repos/{self.owner}/{self.repo}/contents/{path}"

    @property
    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"token {self.token}"}

    async def get_file_sha(self, client: httpx.AsyncClient, path: str) -> Optional[str]:
        """Blob sha of the current file, or None when it does not exist yet."""
        response = await client.get(self._contents_url(path), headers=self._headers)
        if response.status_code == 200:
            return response.json().get("sha")
        return None

    async def publish(self, path: str, payload: Dict[str, Any], commit_message: str) -> None:
        content = base64.b64encode(
            json.dumps(payload, indent=2).encode("utf-8")
        ).decode("ascii")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            sha = await self.get_file_sha(client, path)

            body = {"message": commit_message, "content": content}
            if sha:
                body["sha"] = sha

            response = await client.put(
                self._contents_url(path),
                json=body,
                headers=self._headers
            )

        if response.is_error:
            raise PublishError(
                f"GitHub upload error: {response.text}",
                http_status=response.status_code
            )

        logger.info("snapshot_published", path=path, repo=f"{self.owner}/{self.repo}")


class NullSnapshotPublisher(ISnapshotPublisher):
    """Publisher used when GitHub is not configured: logs and does nothing."""

    enabled = False

    async def publish(self, path: str, payload: Dict[str, Any], commit_message: str) -> None:
        logger.debug("snapshot_publish_skipped", path=path, reason="github_not_configured")


def create_publisher() -> ISnapshotPublisher:
    """Build the publisher matching the current settings."""
    if settings.github_configured:
        return GitHubSnapshotPublisher(
            token=settings.GITHUB_TOKEN,
            owner=settings.GITHUB_USER,
            repo=settings.GITHUB_REPO,
            api_url=settings.GITHUB_API_URL
        )
    return NullSnapshotPublisher()
