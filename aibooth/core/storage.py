"""
Storage Abstraction Layer - The Bridge Pattern

Provides a clean interface for publishing the normalized booth photo at a
URL the prediction service can fetch. CloudinaryStorage is the production
backend; LocalStorage serves files from this app for development.
"""

import time
import uuid
import hashlib
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional
from datetime import datetime

import httpx

from aibooth.core.config import settings
from aibooth.core.exceptions import UpstreamIOError
from aibooth.core.logging import get_logger

logger = get_logger(__name__)


class IStorage(ABC):
    """Interface for storage operations - The Bridge"""

    @abstractmethod
    async def upload(
        self,
        file_data: bytes,
        filename: str,
        folder: str = "uploads",
        content_type: str = "image/png"
    ) -> str:
        """
        Upload a file and return a public URL for it.

        Args:
            file_data: Raw bytes of the file
            filename: Original filename
            folder: Subfolder/container prefix
            content_type: MIME type of the file

        Returns:
            Publicly reachable URL of the stored file
        """
        pass


class CloudinaryStorage(IStorage):
    """Cloudinary image storage using the signed upload REST API."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        api_url: str = "https://api.cloudinary.com/v1_1",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.upload_url = f"{api_url.rstrip('/')}/{cloud_name}/image/upload"
        self.timeout = timeout
        self._transport = transport

    def sign(self, params: dict) -> str:
        """SHA-1 signature over the alphabetically sorted upload params."""
        to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
        return hashlib.sha1(f"{to_sign}{self.api_secret}".encode("utf-8")).hexdigest()

    async def upload(
        self,
        file_data: bytes,
        filename: str,
        folder: str = "uploads",
        content_type: str = "image/png"
    ) -> str:
        params = {
            "folder": folder,
            "format": "png",
            "timestamp": str(int(time.time())),
        }
        data = {**params, "api_key": self.api_key, "signature": self.sign(params)}
        files = {"file": (filename, file_data, content_type)}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(self.upload_url, data=data, files=files)

        if response.status_code != 200:
            raise UpstreamIOError(
                f"Cloudinary upload failed: {response.text}",
                details={"service": "cloudinary", "http_status": response.status_code}
            )

        secure_url = response.json().get("secure_url")
        if not secure_url:
            raise UpstreamIOError(
                "Cloudinary upload returned no secure_url",
                details={"service": "cloudinary", "http_status": response.status_code}
            )

        logger.info("cloudinary_upload_completed", url=secure_url, size=len(file_data))
        return secure_url


class LocalStorage(IStorage):
    """Local filesystem storage implementation for development."""

    def __init__(
        self,
        base_path: str = "./data/storage",
        public_base_url: str = "http://localhost:10000"
    ):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.public_base_url = public_base_url.rstrip("/")

    def _get_unique_filename(self, filename: str) -> str:
        """Generate a unique filename with UUID prefix."""
        ext = Path(filename).suffix
        unique_id = uuid.uuid4().hex[:12]
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{timestamp}_{unique_id}{ext}"

    async def upload(
        self,
        file_data: bytes,
        filename: str,
        folder: str = "uploads",
        content_type: str = "image/png"
    ) -> str:
        folder_path = self.base_path / folder
        folder_path.mkdir(parents=True, exist_ok=True)

        unique_filename = self._get_unique_filename(filename)
        file_path = folder_path / unique_filename

        with open(file_path, "wb") as f:
            f.write(file_data)

        return f"{self.public_base_url}/static/storage/{folder}/{unique_filename}"


class StorageFactory:
    """
    Factory for creating storage instances.

    STORAGE_BACKEND=cloudinary with credentials set gives CloudinaryStorage;
    anything else gives LocalStorage.
    """

    _instance: Optional[IStorage] = None

    @classmethod
    def get_storage(cls) -> IStorage:
        """Get the appropriate storage implementation based on environment."""
        if cls._instance is None:
            cloudinary_ready = all([
                settings.CLOUDINARY_CLOUD_NAME,
                settings.CLOUDINARY_API_KEY,
                settings.CLOUDINARY_API_SECRET,
            ])
            if settings.STORAGE_BACKEND.lower() == "cloudinary" and cloudinary_ready:
                cls._instance = CloudinaryStorage(
                    cloud_name=settings.CLOUDINARY_CLOUD_NAME,
                    api_key=settings.CLOUDINARY_API_KEY,
                    api_secret=settings.CLOUDINARY_API_SECRET,
                    api_url=settings.CLOUDINARY_API_URL
                )
            else:
                if settings.STORAGE_BACKEND.lower() == "cloudinary":
                    logger.warning(
                        "cloudinary_not_configured",
                        message="Cloudinary credentials missing, falling back to LocalStorage"
                    )
                cls._instance = LocalStorage(
                    base_path=settings.LOCAL_STORAGE_PATH,
                    public_base_url=settings.PUBLIC_BASE_URL
                )

        return cls._instance

    @classmethod
    def reset(cls):
        """Reset the singleton instance (useful for testing)."""
        cls._instance = None


# Convenience function for dependency injection
def get_storage() -> IStorage:
    """Get the storage instance - ready for FastAPI Depends()."""
    return StorageFactory.get_storage()
