"""
Application Configuration

Centralized settings management using Pydantic Settings.
Supports environment variables and .env files.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # ==========================================================================
    # App Settings
    # ==========================================================================
    APP_NAME: str = "AI Booth Image Service"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development, staging, PROD
    DEBUG: bool = False
    PORT: int = 10000

    # ==========================================================================
    # Input Limits
    # ==========================================================================
    MAX_IMAGE_SIZE_BYTES: int = 26214400  # 25MB
    IMAGE_SIZE: int = 512  # square edge of the normalized upload

    # ==========================================================================
    # Eachlabs Prediction API
    # ==========================================================================
    EACHLABS_API_URL: str = "https://api.eachlabs.ai"
    EACHLABS_API_KEY: Optional[str] = None
    EACHLABS_MODEL: str = "openai-image-edit"
    EACHLABS_MODEL_VERSION: str = "0.0.1"
    EACHLABS_BACKGROUND: str = "auto"
    EACHLABS_IMAGE_SIZE: str = "auto"
    EACHLABS_QUALITY: str = "auto"
    EACHLABS_NUMBER_OF_IMAGES: int = 1
    EACHLABS_REQUEST_TIMEOUT_SECONDS: float = 30.0

    # Result polling: ~3s cadence, ~3min ceiling
    POLL_INTERVAL_SECONDS: float = 3.0
    POLL_TIMEOUT_SECONDS: float = 180.0

    # ==========================================================================
    # Storage Settings (The Bridge Pattern)
    # ==========================================================================
    STORAGE_BACKEND: str = "cloudinary"  # cloudinary, local

    CLOUDINARY_CLOUD_NAME: Optional[str] = None
    CLOUDINARY_API_KEY: Optional[str] = None
    CLOUDINARY_API_SECRET: Optional[str] = None
    CLOUDINARY_FOLDER: str = "ai-booth"
    CLOUDINARY_API_URL: str = "https://api.cloudinary.com/v1_1"

    # Local storage is only reachable by the predictor when PUBLIC_BASE_URL
    # points at a publicly routable address
    LOCAL_STORAGE_PATH: str = "./data/storage"
    PUBLIC_BASE_URL: str = "http://localhost:10000"

    # ==========================================================================
    # Result Snapshot (GitHub contents API)
    # ==========================================================================
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_TOKEN: Optional[str] = None
    GITHUB_USER: Optional[str] = None
    GITHUB_REPO: Optional[str] = None
    GITHUB_RESULTS_PATH: str = "results.json"

    # ==========================================================================
    # Session Store
    # ==========================================================================
    SESSION_MAX_ENTRIES: int = 0  # 0 = unbounded

    # ==========================================================================
    # Logging Settings
    # ==========================================================================
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT_JSON: bool = True  # JSON for production, console for development

    # ==========================================================================
    # CORS Settings
    # ==========================================================================
    CORS_ORIGINS: str = "*"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"

    @property
    def github_configured(self) -> bool:
        return bool(self.GITHUB_TOKEN and self.GITHUB_USER and self.GITHUB_REPO)


# Global settings instance
settings = Settings()
