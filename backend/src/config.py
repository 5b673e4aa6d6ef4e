"""Application configuration via environment variables.

Provides type-safe settings loading using pydantic-settings.
Environment variables can be loaded from a .env file.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings have sensible defaults for development.
    Production deployments MUST set the S3 credentials.

    Environment Variables:
        STORAGE_PROVIDER: 's3' (presigned-URL object store) or 'memory'
        STORAGE_SIGNED_URL_EXPIRES_IN: Signed URL lifetime in seconds
        STORAGE_SIGNING_SECRET: HMAC secret for the in-memory provider
        MAX_FILE_SIZE: Maximum accepted bytes per file
        ALLOWED_FILE_TYPES: Comma-separated MIME allow-list
        THUMBNAIL_WIDTH / THUMBNAIL_HEIGHT: Thumbnail bounding box
        THUMBNAIL_FORMAT: jpeg, png or webp
        THUMBNAIL_QUALITY: Encoder quality 1-100
        S3_BUCKET / S3_REGION: Target bucket and region
        S3_ACCESS_KEY_ID / S3_SECRET_ACCESS_KEY: Signing credentials
        S3_ENDPOINT: Explicit endpoint (MinIO etc.)
        S3_FORCE_PATH_STYLE: Use /bucket/key addressing
        DATABASE_URL: SQLAlchemy URL; in-memory repository when unset
        LOG_LEVEL: Logging level (default INFO)
        LOG_JSON: JSON log lines (default true)
    """

    # Object Storage
    STORAGE_PROVIDER: str = "s3"
    STORAGE_SIGNED_URL_EXPIRES_IN: int = 900
    STORAGE_SIGNING_SECRET: str = "local-storage-signing-secret"
    STORAGE_HTTP_TIMEOUT_SECONDS: float = 30.0

    # Upload policy
    MAX_FILE_SIZE: int = 10 * 1024 * 1024
    ALLOWED_FILE_TYPES: str = "image/jpeg,image/png,image/webp,application/pdf"

    # Thumbnails
    THUMBNAIL_WIDTH: int = 320
    THUMBNAIL_HEIGHT: int = 320
    THUMBNAIL_FORMAT: str = "webp"
    THUMBNAIL_QUALITY: int = 80

    # S3
    S3_BUCKET: str = "propchain-documents"
    S3_REGION: str = "us-east-1"
    S3_ACCESS_KEY_ID: Optional[str] = None
    S3_SECRET_ACCESS_KEY: Optional[str] = None
    S3_ENDPOINT: Optional[str] = None
    S3_FORCE_PATH_STYLE: bool = False

    # Persistence
    DATABASE_URL: Optional[str] = None

    # Application
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    ENVIRONMENT: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache for singleton behavior.
    Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
