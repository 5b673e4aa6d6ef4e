"""Storage configuration for document object storage.

Turns application Settings into an immutable StorageConfig, validates it, and
builds the configured storage adapter. Supports the presigned-URL S3 adapter
(AWS S3, MinIO) and the in-memory adapter with the same interface.
"""

from dataclasses import dataclass
from typing import Optional

import httpx

from config import Settings, get_settings
from domain.documents.ports.object_storage_port import ObjectStoragePort
from domain.documents.service import DocumentPolicy

from .in_memory_storage_adapter import InMemoryStorageAdapter
from .s3_signer import MAX_EXPIRES_IN_SECONDS
from .s3_storage_adapter import S3StorageAdapter


STORAGE_PROVIDERS = ("s3", "memory")
THUMBNAIL_FORMATS = ("jpeg", "png", "webp")


@dataclass(frozen=True)
class ThumbnailConfig:
    width: int = 320
    height: int = 320
    format: str = "webp"
    quality: int = 80


@dataclass(frozen=True)
class S3Config:
    """S3 target and credentials.

    Attributes:
        bucket: Bucket name
        region: AWS region (default: 'us-east-1')
        access_key_id: Access key ID (required for the s3 provider)
        secret_access_key: Secret access key (required for the s3 provider)
        endpoint: Explicit endpoint URL, e.g. 'http://localhost:9000' for MinIO
        force_path_style: Address objects as /bucket/key
    """
    bucket: str = "propchain-documents"
    region: str = "us-east-1"
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    endpoint: Optional[str] = None
    force_path_style: bool = False


@dataclass(frozen=True)
class StorageConfig:
    provider: str = "s3"
    signed_url_expires_in: int = 900
    signing_secret: str = "local-storage-signing-secret"
    max_file_size: int = 10 * 1024 * 1024
    allowed_mime_types: tuple[str, ...] = ("image/jpeg", "image/png", "image/webp", "application/pdf")
    http_timeout_seconds: float = 30.0
    thumbnails: ThumbnailConfig = ThumbnailConfig()
    s3: S3Config = S3Config()

    def document_policy(self) -> DocumentPolicy:
        return DocumentPolicy(
            allowed_mime_types=self.allowed_mime_types,
            max_file_size=self.max_file_size,
            signed_url_expires_in=self.signed_url_expires_in,
            thumbnail_width=self.thumbnails.width,
            thumbnail_height=self.thumbnails.height,
            thumbnail_format=self.thumbnails.format,
            thumbnail_quality=self.thumbnails.quality,
        )


def _parse_csv(value: Optional[str]) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(entry.strip() for entry in value.split(",") if entry.strip())


def load_storage_config(settings: Optional[Settings] = None) -> StorageConfig:
    """Build StorageConfig from Settings (environment variables by default).

    Example:
        # For MinIO (development):
        STORAGE_PROVIDER=s3
        S3_ENDPOINT=http://localhost:9000
        S3_FORCE_PATH_STYLE=true
        S3_ACCESS_KEY_ID=minioadmin
        S3_SECRET_ACCESS_KEY=minioadmin

        # For tests:
        STORAGE_PROVIDER=memory
    """
    settings = settings or get_settings()
    config = StorageConfig(
        provider=settings.STORAGE_PROVIDER.strip().lower(),
        signed_url_expires_in=settings.STORAGE_SIGNED_URL_EXPIRES_IN,
        signing_secret=settings.STORAGE_SIGNING_SECRET,
        max_file_size=settings.MAX_FILE_SIZE,
        allowed_mime_types=_parse_csv(settings.ALLOWED_FILE_TYPES),
        http_timeout_seconds=settings.STORAGE_HTTP_TIMEOUT_SECONDS,
        thumbnails=ThumbnailConfig(
            width=settings.THUMBNAIL_WIDTH,
            height=settings.THUMBNAIL_HEIGHT,
            format=settings.THUMBNAIL_FORMAT.strip().lower(),
            quality=settings.THUMBNAIL_QUALITY,
        ),
        s3=S3Config(
            bucket=settings.S3_BUCKET,
            region=settings.S3_REGION,
            access_key_id=settings.S3_ACCESS_KEY_ID or None,
            secret_access_key=settings.S3_SECRET_ACCESS_KEY or None,
            endpoint=settings.S3_ENDPOINT or None,
            force_path_style=settings.S3_FORCE_PATH_STYLE,
        ),
    )
    validate_storage_config(config)
    return config


def validate_storage_config(config: StorageConfig) -> None:
    """Validate storage configuration.

    Raises:
        ValueError: If configuration is invalid
    """
    if config.provider not in STORAGE_PROVIDERS:
        raise ValueError(
            f"Unknown storage provider: {config.provider!r}. "
            f"Expected one of {', '.join(STORAGE_PROVIDERS)}"
        )

    if not 0 < config.signed_url_expires_in <= MAX_EXPIRES_IN_SECONDS:
        raise ValueError(
            f"Signed URL expiry must be between 1 and {MAX_EXPIRES_IN_SECONDS} seconds"
        )

    if config.max_file_size <= 0:
        raise ValueError("Maximum file size must be positive")

    if not config.allowed_mime_types:
        raise ValueError("At least one allowed MIME type is required")

    thumbnails = config.thumbnails
    if thumbnails.format not in THUMBNAIL_FORMATS:
        raise ValueError(
            f"Unsupported thumbnail format: {thumbnails.format!r}. "
            f"Expected one of {', '.join(THUMBNAIL_FORMATS)}"
        )
    if thumbnails.width <= 0 or thumbnails.height <= 0:
        raise ValueError("Thumbnail dimensions must be positive")
    if not 1 <= thumbnails.quality <= 100:
        raise ValueError("Thumbnail quality must be between 1 and 100")

    if config.provider == "memory":
        if not config.signing_secret:
            raise ValueError("STORAGE_SIGNING_SECRET is required for the memory provider")
        return

    # S3 configuration
    if not config.s3.access_key_id or not config.s3.secret_access_key:
        raise ValueError(
            "Missing required storage credentials. "
            "Set S3_ACCESS_KEY_ID and S3_SECRET_ACCESS_KEY environment variables."
        )
    if not config.s3.bucket:
        raise ValueError("S3 bucket is required")
    if not config.s3.region:
        raise ValueError("S3 region is required")
    if config.s3.endpoint and not config.s3.endpoint.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid S3 endpoint: {config.s3.endpoint}. "
            "Must start with http:// or https://"
        )


def create_storage_adapter(
    config: StorageConfig,
    http_client: Optional[httpx.AsyncClient] = None,
) -> ObjectStoragePort:
    """Build the storage adapter named by config.provider."""
    if config.provider == "memory":
        return InMemoryStorageAdapter(signing_secret=config.signing_secret)

    return S3StorageAdapter(
        bucket_name=config.s3.bucket,
        region=config.s3.region,
        access_key=config.s3.access_key_id,
        secret_key=config.s3.secret_access_key,
        endpoint_url=config.s3.endpoint,
        force_path_style=config.s3.force_path_style,
        upload_url_expires_in=config.signed_url_expires_in,
        timeout_seconds=config.http_timeout_seconds,
        http_client=http_client,
    )
