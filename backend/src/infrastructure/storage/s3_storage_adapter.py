"""S3 Storage Adapter - ObjectStoragePort over presigned URLs.

Uploads PUT the bytes to a URL issued by the same SigV4 signer that issues
download URLs, so the adapter talks to AWS S3, MinIO or any store honoring
the canonical-request scheme without an SDK.

Architecture: Hexagonal - Adapter implementation in infrastructure layer
"""

import logging
from datetime import datetime
from typing import Callable, Optional

import httpx

from domain.documents.errors import StorageError
from domain.documents.models import utcnow
from domain.documents.ports.object_storage_port import StoredObject
from domain.documents.validation import compute_checksum

from .s3_signer import SigV4Presigner

logger = logging.getLogger(__name__)


class S3StorageAdapter:
    """S3-compatible storage adapter.

    Missing credentials fail at construction; the adapter never falls back to
    unsigned access. The core does not retry: a failed upload raises
    StorageError and leaves retry policy to the caller.

    Example:
        config = load_storage_config()
        storage = S3StorageAdapter(
            bucket_name=config.s3.bucket,
            region=config.s3.region,
            access_key=config.s3.access_key_id,
            secret_key=config.s3.secret_access_key,
            endpoint_url=config.s3.endpoint,
            force_path_style=config.s3.force_path_style,
        )

        stored = await storage.upload_object(key, content, "application/pdf")
    """

    def __init__(
        self,
        bucket_name: str,
        region: str,
        access_key: Optional[str],
        secret_key: Optional[str],
        endpoint_url: Optional[str] = None,
        force_path_style: bool = False,
        upload_url_expires_in: int = 900,
        timeout_seconds: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize S3 storage adapter.

        Args:
            bucket_name: S3 bucket name
            region: AWS region
            access_key: S3 access key ID
            secret_key: S3 secret access key
            endpoint_url: Explicit endpoint (None for AWS S3, URL for MinIO)
            force_path_style: Address objects as /bucket/key instead of bucket.host/key
            upload_url_expires_in: Lifetime of the internal PUT URL in seconds
            timeout_seconds: HTTP timeout when no client is supplied
            http_client: Shared httpx.AsyncClient (the caller owns its lifecycle)
            clock: Current-time source used for signing

        Raises:
            StorageError: If credentials are missing
        """
        self.signer = SigV4Presigner(
            access_key_id=access_key,
            secret_access_key=secret_key,
            bucket=bucket_name,
            region=region,
            endpoint=endpoint_url,
            force_path_style=force_path_style,
        )
        self.bucket_name = bucket_name
        self.region = region
        self.upload_url_expires_in = upload_url_expires_in
        self.timeout_seconds = timeout_seconds
        self._http_client = http_client
        self._clock = clock

        logger.info(
            f"Initialized S3 storage adapter: bucket={bucket_name}, "
            f"endpoint={endpoint_url or 'AWS S3'}, region={region}, "
            f"path_style={force_path_style}"
        )

    def get_signed_url(self, key: str, expires_in_seconds: int, method: str = "GET") -> str:
        return self.signer.presign(key, method, expires_in_seconds, self._clock())

    async def upload_object(self, key: str, content: bytes, content_type: str) -> StoredObject:
        """PUT content to a freshly presigned URL.

        Raises:
            StorageError: On transport error or non-2xx response
        """
        url = self.get_signed_url(key, self.upload_url_expires_in, "PUT")
        headers = {"Content-Type": content_type}

        try:
            if self._http_client is not None:
                response = await self._http_client.put(url, content=content, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                    response = await client.put(url, content=content, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"S3 upload failed: storage_key={key}, error={e!r}")
            raise StorageError(
                "Failed to upload document to storage", operation="upload_object"
            ) from e

        if not response.is_success:
            logger.error(
                f"S3 upload rejected: storage_key={key}, status={response.status_code}"
            )
            raise StorageError(
                f"Failed to upload document to storage (HTTP {response.status_code})",
                operation="upload_object",
            )

        logger.info(
            f"Uploaded object: storage_key={key}, size={len(content)}, content_type={content_type}",
            extra={"storage_key": key},
        )
        return StoredObject(
            storage_key=key,
            checksum=compute_checksum(content),
            size=len(content),
        )
