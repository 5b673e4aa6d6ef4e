"""Object Storage Port - capability interface for document byte storage.

Any object implementing upload_object() and get_signed_url() is a storage
provider; no base class is required. Providers own raw bytes and URL signing
only, never document record state.

Architecture: Hexagonal - Port interface in domain layer
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


SIGNABLE_METHODS = ("GET", "PUT")


@dataclass(frozen=True)
class StoredObject:
    """Result of a successful upload.

    Attributes:
        storage_key: Key the bytes were stored under
        checksum: SHA-256 of the stored bytes (hex format)
        size: Number of bytes stored
    """
    storage_key: str
    checksum: str
    size: int


@runtime_checkable
class ObjectStoragePort(Protocol):
    """Capability interface for S3-compatible object storage.

    Example Usage:
        storage = create_storage_adapter(config)

        stored = await storage.upload_object(
            "documents/<id>/v1/deed.pdf", content, "application/pdf"
        )
        url = storage.get_signed_url(stored.storage_key, 900, "GET")
    """

    async def upload_object(self, key: str, content: bytes, content_type: str) -> StoredObject:
        """Store bytes under key.

        Safe to retry at the caller level: a retry overwrites the same key.

        Raises:
            StorageError: On credential, transport or backend failure. The
                upload either fully succeeds or raises.
        """
        ...

    def get_signed_url(self, key: str, expires_in_seconds: int, method: str = "GET") -> str:
        """Issue a time-boxed URL granting `method` on `key`.

        Pure function of (key, method, current time, credentials). No network I/O.

        Raises:
            InvalidRequestError: If expires_in_seconds is not positive or the
                method is not signable
            StorageError: If signing credentials are missing
        """
        ...
