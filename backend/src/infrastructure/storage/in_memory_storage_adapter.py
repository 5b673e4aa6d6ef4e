"""In-memory storage adapter for tests and local development.

Keeps bytes in a dict and signs URLs with
HMAC-SHA256(secret, "{method}:{key}:{expires_at}") where expires_at is the
expiry instant in epoch milliseconds.
"""

import hashlib
import hmac
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional
from urllib.parse import quote

from domain.documents.errors import InvalidRequestError, StorageError
from domain.documents.models import utcnow
from domain.documents.ports.object_storage_port import SIGNABLE_METHODS, StoredObject
from domain.documents.validation import compute_checksum


@dataclass(frozen=True)
class InMemoryObject:
    key: str
    content: bytes
    content_type: str


class InMemoryStorageAdapter:

    BASE_URL = "http://localhost/mock-storage"

    def __init__(self, signing_secret: str, clock: Callable[[], datetime] = utcnow):
        if not signing_secret:
            raise StorageError(
                "Storage signing secret is not configured",
                operation="sign_url",
                field="signing_secret",
            )
        self._secret = signing_secret.encode("utf-8")
        self._clock = clock
        self._objects: dict[str, InMemoryObject] = {}

    async def upload_object(self, key: str, content: bytes, content_type: str) -> StoredObject:
        self._objects[key] = InMemoryObject(key=key, content=bytes(content), content_type=content_type)
        return StoredObject(storage_key=key, checksum=compute_checksum(content), size=len(content))

    def get_signed_url(self, key: str, expires_in_seconds: int, method: str = "GET") -> str:
        method = (method or "").upper()
        if method not in SIGNABLE_METHODS:
            raise InvalidRequestError(
                f"Unsupported signing method: {method}", operation="sign_url", field="method"
            )
        if isinstance(expires_in_seconds, bool) or not isinstance(expires_in_seconds, int) or expires_in_seconds <= 0:
            raise InvalidRequestError(
                "expires_in_seconds must be a positive integer",
                operation="sign_url",
                field="expires_in_seconds",
            )

        expires_at = int(self._clock().timestamp() * 1000) + expires_in_seconds * 1000
        signature = self._sign(method, key, expires_at)
        return f"{self.BASE_URL}/{quote(key, safe='')}?expires={expires_at}&signature={signature}"

    def verify_signature(
        self,
        key: str,
        method: str,
        expires_at: int,
        signature: str,
        now: Optional[datetime] = None,
    ) -> bool:
        """True if signature matches and expires_at (epoch ms) is still in the future."""
        expected = self._sign(method.upper(), key, expires_at)
        if not hmac.compare_digest(expected, signature):
            return False
        current_ms = int((now or self._clock()).timestamp() * 1000)
        return current_ms < expires_at

    def get_object(self, key: str) -> Optional[InMemoryObject]:
        return self._objects.get(key)

    def keys(self) -> list[str]:
        return sorted(self._objects)

    def _sign(self, method: str, key: str, expires_at: int) -> str:
        message = f"{method}:{key}:{expires_at}".encode("utf-8")
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()
