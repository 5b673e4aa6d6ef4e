"""AWS Signature Version 4 query-string presigning for S3-compatible stores.

Produces self-contained URLs: possession of the URL grants the signed method
on the signed object until it expires, with no further credentials.

Signing steps:
1. ISO-8601 basic timestamp (YYYYMMDDTHHMMSSZ) and date stamp (YYYYMMDD)
2. Canonical URI, path-style (/bucket/key) or virtual-host-style (/key),
   every key segment percent-encoded
3. Canonical query: algorithm, credential scope, timestamp, expiry, signed headers
4. Canonical request: METHOD, URI, query, host header, signed headers, UNSIGNED-PAYLOAD
5. String to sign: algorithm, timestamp, scope, sha256(canonical request)
6. Signing key: HMAC chain seeded with "AWS4" + secret over date, region,
   service and "aws4_request"
7. Signature: hex(HMAC(signing key, string to sign)), appended to the query
"""

import hashlib
import hmac
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote, urlencode, urlsplit

from domain.documents.errors import InvalidRequestError, StorageError
from domain.documents.ports.object_storage_port import SIGNABLE_METHODS


ALGORITHM = "AWS4-HMAC-SHA256"
UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"
SIGNED_HEADERS = "host"
MAX_EXPIRES_IN_SECONDS = 7 * 24 * 60 * 60  # S3 presigned URL ceiling

# RFC 3986 unreserved characters are the only ones left unescaped
_UNRESERVED = "-_.~"


def _hmac(key: bytes, message: str) -> bytes:
    return hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()


def _sha256_hex(payload: str) -> str:
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def derive_signing_key(secret_key: str, date_stamp: str, region: str, service: str) -> bytes:
    k_date = _hmac(f"AWS4{secret_key}".encode("utf-8"), date_stamp)
    k_region = _hmac(k_date, region)
    k_service = _hmac(k_region, service)
    return _hmac(k_service, "aws4_request")


class SigV4Presigner:
    """Builds presigned URLs for one bucket.

    The base URL is the explicit endpoint when configured (trailing slash
    stripped), else the regional AWS endpoint. The canonical host header is
    always taken from that same base URL.

    Example:
        signer = SigV4Presigner(
            access_key_id="AKIA...",
            secret_access_key="...",
            bucket="propchain-documents",
            region="eu-central-1",
        )
        url = signer.presign("documents/<id>/v1/deed.pdf", "GET", 900, now)
    """

    def __init__(
        self,
        access_key_id: Optional[str],
        secret_access_key: Optional[str],
        bucket: str,
        region: str,
        endpoint: Optional[str] = None,
        force_path_style: bool = False,
        service: str = "s3",
    ):
        if not access_key_id or not secret_access_key:
            raise StorageError(
                "S3 credentials are not configured",
                operation="sign_url",
                field="credentials",
            )
        self.access_key_id = access_key_id
        self._secret_access_key = secret_access_key
        self.bucket = bucket
        self.region = region
        self.endpoint = endpoint
        self.force_path_style = force_path_style
        self.service = service

    @property
    def base_url(self) -> str:
        if self.endpoint:
            return self.endpoint.rstrip("/")
        if self.force_path_style:
            return f"https://s3.{self.region}.amazonaws.com"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com"

    @property
    def host(self) -> str:
        return urlsplit(self.base_url).netloc

    def canonical_uri(self, key: str) -> str:
        encoded_key = "/".join(quote(segment, safe=_UNRESERVED) for segment in key.split("/"))
        if self.force_path_style:
            return f"/{self.bucket}/{encoded_key}"
        return f"/{encoded_key}"

    def credential_scope(self, date_stamp: str) -> str:
        return f"{date_stamp}/{self.region}/{self.service}/aws4_request"

    def canonical_query(self, amz_date: str, date_stamp: str, expires_in_seconds: int) -> str:
        # Keys are already in byte order, as SigV4 requires
        params = [
            ("X-Amz-Algorithm", ALGORITHM),
            ("X-Amz-Credential", f"{self.access_key_id}/{self.credential_scope(date_stamp)}"),
            ("X-Amz-Date", amz_date),
            ("X-Amz-Expires", str(expires_in_seconds)),
            ("X-Amz-SignedHeaders", SIGNED_HEADERS),
        ]
        return urlencode(params, safe=_UNRESERVED, quote_via=quote)

    def canonical_request(self, method: str, key: str, canonical_query: str) -> str:
        return "\n".join([
            method,
            self.canonical_uri(key),
            canonical_query,
            f"host:{self.host}",
            "",
            SIGNED_HEADERS,
            UNSIGNED_PAYLOAD,
        ])

    def string_to_sign(self, amz_date: str, date_stamp: str, canonical_request: str) -> str:
        return "\n".join([
            ALGORITHM,
            amz_date,
            self.credential_scope(date_stamp),
            _sha256_hex(canonical_request),
        ])

    def presign(self, key: str, method: str, expires_in_seconds: int, now: datetime) -> str:
        """Return a presigned URL for method on key, valid from now for expires_in_seconds.

        Raises:
            InvalidRequestError: Empty key, unsupported method, or expiry not
                in 1..604800 seconds
        """
        method = (method or "").upper()
        if not key:
            raise InvalidRequestError("Storage key is required", operation="sign_url", field="key")
        if method not in SIGNABLE_METHODS:
            raise InvalidRequestError(
                f"Unsupported signing method: {method}", operation="sign_url", field="method"
            )
        if (
            isinstance(expires_in_seconds, bool)
            or not isinstance(expires_in_seconds, int)
            or not 0 < expires_in_seconds <= MAX_EXPIRES_IN_SECONDS
        ):
            raise InvalidRequestError(
                f"expires_in_seconds must be between 1 and {MAX_EXPIRES_IN_SECONDS}",
                operation="sign_url",
                field="expires_in_seconds",
            )

        now = now.astimezone(timezone.utc)
        amz_date = now.strftime("%Y%m%dT%H%M%SZ")
        date_stamp = now.strftime("%Y%m%d")

        query = self.canonical_query(amz_date, date_stamp, expires_in_seconds)
        canonical_request = self.canonical_request(method, key, query)
        string_to_sign = self.string_to_sign(amz_date, date_stamp, canonical_request)
        signing_key = derive_signing_key(
            self._secret_access_key, date_stamp, self.region, self.service
        )
        signature = hmac.new(
            signing_key, string_to_sign.encode("utf-8"), hashlib.sha256
        ).hexdigest()

        return f"{self.base_url}{self.canonical_uri(key)}?{query}&X-Amz-Signature={signature}"
