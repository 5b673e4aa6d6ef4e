"""File validation utilities for document uploads

MIME allow-list and size checks, the placeholder malicious-content scan,
filename sanitization and storage key layout.
"""

import hashlib
import re
from typing import Iterable, Optional, Tuple


# Default allow-list, overridable via ALLOWED_FILE_TYPES
DEFAULT_ALLOWED_MIME_TYPES = (
    'image/jpeg',
    'image/png',
    'image/webp',
    'application/pdf',
)

# Default size limit (10MB), overridable via MAX_FILE_SIZE
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024

# EICAR anti-virus test file. Placeholder signature match, not a real scanner.
MALICIOUS_SIGNATURES = (
    b'X5O!P%@AP[4\\PZX54(P^)7CC)7}$EICAR-STANDARD-ANTIVIRUS-TEST-FILE!$H+H*',
)

_UNSAFE_FILENAME_CHARS = re.compile(r'[^a-zA-Z0-9._-]')


def is_supported_mime_type(mime_type: Optional[str], allowed: Iterable[str]) -> bool:
    """Check if MIME type is on the allow-list

    Example:
        >>> is_supported_mime_type('application/pdf', DEFAULT_ALLOWED_MIME_TYPES)
        True
        >>> is_supported_mime_type('application/msword', DEFAULT_ALLOWED_MIME_TYPES)
        False
    """
    return bool(mime_type) and mime_type in set(allowed)


def is_image_mime_type(mime_type: str) -> bool:
    return mime_type.startswith('image/')


def validate_file_size(size_bytes: int, max_size: int = DEFAULT_MAX_FILE_SIZE) -> Tuple[bool, Optional[str]]:
    """Validate file size is within limits

    Args:
        size_bytes: File size in bytes
        max_size: Maximum allowed size

    Returns:
        Tuple of (is_valid, error_message)

    Example:
        >>> validate_file_size(1024)
        (True, None)
        >>> validate_file_size(0)
        (True, None)
    """
    if size_bytes > max_size:
        return False, f"File exceeds maximum allowed size of {max_size} bytes (got {size_bytes} bytes)"

    return True, None


def contains_malicious_signature(content: bytes) -> bool:
    """Match raw bytes against the known malicious test signatures."""
    return any(signature in content for signature in MALICIOUS_SIGNATURES)


def compute_checksum(content: bytes) -> str:
    """SHA-256 of the content, lowercase hex."""
    return hashlib.sha256(content).hexdigest()


def sanitize_filename(filename: str) -> str:
    """Sanitize filename for use inside a storage key

    Every character outside [A-Za-z0-9._-] becomes an underscore, which also
    neutralizes path separators.

    Example:
        >>> sanitize_filename('front view (1).png')
        'front_view__1_.png'
        >>> sanitize_filename('../../etc/passwd')
        '.._.._etc_passwd'
    """
    sanitized = _UNSAFE_FILENAME_CHARS.sub('_', filename or '')
    return sanitized or 'file'


def build_storage_key(document_id: str, version: int, file_name: str) -> str:
    """Storage key layout: documents/{document_id}/v{version}/{sanitized file name}"""
    return f"documents/{document_id}/v{version}/{sanitize_filename(file_name)}"


def build_thumbnail_key(document_id: str, version: int, image_format: str) -> str:
    return build_storage_key(document_id, version, f"thumbnail.{image_format}")
