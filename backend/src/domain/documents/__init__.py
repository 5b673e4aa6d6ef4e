"""Documents domain module - versioned document storage and access control"""

from .document_status import DocumentStatus, can_transition, ALLOWED_TRANSITIONS
from .errors import (
    DocumentError,
    DocumentNotFoundError,
    ForbiddenError,
    InvalidRequestError,
    StorageError,
)
from .models import (
    AccessContext,
    DocumentAccessLevel,
    DocumentMetadata,
    DocumentMetadataInput,
    DocumentRecord,
    DocumentSearchFilters,
    DocumentType,
    DocumentVersion,
    DownloadUrl,
    UploadedFile,
)
from .service import DocumentPolicy, DocumentService
from .validation import (
    DEFAULT_ALLOWED_MIME_TYPES,
    DEFAULT_MAX_FILE_SIZE,
    build_storage_key,
    compute_checksum,
    contains_malicious_signature,
    is_supported_mime_type,
    sanitize_filename,
    validate_file_size,
)

__all__ = [
    "AccessContext",
    "ALLOWED_TRANSITIONS",
    "DEFAULT_ALLOWED_MIME_TYPES",
    "DEFAULT_MAX_FILE_SIZE",
    "DocumentAccessLevel",
    "DocumentError",
    "DocumentMetadata",
    "DocumentMetadataInput",
    "DocumentNotFoundError",
    "DocumentPolicy",
    "DocumentRecord",
    "DocumentSearchFilters",
    "DocumentService",
    "DocumentStatus",
    "DocumentType",
    "DocumentVersion",
    "DownloadUrl",
    "ForbiddenError",
    "InvalidRequestError",
    "StorageError",
    "UploadedFile",
    "build_storage_key",
    "can_transition",
    "compute_checksum",
    "contains_malicious_signature",
    "is_supported_mime_type",
    "sanitize_filename",
    "validate_file_size",
]
