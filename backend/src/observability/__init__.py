"""Observability: structured logging, request correlation and metrics."""

from .logging_config import JSONFormatter, RequestIDFilter, configure_logging
from .metrics import (
    document_errors_total,
    document_versions_added_total,
    documents_uploaded_total,
    download_urls_issued_total,
    storage_upload_duration_seconds,
    thumbnails_total,
)
from .middleware import RequestIDMiddleware
from .request_id import (
    REQUEST_ID_HEADER,
    generate_request_id,
    get_request_id,
    request_id_var,
    resolve_request_id,
    set_request_id,
)

__all__ = [
    "configure_logging",
    "JSONFormatter",
    "RequestIDFilter",
    "RequestIDMiddleware",
    "document_errors_total",
    "document_versions_added_total",
    "documents_uploaded_total",
    "download_urls_issued_total",
    "storage_upload_duration_seconds",
    "thumbnails_total",
    "REQUEST_ID_HEADER",
    "generate_request_id",
    "get_request_id",
    "request_id_var",
    "resolve_request_id",
    "set_request_id",
]
