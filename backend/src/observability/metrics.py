"""Prometheus metrics for the document storage service.

Counters for stored documents and versions, issued download URLs and
failures, plus object store upload latency.
"""

from prometheus_client import Counter, Histogram

# Document write metrics
documents_uploaded_total = Counter(
    "document_storage_documents_uploaded_total",
    "Total number of documents created by upload",
    ["document_type"]
)

document_versions_added_total = Counter(
    "document_storage_versions_added_total",
    "Total number of versions appended to existing documents",
    ["document_type"]
)

thumbnails_total = Counter(
    "document_storage_thumbnails_total",
    "Thumbnail attempts for image uploads",
    ["status"]  # status: success|error
)

# Read metrics
download_urls_issued_total = Counter(
    "document_storage_download_urls_issued_total",
    "Total number of signed download URLs issued"
)

# Object store metrics
storage_upload_duration_seconds = Histogram(
    "document_storage_storage_upload_duration_seconds",
    "Time spent uploading objects to the object store in seconds",
    ["status"],  # status: success|error
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]
)

# Failure metrics
document_errors_total = Counter(
    "document_storage_errors_total",
    "Document operation failures by error code",
    ["operation", "error_code"]
)
