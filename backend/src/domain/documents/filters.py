"""Search filter matching shared by the document repositories"""

from datetime import datetime, timezone

from .models import DocumentRecord, DocumentSearchFilters


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _search_text(record: DocumentRecord) -> str:
    metadata = record.metadata
    return " ".join(
        [metadata.title, metadata.description or "", " ".join(metadata.tags)]
    ).lower()


def matches_filters(record: DocumentRecord, filters: DocumentSearchFilters) -> bool:
    """Return True when the record satisfies every supplied filter.

    Exact match on property_id, type, access_level, uploaded_by and the current
    version's mime_type; inclusive created_at range; case-insensitive exact tag
    match; case-insensitive substring search over title, description and tags.
    """
    metadata = record.metadata

    if filters.property_id and metadata.property_id != filters.property_id:
        return False
    if filters.type and record.type != filters.type:
        return False
    if filters.access_level and metadata.access_level != filters.access_level:
        return False
    if filters.uploaded_by and metadata.uploaded_by != filters.uploaded_by:
        return False
    if filters.mime_type:
        current = record.get_current_version()
        if current is None or current.mime_type != filters.mime_type:
            return False
    if filters.created_after and _as_utc(record.created_at) < _as_utc(filters.created_after):
        return False
    if filters.created_before and _as_utc(record.created_at) > _as_utc(filters.created_before):
        return False
    if filters.tag:
        wanted = filters.tag.lower()
        if not any(tag.lower() == wanted for tag in metadata.tags):
            return False
    if filters.search:
        if filters.search.lower() not in _search_text(record):
            return False

    return True
