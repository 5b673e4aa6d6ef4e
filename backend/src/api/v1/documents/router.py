"""Document storage API endpoints.

Thin HTTP surface over DocumentService: multipart uploads, version appends,
metadata updates, search and signed download URLs. Caller identity comes from
the X-User-Id / X-User-Roles headers set by the upstream auth layer.

Domain errors propagate to the exception handlers registered in main.
"""

import dataclasses
import json
import logging
from datetime import datetime
from enum import Enum
from typing import Annotated, List, Optional, Type, TypeVar

from fastapi import APIRouter, File, Form, Query, UploadFile, status

from dependencies import CurrentAccess, DocumentServiceDep, parse_csv_header
from domain.documents.errors import InvalidRequestError
from domain.documents.models import (
    DocumentAccessLevel,
    DocumentMetadataInput,
    DocumentRecord,
    DocumentSearchFilters,
    DocumentType,
    UploadedFile,
)

from .schemas import (
    DocumentMetadataUpdateRequest,
    DocumentResponse,
    DownloadUrlResponse,
    ErrorResponse,
    HealthResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/documents",
    tags=["documents"],
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)

E = TypeVar("E", bound=Enum)

DEFAULT_MIME_TYPE = "application/octet-stream"


def _to_response(record: DocumentRecord) -> DocumentResponse:
    return DocumentResponse.model_validate(dataclasses.asdict(record))


def _parse_enum(enum_cls: Type[E], value: Optional[str], field: str) -> Optional[E]:
    if value is None or not value.strip():
        return None
    try:
        return enum_cls(value.strip().upper())
    except ValueError:
        raise InvalidRequestError(f"Invalid {field}: {value}", field=field)


def _parse_custom_fields(value: Optional[str]) -> dict:
    """Decode the custom_fields form value. Malformed JSON becomes an empty map."""
    if not value:
        return {}
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        logger.warning("Ignoring malformed custom_fields JSON")
        return {}
    return parsed if isinstance(parsed, dict) else {}


async def _read_upload(upload: UploadFile) -> UploadedFile:
    content = await upload.read()
    return UploadedFile(
        file_name=upload.filename or "file",
        mime_type=upload.content_type or DEFAULT_MIME_TYPE,
        content=content,
    )


@router.get("/health", response_model=HealthResponse)
async def health(service: DocumentServiceDep):
    """Liveness check; also proves the service could be configured."""
    return HealthResponse(status="ok", storage_provider=type(service.storage).__name__)


@router.post("/upload", status_code=status.HTTP_201_CREATED, response_model=List[DocumentResponse])
async def upload_documents(
    context: CurrentAccess,
    service: DocumentServiceDep,
    files: Annotated[Optional[List[UploadFile]], File()] = None,
    property_id: Annotated[Optional[str], Form()] = None,
    document_type: Annotated[Optional[str], Form(alias="type")] = None,
    title: Annotated[Optional[str], Form()] = None,
    description: Annotated[Optional[str], Form()] = None,
    tags: Annotated[Optional[str], Form()] = None,
    access_level: Annotated[Optional[str], Form()] = None,
    allowed_user_ids: Annotated[Optional[str], Form()] = None,
    allowed_roles: Annotated[Optional[str], Form()] = None,
    custom_fields: Annotated[Optional[str], Form()] = None,
):
    """Upload one or more files, creating one document per file.

    List-valued form fields (tags, allowed_user_ids, allowed_roles) are
    comma-separated; custom_fields is a JSON object.
    """
    uploaded = [await _read_upload(upload) for upload in files or []]
    metadata_input = DocumentMetadataInput(
        property_id=property_id or None,
        type=_parse_enum(DocumentType, document_type, "type"),
        title=title,
        description=description,
        tags=parse_csv_header(tags),
        access_level=_parse_enum(DocumentAccessLevel, access_level, "access_level"),
        allowed_user_ids=parse_csv_header(allowed_user_ids),
        allowed_roles=parse_csv_header(allowed_roles),
        custom_fields=_parse_custom_fields(custom_fields),
    )

    records = await service.upload_documents(uploaded, metadata_input, context)
    return [_to_response(record) for record in records]


@router.post("/{document_id}/version", response_model=DocumentResponse)
async def add_document_version(
    document_id: str,
    context: CurrentAccess,
    service: DocumentServiceDep,
    file: Annotated[Optional[UploadFile], File()] = None,
):
    uploaded = await _read_upload(file) if file is not None else None
    record = await service.add_document_version(document_id, uploaded, context)
    return _to_response(record)


@router.patch("/{document_id}/metadata", response_model=DocumentResponse)
async def update_document_metadata(
    document_id: str,
    request: DocumentMetadataUpdateRequest,
    context: CurrentAccess,
    service: DocumentServiceDep,
):
    metadata_input = DocumentMetadataInput(**request.model_dump(exclude_unset=True))
    record = await service.update_metadata(document_id, metadata_input, context)
    return _to_response(record)


@router.get("/{document_id}/download", response_model=DownloadUrlResponse)
async def get_download_url(
    document_id: str,
    context: CurrentAccess,
    service: DocumentServiceDep,
    version: Annotated[Optional[str], Query(description="Version number (default: current)")] = None,
):
    """Issue a signed GET URL for a version of the document."""
    version_number = None
    if version is not None:
        try:
            version_number = int(version)
        except ValueError:
            raise InvalidRequestError(
                "Version must be a number", document_id=document_id, field="version"
            )

    download = await service.get_download_url(document_id, version_number, context)
    return DownloadUrlResponse(url=download.url, expires_at=download.expires_at)


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: str,
    context: CurrentAccess,
    service: DocumentServiceDep,
):
    return _to_response(service.get_document(document_id, context))


@router.get("", response_model=List[DocumentResponse])
async def list_documents(
    context: CurrentAccess,
    service: DocumentServiceDep,
    property_id: Annotated[Optional[str], Query()] = None,
    document_type: Annotated[Optional[str], Query(alias="type")] = None,
    access_level: Annotated[Optional[str], Query()] = None,
    tag: Annotated[Optional[str], Query()] = None,
    uploaded_by: Annotated[Optional[str], Query()] = None,
    mime_type: Annotated[Optional[str], Query()] = None,
    created_after: Annotated[Optional[datetime], Query()] = None,
    created_before: Annotated[Optional[datetime], Query()] = None,
    search: Annotated[Optional[str], Query()] = None,
):
    """Documents readable by the caller that match every supplied filter."""
    filters = DocumentSearchFilters(
        property_id=property_id,
        type=_parse_enum(DocumentType, document_type, "type"),
        access_level=_parse_enum(DocumentAccessLevel, access_level, "access_level"),
        tag=tag,
        uploaded_by=uploaded_by,
        mime_type=mime_type,
        created_after=created_after,
        created_before=created_before,
        search=search,
    )
    return [_to_response(record) for record in service.list_documents(filters, context)]
