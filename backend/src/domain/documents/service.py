"""Document Service - upload, versioning, metadata, search and download URLs.

Composes the storage provider, the document repository, the access evaluator
and the optional image processor. The service exclusively owns record
mutation; a version is appended only after its bytes are durably uploaded.

Flow for every stored file:
1. Validate MIME type and size, scan for malicious signatures (no I/O yet)
2. Compute checksum and thumbnail bytes (outside any document lock)
3. Upload bytes, then the thumbnail (thumbnail failures are non-fatal)
4. Append the version and persist the record
"""

import asyncio
import copy
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence
from uuid import uuid4

from observability.metrics import (
    document_versions_added_total,
    documents_uploaded_total,
    download_urls_issued_total,
    storage_upload_duration_seconds,
    thumbnails_total,
)

from .access import has_read_access, has_write_access
from .errors import (
    DocumentNotFoundError,
    ForbiddenError,
    InvalidRequestError,
    StorageError,
)
from .locks import DocumentLockRegistry
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
    utcnow,
)
from .ports import DocumentRepositoryPort, ImageProcessorPort, ObjectStoragePort
from .validation import (
    DEFAULT_ALLOWED_MIME_TYPES,
    DEFAULT_MAX_FILE_SIZE,
    build_storage_key,
    build_thumbnail_key,
    compute_checksum,
    contains_malicious_signature,
    is_image_mime_type,
    is_supported_mime_type,
    validate_file_size,
)

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled document"


@dataclass(frozen=True)
class DocumentPolicy:
    """Upload limits, thumbnail parameters and URL lifetime applied by the service."""
    allowed_mime_types: tuple[str, ...] = DEFAULT_ALLOWED_MIME_TYPES
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    signed_url_expires_in: int = 900
    thumbnail_width: int = 320
    thumbnail_height: int = 320
    thumbnail_format: str = "webp"
    thumbnail_quality: int = 80


@dataclass
class _PreparedFile:
    file: UploadedFile
    checksum: str
    thumbnail: Optional[bytes] = None


def _clean_tags(tags: Sequence[str]) -> list[str]:
    return [tag.strip() for tag in tags if tag and tag.strip()]


class DocumentService:
    """Orchestrates document storage and access control.

    Example:
        service = DocumentService(
            storage=InMemoryStorageAdapter(signing_secret="secret"),
            repository=InMemoryDocumentRepository(),
            image_processor=PillowThumbnailer(),
        )
        [record] = await service.upload_documents(
            [UploadedFile("deed.pdf", "application/pdf", content)],
            DocumentMetadataInput(title="Deed", type=DocumentType.DEED),
            AccessContext.of("user-1"),
        )
    """

    def __init__(
        self,
        storage: ObjectStoragePort,
        repository: DocumentRepositoryPort,
        policy: Optional[DocumentPolicy] = None,
        image_processor: Optional[ImageProcessorPort] = None,
        locks: Optional[DocumentLockRegistry] = None,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = lambda: str(uuid4()),
    ):
        self.storage = storage
        self.repository = repository
        self.policy = policy or DocumentPolicy()
        self.image_processor = image_processor
        self.locks = locks or DocumentLockRegistry()
        self._clock = clock
        self._new_id = id_factory

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def upload_documents(
        self,
        files: Sequence[UploadedFile],
        metadata_input: Optional[DocumentMetadataInput],
        context: AccessContext,
    ) -> list[DocumentRecord]:
        """Create one ACTIVE record with version 1 per file.

        Every file is validated and scanned before anything is uploaded, so an
        invalid file rejects the whole batch with nothing persisted.
        """
        operation = "upload_documents"
        self._assert_context(context, operation)
        if not files:
            raise InvalidRequestError(
                "At least one file is required", operation=operation, field="files"
            )

        metadata_input = metadata_input or DocumentMetadataInput()
        for file in files:
            self._validate_file(file, operation)
        prepared = [await self._prepare(file) for file in files]

        metadata = self._build_metadata(metadata_input, owner=context.user_id)
        records = []
        for item in prepared:
            document_id = self._new_id()
            version = await self._store_version(document_id, 1, item, context, operation)
            record = DocumentRecord(
                id=document_id,
                type=metadata_input.type or DocumentType.OTHER,
                metadata=copy.deepcopy(metadata),
                created_at=version.created_at,
                updated_at=version.created_at,
            )
            record.append_version(version)
            self.repository.create(record)
            records.append(record)
            documents_uploaded_total.labels(document_type=record.type.value).inc()

            logger.info(
                f"Document created: id={document_id}, storage_key={version.storage_key}, "
                f"size={version.size}, mime_type={version.mime_type}",
                extra={"document_id": document_id, "operation": operation, "user_id": context.user_id},
            )

        return records

    async def add_document_version(
        self,
        document_id: str,
        file: UploadedFile,
        context: AccessContext,
    ) -> DocumentRecord:
        """Append file as version current_version + 1. Requires write access."""
        operation = "add_document_version"
        self._assert_context(context, operation)
        if file is None:
            raise InvalidRequestError(
                "A file is required", document_id=document_id, operation=operation, field="file"
            )
        # Fail fast before any hashing or resizing work
        self._get_for_write(document_id, context, operation)
        self._validate_file(file, operation, document_id)
        prepared = await self._prepare(file)

        async with self.locks.hold(document_id):
            record = self._get_for_write(document_id, context, operation)
            version = await self._store_version(
                document_id, record.next_version, prepared, context, operation
            )
            record.append_version(version)
            self.repository.update(record)
            document_versions_added_total.labels(document_type=record.type.value).inc()

        logger.info(
            f"Document version added: id={document_id}, version={version.version}, "
            f"storage_key={version.storage_key}",
            extra={"document_id": document_id, "operation": operation, "user_id": context.user_id},
        )
        return record

    async def update_metadata(
        self,
        document_id: str,
        metadata_input: DocumentMetadataInput,
        context: AccessContext,
    ) -> DocumentRecord:
        """Merge the supplied fields into the metadata. Version history is untouched.

        The owner is preserved unless metadata_input.uploaded_by is set. That
        override is meant for administrative callers, but nothing here can tell
        them apart from ordinary ones, so every override is logged.
        """
        operation = "update_metadata"
        self._assert_context(context, operation)

        async with self.locks.hold(document_id):
            record = self._get_for_write(document_id, context, operation)
            record.metadata = self._merge_metadata(record.metadata, metadata_input)
            if metadata_input.uploaded_by and metadata_input.uploaded_by != record.metadata.uploaded_by:
                logger.warning(
                    f"Document owner override: id={document_id}, "
                    f"from={record.metadata.uploaded_by}, to={metadata_input.uploaded_by}",
                    extra={"document_id": document_id, "operation": operation, "user_id": context.user_id},
                )
                record.metadata.uploaded_by = metadata_input.uploaded_by
            if metadata_input.type is not None:
                record.type = metadata_input.type
            record.updated_at = self._clock()
            self.repository.update(record)

        logger.info(
            f"Document metadata updated: id={document_id}",
            extra={"document_id": document_id, "operation": operation, "user_id": context.user_id},
        )
        return record

    def get_document(self, document_id: str, context: AccessContext) -> DocumentRecord:
        operation = "get_document"
        self._assert_context(context, operation)
        record = self._load(document_id, operation)
        if not has_read_access(record.metadata, context):
            logger.warning(
                f"Read access denied: id={document_id}",
                extra={"document_id": document_id, "operation": operation, "user_id": context.user_id},
            )
            raise ForbiddenError(
                "You do not have permission to access this document",
                document_id=document_id,
                operation=operation,
            )
        return record

    def list_documents(
        self,
        filters: Optional[DocumentSearchFilters],
        context: AccessContext,
    ) -> list[DocumentRecord]:
        """Readable records matching every supplied filter."""
        self._assert_context(context, "list_documents")
        candidates = self.repository.query(filters or DocumentSearchFilters())
        return [record for record in candidates if has_read_access(record.metadata, context)]

    async def get_download_url(
        self,
        document_id: str,
        version_number: Optional[int],
        context: AccessContext,
    ) -> DownloadUrl:
        """GET-scoped signed URL for the given version (default: current)."""
        operation = "get_download_url"
        self._assert_context(context, operation)
        if version_number is not None and (
            isinstance(version_number, bool) or not isinstance(version_number, int)
        ):
            raise InvalidRequestError(
                "Version must be a number",
                document_id=document_id,
                operation=operation,
                field="version",
            )

        record = self.get_document(document_id, context)
        if version_number is None:
            version = record.get_current_version()
        else:
            version = record.get_version(version_number)
        if version is None:
            raise DocumentNotFoundError(
                "Document version not found",
                document_id=document_id,
                operation=operation,
                field="version",
            )

        expires_in = self.policy.signed_url_expires_in
        issued_at = self._clock()
        try:
            url = self.storage.get_signed_url(version.storage_key, expires_in, "GET")
        except StorageError as exc:
            logger.error(
                f"Signed URL issuance failed: id={document_id}, storage_key={version.storage_key}",
                extra={"document_id": document_id, "operation": operation, "storage_key": version.storage_key},
            )
            raise StorageError(exc.message, document_id=document_id, operation=operation) from exc

        download_urls_issued_total.inc()
        return DownloadUrl(url=url, expires_at=issued_at + timedelta(seconds=expires_in))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _assert_context(self, context: Optional[AccessContext], operation: str) -> None:
        if context is None or not context.user_id or not context.user_id.strip():
            raise InvalidRequestError(
                "User context is required", operation=operation, field="user_id"
            )

    def _load(self, document_id: str, operation: str) -> DocumentRecord:
        record = self.repository.get_by_id(document_id)
        if record is None:
            raise DocumentNotFoundError(
                "Document not found", document_id=document_id, operation=operation
            )
        return record

    def _get_for_write(
        self, document_id: str, context: AccessContext, operation: str
    ) -> DocumentRecord:
        record = self._load(document_id, operation)
        if not has_write_access(record.metadata, context):
            logger.warning(
                f"Write access denied: id={document_id}",
                extra={"document_id": document_id, "operation": operation, "user_id": context.user_id},
            )
            raise ForbiddenError(
                "You do not have permission to update this document",
                document_id=document_id,
                operation=operation,
            )
        return record

    def _validate_file(
        self, file: UploadedFile, operation: str, document_id: Optional[str] = None
    ) -> None:
        if not is_supported_mime_type(file.mime_type, self.policy.allowed_mime_types):
            raise InvalidRequestError(
                f"Unsupported file type: {file.mime_type}",
                document_id=document_id,
                operation=operation,
                field="mime_type",
            )

        is_valid, error_msg = validate_file_size(file.size, self.policy.max_file_size)
        if not is_valid:
            raise InvalidRequestError(
                error_msg, document_id=document_id, operation=operation, field="size"
            )

        if contains_malicious_signature(file.content):
            logger.warning(
                f"Malicious signature detected: file_name={file.file_name}",
                extra={"document_id": document_id, "operation": operation},
            )
            raise InvalidRequestError(
                "File failed virus scan",
                document_id=document_id,
                operation=operation,
                field="content",
            )

    async def _prepare(self, file: UploadedFile) -> _PreparedFile:
        return _PreparedFile(
            file=file,
            checksum=compute_checksum(file.content),
            thumbnail=await self._create_thumbnail(file),
        )

    async def _create_thumbnail(self, file: UploadedFile) -> Optional[bytes]:
        if self.image_processor is None or not is_image_mime_type(file.mime_type):
            return None
        try:
            thumbnail = await asyncio.to_thread(
                self.image_processor.create_thumbnail,
                file.content,
                self.policy.thumbnail_width,
                self.policy.thumbnail_height,
                self.policy.thumbnail_format,
                self.policy.thumbnail_quality,
            )
        except Exception as e:
            thumbnails_total.labels(status="error").inc()
            logger.warning(
                f"Failed to generate thumbnail; continuing without it: "
                f"file_name={file.file_name}, error={e}"
            )
            return None
        thumbnails_total.labels(status="success").inc()
        return thumbnail

    async def _store_version(
        self,
        document_id: str,
        version_number: int,
        prepared: _PreparedFile,
        context: AccessContext,
        operation: str,
    ) -> DocumentVersion:
        file = prepared.file
        storage_key = build_storage_key(document_id, version_number, file.file_name)
        started = time.perf_counter()
        try:
            stored = await self.storage.upload_object(storage_key, file.content, file.mime_type)
        except StorageError as exc:
            storage_upload_duration_seconds.labels(status="error").observe(time.perf_counter() - started)
            logger.error(
                f"Upload failed: id={document_id}, storage_key={storage_key}, error={exc.message}",
                extra={"document_id": document_id, "operation": operation, "storage_key": storage_key},
            )
            raise StorageError(
                exc.message, document_id=document_id, operation=operation, field="content"
            ) from exc
        storage_upload_duration_seconds.labels(status="success").observe(time.perf_counter() - started)

        if stored.checksum != prepared.checksum:
            raise StorageError(
                f"Checksum mismatch for {storage_key}: expected {prepared.checksum}, "
                f"got {stored.checksum}",
                document_id=document_id,
                operation=operation,
                field="checksum",
            )

        thumbnail_key = None
        if prepared.thumbnail is not None:
            thumbnail_key = await self._store_thumbnail(document_id, version_number, prepared.thumbnail)

        return DocumentVersion(
            version=version_number,
            storage_key=storage_key,
            checksum=prepared.checksum,
            size=stored.size,
            mime_type=file.mime_type,
            created_at=self._clock(),
            uploaded_by=context.user_id,
            original_file_name=file.file_name,
            thumbnail_key=thumbnail_key,
        )

    async def _store_thumbnail(
        self, document_id: str, version_number: int, thumbnail: bytes
    ) -> Optional[str]:
        image_format = self.policy.thumbnail_format
        thumbnail_key = build_thumbnail_key(document_id, version_number, image_format)
        try:
            await self.storage.upload_object(thumbnail_key, thumbnail, f"image/{image_format}")
        except StorageError as e:
            logger.warning(
                f"Failed to store thumbnail; continuing without it: "
                f"storage_key={thumbnail_key}, error={e}",
                extra={"document_id": document_id, "storage_key": thumbnail_key},
            )
            return None
        return thumbnail_key

    def _build_metadata(self, metadata_input: DocumentMetadataInput, owner: str) -> DocumentMetadata:
        return DocumentMetadata(
            title=(metadata_input.title or "").strip() or DEFAULT_TITLE,
            uploaded_by=owner,
            property_id=metadata_input.property_id,
            description=metadata_input.description,
            tags=_clean_tags(metadata_input.tags or []),
            access_level=metadata_input.access_level or DocumentAccessLevel.PRIVATE,
            allowed_user_ids=list(metadata_input.allowed_user_ids or []),
            allowed_roles=list(metadata_input.allowed_roles or []),
            custom_fields=dict(metadata_input.custom_fields or {}),
        )

    def _merge_metadata(
        self, current: DocumentMetadata, metadata_input: DocumentMetadataInput
    ) -> DocumentMetadata:
        merged = copy.deepcopy(current)
        if metadata_input.title is not None:
            merged.title = metadata_input.title.strip() or DEFAULT_TITLE
        if metadata_input.property_id is not None:
            merged.property_id = metadata_input.property_id
        if metadata_input.description is not None:
            merged.description = metadata_input.description
        if metadata_input.tags is not None:
            merged.tags = _clean_tags(metadata_input.tags)
        if metadata_input.access_level is not None:
            merged.access_level = metadata_input.access_level
        if metadata_input.allowed_user_ids is not None:
            merged.allowed_user_ids = list(metadata_input.allowed_user_ids)
        if metadata_input.allowed_roles is not None:
            merged.allowed_roles = list(metadata_input.allowed_roles)
        if metadata_input.custom_fields is not None:
            merged.custom_fields = dict(metadata_input.custom_fields)
        return merged
