"""Document repository for database operations"""

from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from database import session_scope
from domain.documents.document_status import DocumentStatus
from domain.documents.filters import matches_filters
from domain.documents.models import (
    DocumentAccessLevel,
    DocumentMetadata,
    DocumentRecord,
    DocumentSearchFilters,
    DocumentType,
    DocumentVersion,
)
from models.document import DocumentRecordModel, DocumentVersionModel


class SqlAlchemyDocumentRepository:
    """Repository for document_record / document_version persistence.

    Each call runs in its own session and transaction, which gives
    read-modify-write atomicity per document. Version rows are inserted once
    and never touched again.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize repository with a session factory.

        Args:
            session_factory: Callable returning a new SQLAlchemy session
        """
        self.session_factory = session_factory

    def create(self, record: DocumentRecord) -> DocumentRecord:
        """Persist a new record with its versions.

        Raises:
            ValueError: If a record with the same id exists
        """
        with session_scope(self.session_factory) as db:
            if db.get(DocumentRecordModel, record.id) is not None:
                raise ValueError(f"Document {record.id} already exists")

            db_record = DocumentRecordModel(id=record.id)
            self._apply_record(db_record, record)
            db_record.versions = [self._to_version_model(record.id, v) for v in record.versions]
            db.add(db_record)
            db.flush()
            return self._to_domain(db_record)

    def get_by_id(self, document_id: str) -> Optional[DocumentRecord]:
        with session_scope(self.session_factory) as db:
            db_record = db.get(DocumentRecordModel, document_id)
            return self._to_domain(db_record) if db_record is not None else None

    def update(self, record: DocumentRecord) -> DocumentRecord:
        """Update record columns and insert versions not stored yet.

        Raises:
            KeyError: If the record does not exist
        """
        with session_scope(self.session_factory) as db:
            db_record = db.get(DocumentRecordModel, record.id)
            if db_record is None:
                raise KeyError(record.id)

            self._apply_record(db_record, record)
            known = {v.version for v in db_record.versions}
            for version in record.versions:
                if version.version not in known:
                    db_record.versions.append(self._to_version_model(record.id, version))
            db.flush()
            return self._to_domain(db_record)

    def query(self, filters: DocumentSearchFilters) -> list[DocumentRecord]:
        """Records matching every supplied filter, oldest first.

        Exact-match columns are filtered in SQL; tag, search, mime type and the
        created_at range go through the shared matcher.
        """
        stmt = select(DocumentRecordModel)
        if filters.property_id:
            stmt = stmt.where(DocumentRecordModel.property_id == filters.property_id)
        if filters.type:
            stmt = stmt.where(DocumentRecordModel.type == filters.type.value)
        if filters.access_level:
            stmt = stmt.where(DocumentRecordModel.access_level == filters.access_level.value)
        if filters.uploaded_by:
            stmt = stmt.where(DocumentRecordModel.uploaded_by == filters.uploaded_by)
        stmt = stmt.order_by(DocumentRecordModel.created_at)

        with session_scope(self.session_factory) as db:
            records = [self._to_domain(row) for row in db.execute(stmt).scalars().all()]

        return [record for record in records if matches_filters(record, filters)]

    @staticmethod
    def _apply_record(db_record: DocumentRecordModel, record: DocumentRecord) -> None:
        metadata = record.metadata
        db_record.type = record.type.value
        db_record.status = record.status.value
        db_record.current_version = record.current_version
        db_record.title = metadata.title
        db_record.uploaded_by = metadata.uploaded_by
        db_record.property_id = metadata.property_id
        db_record.description = metadata.description
        db_record.access_level = metadata.access_level.value
        db_record.tags = list(metadata.tags)
        db_record.allowed_user_ids = list(metadata.allowed_user_ids)
        db_record.allowed_roles = list(metadata.allowed_roles)
        db_record.custom_fields = dict(metadata.custom_fields)
        db_record.created_at = record.created_at
        db_record.updated_at = record.updated_at

    @staticmethod
    def _to_version_model(document_id: str, version: DocumentVersion) -> DocumentVersionModel:
        return DocumentVersionModel(
            document_id=document_id,
            version=version.version,
            storage_key=version.storage_key,
            checksum=version.checksum,
            size=version.size,
            mime_type=version.mime_type,
            original_file_name=version.original_file_name,
            thumbnail_key=version.thumbnail_key,
            uploaded_by=version.uploaded_by,
            created_at=version.created_at,
        )

    @staticmethod
    def _to_domain(db_record: DocumentRecordModel) -> DocumentRecord:
        versions = [
            DocumentVersion(
                version=v.version,
                storage_key=v.storage_key,
                checksum=v.checksum,
                size=v.size,
                mime_type=v.mime_type,
                created_at=v.created_at,
                uploaded_by=v.uploaded_by,
                original_file_name=v.original_file_name,
                thumbnail_key=v.thumbnail_key,
            )
            for v in sorted(db_record.versions, key=lambda v: v.version)
        ]
        return DocumentRecord(
            id=db_record.id,
            type=DocumentType(db_record.type),
            metadata=DocumentMetadata(
                title=db_record.title,
                uploaded_by=db_record.uploaded_by,
                property_id=db_record.property_id,
                description=db_record.description,
                tags=list(db_record.tags or []),
                access_level=DocumentAccessLevel(db_record.access_level),
                allowed_user_ids=list(db_record.allowed_user_ids or []),
                allowed_roles=list(db_record.allowed_roles or []),
                custom_fields=dict(db_record.custom_fields or {}),
            ),
            versions=versions,
            current_version=db_record.current_version,
            status=DocumentStatus(db_record.status),
            created_at=db_record.created_at,
            updated_at=db_record.updated_at,
        )
