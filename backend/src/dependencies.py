"""Global FastAPI dependencies for caller identity and the document service.

This module provides:
- get_access_context: Caller identity from the upstream auth layer headers
- get_document_service: Process-wide DocumentService built from Settings

Tests replace get_document_service through app.dependency_overrides.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status

from config import Settings, get_settings
from database import build_engine, build_session_factory, init_db
from domain.documents.models import AccessContext
from domain.documents.ports import DocumentRepositoryPort
from domain.documents.service import DocumentService
from infrastructure.imaging.pillow_thumbnailer import PillowThumbnailer
from infrastructure.repositories.document_repository import SqlAlchemyDocumentRepository
from infrastructure.repositories.in_memory_document_repository import InMemoryDocumentRepository
from infrastructure.storage.storage_config import create_storage_adapter, load_storage_config

logger = logging.getLogger(__name__)


# Document service singleton (initialized once)
_document_service: Optional[DocumentService] = None


def parse_csv_header(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [entry.strip() for entry in value.split(",") if entry.strip()]


def get_access_context(
    x_user_id: Annotated[Optional[str], Header()] = None,
    x_user_roles: Annotated[Optional[str], Header()] = None,
) -> AccessContext:
    """Build the caller's AccessContext from X-User-Id / X-User-Roles.

    A missing user id is passed through empty; the service rejects it with
    INVALID_REQUEST so the error body stays uniform.
    """
    return AccessContext(
        user_id=(x_user_id or "").strip(),
        roles=frozenset(parse_csv_header(x_user_roles)),
    )


def build_document_repository(settings: Settings) -> DocumentRepositoryPort:
    """SQLAlchemy repository when DATABASE_URL is set, in-memory otherwise."""
    if settings.DATABASE_URL:
        engine = build_engine(settings.DATABASE_URL)
        init_db(engine)
        logger.info(f"Using SQLAlchemy document repository: dialect={engine.dialect.name}")
        return SqlAlchemyDocumentRepository(build_session_factory(engine))

    logger.info("Using in-memory document repository")
    return InMemoryDocumentRepository()


def build_document_service(settings: Optional[Settings] = None) -> DocumentService:
    """Wire storage, repository and thumbnailer from configuration.

    Raises:
        ValueError: If the storage configuration is invalid
    """
    settings = settings or get_settings()
    storage_config = load_storage_config(settings)
    return DocumentService(
        storage=create_storage_adapter(storage_config),
        repository=build_document_repository(settings),
        policy=storage_config.document_policy(),
        image_processor=PillowThumbnailer(),
    )


def get_document_service() -> DocumentService:
    """Get or create the document service singleton.

    Raises:
        HTTPException: If storage configuration is invalid
    """
    global _document_service

    if _document_service is None:
        try:
            _document_service = build_document_service()
            logger.info("Initialized document service")
        except ValueError as e:
            logger.error(f"Failed to initialize document service: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Storage configuration error: {e}",
            )

    return _document_service


def reset_document_service() -> None:
    """Drop the singleton so the next request rebuilds it from fresh settings."""
    global _document_service
    _document_service = None


CurrentAccess = Annotated[AccessContext, Depends(get_access_context)]
DocumentServiceDep = Annotated[DocumentService, Depends(get_document_service)]
