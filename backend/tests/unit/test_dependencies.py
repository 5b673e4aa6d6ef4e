"""Unit tests for service wiring and caller identity"""

import pytest

from config import Settings
from dependencies import (
    build_document_service,
    get_access_context,
    parse_csv_header,
)
from infrastructure.imaging.pillow_thumbnailer import PillowThumbnailer
from infrastructure.repositories.document_repository import SqlAlchemyDocumentRepository
from infrastructure.repositories.in_memory_document_repository import InMemoryDocumentRepository
from infrastructure.storage.in_memory_storage_adapter import InMemoryStorageAdapter
from infrastructure.storage.s3_storage_adapter import S3StorageAdapter


def make_settings(**overrides):
    values = dict(STORAGE_PROVIDER="memory", DATABASE_URL=None)
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestBuildDocumentService:

    def test_memory_wiring(self):
        service = build_document_service(make_settings(MAX_FILE_SIZE=2048))

        assert isinstance(service.storage, InMemoryStorageAdapter)
        assert isinstance(service.repository, InMemoryDocumentRepository)
        assert isinstance(service.image_processor, PillowThumbnailer)
        assert service.policy.max_file_size == 2048

    def test_database_url_selects_sqlalchemy_repository(self):
        service = build_document_service(make_settings(DATABASE_URL="sqlite://"))
        assert isinstance(service.repository, SqlAlchemyDocumentRepository)

    def test_s3_wiring(self):
        service = build_document_service(make_settings(
            STORAGE_PROVIDER="s3",
            S3_ACCESS_KEY_ID="key",
            S3_SECRET_ACCESS_KEY="secret",
            S3_BUCKET="docs",
        ))
        assert isinstance(service.storage, S3StorageAdapter)
        assert service.storage.bucket_name == "docs"

    def test_invalid_configuration_raises(self):
        with pytest.raises(ValueError):
            build_document_service(make_settings(STORAGE_PROVIDER="s3", S3_ACCESS_KEY_ID=None))


class TestAccessContextHeaders:

    def test_roles_parsed_from_csv(self):
        context = get_access_context(x_user_id=" user-1 ", x_user_roles="agent, admin,,")
        assert context.user_id == "user-1"
        assert context.roles == frozenset({"agent", "admin"})

    def test_missing_headers(self):
        context = get_access_context(x_user_id=None, x_user_roles=None)
        assert context.user_id == ""
        assert context.roles == frozenset()

    def test_parse_csv_header(self):
        assert parse_csv_header(" a , b ,") == ["a", "b"]
        assert parse_csv_header(None) == []
