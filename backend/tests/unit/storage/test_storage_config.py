"""Unit tests for storage configuration and the adapter factory"""

import dataclasses

import pytest

from config import Settings
from domain.documents.service import DocumentPolicy
from infrastructure.storage.in_memory_storage_adapter import InMemoryStorageAdapter
from infrastructure.storage.s3_storage_adapter import S3StorageAdapter
from infrastructure.storage.storage_config import (
    S3Config,
    StorageConfig,
    ThumbnailConfig,
    create_storage_adapter,
    load_storage_config,
    validate_storage_config,
)


def make_settings(**overrides):
    values = dict(
        STORAGE_PROVIDER="s3",
        S3_ACCESS_KEY_ID="minioadmin",
        S3_SECRET_ACCESS_KEY="minioadmin",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


S3_READY = StorageConfig(s3=S3Config(access_key_id="a", secret_access_key="s"))


class TestLoadStorageConfig:

    def test_defaults(self):
        config = load_storage_config(make_settings())

        assert config.provider == "s3"
        assert config.signed_url_expires_in == 900
        assert config.max_file_size == 10 * 1024 * 1024
        assert config.allowed_mime_types == ("image/jpeg", "image/png", "image/webp", "application/pdf")
        assert config.thumbnails == ThumbnailConfig(width=320, height=320, format="webp", quality=80)
        assert config.s3.bucket == "propchain-documents"
        assert config.s3.region == "us-east-1"
        assert config.s3.endpoint is None
        assert config.s3.force_path_style is False

    def test_allowed_types_parsed_from_csv(self):
        config = load_storage_config(make_settings(ALLOWED_FILE_TYPES=" application/pdf , text/csv ,"))
        assert config.allowed_mime_types == ("application/pdf", "text/csv")

    def test_provider_and_format_normalized(self):
        config = load_storage_config(make_settings(STORAGE_PROVIDER=" Memory ", THUMBNAIL_FORMAT="JPEG"))
        assert config.provider == "memory"
        assert config.thumbnails.format == "jpeg"

    def test_empty_credentials_treated_as_missing(self):
        with pytest.raises(ValueError, match="credentials"):
            load_storage_config(make_settings(S3_ACCESS_KEY_ID="", S3_SECRET_ACCESS_KEY=""))

    def test_document_policy(self):
        config = load_storage_config(make_settings(MAX_FILE_SIZE=1024, THUMBNAIL_QUALITY=60))
        policy = config.document_policy()
        assert isinstance(policy, DocumentPolicy)
        assert policy.max_file_size == 1024
        assert policy.thumbnail_quality == 60
        assert policy.signed_url_expires_in == 900


class TestValidateStorageConfig:

    def test_valid_s3_config(self):
        validate_storage_config(S3_READY)

    def test_memory_provider_needs_no_s3_credentials(self):
        validate_storage_config(StorageConfig(provider="memory"))

    @pytest.mark.parametrize(
        "changes,message",
        [
            ({"provider": "gcs"}, "Unknown storage provider"),
            ({"signed_url_expires_in": 0}, "Signed URL expiry"),
            ({"signed_url_expires_in": 604801}, "Signed URL expiry"),
            ({"max_file_size": 0}, "file size"),
            ({"allowed_mime_types": ()}, "MIME type"),
            ({"thumbnails": ThumbnailConfig(format="gif")}, "thumbnail format"),
            ({"thumbnails": ThumbnailConfig(width=0)}, "dimensions"),
            ({"thumbnails": ThumbnailConfig(quality=101)}, "quality"),
            ({"s3": S3Config()}, "credentials"),
            ({"s3": S3Config(access_key_id="a", secret_access_key="s", endpoint="localhost:9000")}, "endpoint"),
        ],
    )
    def test_invalid_values_rejected(self, changes, message):
        with pytest.raises(ValueError, match=message):
            validate_storage_config(dataclasses.replace(S3_READY, **changes))

    def test_memory_provider_requires_secret(self):
        with pytest.raises(ValueError, match="STORAGE_SIGNING_SECRET"):
            validate_storage_config(StorageConfig(provider="memory", signing_secret=""))


class TestCreateStorageAdapter:

    def test_memory_provider(self):
        adapter = create_storage_adapter(StorageConfig(provider="memory"))
        assert isinstance(adapter, InMemoryStorageAdapter)

    def test_s3_provider(self):
        config = dataclasses.replace(
            S3_READY,
            s3=S3Config(
                bucket="docs",
                region="eu-west-1",
                access_key_id="a",
                secret_access_key="s",
                endpoint="http://localhost:9000/",
                force_path_style=True,
            ),
        )
        adapter = create_storage_adapter(config)

        assert isinstance(adapter, S3StorageAdapter)
        assert adapter.bucket_name == "docs"
        assert adapter.signer.base_url == "http://localhost:9000"
        assert adapter.signer.force_path_style is True
