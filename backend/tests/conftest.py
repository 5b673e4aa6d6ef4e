"""Shared pytest fixtures for the document storage tests.

Provides reusable test fixtures for:
- A controllable clock
- In-memory storage and repository
- A DocumentService wired to them
- Caller contexts (owner, stranger, reviewer role)
- Real image bytes built with Pillow
- A FastAPI TestClient using the same service

Usage:
    @pytest.mark.asyncio
    async def test_upload(service, owner, pdf_file):
        [record] = await service.upload_documents([pdf_file], None, owner)
"""

import os
import sys
from datetime import datetime, timedelta, timezone
from io import BytesIO
from pathlib import Path

# Set environment variables BEFORE any imports to ensure they take effect
os.environ.setdefault("STORAGE_PROVIDER", "memory")
os.environ.setdefault("STORAGE_SIGNING_SECRET", "test-signing-secret")
os.environ.setdefault("LOG_JSON", "false")
os.environ.pop("DATABASE_URL", None)

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from domain.documents.models import AccessContext, UploadedFile
from domain.documents.service import DocumentService
from infrastructure.repositories.in_memory_document_repository import InMemoryDocumentRepository
from infrastructure.storage.in_memory_storage_adapter import InMemoryStorageAdapter


FIXED_NOW = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)
SIGNING_SECRET = "test-signing-secret"
PDF_CONTENT = b"%PDF-1.4\n%\xE2\xE3\xCF\xD3\ntest deed content\n"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeThumbnailer:
    """ImageProcessorPort double that records calls."""

    def __init__(self, result: bytes = b"thumbnail-bytes", error: Exception = None):
        self.result = result
        self.error = error
        self.calls = []

    def create_thumbnail(self, content, width, height, image_format, quality):
        self.calls.append((len(content), width, height, image_format, quality))
        if self.error is not None:
            raise self.error
        return self.result


def make_image_bytes(size=(800, 600), image_format="PNG", color=(200, 40, 40)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format=image_format)
    return buffer.getvalue()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage(clock):
    return InMemoryStorageAdapter(signing_secret=SIGNING_SECRET, clock=clock)


@pytest.fixture
def repository():
    return InMemoryDocumentRepository()


@pytest.fixture
def thumbnailer():
    return FakeThumbnailer()


@pytest.fixture
def service(storage, repository, thumbnailer, clock):
    return DocumentService(
        storage=storage,
        repository=repository,
        image_processor=thumbnailer,
        clock=clock,
    )


@pytest.fixture
def owner():
    return AccessContext.of("user-owner")


@pytest.fixture
def stranger():
    return AccessContext.of("user-stranger")


@pytest.fixture
def reviewer():
    return AccessContext.of("user-reviewer", roles=["reviewer"])


@pytest.fixture
def pdf_file():
    return UploadedFile(file_name="deed.pdf", mime_type="application/pdf", content=PDF_CONTENT)


@pytest.fixture
def image_factory():
    """Build real image bytes: image_factory(size=(10, 10), image_format="JPEG")"""
    return make_image_bytes


@pytest.fixture
def png_bytes():
    return make_image_bytes()


@pytest.fixture
def png_file(png_bytes):
    return UploadedFile(file_name="front view.png", mime_type="image/png", content=png_bytes)


@pytest.fixture
def client(service):
    """TestClient whose document service is the in-memory `service` fixture."""
    from dependencies import get_document_service
    from main import app

    app.dependency_overrides[get_document_service] = lambda: service
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
