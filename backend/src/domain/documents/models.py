"""Document Domain Models

Plain dataclasses for document records, their versions and metadata, plus the
caller context and the inputs accepted by the document service.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from .document_status import DocumentStatus


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class DocumentType(str, Enum):
    DEED = "DEED"
    INSPECTION_REPORT = "INSPECTION_REPORT"
    PHOTO = "PHOTO"
    OTHER = "OTHER"


class DocumentAccessLevel(str, Enum):
    """Access tier of a document

    PRIVATE: uploader only (default)
    RESTRICTED: uploader plus the allow-listed users and roles
    PUBLIC: anyone
    """
    PRIVATE = "PRIVATE"
    RESTRICTED = "RESTRICTED"
    PUBLIC = "PUBLIC"


@dataclass
class DocumentMetadata:
    """Descriptive and access-control metadata of a document.

    allowed_user_ids / allowed_roles grant read access only when the access
    level is RESTRICTED. allowed_roles also grants write access.
    """
    title: str
    uploaded_by: str
    property_id: Optional[str] = None
    description: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    access_level: DocumentAccessLevel = DocumentAccessLevel.PRIVATE
    allowed_user_ids: list[str] = field(default_factory=list)
    allowed_roles: list[str] = field(default_factory=list)
    custom_fields: dict[str, str] = field(default_factory=dict)


@dataclass
class DocumentVersion:
    """One immutable stored revision of a document's bytes."""
    version: int
    storage_key: str
    checksum: str  # SHA-256 of the uploaded bytes (hex)
    size: int
    mime_type: str
    created_at: datetime
    uploaded_by: str
    original_file_name: str
    thumbnail_key: Optional[str] = None


@dataclass
class DocumentRecord:
    """A versioned document.

    Version numbers are contiguous from 1, current_version is always the
    highest one, and versions are append-only.
    """
    id: str
    type: DocumentType
    metadata: DocumentMetadata
    versions: list[DocumentVersion] = field(default_factory=list)
    current_version: int = 0
    status: DocumentStatus = DocumentStatus.ACTIVE
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def next_version(self) -> int:
        return self.current_version + 1

    def append_version(self, version: DocumentVersion) -> None:
        """Append a new version, keeping the numbering contiguous.

        Raises:
            ValueError: If the version number is not current_version + 1
        """
        if version.version != self.next_version:
            raise ValueError(
                f"Document {self.id} expects version {self.next_version}, "
                f"got {version.version}"
            )
        self.versions.append(version)
        self.current_version = version.version
        self.updated_at = version.created_at

    def get_version(self, version_number: int) -> Optional[DocumentVersion]:
        for version in self.versions:
            if version.version == version_number:
                return version
        return None

    def get_current_version(self) -> Optional[DocumentVersion]:
        return self.get_version(self.current_version)


@dataclass(frozen=True)
class AccessContext:
    """Identity of the caller, supplied by the upstream auth layer."""
    user_id: str
    roles: frozenset[str] = frozenset()

    def __post_init__(self):
        if not isinstance(self.roles, frozenset):
            object.__setattr__(self, "roles", frozenset(self.roles or ()))

    @classmethod
    def of(cls, user_id: str, roles=()) -> "AccessContext":
        return cls(user_id=user_id, roles=frozenset(roles))


@dataclass
class UploadedFile:
    """Raw file handed to the service by the transport layer."""
    file_name: str
    mime_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class DocumentMetadataInput:
    """Partial metadata supplied on upload or metadata update.

    Fields left as None are not touched on update. uploaded_by is an owner
    override honoured by update_metadata only.
    """
    property_id: Optional[str] = None
    type: Optional[DocumentType] = None
    title: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[list[str]] = None
    access_level: Optional[DocumentAccessLevel] = None
    allowed_user_ids: Optional[list[str]] = None
    allowed_roles: Optional[list[str]] = None
    custom_fields: Optional[dict[str, str]] = None
    uploaded_by: Optional[str] = None


@dataclass
class DocumentSearchFilters:
    """Filters for list_documents. All supplied filters are ANDed."""
    property_id: Optional[str] = None
    type: Optional[DocumentType] = None
    access_level: Optional[DocumentAccessLevel] = None
    tag: Optional[str] = None
    uploaded_by: Optional[str] = None
    mime_type: Optional[str] = None
    created_after: Optional[datetime] = None
    created_before: Optional[datetime] = None
    search: Optional[str] = None


@dataclass(frozen=True)
class DownloadUrl:
    url: str
    expires_at: datetime
