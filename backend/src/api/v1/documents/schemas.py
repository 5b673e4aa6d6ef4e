"""Document API request/response schemas"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from domain.documents.document_status import DocumentStatus
from domain.documents.models import DocumentAccessLevel, DocumentType


class DocumentVersionResponse(BaseModel):
    """One stored revision of a document"""
    version: int = Field(..., description="Version number, contiguous from 1")
    storage_key: str = Field(..., description="Object storage key")
    checksum: str = Field(..., description="SHA256 hash (hex format)")
    size: int = Field(..., description="File size in bytes")
    mime_type: str
    created_at: datetime
    uploaded_by: str
    original_file_name: str
    thumbnail_key: Optional[str] = Field(None, description="Thumbnail storage key (images only)")

    class Config:
        from_attributes = True


class DocumentMetadataResponse(BaseModel):
    title: str
    uploaded_by: str = Field(..., description="Owner user id")
    property_id: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    access_level: DocumentAccessLevel
    allowed_user_ids: List[str] = Field(default_factory=list)
    allowed_roles: List[str] = Field(default_factory=list)
    custom_fields: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        from_attributes = True


class DocumentResponse(BaseModel):
    """A document record with its full version history"""
    id: str
    type: DocumentType
    status: DocumentStatus
    current_version: int
    metadata: DocumentMetadataResponse
    versions: List[DocumentVersionResponse]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DownloadUrlResponse(BaseModel):
    url: str = Field(..., description="Time-boxed signed GET URL")
    expires_at: datetime

    class Config:
        from_attributes = True


class DocumentMetadataUpdateRequest(BaseModel):
    """Partial metadata update. Omitted fields are left untouched.

    The owner cannot be changed through the API.
    """
    property_id: Optional[str] = None
    type: Optional[DocumentType] = None
    title: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    access_level: Optional[DocumentAccessLevel] = None
    allowed_user_ids: Optional[List[str]] = None
    allowed_roles: Optional[List[str]] = None
    custom_fields: Optional[Dict[str, Any]] = None

    class Config:
        extra = "forbid"


class ErrorResponse(BaseModel):
    """Error body returned for every document failure"""
    code: str = Field(..., description="INVALID_REQUEST, NOT_FOUND, FORBIDDEN or STORAGE_FAILURE")
    message: str = Field(..., description="Human-readable error message")
    details: Dict[str, Any] = Field(default_factory=dict, description="document_id, operation, field")


class HealthResponse(BaseModel):
    status: str
    storage_provider: str
