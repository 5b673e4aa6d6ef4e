"""Document SQLAlchemy models

DocumentRecordModel holds the descriptive and access-control metadata of a
document; DocumentVersionModel holds one stored revision of its bytes.
Version rows are only ever inserted, never updated or deleted.
"""

from sqlalchemy import (
    BigInteger,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .base import Base, PortableJSONB, UTCDateTime


class DocumentRecordModel(Base):
    """A versioned document.

    Access control columns (access_level, allowed_user_ids, allowed_roles)
    are evaluated in the domain layer, not in SQL.
    """
    __tablename__ = "document_record"
    __table_args__ = (
        Index("ix_document_record_property_id", "property_id"),
        Index("ix_document_record_uploaded_by", "uploaded_by"),
        Index("ix_document_record_created_at", "created_at"),
    )

    id = Column(String(64), primary_key=True)
    type = Column(String(32), nullable=False)
    status = Column(String(16), nullable=False, default="ACTIVE")
    current_version = Column(Integer, nullable=False, default=0)

    title = Column(Text, nullable=False)
    uploaded_by = Column(Text, nullable=False)
    property_id = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    access_level = Column(String(16), nullable=False, default="PRIVATE")
    tags = Column(PortableJSONB, nullable=False)
    allowed_user_ids = Column(PortableJSONB, nullable=False)
    allowed_roles = Column(PortableJSONB, nullable=False)
    custom_fields = Column(PortableJSONB, nullable=False)

    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)

    # Relationships
    versions = relationship(
        "DocumentVersionModel",
        back_populates="document",
        order_by="DocumentVersionModel.version",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class DocumentVersionModel(Base):
    """One immutable stored revision. (document_id, version) is unique."""
    __tablename__ = "document_version"
    __table_args__ = (
        UniqueConstraint("document_id", "version", name="uq_document_version_document_id_version"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(
        String(64),
        ForeignKey("document_record.id", ondelete="CASCADE"),
        nullable=False,
    )
    version = Column(Integer, nullable=False)
    storage_key = Column(Text, nullable=False)
    checksum = Column(String(64), nullable=False)  # sha256 hex
    size = Column(BigInteger, nullable=False)
    mime_type = Column(Text, nullable=False)
    original_file_name = Column(Text, nullable=False)
    thumbnail_key = Column(Text, nullable=True)
    uploaded_by = Column(Text, nullable=False)
    created_at = Column(UTCDateTime, nullable=False)

    # Relationships
    document = relationship("DocumentRecordModel", back_populates="versions")
