"""SQLAlchemy Models for document storage"""

from .base import Base
from .document import DocumentRecordModel, DocumentVersionModel

__all__ = [
    "Base",
    "DocumentRecordModel",
    "DocumentVersionModel",
]
