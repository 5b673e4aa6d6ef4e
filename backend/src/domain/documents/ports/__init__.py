"""Capability interfaces the document service depends on"""

from .document_repository_port import DocumentRepositoryPort
from .image_processor_port import ImageProcessorPort
from .object_storage_port import SIGNABLE_METHODS, ObjectStoragePort, StoredObject

__all__ = [
    "DocumentRepositoryPort",
    "ImageProcessorPort",
    "ObjectStoragePort",
    "StoredObject",
    "SIGNABLE_METHODS",
]
