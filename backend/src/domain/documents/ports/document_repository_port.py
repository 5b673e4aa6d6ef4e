"""Document Repository Port - system of record for DocumentRecords.

Implementations must provide read-modify-write atomicity per document id;
no cross-document transactions are required.
"""

from typing import Optional, Protocol, runtime_checkable

from ..models import DocumentRecord, DocumentSearchFilters


@runtime_checkable
class DocumentRepositoryPort(Protocol):

    def create(self, record: DocumentRecord) -> DocumentRecord:
        """Persist a new record. Raises ValueError if the id already exists."""
        ...

    def get_by_id(self, document_id: str) -> Optional[DocumentRecord]:
        ...

    def update(self, record: DocumentRecord) -> DocumentRecord:
        """Replace metadata/status and append any new versions.

        Previously stored versions are never rewritten or removed.
        Raises KeyError if the record does not exist.
        """
        ...

    def query(self, filters: DocumentSearchFilters) -> list[DocumentRecord]:
        """Records matching every supplied filter, oldest first."""
        ...
