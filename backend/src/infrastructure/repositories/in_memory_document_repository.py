"""In-memory document repository for tests and single-process deployments"""

import copy
import threading
from typing import Optional

from domain.documents.filters import matches_filters
from domain.documents.models import DocumentRecord, DocumentSearchFilters


class InMemoryDocumentRepository:
    """Dict-backed DocumentRepositoryPort.

    Records are deep-copied on the way in and out, so callers never share
    state with the store.
    """

    def __init__(self):
        self._records: dict[str, DocumentRecord] = {}
        self._lock = threading.Lock()

    def create(self, record: DocumentRecord) -> DocumentRecord:
        with self._lock:
            if record.id in self._records:
                raise ValueError(f"Document {record.id} already exists")
            self._records[record.id] = copy.deepcopy(record)
        return copy.deepcopy(record)

    def get_by_id(self, document_id: str) -> Optional[DocumentRecord]:
        with self._lock:
            record = self._records.get(document_id)
            return copy.deepcopy(record) if record is not None else None

    def update(self, record: DocumentRecord) -> DocumentRecord:
        with self._lock:
            stored = self._records.get(record.id)
            if stored is None:
                raise KeyError(record.id)

            # Append-only: keep stored versions, add only the new tail
            known = {version.version for version in stored.versions}
            new_versions = [
                copy.deepcopy(version) for version in record.versions if version.version not in known
            ]

            updated = copy.deepcopy(record)
            updated.versions = stored.versions + new_versions
            self._records[record.id] = updated
            return copy.deepcopy(updated)

    def query(self, filters: DocumentSearchFilters) -> list[DocumentRecord]:
        with self._lock:
            matches = [
                copy.deepcopy(record)
                for record in self._records.values()
                if matches_filters(record, filters)
            ]
        return sorted(matches, key=lambda record: record.created_at)
