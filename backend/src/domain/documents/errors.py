"""Document engine error taxonomy

Every failure surfaced by the document engine is one of four kinds. Each
carries enough context (document id, operation, offending field) for the
caller to log or audit it. None of them are retried inside the engine.
"""

from typing import Optional


class DocumentError(Exception):
    """Base class for document engine failures."""

    code = "DOCUMENT_ERROR"

    def __init__(
        self,
        message: str,
        *,
        document_id: Optional[str] = None,
        operation: Optional[str] = None,
        field: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.document_id = document_id
        self.operation = operation
        self.field = field

    def context(self) -> dict:
        """Non-empty context fields, suitable for log extras and error details."""
        context = {
            "document_id": self.document_id,
            "operation": self.operation,
            "field": self.field,
        }
        return {key: value for key, value in context.items() if value is not None}


class InvalidRequestError(DocumentError):
    """Missing identity, disallowed MIME type, oversize or malicious file, bad version number."""

    code = "INVALID_REQUEST"


class DocumentNotFoundError(DocumentError):
    """Unknown document id or version number."""

    code = "NOT_FOUND"


class ForbiddenError(DocumentError):
    """Read or write access check failed."""

    code = "FORBIDDEN"


class StorageError(DocumentError):
    """Signing misconfiguration, transport error or non-success response from the object store."""

    code = "STORAGE_FAILURE"
