"""
Errors raised at the document layer.

Absence is not an error here: loads return None. DocumentNotFoundError is
only raised by operations that must modify an existing document.
"""


class DocumentError(Exception):
    """Base class for document-level failures."""
    pass


class DocumentValidationError(DocumentError, ValueError):
    """Malformed input rejected before any storage call."""
    pass


class DocumentNotFoundError(DocumentError):
    """An update targeted a document that does not exist."""

    def __init__(self, document_type: str, document_id: str) -> None:
        super().__init__(f"{document_type} document not found: {document_id}")
        self.document_type = document_type
        self.document_id = document_id


class CorruptDocumentError(DocumentError):
    """A stored object exists but is not a readable JSON document."""

    def __init__(self, key: str, reason: str = "invalid JSON") -> None:
        super().__init__(f"Corrupt document {key}: {reason}")
        self.key = key
        self.reason = reason


class ConflictError(DocumentError):
    """A versioned write was based on a stale read."""

    def __init__(self, key: str, expected_version: int, stored_version: int) -> None:
        super().__init__(
            f"Conflicting write to {key}: based on version {expected_version}, "
            f"stored version is {stored_version}"
        )
        self.key = key
        self.expected_version = expected_version
        self.stored_version = stored_version
