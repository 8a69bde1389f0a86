"""
Document models, key scheme and JSON translation.

Framework-agnostic: nothing here knows about S3 or HTTP.
"""

from .errors import (
    ConflictError,
    CorruptDocumentError,
    DocumentError,
    DocumentNotFoundError,
    DocumentValidationError,
)
from .keys import DocumentType, document_key, generate_document_id
from .models import (
    AuthConfig,
    InitializationComponents,
    InitializationStatus,
    PaymentProof,
    PaymentStatus,
    PayPalEnvironment,
    PayPalPayment,
    ProofStatus,
    SiteConfig,
    User,
    UserRole,
    VideoMetadata,
    VideoStatus,
)
from .serialization import from_document, to_document

__all__ = [
    "AuthConfig",
    "ConflictError",
    "CorruptDocumentError",
    "DocumentError",
    "DocumentNotFoundError",
    "DocumentType",
    "DocumentValidationError",
    "InitializationComponents",
    "InitializationStatus",
    "PaymentProof",
    "PaymentStatus",
    "PayPalEnvironment",
    "PayPalPayment",
    "ProofStatus",
    "SiteConfig",
    "User",
    "UserRole",
    "VideoMetadata",
    "VideoStatus",
    "document_key",
    "from_document",
    "generate_document_id",
    "to_document",
]
