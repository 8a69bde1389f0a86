"""
Document key scheme.

Every document lives at "<type>/<id>.json" inside the metadata bucket.
Stable ids ("main", "config", "init-status") address singletons; records
created on the fly get "<epoch-ms>_<random>" ids. No collision check is
made, so saving under an existing id overwrites it.
"""

import re
import secrets
import string
import time
from enum import Enum
from typing import Optional, Union

from .errors import DocumentValidationError

_BASE36 = string.digits + string.ascii_lowercase
_SUFFIX_LENGTH = 13

_TYPE_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]*$")
_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class DocumentType(Enum):
    """Fixed namespaces in the metadata bucket."""
    VIDEOS = "videos"
    SITE_CONFIG = "site-config"
    AUTH = "auth"
    PAYPAL_PAYMENTS = "paypal-payments"
    PAYMENT_PROOFS = "payment-proofs"
    SYSTEM = "system"


def random_suffix(length: int = _SUFFIX_LENGTH) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def generate_document_id(prefix: Optional[str] = None) -> str:
    """
    Build a fresh id: "[prefix_]<epoch-ms>_<13 base-36 chars>".

    13 base-36 characters give ~67 bits of randomness per millisecond,
    which makes accidental collisions negligible.
    """
    value = f"{int(time.time() * 1000)}_{random_suffix()}"
    return f"{prefix}_{value}" if prefix else value


def type_name(document_type: Union[DocumentType, str]) -> str:
    """Normalise and validate a document type."""
    name = document_type.value if isinstance(document_type, DocumentType) else document_type
    if not isinstance(name, str) or not _TYPE_PATTERN.match(name):
        raise DocumentValidationError(f"Invalid document type: {name!r}")
    return name


def validate_document_id(document_id: str) -> str:
    if (
        not isinstance(document_id, str)
        or not _ID_PATTERN.match(document_id)
        or ".." in document_id
    ):
        raise DocumentValidationError(f"Invalid document id: {document_id!r}")
    return document_id


def document_key(
    document_type: Union[DocumentType, str],
    document_id: Optional[str] = None,
) -> str:
    """Map (type, id) to a storage key, generating an id when none is given."""
    name = type_name(document_type)
    if document_id is None:
        document_id = generate_document_id()
    return f"{name}/{validate_document_id(document_id)}.json"


def type_prefix(document_type: Union[DocumentType, str]) -> str:
    return f"{type_name(document_type)}/"


def split_key(key: str) -> tuple[str, str]:
    """Inverse of document_key: "videos/v1.json" -> ("videos", "v1")."""
    name, _, filename = key.partition("/")
    if not filename.endswith(".json"):
        raise DocumentValidationError(f"Not a document key: {key!r}")
    return name, filename[: -len(".json")]
