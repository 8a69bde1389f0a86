"""
Generic JSON document store.

The store maps (type, id) to a document key and hands the work to the
backend it was built with. It deals in plain JSON values; typed models
are the repositories' business.

Not a database: no queries, no indexes beyond prefix listing, no
transactions, and the last write observed wins.
"""

import logging
from typing import Any, Optional, Union

from ...core.documents.keys import DocumentType, document_key, type_prefix
from .backends import MetadataBackend

logger = logging.getLogger(__name__)

DocumentTypeLike = Union[DocumentType, str]


class MetadataStore:
    """Save, load, list and delete JSON documents by type and id."""

    def __init__(self, backend: MetadataBackend) -> None:
        self._backend = backend

    @property
    def backend(self) -> MetadataBackend:
        return self._backend

    @property
    def is_available(self) -> bool:
        return self._backend.is_available

    async def save(
        self,
        document_type: DocumentTypeLike,
        value: Any,
        document_id: Optional[str] = None,
    ) -> str:
        """Persist value and return its key. A missing id is generated."""
        key = document_key(document_type, document_id)
        try:
            await self._backend.save(key, value)
        except Exception as e:
            logger.error("Failed to save document", extra={"key": key, "error": str(e)})
            raise
        return key

    async def load(
        self,
        document_type: DocumentTypeLike,
        document_id: Optional[str] = None,
    ) -> Optional[Any]:
        """
        Load a document, or None if it does not exist.

        Without an id there is nothing to address, so the result is
        absent without touching storage.
        """
        if document_id is None:
            logger.debug("Load without id", extra={"document_type": str(document_type)})
            return None
        key = document_key(document_type, document_id)
        return await self._backend.load(key)

    async def list(self, document_type: DocumentTypeLike) -> list[Any]:
        """Every readable document of a type. May undercount, never raises per item."""
        documents = await self._backend.list(type_prefix(document_type))
        logger.debug(
            "Listed documents",
            extra={"prefix": type_prefix(document_type), "count": len(documents)}
        )
        return documents

    async def delete(self, document_type: DocumentTypeLike, document_id: str) -> bool:
        """Delete a document. Returns True whether or not it existed."""
        key = document_key(document_type, document_id)
        await self._backend.delete(key)
        logger.info("Deleted document", extra={"key": key})
        return True
