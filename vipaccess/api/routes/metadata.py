"""
Raw document read endpoint.

This is what ProxiedBackend calls from contexts without storage
credentials, so it returns the stored document as-is rather than the
usual {success, ...} wrapper. The id "default" addresses no document.

The auth namespace is never served: it holds credentials, and logins
go through /auth/login instead.
"""

import logging
from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ...core.documents.errors import DocumentNotFoundError
from ...core.documents.keys import DocumentType
from ..dependencies import MetadataStoreDep
from ..schemas import ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_ID = "default"
HIDDEN_TYPES = {DocumentType.AUTH.value}


@router.get(
    "/{document_type}/{document_id}",
    summary="Read one stored document",
    responses={404: {"model": ErrorResponse, "description": "Document not found"}},
)
async def get_metadata(
    document_type: str,
    document_id: str,
    store: MetadataStoreDep,
) -> JSONResponse:
    if document_type in HIDDEN_TYPES:
        raise DocumentNotFoundError(document_type, document_id)

    lookup_id: Optional[str] = None if document_id == DEFAULT_ID else document_id
    document = await store.load(document_type, lookup_id)
    if document is None:
        raise DocumentNotFoundError(document_type, document_id)
    return JSONResponse(content=document)
