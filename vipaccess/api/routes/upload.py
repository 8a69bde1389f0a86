"""
File upload endpoint.

Accepts a multipart form (file, key, optional bucketName) and stores the
file as-is in object storage. Only the two configured buckets can be
targeted, and writing into the metadata bucket requires an API key.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, File, Form, HTTPException, Security, UploadFile, status

from ..dependencies import SettingsDep, StorageClientDep, api_key_header, verify_api_key
from ..schemas import CamelModel, ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter()


class UploadResponse(CamelModel):
    success: bool = True
    file_id: str
    file_url: str
    file_name: str
    file_size: int
    mime_type: str


@router.post(
    "",
    response_model=UploadResponse,
    summary="Upload a file to object storage",
    responses={
        400: {"model": ErrorResponse, "description": "Bad bucket, key or file"},
        403: {"model": ErrorResponse, "description": "Metadata bucket upload without a valid API key"},
        413: {"model": ErrorResponse, "description": "File too large"},
    },
)
async def upload_file(
    file: Annotated[UploadFile, File(description="File to store")],
    key: Annotated[str, Form(description="Object key to store the file under")],
    settings: SettingsDep,
    storage: StorageClientDep,
    bucket_name: Annotated[Optional[str], Form(alias="bucketName")] = None,
    api_key: Annotated[Optional[str], Security(api_key_header)] = None,
) -> UploadResponse:
    """
    Store an uploaded file and return a signed URL for it.

    The content bucket is used unless bucketName names the metadata
    bucket. Metadata documents (auth config included) can only be
    replaced by an admin.
    """
    bucket = bucket_name or settings.wasabi_bucket_name
    allowed = {settings.wasabi_bucket_name, settings.wasabi_metadata_bucket_name}
    if bucket not in allowed:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown bucket: {bucket}",
        )

    if bucket == settings.wasabi_metadata_bucket_name:
        await verify_api_key(settings, api_key)

    if not key.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File key is required",
        )

    data = await file.read()
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty",
        )

    max_bytes = settings.max_upload_size_mb * 1024 * 1024
    if len(data) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size: {settings.max_upload_size_mb}MB",
        )

    content_type = file.content_type or "application/octet-stream"
    file_name = file.filename or key.rsplit("/", 1)[-1]

    logger.info(
        "Uploading file",
        extra={
            "bucket": bucket,
            "key": key,
            "file_name": file_name,
            "size_bytes": len(data),
            "content_type": content_type,
        }
    )

    stored = await storage.put_object(bucket, key, data, content_type, filename=file_name)
    url = await storage.get_signed_url(bucket, key, settings.signed_url_expiry_seconds)

    return UploadResponse(
        file_id=stored.key,
        file_url=url,
        file_name=file_name,
        file_size=stored.size,
        mime_type=content_type,
    )
