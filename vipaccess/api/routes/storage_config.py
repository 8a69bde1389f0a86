"""
Storage configuration and inspection endpoints.

/wasabi-config tells the frontend whether object storage is usable at
all; it never exposes credentials. /bucket-files lists the metadata
bucket for the admin.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter

from ..dependencies import AuthenticatedUser, SettingsDep, StorageClientDep
from ..schemas import CamelModel

logger = logging.getLogger(__name__)

router = APIRouter()


class StorageConfigResponse(CamelModel):
    success: bool = True
    is_configured: bool
    mock_mode: bool
    message: str
    missing: list[str]


class BucketFile(CamelModel):
    key: str
    size: int
    last_modified: Optional[datetime] = None


class BucketFilesResponse(CamelModel):
    success: bool = True
    metadata_files: list[BucketFile]
    count: int


@router.get(
    "/wasabi-config",
    response_model=StorageConfigResponse,
    summary="Is object storage configured?",
)
async def get_storage_config(
    settings: SettingsDep,
    storage: StorageClientDep,
) -> StorageConfigResponse:
    """Names of missing variables are reported, never their values."""
    configured = storage.is_configured
    return StorageConfigResponse(
        is_configured=configured,
        mock_mode=settings.wasabi_mock_mode,
        message="Storage is configured" if configured else "Storage is not configured",
        missing=settings.validate_required_fields(),
    )


@router.get(
    "/bucket-files",
    response_model=BucketFilesResponse,
    summary="List the metadata bucket",
)
async def list_bucket_files(
    _: AuthenticatedUser,
    settings: SettingsDep,
    storage: StorageClientDep,
) -> BucketFilesResponse:
    objects = await storage.list_objects(settings.wasabi_metadata_bucket_name)
    logger.info("Listed metadata bucket", extra={"count": len(objects)})
    return BucketFilesResponse(
        metadata_files=[
            BucketFile(key=obj.key, size=obj.size, last_modified=obj.last_modified)
            for obj in objects
        ],
        count=len(objects),
    )
