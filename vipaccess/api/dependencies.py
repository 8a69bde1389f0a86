"""
FastAPI dependency injection.

Dependencies provide instances of services, clients, and configuration
to route handlers. The storage client, metadata store, repositories and
bootstrap coordinator are built once in create_app() and kept on
app.state; the functions here just hand them out. Tests swap them by
building the app with different settings or overriding dependencies.
"""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

from ..config.settings import Settings
from ..core.bootstrap.coordinator import BootstrapCoordinator
from ..infrastructure.metadata.repositories import (
    AuthRepository,
    SiteConfigRepository,
    VideoRepository,
)
from ..infrastructure.metadata.store import MetadataStore
from ..infrastructure.storage.client import StorageClient

logger = logging.getLogger(__name__)

# API Key security scheme
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

def get_app_settings(request: Request) -> Settings:
    """Settings the running app was built with."""
    return request.app.state.settings


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

async def verify_api_key(
    settings: Annotated[Settings, Depends(get_app_settings)],
    api_key: str = Security(api_key_header),
) -> str:
    """
    Validate API key from request header.

    Only admin-only operations (system reset, storage listings) require
    a key. Raises 403 if the key is invalid or missing.
    """
    if not api_key:
        logger.warning("Request missing API key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="API key required. Provide X-API-Key header.",
        )

    if api_key not in settings.api_keys_list:
        logger.warning(
            "Invalid API key attempt",
            extra={"key_prefix": api_key[:8]}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )

    return api_key


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_storage_client(request: Request) -> StorageClient:
    return request.app.state.storage_client


def get_metadata_store(request: Request) -> MetadataStore:
    return request.app.state.metadata_store


def get_video_repository(request: Request) -> VideoRepository:
    return request.app.state.videos


def get_site_config_repository(request: Request) -> SiteConfigRepository:
    return request.app.state.site_config


def get_auth_repository(request: Request) -> AuthRepository:
    return request.app.state.auth


def get_bootstrap_coordinator(request: Request) -> BootstrapCoordinator:
    return request.app.state.bootstrap


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
AuthenticatedUser = Annotated[str, Depends(verify_api_key)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
StorageClientDep = Annotated[StorageClient, Depends(get_storage_client)]
MetadataStoreDep = Annotated[MetadataStore, Depends(get_metadata_store)]
VideoRepositoryDep = Annotated[VideoRepository, Depends(get_video_repository)]
SiteConfigRepositoryDep = Annotated[SiteConfigRepository, Depends(get_site_config_repository)]
AuthRepositoryDep = Annotated[AuthRepository, Depends(get_auth_repository)]
BootstrapCoordinatorDep = Annotated[BootstrapCoordinator, Depends(get_bootstrap_coordinator)]
