"""Site configuration endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Body

from ...core.documents.serialization import to_document
from ..dependencies import AuthenticatedUser, SiteConfigRepositoryDep
from ..schemas import CamelModel

logger = logging.getLogger(__name__)

router = APIRouter()


class SiteConfigBody(CamelModel):
    telegram_username: str
    site_name: str
    description: str
    paypal_client_id: str
    paypal_environment: str


class SiteConfigResponse(CamelModel):
    success: bool = True
    config: SiteConfigBody


@router.get(
    "",
    response_model=SiteConfigResponse,
    summary="Current site configuration",
)
async def get_site_config(site_config: SiteConfigRepositoryDep) -> SiteConfigResponse:
    """Falls back to the factory default when nothing usable is stored."""
    config = await site_config.get()
    return SiteConfigResponse(config=SiteConfigBody.model_validate(to_document(config)))


@router.put(
    "",
    response_model=SiteConfigResponse,
    summary="Merge updates into the site configuration",
)
async def update_site_config(
    _: AuthenticatedUser,
    site_config: SiteConfigRepositoryDep,
    updates: dict[str, Any] = Body(...),
) -> SiteConfigResponse:
    config = await site_config.update(updates)
    return SiteConfigResponse(config=SiteConfigBody.model_validate(to_document(config)))
