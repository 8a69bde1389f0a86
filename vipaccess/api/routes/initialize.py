"""
System bootstrap endpoints.

GET reports where the bootstrap stands, POST runs it, DELETE resets it
for development. "Storage not configured" is reported as its own state
instead of looking like an uninitialized system.
"""

import logging

from fastapi import APIRouter, Query

from ...core.documents.serialization import to_document
from ..dependencies import AuthenticatedUser, BootstrapCoordinatorDep
from ..schemas import CamelModel, InitializationStatus

logger = logging.getLogger(__name__)

router = APIRouter()


class InitializationStatusResponse(CamelModel):
    success: bool = True
    is_initialized: bool
    storage_configured: bool
    state: str
    status: InitializationStatus


class InitializeResponse(CamelModel):
    success: bool = True
    initialized: bool
    message: str
    status: InitializationStatus


class ResetResponse(CamelModel):
    success: bool = True
    message: str


@router.get(
    "",
    response_model=InitializationStatusResponse,
    summary="Bootstrap status",
)
async def get_initialization_status(
    bootstrap: BootstrapCoordinatorDep,
) -> InitializationStatusResponse:
    """Never fails: unreadable status reads as not initialized."""
    status = await bootstrap.get_status()
    state = await bootstrap.state()
    return InitializationStatusResponse(
        is_initialized=status.is_initialized,
        storage_configured=bootstrap.storage_configured,
        state=state.value,
        status=InitializationStatus.model_validate(to_document(status)),
    )


@router.post(
    "",
    response_model=InitializeResponse,
    summary="Run the bootstrap",
)
async def initialize_system(
    bootstrap: BootstrapCoordinatorDep,
    force: bool = Query(False, description="Re-run every step even if already initialized"),
) -> InitializeResponse:
    """
    Initialize the system if it is not initialized yet.

    With force=true every step runs again. Steps only create what is
    missing, so forcing never overwrites a customised configuration.
    """
    if force:
        await bootstrap.initialize_system()
        ran = True
    else:
        ran = await bootstrap.ensure_initialized()

    status = await bootstrap.get_status()
    message = "System initialized" if ran else "System already initialized"
    logger.info(message)
    return InitializeResponse(
        initialized=ran,
        message=message,
        status=InitializationStatus.model_validate(to_document(status)),
    )


@router.delete(
    "",
    response_model=ResetResponse,
    summary="Reset the bootstrap (development only)",
)
async def reset_system(
    _: AuthenticatedUser,
    bootstrap: BootstrapCoordinatorDep,
) -> ResetResponse:
    await bootstrap.reset_system()
    return ResetResponse(message="System reset")
