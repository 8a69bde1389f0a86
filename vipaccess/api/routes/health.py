"""
Health check endpoints.

We provide two endpoints:
- /health: Basic liveness check (is the process running?)
- /health/ready: Readiness check (can we serve traffic?)

Readiness here means object storage is configured and the bootstrap has
completed. An unconfigured deployment is alive but not ready.
"""

import logging
from typing import Any

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from ..dependencies import BootstrapCoordinatorDep, SettingsDep, StorageClientDep

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    details: dict[str, Any] = {}


class ReadinessCheck(BaseModel):
    """Individual readiness check result."""
    name: str
    status: str  # "ok" or "error"
    error: str | None = None


class ReadinessResponse(BaseModel):
    """Readiness check response with details."""
    status: str  # "ready" or "not_ready"
    version: str
    checks: list[ReadinessCheck]


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Returns 200 if the service is running. Does not check dependencies.",
)
async def health_check(
    settings: SettingsDep,
    storage: StorageClientDep,
) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=settings.api_version,
        details={
            "mock_mode": settings.wasabi_mock_mode,
            "storage_configured": storage.is_configured,
        }
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Returns 200 if the service can handle traffic, 503 otherwise.",
    responses={
        503: {
            "description": "Service not ready",
            "model": ReadinessResponse,
        }
    },
)
async def readiness_check(
    response: Response,
    settings: SettingsDep,
    storage: StorageClientDep,
    bootstrap: BootstrapCoordinatorDep,
) -> ReadinessResponse:
    """
    Readiness check - can we serve traffic?

    Checks configuration, then the bootstrap status document. Reading the
    status also proves the metadata bucket answers.
    """
    checks: list[ReadinessCheck] = []

    missing_fields = settings.validate_required_fields()
    if missing_fields or not storage.is_configured:
        checks.append(ReadinessCheck(
            name="storage",
            status="error",
            error=f"Missing required fields: {', '.join(missing_fields)}" if missing_fields
            else "Storage client is not configured",
        ))
    else:
        checks.append(ReadinessCheck(name="storage", status="ok"))

    if await bootstrap.is_initialized():
        checks.append(ReadinessCheck(name="bootstrap", status="ok"))
    else:
        checks.append(ReadinessCheck(
            name="bootstrap",
            status="error",
            error="System not initialized. POST /initialize first.",
        ))

    all_ok = all(check.status == "ok" for check in checks)
    if not all_ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning(
            "Readiness check failed",
            extra={
                "checks": [
                    {"name": c.name, "status": c.status, "error": c.error}
                    for c in checks
                ]
            }
        )

    return ReadinessResponse(
        status="ready" if all_ok else "not_ready",
        version=settings.api_version,
        checks=checks,
    )
