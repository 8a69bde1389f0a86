"""
FastAPI application entry point.

This module creates and configures the FastAPI application. The storage
client, metadata store, repositories and bootstrap coordinator are built
once here from explicit configuration and kept on app.state, so nothing
below this layer reads the environment.

For local development:
    WASABI_MOCK_MODE=true uvicorn vipaccess.main:app --reload

For production:
    gunicorn vipaccess.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.routes import auth, health, initialize, metadata, site_config, storage_config, upload, videos
from .config.settings import Settings, get_settings
from .core.bootstrap.coordinator import BootstrapCoordinator, ResetForbiddenError
from .core.documents.errors import (
    ConflictError,
    DocumentNotFoundError,
    DocumentValidationError,
)
from .infrastructure.metadata.backends import DirectBackend
from .infrastructure.metadata.repositories import (
    AuthRepository,
    SiteConfigRepository,
    VideoRepository,
)
from .infrastructure.metadata.store import MetadataStore
from .infrastructure.storage.client import (
    StorageConfig,
    StorageError,
    StorageUnconfiguredError,
    create_storage_client,
)

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Logs the storage situation on startup. Missing storage variables are
    a supported degraded mode, so they are reported but do not stop the
    process.
    """
    settings: Settings = app.state.settings

    logger.info(
        "VipAccess API starting",
        extra={
            "version": settings.api_version,
            "environment": settings.app_env,
            "mock_mode": settings.wasabi_mock_mode,
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        logger.error(
            "Missing required configuration; storage is disabled",
            extra={"missing_fields": missing_fields}
        )

    yield

    logger.info("VipAccess API shutting down")


def storage_config_from_settings(settings: Settings) -> StorageConfig:
    return StorageConfig(
        access_key_id=settings.wasabi_access_key_id,
        secret_access_key=settings.wasabi_secret_access_key,
        bucket_name=settings.wasabi_bucket_name,
        metadata_bucket_name=settings.wasabi_metadata_bucket_name,
        endpoint_url=settings.wasabi_endpoint,
        region=settings.wasabi_region,
    )


def build_services(app: FastAPI, settings: Settings) -> None:
    """Wire storage, metadata store, repositories and bootstrap onto app.state."""
    storage_client = create_storage_client(
        config=storage_config_from_settings(settings),
        mock_mode=settings.wasabi_mock_mode,
    )
    store = MetadataStore(
        DirectBackend(
            storage_client,
            settings.wasabi_metadata_bucket_name,
            signed_url_expiry=settings.signed_url_expiry_seconds,
        )
    )
    auth_repository = AuthRepository(store)
    site_config_repository = SiteConfigRepository(store)

    app.state.settings = settings
    app.state.storage_client = storage_client
    app.state.metadata_store = store
    app.state.videos = VideoRepository(store)
    app.state.auth = auth_repository
    app.state.site_config = site_config_repository
    app.state.bootstrap = BootstrapCoordinator(
        store,
        auth_repository,
        site_config_repository,
        is_production=settings.is_production,
    )


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map domain and storage errors to {success: false, error} responses.

    No stack trace ever reaches the client; unexpected errors are logged
    in full server-side.
    """

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        return _error(status.HTTP_400_BAD_REQUEST, f"Invalid request: {details}")

    @app.exception_handler(DocumentValidationError)
    async def document_validation_handler(request: Request, exc: DocumentValidationError):
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(DocumentNotFoundError)
    async def not_found_handler(request: Request, exc: DocumentNotFoundError):
        return _error(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError):
        logger.warning("Write conflict", extra={"key": exc.key, "path": request.url.path})
        return _error(status.HTTP_409_CONFLICT, str(exc))

    @app.exception_handler(ResetForbiddenError)
    async def reset_forbidden_handler(request: Request, exc: ResetForbiddenError):
        return _error(status.HTTP_403_FORBIDDEN, str(exc))

    @app.exception_handler(StorageUnconfiguredError)
    async def storage_unconfigured_handler(request: Request, exc: StorageUnconfiguredError):
        logger.warning("Storage not configured", extra={"path": request.url.path})
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error(
            "Storage operation failed",
            extra={"path": request.url.path, "method": request.method, "error": str(exc)}
        )
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error. Please contact support if this persists.",
        )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory.

    Tests pass their own Settings (usually with wasabi_mock_mode=True);
    the module-level app uses the environment.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Persistence and bootstrap API for a paywalled video site.

        Every metadata record is a JSON document in object storage.
        Call `POST /initialize` once per deployment before serving logins.

        Admin-only endpoints require an API key in the `X-API-Key` header.
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    build_services(app, settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(initialize.router, prefix="/initialize", tags=["Bootstrap"])
    app.include_router(videos.router, prefix="/videos", tags=["Videos"])
    app.include_router(metadata.router, prefix="/metadata", tags=["Metadata"])
    app.include_router(upload.router, prefix="/upload", tags=["Storage"])
    app.include_router(storage_config.router, tags=["Storage"])
    app.include_router(site_config.router, prefix="/site-config", tags=["Site config"])
    app.include_router(auth.router, prefix="/auth", tags=["Auth"])

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "message": "VipAccess API",
            "version": settings.api_version,
            "docs": "/docs",
            "health": "/health",
        }

    register_exception_handlers(app)

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": settings.api_version,
        }
    )

    return app


# Create the application instance
# This is what uvicorn/gunicorn will import
app = create_app()


# For debugging/development
if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "vipaccess.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
