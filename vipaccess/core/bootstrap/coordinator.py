"""
One-time system bootstrap.

A fresh deployment has empty buckets. Before the site can serve logins it
needs an auth config with an administrator and a site config; before we
trust the metadata bucket at all we want one successful write/read/delete
round trip. The coordinator runs those three steps and records progress in
system/init-status.

State machine:

    STORAGE_UNCONFIGURED        (no credentials; nothing else applies)
    UNINITIALIZED -> INITIALIZING -> INITIALIZED
                          |
                          v
                       FAILED  (a later initialize_system() may still succeed)

Every step is "ensure exists", so running the whole sequence again, or
concurrently from two requests, converges on the same documents. There is
no lock: callers must not assume the steps ran exactly once.
"""

import logging
from enum import Enum
from typing import Optional

from ..documents.errors import CorruptDocumentError, DocumentValidationError
from ..documents.keys import DocumentType, generate_document_id
from ..documents.models import InitializationStatus, SCHEMA_VERSION, utc_now_iso
from ..documents.serialization import from_document, to_document
from ...infrastructure.metadata.repositories.auth import AUTH_CONFIG_ID, AuthRepository
from ...infrastructure.metadata.repositories.site_config import (
    SITE_CONFIG_ID,
    SiteConfigRepository,
)
from ...infrastructure.metadata.store import MetadataStore
from ...infrastructure.storage.client import StorageError, StorageUnconfiguredError

logger = logging.getLogger(__name__)

INIT_STATUS_ID = "init-status"
PROBE_DOCUMENT_PREFIX = "test"


class BootstrapState(Enum):
    STORAGE_UNCONFIGURED = "storage_unconfigured"
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    INITIALIZED = "initialized"
    FAILED = "failed"


class BootstrapError(Exception):
    """A bootstrap step ran but did not produce the expected result."""
    pass


class ResetForbiddenError(Exception):
    """System reset was requested in a production deployment."""
    pass


class BootstrapCoordinator:
    """
    Drives the bootstrap sequence over the repositories.

    Only INITIALIZING and FAILED are held in memory; every other state is
    derived from the stored status document, so a restarted process sees
    the same answer.
    """

    def __init__(
        self,
        store: MetadataStore,
        auth: AuthRepository,
        site_config: SiteConfigRepository,
        is_production: bool = False,
    ) -> None:
        self._store = store
        self._auth = auth
        self._site_config = site_config
        self._is_production = is_production
        self._transient_state: Optional[BootstrapState] = None

    @property
    def storage_configured(self) -> bool:
        return self._store.is_available

    async def get_status(self) -> InitializationStatus:
        """
        Stored status, or a fresh not-initialized status.

        Absent, unreadable and unconfigured storage all read as "not
        initialized"; the reason is logged.
        """
        if not self._store.is_available:
            return InitializationStatus()

        try:
            document = await self._store.load(DocumentType.SYSTEM, INIT_STATUS_ID)
            if document is None:
                return InitializationStatus()
            return from_document(InitializationStatus, document)
        except (
            StorageError,
            StorageUnconfiguredError,
            CorruptDocumentError,
            DocumentValidationError,
        ) as e:
            logger.warning(
                "Could not read initialization status",
                extra={"error": str(e)}
            )
            return InitializationStatus()

    async def is_initialized(self) -> bool:
        status = await self.get_status()
        return status.is_initialized

    async def state(self) -> BootstrapState:
        if not self._store.is_available:
            return BootstrapState.STORAGE_UNCONFIGURED
        if self._transient_state is not None:
            return self._transient_state
        if await self.is_initialized():
            return BootstrapState.INITIALIZED
        return BootstrapState.UNINITIALIZED

    async def _persist(self, status: InitializationStatus) -> None:
        await self._store.save(DocumentType.SYSTEM, to_document(status), INIT_STATUS_ID)

    async def initialize_system(self) -> InitializationStatus:
        """
        Run auth, site config and metadata steps in that order.

        The status document is written after each step, so a failure in
        the middle leaves visible partial progress. On failure the partial
        status is persisted (best effort) and the original error re-raised.
        There is no internal retry.
        """
        if not self._store.is_available:
            raise StorageUnconfiguredError()

        status = InitializationStatus()
        self._transient_state = BootstrapState.INITIALIZING
        logger.info("Initializing system")

        try:
            await self._auth.initialize_if_absent()
            status.components.auth = True
            await self._persist(status)

            await self._ensure_site_config()
            status.components.site_config = True
            await self._persist(status)

            await self._verify_metadata_round_trip()
            status.components.metadata = True
            await self._persist(status)

            status.is_initialized = True
            status.initialized_at = utc_now_iso()
            status.version = SCHEMA_VERSION
            await self._persist(status)
        except Exception as e:
            self._transient_state = BootstrapState.FAILED
            logger.error(
                "System initialization failed",
                extra={"components": to_document(status.components), "error": str(e)},
                exc_info=e,
            )
            try:
                await self._persist(status)
            except Exception as persist_error:
                logger.error(
                    "Could not persist partial initialization status",
                    extra={"error": str(persist_error)}
                )
            raise

        self._transient_state = None
        logger.info("System initialized", extra={"version": status.version})
        return status

    async def _ensure_site_config(self) -> None:
        existing = await self._site_config.find()
        if existing is None or existing.is_factory_default:
            await self._site_config.replace_with_default()
            logger.info("Wrote default site config")
        else:
            logger.info("Keeping customised site config")

    async def _verify_metadata_round_trip(self) -> None:
        # unique per run; concurrent runs must not share a probe
        probe_id = generate_document_id(PROBE_DOCUMENT_PREFIX)
        probe = {"test": True, "timestamp": utc_now_iso()}
        await self._store.save(DocumentType.SYSTEM, probe, probe_id)
        loaded = await self._store.load(DocumentType.SYSTEM, probe_id)
        if not isinstance(loaded, dict) or loaded.get("test") is not True:
            raise BootstrapError("Metadata round trip returned unexpected data")
        await self._store.delete(DocumentType.SYSTEM, probe_id)

    async def ensure_initialized(self) -> bool:
        """Initialize if needed. Returns True when initialization ran."""
        if not self._store.is_available:
            raise StorageUnconfiguredError()
        if await self.is_initialized():
            return False
        await self.initialize_system()
        return True

    async def reset_system(self) -> None:
        """Delete status, auth config and site config. Never in production."""
        if self._is_production:
            raise ResetForbiddenError("System reset is disabled in production")
        if not self._store.is_available:
            raise StorageUnconfiguredError()

        await self._store.delete(DocumentType.SYSTEM, INIT_STATUS_ID)
        await self._store.delete(DocumentType.AUTH, AUTH_CONFIG_ID)
        await self._store.delete(DocumentType.SITE_CONFIG, SITE_CONFIG_ID)
        self._transient_state = None
        logger.warning("System reset")
