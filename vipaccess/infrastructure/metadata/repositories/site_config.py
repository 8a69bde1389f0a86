"""
Repository for the site configuration singleton (site-config/main).
"""

import logging
from typing import Any, Optional

from ....core.documents.errors import CorruptDocumentError, DocumentValidationError
from ....core.documents.keys import DocumentType
from ....core.documents.models import SiteConfig
from ....core.documents.serialization import from_document, to_document, to_camel
from ...storage.client import StorageError
from ..store import MetadataStore

logger = logging.getLogger(__name__)

SITE_CONFIG_ID = "main"


class SiteConfigRepository:
    """
    Read and merge-update the site configuration.

    get() is what pages use to render, so it never fails on a missing or
    damaged document: it falls back to the factory default. find() is the
    strict variant for callers that need to know what is really stored.
    """

    def __init__(self, store: MetadataStore) -> None:
        self._store = store

    async def find(self) -> Optional[SiteConfig]:
        """Stored config or None. Storage and parse errors propagate."""
        document = await self._store.load(DocumentType.SITE_CONFIG, SITE_CONFIG_ID)
        if document is None:
            return None
        return from_document(SiteConfig, document)

    async def get(self) -> SiteConfig:
        """
        Stored config, or the factory default.

        StorageUnconfiguredError still propagates: an unconfigured backend
        is a deployment state the caller must surface, not a missing page.
        """
        try:
            config = await self.find()
        except (StorageError, CorruptDocumentError, DocumentValidationError) as e:
            logger.warning(
                "Falling back to default site config",
                extra={"error": str(e)}
            )
            return SiteConfig.factory_default()

        return config if config is not None else SiteConfig.factory_default()

    async def save(self, config: SiteConfig) -> str:
        return await self._store.save(
            DocumentType.SITE_CONFIG, to_document(config), SITE_CONFIG_ID
        )

    async def update(self, partial: dict[str, Any]) -> SiteConfig:
        """
        existing ⊕ partial -> new; persist and return new.

        partial may use either camelCase or snake_case keys. Unknown keys
        are ignored. Unlike get(), read failures propagate: merging into
        the factory default would overwrite the stored values.
        """
        existing = await self.find()
        if existing is None:
            existing = SiteConfig.factory_default()
        merged = {**to_document(existing), **{to_camel(key): value for key, value in partial.items()}}
        config = from_document(SiteConfig, merged)
        await self.save(config)
        logger.info("Updated site config", extra={"fields": sorted(partial)})
        return config

    async def replace_with_default(self) -> SiteConfig:
        config = SiteConfig.factory_default()
        await self.save(config)
        return config
