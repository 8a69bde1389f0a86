"""
Execution strategies for the metadata store.

Object-storage credentials must never reach a credential-less client
(the browser side of the site). Instead of each method sniffing where it
runs, the caller is handed one of two backends:

- DirectBackend: server side, reads and writes the metadata bucket
  through the storage client.
- ProxiedBackend: client side, keeps a local ephemeral cache and falls
  back to the server's /metadata/{type}/{id} endpoint for reads.

The proxied cache is a latency convenience only. It is not shared across
devices or sessions and is never authoritative; anything that must be
seen by another session has to go through DirectBackend on the server.
"""

import json
import logging
from typing import Any, MutableMapping, Optional, Protocol

import httpx

from ...core.documents.errors import CorruptDocumentError
from ...core.documents.keys import split_key
from ...core.documents.serialization import dumps
from ..storage.client import DEFAULT_SIGNED_URL_EXPIRY, StorageClient, StorageError

logger = logging.getLogger(__name__)


class MetadataBackend(Protocol):
    """Capability interface every execution context implements."""

    @property
    def is_available(self) -> bool:
        """False when the backend cannot reach any storage at all."""
        ...

    async def save(self, key: str, document: Any) -> None:
        ...

    async def load(self, key: str) -> Optional[Any]:
        """Return the document, or None when it does not exist."""
        ...

    async def list(self, prefix: str) -> list[Any]:
        """Best-effort: unreadable documents are skipped."""
        ...

    async def delete(self, key: str) -> bool:
        """Idempotent: deleting a missing document succeeds."""
        ...


def _parse(key: str, raw: bytes) -> Any:
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise CorruptDocumentError(key, str(e)) from e


class DirectBackend:
    """
    Server-side backend over the metadata bucket.

    Reads go through a signed URL, the same path a public reader would
    take, so a document that loads here is also fetchable by URL.
    """

    def __init__(
        self,
        storage: StorageClient,
        bucket: str,
        signed_url_expiry: int = DEFAULT_SIGNED_URL_EXPIRY,
    ) -> None:
        self._storage = storage
        self._bucket = bucket
        self._signed_url_expiry = signed_url_expiry

    @property
    def is_available(self) -> bool:
        return self._storage.is_configured

    async def save(self, key: str, document: Any) -> None:
        await self._storage.put_object(
            self._bucket,
            key,
            dumps(document),
            content_type="application/json",
            filename=key.rsplit("/", 1)[-1],
        )
        logger.debug("Saved document", extra={"key": key})

    async def load(self, key: str) -> Optional[Any]:
        url = await self._storage.get_signed_url(
            self._bucket, key, self._signed_url_expiry
        )
        raw = await self._storage.fetch_signed_url(url)
        if raw is None:
            return None
        return _parse(key, raw)

    async def list(self, prefix: str) -> list[Any]:
        """
        Load every document under prefix.

        Listing failures propagate. A single unreadable document is
        logged and skipped, so callers must tolerate an undercount.
        """
        objects = await self._storage.list_objects(self._bucket, prefix)

        documents = []
        for obj in objects:
            if not obj.key.endswith(".json"):
                continue
            try:
                document = await self.load(obj.key)
            except (StorageError, CorruptDocumentError) as e:
                logger.warning(
                    "Skipping unreadable document",
                    extra={"key": obj.key, "error": str(e)}
                )
                continue
            if document is not None:
                documents.append(document)

        return documents

    async def delete(self, key: str) -> bool:
        await self._storage.delete_object(self._bucket, key)
        return True


class ProxiedBackend:
    """
    Client-side backend for contexts without storage credentials.

    Writes stay in the local cache. Reads try the cache, then ask the
    server's metadata endpoint. The cache mapping stores JSON text per
    key, mirroring a browser's localStorage.
    """

    CACHE_PREFIX = "metadata_"

    def __init__(
        self,
        base_url: str,
        cache: Optional[MutableMapping[str, str]] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._cache: MutableMapping[str, str] = cache if cache is not None else {}
        self._http_client = http_client

    @property
    def is_available(self) -> bool:
        return True

    def _cache_key(self, key: str) -> str:
        return f"{self.CACHE_PREFIX}{key}"

    async def save(self, key: str, document: Any) -> None:
        self._cache[self._cache_key(key)] = json.dumps(document)

    async def load(self, key: str) -> Optional[Any]:
        cached = self._cache.get(self._cache_key(key))
        if cached is not None:
            try:
                return json.loads(cached)
            except ValueError:
                logger.warning("Ignoring unparseable cached document", extra={"key": key})

        return await self._fetch_from_server(key)

    async def _fetch_from_server(self, key: str) -> Optional[Any]:
        document_type, document_id = split_key(key)
        url = f"{self._base_url}/metadata/{document_type}/{document_id}"

        try:
            if self._http_client is not None:
                response = await self._http_client.get(url)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.get(url)
        except httpx.HTTPError as e:
            logger.error("Metadata proxy request failed", extra={"url": url, "error": str(e)})
            raise StorageError(f"Metadata proxy request failed: {e}") from e

        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise StorageError(f"Metadata proxy returned HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise CorruptDocumentError(key, str(e)) from e

    async def list(self, prefix: str) -> list[Any]:
        cache_prefix = self._cache_key(prefix)
        documents = []
        for cache_key in list(self._cache.keys()):
            if not cache_key.startswith(cache_prefix):
                continue
            try:
                documents.append(json.loads(self._cache[cache_key]))
            except ValueError:
                logger.warning("Skipping unparseable cached document", extra={"key": cache_key})
        return documents

    async def delete(self, key: str) -> bool:
        self._cache.pop(self._cache_key(key), None)
        return True
