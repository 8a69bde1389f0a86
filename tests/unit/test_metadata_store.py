"""
Unit tests for the metadata store and its backends.

DirectBackend runs over MockStorageClient; ProxiedBackend talks to a
fake server through httpx.MockTransport.
"""

import json

import httpx
import pytest

from vipaccess.core.documents.errors import CorruptDocumentError, DocumentValidationError
from vipaccess.core.documents.keys import DocumentType
from vipaccess.core.documents.serialization import dumps
from vipaccess.infrastructure.metadata.backends import DirectBackend, ProxiedBackend
from vipaccess.infrastructure.metadata.store import MetadataStore
from vipaccess.infrastructure.storage.client import (
    StorageConfig,
    StorageError,
    StorageUnconfiguredError,
    WasabiStorageClient,
)


class TestMetadataStoreDirect:
    """Store over the metadata bucket."""

    @pytest.mark.anyio
    async def test_save_then_load_returns_equal_document(self, store):
        document = {"title": "Demo", "nested": {"tags": ["a", "b"], "price": 9.5}, "ok": True}

        key = await store.save(DocumentType.VIDEOS, document, "v1")

        assert key == "videos/v1.json"
        assert await store.load(DocumentType.VIDEOS, "v1") == document

    @pytest.mark.anyio
    async def test_documents_are_pretty_printed_json(self, store, storage, metadata_bucket):
        await store.save("site-config", {"siteName": "VipAcess"}, "main")

        url = await storage.get_signed_url(metadata_bucket, "site-config/main.json")
        listed = await storage.list_objects(metadata_bucket)

        assert await storage.fetch_signed_url(url) == dumps({"siteName": "VipAcess"})
        assert listed[0].content_type == "application/json"

    @pytest.mark.anyio
    async def test_save_without_id_generates_one(self, store):
        key = await store.save(DocumentType.PAYMENT_PROOFS, {"amount": 1})
        assert key.startswith("payment-proofs/")
        assert key.endswith(".json")

    @pytest.mark.anyio
    async def test_load_absent_returns_none(self, store):
        assert await store.load(DocumentType.VIDEOS, "nope") is None

    @pytest.mark.anyio
    async def test_load_without_id_returns_none(self, store):
        assert await store.load(DocumentType.SITE_CONFIG) is None

    @pytest.mark.anyio
    async def test_load_corrupt_document_raises(self, store, storage, metadata_bucket):
        await storage.put_object(metadata_bucket, "videos/bad.json", b"{not json", "application/json")

        with pytest.raises(CorruptDocumentError):
            await store.load(DocumentType.VIDEOS, "bad")

    @pytest.mark.anyio
    async def test_invalid_id_is_rejected_before_storage(self, store):
        with pytest.raises(DocumentValidationError):
            await store.save(DocumentType.VIDEOS, {}, "../auth/config")

    @pytest.mark.anyio
    async def test_list_skips_corrupt_and_non_json_objects(self, store, storage, metadata_bucket):
        await store.save(DocumentType.VIDEOS, {"id": "a"}, "a")
        await store.save(DocumentType.VIDEOS, {"id": "b"}, "b")
        await storage.put_object(metadata_bucket, "videos/c.json", b"\xff\xfe", "application/json")
        await storage.put_object(metadata_bucket, "videos/readme.txt", b"hi", "text/plain")

        documents = await store.list(DocumentType.VIDEOS)

        assert sorted(d["id"] for d in documents) == ["a", "b"]

    @pytest.mark.anyio
    async def test_list_only_returns_own_type(self, store):
        await store.save(DocumentType.VIDEOS, {"id": "a"}, "a")
        await store.save(DocumentType.AUTH, {"users": []}, "config")

        assert await store.list(DocumentType.VIDEOS) == [{"id": "a"}]

    @pytest.mark.anyio
    async def test_delete_is_idempotent(self, store):
        await store.save(DocumentType.VIDEOS, {"id": "a"}, "a")

        assert await store.delete(DocumentType.VIDEOS, "a") is True
        assert await store.delete(DocumentType.VIDEOS, "a") is True
        assert await store.load(DocumentType.VIDEOS, "a") is None


class TestMetadataStoreUnconfigured:
    """Without credentials nothing reaches storage."""

    def _store(self) -> MetadataStore:
        config = StorageConfig(
            access_key_id="",
            secret_access_key="",
            bucket_name="content",
            metadata_bucket_name="metadata",
        )
        return MetadataStore(DirectBackend(WasabiStorageClient(config), "metadata"))

    def test_not_available(self):
        assert not self._store().is_available

    @pytest.mark.anyio
    async def test_operations_raise_unconfigured(self):
        store = self._store()

        with pytest.raises(StorageUnconfiguredError):
            await store.save(DocumentType.VIDEOS, {"id": "a"}, "a")
        with pytest.raises(StorageUnconfiguredError):
            await store.load(DocumentType.VIDEOS, "a")
        with pytest.raises(StorageUnconfiguredError):
            await store.list(DocumentType.VIDEOS)


# ---------------------------------------------------------------------------
# ProxiedBackend
# ---------------------------------------------------------------------------

SERVER_DOCUMENTS = {
    "/metadata/site-config/main": {"telegramUsername": "vip", "siteName": "VipAcess"},
}


class FakeServer:
    """Answers /metadata/{type}/{id} like the real route and records calls."""

    def __init__(self, fail: bool = False) -> None:
        self.requests: list[str] = []
        self.fail = fail

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request.url.path)
        if self.fail:
            return httpx.Response(500, json={"success": False, "error": "boom"})
        document = SERVER_DOCUMENTS.get(request.url.path)
        if document is None:
            return httpx.Response(404, json={"success": False, "error": "not found"})
        return httpx.Response(200, json=document)


class TestProxiedBackend:
    """Client-side backend: local cache first, server proxy for reads."""

    @pytest.mark.anyio
    async def test_load_falls_back_to_server(self):
        server = FakeServer()
        async with httpx.AsyncClient(transport=httpx.MockTransport(server)) as http:
            store = MetadataStore(ProxiedBackend("http://server/", http_client=http))

            document = await store.load(DocumentType.SITE_CONFIG, "main")

        assert document == SERVER_DOCUMENTS["/metadata/site-config/main"]
        assert server.requests == ["/metadata/site-config/main"]

    @pytest.mark.anyio
    async def test_server_404_is_absent(self):
        async with httpx.AsyncClient(transport=httpx.MockTransport(FakeServer())) as http:
            store = MetadataStore(ProxiedBackend("http://server", http_client=http))

            assert await store.load(DocumentType.VIDEOS, "missing") is None

    @pytest.mark.anyio
    async def test_server_error_raises_storage_error(self):
        async with httpx.AsyncClient(transport=httpx.MockTransport(FakeServer(fail=True))) as http:
            store = MetadataStore(ProxiedBackend("http://server", http_client=http))

            with pytest.raises(StorageError):
                await store.load(DocumentType.VIDEOS, "v1")

    @pytest.mark.anyio
    async def test_writes_stay_in_cache_and_are_read_back_first(self):
        server = FakeServer()
        cache: dict[str, str] = {}
        async with httpx.AsyncClient(transport=httpx.MockTransport(server)) as http:
            store = MetadataStore(ProxiedBackend("http://server", cache=cache, http_client=http))

            await store.save(DocumentType.VIDEOS, {"id": "v1", "title": "Demo"}, "v1")
            loaded = await store.load(DocumentType.VIDEOS, "v1")

        assert json.loads(cache["metadata_videos/v1.json"]) == {"id": "v1", "title": "Demo"}
        assert loaded == {"id": "v1", "title": "Demo"}
        assert server.requests == []

    @pytest.mark.anyio
    async def test_list_and_delete_use_cache(self):
        backend = ProxiedBackend("http://server")
        store = MetadataStore(backend)

        await store.save(DocumentType.VIDEOS, {"id": "a"}, "a")
        await store.save(DocumentType.VIDEOS, {"id": "b"}, "b")
        await store.save(DocumentType.AUTH, {"users": []}, "config")

        assert sorted(d["id"] for d in await store.list(DocumentType.VIDEOS)) == ["a", "b"]
        assert await store.delete(DocumentType.VIDEOS, "a") is True
        assert await store.delete(DocumentType.VIDEOS, "a") is True
        assert await store.list(DocumentType.VIDEOS) == [{"id": "b"}]

    def test_always_available(self):
        assert ProxiedBackend("http://server").is_available
