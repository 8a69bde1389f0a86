"""
Shared fixtures.

Everything runs against MockStorageClient, so no test touches real
object storage or the network.
"""

import pytest

from vipaccess.core.bootstrap.coordinator import BootstrapCoordinator
from vipaccess.infrastructure.metadata.backends import DirectBackend
from vipaccess.infrastructure.metadata.repositories import (
    AuthRepository,
    SiteConfigRepository,
    VideoRepository,
)
from vipaccess.infrastructure.metadata.store import MetadataStore
from vipaccess.infrastructure.storage.client import MockStorageClient

METADATA_BUCKET = "test-metadata"
CONTENT_BUCKET = "test-content"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def storage() -> MockStorageClient:
    return MockStorageClient()


@pytest.fixture
def store(storage) -> MetadataStore:
    return MetadataStore(DirectBackend(storage, METADATA_BUCKET))


@pytest.fixture
def videos(store) -> VideoRepository:
    return VideoRepository(store)


@pytest.fixture
def auth(store) -> AuthRepository:
    return AuthRepository(store)


@pytest.fixture
def site_config(store) -> SiteConfigRepository:
    return SiteConfigRepository(store)


@pytest.fixture
def bootstrap(store, auth, site_config) -> BootstrapCoordinator:
    return BootstrapCoordinator(store, auth, site_config)


@pytest.fixture
def metadata_bucket() -> str:
    return METADATA_BUCKET


@pytest.fixture
def content_bucket() -> str:
    return CONTENT_BUCKET
