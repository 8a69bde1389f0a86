"""
Object storage integration for content files and metadata documents.

Supports Wasabi (and any S3-compatible service) via boto3.
Includes mock mode for local development without credentials.
"""

from .client import (
    MockStorageClient,
    ObjectDescriptor,
    StorageClient,
    StorageConfig,
    StorageError,
    StorageUnconfiguredError,
    WasabiStorageClient,
    create_storage_client,
)

__all__ = [
    "MockStorageClient",
    "ObjectDescriptor",
    "StorageClient",
    "StorageConfig",
    "StorageError",
    "StorageUnconfiguredError",
    "WasabiStorageClient",
    "create_storage_client",
]
