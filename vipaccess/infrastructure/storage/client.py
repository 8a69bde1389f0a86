"""
Object storage client for content files and metadata documents.

Talks to Wasabi through the S3-compatible API, with a mock mode for local
development. Two buckets are addressed through the same client: the
content bucket (videos, payment-proof images) and the metadata bucket
(JSON documents).

Mock mode stores objects in memory, enabling API testing without
provisioning actual object storage.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Protocol
from urllib.parse import quote, urlsplit

import httpx

logger = logging.getLogger(__name__)

DEFAULT_SIGNED_URL_EXPIRY = 3600


class StorageError(Exception):
    """Raised when a storage operation fails (network or provider error)."""
    pass


class StorageUnconfiguredError(Exception):
    """Raised when storage is used without credentials or bucket names."""

    def __init__(self, message: str = "Object storage is not configured. Check the WASABI_* environment variables.") -> None:
        super().__init__(message)


@dataclass
class StorageConfig:
    """
    Configuration for Wasabi/S3-compatible storage.

    Built once at process start from Settings and passed to the client,
    so nothing reads the environment behind the caller's back.
    """
    access_key_id: str
    secret_access_key: str
    bucket_name: str
    metadata_bucket_name: str
    endpoint_url: str = "https://s3.wasabisys.com"
    region: str = "us-east-1"

    @property
    def is_configured(self) -> bool:
        return bool(
            self.access_key_id
            and self.secret_access_key
            and self.bucket_name
            and self.metadata_bucket_name
        )


@dataclass
class ObjectDescriptor:
    """What we know about a stored object without reading it."""
    key: str
    bucket: str
    size: int = 0
    last_modified: Optional[datetime] = None
    content_type: Optional[str] = None

    @property
    def name(self) -> str:
        return self.key.rsplit("/", 1)[-1]


class StorageClient(Protocol):
    """
    Protocol for object storage operations.

    Using a protocol means tests can provide mocks and we can
    swap storage backends without changing dependent code.
    """

    @property
    def is_configured(self) -> bool:
        ...

    async def put_object(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str,
        filename: Optional[str] = None,
    ) -> ObjectDescriptor:
        """Store bytes under key and describe the result."""
        ...

    async def get_signed_url(
        self,
        bucket: str,
        key: str,
        expiry_seconds: int = DEFAULT_SIGNED_URL_EXPIRY,
    ) -> str:
        """Generate temporary read URL."""
        ...

    async def fetch_signed_url(self, url: str) -> Optional[bytes]:
        """Read a signed URL. Returns None when the object does not exist."""
        ...

    async def list_objects(
        self,
        bucket: str,
        prefix: str = "",
    ) -> list[ObjectDescriptor]:
        """List every object under prefix."""
        ...

    async def delete_object(self, bucket: str, key: str) -> bool:
        """Delete an object. Deleting a missing key succeeds."""
        ...

    def get_public_url(self, bucket: str, key: str) -> str:
        """Non-expiring URL, only meaningful for public buckets."""
        ...


def _object_metadata(data: bytes, filename: Optional[str], key: str) -> dict[str, str]:
    # S3 user metadata must be ASCII
    return {
        "original-name": quote(filename or key.rsplit("/", 1)[-1]),
        "size": str(len(data)),
        "uploaded-at": datetime.now(timezone.utc).isoformat(),
    }


class WasabiStorageClient:
    """
    Wasabi object storage client.

    Uses boto3 because Wasabi is S3-compatible. Path-style addressing is
    required by Wasabi, so it is forced in the client config.

    boto3 is synchronous, so each call runs in a worker thread to keep the
    event loop free. Signed URLs are read back with httpx, the same way a
    browser would read them.

    When the config is incomplete no boto3 client is built and every
    operation raises StorageUnconfiguredError. Callers should check
    is_configured first instead of relying on the exception.
    """

    def __init__(
        self,
        config: StorageConfig,
        http_timeout: float = 30.0,
    ) -> None:
        self._config = config
        self._http_timeout = http_timeout
        self._s3_client = None

        if not config.is_configured:
            logger.warning(
                "Wasabi storage is not configured; storage calls will fail",
                extra={"endpoint": config.endpoint_url},
            )
            return

        import boto3
        from botocore.config import Config

        boto_config = Config(
            signature_version='s3v4',
            s3={'addressing_style': 'path'},
        )

        self._s3_client = boto3.client(
            's3',
            endpoint_url=config.endpoint_url,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            region_name=config.region,
            config=boto_config,
        )

        logger.info(
            "Initialized Wasabi storage client",
            extra={
                "bucket": config.bucket_name,
                "metadata_bucket": config.metadata_bucket_name,
                "endpoint": config.endpoint_url,
            }
        )

    @property
    def is_configured(self) -> bool:
        return self._s3_client is not None

    def _require_client(self):
        if self._s3_client is None:
            raise StorageUnconfiguredError()
        return self._s3_client

    async def put_object(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str,
        filename: Optional[str] = None,
    ) -> ObjectDescriptor:
        """
        Upload bytes to a bucket.

        Original filename, size and upload time travel with the object as
        user metadata so they survive independently of our documents.
        """
        s3 = self._require_client()

        try:
            await asyncio.to_thread(
                s3.put_object,
                Bucket=bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                Metadata=_object_metadata(data, filename, key),
            )
        except Exception as e:
            logger.error(
                "Failed to upload object",
                extra={"bucket": bucket, "key": key, "error": str(e)}
            )
            raise StorageError(f"Upload failed: {e}") from e

        logger.debug(
            "Uploaded object",
            extra={"bucket": bucket, "key": key, "size_bytes": len(data)}
        )

        return ObjectDescriptor(
            key=key,
            bucket=bucket,
            size=len(data),
            last_modified=datetime.now(timezone.utc),
            content_type=content_type,
        )

    async def get_signed_url(
        self,
        bucket: str,
        key: str,
        expiry_seconds: int = DEFAULT_SIGNED_URL_EXPIRY,
    ) -> str:
        """
        Generate a temporary download URL.

        Signing is a local computation, so it succeeds even when the object
        does not exist. Absence shows up when the URL is read.
        """
        s3 = self._require_client()

        try:
            return s3.generate_presigned_url(
                'get_object',
                Params={'Bucket': bucket, 'Key': key},
                ExpiresIn=expiry_seconds,
            )
        except Exception as e:
            logger.error(
                "Failed to generate presigned URL",
                extra={"bucket": bucket, "key": key, "error": str(e)}
            )
            raise StorageError(f"Presigned URL generation failed: {e}") from e

    async def fetch_signed_url(self, url: str) -> Optional[bytes]:
        """
        Read an object through its signed URL.

        S3 answers 404 for a missing key, or 403 when the credentials lack
        list permission on the bucket. Both mean "absent" here.
        """
        self._require_client()

        try:
            async with httpx.AsyncClient(timeout=self._http_timeout) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            logger.error(
                "Failed to read signed URL",
                extra={"url": url.split("?", 1)[0], "error": str(e)}
            )
            raise StorageError(f"Read failed: {e}") from e

        if response.status_code in (403, 404):
            return None

        if response.status_code >= 400:
            raise StorageError(
                f"Read failed with HTTP {response.status_code}"
            )

        return response.content

    async def list_objects(
        self,
        bucket: str,
        prefix: str = "",
    ) -> list[ObjectDescriptor]:
        """List all objects under prefix, following continuation tokens."""
        s3 = self._require_client()

        def _list() -> list[ObjectDescriptor]:
            paginator = s3.get_paginator('list_objects_v2')
            found = []
            for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
                for obj in page.get('Contents', []):
                    found.append(ObjectDescriptor(
                        key=obj['Key'],
                        bucket=bucket,
                        size=obj.get('Size', 0),
                        last_modified=obj.get('LastModified'),
                    ))
            return found

        try:
            objects = await asyncio.to_thread(_list)
        except Exception as e:
            logger.error(
                "Failed to list objects",
                extra={"bucket": bucket, "prefix": prefix, "error": str(e)}
            )
            raise StorageError(f"List failed: {e}") from e

        return objects

    async def delete_object(self, bucket: str, key: str) -> bool:
        """Delete an object. S3 reports success for missing keys too."""
        s3 = self._require_client()

        try:
            await asyncio.to_thread(s3.delete_object, Bucket=bucket, Key=key)
        except Exception as e:
            logger.error(
                "Failed to delete object",
                extra={"bucket": bucket, "key": key, "error": str(e)}
            )
            raise StorageError(f"Delete failed: {e}") from e

        logger.info("Deleted object", extra={"bucket": bucket, "key": key})
        return True

    def get_public_url(self, bucket: str, key: str) -> str:
        return f"{self._config.endpoint_url.rstrip('/')}/{bucket}/{key}"


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockStorageClient:
    """
    In-memory storage for local development.

    Objects live in a dict per bucket and "signed URLs" are mock URIs that
    fetch_signed_url resolves against the same dicts.

    Not suitable for production, but perfect for development and testing.
    """

    def __init__(self, endpoint_url: str = "mock://storage") -> None:
        # {bucket: {key: (bytes, content_type, metadata)}}
        self._buckets: dict[str, dict[str, tuple[bytes, str, dict[str, str]]]] = {}
        self._endpoint_url = endpoint_url
        logger.info("Initialized mock storage client (in-memory)")

    @property
    def is_configured(self) -> bool:
        return True

    async def put_object(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str,
        filename: Optional[str] = None,
    ) -> ObjectDescriptor:
        """Store object in memory."""
        self._buckets.setdefault(bucket, {})[key] = (
            data,
            content_type,
            _object_metadata(data, filename, key),
        )

        logger.debug(
            "Stored object in mock storage",
            extra={"bucket": bucket, "key": key, "size_bytes": len(data)}
        )

        return ObjectDescriptor(
            key=key,
            bucket=bucket,
            size=len(data),
            last_modified=datetime.now(timezone.utc),
            content_type=content_type,
        )

    async def get_signed_url(
        self,
        bucket: str,
        key: str,
        expiry_seconds: int = DEFAULT_SIGNED_URL_EXPIRY,
    ) -> str:
        return f"mock://{bucket}/{key}?expires={expiry_seconds}"

    async def fetch_signed_url(self, url: str) -> Optional[bytes]:
        parts = urlsplit(url)
        bucket = parts.netloc
        key = parts.path.lstrip("/")
        stored = self._buckets.get(bucket, {}).get(key)
        if stored is None:
            return None
        return stored[0]

    async def list_objects(
        self,
        bucket: str,
        prefix: str = "",
    ) -> list[ObjectDescriptor]:
        return [
            ObjectDescriptor(
                key=key,
                bucket=bucket,
                size=len(data),
                content_type=content_type,
            )
            for key, (data, content_type, _) in sorted(self._buckets.get(bucket, {}).items())
            if key.startswith(prefix)
        ]

    async def delete_object(self, bucket: str, key: str) -> bool:
        self._buckets.get(bucket, {}).pop(key, None)
        return True

    def get_public_url(self, bucket: str, key: str) -> str:
        return f"{self._endpoint_url}/{bucket}/{key}"

    def object_metadata(self, bucket: str, key: str) -> Optional[dict[str, str]]:
        """Stored user metadata for an object (test helper)."""
        stored = self._buckets.get(bucket, {}).get(key)
        return stored[2] if stored else None


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_client(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
) -> StorageClient:
    """
    Create storage client based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return mock client for testing

    Returns:
        StorageClient implementation (Wasabi or Mock). A Wasabi client
        built from an incomplete config reports is_configured == False.
    """
    if mock_mode:
        return MockStorageClient()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return WasabiStorageClient(config)
