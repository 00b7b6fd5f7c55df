"""
Object storage client for the video bucket.

Supports AWS S3 and S3-compatible stores (MinIO, R2, ...) through boto3,
with a mock mode for local development.

The client is built once at startup and shared by every request. boto3
clients are thread-safe, so the blocking SDK calls are pushed to worker
threads and one slow backend call never stalls the event loop.

Mock mode keeps objects in memory, enabling API testing without
provisioning a bucket.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Protocol

from ...core.catalog.errors import BackendUnavailable
from ...core.catalog.keys import encode_key
from ...core.catalog.lister import KEY_DELIMITER, MAX_LISTED_KEYS, StorageGateway
from ...core.catalog.models import LevelListing, StoredObject

logger = logging.getLogger(__name__)


@dataclass
class StorageConfig:
    """
    Configuration for S3-compatible storage.

    endpoint_url is only set for non-AWS backends. force_path_style
    switches to http://endpoint/bucket/key addressing, which most
    self-hosted stores require.
    """
    access_key_id: str
    secret_access_key: str
    bucket_name: str
    region: str
    endpoint_url: Optional[str] = None
    force_path_style: bool = False


class StorageClient(StorageGateway, Protocol):
    """
    Protocol for object storage operations.

    Everything the catalog needs plus a reachability check for readiness.
    Using a protocol means tests can provide mocks and we can
    swap storage backends without changing dependent code.
    """

    async def ping(self) -> None:
        """Raise BackendUnavailable if the bucket can't be reached."""
        ...


# ---------------------------------------------------------------------------
# Error Mapping
# ---------------------------------------------------------------------------

def map_storage_error(exc: Exception, operation: str) -> BackendUnavailable:
    """
    Collapse a backend SDK exception into BackendUnavailable.

    This is the only place that knows botocore's error shapes. ClientError
    carries the service error code (AccessDenied, NoSuchBucket, ...);
    BotoCoreError covers transport, credential and config problems.
    """
    from botocore.exceptions import BotoCoreError, ClientError

    if isinstance(exc, BackendUnavailable):
        return exc

    code: Optional[str] = None
    if isinstance(exc, ClientError):
        code = exc.response.get("Error", {}).get("Code")
        message = f"Storage {operation} failed: {code or 'ClientError'}"
    elif isinstance(exc, BotoCoreError):
        code = type(exc).__name__
        message = f"Storage {operation} failed: {exc}"
    else:
        message = f"Storage {operation} failed: {exc}"

    return BackendUnavailable(message, operation=operation, code=code)


# ---------------------------------------------------------------------------
# S3 Storage
# ---------------------------------------------------------------------------

class S3StorageClient:
    """
    S3-compatible object storage client.

    Uses boto3 so the same code works against AWS, MinIO and R2.
    """

    def __init__(self, config: StorageConfig) -> None:
        """
        Initialize the boto3 client.

        We import boto3 here (not at module level) because:
        - Mock mode doesn't need it
        - Explicit about when the dependency is required
        - Makes testing easier
        """
        try:
            import boto3
            from botocore.config import Config
        except ImportError:
            raise ImportError(
                "boto3 is required for S3 storage. Install with: pip install boto3"
            )

        self._config = config

        s3_options = {"addressing_style": "path"} if config.force_path_style else {}
        boto_config = Config(
            signature_version="s3v4",
            s3=s3_options,
        )

        self._s3_client = boto3.client(
            "s3",
            endpoint_url=config.endpoint_url,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            region_name=config.region,
            config=boto_config,
        )

        logger.info(
            "Initialized S3 storage client",
            extra={
                "bucket": config.bucket_name,
                "region": config.region,
                "endpoint": config.endpoint_url or "aws",
                "path_style": config.force_path_style,
            }
        )

    @property
    def bucket_name(self) -> str:
        return self._config.bucket_name

    async def list_one_level(
        self,
        prefix: str,
        delimiter: str = KEY_DELIMITER,
        limit: int = MAX_LISTED_KEYS,
    ) -> LevelListing:
        """
        List one level of the hierarchy under prefix.

        Exactly one list_objects_v2 call. If the backend truncates, the
        remainder is not fetched.
        """
        try:
            response = await asyncio.to_thread(
                self._s3_client.list_objects_v2,
                Bucket=self._config.bucket_name,
                Prefix=prefix,
                Delimiter=delimiter,
                MaxKeys=limit,
            )
        except Exception as e:
            error = map_storage_error(e, "list")
            logger.error(
                "Failed to list objects",
                extra={"prefix": prefix, "code": error.code, "error": str(e)}
            )
            raise error from e

        if response.get("IsTruncated"):
            logger.warning(
                "Listing truncated by backend",
                extra={"prefix": prefix, "limit": limit},
            )

        sub_prefixes = [
            common["Prefix"]
            for common in response.get("CommonPrefixes", [])
            if common.get("Prefix")
        ]
        entries = [
            StoredObject(
                key=obj["Key"],
                size=obj.get("Size"),
                last_modified=obj.get("LastModified"),
            )
            for obj in response.get("Contents", [])
            if obj.get("Key")
        ]

        logger.debug(
            "Listed objects",
            extra={
                "prefix": prefix,
                "sub_prefixes": len(sub_prefixes),
                "entries": len(entries),
            }
        )

        return LevelListing(sub_prefixes=sub_prefixes, entries=entries)

    async def sign_get(self, key: str, ttl_seconds: int) -> str:
        """
        Generate a presigned GET URL.

        Signing is local to the SDK; no request reaches the bucket, so a
        key that doesn't exist still gets a URL.
        """
        try:
            return await asyncio.to_thread(
                self._s3_client.generate_presigned_url,
                "get_object",
                Params={
                    "Bucket": self._config.bucket_name,
                    "Key": key,
                },
                ExpiresIn=ttl_seconds,
            )
        except Exception as e:
            error = map_storage_error(e, "sign")
            logger.error(
                "Failed to generate presigned URL",
                extra={"key": key, "code": error.code, "error": str(e)}
            )
            raise error from e

    async def ping(self) -> None:
        """Check the bucket is reachable with the configured credentials."""
        try:
            await asyncio.to_thread(
                self._s3_client.head_bucket,
                Bucket=self._config.bucket_name,
            )
        except Exception as e:
            raise map_storage_error(e, "ping") from e


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockStorageClient:
    """
    In-memory storage for local development.

    Objects live in a dict keyed by storage key. Listing folds keys below
    the delimiter into sub-prefixes the same way S3 does, and "signed"
    URLs are mock URIs.

    Not suitable for production, but perfect for development and testing.
    """

    def __init__(self, objects: Optional[dict[str, int]] = None) -> None:
        # {key: (size_bytes, last_modified)}
        self._objects: dict[str, tuple[int, datetime]] = {}
        for key, size in (objects or {}).items():
            self.put_object(key, size)
        logger.info("Initialized mock storage client (in-memory)")

    @property
    def bucket_name(self) -> str:
        return "mock"

    def put_object(
        self,
        key: str,
        size: int = 0,
        last_modified: Optional[datetime] = None,
    ) -> None:
        """Register an object; content itself is never stored."""
        self._objects[key] = (size, last_modified or datetime.now(timezone.utc))

    async def list_one_level(
        self,
        prefix: str,
        delimiter: str = KEY_DELIMITER,
        limit: int = MAX_LISTED_KEYS,
    ) -> LevelListing:
        """Emulate list_objects_v2 with a delimiter over the in-memory keys."""
        sub_prefixes: list[str] = []
        entries: list[StoredObject] = []
        returned = 0

        for key in sorted(self._objects):
            if returned >= limit:
                break
            if not key.startswith(prefix):
                continue

            rest = key[len(prefix):]
            if delimiter and delimiter in rest:
                folder = prefix + rest.split(delimiter, 1)[0] + delimiter
                if folder not in sub_prefixes:
                    sub_prefixes.append(folder)
                    returned += 1
                continue

            size, last_modified = self._objects[key]
            entries.append(StoredObject(key=key, size=size, last_modified=last_modified))
            returned += 1

        return LevelListing(sub_prefixes=sub_prefixes, entries=entries)

    async def sign_get(self, key: str, ttl_seconds: int) -> str:
        """Return a mock URL; existence is not checked, like the real client."""
        return f"mock://storage/{encode_key(key)}?expires_in={ttl_seconds}"

    async def ping(self) -> None:
        return None


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
        mock_mode: If True, return in-memory client

    Returns:
        StorageClient implementation (S3 or Mock)
    """
    if mock_mode:
        return MockStorageClient()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return S3StorageClient(config)
