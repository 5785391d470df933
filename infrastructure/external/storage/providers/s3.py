"""AWS S3 object store implementation."""
from typing import AsyncIterator, Optional, Any, Callable
import anyio
from functools import partial

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionError as BotoConnectionError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

import boto3
from botocore.config import Config as BotoConfig

from core.logging_config import get_logger
from ..base import ObjectStore, CdnControl
from ..config import ClientConfig, VolumeConfig
from ..models import StorageObject, ObjectHead
from ..exceptions import (
    StorageError,
    NotFoundError,
    PermissionDeniedError,
    TransientError,
    TransportError,
    ConfigurationError,
)
from ..utils import retrying
from ..volume import S3Volume
from .cloudfront import build_cloudfront_control

logger = get_logger(__name__)

DEFAULT_REGION = "us-east-1"

_NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound", "NoSuchBucket"}
_DENIED_CODES = {
    "AccessDenied", "403", "Forbidden", "InvalidAccessKeyId",
    "SignatureDoesNotMatch", "AllAccessDisabled",
}
_TRANSIENT_CODES = {
    "RequestTimeout", "SlowDown", "ServiceUnavailable", "InternalError",
    "Throttling", "ThrottlingException", "RequestLimitExceeded", "500", "503",
}
_TRANSIENT_BOTO_ERRORS = (
    BotoConnectionError,
    EndpointConnectionError,
    ConnectTimeoutError,
    ReadTimeoutError,
)


def map_client_error(e: Exception, operation: str) -> StorageError:
    """Map botocore exceptions to storage exceptions."""
    if isinstance(e, StorageError):
        return e
    if isinstance(e, ClientError):
        error_code = e.response.get("Error", {}).get("Code", "")
        if error_code in _NOT_FOUND_CODES:
            return NotFoundError(f"Object not found: {operation}")
        if error_code in _DENIED_CODES:
            return PermissionDeniedError(f"Access denied: {operation}")
        if error_code in _TRANSIENT_CODES:
            return TransientError(f"Transient error: {operation}: {e}")
        return TransportError(f"S3 error during {operation}: {e}")
    if isinstance(e, _TRANSIENT_BOTO_ERRORS):
        return TransientError(f"Transient error: {operation}: {e}")
    if isinstance(e, BotoCoreError):
        return TransportError(f"S3 error during {operation}: {e}")
    return TransportError(f"S3 error during {operation}: {e}")


def normalize_region(location: Optional[str]) -> str:
    """Turn a LocationConstraint into a region name."""
    if not location:
        return DEFAULT_REGION
    if location == "EU":
        return "eu-west-1"
    return location


class S3ObjectStore(ObjectStore):
    """Object store backed by a boto3 S3 client."""

    def __init__(
        self,
        client: Any,  # boto3 S3 client
        bucket: Optional[str] = None,
        retry_attempts: int = 1
    ):
        """Initialize S3 store.

        Args:
            client: Boto3 S3 client instance
            bucket: Bucket holding the volume; None for account level use
            retry_attempts: Attempts per call for transient errors
        """
        self.client = client
        self.bucket = bucket
        self.retry_attempts = max(1, retry_attempts)

    async def _call(self, func: Callable[..., Any], operation: str, **kwargs) -> Any:
        """Run a blocking SDK call in a worker thread, mapping failures."""
        if self.retry_attempts == 1:
            return await self._call_once(func, operation, **kwargs)

        async for attempt in retrying(self.retry_attempts):
            with attempt:
                return await self._call_once(func, operation, **kwargs)

    async def _call_once(self, func: Callable[..., Any], operation: str, **kwargs) -> Any:
        try:
            return await anyio.to_thread.run_sync(partial(func, **kwargs))
        except (ClientError, BotoCoreError) as e:
            raise map_client_error(e, operation) from e

    async def put_object(
        self,
        key: str,
        body: bytes,
        metadata: Optional[dict] = None,
    ) -> None:
        """Upload object to S3."""
        await self._call(
            self.client.put_object,
            f"upload {key}",
            Bucket=self.bucket,
            Key=key,
            Body=body,
            **(metadata or {})
        )
        logger.info("Uploaded to S3", key=key, size=len(body))

    async def get_object(self, key: str) -> bytes:
        """Download object from S3."""
        response = await self._call(
            self.client.get_object, f"download {key}", Bucket=self.bucket, Key=key
        )
        body = response["Body"]
        try:
            data = await anyio.to_thread.run_sync(body.read)
        except (ClientError, BotoCoreError) as e:
            raise map_client_error(e, f"download {key}") from e
        finally:
            await anyio.to_thread.run_sync(body.close)
        logger.info("Downloaded from S3", key=key, size=len(data))
        return data

    async def stream_object(
        self,
        key: str,
        chunk_size: int = 8192
    ) -> AsyncIterator[bytes]:
        """Stream object from S3."""
        response = await self._call(
            self.client.get_object, f"stream download {key}", Bucket=self.bucket, Key=key
        )
        body = response["Body"]
        try:
            while True:
                try:
                    chunk = await anyio.to_thread.run_sync(partial(body.read, chunk_size))
                except (ClientError, BotoCoreError) as e:
                    raise map_client_error(e, f"stream download {key}") from e
                if not chunk:
                    break
                yield chunk
        finally:
            # Release the pooled connection
            await anyio.to_thread.run_sync(body.close)

    async def delete_object(self, key: str) -> None:
        """Delete object from S3."""
        await self._call(
            self.client.delete_object, f"delete {key}", Bucket=self.bucket, Key=key
        )
        logger.info("Deleted from S3", key=key)

    async def copy_object(self, source_key: str, dest_key: str) -> None:
        """Copy object within the bucket."""
        await self._call(
            self.client.copy_object,
            f"copy {source_key} to {dest_key}",
            CopySource={"Bucket": self.bucket, "Key": source_key},
            Bucket=self.bucket,
            Key=dest_key
        )
        logger.info("Copied in S3", source=source_key, dest=dest_key)

    async def list_objects(
        self,
        prefix: str = "",
        delimiter: Optional[str] = None
    ) -> AsyncIterator[StorageObject]:
        """List objects page by page."""
        kwargs: dict[str, Any] = {"Bucket": self.bucket, "Prefix": prefix}
        if delimiter:
            kwargs["Delimiter"] = delimiter

        token: Optional[str] = None
        while True:
            if token:
                kwargs["ContinuationToken"] = token
            page = await self._call(
                self.client.list_objects_v2, f"list objects {prefix}", **kwargs
            )
            for common in page.get("CommonPrefixes", []):
                yield StorageObject(key=common["Prefix"], is_prefix=True)
            for obj in page.get("Contents", []):
                yield StorageObject(
                    key=obj["Key"],
                    size=obj.get("Size", 0),
                    etag=obj.get("ETag", "").strip('"') or None,
                    last_modified=obj.get("LastModified")
                )
            if not page.get("IsTruncated"):
                break
            token = page.get("NextContinuationToken")
            if not token:
                break

    async def head_object(self, key: str) -> ObjectHead:
        """Get object metadata from S3."""
        response = await self._call(
            self.client.head_object, f"get metadata {key}", Bucket=self.bucket, Key=key
        )
        return ObjectHead(
            size=response.get("ContentLength", 0),
            etag=response.get("ETag", "").strip('"') or None,
            last_modified=response.get("LastModified"),
            content_type=response.get("ContentType"),
            cache_control=response.get("CacheControl"),
            storage_class=response.get("StorageClass"),
            metadata=response.get("Metadata", {})
        )

    async def head_bucket(self) -> None:
        await self._call(self.client.head_bucket, f"head bucket {self.bucket}", Bucket=self.bucket)

    async def presigned_url(self, key: str, expires_in: int = 3600) -> str:
        """Generate presigned GET URL."""
        return await self._call(
            self.client.generate_presigned_url,
            f"generate presigned URL {key}",
            ClientMethod="get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=expires_in
        )

    async def list_buckets(self) -> list[str]:
        response = await self._call(self.client.list_buckets, "list buckets")
        return [b["Name"] for b in response.get("Buckets", [])]

    async def get_bucket_location(self, bucket: str) -> str:
        response = await self._call(
            self.client.get_bucket_location, f"get bucket location {bucket}", Bucket=bucket
        )
        return normalize_region(response.get("LocationConstraint"))


def create_s3_client(client_config: ClientConfig, timeout: int = 30) -> Any:
    """Create a boto3 S3 client from a resolved client config."""
    boto_config = BotoConfig(
        signature_version="s3v4",
        # One attempt per call; retries are opt-in above the SDK
        retries={"total_max_attempts": 1, "mode": "standard"},
        connect_timeout=timeout,
        read_timeout=timeout
    )
    return boto3.client("s3", config=boto_config, **client_config.boto_kwargs())


def build_s3_store(
    client_config: ClientConfig,
    bucket: Optional[str] = None,
    timeout: int = 30,
    retry_attempts: int = 1
) -> S3ObjectStore:
    """Build S3 object store.

    Args:
        client_config: Resolved client configuration
        bucket: Bucket name, None for account level calls
        timeout: Connect/read timeout in seconds
        retry_attempts: Attempts per call for transient errors

    Returns:
        Configured S3 object store
    """
    try:
        client = create_s3_client(client_config, timeout)
    except BotoCoreError as e:
        raise ConfigurationError(f"Failed to create S3 client: {e}") from e
    return S3ObjectStore(client, bucket, retry_attempts)


async def build_s3_volume(config: VolumeConfig) -> S3Volume:
    """Build a volume backed by S3 and, when configured, CloudFront."""
    client_config = config.client_config()
    store = build_s3_store(
        client_config,
        config.bucket,
        timeout=config.timeout,
        retry_attempts=config.retry_attempts
    )
    cdn: Optional[CdnControl] = None
    if config.cf_distribution_id:
        cdn = build_cloudfront_control(client_config, timeout=config.timeout)
    return S3Volume(config, store, cdn)
