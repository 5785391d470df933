"""Capability protocols for object stores and CDN control planes."""
from typing import Protocol, AsyncIterator, Optional, Sequence, runtime_checkable

from .models import StorageObject, ObjectHead


@runtime_checkable
class ObjectStore(Protocol):
    """Remote bucket API the volume is built on."""

    async def put_object(
        self,
        key: str,
        body: bytes,
        metadata: Optional[dict] = None,
    ) -> None:
        """Upload object. ``metadata`` holds PutObject extras."""
        ...

    async def get_object(self, key: str) -> bytes:
        """Download object, ``NotFoundError`` if missing."""
        ...

    def stream_object(
        self,
        key: str,
        chunk_size: int = 8192
    ) -> AsyncIterator[bytes]:
        """Stream object in chunks."""
        ...

    async def delete_object(self, key: str) -> None:
        """Delete object. Missing keys are not an error."""
        ...

    async def copy_object(self, source_key: str, dest_key: str) -> None:
        """Server-side copy within the bucket."""
        ...

    def list_objects(
        self,
        prefix: str = "",
        delimiter: Optional[str] = None
    ) -> AsyncIterator[StorageObject]:
        """List objects under prefix; common prefixes when delimited."""
        ...

    async def head_object(self, key: str) -> ObjectHead:
        """Object metadata, ``NotFoundError`` if missing."""
        ...

    async def head_bucket(self) -> None:
        """Check bucket reachability and permissions."""
        ...

    async def presigned_url(self, key: str, expires_in: int = 3600) -> str:
        """Signed GET URL."""
        ...

    async def list_buckets(self) -> list[str]:
        """Names of all buckets visible to the credentials."""
        ...

    async def get_bucket_location(self, bucket: str) -> str:
        """Region of a bucket."""
        ...


@runtime_checkable
class CdnControl(Protocol):
    """CDN control plane able to purge cached paths."""

    async def create_invalidation(
        self,
        distribution_id: str,
        paths: Sequence[str],
        caller_reference: str
    ) -> None:
        """Request invalidation of ``paths``; ``CdnError`` on failure."""
        ...
